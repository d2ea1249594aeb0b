#!/usr/bin/env python3

import enum
import math
import os
import tempfile
import numpy
import PIL.Image
from tqdm import tqdm
from vidasmlib.core import errors
from vidasmlib.core import utils
from vidasmlib.core.models import SyncMode
from vidasmlib.media import ffmpeg
from vidasmlib.media import probe
from vidasmlib import subtitle_overlay

#============================================

class SceneState(enum.Enum):
	LOADING = 'loading'
	PLAYING = 'playing'
	DRAINING = 'draining'
	DONE = 'done'
	FAILED = 'failed'

#============================================

def current_cue(cues: list, seconds: float):
	if not cues:
		return None
	for cue in cues:
		if cue.contains(seconds):
			return cue
	return None

#============================================

class AudioSource():
	"""
	Decoded audio buffer for one scene; stop() releases it and is idempotent.
	"""
	def __init__(self, wav_file: str, keep_file: bool = False):
		self.wav_file = wav_file
		self.keep_file = keep_file
		self.stopped = False

	#============================
	def stop(self) -> None:
		if self.stopped:
			return
		self.stopped = True
		if not self.keep_file:
			utils.remove_quietly(self.wav_file)

#============================================

class SceneCompositor():
	"""
	Render one scene at a time: letterboxed frames, subtitle overlay, audio.
	"""
	def __init__(self, engine, settings, work_dir: str, keep_temp: bool = False):
		self.engine = engine
		self.settings = settings
		self.work_dir = work_dir
		self.keep_temp = keep_temp
		self.canvas_size = (settings.width, settings.height)
		self.overlay = subtitle_overlay.SubtitleOverlay(settings.subtitles,
			self.canvas_size)
		self.state = None
		self.frames_rendered = 0

	#============================
	def render_scene(self, scene, decision, cues: list, segment_file: str) -> str:
		self.state = SceneState.LOADING
		self.frames_rendered = 0
		self.overlay.clear_plates()
		try:
			self._render(scene, decision, cues, segment_file)
		except BaseException:
			self.state = SceneState.FAILED
			raise
		self.state = SceneState.DONE
		return segment_file

	#============================
	def _render(self, scene, decision, cues: list, segment_file: str) -> None:
		if scene.video_asset is None:
			raise errors.SceneRenderError(scene.id, "no video asset")
		audio = self._load_audio(scene)
		try:
			with probe.temporary_handle(scene.video_asset, self.work_dir) as video_file:
				source_size = self._load_video_metadata(scene, video_file)
				rect = subtitle_overlay.letterbox_rect(source_size[0], source_size[1],
					self.canvas_size[0], self.canvas_size[1])
				decoder = ffmpeg.FrameDecoder(self.engine, video_file,
					(rect[2], rect[3]), self.settings.fps, decision.playback_rate)
				audio_file = audio.wav_file if audio is not None else None
				encoder = ffmpeg.FrameEncoder(self.engine, segment_file,
					self.canvas_size, self.settings.fps, audio_file,
					self.engine.sample_rate)
				self.state = SceneState.PLAYING
				try:
					decoder.start()
					encoder.start()
					self._play(scene, decision, cues, rect, decoder, encoder)
				except BaseException:
					encoder.abort()
					decoder.close()
					raise
				self.state = SceneState.DRAINING
				self._drain(scene, decoder, encoder)
		finally:
			if audio is not None:
				audio.stop()

	#============================
	def _load_audio(self, scene):
		if scene.audio_asset is None:
			return None
		(handle, wav_file) = tempfile.mkstemp(suffix=".wav",
			prefix=f"scene-{scene.id:03d}-audio-", dir=self.work_dir)
		os.close(handle)
		try:
			with probe.temporary_handle(scene.audio_asset, self.work_dir) as audio_file:
				ffmpeg.extractAudio(self.engine, audio_file, wav_file,
					samplerate=self.engine.sample_rate, audio_mode='stereo')
		except errors.MediaLoadError as exc:
			utils.warn(f"scene {scene.id} audio '{scene.audio_asset.name}' could not "
				f"be decoded, rendering silent: {exc}")
			utils.remove_quietly(wav_file)
			return None
		return AudioSource(wav_file, keep_file=self.keep_temp)

	#============================
	def _load_video_metadata(self, scene, video_file: str) -> tuple:
		try:
			return probe.getVideoDimensions(self.engine, video_file)
		except errors.MediaLoadError as exc:
			raise errors.SceneRenderError(scene.id,
				f"video '{scene.video_asset.name}' could not be loaded") from exc

	#============================
	def _frame_limit(self, decision):
		if decision.mode == SyncMode.TRIM:
			return max(1, int(math.ceil(
				decision.effective_duration_seconds * self.settings.fps - 1e-6)))
		return None

	#============================
	def _play(self, scene, decision, cues: list, rect: tuple, decoder,
		encoder) -> None:
		(draw_x, draw_y, draw_width, draw_height) = rect
		fps = self.settings.fps
		frame_limit = self._frame_limit(decision)
		expected = frame_limit
		if expected is None and decision.effective_duration_seconds > 0:
			expected = int(math.ceil(decision.effective_duration_seconds * fps))
		base_canvas = numpy.zeros((self.canvas_size[1], self.canvas_size[0], 3),
			dtype=numpy.uint8)
		progress_bar = None
		if not utils.is_quiet_mode():
			progress_bar = tqdm(total=expected, unit='frame',
				desc=f"scene {scene.id}", leave=False)
		try:
			frame_index = 0
			while frame_limit is None or frame_index < frame_limit:
				frame = decoder.read_frame()
				if frame is None:
					break
				canvas = base_canvas.copy()
				canvas[draw_y:draw_y + draw_height, draw_x:draw_x + draw_width] = frame
				# output time, the narration clock, not source time
				cue = current_cue(cues, frame_index / fps)
				if cue is not None:
					image = PIL.Image.fromarray(canvas)
					self.overlay.apply(image, cue)
					encoder.write_frame(image)
				else:
					encoder.write_frame(canvas)
				frame_index += 1
				if progress_bar is not None:
					progress_bar.update(1)
		finally:
			if progress_bar is not None:
				progress_bar.close()
		self.frames_rendered = frame_index

	#============================
	def _drain(self, scene, decoder, encoder) -> None:
		returncode = decoder.close()
		if returncode not in (None, 0) or decoder.frames_read == 0:
			encoder.abort()
			reason = decoder.stderr_text.strip()[-400:] or "no frames decoded"
			raise errors.SceneRenderError(scene.id,
				f"video '{scene.video_asset.name}' failed to play: {reason}")
		encoder.finish()
