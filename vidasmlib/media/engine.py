#!/usr/bin/env python3

"""
Shared handle on the ffmpeg/ffprobe binaries and the chosen encoding path.
"""

import enum
import shutil
import threading
from vidasmlib.core import errors
from vidasmlib.core import utils

#============================================

# (required video encoder, required audio encoder, extension, extra output args)
ENCODING_PATHS = (
	('libx264', 'aac', 'mp4', ' -preset veryfast -crf 23 -movflags +faststart '),
	('libvpx-vp9', 'libopus', 'webm', ' -deadline realtime -cpu-used 8 -b:v 0 -crf 32 '),
	('mpeg4', 'pcm_s16le', 'mkv', ' -q:v 4 '),
)

#============================================

class EngineState(enum.Enum):
	UNINITIALIZED = 'uninitialized'
	INITIALIZING = 'initializing'
	READY = 'ready'

#============================================

class EngineContext():
	"""
	Lazily initialized, reusable encoder handle.

	The first caller of ensure_ready() performs setup; callers arriving while
	setup is running wait on the condition instead of starting a second one.
	"""
	def __init__(self, ffmpeg_bin: str = 'ffmpeg', ffprobe_bin: str = 'ffprobe'):
		self.ffmpeg_bin = ffmpeg_bin
		self.ffprobe_bin = ffprobe_bin
		self.ffmpeg_path = None
		self.ffprobe_path = None
		self.video_codec = None
		self.audio_codec = None
		self.extension = None
		self.output_args = ''
		self.sample_rate = 48000
		self.init_count = 0
		self._state = EngineState.UNINITIALIZED
		self._condition = threading.Condition()

	#============================
	@property
	def state(self) -> EngineState:
		with self._condition:
			return self._state

	#============================
	def ensure_ready(self) -> 'EngineContext':
		with self._condition:
			while self._state == EngineState.INITIALIZING:
				self._condition.wait()
			if self._state == EngineState.READY:
				return self
			self._state = EngineState.INITIALIZING
		try:
			self._initialize()
		except BaseException:
			with self._condition:
				self._state = EngineState.UNINITIALIZED
				self._condition.notify_all()
			raise
		with self._condition:
			self.init_count += 1
			self._state = EngineState.READY
			self._condition.notify_all()
		return self

	#============================
	def _initialize(self) -> None:
		self.ffmpeg_path = self._locate(self.ffmpeg_bin)
		self.ffprobe_path = self._locate(self.ffprobe_bin)
		listing = utils.runCmd(f"{utils.quote(self.ffmpeg_path)} -hide_banner -encoders")
		encoders = self._parse_encoders(listing)
		for video_codec, audio_codec, extension, output_args in ENCODING_PATHS:
			if video_codec in encoders and audio_codec in encoders:
				self.video_codec = video_codec
				self.audio_codec = audio_codec
				self.extension = extension
				self.output_args = output_args
				utils.log(f"encoder path: {video_codec}/{audio_codec} -> .{extension}")
				return
		raise errors.EncoderError("ffmpeg provides none of the supported encoder pairs")

	#============================
	def _locate(self, binary: str) -> str:
		path = shutil.which(binary)
		if path is None:
			raise errors.EncoderError(f"required tool not found on PATH: {binary}")
		return path

	#============================
	def _parse_encoders(self, listing: str) -> set:
		encoders = set()
		for line in listing.splitlines():
			parts = line.split()
			if len(parts) < 2:
				continue
			flags = parts[0]
			if len(flags) != 6 or flags[0] not in 'VAS':
				continue
			encoders.add(parts[1])
		return encoders
