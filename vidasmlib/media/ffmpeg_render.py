#!/usr/bin/env python3

"""
Raw-frame pipes around ffmpeg: one process decodes a clip into RGB frames,
another encodes composited frames plus an audio track into a segment.
"""

import os
import re
import subprocess
import tempfile
import numpy
from vidasmlib.core import errors
from vidasmlib.core import utils

#============================================

def _open_process(cmd: str, stdin=None, stdout=None):
	showcmd = re.sub("  *", " ", cmd.strip())
	utils.log(f"CMD: '{showcmd}'")
	stderr_file = tempfile.TemporaryFile()
	proc = subprocess.Popen(showcmd, shell=True, stdin=stdin, stdout=stdout,
		stderr=stderr_file)
	return (proc, stderr_file, showcmd)

#============================================

def _read_stderr(stderr_file) -> str:
	stderr_file.seek(0)
	text = stderr_file.read().decode('utf-8', errors='replace')
	stderr_file.close()
	return text

#============================================

class FrameDecoder():
	"""
	Decode a video file to fixed-size RGB frames at a constant frame rate.

	A playback rate above 1 compresses presentation time, so frame i is
	shown at i / fps seconds of output time.
	"""
	def __init__(self, engine, video_file: str, frame_size: tuple, fps: int,
		playback_rate: float = 1.0):
		self.engine = engine
		self.video_file = video_file
		self.width, self.height = frame_size
		self.fps = fps
		self.playback_rate = playback_rate
		self.frame_bytes = self.width * self.height * 3
		self.frames_read = 0
		self.stderr_text = ''
		self.reached_end = False
		self.proc = None
		self._stderr_file = None
		self.cmd = None

	#============================
	def build_command(self) -> str:
		filters = []
		if abs(self.playback_rate - 1.0) > 0.0001:
			filters.append(f"setpts=PTS/{self.playback_rate:.8f}")
		filters.append(f"fps={self.fps}")
		filters.append(f"scale={self.width}:{self.height}:flags=bicubic")
		cmd = f"{utils.quote(self.engine.ffmpeg_path)} -v error -nostdin "
		cmd += f" -i {utils.quote(self.video_file)} "
		cmd += " -an -sn -map 0:v:0 "
		cmd += f" -vf {utils.quote(','.join(filters))} "
		cmd += " -f rawvideo -pix_fmt rgb24 pipe:1 "
		return cmd

	#============================
	def start(self) -> None:
		self.engine.ensure_ready()
		(self.proc, self._stderr_file, self.cmd) = _open_process(
			self.build_command(), stdout=subprocess.PIPE)

	#============================
	def read_frame(self):
		data = self.proc.stdout.read(self.frame_bytes)
		if len(data) < self.frame_bytes:
			self.reached_end = True
			return None
		self.frames_read += 1
		return numpy.frombuffer(data, dtype=numpy.uint8).reshape(
			self.height, self.width, 3)

	#============================
	def close(self) -> int:
		"""
		Stop decoding; returns the exit code, or None if stopped early.
		"""
		if self.proc is None:
			return None
		finished = self.reached_end
		self.proc.stdout.close()
		if not finished:
			self.proc.terminate()
		returncode = self.proc.wait()
		self.stderr_text = _read_stderr(self._stderr_file)
		self.proc = None
		if not finished:
			return None
		return returncode

#============================================

class FrameEncoder():
	"""
	Encode RGB canvas frames written to stdin together with one audio input.

	The audio is padded with silence and cut when the video stream ends, so
	closing stdin is what stops the audio.
	"""
	def __init__(self, engine, out_file: str, canvas_size: tuple, fps: int,
		audio_file: str = None, sample_rate: int = 48000):
		self.engine = engine
		self.out_file = out_file
		self.width, self.height = canvas_size
		self.fps = fps
		self.audio_file = audio_file
		self.sample_rate = sample_rate
		self.frames_written = 0
		self.proc = None
		self._stderr_file = None
		self.cmd = None

	#============================
	def build_command(self) -> str:
		cmd = f"{utils.quote(self.engine.ffmpeg_path)} -y -v error -nostdin "
		cmd += f" -f rawvideo -pix_fmt rgb24 -s {self.width}x{self.height} "
		cmd += f" -r {self.fps} -i pipe:0 "
		if self.audio_file is not None:
			cmd += f" -i {utils.quote(self.audio_file)} "
		else:
			cmd += f" -f lavfi -i anullsrc=r={self.sample_rate}:cl=stereo "
		cmd += " -map 0:v:0 -map 1:a:0 "
		cmd += " -af apad -shortest "
		cmd += f" -codec:v {self.engine.video_codec} -pix_fmt yuv420p "
		cmd += f" -codec:a {self.engine.audio_codec} -ar {self.sample_rate} -ac 2 "
		cmd += self.engine.output_args
		cmd += f" {utils.quote(self.out_file)} "
		return cmd

	#============================
	def start(self) -> None:
		self.engine.ensure_ready()
		(self.proc, self._stderr_file, self.cmd) = _open_process(
			self.build_command(), stdin=subprocess.PIPE)

	#============================
	def write_frame(self, frame) -> None:
		try:
			self.proc.stdin.write(frame.tobytes())
		except BrokenPipeError as exc:
			stderr = self._collect()
			raise errors.CommandError(self.cmd, self.proc.returncode or -1,
				stderr) from exc
		self.frames_written += 1

	#============================
	def finish(self) -> str:
		stderr = self._collect()
		if self.proc.returncode != 0:
			raise errors.CommandError(self.cmd, self.proc.returncode, stderr)
		if not os.path.isfile(self.out_file):
			raise errors.EncoderError(f"encoder produced no output: {self.out_file}")
		return self.out_file

	#============================
	def abort(self) -> None:
		if self.proc is None:
			return
		if self.proc.poll() is None:
			self.proc.kill()
		if self._stderr_file is not None:
			self._collect()

	#============================
	def _collect(self) -> str:
		if self.proc.stdin and not self.proc.stdin.closed:
			try:
				self.proc.stdin.close()
			except BrokenPipeError:
				pass
		self.proc.wait()
		if self._stderr_file is None:
			return ''
		text = _read_stderr(self._stderr_file)
		self._stderr_file = None
		return text
