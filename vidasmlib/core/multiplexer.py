#!/usr/bin/env python3

import os
import shutil
from vidasmlib.core import errors
from vidasmlib.core import utils
from vidasmlib.media import ffmpeg

#============================================

class OutputMultiplexer():
	"""
	Join per-scene segments, in scene order, into one artifact without
	re-encoding.
	"""
	def __init__(self, engine, work_dir: str, keep_temp: bool = False):
		self.engine = engine
		self.work_dir = work_dir
		self.keep_temp = keep_temp

	#============================
	def combine(self, segment_files: list, output_file: str) -> str:
		if len(segment_files) == 0:
			raise errors.NoRenderableScenesError("no encoded scene segments to combine")
		list_file = os.path.join(self.work_dir, "concat-list.txt")
		try:
			if len(segment_files) == 1:
				shutil.copyfile(segment_files[0], output_file)
			else:
				ffmpeg.concatenateSegments(self.engine, segment_files, output_file,
					list_file)
		except OSError as exc:
			raise errors.EncoderError(f"could not write {output_file}: {exc}") from exc
		finally:
			if not self.keep_temp:
				self.cleanup(list(segment_files) + [list_file])
		return output_file

	#============================
	def cleanup(self, temp_files: list) -> None:
		for filepath in temp_files:
			utils.remove_quietly(filepath)
