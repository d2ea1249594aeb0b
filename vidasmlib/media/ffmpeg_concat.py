#!/usr/bin/env python3

import os
from vidasmlib.core import errors
from vidasmlib.core import utils

#============================================

def concatenateSegments(engine, segment_files: list, output_file: str,
	list_file: str) -> str:
	"""
	Join already-encoded segments with the concat demuxer, copying streams.
	"""
	engine.ensure_ready()
	with open(list_file, 'w') as handle:
		for segment in segment_files:
			escaped = os.path.abspath(segment).replace("'", "'\\''")
			handle.write(f"file '{escaped}'\n")
	cmd = f"{utils.quote(engine.ffmpeg_path)} -y -v error "
	cmd += f" -f concat -safe 0 -i {utils.quote(list_file)} "
	cmd += " -map 0 -c copy "
	cmd += f" {utils.quote(output_file)} "
	utils.runCmd(cmd)
	if not os.path.isfile(output_file):
		raise errors.EncoderError(f"concatenation produced no output: {output_file}")
	return output_file
