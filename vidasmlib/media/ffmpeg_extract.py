#!/usr/bin/env python3

import os
from vidasmlib.core import errors
from vidasmlib.core import utils

#============================================

def extractAudio(engine, mediafile: str, wavfile: str, samplerate: int = 48000,
	audio_mode: str = 'stereo') -> str:
	"""
	Decode the first audio stream of a file into a PCM wav buffer.
	"""
	engine.ensure_ready()
	cmd = f"{utils.quote(engine.ffmpeg_path)} -y -v error "
	cmd += f" -i {utils.quote(mediafile)} "
	cmd += " -sn -vn -map 0:a:0 "
	cmd += f" -acodec pcm_s16le -ar {samplerate} "
	if audio_mode == "mono":
		cmd += " -ac 1 "
	elif audio_mode == "stereo":
		cmd += " -ac 2 "
	cmd += f" {utils.quote(wavfile)} "
	try:
		utils.runCmd(cmd)
	except errors.CommandError as exc:
		raise errors.MediaLoadError(f"audio decode failed for {mediafile}") from exc
	if not os.path.isfile(wavfile) or os.path.getsize(wavfile) == 0:
		raise errors.MediaLoadError(f"audio decode produced no data for {mediafile}")
	return wavfile
