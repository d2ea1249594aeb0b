#!/usr/bin/env python3

from vidasmlib.media.ffmpeg_extract import extractAudio
from vidasmlib.media.ffmpeg_render import FrameDecoder
from vidasmlib.media.ffmpeg_render import FrameEncoder
from vidasmlib.media.ffmpeg_concat import concatenateSegments

__all__ = [
	'extractAudio',
	'FrameDecoder',
	'FrameEncoder',
	'concatenateSegments',
]
