#!/usr/bin/env python3

"""
SRT and WebVTT parsing into timed cues.
"""

import re
from vidasmlib.core.models import Cue

#============================================

ARABIC_SCRIPT = re.compile(
	"[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF]"
)
BLOCK_SPLIT = re.compile(r"\n\s*\n")

#============================================

def is_rtl_text(text: str) -> bool:
	return ARABIC_SCRIPT.search(text) is not None

#============================================

def parse_timestamp(timestamp: str) -> float:
	"""
	Parse HH:MM:SS,mmm or HH:MM:SS.mmm (MM:SS.mmm is accepted too).
	"""
	value = timestamp.strip().replace(',', '.')
	parts = value.split(':')
	if len(parts) not in (2, 3):
		return 0.0
	try:
		hours = int(parts[0]) if len(parts) == 3 else 0
		minutes = int(parts[-2])
		if '.' in parts[-1]:
			(seconds_text, millis_text) = parts[-1].split('.', 1)
		else:
			(seconds_text, millis_text) = (parts[-1], '')
		seconds = int(seconds_text)
		millis = 0
		if millis_text:
			millis = int(millis_text.ljust(3, '0')[:3])
	except ValueError:
		return 0.0
	return hours * 3600 + minutes * 60 + seconds + millis / 1000.0

#============================================

def _parse_blocks(content: str, strip_settings: bool) -> list:
	cues = []
	for block in BLOCK_SPLIT.split(content.strip()):
		lines = block.strip().split('\n')
		if len(lines) < 2:
			continue
		timestamp_index = None
		for index, line in enumerate(lines):
			if '-->' in line:
				timestamp_index = index
				break
		if timestamp_index is None:
			continue
		(start_text, end_text) = lines[timestamp_index].split('-->', 1)
		if strip_settings:
			start_text = start_text.strip().split(' ')[0]
			end_text = end_text.strip().split(' ')[0]
		text = '\n'.join(lines[timestamp_index + 1:]).strip()
		if not text:
			continue
		cues.append(Cue(start_time=parse_timestamp(start_text),
			end_time=parse_timestamp(end_text), text=text,
			is_rtl=is_rtl_text(text)))
	return cues

#============================================

def parse_srt(content: str) -> list:
	return _parse_blocks(content.replace('\r\n', '\n'), strip_settings=False)

#============================================

def parse_vtt(content: str) -> list:
	content = content.replace('\r\n', '\n')
	lines = content.split('\n')
	start_index = 0
	for index, line in enumerate(lines):
		if '-->' in line:
			start_index = max(index - 1, 0)
			break
	return _parse_blocks('\n'.join(lines[start_index:]), strip_settings=True)

#============================================

def parse_subtitles(content: str, filename: str) -> list:
	if filename.lower().endswith('.vtt'):
		return parse_vtt(content)
	return parse_srt(content)

#============================================

def parse_subtitle_asset(asset) -> list:
	content = asset.data.decode('utf-8-sig', errors='replace')
	return parse_subtitles(content, asset.name)
