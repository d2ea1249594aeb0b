#!/usr/bin/env python3

"""
Metadata-only probing of in-memory media assets through ffprobe.
"""

import concurrent.futures
import contextlib
import json
import os
import tempfile
from vidasmlib.core import errors
from vidasmlib.core import utils

#============================================

@contextlib.contextmanager
def temporary_handle(asset, temp_dir: str = None):
	"""
	Expose an asset's bytes as a file path for the duration of the block.
	"""
	fd, path = tempfile.mkstemp(suffix=asset.extension, prefix='vidasm-',
		dir=temp_dir)
	try:
		with os.fdopen(fd, 'wb') as handle:
			handle.write(asset.data)
		yield path
	finally:
		utils.remove_quietly(path)

#============================================

def getMediaInfo(engine, mediafile: str) -> dict:
	engine.ensure_ready()
	cmd = f"{utils.quote(engine.ffprobe_path)} -v error "
	cmd += " -show_entries format=duration:stream=codec_type,width,height,duration "
	cmd += f" -of json {utils.quote(mediafile)} "
	try:
		stdout = utils.runCmd(cmd)
	except errors.CommandError as exc:
		raise errors.MediaLoadError(f"ffprobe could not open {mediafile}") from exc
	try:
		data = json.loads(stdout)
	except ValueError as exc:
		raise errors.MediaLoadError(f"ffprobe returned invalid json for {mediafile}") from exc
	if not isinstance(data, dict):
		raise errors.MediaLoadError(f"ffprobe returned no metadata for {mediafile}")
	return data

#============================================

def _parse_float(value):
	if value is None:
		return None
	try:
		return float(value)
	except (TypeError, ValueError):
		return None

#============================================

def getDuration(engine, mediafile: str) -> float:
	data = getMediaInfo(engine, mediafile)
	duration = _parse_float(data.get('format', {}).get('duration'))
	if duration is None:
		stream_durations = [
			_parse_float(stream.get('duration'))
			for stream in data.get('streams', [])
		]
		stream_durations = [value for value in stream_durations if value is not None]
		if len(stream_durations) > 0:
			duration = max(stream_durations)
	if duration is None or duration <= 0:
		raise errors.MediaLoadError(f"no playable duration in {mediafile}")
	return duration

#============================================

def getVideoDimensions(engine, mediafile: str) -> tuple:
	data = getMediaInfo(engine, mediafile)
	for stream in data.get('streams', []):
		if stream.get('codec_type') != 'video':
			continue
		width = int(stream.get('width') or 0)
		height = int(stream.get('height') or 0)
		if width > 0 and height > 0:
			return (width, height)
	raise errors.MediaLoadError(f"no video stream in {mediafile}")

#============================================

def probe_asset_duration(engine, asset, temp_dir: str = None) -> float:
	with temporary_handle(asset, temp_dir) as mediafile:
		return getDuration(engine, mediafile)

#============================================

def _probe_or_zero(engine, asset, temp_dir: str, scene_id: int, channel: str) -> float:
	if asset is None:
		return 0.0
	try:
		return probe_asset_duration(engine, asset, temp_dir)
	except errors.AssetProbeError as exc:
		utils.warn(f"scene {scene_id} {channel} '{asset.name}' could not be probed, "
			f"using duration 0: {exc}")
		return 0.0

#============================================

def probe_scenes(engine, scenes: list, temp_dir: str = None,
	max_workers: int = 4) -> None:
	"""
	Probe every scene's video and audio duration, then freeze them.

	Probes are independent and run concurrently; all futures are joined
	before the durations are assigned.
	"""
	engine.ensure_ready()
	with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
		futures = []
		for scene in scenes:
			video_future = executor.submit(_probe_or_zero, engine,
				scene.video_asset, temp_dir, scene.id, 'video')
			audio_future = executor.submit(_probe_or_zero, engine,
				scene.audio_asset, temp_dir, scene.id, 'audio')
			futures.append((scene, video_future, audio_future))
		for scene, video_future, audio_future in futures:
			scene.video_duration_seconds = video_future.result()
			scene.audio_duration_seconds = audio_future.result()
			scene.freeze_durations()
