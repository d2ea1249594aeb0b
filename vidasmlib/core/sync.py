#!/usr/bin/env python3

from vidasmlib.core.models import SyncDecision
from vidasmlib.core.models import SyncMode

#============================================

def decide_sync(video_seconds: float, audio_seconds: float,
	sync_mode: SyncMode) -> SyncDecision:
	"""
	Reconcile a scene's video and audio durations.

	Video is authoritative unless it runs longer than a present audio track;
	then it is either cut at the audio length (trim) or played faster so both
	end together (speed).
	"""
	if video_seconds < 0 or audio_seconds < 0:
		raise RuntimeError("durations must not be negative")
	if audio_seconds == 0 or video_seconds <= audio_seconds:
		return SyncDecision(SyncMode.NONE, 1.0, float(video_seconds))
	if sync_mode == SyncMode.SPEED:
		rate = video_seconds / audio_seconds
		return SyncDecision(SyncMode.SPEED, rate, float(audio_seconds))
	if sync_mode == SyncMode.TRIM:
		return SyncDecision(SyncMode.TRIM, 1.0, float(audio_seconds))
	raise RuntimeError(f"unsupported sync mode {sync_mode}")

#============================================

def decide_all(scenes: list, sync_mode: SyncMode) -> list:
	return [
		decide_sync(scene.video_duration_seconds, scene.audio_duration_seconds,
			sync_mode)
		for scene in scenes
	]
