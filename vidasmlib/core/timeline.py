#!/usr/bin/env python3

import bisect
from vidasmlib.core import utils

#============================================

def effective_duration(scene) -> float:
	"""
	Duration a scene occupies on the audio-anchored subtitle timeline.
	"""
	if scene.audio_duration_seconds > 0:
		return scene.audio_duration_seconds
	if scene.video_duration_seconds > 0:
		return scene.video_duration_seconds
	return 0.0

#============================================

class TimelinePlanner():
	"""
	Places scenes on the canonical timeline and hands each one its cues.

	The cursor is the cumulative duration of the scenes already placed. It is
	advanced exactly once per scene, in scene-list order, so the windows are
	contiguous half-open intervals covering [0, total).
	"""
	def __init__(self, scenes: list):
		self.scenes = list(scenes)
		self.cursor = 0.0
		self.cursor_history = []
		self.windows = []
		self.dropped_cues = 0

	#============================
	def build_windows(self) -> list:
		self.cursor = 0.0
		self.cursor_history = []
		self.windows = []
		for scene in self.scenes:
			self.cursor_history.append(self.cursor)
			duration = effective_duration(scene)
			window_start = self.cursor
			window_end = window_start + duration
			self.windows.append((scene.id, window_start, window_end))
			self.cursor = window_end
		return self.windows

	#============================
	def distribute_shared_cues(self, cues: list) -> None:
		"""
		Split one project-wide cue sequence into scene-relative sequences.
		"""
		self.build_windows()
		assigned = [[] for _ in self.scenes]
		starts = []
		slots = []
		for index, (_scene_id, window_start, window_end) in enumerate(self.windows):
			if window_end <= window_start:
				continue
			starts.append(window_start)
			slots.append(index)
		self.dropped_cues = 0
		for cue in cues:
			if cue.end_time <= cue.start_time:
				self.dropped_cues += 1
				continue
			position = bisect.bisect_right(starts, cue.start_time) - 1
			if position < 0:
				self.dropped_cues += 1
				continue
			index = slots[position]
			_scene_id, window_start, window_end = self.windows[index]
			if cue.start_time >= window_end:
				self.dropped_cues += 1
				continue
			assigned[index].append(cue.shifted(-window_start))
		for scene, scene_cues in zip(self.scenes, assigned):
			scene.subtitle_cues = scene_cues
		if self.dropped_cues > 0:
			utils.log(f"{self.dropped_cues} subtitle cues fall outside the timeline "
				f"({self.cursor:.3f}s) and were dropped")

	#============================
	def apply_scene_cues(self, cue_lists: list) -> None:
		"""
		Attach cue sequences that are already scoped to their scene.

		cue_lists is aligned with the scene list; None leaves a scene without
		subtitles.
		"""
		self.build_windows()
		if len(cue_lists) != len(self.scenes):
			raise RuntimeError("per-scene cue lists must match the scene count")
		for scene, scene_cues in zip(self.scenes, cue_lists):
			if scene_cues is None:
				continue
			scene.subtitle_cues = [
				cue for cue in scene_cues if cue.end_time > cue.start_time
			]

	#============================
	@property
	def total_duration(self) -> float:
		if len(self.windows) == 0:
			return 0.0
		return self.windows[-1][2]
