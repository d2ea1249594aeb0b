#!/usr/bin/env python3

from vidasmlib.core import utils
from vidasmlib.core.models import ProgressEvent

#============================================

STAGES = (
	'extracting',
	'parsing',
	'probing',
	'processing',
	'encoding',
	'complete',
	'error',
)

#============================================

def print_progress(event: ProgressEvent) -> None:
	scene_tag = ''
	if event.current_scene is not None and event.total_scenes:
		scene_tag = f" [{event.current_scene}/{event.total_scenes}]"
	utils.log(f"[{event.progress:3d}%] {event.stage}{scene_tag}: {event.message}")

#============================================

class ProgressReporter():
	"""
	One-way sink for stage updates; progress never goes backwards within a run.
	"""
	def __init__(self, callback=None):
		self.callback = callback if callback is not None else print_progress
		self.last_progress = 0
		self.events = []

	#============================
	def report(self, stage: str, progress: int, message: str,
		current_scene: int = None, total_scenes: int = None) -> ProgressEvent:
		if stage not in STAGES:
			raise RuntimeError(f"unknown progress stage {stage}")
		value = int(round(utils.clamp(progress, 0, 100)))
		value = max(value, self.last_progress)
		self.last_progress = value
		event = ProgressEvent(stage=stage, progress=value, message=message,
			current_scene=current_scene, total_scenes=total_scenes)
		self.events.append(event)
		self.callback(event)
		return event

	#============================
	def scene_progress(self, index: int, total: int, low: int = 20,
		high: int = 80) -> int:
		if total <= 0:
			return low
		return int(round(low + (index / total) * (high - low)))
