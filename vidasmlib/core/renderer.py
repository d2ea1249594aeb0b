#!/usr/bin/env python3

import os
from vidasmlib.core import errors
from vidasmlib.core import utils
from vidasmlib.core.compositor import SceneCompositor
from vidasmlib.core.models import RenderResult
from vidasmlib.core.multiplexer import OutputMultiplexer

#============================================

class Renderer():
	"""
	Drive the renderable scenes through compositing, in scene order, and
	join the segments into one artifact.
	"""
	def __init__(self, project, engine, progress):
		self.project = project
		self.engine = engine
		self.progress = progress

	#============================
	def render(self, scenes: list, decisions: list) -> RenderResult:
		pairs = [
			(scene, decision)
			for scene, decision in zip(scenes, decisions)
			if scene.is_renderable
		]
		if len(pairs) == 0:
			raise errors.NoRenderableScenesError("no scene has a usable video asset")
		self.engine.ensure_ready()
		settings = self.project.settings
		compositor = SceneCompositor(self.engine, settings, self.project.cache_dir,
			keep_temp=self.project.keep_temp)
		multiplexer = OutputMultiplexer(self.engine, self.project.cache_dir,
			keep_temp=self.project.keep_temp)
		total = len(pairs)
		segment_files = []
		output_file = self._make_temp_path(f"assembled.{self.engine.extension}")
		try:
			for index, (scene, decision) in enumerate(pairs):
				self.progress.report('processing',
					self.progress.scene_progress(index, total),
					f"rendering scene {scene.id}", current_scene=index + 1,
					total_scenes=total)
				segment_file = self._make_temp_path(
					f"segment-{scene.id:03d}.{self.engine.extension}")
				segment_files.append(segment_file)
				compositor.render_scene(scene, decision,
					self._shift_cues(scene.subtitle_cues), segment_file)
			self.progress.report('encoding', 85,
				f"combining {total} scene segments")
			multiplexer.combine(segment_files, output_file)
			with open(output_file, 'rb') as artifact:
				data = artifact.read()
		except BaseException:
			if not self.project.keep_temp:
				multiplexer.cleanup(segment_files)
			utils.remove_quietly(output_file)
			raise
		if not self.project.keep_temp:
			utils.remove_quietly(output_file)
		return RenderResult(data=data, extension=self.engine.extension)

	#============================
	def _shift_cues(self, cues) -> list:
		if not cues:
			return []
		offset = self.project.settings.subtitles.offset
		if offset == 0:
			return list(cues)
		shifted = [cue.shifted(offset, clamp_zero=True) for cue in cues]
		# a cue pushed entirely before the scene start collapses to zero width
		kept = [cue for cue in shifted if cue.end_time > cue.start_time]
		if len(kept) < len(shifted):
			utils.log(f"timing offset {offset:+.2f}s dropped "
				f"{len(shifted) - len(kept)} cues")
		return kept

	#============================
	def _make_temp_path(self, filename: str) -> str:
		self.project.temp_counter += 1
		tag = f"{utils.make_timestamp()}-{self.project.temp_counter:04d}"
		return os.path.join(self.project.cache_dir, f"{tag}-{filename}")
