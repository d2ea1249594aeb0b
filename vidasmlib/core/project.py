#!/usr/bin/env python3

import shutil
from vidasmlib.core import errors
from vidasmlib.core import resolver
from vidasmlib.core import sync
from vidasmlib.core import utils
from vidasmlib.core.loader import ProjectLoader
from vidasmlib.core.progress import ProgressReporter
from vidasmlib.core.renderer import Renderer
from vidasmlib.core.resolver import AssetResolver
from vidasmlib.core.timeline import TimelinePlanner
from vidasmlib.core.timeline import effective_duration
from vidasmlib.media import probe
from vidasmlib.media.engine import EngineContext
from vidasmlib import subtitles

#============================================

class AssemblyProject():
	"""
	One assembly run: load the bundle, plan the scenes, render the artifact.

	The engine context is owned by the caller and may be shared between runs.
	"""
	def __init__(self, bundle_path: str, document_path: str = None,
		overrides: dict = None, engine: EngineContext = None,
		progress_callback=None, cache_dir: str = None, keep_temp: bool = False,
		dry_run: bool = False):
		self.engine = engine if engine is not None else EngineContext()
		self.progress = ProgressReporter(progress_callback)
		self.progress.report('extracting', 0, f"reading bundle {bundle_path}")
		loader = ProjectLoader(bundle_path, document_path=document_path,
			overrides=overrides, dry_run=dry_run, keep_temp=keep_temp,
			cache_dir=cache_dir)
		try:
			self._project = loader.load()
		except errors.VidasmError as exc:
			self.progress.report('error', self.progress.last_progress, str(exc))
			raise
		summary = self._project.pool.summary()
		utils.log("bundle: " + ", ".join(
			f"{count} {kind}" for kind, count in summary.items() if count > 0))
		self.progress.report('parsing', 5,
			f"{len(self._project.scenes)} scenes in {self._project.document_name}")
		self._renderer = Renderer(self._project, self.engine, self.progress)
		self.scenes = []
		self.decisions = []
		self.shared_track = None
		self.timeline = None
		self._planned = False
		self._sync_public_fields()

	#============================
	def _sync_public_fields(self) -> None:
		self.bundle_path = self._project.bundle_path
		self.document_name = self._project.document_name
		self.dry_run = self._project.dry_run
		self.keep_temp = self._project.keep_temp
		self.cache_dir = self._project.cache_dir
		self.cache_dir_created = self._project.cache_dir_created
		self.data = self._project.data
		self.pool = self._project.pool
		self.scene_specs = self._project.scenes
		self.settings = self._project.settings

	#============================
	def _find_shared_track(self):
		subtitle_assets = self.pool.subtitles
		reference = self._project.shared_subtitle
		if reference is not None:
			asset = resolver.find_by_reference(subtitle_assets, reference)
			if asset is None:
				utils.warn(f"shared subtitle track '{reference}' not found in bundle, "
					"using per-scene subtitles")
			return asset
		has_scene_refs = any(spec.subtitle_ref for spec in self.scene_specs)
		if len(subtitle_assets) == 1 and not has_scene_refs:
			return subtitle_assets[0]
		return None

	#============================
	def plan(self) -> list:
		"""
		Resolve, probe, window and sync every scene; returns the scenes.
		"""
		if self._planned:
			return self.scenes
		self.shared_track = self._find_shared_track()
		asset_resolver = AssetResolver(self.pool)
		self.scenes = asset_resolver.resolve_all(self.scene_specs,
			include_subtitles=self.shared_track is None)
		self.progress.report('probing', 10,
			f"probing media for {len(self.scenes)} scenes")
		probe.probe_scenes(self.engine, self.scenes, self.cache_dir)
		self.timeline = TimelinePlanner(self.scenes)
		if self.shared_track is not None:
			cues = subtitles.parse_subtitle_asset(self.shared_track)
			utils.log(f"shared subtitle track {self.shared_track.name}: "
				f"{len(cues)} cues")
			self.timeline.distribute_shared_cues(cues)
		else:
			cue_lists = []
			for scene in self.scenes:
				if scene.subtitle_asset is None:
					cue_lists.append(None)
					continue
				cue_lists.append(subtitles.parse_subtitle_asset(scene.subtitle_asset))
			self.timeline.apply_scene_cues(cue_lists)
		self.decisions = sync.decide_all(self.scenes, self.settings.sync_mode)
		self._log_plan()
		self.progress.report('probing', 20,
			f"timeline planned, {self.timeline.total_duration:.2f}s total")
		self._planned = True
		return self.scenes

	#============================
	def _log_plan(self) -> None:
		for scene, decision in zip(self.scenes, self.decisions):
			video_name = scene.video_asset.name if scene.video_asset else '-'
			audio_name = scene.audio_asset.name if scene.audio_asset else '-'
			cue_count = len(scene.subtitle_cues or [])
			utils.log(f"scene {scene.id}: video={video_name} "
				f"({scene.video_duration_seconds:.2f}s) audio={audio_name} "
				f"({scene.audio_duration_seconds:.2f}s) sync={decision.mode.value} "
				f"rate={decision.playback_rate:.3f} cues={cue_count}")

	#============================
	def plan_summary(self) -> dict:
		self.plan()
		scene_rows = []
		for scene, decision in zip(self.scenes, self.decisions):
			scene_rows.append({
				'id': scene.id,
				'video': scene.video_asset.name if scene.video_asset else None,
				'audio': scene.audio_asset.name if scene.audio_asset else None,
				'subtitle': scene.subtitle_asset.name if scene.subtitle_asset else None,
				'video_seconds': round(scene.video_duration_seconds, 3),
				'audio_seconds': round(scene.audio_duration_seconds, 3),
				'timeline_seconds': round(effective_duration(scene), 3),
				'sync': decision.mode.value,
				'playback_rate': round(decision.playback_rate, 4),
				'effective_seconds': round(decision.effective_duration_seconds, 3),
				'cues': len(scene.subtitle_cues or []),
				'renderable': scene.is_renderable,
			})
		style = self.settings.subtitles
		return {
			'document': self.document_name,
			'settings': {
				'resolution': self.settings.resolution,
				'fps': self.settings.fps,
				'sync_mode': self.settings.sync_mode.value,
				'subtitles': {
					'position': style.position,
					'size': style.size,
					'font': style.font,
					'font_file': style.font_file,
					'offset': style.offset,
				},
			},
			'shared_subtitle': self.shared_track.name if self.shared_track else None,
			'total_seconds': round(self.timeline.total_duration, 3),
			'scenes': scene_rows,
		}

	#============================
	def run(self, output_file: str = None):
		"""
		Plan and render; returns the RenderResult, or None on a dry run.
		"""
		result = None
		try:
			self.plan()
			if self.dry_run:
				utils.log("dry run: planning complete")
				return None
			result = self._renderer.render(self.scenes, self.decisions)
			if output_file is not None:
				self.write_output(result, output_file)
			self.progress.report('complete', 100,
				f"assembled {len(result.data)} bytes (.{result.extension})")
		except errors.VidasmError as exc:
			self.progress.report('error', self.progress.last_progress, str(exc))
			raise
		finally:
			self.cleanup()
		return result

	#============================
	def cleanup(self) -> None:
		if not self.keep_temp and self.cache_dir_created:
			shutil.rmtree(self.cache_dir, ignore_errors=True)

	#============================
	def write_output(self, result, output_file: str) -> None:
		try:
			with open(output_file, 'wb') as artifact:
				artifact.write(result.data)
		except OSError as exc:
			utils.remove_quietly(output_file)
			raise errors.EncoderError(f"could not write {output_file}: {exc}") from exc
		utils.log(f"mpv {output_file}")
