#!/usr/bin/env python3

import re
from vidasmlib.core import archive
from vidasmlib.core.models import ResolvedScene
from vidasmlib.core.models import SceneSpec

#============================================

def scene_number_patterns(scene_id: int) -> list:
	"""
	Filename patterns that tie a file to a scene number, in priority order.
	"""
	number = re.escape(str(scene_id))
	return [
		re.compile(rf"scene[_\-\s]?{number}(?![0-9])", re.IGNORECASE),
		re.compile(rf"^{number}[_\-\s]", re.IGNORECASE),
		re.compile(rf"[_\-\s]{number}[_\-\s]", re.IGNORECASE),
	]

#============================================

def find_by_reference(candidates: list, reference: str):
	"""
	Match a free-text reference against asset paths: exact filename, then
	filename without extension, then substring containment either way.
	"""
	if not reference:
		return None
	target_full = archive.getFileName(reference).lower()
	target_base = archive.getBaseName(reference).lower()
	for asset in candidates:
		if archive.getFileName(asset.path).lower() == target_full:
			return asset
	for asset in candidates:
		if archive.getBaseName(asset.path).lower() == target_base:
			return asset
	if target_base == '':
		return None
	for asset in candidates:
		file_name = archive.getFileName(asset.path).lower()
		base_name = archive.getBaseName(asset.path).lower()
		if target_base in file_name:
			return asset
		if base_name and base_name in target_base:
			return asset
	return None

#============================================

def find_by_scene_number(candidates: list, scene_id: int):
	patterns = scene_number_patterns(scene_id)
	for asset in candidates:
		file_name = asset.name.lower()
		for pattern in patterns:
			if pattern.search(file_name):
				return asset
	return None

#============================================

class AssetResolver():
	def __init__(self, pool: archive.AssetPool):
		self.pool = pool

	#============================
	def resolve(self, spec: SceneSpec, include_subtitles: bool = True) -> ResolvedScene:
		scene = ResolvedScene(spec.id)
		scene.video_asset = self.resolve_channel(self.pool.videos,
			spec.video_ref, spec.id)
		scene.audio_asset = self.resolve_channel(self.pool.audios,
			spec.audio_ref, spec.id)
		if include_subtitles:
			scene.subtitle_asset = self.resolve_channel(self.pool.subtitles,
				spec.subtitle_ref, spec.id)
		return scene

	#============================
	def resolve_all(self, specs: list, include_subtitles: bool = True) -> list:
		return [self.resolve(spec, include_subtitles) for spec in specs]

	#============================
	def resolve_channel(self, candidates: list, reference: str, scene_id: int):
		asset = None
		if reference:
			asset = find_by_reference(candidates, reference)
		if asset is None:
			asset = find_by_scene_number(candidates, scene_id)
		return asset
