#!/usr/bin/env python3

import os
import tempfile
import zipfile
import yaml
from vidasmlib.core import archive
from vidasmlib.core import errors
from vidasmlib.core import utils
from vidasmlib.core.models import RESOLUTIONS
from vidasmlib.core.models import SUBTITLE_FONTS
from vidasmlib.core.models import SUBTITLE_POSITIONS
from vidasmlib.core.models import SUBTITLE_SIZES
from vidasmlib.core.models import RenderSettings
from vidasmlib.core.models import SceneSpec
from vidasmlib.core.models import SubtitleStyle
from vidasmlib.core.models import SyncMode

#============================================

MAX_DOCUMENT_BYTES = 10 ** 7
MAX_OFFSET_SECONDS = 5.0

#============================================

class ProjectData():
	def __init__(self):
		self.bundle_path = None
		self.document_name = None
		self.dry_run = False
		self.keep_temp = False
		self.cache_dir = None
		self.cache_dir_created = False
		self.temp_counter = 0
		self.data = {}
		self.pool = None
		self.scenes = []
		self.shared_subtitle = None
		self.settings = RenderSettings()

#============================================

def parse_scene_document(text: str, source: str = 'scene document') -> dict:
	"""
	Parse a YAML or JSON scene document into a validated mapping.
	"""
	if len(text.encode('utf-8')) > MAX_DOCUMENT_BYTES:
		raise errors.ConfigParseError(f"{source} is larger than 10MB")
	try:
		data = yaml.safe_load(text)
	except yaml.YAMLError as exc:
		raise errors.ConfigParseError(f"{source} is not valid YAML/JSON: {exc}") from exc
	if not isinstance(data, dict):
		raise errors.ConfigParseError(f"{source} must be a mapping at the top level")
	scenes = data.get('scenes')
	if not isinstance(scenes, list) or len(scenes) == 0:
		raise errors.ConfigParseError(f"{source} requires a non-empty 'scenes' list")
	return data

#============================================

def _parse_reference(raw_value, label: str):
	if raw_value is None:
		return None
	if isinstance(raw_value, (dict, list, bool)):
		raise errors.ConfigParseError(f"{label} must be a file name")
	value = str(raw_value).strip()
	if value == '':
		return None
	return value

#============================================

def _parse_scene_id(raw_id, position: int) -> int:
	if raw_id is None:
		return position
	if isinstance(raw_id, bool):
		raise errors.ConfigParseError(f"scene {position} id must be a positive integer")
	if isinstance(raw_id, str) and raw_id.strip().isdigit():
		raw_id = int(raw_id.strip())
	if not isinstance(raw_id, int) or raw_id <= 0:
		raise errors.ConfigParseError(f"scene {position} id must be a positive integer")
	return raw_id

#============================================

def parse_scene_specs(raw_scenes: list) -> list:
	specs = []
	for position, raw_scene in enumerate(raw_scenes, start=1):
		if not isinstance(raw_scene, dict):
			raise errors.ConfigParseError(f"scene {position} must be a mapping")
		specs.append(SceneSpec(
			id=_parse_scene_id(raw_scene.get('id'), position),
			video_ref=_parse_reference(raw_scene.get('video'), f"scene {position} video"),
			audio_ref=_parse_reference(raw_scene.get('audio'), f"scene {position} audio"),
			subtitle_ref=_parse_reference(raw_scene.get('subtitle'),
				f"scene {position} subtitle"),
		))
	return specs

#============================================

def _pick(overrides: dict, raw: dict, key: str, raw_key: str = None):
	value = overrides.get(key)
	if value is not None:
		return value
	return raw.get(raw_key or key)

#============================================

def parse_settings(raw_settings, overrides: dict = None) -> RenderSettings:
	"""
	Merge the document 'settings' block with command line overrides.
	"""
	overrides = overrides or {}
	if raw_settings is None:
		raw_settings = {}
	if not isinstance(raw_settings, dict):
		raise errors.ConfigParseError("settings must be a mapping")
	raw_subtitles = raw_settings.get('subtitles')
	if raw_subtitles is None:
		raw_subtitles = {}
	if not isinstance(raw_subtitles, dict):
		raise errors.ConfigParseError("settings.subtitles must be a mapping")
	try:
		resolution = utils.parse_choice(_pick(overrides, raw_settings, 'resolution'),
			tuple(RESOLUTIONS.keys()), 'resolution', '720p')
		sync_value = utils.parse_choice(_pick(overrides, raw_settings, 'sync_mode'),
			('trim', 'speed'), 'sync_mode', 'trim')
		fps_value = _pick(overrides, raw_settings, 'fps')
		fps = 30 if fps_value is None else int(fps_value)
		if fps <= 0 or fps > 120:
			raise RuntimeError("fps must be between 1 and 120")
		position = utils.parse_choice(_pick(overrides, raw_subtitles, 'position'),
			SUBTITLE_POSITIONS, 'subtitle position', 'bottom')
		size = utils.parse_choice(_pick(overrides, raw_subtitles, 'size'),
			SUBTITLE_SIZES, 'subtitle size', 'medium')
		font = utils.parse_choice(_pick(overrides, raw_subtitles, 'font'),
			SUBTITLE_FONTS, 'subtitle font', 'default')
		offset = utils.parse_seconds(_pick(overrides, raw_subtitles, 'offset'), 0.0)
	except (RuntimeError, TypeError, ValueError) as exc:
		raise errors.ConfigParseError(f"invalid settings: {exc}") from exc
	offset = utils.clamp(offset, -MAX_OFFSET_SECONDS, MAX_OFFSET_SECONDS)
	font_file = _pick(overrides, raw_subtitles, 'font_file')
	if font_file is not None and not os.path.isfile(str(font_file)):
		raise errors.ConfigParseError(f"subtitle font file not found: {font_file}")
	style = SubtitleStyle(position=position, size=size, font=font,
		font_file=font_file, offset=offset)
	return RenderSettings(resolution=resolution, fps=fps,
		sync_mode=SyncMode(sync_value), subtitles=style)

#============================================

class ProjectLoader():
	def __init__(self, bundle_path: str, document_path: str = None,
		overrides: dict = None, dry_run: bool = False, keep_temp: bool = False,
		cache_dir: str = None):
		self.bundle_path = bundle_path
		self.document_path = document_path
		self.overrides = overrides or {}
		self.dry_run = dry_run
		self.keep_temp = keep_temp
		self.cache_dir = cache_dir

	#============================
	def load(self) -> ProjectData:
		project = ProjectData()
		project.bundle_path = self.bundle_path
		project.dry_run = self.dry_run
		project.keep_temp = self.keep_temp
		try:
			assets = archive.read_bundle(self.bundle_path)
		except (RuntimeError, OSError, zipfile.BadZipFile) as exc:
			raise errors.ConfigParseError(f"could not read bundle: {exc}") from exc
		project.pool = archive.AssetPool(assets)
		(text, project.document_name) = self._load_document_text(project.pool)
		project.data = parse_scene_document(text, project.document_name)
		project.scenes = parse_scene_specs(project.data['scenes'])
		project.shared_subtitle = _parse_reference(
			self.overrides.get('subtitle_track') or project.data.get('subtitle'),
			'subtitle')
		project.settings = parse_settings(project.data.get('settings'), self.overrides)
		self._prepare_cache_dir(project)
		return project

	#============================
	def _prepare_cache_dir(self, project: ProjectData) -> None:
		cache_dir = self.cache_dir
		cache_dir_created = False
		if cache_dir is None:
			cache_dir = tempfile.mkdtemp(prefix="vidasm-run-")
			cache_dir_created = True
		elif not os.path.exists(cache_dir):
			os.makedirs(cache_dir)
		project.cache_dir = cache_dir
		project.cache_dir_created = cache_dir_created

	#============================
	def _load_document_text(self, pool: archive.AssetPool) -> tuple:
		if self.document_path is not None:
			if not os.path.isfile(self.document_path):
				raise errors.ConfigParseError(
					f"scene document not found: {self.document_path}")
			if os.path.getsize(self.document_path) > MAX_DOCUMENT_BYTES:
				raise errors.ConfigParseError("scene document is larger than 10MB")
			with open(self.document_path, 'r', encoding='utf-8-sig') as data_file:
				return (data_file.read(), os.path.basename(self.document_path))
		configs = pool.configs
		if len(configs) == 0:
			raise errors.ConfigParseError("no scene document (.json/.yaml) found in bundle")
		document = configs[0]
		try:
			text = document.data.decode('utf-8-sig')
		except UnicodeDecodeError as exc:
			raise errors.ConfigParseError(f"{document.name} is not UTF-8 text") from exc
		return (text, document.name)
