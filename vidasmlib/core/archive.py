#!/usr/bin/env python3

"""
Read a bundle (zip archive or directory) into an ordered asset pool.
"""

import os
import zipfile
from vidasmlib.core.models import Asset
from vidasmlib.core.models import AssetKind

#============================================

VIDEO_EXTENSIONS = ('.mp4', '.mov', '.avi', '.webm', '.mkv')
AUDIO_EXTENSIONS = ('.mp3', '.wav', '.aac', '.ogg', '.m4a')
SUBTITLE_EXTENSIONS = ('.srt', '.vtt')
CONFIG_EXTENSIONS = ('.json', '.yaml', '.yml')
SFX_MARKERS = ('sfx', 'effect')
MAX_BUNDLE_BYTES = 4 * 1024 ** 3

#============================================

def getFileName(filepath: str) -> str:
	filepath = filepath.replace('\\', '/')
	return filepath.rsplit('/', 1)[-1]

#============================================

def getBaseName(filepath: str) -> str:
	name = getFileName(filepath)
	base, _ext = os.path.splitext(name)
	return base

#============================================

def getFileKind(filepath: str) -> AssetKind:
	ext = os.path.splitext(getFileName(filepath))[1].lower()
	if ext in VIDEO_EXTENSIONS:
		return AssetKind.VIDEO
	if ext in AUDIO_EXTENSIONS:
		lower_path = filepath.lower()
		for marker in SFX_MARKERS:
			if marker in lower_path:
				return AssetKind.SFX
		return AssetKind.AUDIO
	if ext in SUBTITLE_EXTENSIONS:
		return AssetKind.SUBTITLE
	if ext in CONFIG_EXTENSIONS:
		return AssetKind.CONFIG
	return AssetKind.UNKNOWN

#============================================

def _is_skipped_path(filepath: str) -> bool:
	normalized = filepath.replace('\\', '/')
	if normalized.endswith('/'):
		return True
	if normalized.startswith('__MACOSX'):
		return True
	for part in normalized.split('/'):
		if part.startswith('.'):
			return True
	return False

#============================================

def make_asset(filepath: str, data: bytes) -> Asset:
	return Asset(name=getFileName(filepath), path=filepath,
		kind=getFileKind(filepath), data=data)

#============================================

def read_zip_bundle(zip_path: str) -> list:
	if not zipfile.is_zipfile(zip_path):
		raise RuntimeError(f"not a valid zip archive: {zip_path}")
	assets = []
	total_bytes = 0
	with zipfile.ZipFile(zip_path) as archive:
		for info in archive.infolist():
			if info.is_dir() or _is_skipped_path(info.filename):
				continue
			total_bytes += info.file_size
			if total_bytes > MAX_BUNDLE_BYTES:
				raise RuntimeError("bundle expands to more than 4GB")
			data = archive.read(info)
			assets.append(make_asset(info.filename, data))
	return assets

#============================================

def read_directory_bundle(bundle_dir: str) -> list:
	assets = []
	for root, dirs, files in os.walk(bundle_dir):
		dirs[:] = sorted(d for d in dirs if not d.startswith('.'))
		for name in sorted(files):
			full_path = os.path.join(root, name)
			rel_path = os.path.relpath(full_path, bundle_dir).replace(os.sep, '/')
			if _is_skipped_path(rel_path):
				continue
			with open(full_path, 'rb') as media_file:
				data = media_file.read()
			assets.append(make_asset(rel_path, data))
	return assets

#============================================

def read_bundle(bundle_path: str) -> list:
	if os.path.isdir(bundle_path):
		return read_directory_bundle(bundle_path)
	if not os.path.isfile(bundle_path):
		raise RuntimeError(f"bundle not found: {bundle_path}")
	return read_zip_bundle(bundle_path)

#============================================

class AssetPool():
	"""
	Asset collection partitioned by kind, preserving bundle order.
	"""
	def __init__(self, assets: list):
		self.assets = list(assets)
		self._by_kind = {kind: [] for kind in AssetKind}
		for asset in self.assets:
			self._by_kind[asset.kind].append(asset)

	#============================
	def of_kind(self, kind: AssetKind) -> list:
		return list(self._by_kind[kind])

	#============================
	@property
	def videos(self) -> list:
		return self.of_kind(AssetKind.VIDEO)

	@property
	def audios(self) -> list:
		return self.of_kind(AssetKind.AUDIO)

	@property
	def subtitles(self) -> list:
		return self.of_kind(AssetKind.SUBTITLE)

	@property
	def configs(self) -> list:
		return self.of_kind(AssetKind.CONFIG)

	#============================
	def summary(self) -> dict:
		return {kind.value: len(items) for kind, items in self._by_kind.items()}
