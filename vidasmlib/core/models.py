#!/usr/bin/env python3

"""
Data model shared by the resolver, timeline, sync and compositing stages.
"""

import dataclasses
import enum
import os

#============================================

RESOLUTIONS = {
	'720p': (1280, 720),
	'1080p': (1920, 1080),
}

SUBTITLE_POSITIONS = ('top', 'center', 'bottom')
SUBTITLE_SIZES = ('small', 'medium', 'large')
SUBTITLE_FONTS = ('default', 'arabic', 'modern')

#============================================

class AssetKind(enum.Enum):
	VIDEO = 'video'
	AUDIO = 'audio'
	SUBTITLE = 'subtitle'
	SFX = 'sfx'
	CONFIG = 'config'
	UNKNOWN = 'unknown'

#============================================

class SyncMode(enum.Enum):
	NONE = 'none'
	TRIM = 'trim'
	SPEED = 'speed'

#============================================

@dataclasses.dataclass(frozen=True)
class Asset:
	name: str
	path: str
	kind: AssetKind
	data: bytes = dataclasses.field(repr=False)

	@property
	def extension(self) -> str:
		return os.path.splitext(self.name)[1].lower()

#============================================

@dataclasses.dataclass(frozen=True)
class SceneSpec:
	id: int
	video_ref: str = None
	audio_ref: str = None
	subtitle_ref: str = None

#============================================

@dataclasses.dataclass(frozen=True)
class Cue:
	start_time: float
	end_time: float
	text: str
	is_rtl: bool = False

	#============================
	def shifted(self, offset: float, clamp_zero: bool = False) -> 'Cue':
		start = self.start_time + offset
		end = self.end_time + offset
		if clamp_zero:
			start = max(0.0, start)
			end = max(0.0, end)
		return dataclasses.replace(self, start_time=start, end_time=end)

	#============================
	def contains(self, seconds: float) -> bool:
		return self.start_time <= seconds <= self.end_time

#============================================

class ResolvedScene():
	"""
	Per-scene binding of assets, probed durations and scene-relative cues.

	Durations can be assigned until freeze_durations() is called; after that
	they are read-only for the rest of the pipeline.
	"""
	def __init__(self, scene_id: int):
		self.id = scene_id
		self.video_asset = None
		self.audio_asset = None
		self.subtitle_asset = None
		self.subtitle_cues = None
		self._video_duration = 0.0
		self._audio_duration = 0.0
		self._durations_frozen = False

	#============================
	@property
	def video_duration_seconds(self) -> float:
		return self._video_duration

	@video_duration_seconds.setter
	def video_duration_seconds(self, value: float) -> None:
		self._check_mutable()
		self._video_duration = float(value)

	#============================
	@property
	def audio_duration_seconds(self) -> float:
		return self._audio_duration

	@audio_duration_seconds.setter
	def audio_duration_seconds(self, value: float) -> None:
		self._check_mutable()
		self._audio_duration = float(value)

	#============================
	def freeze_durations(self) -> None:
		self._durations_frozen = True

	#============================
	def _check_mutable(self) -> None:
		if self._durations_frozen:
			raise RuntimeError(f"scene {self.id} durations are already final")

	#============================
	@property
	def is_renderable(self) -> bool:
		return self.video_asset is not None

	#============================
	def __repr__(self) -> str:
		video_name = self.video_asset.name if self.video_asset else None
		audio_name = self.audio_asset.name if self.audio_asset else None
		return (f"ResolvedScene(id={self.id}, video={video_name}, "
			f"audio={audio_name}, video_s={self._video_duration:.3f}, "
			f"audio_s={self._audio_duration:.3f})")

#============================================

@dataclasses.dataclass(frozen=True)
class SyncDecision:
	mode: SyncMode
	playback_rate: float
	effective_duration_seconds: float

#============================================

@dataclasses.dataclass(frozen=True)
class SubtitleStyle:
	position: str = 'bottom'
	size: str = 'medium'
	font: str = 'default'
	font_file: str = None
	offset: float = 0.0

#============================================

@dataclasses.dataclass(frozen=True)
class RenderSettings:
	resolution: str = '720p'
	fps: int = 30
	sync_mode: SyncMode = SyncMode.TRIM
	subtitles: SubtitleStyle = dataclasses.field(default_factory=SubtitleStyle)

	@property
	def width(self) -> int:
		return RESOLUTIONS[self.resolution][0]

	@property
	def height(self) -> int:
		return RESOLUTIONS[self.resolution][1]

#============================================

@dataclasses.dataclass(frozen=True)
class ProgressEvent:
	stage: str
	progress: int
	message: str
	current_scene: int = None
	total_scenes: int = None

#============================================

@dataclasses.dataclass(frozen=True)
class RenderResult:
	data: bytes = dataclasses.field(repr=False)
	extension: str
