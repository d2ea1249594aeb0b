
"""
Pytest coverage for scene documents, settings and bundle loading.
"""

# Standard Library
import os
import sys
import zipfile

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from vidasmlib.core import errors
from vidasmlib.core import loader
from vidasmlib.core.models import SyncMode

#============================================

def _write_bundle(bundle_dir, document: str, names=("scene_1.mp4",)) -> str:
	bundle_dir.mkdir(exist_ok=True)
	(bundle_dir / "scenes.yaml").write_text(document, encoding="utf-8")
	for name in names:
		(bundle_dir / name).write_bytes(b"media")
	return str(bundle_dir)

#============================================

def test_document_requires_scene_list() -> None:
	for text in ("scenes: []\n", "title: nothing\n", "- 1\n- 2\n", ""):
		with pytest.raises(errors.ConfigParseError):
			loader.parse_scene_document(text)

#============================================

def test_invalid_yaml_is_config_error() -> None:
	with pytest.raises(errors.ConfigParseError):
		loader.parse_scene_document("scenes: [\n")

#============================================

def test_json_document_accepted() -> None:
	data = loader.parse_scene_document('{"scenes": [{"video": "a.mp4"}]}')
	assert data["scenes"][0]["video"] == "a.mp4"

#============================================

def test_scene_ids_default_to_position() -> None:
	specs = loader.parse_scene_specs([
		{"video": "intro.mp4"},
		{"id": "7", "audio": "voice.mp3"},
		{"subtitle": "  "},
	])
	assert [spec.id for spec in specs] == [1, 7, 3]
	assert specs[0].video_ref == "intro.mp4"
	assert specs[1].audio_ref == "voice.mp3"
	assert specs[2].subtitle_ref is None

#============================================

def test_bad_scene_entries_rejected() -> None:
	for raw in ([{"id": 0}], [{"id": True}], [{"id": "x"}], ["intro.mp4"],
		[{"video": {"file": "a.mp4"}}]):
		with pytest.raises(errors.ConfigParseError):
			loader.parse_scene_specs(raw)

#============================================

def test_settings_defaults() -> None:
	settings = loader.parse_settings(None)
	assert settings.resolution == "720p"
	assert (settings.width, settings.height) == (1280, 720)
	assert settings.fps == 30
	assert settings.sync_mode == SyncMode.TRIM
	assert settings.subtitles.position == "bottom"
	assert settings.subtitles.size == "medium"
	assert settings.subtitles.font == "default"
	assert settings.subtitles.offset == 0.0

#============================================

def test_overrides_beat_document_settings() -> None:
	raw = {
		"resolution": "720p",
		"sync_mode": "trim",
		"subtitles": {"position": "top", "size": "small", "offset": 1.5},
	}
	overrides = {"resolution": "1080p", "sync_mode": "speed", "size": "large"}
	settings = loader.parse_settings(raw, overrides)
	assert (settings.width, settings.height) == (1920, 1080)
	assert settings.sync_mode == SyncMode.SPEED
	assert settings.subtitles.position == "top"
	assert settings.subtitles.size == "large"
	assert settings.subtitles.offset == 1.5

#============================================

def test_offset_clamped() -> None:
	settings = loader.parse_settings({"subtitles": {"offset": 12}})
	assert settings.subtitles.offset == 5.0
	settings = loader.parse_settings({}, {"offset": -9.0})
	assert settings.subtitles.offset == -5.0

#============================================

def test_invalid_settings_rejected(tmp_path) -> None:
	for raw in ({"resolution": "4k"}, {"sync_mode": "stretch"}, {"fps": 0},
		{"fps": "fast"}, {"subtitles": {"position": "left"}}, {"subtitles": []},
		{"subtitles": {"font_file": str(tmp_path / "missing.ttf")}}, ["720p"]):
		with pytest.raises(errors.ConfigParseError):
			loader.parse_settings(raw)

#============================================

def test_loader_reads_directory_bundle(tmp_path) -> None:
	document = "\n".join([
		"subtitle: story.srt",
		"settings:",
		"  resolution: 1080p",
		"scenes:",
		"  - video: scene_1.mp4",
		"  - id: 2",
		"",
	])
	bundle = _write_bundle(tmp_path / "bundle", document,
		names=("scene_1.mp4", "scene_2.mp4", "story.srt"))
	cache_dir = tmp_path / "cache"
	project = loader.ProjectLoader(bundle, cache_dir=str(cache_dir)).load()
	assert project.document_name == "scenes.yaml"
	assert [spec.id for spec in project.scenes] == [1, 2]
	assert project.shared_subtitle == "story.srt"
	assert project.settings.resolution == "1080p"
	assert len(project.pool.videos) == 2
	assert os.path.isdir(project.cache_dir)
	assert not project.cache_dir_created

#============================================

def test_loader_subtitle_track_override(tmp_path) -> None:
	bundle = _write_bundle(tmp_path / "bundle", "subtitle: a.srt\nscenes:\n  - {}\n")
	project = loader.ProjectLoader(bundle, overrides={"subtitle_track": "b.srt"},
		cache_dir=str(tmp_path / "cache")).load()
	assert project.shared_subtitle == "b.srt"

#============================================

def test_loader_reads_zip_bundle(tmp_path) -> None:
	zip_path = tmp_path / "bundle.zip"
	with zipfile.ZipFile(zip_path, "w") as archive:
		archive.writestr("project/scenes.json", '{"scenes": [{"id": 1}]}')
		archive.writestr("project/scene_1.mp4", b"media")
		archive.writestr("__MACOSX/project/._scene_1.mp4", b"junk")
	project = loader.ProjectLoader(str(zip_path),
		cache_dir=str(tmp_path / "cache")).load()
	assert project.document_name == "scenes.json"
	assert [asset.name for asset in project.pool.assets] == [
		"scenes.json", "scene_1.mp4"]

#============================================

def test_explicit_document_path(tmp_path) -> None:
	bundle = _write_bundle(tmp_path / "bundle", "scenes: not-a-list\n")
	document_path = tmp_path / "override.yaml"
	document_path.write_text("scenes:\n  - video: scene_1.mp4\n", encoding="utf-8")
	project = loader.ProjectLoader(bundle, document_path=str(document_path),
		cache_dir=str(tmp_path / "cache")).load()
	assert project.document_name == "override.yaml"
	assert project.scenes[0].video_ref == "scene_1.mp4"

#============================================

def test_missing_document_and_bundle(tmp_path) -> None:
	empty = tmp_path / "empty"
	empty.mkdir()
	(empty / "scene_1.mp4").write_bytes(b"media")
	with pytest.raises(errors.ConfigParseError):
		loader.ProjectLoader(str(empty), cache_dir=str(tmp_path / "c")).load()
	with pytest.raises(errors.ConfigParseError):
		loader.ProjectLoader(str(tmp_path / "nope.zip"),
			cache_dir=str(tmp_path / "c")).load()
	not_zip = tmp_path / "broken.zip"
	not_zip.write_bytes(b"not a zip")
	with pytest.raises(errors.ConfigParseError):
		loader.ProjectLoader(str(not_zip), cache_dir=str(tmp_path / "c")).load()
