
"""
Pytest coverage for ffmpeg/ffprobe command construction and probing.
"""

# Standard Library
import json
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from vidasmlib.core import archive
from vidasmlib.core import errors
from vidasmlib.core import utils
from vidasmlib.core.models import ResolvedScene
from vidasmlib.media import ffmpeg
from vidasmlib.media import probe

#============================================

class FakeEngine():
	def __init__(self):
		self.ffmpeg_path = "/opt/ff/ffmpeg"
		self.ffprobe_path = "/opt/ff/ffprobe"
		self.video_codec = "libx264"
		self.audio_codec = "aac"
		self.extension = "mp4"
		self.output_args = " -preset veryfast -crf 23 "
		self.sample_rate = 48000

	def ensure_ready(self):
		return self

#============================================

def test_decoder_command_retimes_and_scales() -> None:
	decoder = ffmpeg.FrameDecoder(FakeEngine(), "/tmp/clip one.mp4", (1280, 540), 30,
		playback_rate=1.5)
	cmd = decoder.build_command()
	assert "'/tmp/clip one.mp4'" in cmd
	assert "setpts=PTS/1.50000000" in cmd
	assert "fps=30" in cmd
	assert "scale=1280:540" in cmd
	assert "-f rawvideo -pix_fmt rgb24 pipe:1" in cmd
	assert decoder.frame_bytes == 1280 * 540 * 3

#============================================

def test_decoder_command_skips_setpts_at_normal_speed() -> None:
	decoder = ffmpeg.FrameDecoder(FakeEngine(), "clip.mp4", (640, 360), 25)
	assert "setpts" not in decoder.build_command()

#============================================

def test_encoder_command_with_audio() -> None:
	encoder = ffmpeg.FrameEncoder(FakeEngine(), "/tmp/seg.mp4", (1280, 720), 30,
		audio_file="/tmp/voice.wav")
	cmd = encoder.build_command()
	assert "-s 1280x720" in cmd
	assert "-i pipe:0" in cmd
	assert "-i /tmp/voice.wav" in cmd
	assert "anullsrc" not in cmd
	assert "-af apad -shortest" in cmd
	assert "-codec:v libx264" in cmd
	assert "-codec:a aac" in cmd
	assert cmd.strip().endswith("/tmp/seg.mp4")

#============================================

def test_encoder_command_generates_silence() -> None:
	encoder = ffmpeg.FrameEncoder(FakeEngine(), "seg.mp4", (1920, 1080), 30)
	cmd = encoder.build_command()
	assert "-f lavfi -i anullsrc=r=48000:cl=stereo" in cmd
	assert "-map 1:a:0" in cmd

#============================================

def test_extract_audio_failure_is_media_load_error(monkeypatch, tmp_path) -> None:
	def failing_run(cmd: str) -> str:
		raise errors.CommandError(cmd, 1, "no audio stream")

	monkeypatch.setattr(utils, "runCmd", failing_run)
	with pytest.raises(errors.MediaLoadError):
		ffmpeg.extractAudio(FakeEngine(), "clip.mp4", str(tmp_path / "out.wav"))

#============================================

def test_get_duration_reads_format_then_streams(monkeypatch) -> None:
	payloads = [
		{"format": {"duration": "12.480000"}, "streams": []},
		{"format": {}, "streams": [{"codec_type": "audio", "duration": "3.5"},
			{"codec_type": "video", "duration": "4.25"}]},
		{"format": {"duration": "N/A"}, "streams": []},
	]

	def fake_run(cmd: str) -> str:
		return json.dumps(payloads.pop(0))

	monkeypatch.setattr(utils, "runCmd", fake_run)
	engine = FakeEngine()
	assert probe.getDuration(engine, "a.mp4") == pytest.approx(12.48)
	assert probe.getDuration(engine, "b.mp4") == pytest.approx(4.25)
	with pytest.raises(errors.MediaLoadError):
		probe.getDuration(engine, "c.mp4")

#============================================

def test_video_dimensions(monkeypatch) -> None:
	payload = {"streams": [{"codec_type": "audio"},
		{"codec_type": "video", "width": 1080, "height": 1920}]}
	monkeypatch.setattr(utils, "runCmd", lambda cmd: json.dumps(payload))
	assert probe.getVideoDimensions(FakeEngine(), "tall.mp4") == (1080, 1920)
	monkeypatch.setattr(utils, "runCmd", lambda cmd: "not json")
	with pytest.raises(errors.MediaLoadError):
		probe.getVideoDimensions(FakeEngine(), "tall.mp4")

#============================================

def test_temporary_handle_removes_file(tmp_path) -> None:
	asset = archive.make_asset("clip.mp4", b"abc")
	with probe.temporary_handle(asset, str(tmp_path)) as path:
		assert path.endswith(".mp4")
		with open(path, "rb") as handle:
			assert handle.read() == b"abc"
	assert not os.path.exists(path)

#============================================

def test_probe_scenes_falls_back_to_zero(monkeypatch, tmp_path) -> None:
	def fake_probe(engine, asset, temp_dir: str = None) -> float:
		if asset.name == "broken.mp4":
			raise errors.MediaLoadError("moov atom not found")
		return 6.0

	monkeypatch.setattr(probe, "probe_asset_duration", fake_probe)
	utils.set_quiet_mode(True)
	try:
		scenes = []
		for scene_id, video_name, audio_name in ((1, "ok.mp4", "ok.mp3"),
			(2, "broken.mp4", None)):
			scene = ResolvedScene(scene_id)
			scene.video_asset = archive.make_asset(video_name, b"v")
			if audio_name:
				scene.audio_asset = archive.make_asset(audio_name, b"a")
			scenes.append(scene)
		probe.probe_scenes(FakeEngine(), scenes, str(tmp_path), max_workers=2)
	finally:
		utils.set_quiet_mode(False)
	assert scenes[0].video_duration_seconds == pytest.approx(6.0)
	assert scenes[0].audio_duration_seconds == pytest.approx(6.0)
	assert scenes[1].video_duration_seconds == 0.0
	assert scenes[1].audio_duration_seconds == 0.0
	with pytest.raises(RuntimeError):
		scenes[0].audio_duration_seconds = 1.0
