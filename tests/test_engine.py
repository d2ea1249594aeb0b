
"""
Pytest coverage for the shared encoder engine context.
"""

# Standard Library
import os
import sys
import threading
import time

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from vidasmlib.core import errors
from vidasmlib.core import utils
from vidasmlib.media import engine

#============================================

ENCODER_LISTING = "\n".join([
	"Encoders:",
	" V..... = Video",
	" A..... = Audio",
	" ------",
	" V....D mpeg4                MPEG-4 part 2",
	" V....D libvpx-vp9           libvpx VP9",
	" A....D libopus              libopus Opus",
	" A....D pcm_s16le            PCM signed 16-bit little-endian",
	"",
])

#============================================

def _fake_tools(monkeypatch, listing: str) -> list:
	calls = []
	monkeypatch.setattr(engine.shutil, "which", lambda name: f"/usr/bin/{name}")

	def fake_run(cmd: str) -> str:
		calls.append(cmd)
		return listing

	monkeypatch.setattr(utils, "runCmd", fake_run)
	return calls

#============================================

def test_picks_first_available_encoding_path(monkeypatch) -> None:
	calls = _fake_tools(monkeypatch, ENCODER_LISTING)
	context = engine.EngineContext()
	context.ensure_ready()
	assert context.video_codec == "libvpx-vp9"
	assert context.audio_codec == "libopus"
	assert context.extension == "webm"
	assert context.ffmpeg_path == "/usr/bin/ffmpeg"
	assert context.ffprobe_path == "/usr/bin/ffprobe"
	assert len(calls) == 1
	assert "-encoders" in calls[0]
	context.ensure_ready()
	assert len(calls) == 1
	assert context.state == engine.EngineState.READY

#============================================

def test_parse_encoders_skips_legend() -> None:
	context = engine.EngineContext()
	found = context._parse_encoders(ENCODER_LISTING)
	assert {"mpeg4", "libvpx-vp9", "libopus", "pcm_s16le"} <= found
	assert "Encoders:" not in found
	assert "libx264" not in found

#============================================

def test_no_supported_encoders(monkeypatch) -> None:
	_fake_tools(monkeypatch, " V....D rawvideo   raw video\n")
	context = engine.EngineContext()
	with pytest.raises(errors.EncoderError):
		context.ensure_ready()
	assert context.state == engine.EngineState.UNINITIALIZED

#============================================

def test_missing_binary(monkeypatch) -> None:
	monkeypatch.setattr(engine.shutil, "which", lambda name: None)
	context = engine.EngineContext()
	with pytest.raises(errors.EncoderError):
		context.ensure_ready()

#============================================

def test_concurrent_callers_share_one_initialization(monkeypatch) -> None:
	started = threading.Event()
	calls = []

	def slow_initialize(self) -> None:
		calls.append(threading.current_thread().name)
		started.set()
		time.sleep(0.2)
		self.extension = "mkv"

	monkeypatch.setattr(engine.EngineContext, "_initialize", slow_initialize)
	context = engine.EngineContext()
	results = []

	def worker() -> None:
		results.append(context.ensure_ready())

	threads = [threading.Thread(target=worker) for _ in range(6)]
	threads[0].start()
	started.wait(timeout=5)
	for thread in threads[1:]:
		thread.start()
	for thread in threads:
		thread.join(timeout=10)
	assert len(calls) == 1
	assert context.init_count == 1
	assert len(results) == 6
	assert all(result is context for result in results)

#============================================

def test_failed_initialization_can_retry(monkeypatch) -> None:
	attempts = []

	def flaky_initialize(self) -> None:
		attempts.append(1)
		if len(attempts) == 1:
			raise errors.EncoderError("first attempt fails")
		self.extension = "mp4"

	monkeypatch.setattr(engine.EngineContext, "_initialize", flaky_initialize)
	context = engine.EngineContext()
	with pytest.raises(errors.EncoderError):
		context.ensure_ready()
	context.ensure_ready()
	assert len(attempts) == 2
	assert context.init_count == 1
	assert context.extension == "mp4"
