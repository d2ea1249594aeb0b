#!/usr/bin/env python3

"""
Typed failures surfaced by the assembly pipeline.
"""

#============================================

class VidasmError(RuntimeError):
	"""Base class for every failure that may reach the caller."""

#============================================

class ConfigParseError(VidasmError):
	"""Scene document is malformed or structurally invalid."""

#============================================

class AssetProbeError(VidasmError):
	"""Duration probing failed; recovered locally as duration 0."""

#============================================

class MediaLoadError(AssetProbeError):
	"""A media handle could not be opened or reported no usable metadata."""

#============================================

class SceneRenderError(VidasmError):
	def __init__(self, scene_id: int, reason: str):
		self.scene_id = scene_id
		self.reason = reason
		super().__init__(f"scene {scene_id} could not be rendered: {reason}")

#============================================

class NoRenderableScenesError(VidasmError):
	"""No scene has a usable video asset."""

#============================================

class EncoderError(VidasmError):
	"""The transcoding collaborator reported a failure."""

#============================================

class CommandError(EncoderError):
	def __init__(self, cmd: str, returncode: int, stderr: str = ''):
		self.cmd = cmd
		self.returncode = returncode
		self.stderr = stderr
		message = f"command failed with exit code {returncode}: {cmd}"
		tail = stderr.strip()[-800:]
		if tail:
			message += f"\n{tail}"
		super().__init__(message)
