#!/usr/bin/env python3

import os
import re
import shlex
import subprocess
import time
from vidasmlib.core import errors

#============================================

_QUIET_MODE = False

#============================================

def set_quiet_mode(value: bool) -> None:
	global _QUIET_MODE
	_QUIET_MODE = bool(value)

#============================================

def is_quiet_mode() -> bool:
	return _QUIET_MODE

#============================================

def log(message: str) -> None:
	if not _QUIET_MODE:
		print(message)

#============================================

def warn(message: str) -> None:
	if not _QUIET_MODE:
		print(f"WARNING: {message}")

#============================================

def runCmd(cmd: str) -> str:
	"""
	Run a shell command and return its stdout, raising CommandError on failure.
	"""
	showcmd = cmd.strip()
	showcmd = re.sub("  *", " ", showcmd)
	log(f"CMD: '{showcmd}'")
	proc = subprocess.Popen(showcmd, shell=True, stderr=subprocess.PIPE,
		stdout=subprocess.PIPE)
	stdout, stderr = proc.communicate()
	if proc.returncode != 0:
		raise errors.CommandError(showcmd, proc.returncode,
			stderr.decode('utf-8', errors='replace'))
	return stdout.decode('utf-8', errors='replace')

#============================================

def quote(path: str) -> str:
	return shlex.quote(str(path))

#============================================

def parse_seconds(raw_time, default: float = 0.0) -> float:
	if raw_time is None:
		return default
	if isinstance(raw_time, bool):
		raise RuntimeError("time values must be numbers or timecode strings")
	if isinstance(raw_time, (int, float)):
		return float(raw_time)
	if isinstance(raw_time, str):
		value = raw_time.strip()
		if ':' not in value:
			return float(value)
		parts = value.split(':')
		seconds = float(parts.pop())
		minutes = float(parts.pop())
		hours = 0.0
		if len(parts) > 0:
			hours = float(parts.pop())
		return hours * 3600.0 + minutes * 60.0 + seconds
	raise RuntimeError("time values must be numbers or timecode strings")

#============================================

def parse_choice(raw_value, choices: tuple, label: str, default: str) -> str:
	if raw_value is None:
		return default
	value = str(raw_value).strip().lower()
	if value not in choices:
		raise RuntimeError(f"{label} must be one of {', '.join(choices)}")
	return value

#============================================

def clamp(value: float, low: float, high: float) -> float:
	return max(low, min(high, value))

#============================================

def remove_quietly(filepath: str) -> None:
	"""
	Best-effort delete; a failure is reported but never raised.
	"""
	if not filepath:
		return
	try:
		if os.path.exists(filepath):
			os.remove(filepath)
	except OSError as exc:
		warn(f"could not remove {filepath}: {exc}")

#============================================

def make_timestamp() -> str:
	datestamp = time.strftime("%y%b%d").lower()
	uppercase = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
	hourstamp = uppercase[(time.localtime()[3]) % 26]
	minstamp = f"{time.localtime()[4]:02d}"
	secstamp = uppercase[(time.localtime()[5]) % 26]
	timestamp = datestamp + hourstamp + minstamp + secstamp
	return timestamp
