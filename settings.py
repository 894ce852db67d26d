from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple


_SENSOR_ROOT_ENV = "SENSOR_ROOT_PATH"
_BRIDGE_COMMAND_ENV = "SENSOR_BRIDGE_COMMAND"
_BRIDGE_WORKDIR_ENV = "SENSOR_BRIDGE_WORKDIR"
_BRIDGE_TIMEOUT_ENV = "SENSOR_BRIDGE_TIMEOUT"
_LOCK_TIMEOUT_ENV = "SENSOR_LOCK_TIMEOUT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_SENSOR_ROOT = "/sys/devices/w1_bus_master1"
DEFAULT_BRIDGE_COMMAND = "./AdafruitDHT.py 22 4"


@dataclass(frozen=True)
class Settings:
    sensor_root_path: str
    bridge_command: Optional[Tuple[str, ...]]
    bridge_workdir: str
    bridge_timeout: float
    lock_timeout: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_command(default: str) -> Optional[Tuple[str, ...]]:
    value = os.getenv(_BRIDGE_COMMAND_ENV)
    if value is None:
        value = default
    candidate = value.strip()
    if not candidate:
        return None
    try:
        parts = shlex.split(candidate)
    except ValueError:
        parts = shlex.split(default)
    return tuple(parts) or None


def _read_seconds(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        sensor_root_path=_read_str_env(_SENSOR_ROOT_ENV, DEFAULT_SENSOR_ROOT),
        bridge_command=_read_command(DEFAULT_BRIDGE_COMMAND),
        bridge_workdir=_read_str_env(_BRIDGE_WORKDIR_ENV, str(Path.home())),
        bridge_timeout=_read_seconds(_BRIDGE_TIMEOUT_ENV, 10.0),
        lock_timeout=_read_seconds(_LOCK_TIMEOUT_ENV, 30.0),
        log_level=_read_log_level("INFO"),
    )
