"""Best-effort readings from an out-of-process sensor helper (e.g. a DHT22 script)."""

from __future__ import annotations

import logging
import subprocess
from functools import lru_cache
from pathlib import Path
from typing import Optional, Sequence

from models.records import BRIDGE_HUMIDITY_ID, BRIDGE_TEMPERATURE_ID, Reading, ReadingSet
from settings import get_settings

logger = logging.getLogger(__name__)

_EMPTY_OUTPUT = "0 0"


def parse_output(output: str) -> Optional[tuple[str, str]]:
    """Split the helper's first output line into ``(temperature, humidity)``.

    Empty output counts as ``"0 0"``. Anything that does not split into
    exactly two fields on a single space yields ``None``.
    """
    lines = output.splitlines()
    first_line = lines[0] if lines else ""
    if not first_line:
        first_line = _EMPTY_OUTPUT
    fields = first_line.split(" ")
    if len(fields) != 2 or not all(fields):
        return None
    return fields[0], fields[1]


class ExternalSensorBridge:
    """Runs the helper command and turns its output into readings 100 and 101."""

    def __init__(
        self,
        command: Optional[Sequence[str]],
        workdir: Path,
        timeout: float = 10.0,
    ) -> None:
        self.command = tuple(command) if command else None
        self.workdir = workdir
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return self.command is not None

    def read(self) -> ReadingSet:
        """Return both bridge readings, or an empty set when anything goes wrong."""
        if self.command is None:
            logger.debug("External sensor bridge disabled")
            return ReadingSet()

        try:
            completed = subprocess.run(
                self.command,
                cwd=self.workdir,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning(
                "Sensor helper timed out",
                extra={"command": self.command, "reason": f"timeout after {self.timeout}s"},
            )
            return ReadingSet()
        except (OSError, ValueError) as exc:
            logger.warning(
                "Sensor helper could not be started",
                extra={"command": self.command, "reason": str(exc)},
            )
            return ReadingSet()

        if completed.returncode != 0:
            logger.warning(
                "Sensor helper exited with failure; discarding its output",
                extra={
                    "command": self.command,
                    "exit_code": completed.returncode,
                    "reason": (completed.stdout or "").strip()[:200] or None,
                },
            )
            return ReadingSet()

        parsed = parse_output(completed.stdout or "")
        if parsed is None:
            logger.warning(
                "Sensor helper produced unparseable output",
                extra={"command": self.command, "reason": (completed.stdout or "")[:200]},
            )
            return ReadingSet()

        temperature, humidity = parsed
        return ReadingSet(
            [
                Reading(id=BRIDGE_TEMPERATURE_ID, value=temperature),
                Reading(id=BRIDGE_HUMIDITY_ID, value=humidity),
            ]
        )


@lru_cache
def build_default_bridge() -> ExternalSensorBridge:
    settings = get_settings()
    return ExternalSensorBridge(
        command=settings.bridge_command,
        workdir=Path(settings.bridge_workdir),
        timeout=settings.bridge_timeout,
    )
