"""Discovery and decoding of 1-Wire temperature sensor files."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from models.records import MAX_CATALOG_SENSORS, Reading, ReadingSet
from settings import get_settings

logger = logging.getLogger(__name__)

SENSOR_FILENAME = "w1_slave"

_TEMPERATURE_PATTERN = re.compile(r"[^t]+t=(\d+)$")
_DECIMAL_OFFSET = 2


class SensorCatalogError(RuntimeError):
    """The sensor tree could not be walked or a sensor file could not be read."""


class MalformedSensorDataError(SensorCatalogError):
    """A sensor file exists but its content does not carry a temperature."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Malformed sensor data in {path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True, slots=True)
class DecodeOutcome:
    """Result of decoding one sensor file: either ``value`` or ``reason`` is set."""

    value: Optional[str] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.value is not None


def decode_temperature(content: str) -> DecodeOutcome:
    """Turn the trailing ``t=<digits>`` token into a decimal string.

    The driver reports thousandths of a degree as a bare integer, so a point
    is inserted two characters from the left: ``23562`` becomes ``23.562``.
    Digit runs shorter than two characters cannot be placed and are reported
    as malformed rather than padded.
    """
    match = _TEMPERATURE_PATTERN.search(content)
    if match is None:
        return DecodeOutcome(reason="no trailing t=<digits> token")
    digits = match.group(1)
    if len(digits) < _DECIMAL_OFFSET:
        return DecodeOutcome(reason=f"digit run {digits!r} shorter than {_DECIMAL_OFFSET}")
    return DecodeOutcome(value=f"{digits[:_DECIMAL_OFFSET]}.{digits[_DECIMAL_OFFSET:]}")


class SensorCatalog:
    """Reads every ``w1_slave`` file below ``root_path``."""

    def __init__(self, root_path: Path) -> None:
        self.root_path = root_path

    def discover(self) -> list[Path]:
        """Return sensor files in depth-first directory listing order.

        Entries are visited as the kernel lists them, descending into each
        subdirectory when it is reached. Nothing is sorted, so index
        assignment follows the listing order.
        """
        if not self.root_path.is_dir():
            raise SensorCatalogError(f"Sensor root {self.root_path} is not a directory.")

        found: list[Path] = []
        self._walk(self.root_path, found)
        return found

    def _walk(self, directory: Path, found: list[Path]) -> None:
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if entry.is_dir(follow_symlinks=False):
                        self._walk(Path(entry.path), found)
                    elif entry.name == SENSOR_FILENAME and entry.is_file():
                        found.append(Path(entry.path))
        except OSError as exc:
            raise SensorCatalogError(f"Unable to walk sensor tree at {directory}: {exc}") from exc

    def read_all(self) -> ReadingSet:
        paths = self.discover()
        if len(paths) > MAX_CATALOG_SENSORS:
            raise SensorCatalogError(
                f"Found {len(paths)} sensor files; at most {MAX_CATALOG_SENSORS} are supported."
            )

        readings: list[Reading] = []
        for index, path in enumerate(paths):
            readings.append(Reading(id=str(index), value=self._read_value(path)))
            logger.debug(
                "Decoded sensor file",
                extra={"sensor_id": str(index), "path": str(path)},
            )

        logger.info(
            "Read sensor catalog",
            extra={"path": str(self.root_path), "reading_count": len(readings)},
        )
        return ReadingSet(readings)

    @staticmethod
    def _read_value(path: Path) -> str:
        try:
            content = path.read_text(encoding="ascii", errors="replace")
        except OSError as exc:
            raise SensorCatalogError(f"Unable to read sensor file {path}: {exc}") from exc

        outcome = decode_temperature(content)
        if outcome.value is None:
            raise MalformedSensorDataError(path, outcome.reason or "unknown")
        return outcome.value


@lru_cache
def build_default_catalog(root_path: Optional[str] = None) -> SensorCatalog:
    settings = get_settings()
    root = settings.sensor_root_path if root_path is None else root_path
    return SensorCatalog(root_path=Path(root))
