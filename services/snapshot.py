"""Serialized snapshot production over the sensor sources."""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from threading import Lock
from typing import Optional

from app.schemas import SensorsResponse, SensorValue
from models.records import ReadingSet
from services.bridge import ExternalSensorBridge, build_default_bridge
from services.catalog import SensorCatalog, build_default_catalog
from settings import get_settings

logger = logging.getLogger(__name__)


class SnapshotSerializationError(RuntimeError):
    """The snapshot was read but could not be rendered as JSON."""


def serialize(readings: ReadingSet) -> str:
    """Render readings as ``{"sensors": [...]}`` ordered by id string."""
    document = SensorsResponse(
        sensors=[SensorValue(id=reading.id, value=reading.value) for reading in readings.sorted()]
    )
    return document.model_dump_json()


class SnapshotService:
    """Owns the bus lock and produces one snapshot at a time."""

    def __init__(
        self,
        catalog: SensorCatalog,
        bridge: ExternalSensorBridge,
        lock_timeout: float = 30.0,
    ) -> None:
        self.catalog = catalog
        self.bridge = bridge
        self.lock_timeout = lock_timeout
        self._lock = Lock()

    def take_snapshot(self) -> Optional[ReadingSet]:
        """Read all sources under the lock; ``None`` if the lock wait timed out."""
        if not self._acquire():
            return None
        try:
            return self._read_sources()
        finally:
            self._lock.release()

    def render_snapshot(self) -> Optional[str]:
        """Read and serialize under the lock; ``None`` if the lock wait timed out."""
        if not self._acquire():
            return None
        try:
            readings = self._read_sources()
            try:
                body = serialize(readings)
            except (TypeError, ValueError) as exc:
                raise SnapshotSerializationError(str(exc)) from exc
            logger.info("Returning sensor data: %s", body)
            return body
        finally:
            self._lock.release()

    def _acquire(self) -> bool:
        started = time.perf_counter()
        acquired = self._lock.acquire(timeout=self.lock_timeout)
        wait_ms = int((time.perf_counter() - started) * 1000)
        if not acquired:
            logger.info(
                "Could not acquire sensor lock; skipping read",
                extra={"wait_ms": wait_ms},
            )
        return acquired

    def _read_sources(self) -> ReadingSet:
        logger.info("Reading sensor data")
        readings = self.catalog.read_all()
        return readings.merge(self.bridge.read())


@lru_cache
def build_default_snapshot_service() -> SnapshotService:
    """Factory that wires the snapshot service from settings."""
    settings = get_settings()
    return SnapshotService(
        catalog=build_default_catalog(),
        bridge=build_default_bridge(),
        lock_timeout=settings.lock_timeout,
    )
