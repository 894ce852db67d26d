"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

BRIDGE_TEMPERATURE_ID = "100"
BRIDGE_HUMIDITY_ID = "101"
MAX_CATALOG_SENSORS = 100


@dataclass(frozen=True, slots=True)
class Reading:
    """A single sensor value as produced by its source.

    ``value`` stays a string so the source's decimal formatting survives
    serialization unchanged.
    """

    id: str
    value: str


class ReadingSet:
    """Unordered readings making up one snapshot; ids are unique."""

    __slots__ = ("_readings",)

    def __init__(self, readings: Iterable[Reading] = ()) -> None:
        items: Tuple[Reading, ...] = tuple(readings)
        seen: set[str] = set()
        for reading in items:
            if reading.id in seen:
                raise ValueError(f"Duplicate reading id {reading.id!r} in snapshot.")
            seen.add(reading.id)
        self._readings = items

    def __iter__(self) -> Iterator[Reading]:
        return iter(self._readings)

    def __len__(self) -> int:
        return len(self._readings)

    def __bool__(self) -> bool:
        return bool(self._readings)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReadingSet):
            return NotImplemented
        return set(self._readings) == set(other._readings)

    def __repr__(self) -> str:
        return f"ReadingSet({list(self._readings)!r})"

    def ids(self) -> set[str]:
        return {reading.id for reading in self._readings}

    def merge(self, other: "ReadingSet") -> "ReadingSet":
        return ReadingSet((*self._readings, *other._readings))

    def sorted(self) -> list[Reading]:
        # Plain string ordering: "10" < "100" < "2".
        return sorted(self._readings, key=lambda reading: reading.id)
