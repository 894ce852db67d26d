from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

import pytest


def w1_content(millidegrees: str) -> str:
    """Text in the shape the w1_therm driver exposes through ``w1_slave``."""
    return (
        "72 01 4b 46 7f ff 0e 10 57 : crc=57 YES\n"
        f"72 01 4b 46 7f ff 0e 10 57 t={millidegrees}\n"
    )


@pytest.fixture()
def w1_tree(tmp_path: Path) -> Callable[[Iterable[str]], Path]:
    """Build a fake ``w1_bus_master1`` directory with one sensor per value."""

    def build(values: Iterable[str]) -> Path:
        root = tmp_path / "w1_bus_master1"
        root.mkdir(exist_ok=True)
        for index, value in enumerate(values):
            device = root / f"28-00000{index:07x}"
            device.mkdir()
            (device / "w1_slave").write_text(w1_content(value))
        return root

    return build
