"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class SensorValue(BaseModel):
    """One reading as exposed over HTTP; both fields stay strings."""

    id: str = Field(..., description="Sensor identifier, stable for the process lifetime.")
    value: str = Field(..., description="Decimal value exactly as produced by the sensor source.")


class SensorsResponse(BaseModel):
    """Snapshot document returned by ``GET /sensors``."""

    sensors: List[SensorValue] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "ok"
