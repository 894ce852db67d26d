"""HTTP route definitions for the service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.schemas import HealthResponse
from services.catalog import SensorCatalogError
from services.snapshot import (
    SnapshotSerializationError,
    SnapshotService,
    build_default_snapshot_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_snapshot_service() -> SnapshotService:
    return build_default_snapshot_service()


@router.get(
    "/sensors",
    summary="Current readings of every attached sensor.",
    responses={
        status.HTTP_200_OK: {"content": {"application/json": {}}},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Another read holds the sensor bus."},
    },
)
def get_sensors(
    service: SnapshotService = Depends(get_snapshot_service),
) -> Response:
    try:
        body = service.render_snapshot()
    except SensorCatalogError as exc:
        logger.error("Sensor catalog read failed", extra={"reason": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    except SnapshotSerializationError as exc:
        logger.warning("Unable to write sensor response", extra={"reason": str(exc)})
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if body is None:
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(content=body, media_type="application/json", status_code=status.HTTP_200_OK)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> HealthResponse:
    return HealthResponse()


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /sensors for readings and /health for service status."}
