"""HTTP route definitions for the service."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.schemas import ErrorResponse, StoredReading
from datastore.mock_documents import StorageError
from services.readings import ReadingService, build_default_service
from services.validator import ReadingValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service() -> ReadingService:
    return build_default_service()


def _error_response(
    status_code: int, message: str, error: Optional[str] = None
) -> JSONResponse:
    logger.warning(
        "Request rejected",
        extra={"status": status_code, "reason": message, "error": error},
    )
    body = ErrorResponse(message=message, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.post(
    "/sensor",
    status_code=status.HTTP_201_CREATED,
    response_model=StoredReading,
    response_model_exclude_none=True,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}},
    summary="Store a single weather sensor reading.",
)
async def create_reading(
    request: Request,
    service: ReadingService = Depends(get_service),
) -> Any:
    try:
        payload = await request.json()
    except (ValueError, UnicodeDecodeError):
        return _error_response(status.HTTP_400_BAD_REQUEST, "Request body must be valid JSON.")
    if not isinstance(payload, dict):
        return _error_response(
            status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object."
        )

    try:
        return service.record_reading(payload)
    except ReadingValidationError as exc:
        return _error_response(status.HTTP_400_BAD_REQUEST, exc.message)
    except StorageError as exc:
        return _error_response(
            status.HTTP_400_BAD_REQUEST, "Error saving sensor data", str(exc)
        )


@router.get(
    "/sensor",
    response_model=None,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
    summary="List readings matching the filters, or per-sensor statistics.",
)
async def list_readings(
    request: Request,
    service: ReadingService = Depends(get_service),
) -> Any:
    try:
        results = service.query_readings(dict(request.query_params))
    except ReadingValidationError as exc:
        return _error_response(status.HTTP_400_BAD_REQUEST, exc.message)
    except StorageError as exc:
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Error retrieving sensor data", str(exc)
        )
    return [
        item.model_dump(mode="json", exclude_none=True)
        if isinstance(item, StoredReading)
        else item
        for item in results
    ]


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
