"""API route definitions."""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from anonymizex.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ImageInfoResponse,
    regions_from_annotations,
)
from anonymizex.errors import EncodeError, ImageDecodeError, ProcessingError
from anonymizex.export import content_disposition, sanitize_filename
from anonymizex.imaging.codec import probe_image
from anonymizex.imaging.compositor import Compositor
from anonymizex.imaging.shape_mask import ShapeKind

if TYPE_CHECKING:
    from anonymizex.config import Settings
    from anonymizex.imaging.compositor import BlurConfig
    from anonymizex.imaging.pool import ProcessingPool

logger = logging.getLogger(__name__)

# Starlette renamed these constants between releases.
HTTP_413_CONTENT_TOO_LARGE = 413
HTTP_422_UNPROCESSABLE_CONTENT = 422

UPLOAD_CHUNK_SIZE = 1024 * 1024

router = APIRouter(prefix="/api/v1")


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_processing_pool(request: Request) -> ProcessingPool:
    pool: ProcessingPool = request.app.state.processing_pool
    return pool


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


async def _read_upload(file: UploadFile, max_size: int) -> bytes | JSONResponse:
    """Read an upload in chunks, stopping as soon as it passes ``max_size``."""
    too_large = _error(HTTP_413_CONTENT_TOO_LARGE, f"File exceeds {max_size} bytes")
    if file.size is not None and file.size > max_size:
        return too_large

    buffer = bytearray()
    while chunk := await file.read(UPLOAD_CHUNK_SIZE):
        buffer.extend(chunk)
        if len(buffer) > max_size:
            return too_large
    return bytes(buffer)


@router.post(
    "/anonymize",
    response_class=Response,
    responses={
        status.HTTP_200_OK: {"content": {"image/png": {}}},
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        HTTP_413_CONTENT_TOO_LARGE: {"model": ErrorResponse},
        HTTP_422_UNPROCESSABLE_CONTENT: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
    summary="Anonymize detected faces in an image",
)
async def anonymize_image(
    request: Request,
    file: UploadFile,
    faces: Annotated[str, Form(description="JSON list of face annotations or a detection response")] = "[]",
    blur_radius: Annotated[float | None, Form(gt=0, allow_inf_nan=False)] = None,
    padding: Annotated[float | None, Form(ge=0, allow_inf_nan=False)] = None,
    shape: Annotated[ShapeKind | None, Form()] = None,
    blur_passes: Annotated[int | None, Form(ge=1)] = None,
    filename: Annotated[str | None, Form()] = None,
) -> Response:
    """Blur every face region and return the result as a PNG attachment."""
    settings = _get_settings(request)

    try:
        regions = regions_from_annotations(json.loads(faces))
    except (json.JSONDecodeError, ValidationError) as exc:
        return _error(HTTP_422_UNPROCESSABLE_CONTENT, f"Invalid faces payload: {exc}")
    if len(regions) > settings.max_regions:
        return _error(
            HTTP_422_UNPROCESSABLE_CONTENT,
            f"Too many faces: {len(regions)} (limit {settings.max_regions})",
        )

    overrides = {
        "blur_radius": blur_radius,
        "padding": padding,
        "shape": shape,
        "blur_passes": blur_passes,
    }
    if blur_radius is not None and blur_radius > settings.max_blur_radius:
        return _error(
            HTTP_422_UNPROCESSABLE_CONTENT,
            f"blur_radius {blur_radius} exceeds limit {settings.max_blur_radius}",
        )
    if blur_passes is not None and blur_passes > settings.max_blur_passes:
        return _error(
            HTTP_422_UNPROCESSABLE_CONTENT,
            f"blur_passes {blur_passes} exceeds limit {settings.max_blur_passes}",
        )
    try:
        config: BlurConfig = dataclasses.replace(
            settings.blur_config(),
            **{key: value for key, value in overrides.items() if value is not None},
        )
    except ValueError as exc:
        return _error(HTTP_422_UNPROCESSABLE_CONTENT, f"Invalid options: {exc}")

    data = await _read_upload(file, settings.max_file_size)
    if isinstance(data, JSONResponse):
        return data

    compositor = Compositor(config, max_image_pixels=settings.max_image_pixels)
    pool = _get_processing_pool(request)
    try:
        result = await pool.run(compositor.run, data, regions)
    except TimeoutError:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Server busy, try again later")
    except ImageDecodeError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except (ProcessingError, EncodeError) as exc:
        logger.error("Anonymization of %s failed: %s", file.filename, exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    export_name = sanitize_filename(filename, default=settings.default_filename)
    return Response(
        content=result.data,
        media_type=result.media_type,
        headers={
            "Content-Disposition": content_disposition(export_name),
            "X-Regions-Processed": str(result.regions_processed),
            "X-Regions-Skipped": str(result.regions_skipped),
        },
    )


@router.post(
    "/image-info",
    response_model=ImageInfoResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        HTTP_413_CONTENT_TOO_LARGE: {"model": ErrorResponse},
    },
    summary="Read image dimensions",
)
async def image_info(request: Request, file: UploadFile) -> ImageInfoResponse | JSONResponse:
    """Return the oriented width and height of an uploaded image."""
    settings = _get_settings(request)
    data = await _read_upload(file, settings.max_file_size)
    if isinstance(data, JSONResponse):
        return data

    try:
        info = probe_image(data)
    except ImageDecodeError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    return ImageInfoResponse(width=info.width, height=info.height, format=info.format, mode=info.mode)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    pool = _get_processing_pool(request)
    return HealthResponse(
        status="ok",
        concurrent_requests=pool.active_count,
        queue_depth=pool.queue_depth,
    )
