"""aiohttp web application exposing the ingest-side validation endpoints."""

import asyncio
import logging
from typing import Optional

from aiohttp import web

from .service import IngestService
from ..errors import (
    AUDIO_TOO_LARGE,
    AudioTooLargeError,
    AudioTooSmallError,
    TranscriptionUnavailableError,
    TRANSCRIPTION_UNAVAILABLE,
    USER_MESSAGES,
)

logger = logging.getLogger(__name__)

SERVICE_KEY = web.AppKey("ingest_service", IngestService)
TIMEOUT_KEY = web.AppKey("transcription_timeout", float)
MAX_BODY_KEY = web.AppKey("client_max_size", int)

MISSING_FIELD = "missing_field"


def _error_response(status: int, code: str, detail: str, **extra) -> web.Response:
    body = {
        "success": False,
        "error": code,
        "message": USER_MESSAGES.get(code, detail),
        "detail": detail,
    }
    body.update(extra)
    return web.json_response(body, status=status)


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def _step_index(request: web.Request) -> int:
    step_index = int(request.match_info["step_index"])
    if step_index < 0:
        raise ValueError("step index must not be negative")
    return step_index


async def handle_validate(request: web.Request) -> web.Response:
    """POST /lessons/{lesson_id}/steps/{step_index}/validate (multipart)."""
    service = request.app[SERVICE_KEY]
    timeout = request.app[TIMEOUT_KEY]

    lesson_id = request.match_info["lesson_id"]
    try:
        step_index = _step_index(request)
    except ValueError:
        return _error_response(400, MISSING_FIELD, "step index must be a non-negative integer")

    try:
        form = await request.post()
    except web.HTTPRequestEntityTooLarge as e:
        maximum = request.app[MAX_BODY_KEY]
        logger.warning(f"Request body over {maximum} bytes rejected")
        return _error_response(413, AUDIO_TOO_LARGE, e.text or "request body too large",
                               maximumBytes=maximum)
    audio_field = form.get("audio")
    if audio_field is None or not hasattr(audio_field, "file"):
        return _error_response(400, MISSING_FIELD, "audio file is required")
    audio = audio_field.file.read()
    expected_text = str(form.get("expectedText", ""))
    language_code = str(form.get("languageCode", ""))
    logger.info(f"Upload received for lesson {lesson_id} step {step_index}: "
                f"{len(audio)} bytes ({getattr(audio_field, 'filename', '?')})")

    try:
        response = await asyncio.wait_for(
            asyncio.to_thread(service.validate_upload, audio, lesson_id, step_index,
                              expected_text, language_code),
            timeout=timeout,
        )
    except AudioTooSmallError as e:
        return _error_response(400, e.code, str(e), sizeBytes=e.size_bytes, minimumBytes=e.minimum_bytes)
    except AudioTooLargeError as e:
        return _error_response(413, e.code, str(e), sizeBytes=e.size_bytes, maximumBytes=e.maximum_bytes)
    except ValueError as e:
        return _error_response(400, MISSING_FIELD, str(e))
    except TranscriptionUnavailableError as e:
        logger.error(f"Transcription unavailable: {e}")
        return _error_response(503, e.code, str(e))
    except asyncio.TimeoutError:
        logger.error(f"Transcription timed out after {timeout}s")
        return _error_response(503, TRANSCRIPTION_UNAVAILABLE, f"transcription timed out after {timeout}s")

    return web.json_response(response.to_wire())


async def handle_history(request: web.Request) -> web.Response:
    """GET /lessons/{lesson_id}/steps/{step_index}/history"""
    service = request.app[SERVICE_KEY]
    try:
        step_index = _step_index(request)
    except ValueError:
        return _error_response(400, MISSING_FIELD, "step index must be a non-negative integer")
    history = service.validation_history(request.match_info["lesson_id"], step_index)
    return web.json_response([response.to_wire() for response in history])


async def handle_access(request: web.Request) -> web.Response:
    """GET /lessons/{lesson_id}/steps/{step_index}/access"""
    service = request.app[SERVICE_KEY]
    try:
        step_index = _step_index(request)
    except ValueError:
        return _error_response(400, MISSING_FIELD, "step index must be a non-negative integer")
    access = service.check_step_access(request.match_info["lesson_id"], step_index)
    return web.json_response(access.to_wire())


def create_app(service: IngestService,
               transcription_timeout: float = 60.0,
               client_max_size: Optional[int] = None) -> web.Application:
    """Build the ingest web application.

    Args:
        service: Ingest service handling validation
        transcription_timeout: Upper bound on transcription + scoring per request
        client_max_size: Maximum request body size; defaults to the service's
                         maximum payload plus room for form fields
    """
    if client_max_size is None:
        maximum = service.maximum_file_size_bytes or 50 * 1024 * 1024
        client_max_size = maximum + 1024 * 1024
    app = web.Application(client_max_size=client_max_size)
    app[SERVICE_KEY] = service
    app[TIMEOUT_KEY] = float(transcription_timeout)
    app[MAX_BODY_KEY] = client_max_size
    app.router.add_get("/health", handle_health)
    app.router.add_post("/lessons/{lesson_id}/steps/{step_index}/validate", handle_validate)
    app.router.add_get("/lessons/{lesson_id}/steps/{step_index}/history", handle_history)
    app.router.add_get("/lessons/{lesson_id}/steps/{step_index}/access", handle_access)
    return app
