"""Uploads accepted recordings to the validation endpoint."""

import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import Any, List, Optional, Tuple

import aiohttp
from pydantic import ValidationError

from ..errors import (
    AUDIO_TOO_LARGE,
    AUDIO_TOO_SMALL,
    CaptureFault,
    CaptureFaultReason,
    AudioTooLargeError,
    AudioTooSmallError,
    NetworkError,
    TRANSCRIPTION_UNAVAILABLE,
    TranscriptionUnavailableError,
    UploadFailedError,
)
from ..models.scoring import SpeechValidationResponse, StepAccess

logger = logging.getLogger(__name__)

HTTP_REQUEST_ENTITY_TOO_LARGE = 413


class SpeechValidationClient:
    """Async client for the /lessons/{id}/steps/{index}/... endpoints."""

    def __init__(self, base_url: str, upload_timeout: float = 60.0,
                 auth_token: Optional[str] = None, request_timeout: float = 15.0):
        """Initialize the client.

        Args:
            base_url: Server root, e.g. http://localhost:8080
            upload_timeout: Total time allowed for one upload, in seconds
            auth_token: Optional bearer token
            request_timeout: Total time allowed for history and access lookups
        """
        self.base_url = base_url.rstrip("/")
        self.upload_timeout = upload_timeout
        self.request_timeout = request_timeout
        self.auth_token = auth_token

    def endpoint(self, lesson_id: str, step_index: int, action: str = "validate") -> str:
        return f"{self.base_url}/lessons/{lesson_id}/steps/{step_index}/{action}"

    async def validate_speech(self,
                              audio_path: str,
                              lesson_id: str,
                              step_index: int,
                              expected_text: str,
                              language_code: str,
                              step_type: str = "phrase_practice") -> SpeechValidationResponse:
        """Upload a recording and return the scoring response.

        Raises:
            CaptureFault: If the recording file does not exist
            NetworkError: On timeout or transport failure (retryable)
            AudioTooSmallError / AudioTooLargeError: If the server's size gate rejects it
            TranscriptionUnavailableError: If the server could not transcribe
            UploadFailedError: For any other non-success or malformed response
        """
        path = Path(audio_path)
        try:
            audio = path.read_bytes()
        except FileNotFoundError as e:
            raise CaptureFault(CaptureFaultReason.FILE_NOT_FOUND, str(path)) from e

        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        form = aiohttp.FormData()
        form.add_field("audio", audio, filename=path.name, content_type=content_type)
        form.add_field("expectedText", expected_text)
        form.add_field("languageCode", language_code)
        form.add_field("stepType", step_type)

        url = self.endpoint(lesson_id, step_index)
        logger.info(f"Uploading {len(audio)} bytes to {url}")
        status, body = await self._request("POST", url, self.upload_timeout, data=form)

        if status != 200:
            raise self._error_for(status, body, size_bytes=len(audio))
        if not isinstance(body, dict):
            raise UploadFailedError(status, "response body is not a JSON object")
        return self._decode(status, SpeechValidationResponse, body)

    async def get_validation_history(self, lesson_id: str, step_index: int) -> List[SpeechValidationResponse]:
        """Previous validation responses for a step, oldest first."""
        url = self.endpoint(lesson_id, step_index, "history")
        logger.info(f"Fetching validation history for lesson {lesson_id} step {step_index}")
        status, body = await self._request("GET", url, self.request_timeout)
        if status != 200:
            raise self._error_for(status, body)
        if not isinstance(body, list):
            raise UploadFailedError(status, "response body is not a JSON list")
        history = [self._decode(status, SpeechValidationResponse, item) for item in body]
        logger.info(f"Fetched {len(history)} validation attempts")
        return history

    async def check_step_access(self, lesson_id: str, step_index: int) -> bool:
        """Whether the step may be attempted yet."""
        url = self.endpoint(lesson_id, step_index, "access")
        status, body = await self._request("GET", url, self.request_timeout)
        if status != 200:
            raise self._error_for(status, body)
        access = self._decode(status, StepAccess, body)
        logger.info(f"Step access for lesson {lesson_id} step {step_index}: "
                    f"{'GRANTED' if access.accessible else 'DENIED'} ({access.reason})")
        return access.accessible

    async def _request(self, method: str, url: str, timeout: float, **kwargs) -> Tuple[int, Any]:
        headers = {}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
                async with session.request(method, url, headers=headers, **kwargs) as response:
                    return response.status, await self._read_body(response)
        except asyncio.TimeoutError as e:
            logger.error(f"{method} {url} timed out after {timeout}s")
            raise NetworkError(f"Request timed out after {timeout}s") from e
        except aiohttp.ClientError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise NetworkError(f"Request failed: {e}") from e

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except ValueError:
            return None

    @staticmethod
    def _decode(status: int, model, body: Any):
        try:
            return model.model_validate(body)
        except ValidationError as e:
            logger.error(f"Malformed {model.__name__} from server: {e}")
            raise UploadFailedError(status, "malformed response") from e

    @staticmethod
    def _error_for(status: int, body: Any, size_bytes: int = 0) -> Exception:
        body = body if isinstance(body, dict) else {}
        code = body.get("error")
        logger.warning(f"Request rejected with {status}: {code}")
        if code == AUDIO_TOO_SMALL:
            return AudioTooSmallError(body.get("sizeBytes", size_bytes), body.get("minimumBytes", 0))
        if code == AUDIO_TOO_LARGE or (code is None and status == HTTP_REQUEST_ENTITY_TOO_LARGE):
            # The server's body-size limit answers before the size gate, without a JSON body.
            return AudioTooLargeError(body.get("sizeBytes", size_bytes), body.get("maximumBytes", 0))
        if code == TRANSCRIPTION_UNAVAILABLE:
            return TranscriptionUnavailableError(body.get("detail"))
        return UploadFailedError(status, body.get("detail") or code)
