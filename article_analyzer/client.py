"""Async client for the /analyze endpoint.

Errors are categorized so callers can decide whether to offer a retry:
``config`` and ``validation`` failures are never retried; ``network``
failures and 5xx responses are retried a bounded number of times.
"""

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import httpx

from .models.schemas import AnalysisOptions, PRDAnalysisResponse
from .utils.helpers import retry_with_backoff
from .utils.text_processing import LanguageDetector, map_api_response_to_prd

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
MAX_ATTEMPTS = 3
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
FILE_TYPE_LABELS = {
    ".txt": "Text Document",
    ".docx": "Word Document",
}


class ApiError(Exception):
    category = "request"

    def __init__(self, message: str, category: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category


class ConfigError(ApiError):
    category = "config"


class ClientValidationError(ApiError):
    category = "validation"


class NetworkError(ApiError):
    category = "network"


class RequestTimeout(NetworkError):
    pass


class RequestFailed(ApiError):
    category = "request"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ServerError(RequestFailed):
    """5xx responses; the only request failures worth retrying."""


RETRYABLE_ERRORS = (NetworkError, ServerError)


@dataclass
class FileValidationResult:
    is_valid: bool
    error: Optional[str] = None


def validate_upload(filename: str, size_bytes: int) -> FileValidationResult:
    if size_bytes > MAX_UPLOAD_BYTES:
        return FileValidationResult(False, f"File size exceeds {MAX_UPLOAD_BYTES // 1024 // 1024}MB limit")

    suffix = Path(filename).suffix.lower()
    if suffix not in FILE_TYPE_LABELS:
        return FileValidationResult(False, f"Unsupported file type: {suffix or 'unknown'}. Supported types: .txt, .docx")

    return FileValidationResult(True)


def format_file_size(size_bytes: int) -> str:
    if size_bytes == 0:
        return "0.0KB"
    units = ["Bytes", "KB", "MB", "GB"]
    index = min(int(math.floor(math.log(size_bytes, 1024))), len(units) - 1)
    value = round(size_bytes / (1024 ** index), 1)
    return f"{value:g}{units[index]}"


def file_type_label(filename: str) -> str:
    return FILE_TYPE_LABELS.get(Path(filename).suffix.lower(), "Unknown")


def _detection_text(text: Optional[str], file: Optional[Tuple[str, bytes]]) -> Optional[str]:
    """Pasted text, else the contents of a plain-text upload."""
    if text and text.strip():
        return text
    if file and Path(file[0]).suffix.lower() == ".txt":
        return file[1].decode("utf-8", errors="ignore")
    return text


class AnalyzerClient:

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        detector: Optional[LanguageDetector] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.transport = transport
        self.detector = detector

    async def analyze(
        self,
        access_token: Optional[str],
        text: Optional[str] = None,
        file: Optional[Tuple[str, bytes]] = None,
        options: Optional[AnalysisOptions] = None,
    ) -> Dict[str, Any]:
        """Send one analysis request, retrying transient failures. Returns the raw payload."""
        self._check_request(access_token, text, file)
        return await retry_with_backoff(
            self._post_analyze,
            access_token,
            text,
            file,
            options,
            max_attempts=self.max_attempts,
            initial_delay=self.retry_delay,
            retry_exceptions=RETRYABLE_ERRORS,
        )

    async def analyze_and_normalize(
        self,
        access_token: Optional[str],
        text: Optional[str] = None,
        file: Optional[Tuple[str, bytes]] = None,
        options: Optional[AnalysisOptions] = None,
    ) -> PRDAnalysisResponse:
        payload = await self.analyze(access_token, text=text, file=file, options=options)
        return map_api_response_to_prd(payload, original_text=_detection_text(text, file), detector=self.detector)

    def _check_request(
        self,
        access_token: Optional[str],
        text: Optional[str],
        file: Optional[Tuple[str, bytes]],
    ) -> None:
        if not self.base_url.startswith("https://"):
            raise ConfigError("API URL must use HTTPS for security")

        if not (text and text.strip()) and not file:
            raise ClientValidationError("Either text or file must be provided")

        if not access_token:
            raise ClientValidationError("Authentication required. Please log in again.")

        if file:
            filename, content = file
            validation = validate_upload(filename, len(content))
            if not validation.is_valid:
                raise ClientValidationError(validation.error or "Invalid file")

    async def _post_analyze(
        self,
        access_token: str,
        text: Optional[str],
        file: Optional[Tuple[str, bytes]],
        options: Optional[AnalysisOptions],
    ) -> Dict[str, Any]:
        parts: Dict[str, Any] = {}
        if file:
            parts["file"] = file
        elif text:
            parts["text"] = (None, text)
        if options is not None:
            parts["options"] = (None, options.model_dump_json(by_alias=True))

        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(f"{self.base_url}/analyze", headers=headers, files=parts)
        except httpx.TimeoutException as exc:
            raise RequestTimeout("Request timed out. Please try again.") from exc
        except httpx.TransportError as exc:
            raise NetworkError("Network error. Please check your connection.") from exc

        if response.is_error:
            error_cls = ServerError if response.is_server_error else RequestFailed
            raise error_cls(
                f"Analysis failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise RequestFailed("Analysis response was not valid JSON", status_code=response.status_code) from exc
