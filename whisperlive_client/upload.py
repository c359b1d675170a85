"""Whole-recording transcription through an HTTP upload proxy.

Alternative to the WebSocket session: the recording is posted as a
multipart form (field ``audio``) and the proxy answers with
``{"text": "..."}`` once transcription finishes.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from whisperlive_client.config.settings import get_settings
from whisperlive_client.exceptions import UploadError
from whisperlive_client.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger("upload")

STATUS_TRANSCRIBING = "transcribing"


def _default_filename() -> str:
    return f"recording_{int(time.time() * 1000)}.webm"


def transcribe_via_proxy(
    audio: bytes | str | Path,
    *,
    url: str | None = None,
    filename: str | None = None,
    content_type: str = "audio/webm",
    on_status: Callable[[str], None] | None = None,
    timeout_s: float | None = None,
) -> str:
    """Upload a recording and return its transcript.

    Args:
        audio: Encoded recording bytes, or a path to read them from.
        url: Proxy endpoint (default: ``WHISPERLIVE_PROXY_URL``).
        filename: Multipart filename (default: ``recording_<epoch ms>.webm``).
        content_type: MIME type of the recording.
        on_status: Called with ``"transcribing"`` before the request is sent.
        timeout_s: HTTP timeout (default: ``WHISPERLIVE_HTTP_TIMEOUT_S``).

    Returns:
        The transcript, or "" when the proxy returned no text.

    Raises:
        UploadError: If the proxy is unreachable or answers with a non-2xx status.
    """
    settings = get_settings().upload
    endpoint = url or settings.proxy_url
    timeout = timeout_s if timeout_s is not None else settings.http_timeout_s

    if isinstance(audio, (str, Path)):
        path = Path(audio)
        if not path.is_file():
            raise UploadError(f"file not found: {path}")
        data = path.read_bytes()
        name = filename or path.name
    else:
        data = audio
        name = filename or _default_filename()

    if on_status is not None:
        on_status(STATUS_TRANSCRIBING)

    logger.info("upload_started", url=endpoint, filename=name, bytes=len(data))

    try:
        response = httpx.post(
            endpoint,
            files={"audio": (name, data, content_type)},
            timeout=timeout,
        )
    except httpx.ConnectError as exc:
        raise UploadError(f"proxy not available at {endpoint}: {exc}") from exc
    except httpx.HTTPError as exc:
        raise UploadError(f"upload to {endpoint} failed: {exc}") from exc

    if not response.is_success:
        raise UploadError(_error_message(response), status_code=response.status_code)

    try:
        body = response.json()
    except ValueError as exc:
        raise UploadError(
            f"proxy returned a non-JSON body: {exc}", status_code=response.status_code
        ) from exc

    text = body.get("text") if isinstance(body, dict) else None
    logger.info("upload_finished", url=endpoint, status_code=response.status_code)
    return text or ""


def _error_message(response: httpx.Response) -> str:
    """Prefer the proxy's own ``error`` field, else a generic status message."""
    fallback = f"Transcription error: {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return fallback
