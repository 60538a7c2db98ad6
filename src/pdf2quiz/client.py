"""HTTP client for the pdf2quiz backend, used by the terminal front end."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import httpx

from .core.logging import get_logger
from .generation import GenerationError
from .models import GenerationRequest, Question

__all__ = ["UploadError", "GenerationError", "BackendClient"]

_LOGGER = get_logger("client")


class UploadError(RuntimeError):
    """Raised when a document could not be uploaded or converted."""


class BackendClient:
    """Thin wrapper over ``httpx.Client`` for the two API routes."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 120.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "BackendClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def upload_bytes(self, data: bytes, file_name: str) -> str:
        """POST ``data`` to ``/api/upload`` and return the extracted text."""
        try:
            response = self._http.post(
                "/api/upload",
                files={"file": (file_name, data, "application/octet-stream")},
            )
            response.raise_for_status()
            text = response.json()["text"]
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as exc:
            _LOGGER.warning(
                "upload failed",
                extra={"file_name": file_name, "reason": _describe(exc)},
            )
            raise UploadError(f"Upload of '{file_name}' failed.") from exc
        if not isinstance(text, str):
            raise UploadError(f"Upload of '{file_name}' returned no text.")
        return text

    def upload(self, path: Path) -> str:
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise UploadError(f"Cannot read '{path}'.") from exc
        return self.upload_bytes(data, Path(path).name)

    def generate(self, request: GenerationRequest) -> List[Question]:
        """POST ``request`` to ``/api/generate`` and parse the questions."""
        try:
            response = self._http.post("/api/generate", json=request.to_dict())
            response.raise_for_status()
            raw = response.json()["questions"]
            questions = [Question.from_dict(item) for item in raw]
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as exc:
            _LOGGER.warning("generation failed", extra={"reason": _describe(exc)})
            raise GenerationError("Question generation failed.") from exc
        if len(questions) != request.count:
            raise GenerationError(
                f"Expected {request.count} question(s), received {len(questions)}."
            )
        return questions


def _describe(exc: Exception) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    return f"{type(exc).__name__}: {exc}"
