"""Plain-text extraction for uploaded documents."""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from .core.logging import get_logger

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset({"pdf", "docx", "txt"})

_LOGGER = get_logger("ingest")


class IngestionError(RuntimeError):
    """Raised when an uploaded document cannot be turned into text."""


class UnsupportedFormatError(IngestionError):
    """Raised when the upload's extension is not supported."""


@dataclass(frozen=True)
class IngestionDependencies:
    """Callable seam for the document-to-text backend."""

    markitdown: Callable[[Path], str]


def default_dependencies() -> IngestionDependencies:
    """Return dependencies backed by a shared ``MarkItDown`` engine."""

    from markitdown import MarkItDown

    engine = MarkItDown()

    def convert_with_markitdown(source: Path) -> str:
        result = engine.convert(str(source))
        text = _coerce_text_result(result)
        if text is None:
            raise IngestionError(
                "markitdown returned an unsupported response; expected text."
            )
        return text

    return IngestionDependencies(markitdown=convert_with_markitdown)


def extract_text(
    file_bytes: bytes,
    file_name: str,
    *,
    dependencies: Optional[IngestionDependencies] = None,
) -> str:
    """Extract plain text from ``file_bytes`` named ``file_name``.

    The format is chosen by extension; PDF, DOCX and TXT are accepted.
    """

    extension = _normalize_extension(file_name)
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(
            f"Unsupported file extension '.{extension}'. Expected one of: "
            + ", ".join(sorted(SUPPORTED_EXTENSIONS))
        )
    if not file_bytes:
        raise IngestionError(f"Uploaded file '{file_name}' is empty.")

    deps = dependencies or default_dependencies()
    safe_name = Path(file_name).name
    with tempfile.TemporaryDirectory(prefix="pdf2quiz-") as tmp:
        source = Path(tmp) / safe_name
        source.write_bytes(file_bytes)
        try:
            text = deps.markitdown(source)
        except IngestionError:
            raise
        except Exception as exc:
            raise IngestionError(
                f"Failed to extract text from '{safe_name}': {exc}"
            ) from exc

    if not isinstance(text, str):
        raise IngestionError(f"No text extracted from '{safe_name}'.")
    _LOGGER.info(
        "text extracted",
        extra={"file_name": safe_name, "chars": len(text)},
    )
    return text.strip()


def _normalize_extension(file_name: str) -> str:
    suffix = Path(file_name or "").suffix
    if not suffix:
        raise UnsupportedFormatError(
            "Files without an extension are not supported."
        )
    return suffix.lstrip(".").lower()


def _coerce_text_result(result: Any) -> Optional[str]:
    for attribute in ("markdown", "text_content"):
        value = getattr(result, attribute, None)
        if isinstance(value, str):
            return value
    if isinstance(result, str):
        return result
    return None
