"""FastAPI backend: document upload and question generation relay."""

from __future__ import annotations

import argparse
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import uvicorn
from fastapi import FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .core.ai import load_client
from .core.logging import configure_logger, get_logger
from .core.settings import (
    Settings,
    SettingsError,
    SettingsOverrides,
    load_settings,
)
from .generation import GenerationError, generate
from .ingest import (
    IngestionDependencies,
    IngestionError,
    UnsupportedFormatError,
    extract_text,
)
from .schemas import ErrorOut, GenerateIn, GenerateOut, QuestionOut, UploadOut

HEALTH_TEXT = "PDF2Quiz Backend is running"
GENERATION_FAILED = "Failed to generate questions"
UPLOAD_FAILED = "Failed to extract text from file"

_LOGGER = get_logger("server")

ClientFactory = Callable[[], Any]


class _LazyClient:
    """Create the provider client on first use and reuse it afterwards."""

    def __init__(self, factory: ClientFactory) -> None:
        self._factory = factory
        self._client: Any = None
        self._lock = threading.Lock()

    def get(self) -> Any:
        with self._lock:
            if self._client is None:
                self._client = self._factory()
            return self._client


def create_app(
    settings: Settings,
    *,
    client_factory: ClientFactory = load_client,
    ingestion: Optional[IngestionDependencies] = None,
) -> FastAPI:
    """Build the API application for ``settings``."""

    app = FastAPI(title="PDF2Quiz Backend", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    provider = _LazyClient(client_factory)

    @app.get("/", response_class=PlainTextResponse)
    def health() -> str:
        return HEALTH_TEXT

    @app.post(
        "/api/upload",
        response_model=UploadOut,
        responses={415: {"model": ErrorOut}, 500: {"model": ErrorOut}},
    )
    def upload(file: UploadFile = File(...)) -> Any:
        file_name = file.filename or ""
        data = file.file.read()
        _LOGGER.info(
            "upload received",
            extra={"file_name": file_name, "bytes": len(data)},
        )
        try:
            text = extract_text(data, file_name, dependencies=ingestion)
        except UnsupportedFormatError as exc:
            _LOGGER.warning("upload rejected", extra={"reason": str(exc)})
            return JSONResponse(status_code=415, content={"error": str(exc)})
        except IngestionError:
            _LOGGER.exception("upload failed", extra={"file_name": file_name})
            return JSONResponse(status_code=500, content={"error": UPLOAD_FAILED})
        return UploadOut(text=text)

    @app.post(
        "/api/generate",
        response_model=GenerateOut,
        responses={500: {"model": ErrorOut}},
    )
    def generate_questions(payload: GenerateIn) -> Any:
        try:
            client = provider.get()
            questions = generate(
                payload.to_request(),
                client=client,
                model=settings.model,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            )
        except (GenerationError, RuntimeError, ValueError):
            _LOGGER.exception("generation failed")
            return JSONResponse(
                status_code=500, content={"error": GENERATION_FAILED}
            )
        return GenerateOut(
            questions=[QuestionOut.from_question(q) for q in questions]
        )

    return app


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf2quiz serve",
        description="Run the upload/generation HTTP backend.",
    )
    parser.add_argument("--host", help="Interface to bind (default from config).")
    parser.add_argument("--port", type=int, help="Port to listen on (env PORT).")
    parser.add_argument("--config", type=Path, help="Path to pdf2quiz.toml.")
    parser.add_argument("--workspace", type=Path, help="Workspace root override.")
    parser.add_argument("--log-level", help="Logging level for the log file.")
    parser.add_argument(
        "--verbose", action="store_true", help="Also log to stderr."
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        loaded = load_settings(
            config_path=args.config,
            workspace_path=args.workspace,
            overrides=SettingsOverrides(
                host=args.host, port=args.port, log_level=args.log_level
            ),
        )
    except SettingsError as exc:
        parser.error(str(exc))

    settings = loaded.settings
    _, log_path = configure_logger(
        log_dir=loaded.layout.path_for("logs"),
        level=settings.log_level,
        verbose=args.verbose,
        filename="server.log",
    )
    _LOGGER.info(
        "server starting",
        extra={
            "host": settings.host,
            "port": settings.port,
            "log_path": str(log_path),
        },
    )
    print(f"Server running on port {settings.port} (log: {log_path})")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
