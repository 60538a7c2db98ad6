from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from fixtures import HTMLStub, OpenAIStub, OpenAIStubFactory  # noqa: E402

from pdf2quiz import export  # noqa: E402
from pdf2quiz.core import ai  # noqa: E402
from pdf2quiz.core.logging import LOGGER_ROOT  # noqa: E402


@pytest.fixture
def openai_stub() -> OpenAIStub:
    """A fresh OpenAI-like client to inject into generation calls."""

    return OpenAIStub()


@pytest.fixture
def openai_factory(monkeypatch: pytest.MonkeyPatch) -> OpenAIStubFactory:
    """Replace ``OpenAI`` in the client loader with a recording factory."""

    factory = OpenAIStubFactory()
    monkeypatch.setattr(ai, "OpenAI", factory)
    return factory


@pytest.fixture
def weasyprint_stub(monkeypatch: pytest.MonkeyPatch) -> Iterator[type]:
    """Route PDF rendering through :class:`HTMLStub`."""

    HTMLStub.pop_calls()
    monkeypatch.setattr(export, "_load_weasyprint", lambda: HTMLStub)
    yield HTMLStub
    HTMLStub.pop_calls()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Strip pdf2quiz variables from the environment and isolate the workspace."""

    for key in (
        "PORT",
        "OPENAI_API_KEY",
        "PDF2QUIZ_BACKEND_URL",
        "PDF2QUIZ_CONFIG",
        "PDF2QUIZ_HOST",
        "PDF2QUIZ_CORS_ORIGINS",
        "PDF2QUIZ_AI_MODEL",
        "PDF2QUIZ_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    home = tmp_path / "data"
    monkeypatch.setenv("PDF2QUIZ_DATA_HOME", str(home))
    return home


@pytest.fixture(autouse=True)
def _reset_pdf2quiz_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger(LOGGER_ROOT)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
