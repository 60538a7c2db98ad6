from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from fixtures import make_question

from pdf2quiz.client import BackendClient, GenerationError, UploadError
from pdf2quiz.controller import (
    GENERATION_FAILED_MESSAGE,
    UPLOAD_FAILED_MESSAGE,
    FormController,
    QuizForm,
    ValidationError,
)
from pdf2quiz.models import Level, QuestionType


class FakeBackend:
    def __init__(self, *, text="document text", questions=None, fail=None):
        self.text = text
        self.questions = questions
        self.fail = fail
        self.uploads: list[Path] = []
        self.requests = []

    def upload(self, path):
        self.uploads.append(path)
        if self.fail == "upload":
            raise UploadError("boom")
        return self.text

    def generate(self, request):
        self.requests.append(request)
        if self.fail == "generate":
            raise GenerationError("boom")
        if self.questions is not None:
            return self.questions
        return [make_question(f"Q{n}?") for n in range(request.count)]


def _uploaded(backend=None, **form):
    controller = FormController(backend or FakeBackend(), form=QuizForm(**form))
    assert controller.select_file(Path("notes.pdf"))
    return controller


def test_select_file_stores_text_and_name():
    backend = FakeBackend()
    controller = FormController(backend)

    assert controller.select_file(Path("/docs/notes.pdf")) is True
    assert controller.file_name == "notes.pdf"
    assert controller.text == "document text"
    assert controller.error is None
    assert controller.ready


def test_upload_failure_clears_file_and_text():
    controller = _uploaded()
    controller._backend = FakeBackend(fail="upload")

    assert controller.select_file(Path("other.pdf")) is False
    assert controller.error == UPLOAD_FAILED_MESSAGE
    assert controller.file_name is None
    assert controller.text == ""
    assert controller.is_uploading is False


def test_unsupported_upload_through_backend_clears_file_name(tmp_path):
    transport = httpx.MockTransport(
        lambda request: httpx.Response(
            415, json={"error": "Unsupported file extension '.pptx'."}
        )
    )
    client = BackendClient("http://backend.test", transport=transport)
    controller = FormController(client)

    slides = tmp_path / "slides.pptx"
    slides.write_bytes(b"PK")

    assert controller.select_file(slides) is False
    assert controller.file_name is None
    assert controller.error == UPLOAD_FAILED_MESSAGE


def test_select_none_clears_selection():
    controller = _uploaded()

    assert controller.select_file(None) is False
    assert controller.file_name is None
    assert controller.text == ""


def test_select_file_rejected_while_uploading():
    backend = FakeBackend()
    controller = FormController(backend)
    controller.is_uploading = True

    assert controller.select_file(Path("notes.pdf")) is False
    assert backend.uploads == []


@pytest.mark.parametrize(
    "setup, message",
    [
        ({"text": ""}, "Please upload a valid file."),
        ({"count": 0}, "Please enter a valid number of questions"),
        ({"timed": True, "timer": 0}, "Please set a valid timer duration"),
    ],
)
def test_validation_errors_block_generation(setup, message):
    backend = FakeBackend()
    controller = _uploaded(backend)
    if "text" in setup:
        controller.text = setup["text"]
    controller.form.count = setup.get("count", 5)
    controller.form.timed = setup.get("timed", False)
    controller.form.timer = setup.get("timer", 0)

    with pytest.raises(ValidationError):
        controller.validate()
    assert controller.submit() is None
    assert controller.error.startswith(message)
    assert backend.requests == []


def test_submit_builds_request_and_session():
    backend = FakeBackend()
    controller = _uploaded(
        backend,
        count=3,
        level=Level.HARD,
        type=QuestionType.TRUE_FALSE,
        custom="  dates only ",
        timed=True,
        timer=2,
    )

    session = controller.submit()

    assert session is controller.session
    assert session.total == 3
    assert session.timer_duration_seconds == 120
    request = backend.requests[0]
    assert request.content == "document text"
    assert request.level is Level.HARD
    assert request.type is QuestionType.TRUE_FALSE
    assert request.custom == "dates only"
    assert request.timer == 2
    assert controller.is_loading is False


def test_untimed_submit_sends_zero_timer():
    backend = FakeBackend()
    controller = _uploaded(backend, count=1, timed=False, timer=15)

    session = controller.submit()

    assert backend.requests[0].timer == 0
    assert not session.is_timed


def test_generation_failure_sets_message_and_keeps_form():
    backend = FakeBackend(fail="generate")
    controller = _uploaded(backend, count=4)

    assert controller.submit() is None
    assert controller.error == GENERATION_FAILED_MESSAGE
    assert controller.form.count == 4
    assert controller.text == "document text"
    assert controller.session is None
    assert controller.is_loading is False


def test_submit_ignored_while_loading():
    backend = FakeBackend()
    controller = _uploaded(backend)
    controller.is_loading = True

    assert controller.submit() is None
    assert backend.requests == []


def test_submit_passes_scheduler_and_listener():
    scheduled = []
    submitted = []

    def scheduler(interval, callback):
        scheduled.append(interval)

        class Handle:
            def stop(self):
                pass

        return Handle()

    controller = FormController(
        FakeBackend(),
        form=QuizForm(count=1, timed=True, timer=1),
        scheduler=scheduler,
        on_submit=submitted.append,
    )
    controller.select_file(Path("notes.pdf"))
    session = controller.submit()
    session.submit()

    assert scheduled == [1.0]
    assert submitted == [session]


def test_retake_replaces_session():
    controller = _uploaded(count=1)
    first = controller.submit()
    first.submit()

    second = controller.retake()

    assert second is controller.session
    assert second is not first
    assert second.questions == first.questions


def test_retake_without_session_fails():
    with pytest.raises(ValidationError):
        FormController(FakeBackend()).retake()
