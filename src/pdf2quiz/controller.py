"""Upload and quiz-settings form logic shared by the terminal front ends."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol

from .client import GenerationError, UploadError
from .core.logging import get_logger
from .models import GenerationRequest, Level, Question, QuestionType
from .session import IntervalScheduler, QuizSession, SubmitListener

__all__ = [
    "UPLOAD_FAILED_MESSAGE",
    "GENERATION_FAILED_MESSAGE",
    "ValidationError",
    "QuizBackend",
    "QuizForm",
    "FormController",
]

UPLOAD_FAILED_MESSAGE = "File upload failed. Please try again."
GENERATION_FAILED_MESSAGE = "Failed to generate questions. Please try again."

_LOGGER = get_logger("controller")


class ValidationError(ValueError):
    """Raised when the form cannot be submitted as filled in."""


class QuizBackend(Protocol):
    def upload(self, path: Path) -> str: ...

    def generate(self, request: GenerationRequest) -> List[Question]: ...


@dataclass
class QuizForm:
    """Editable quiz parameters. ``timer`` is in minutes."""

    count: int = 5
    level: Level = Level.EASY
    type: QuestionType = QuestionType.MCQ
    custom: str = ""
    timed: bool = False
    timer: int = 0


class FormController:
    """Drive file upload, validation, generation and session creation.

    Failures never raise out of :meth:`select_file` or :meth:`submit`; they
    leave a user-facing message in :attr:`error` instead.
    """

    def __init__(
        self,
        backend: QuizBackend,
        *,
        form: Optional[QuizForm] = None,
        scheduler: Optional[IntervalScheduler] = None,
        on_submit: Optional[SubmitListener] = None,
    ) -> None:
        self._backend = backend
        self._scheduler = scheduler
        self._on_submit = on_submit
        self.form = form if form is not None else QuizForm()
        self.file_name: Optional[str] = None
        self.text = ""
        self.error: Optional[str] = None
        self.is_uploading = False
        self.is_loading = False
        self.questions: List[Question] = []
        self.session: Optional[QuizSession] = None

    @property
    def ready(self) -> bool:
        return bool(self.text) and not (self.is_uploading or self.is_loading)

    def select_file(self, path: Optional[Path]) -> bool:
        """Upload ``path`` and keep its extracted text.

        Returns ``True`` when text is available afterwards. Passing ``None``
        clears the current selection.
        """
        if self.is_uploading:
            return False
        if path is None:
            self.clear_file()
            return False

        path = Path(path)
        self.file_name = path.name
        self.error = None
        self.is_uploading = True
        try:
            self.text = self._backend.upload(path)
        except UploadError:
            _LOGGER.warning("upload failed", extra={"file_name": path.name})
            self.error = UPLOAD_FAILED_MESSAGE
            self.clear_file()
            return False
        finally:
            self.is_uploading = False
        _LOGGER.info(
            "file uploaded",
            extra={"file_name": path.name, "chars": len(self.text)},
        )
        return True

    def clear_file(self) -> None:
        self.file_name = None
        self.text = ""

    def validate(self) -> None:
        if not self.text:
            raise ValidationError("Please upload a valid file.")
        if self.form.count < 1:
            raise ValidationError(
                "Please enter a valid number of questions (at least 1)."
            )
        if self.form.timed and self.form.timer < 1:
            raise ValidationError(
                "Please set a valid timer duration for a timed quiz."
            )

    def build_request(self) -> GenerationRequest:
        self.validate()
        return GenerationRequest(
            content=self.text,
            count=self.form.count,
            level=self.form.level,
            type=self.form.type,
            custom=self.form.custom.strip(),
            timer=self.form.timer if self.form.timed else 0,
        )

    def submit(self) -> Optional[QuizSession]:
        """Validate the form, fetch questions and start a session.

        Returns ``None`` (with :attr:`error` set) when nothing was started.
        """
        if self.is_loading:
            return None
        self.error = None
        try:
            request = self.build_request()
        except ValidationError as exc:
            self.error = str(exc)
            return None

        self.is_loading = True
        try:
            questions = self._backend.generate(request)
        except GenerationError:
            _LOGGER.warning(
                "generation failed",
                extra={"count": request.count, "type": request.type.value},
            )
            self.error = GENERATION_FAILED_MESSAGE
            return None
        finally:
            self.is_loading = False

        self.questions = list(questions)
        self.session = QuizSession.from_minutes(
            self.questions,
            request.timer,
            scheduler=self._scheduler,
            on_submit=self._on_submit,
        )
        _LOGGER.info(
            "quiz started",
            extra={"questions": len(self.questions), "timer": request.timer},
        )
        return self.session

    def retake(self) -> QuizSession:
        if self.session is None:
            raise ValidationError("No quiz has been started.")
        self.session = self.session.retake()
        return self.session
