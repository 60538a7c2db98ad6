from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from textual.app import App, ComposeResult, ScreenStackError
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.css.query import NoMatches
from textual.widgets import Button, Static

from ..core.logging import get_logger
from ..export import ExportError, export_quiz
from ..models import Question
from ..session import QuestionResult, QuizSession, TimerHandle, format_time

Exporter = Callable[[Sequence[Question], Optional[str], Path], Path]

_LOGGER = get_logger("view")


def choice_id(question_index: int, option_index: int) -> str:
    return f"choice-{question_index}-{option_index}"


def parse_choice_id(button_id: str) -> Optional[Tuple[int, int]]:
    """Return ``(question, option)`` indexes encoded in a choice button id."""
    parts = button_id.split("-")
    if len(parts) != 3 or parts[0] != "choice":
        return None
    try:
        return int(parts[1]), int(parts[2])
    except ValueError:
        return None


def timer_text(session: QuizSession) -> str:
    if not session.is_timed:
        return ""
    return f"Time left: {format_time(session.time_remaining_seconds)}"


def status_text(session: QuizSession) -> str:
    if not session.submitted:
        return f"Answered: {session.answered_count()}/{session.total}"
    prefix = "Time's up! " if session.auto_submitted else ""
    return f"{prefix}You scored {session.score} out of {session.total}"


def feedback_text(result: QuestionResult) -> str:
    if result.is_correct:
        return "Correct."
    if result.selected is None:
        return f"Not answered. Correct answer: {result.answer}"
    return f"Incorrect. Correct answer: {result.answer}"


class QuizApp(App):
    """Interactive quiz over one generated question set."""

    CSS_PATH = None
    CSS = """
#timer { color: $warning; text-style: bold; }
.choices Button.selected { background: $accent; color: black; }
.choices Button.correct { background: $success; color: black; }
.choices Button.wrong { background: $error; }
#footer { height: auto; }
"""
    BINDINGS = [
        ("s", "submit", "Submit"),
        ("r", "retake", "Retake"),
        ("d", "download", "Download PDF"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        session: QuizSession,
        *,
        file_name: Optional[str] = None,
        export_dir: Path = Path("."),
        exporter: Exporter = export_quiz,
    ) -> None:
        super().__init__()
        self.session = session
        self._file_name = file_name
        self._export_dir = export_dir
        self._exporter = exporter

    def compose(self) -> ComposeResult:
        questions = self.session.questions
        if not questions:
            yield Static("No questions.", id="empty")
            return
        title = f"{self._file_name or 'Generated'} quiz"
        yield Static(title, id="title")
        yield Static(timer_text(self.session), id="timer")
        with VerticalScroll(id="questions"):
            for q_index, question in enumerate(questions):
                yield Static(
                    f"{q_index + 1}. {question.question}",
                    id=f"question-{q_index}",
                )
                with Vertical(id=f"choices-{q_index}", classes="choices"):
                    for o_index, option in enumerate(question.options):
                        yield Button(option, id=choice_id(q_index, o_index))
                yield Static("", id=f"feedback-{q_index}")
        with Horizontal(id="footer"):
            yield Button("Submit", id="submit")
            yield Button("Retake", id="retake")
            yield Button("Download PDF", id="download")
        yield Static(status_text(self.session), id="status")
        yield Static("", id="message")

    def on_mount(self) -> None:
        self.session.start_timer(self._schedule)

    def on_unmount(self) -> None:
        self.session.close()

    def _schedule(
        self, interval: float, callback: Callable[[], None]
    ) -> TimerHandle:
        def _tick() -> None:
            callback()
            self.refresh_view()

        return self.set_interval(interval, _tick)

    # Pure helpers (testable without running the App)
    def choose(self, question_index: int, option_index: int) -> bool:
        if self.session.submitted:
            self._show_message("Answers are locked once the quiz is submitted.")
            return False
        try:
            option = self.session.questions[question_index].options[option_index]
        except IndexError:
            return False
        self.session.select_answer(question_index, option)
        self.refresh_view()
        return True

    def submit_quiz(self) -> int:
        score = self.session.submit()
        self.refresh_view()
        return score

    def retake_quiz(self) -> bool:
        if not self.session.submitted:
            self._show_message("Submit the quiz before retaking it.")
            return False
        self.session = self.session.retake()
        self._show_message("")
        self.refresh_view()
        return True

    def download(self) -> Optional[Path]:
        try:
            path = self._exporter(
                self.session.questions, self._file_name, self._export_dir
            )
        except (ExportError, OSError) as exc:
            _LOGGER.warning("export failed", extra={"reason": str(exc)})
            self._show_message(f"Download failed: {exc}")
            return None
        self._show_message(f"Saved {path}")
        return path

    def refresh_view(self) -> None:
        self._update_static("#timer", timer_text(self.session))
        self._update_static("#status", status_text(self.session))
        results = self.session.results() if self.session.submitted else None
        answers = self.session.user_answers
        for q_index, question in enumerate(self.session.questions):
            result = results[q_index] if results else None
            self._update_static(
                f"#feedback-{q_index}", feedback_text(result) if result else ""
            )
            for o_index, option in enumerate(question.options):
                button = self._find(f"#{choice_id(q_index, o_index)}", Button)
                if button is None:
                    continue
                chosen = answers[q_index] == option
                button.set_class(chosen, "selected")
                button.set_class(
                    result is not None and option == question.answer, "correct"
                )
                button.set_class(
                    result is not None and chosen and not result.is_correct,
                    "wrong",
                )

    def action_submit(self) -> None:
        self.submit_quiz()

    def action_retake(self) -> None:
        self.retake_quiz()

    def action_download(self) -> None:
        self.download()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        choice = parse_choice_id(bid)
        if choice is not None:
            self.choose(*choice)
        elif bid == "submit":
            self.action_submit()
        elif bid == "retake":
            self.action_retake()
        elif bid == "download":
            self.action_download()

    def _show_message(self, text: str) -> None:
        self._update_static("#message", text)

    def _update_static(self, selector: str, text: str) -> None:
        widget = self._find(selector, Static)
        if widget is not None:
            widget.update(text)

    def _find(self, selector: str, kind: type):
        try:
            return self.query_one(selector, kind)
        except (NoMatches, ScreenStackError):
            return None
