"""Quiz session state machine.

A :class:`QuizSession` owns one attempt at a generated quiz: the answers the
user has picked, an optional countdown, and the single guarded transition from
``ACTIVE`` to ``SUBMITTED``. Submission may be requested by the user or by the
countdown reaching zero; whichever arrives first performs the transition and
the other observes ``SUBMITTED`` and does nothing. A retake never mutates a
session, it returns a fresh one with the same questions and duration.

The countdown itself is driven from outside. Views pass an
``IntervalScheduler`` (for example Textual's ``App.set_interval``) that calls
:meth:`QuizSession.tick` once per second and returns a handle the session
stops on every transition out of ``ACTIVE``. The scheduler may be given at
construction or attached later with :meth:`QuizSession.start_timer` once the
view's event loop exists. Without a scheduler callers tick the session
manually.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence

from .core.logging import get_logger
from .models import Question

__all__ = [
    "UNANSWERED",
    "SessionState",
    "SessionStateError",
    "TimerHandle",
    "IntervalScheduler",
    "QuestionResult",
    "QuizSession",
    "score_answers",
    "format_time",
]

UNANSWERED: Optional[str] = None
TICK_SECONDS = 1.0

_LOGGER = get_logger("session")


class SessionState(Enum):
    ACTIVE = "active"
    SUBMITTED = "submitted"


class SessionStateError(RuntimeError):
    """Raised when an operation is not allowed in the session's state."""


class TimerHandle(Protocol):
    def stop(self) -> None: ...


IntervalScheduler = Callable[[float, Callable[[], None]], TimerHandle]
SubmitListener = Callable[["QuizSession"], None]


@dataclass(frozen=True)
class QuestionResult:
    """Correctness of one answer after submission."""

    index: int
    question: Question
    selected: Optional[str]
    is_correct: bool

    @property
    def answer(self) -> str:
        return self.question.answer


def score_answers(
    questions: Sequence[Question], answers: Sequence[Optional[str]]
) -> int:
    """Count exact, case-sensitive matches between answers and keys."""
    return sum(
        1
        for question, selected in zip(questions, answers)
        if selected is not None and selected == question.answer
    )


def format_time(seconds: int) -> str:
    minutes, remaining = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{remaining:02d}"


class QuizSession:
    """One in-progress or completed attempt at a question set."""

    def __init__(
        self,
        questions: Sequence[Question],
        *,
        timer_duration_seconds: int = 0,
        scheduler: Optional[IntervalScheduler] = None,
        on_submit: Optional[SubmitListener] = None,
    ) -> None:
        if timer_duration_seconds < 0:
            raise ValueError("timer_duration_seconds must be >= 0")
        self._questions: tuple[Question, ...] = tuple(questions)
        self._answers: list[Optional[str]] = [UNANSWERED] * len(self._questions)
        self._duration = int(timer_duration_seconds)
        self._remaining = self._duration
        self._state = SessionState.ACTIVE
        self._auto_submitted = False
        self._score = 0
        self._scheduler = scheduler
        self._on_submit = on_submit
        self._timer: Optional[TimerHandle] = None
        self._arm_timer()

    @classmethod
    def from_minutes(
        cls,
        questions: Sequence[Question],
        minutes: int,
        *,
        scheduler: Optional[IntervalScheduler] = None,
        on_submit: Optional[SubmitListener] = None,
    ) -> "QuizSession":
        return cls(
            questions,
            timer_duration_seconds=max(0, minutes) * 60,
            scheduler=scheduler,
            on_submit=on_submit,
        )

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def user_answers(self) -> tuple[Optional[str], ...]:
        return tuple(self._answers)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def submitted(self) -> bool:
        return self._state is SessionState.SUBMITTED

    @property
    def auto_submitted(self) -> bool:
        return self._auto_submitted

    @property
    def score(self) -> int:
        return self._score

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def timer_duration_seconds(self) -> int:
        return self._duration

    @property
    def time_remaining_seconds(self) -> int:
        return self._remaining

    @property
    def is_timed(self) -> bool:
        return self._duration > 0

    @property
    def timer_running(self) -> bool:
        return self._timer is not None

    def answered_count(self) -> int:
        return sum(1 for answer in self._answers if answer is not UNANSWERED)

    def select_answer(self, index: int, value: str) -> None:
        """Record ``value`` as the answer to question ``index``."""
        if self.submitted:
            raise SessionStateError(
                "Answers are frozen once the quiz has been submitted."
            )
        if not 0 <= index < len(self._questions):
            raise IndexError(f"question index out of range: {index}")
        if value not in self._questions[index].options:
            raise ValueError(
                f"'{value}' is not an option for question {index + 1}"
            )
        self._answers[index] = value

    def tick(self) -> bool:
        """Advance the countdown by one second.

        Returns ``True`` when this tick performed the automatic submission.
        """
        if self.submitted or not self.is_timed:
            return False
        if self._remaining > 0:
            self._remaining -= 1
        if self._remaining == 0:
            return self._transition(auto=True)
        return False

    def submit(self, auto: bool = False) -> int:
        """Submit the attempt and return the score.

        Only the first call transitions; later calls return the stored score.
        """
        self._transition(auto=auto)
        return self._score

    def retake(self) -> "QuizSession":
        """Return a fresh ``ACTIVE`` session over the same questions."""
        if not self.submitted:
            raise SessionStateError("Only a submitted quiz can be retaken.")
        return QuizSession(
            self._questions,
            timer_duration_seconds=self._duration,
            scheduler=self._scheduler,
            on_submit=self._on_submit,
        )

    def start_timer(self, scheduler: IntervalScheduler) -> None:
        """Attach ``scheduler`` and start the countdown if it is not running."""
        self._scheduler = scheduler
        if not self.submitted and self._timer is None:
            self._arm_timer()

    def close(self) -> None:
        """Stop the countdown without submitting (the view is going away)."""
        self._cancel_timer()

    def results(self) -> list[QuestionResult]:
        return [
            QuestionResult(
                index=index,
                question=question,
                selected=selected,
                is_correct=selected is not None and selected == question.answer,
            )
            for index, (question, selected) in enumerate(
                zip(self._questions, self._answers)
            )
        ]

    def _transition(self, *, auto: bool) -> bool:
        if self.submitted:
            return False
        self._cancel_timer()
        self._score = score_answers(self._questions, self._answers)
        self._auto_submitted = auto
        self._state = SessionState.SUBMITTED
        _LOGGER.info(
            "quiz submitted",
            extra={
                "auto": auto,
                "score": self._score,
                "total": len(self._questions),
                "answered": self.answered_count(),
            },
        )
        if self._on_submit is not None:
            self._on_submit(self)
        return True

    def _arm_timer(self) -> None:
        if self.is_timed and self._scheduler is not None:
            self._timer = self._scheduler(TICK_SECONDS, self.tick)

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()
