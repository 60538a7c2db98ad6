"""Quiz data model shared by generation, the session and export."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

OPTION_COUNT = 4


class Level(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionType(Enum):
    MCQ = "mcq"
    TRUE_FALSE = "true-false"


@dataclass(frozen=True)
class Question:
    """A generated question with its four options and the correct answer."""

    question: str
    options: tuple[str, ...]
    answer: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Question":
        """Build a question from a decoded JSON object, checking its shape.

        Raises ``ValueError`` when the object does not match the
        ``{question, options, answer}`` contract.
        """
        if not isinstance(data, Mapping):
            raise ValueError("question entry must be an object")
        text = data.get("question")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("question text is required")
        options = data.get("options")
        if not isinstance(options, (list, tuple)):
            raise ValueError("options must be a list")
        if not all(isinstance(opt, str) for opt in options):
            raise ValueError("options must be strings")
        answer = data.get("answer")
        if not isinstance(answer, str):
            raise ValueError("answer must be a string")
        question = cls(question=text.strip(), options=tuple(options), answer=answer)
        validate_question(question)
        return question

    def to_dict(self) -> dict[str, object]:
        return {
            "question": self.question,
            "options": list(self.options),
            "answer": self.answer,
        }


def validate_question(question: Question) -> None:
    """Check option count, distinctness and that the answer is an option."""
    if len(question.options) != OPTION_COUNT:
        raise ValueError(
            f"expected exactly {OPTION_COUNT} options, got {len(question.options)}"
        )
    if len(set(question.options)) != len(question.options):
        raise ValueError("options must be distinct")
    if not all(opt.strip() for opt in question.options):
        raise ValueError("options must be non-empty")
    if question.answer not in question.options:
        raise ValueError("answer must match one of the options")


@dataclass(frozen=True)
class GenerationRequest:
    """Parameters sent to the generation provider alongside document text."""

    content: str
    count: int
    level: Level = Level.EASY
    type: QuestionType = QuestionType.MCQ
    custom: str = ""
    timer: int = 0

    def __post_init__(self) -> None:
        if not self.content.strip():
            raise ValueError("content must be non-empty")
        if isinstance(self.count, bool) or self.count < 1:
            raise ValueError("count must be >= 1")
        if self.timer < 0:
            raise ValueError("timer must be >= 0")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GenerationRequest":
        return cls(
            content=str(data.get("content", "")),
            count=int(data.get("count", 0)),
            level=Level(data.get("level", Level.EASY.value)),
            type=QuestionType(data.get("type", QuestionType.MCQ.value)),
            custom=str(data.get("custom") or ""),
            timer=int(data.get("timer", 0) or 0),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "content": self.content,
            "count": self.count,
            "level": self.level.value,
            "type": self.type.value,
            "custom": self.custom,
            "timer": self.timer,
        }
