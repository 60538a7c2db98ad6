"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .models import GenerationRequest, Level, Question, QuestionType


class GenerateIn(BaseModel):
    content: str = Field(min_length=1)
    count: int = Field(ge=1)
    level: Literal["easy", "medium", "hard"] = "easy"
    type: Literal["mcq", "true-false"] = "mcq"
    custom: Optional[str] = None
    timer: int = Field(default=0, ge=0)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            content=self.content,
            count=self.count,
            level=Level(self.level),
            type=QuestionType(self.type),
            custom=self.custom or "",
            timer=self.timer,
        )


class QuestionOut(BaseModel):
    question: str
    options: List[str]
    answer: str

    @classmethod
    def from_question(cls, question: Question) -> "QuestionOut":
        return cls(
            question=question.question,
            options=list(question.options),
            answer=question.answer,
        )


class GenerateOut(BaseModel):
    questions: List[QuestionOut]


class UploadOut(BaseModel):
    text: str


class ErrorOut(BaseModel):
    error: str
