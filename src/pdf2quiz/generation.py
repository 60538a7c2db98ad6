"""Question generation through the hosted chat-completion provider."""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional, Tuple

from .core.logging import get_logger
from .models import OPTION_COUNT, GenerationRequest, Question

__all__ = [
    "DEFAULT_MODEL",
    "GenerationError",
    "build_prompts",
    "strip_code_fences",
    "parse_questions",
    "generate",
]

DEFAULT_MODEL = "gpt-4o-mini"

_LOGGER = get_logger("generation")
_FENCE_RE = re.compile(r"```(?:json)?\s*\n?|```", re.IGNORECASE)


class GenerationError(RuntimeError):
    """Raised when questions cannot be produced for a request."""


def build_prompts(request: GenerationRequest) -> Tuple[str, str]:
    """Return the (system, user) prompt pair for ``request``."""

    sys_prompt = (
        "You are an AI that generates quiz questions based on the given "
        "content."
    )
    custom = request.custom.strip()
    custom_block = f"\n\nAdditional user instruction: {custom}" if custom else ""
    user_prompt = (
        f"Generate exactly {request.count} "
        f"{request.type.value.upper()} questions at "
        f"{request.level.value.upper()} difficulty level from the following "
        f"content:\n\n{request.content}"
        f"{custom_block}\n\n"
        "Return your response as a **valid JSON array** containing exactly "
        f"{request.count} objects.\n\n"
        "Each object must have the following keys:\n"
        '- "question": string (the quiz question)\n'
        f'- "options": string[] (exactly {OPTION_COUNT} distinct options)\n'
        '- "answer": string (must match one of the options)\n\n'
        "Strictly return only the JSON array. Do not include explanations, "
        "comments, markdown, or any additional text. Ensure all strings are "
        "properly quoted."
    )
    return sys_prompt, user_prompt


def strip_code_fences(content: str) -> str:
    """Remove Markdown code fences a model may wrap around its JSON."""

    return _FENCE_RE.sub("", content).strip()


def parse_questions(content: str, *, expected: int) -> List[Question]:
    """Parse model output into exactly ``expected`` questions.

    Any deviation (bad JSON, wrong count, malformed entry) raises
    :class:`GenerationError`; partial results are never returned.
    """

    cleaned = strip_code_fences(content)
    if not cleaned:
        raise GenerationError("Generation provider returned an empty response.")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise GenerationError("Generation response is not valid JSON.") from exc
    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        data = data["questions"]
    if not isinstance(data, list):
        raise GenerationError("Generation response is not a JSON array.")
    if len(data) != expected:
        raise GenerationError(
            f"Expected {expected} question(s), received {len(data)}."
        )
    questions: List[Question] = []
    for index, entry in enumerate(data, start=1):
        try:
            questions.append(Question.from_dict(entry))
        except ValueError as exc:
            raise GenerationError(f"Question {index} is invalid: {exc}") from exc
    return questions


def _chat_completion_content(
    client: Any,
    *,
    model: str,
    system_prompt: str,
    user_prompt: str,
    temperature: float,
    max_tokens: int,
) -> str:
    try:
        resp = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        raw_content = resp.choices[0].message.content
    except Exception as exc:
        raise GenerationError("Generation provider call failed.") from exc
    return (raw_content or "").strip()


def generate(
    request: GenerationRequest,
    *,
    client: Any,
    model: str = DEFAULT_MODEL,
    temperature: float = 0.2,
    max_tokens: int = 4000,
    system_prompt: Optional[str] = None,
) -> List[Question]:
    """Generate ``request.count`` questions from ``request.content``.

    Makes exactly one provider call. No retries.
    """

    sys_prompt, user_prompt = build_prompts(request)
    _LOGGER.info(
        "generation requested",
        extra={
            "count": request.count,
            "level": request.level.value,
            "question_type": request.type.value,
            "content_chars": len(request.content),
            "model": model,
        },
    )
    content = _chat_completion_content(
        client,
        model=model,
        system_prompt=system_prompt or sys_prompt,
        user_prompt=user_prompt,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    try:
        questions = parse_questions(content, expected=request.count)
    except GenerationError:
        _LOGGER.warning(
            "generation response rejected",
            extra={"response_chars": len(content)},
        )
        raise
    _LOGGER.info("generation succeeded", extra={"count": len(questions)})
    return questions
