"""Question generation service: prompt, provider call, parse and normalize."""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Any, Protocol

from pydantic import ValidationError

from exam_predictor.config import AppConfig
from exam_predictor.core.model_client import chat_completion
from exam_predictor.core.prompt import build_prompt
from exam_predictor.errors import EmptyContentError, PredictorError
from exam_predictor.models import PredictionSettings, Question, dump_model
from exam_predictor.pipeline.normalize import questions_from_completion


class GenerationClient(Protocol):
    """Callable that turns document text into ranked questions, raising PredictorError on failure."""

    def __call__(self, content: str, settings: PredictionSettings) -> list[Question]: ...


def generate_questions(
    content: str,
    settings: PredictionSettings,
    config: AppConfig,
    on_status: Callable[[str], None] | None = None,
    rng: random.Random | None = None,
) -> list[Question]:
    """Generate ranked questions for ``content`` using the configured model."""

    def emit(message: str) -> None:
        if on_status:
            on_status(message)

    if not content or not content.strip():
        raise EmptyContentError("No content provided to generate questions from.")

    emit(
        f"Generating {settings.number_of_questions} {settings.question_type} questions "
        f"with {config.model} (content length: {len(content)} characters)"
    )
    messages = build_prompt(content, settings, max_chars=config.max_content_chars)
    completion = chat_completion(config.backend_config(), messages)
    questions = questions_from_completion(
        completion,
        settings.question_type,
        limit=settings.number_of_questions,
        rng=rng,
        on_status=on_status,
    )
    emit(f"Returning {len(questions)} processed questions.")
    return questions


def build_generation_client(
    config: AppConfig,
    on_status: Callable[[str], None] | None = None,
) -> GenerationClient:
    """Bind ``generate_questions`` to a configuration."""

    def client(content: str, settings: PredictionSettings) -> list[Question]:
        return generate_questions(content, settings, config, on_status=on_status)

    return client


def handle_generate_request(
    body: Any,
    config: AppConfig,
    on_status: Callable[[str], None] | None = None,
) -> tuple[int, dict[str, Any]]:
    """Serve one ``{content, settings}`` request; return ``(status, payload)``."""
    if not isinstance(body, dict):
        return 400, {"error": "Request body must be a JSON object."}
    content = body.get("content")
    if not isinstance(content, str):
        return 400, {"error": "Request body must include a string 'content' field."}
    try:
        settings = PredictionSettings.model_validate(body.get("settings"))
    except ValidationError as exc:
        return 400, {"error": "Invalid prediction settings.", "errorDetails": str(exc)}

    try:
        questions = generate_questions(content, settings, config, on_status=on_status)
    except PredictorError as exc:
        if on_status:
            on_status(f"Error in generate-questions: {exc}")
        return 500, {"error": str(exc) or "Unknown error occurred", "errorDetails": repr(exc)}
    return 200, {"questions": [dump_model(question) for question in questions]}
