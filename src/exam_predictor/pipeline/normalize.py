"""Normalization of untrusted model records into the strict question schema."""

from __future__ import annotations

import math
import random
from collections.abc import Callable, Iterable
from typing import Any
from uuid import uuid4

from exam_predictor.models import OPTION_COUNT, ObjectiveOption, Question, QuestionType
from exam_predictor.pipeline.models import FreeText, StructuredArray
from exam_predictor.pipeline.parsing import extract_questions_from_text, parse_response

DEFAULT_PROBABILITY = 50
FALLBACK_PROBABILITY = 75
DEFAULT_SOURCE = "Generated from provided content"
DEFAULT_ANSWER = "No sample answer provided"
OPTION_LABELS = ("A", "B", "C", "D")

FALLBACK_TEXT = "What are the key concepts covered in this document?"
FALLBACK_SOURCE = "General content analysis"
FALLBACK_ANSWER = (
    "The document covers several core concepts that are likely to be examined. "
    "Review its main headings, definitions and summary sections."
)
FALLBACK_OPTIONS = (
    "The main concepts and definitions introduced in the document",
    "Details unrelated to the document's subject",
    "Only the document's formatting and layout",
    "None of the above",
)


def coerce_probability(value: Any) -> int:
    """Coerce a model-supplied probability into an integer percentage in [1, 100]."""
    if isinstance(value, bool) or value is None:
        return DEFAULT_PROBABILITY
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_PROBABILITY
    if not math.isfinite(number):
        return DEFAULT_PROBABILITY
    if 0 < number < 1:
        number *= 100
    return max(1, min(100, round(number)))


def _clean_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return " ".join(str(value).split())


def placeholder_options(question_id: str) -> list[ObjectiveOption]:
    """Four generic options with the first marked correct."""
    return [
        ObjectiveOption(id=f"{question_id}-opt-{index}", text=f"Option {label}", is_correct=index == 0)
        for index, label in enumerate(OPTION_LABELS)
    ]


def _correct_hint_index(hint: Any, texts: list[str]) -> int | None:
    hint_text = _clean_text(hint)
    if not hint_text:
        return None
    if len(hint_text) == 1 and hint_text.upper() in OPTION_LABELS:
        index = OPTION_LABELS.index(hint_text.upper())
        return index if index < len(texts) else None
    lowered = hint_text.lower()
    for index, text in enumerate(texts):
        if text.lower() == lowered:
            return index
    return None


def normalize_options(raw_options: Any, question_id: str, correct_hint: Any = None) -> list[ObjectiveOption]:
    """Build exactly four options with exactly one marked correct.

    The first option flagged correct wins; with no flag, ``correct_hint``
    (a letter or option text) is consulted, then the first option is used.
    """
    if not isinstance(raw_options, list):
        return placeholder_options(question_id)

    texts: list[str] = []
    ids: list[str] = []
    flags: list[bool] = []
    for raw in raw_options:
        if isinstance(raw, dict):
            texts.append(_clean_text(raw.get("text") or raw.get("option")))
            ids.append(_clean_text(raw.get("id")))
            flags.append(raw.get("isCorrect") is True or raw.get("is_correct") is True or raw.get("correct") is True)
        elif isinstance(raw, str) and raw.strip():
            texts.append(_clean_text(raw))
            ids.append("")
            flags.append(False)
    if not texts:
        return placeholder_options(question_id)

    texts, ids, flags = texts[:OPTION_COUNT], ids[:OPTION_COUNT], flags[:OPTION_COUNT]
    while len(texts) < OPTION_COUNT:
        texts.append("")
        ids.append("")
        flags.append(False)

    if True in flags:
        correct_index = flags.index(True)
    else:
        hinted = _correct_hint_index(correct_hint, texts)
        correct_index = hinted if hinted is not None else 0

    options: list[ObjectiveOption] = []
    seen_ids: set[str] = set()
    for index, (text, option_id) in enumerate(zip(texts, ids)):
        if not option_id or option_id in seen_ids:
            option_id = f"{question_id}-opt-{index}"
        seen_ids.add(option_id)
        options.append(
            ObjectiveOption(
                id=option_id,
                text=text or f"Option {OPTION_LABELS[index]}",
                is_correct=index == correct_index,
            )
        )
    return options


def normalize_question(
    record: dict[str, Any],
    question_type: QuestionType,
    question_id: str,
    index: int,
) -> Question:
    """Coerce one untrusted record; the requested type always overrides the model's."""
    text = _clean_text(record.get("text") or record.get("question")) or f"Question {index + 1}"
    source = _clean_text(record.get("source")) or DEFAULT_SOURCE
    probability = coerce_probability(record.get("probability"))
    if question_type == "theory":
        answer = str(record.get("answer") or "").strip() or DEFAULT_ANSWER
        return Question(
            id=question_id,
            text=text,
            probability=probability,
            source=source,
            type="theory",
            answer=answer,
        )
    hint = record.get("correctAnswer") or record.get("answer")
    return Question(
        id=question_id,
        text=text,
        probability=probability,
        source=source,
        type="objective",
        options=normalize_options(record.get("options"), question_id, correct_hint=hint),
    )


def fallback_question(question_type: QuestionType, question_id: str | None = None) -> Question:
    """Generic question used when nothing usable survives parsing."""
    question_id = question_id or f"q-fallback-{uuid4().hex[:8]}"
    if question_type == "theory":
        return Question(
            id=question_id,
            text=FALLBACK_TEXT,
            probability=FALLBACK_PROBABILITY,
            source=FALLBACK_SOURCE,
            type="theory",
            answer=FALLBACK_ANSWER,
        )
    return Question(
        id=question_id,
        text=FALLBACK_TEXT,
        probability=FALLBACK_PROBABILITY,
        source=FALLBACK_SOURCE,
        type="objective",
        options=[
            ObjectiveOption(id=f"{question_id}-opt-{index}", text=text, is_correct=index == 0)
            for index, text in enumerate(FALLBACK_OPTIONS)
        ],
    )


def sort_by_probability(questions: Iterable[Question]) -> list[Question]:
    """Sort descending by probability; equal probabilities keep their order."""
    return sorted(questions, key=lambda question: -question.probability)


def normalize_questions(
    records: Iterable[Any],
    question_type: QuestionType,
    limit: int | None = None,
    id_prefix: str | None = None,
) -> list[Question]:
    """Normalize records, cap to ``limit``, synthesize a fallback if empty, and rank."""
    id_prefix = id_prefix or f"q-{uuid4().hex[:8]}"
    questions: list[Question] = []
    seen_ids: set[str] = set()
    for index, record in enumerate(record for record in records if isinstance(record, dict)):
        question_id = _clean_text(record.get("id"))
        if not question_id or question_id in seen_ids:
            question_id = f"{id_prefix}-{index}"
        seen_ids.add(question_id)
        questions.append(normalize_question(record, question_type, question_id, index))

    if limit is not None:
        questions = questions[: max(limit, 0)]
    if not questions:
        questions = [fallback_question(question_type, f"{id_prefix}-fallback")]
    return sort_by_probability(questions)


def questions_from_completion(
    text: str | None,
    question_type: QuestionType,
    limit: int | None = None,
    rng: random.Random | None = None,
    id_prefix: str | None = None,
    on_status: Callable[[str], None] | None = None,
) -> list[Question]:
    """Turn a raw completion into a non-empty ranked question list. Never raises on bad output."""

    def emit(message: str) -> None:
        if on_status:
            on_status(message)

    parsed = parse_response(text)
    records: list[dict[str, Any]]
    if isinstance(parsed, StructuredArray):
        records = parsed.items
        emit(f"Parsed {len(records)} questions from JSON output.")
    elif isinstance(parsed, FreeText):
        records = extract_questions_from_text(parsed.text, question_type, rng=rng)
        snippet = parsed.text[:240].replace("\n", " ")
        emit(f"No JSON array in model output; recovered {len(records)} questions from text (snippet: {snippet!r})")
    else:
        records = []
        emit("Model output was empty.")

    questions = normalize_questions(records, question_type, limit=limit, id_prefix=id_prefix)
    if not records:
        emit("Using a generic fallback question.")
    return questions
