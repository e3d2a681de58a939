"""Parsing of raw model completions into candidate question records."""

from __future__ import annotations

import json
import random
import re
from typing import Any

from exam_predictor.errors import ParseError
from exam_predictor.models import OPTION_COUNT, QuestionType
from exam_predictor.pipeline.models import EmptyResponse, FreeText, ParsedResponse, StructuredArray

JSON_ARRAY_RE = re.compile(r"\[\s*\{[\s\S]*\}\s*\]")
QUESTION_START_RE = re.compile(r"(?:^[ \t]*|(?<=[?.!\]])[ \t]+)(?:Q(?:uestion)?\s*)?(\d{1,3})[.)][ \t]+", re.MULTILINE | re.IGNORECASE)
PROBABILITY_RE = re.compile(r"\[\s*(\d{1,3}(?:\.\d+)?)\s*%\s*\]")
OPTION_MARKER_RE = re.compile(r"(?<![A-Za-z0-9])\(?([A-Da-d])[).][ \t]+")
SOURCE_LINE_RE = re.compile(r"^\s*source\s*:\s*(.+)$", re.IGNORECASE | re.MULTILINE)
ANSWER_PREFIX_RE = re.compile(r"^\s*(?:sample\s+)?answer\s*[:\-]\s*", re.IGNORECASE)
CORRECT_MARKERS = ("[correct]", "(correct)", "*", "✓", "✔")
HEURISTIC_PROBABILITY_RANGE = (40, 90)


def _load_array(candidate: str) -> list[dict[str, Any]]:
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON: {exc}") from exc
    if isinstance(payload, dict) and isinstance(payload.get("questions"), list):
        payload = payload["questions"]
    if not isinstance(payload, list):
        raise ParseError("JSON payload is not an array.")
    items = [item for item in payload if isinstance(item, dict)]
    if payload and not items:
        raise ParseError("JSON array holds no question objects.")
    return items


def _array_candidates(text: str) -> list[str]:
    candidates: list[str] = []
    first, last = text.find("["), text.rfind("]")
    if first != -1 and last > first:
        candidates.append(text[first : last + 1])
    match = JSON_ARRAY_RE.search(text)
    if match and match.group(0) not in candidates:
        candidates.append(match.group(0))
    return candidates


def parse_response(text: str | None) -> ParsedResponse:
    """Resolve a completion into a structured array, free text, or nothing."""
    if text is None or not text.strip():
        return EmptyResponse()
    stripped = text.strip()
    if stripped.startswith("{"):
        try:
            return StructuredArray(items=_load_array(stripped))
        except ParseError:
            pass
    for candidate in _array_candidates(stripped):
        try:
            return StructuredArray(items=_load_array(candidate))
        except ParseError:
            continue
    return FreeText(text=stripped)


def _split_question_blocks(text: str) -> list[str]:
    starts = list(QUESTION_START_RE.finditer(text))
    blocks: list[str] = []
    for index, match in enumerate(starts):
        end = starts[index + 1].start() if index + 1 < len(starts) else len(text)
        blocks.append(text[match.end() : end].strip())
    return [block for block in blocks if block]


def _strip_correct_marker(text: str) -> tuple[str, bool]:
    lowered = text.lower()
    for marker in CORRECT_MARKERS:
        if marker in lowered:
            index = lowered.index(marker)
            cleaned = (text[:index] + text[index + len(marker) :]).strip()
            return cleaned, True
    return text.strip(), False


def _parse_options(body: str, rng: random.Random) -> list[dict[str, Any]] | None:
    markers = list(OPTION_MARKER_RE.finditer(body))
    labels = [match.group(1).upper() for match in markers]
    start = next((i for i, label in enumerate(labels) if label == "A"), None)
    if start is None or labels[start : start + OPTION_COUNT] != ["A", "B", "C", "D"]:
        return None
    markers = markers[start : start + OPTION_COUNT]

    options: list[dict[str, Any]] = []
    for index, match in enumerate(markers):
        end = markers[index + 1].start() if index + 1 < len(markers) else len(body)
        raw = body[match.end() : end]
        raw = raw.split("\n", 1)[0] if index == len(markers) - 1 else raw
        text, correct = _strip_correct_marker(" ".join(raw.split()))
        options.append({"id": match.group(1).lower(), "text": text, "isCorrect": correct})

    if not any(option["isCorrect"] for option in options):
        options[rng.randrange(OPTION_COUNT)]["isCorrect"] = True
    return options


def _looks_like_answer(line: str) -> str | None:
    if "answer" in line.lower() or ":" in line:
        return ANSWER_PREFIX_RE.sub("", line).strip() or None
    return None


def _candidate_answer(first_line: str, rest: str) -> tuple[str, str | None]:
    question, mark, trailing = first_line.partition("?")
    if mark and trailing.strip():
        answer = _looks_like_answer(trailing.strip())
        if answer:
            return question + mark, answer
    for line in rest.splitlines():
        if line.strip():
            return first_line, _looks_like_answer(line.strip())
    return first_line, None


def extract_questions_from_text(
    text: str,
    question_type: QuestionType,
    rng: random.Random | None = None,
) -> list[dict[str, Any]]:
    """Pull numbered questions out of prose when the model ignored the JSON format."""
    rng = rng or random.Random()
    records: list[dict[str, Any]] = []
    for block in _split_question_blocks(text):
        first_line, _, rest = block.partition("\n")
        probability_match = PROBABILITY_RE.search(first_line)
        if probability_match:
            probability: Any = probability_match.group(1)
            first_line = PROBABILITY_RE.sub("", first_line)
        else:
            probability = rng.randint(*HEURISTIC_PROBABILITY_RANGE)

        record: dict[str, Any] = {"probability": probability}
        source_match = SOURCE_LINE_RE.search(rest)
        if source_match:
            record["source"] = source_match.group(1).strip()
            rest = SOURCE_LINE_RE.sub("", rest)

        if question_type == "objective":
            inline_option = OPTION_MARKER_RE.search(first_line)
            if inline_option and inline_option.group(1).upper() == "A":
                rest = f"{first_line[inline_option.start() :]}\n{rest}"
                first_line = first_line[: inline_option.start()]
            options = _parse_options(rest, rng)
            if options is not None:
                record["options"] = options
        else:
            first_line, answer = _candidate_answer(first_line, rest)
            if answer:
                record["answer"] = answer

        question_text = " ".join(first_line.split())
        if not question_text:
            continue
        record["text"] = question_text
        records.append(record)
    return records
