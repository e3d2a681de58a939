"""Prompt construction for exam-question generation."""

from __future__ import annotations

import re

from exam_predictor.models import OPTION_COUNT, PredictionSettings

DEFAULT_MAX_CONTENT_CHARS = 8000
TRUNCATION_MARKER = "...(content truncated for token limit)"
BINARY_SIGNATURES = ("PK\x03\x04", "%PDF")
BINARY_NOISE_RATIO = 0.1
WHITESPACE_RE = re.compile(r"\s+")


def looks_binary(content: str, sample_size: int = 2048) -> bool:
    """Heuristically detect content that was decoded from a binary file."""
    head = content[:sample_size]
    if not head:
        return False
    if head.startswith(BINARY_SIGNATURES) or "%PDF" in head[:1024]:
        return True
    noisy = sum(1 for ch in head if ch == "\ufffd" or (not ch.isprintable() and ch not in "\n\r\t"))
    return noisy / len(head) > BINARY_NOISE_RATIO


def _printable_sample(content: str, limit: int) -> str:
    printable = "".join(ch if ch.isprintable() else " " for ch in content.replace("\ufffd", " "))
    return WHITESPACE_RE.sub(" ", printable).strip()[:limit]


def prepare_content(content: str, max_chars: int = DEFAULT_MAX_CONTENT_CHARS) -> str:
    """Fit document text into the prompt budget, flagging binary input."""
    if looks_binary(content):
        sample = _printable_sample(content, max_chars // 2)
        return (
            "This appears to be a binary document file, so the text below is a noisy sample. "
            f"Extract the key concepts you can recognize from it: {sample}"
        )
    if len(content) > max_chars:
        return content[:max_chars] + TRUNCATION_MARKER
    return content


def _shape_example(settings: PredictionSettings) -> str:
    if settings.question_type == "theory":
        payload = '"answer": "Sample answer"'
    else:
        payload = (
            '"options": [{"id": "a", "text": "Option", "isCorrect": true}, '
            '{"id": "b", "text": "Option", "isCorrect": false}, '
            '{"id": "c", "text": "Option", "isCorrect": false}, '
            '{"id": "d", "text": "Option", "isCorrect": false}]'
        )
    return (
        "[\n"
        "  {\n"
        '    "id": "q1",\n'
        '    "text": "Question text",\n'
        '    "probability": 85,\n'
        '    "source": "Where in the content this comes from",\n'
        f'    "type": "{settings.question_type}",\n'
        f"    {payload}\n"
        "  }\n"
        "]"
    )


def build_prompt(
    content: str,
    settings: PredictionSettings,
    max_chars: int = DEFAULT_MAX_CONTENT_CHARS,
) -> list[dict[str, str]]:
    """Build the single-message chat prompt asking for a JSON question array."""
    count = settings.number_of_questions
    if settings.question_type == "theory":
        type_rule = "Provide a concise sample answer for each question."
        label = "theory (open-ended)"
    else:
        type_rule = (
            f"Provide exactly {OPTION_COUNT} options labelled A to D for each question, "
            "with exactly one option marked isCorrect true."
        )
        label = "objective (multiple-choice)"
    user = (
        f"Generate exactly {count} {label} exam questions based on the content below.\n\n"
        "For each question:\n"
        "- Estimate the probability (integer 1-100) that it appears in an exam.\n"
        f"- {type_rule}\n"
        "- Include a source describing where in the content the question comes from.\n\n"
        "Return ONLY a valid JSON array with this shape, no markdown or commentary:\n"
        f"{_shape_example(settings)}\n\n"
        "Content:\n"
        f"{prepare_content(content, max_chars)}\n"
    )
    return [{"role": "user", "content": user}]
