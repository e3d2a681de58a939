"""Plain-text export of prediction results for copying and downloading."""

from __future__ import annotations

from pathlib import Path

from exam_predictor.models import Prediction, Question


def format_question(question: Question, number: int) -> str:
    lines = [f"{number}. {question.text} [{question.probability}%]"]
    if question.type == "objective" and question.options:
        lines.extend(f"{'✓ ' if option.is_correct else '  '}{option.text}" for option in question.options)
    elif question.type == "theory" and question.answer:
        lines.append(f"Answer: {question.answer}")
    lines.append(f"Source: {question.source}")
    return "\n".join(lines) + "\n"


def format_questions_text(questions: list[Question]) -> str:
    """Render questions in the copy/download text format."""
    return "\n".join(format_question(question, number) for number, question in enumerate(questions, start=1))


def download_filename(prediction: Prediction) -> str:
    stem = Path(prediction.title).stem or "prediction"
    return f"{stem}-questions.txt"


def write_download(prediction: Prediction, output: Path) -> Path:
    """Write a prediction to ``output``; a directory receives the default file name."""
    path = output / download_filename(prediction) if output.is_dir() else output
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_questions_text(prediction.questions), encoding="utf-8")
    return path
