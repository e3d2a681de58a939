from __future__ import annotations

import json
import random

import pytest

from exam_predictor.pipeline.normalize import (
    FALLBACK_PROBABILITY,
    coerce_probability,
    fallback_question,
    normalize_options,
    normalize_questions,
    questions_from_completion,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (150, 100),
        (-5, 1),
        (0, 1),
        ("85%", 85),
        (" 42 ", 42),
        (72.6, 73),
        (0.9, 90),
        ("very likely", 50),
        (None, 50),
        (True, 50),
        (float("nan"), 50),
        (10**400, 50),
    ],
)
def test_coerce_probability(value, expected: int) -> None:
    assert coerce_probability(value) == expected


def test_probability_over_100_is_clamped() -> None:
    completion = json.dumps(
        {
            "questions": [
                {
                    "id": "q1",
                    "text": "What is osmosis?",
                    "probability": 150,
                    "source": "p.4",
                    "type": "theory",
                    "answer": "...",
                }
            ]
        }
    )

    questions = questions_from_completion(completion, "theory", limit=5)

    assert len(questions) == 1
    assert questions[0].id == "q1"
    assert questions[0].probability == 100
    assert questions[0].answer == "..."


def test_plain_prose_synthesizes_one_fallback_question() -> None:
    questions = questions_from_completion("Sorry, I cannot help with that document.", "objective", limit=5)

    assert len(questions) == 1
    question = questions[0]
    assert question.probability == FALLBACK_PROBABILITY
    assert question.type == "objective"
    assert [option.is_correct for option in question.options] == [True, False, False, False]


def test_empty_completion_synthesizes_theory_fallback() -> None:
    questions = questions_from_completion("", "theory")

    assert len(questions) == 1
    assert questions[0].answer


def test_objective_questions_missing_options_get_placeholders() -> None:
    records = [{"id": f"q{i}", "text": f"Question {i}", "probability": 90 - i} for i in range(5)]

    questions = normalize_questions(records, "objective", limit=5)

    assert len(questions) == 5
    for question in questions:
        assert len(question.options) == 4
        assert [option.is_correct for option in question.options] == [True, False, False, False]
        assert [option.text for option in question.options] == ["Option A", "Option B", "Option C", "Option D"]
        assert len({option.id for option in question.options}) == 4


def test_type_is_forced_to_requested_type() -> None:
    records = [{"text": "Pick one", "type": "objective", "options": [{"text": "x", "isCorrect": True}]}]

    questions = normalize_questions(records, "theory", id_prefix="q-test")

    assert questions[0].type == "theory"
    assert questions[0].options is None
    assert questions[0].answer == "No sample answer provided"
    assert questions[0].id == "q-test-0"


def test_normalize_options_keeps_first_correct_flag_only() -> None:
    raw = [
        {"id": "a", "text": "one", "isCorrect": False},
        {"id": "b", "text": "two", "isCorrect": True},
        {"id": "c", "text": "three", "isCorrect": True},
        {"id": "d", "text": "four"},
    ]

    options = normalize_options(raw, "q1")

    assert [option.is_correct for option in options] == [False, True, False, False]
    assert [option.id for option in options] == ["a", "b", "c", "d"]


def test_normalize_options_pads_truncates_and_uses_answer_hint() -> None:
    padded = normalize_options(["alpha", "beta", "gamma"], "q1", correct_hint="C")
    truncated = normalize_options([{"text": str(i)} for i in range(6)], "q2", correct_hint="nothing matches")

    assert [option.text for option in padded] == ["alpha", "beta", "gamma", "Option D"]
    assert [option.is_correct for option in padded] == [False, False, True, False]
    assert [option.id for option in padded] == ["q1-opt-0", "q1-opt-1", "q1-opt-2", "q1-opt-3"]
    assert len(truncated) == 4
    assert truncated[0].is_correct


def test_duplicate_or_missing_ids_are_regenerated() -> None:
    records = [
        {"id": "q1", "text": "A", "probability": 10},
        {"id": "q1", "text": "B", "probability": 20},
        {"text": "C", "probability": 30},
    ]

    questions = normalize_questions(records, "theory", id_prefix="gen")

    assert {question.id for question in questions} == {"q1", "gen-1", "gen-2"}


def test_sorted_descending_with_stable_ties() -> None:
    records = [
        {"id": "first", "text": "1", "probability": 60},
        {"id": "second", "text": "2", "probability": 90},
        {"id": "third", "text": "3", "probability": 60},
        {"id": "fourth", "text": "4", "probability": "not a number"},
    ]

    questions = normalize_questions(records, "theory")

    assert [question.id for question in questions] == ["second", "first", "third", "fourth"]
    assert [question.probability for question in questions] == [90, 60, 60, 50]


def test_result_is_capped_at_requested_count_but_never_padded() -> None:
    records = [{"text": f"Q{i}", "probability": 50} for i in range(8)]

    assert len(normalize_questions(records, "theory", limit=3)) == 3
    assert len(normalize_questions(records[:2], "theory", limit=10)) == 2


def test_free_text_completion_goes_through_heuristics() -> None:
    completion = "1. What is osmosis? [88%]\nAnswer: Water diffusion.\n2. Define entropy. [30%]\n"

    questions = questions_from_completion(completion, "theory", rng=random.Random(1))

    assert questions[0].text == "What is osmosis?"
    assert questions[0].probability == 88
    assert questions[0].answer == "Water diffusion."
    assert questions[1].answer == "No sample answer provided"
    assert all(1 <= question.probability <= 100 for question in questions)


def test_fallback_question_shapes() -> None:
    theory = fallback_question("theory", "fb")
    objective = fallback_question("objective", "fb")

    assert theory.answer and theory.options is None
    assert len(objective.options) == 4
    assert objective.options[0].is_correct


def test_huge_integer_probability_does_not_crash_normalization() -> None:
    completion = json.dumps([{"text": "What is osmosis?", "probability": 10**400}])

    questions = questions_from_completion(completion, "theory")

    assert questions[0].probability == 50
