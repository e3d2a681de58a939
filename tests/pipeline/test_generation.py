from __future__ import annotations

import json

import pytest

from exam_predictor.config import AppConfig
from exam_predictor.errors import EmptyContentError, RemoteErrorKind, RemoteServiceError
from exam_predictor.models import PredictionSettings
from exam_predictor.pipeline.generation import generate_questions, handle_generate_request


def _config() -> AppConfig:
    return AppConfig(openrouter_api_key="sk-test", model="test-model", max_content_chars=100)


def _objective_completion(count: int) -> str:
    return json.dumps(
        [{"id": f"q{i}", "text": f"Question {i}", "probability": 50 + i, "type": "objective"} for i in range(count)]
    )


def test_generate_questions_builds_prompt_and_normalizes(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def fake_chat_completion(config, messages):
        captured["config"] = config
        captured["messages"] = messages
        return _objective_completion(5)

    monkeypatch.setattr("exam_predictor.pipeline.generation.chat_completion", fake_chat_completion)

    questions = generate_questions(
        "Cells " * 50,
        PredictionSettings(question_type="objective", number_of_questions=5),
        _config(),
    )

    assert [question.id for question in questions] == ["q4", "q3", "q2", "q1", "q0"]
    assert all(len(question.options) == 4 and question.options[0].is_correct for question in questions)
    assert captured["config"].api_key == "sk-test"
    assert captured["config"].model == "test-model"
    assert "(content truncated for token limit)" in captured["messages"][0]["content"]


def test_generate_questions_rejects_blank_content(monkeypatch) -> None:
    monkeypatch.setattr(
        "exam_predictor.pipeline.generation.chat_completion",
        lambda config, messages: pytest.fail("provider should not be called"),
    )

    with pytest.raises(EmptyContentError):
        generate_questions("   \n", PredictionSettings(question_type="theory"), _config())


def test_handle_generate_request_returns_wire_payload(monkeypatch) -> None:
    monkeypatch.setattr(
        "exam_predictor.pipeline.generation.chat_completion",
        lambda config, messages: '[{"id": "q1", "text": "What is osmosis?", "probability": 150, "answer": "..."}]',
    )

    status, payload = handle_generate_request(
        {"content": "Osmosis notes", "settings": {"questionType": "theory", "numberOfQuestions": 3}},
        _config(),
    )

    assert status == 200
    assert payload == {
        "questions": [
            {
                "id": "q1",
                "text": "What is osmosis?",
                "probability": 100,
                "source": "Generated from provided content",
                "type": "theory",
                "answer": "...",
            }
        ]
    }


def test_handle_generate_request_reports_provider_errors(monkeypatch) -> None:
    def failing_chat_completion(config, messages):
        raise RemoteServiceError("Rate limit exceeded", kind=RemoteErrorKind.RATE_LIMIT, status=429)

    monkeypatch.setattr("exam_predictor.pipeline.generation.chat_completion", failing_chat_completion)

    status, payload = handle_generate_request(
        {"content": "Notes", "settings": {"questionType": "objective", "numberOfQuestions": 2}},
        _config(),
    )

    assert status == 500
    assert payload["error"] == "Rate limit exceeded"
    assert "RemoteServiceError" in payload["errorDetails"]


@pytest.mark.parametrize(
    "body",
    [
        None,
        {"settings": {"questionType": "theory", "numberOfQuestions": 2}},
        {"content": "x", "settings": {"questionType": "essay", "numberOfQuestions": 2}},
    ],
)
def test_handle_generate_request_rejects_malformed_bodies(body) -> None:
    status, payload = handle_generate_request(body, _config())

    assert status == 400
    assert payload["error"]
