from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from exam_predictor.cli import app
from exam_predictor.errors import RemoteErrorKind, RemoteServiceError
from exam_predictor.history import DuckDBHistory
from exam_predictor.pipeline.normalize import normalize_questions

runner = CliRunner()


def _use_tmp_state(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("EP_DUCKDB_PATH", str(tmp_path / "history.duckdb"))


def test_predict_saves_prediction_and_lists_history(monkeypatch, tmp_path: Path) -> None:
    _use_tmp_state(monkeypatch, tmp_path)

    def fake_build_generation_client(cfg, on_status=None):
        def client(content, settings):
            records = [{"id": "q1", "text": "What is osmosis?", "probability": 80, "answer": "Water moves."}]
            return normalize_questions(records, settings.question_type)

        return client

    monkeypatch.setattr("exam_predictor.cli.build_generation_client", fake_build_generation_client)
    document = tmp_path / "bio.txt"
    document.write_text("Osmosis notes", encoding="utf-8")

    result = runner.invoke(app, ["predict", str(document), "--type", "theory", "--count", "3"])

    assert result.exit_code == 0, result.output
    assert "What is osmosis?" in result.output
    assert "Prediction Saved" in result.output

    saved = DuckDBHistory(str(tmp_path / "history.duckdb")).load()
    assert [prediction.title for prediction in saved] == ["bio.txt"]

    history = runner.invoke(app, ["history"])
    assert history.exit_code == 0, history.output
    assert "1 saved prediction" in history.output


def test_predict_failure_prints_error_panel(monkeypatch, tmp_path: Path) -> None:
    _use_tmp_state(monkeypatch, tmp_path)

    def fake_build_generation_client(cfg, on_status=None):
        def client(content, settings):
            raise RemoteServiceError("bad key", kind=RemoteErrorKind.AUTHENTICATION, status=401)

        return client

    monkeypatch.setattr("exam_predictor.cli.build_generation_client", fake_build_generation_client)
    document = tmp_path / "bio.txt"
    document.write_text("Osmosis notes", encoding="utf-8")

    result = runner.invoke(app, ["predict", str(document)])

    assert result.exit_code == 1
    assert "Prediction failed" in result.output
    assert "smaller file" in result.output


def test_show_unknown_prediction_is_a_usage_error(monkeypatch, tmp_path: Path) -> None:
    _use_tmp_state(monkeypatch, tmp_path)

    result = runner.invoke(app, ["show", "pred-missing"])

    assert result.exit_code != 0
