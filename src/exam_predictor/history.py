"""Persistence ports for the prediction history."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from typing import Protocol

from exam_predictor.db import get_connection, init_schema
from exam_predictor.models import Prediction, dump_model

STORAGE_KEY = "predictions"


class HistoryPort(Protocol):
    """Storage for the ordered prediction history (newest first)."""

    def load(self) -> list[Prediction]: ...

    def save(self, predictions: list[Prediction]) -> None: ...


def serialize_predictions(predictions: Iterable[Prediction]) -> str:
    return json.dumps([dump_model(prediction) for prediction in predictions])


def deserialize_predictions(raw: str) -> list[Prediction]:
    payload = json.loads(raw)
    if not isinstance(payload, list):
        raise ValueError("Stored predictions are not a JSON array.")
    return [Prediction.model_validate(item) for item in payload]


class InMemoryHistory:
    """History kept in process memory."""

    def __init__(self, predictions: Iterable[Prediction] = ()) -> None:
        self._predictions = list(predictions)
        self.save_calls = 0

    def load(self) -> list[Prediction]:
        return list(self._predictions)

    def save(self, predictions: list[Prediction]) -> None:
        self.save_calls += 1
        self._predictions = list(predictions)


class DuckDBHistory:
    """History serialized as one JSON array under a fixed key in DuckDB."""

    def __init__(
        self,
        db_path: str,
        key: str = STORAGE_KEY,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        self.db_path = db_path
        self.key = key
        self._on_status = on_status

    def initialize(self) -> None:
        with get_connection(self.db_path) as conn:
            init_schema(conn)

    def load(self) -> list[Prediction]:
        with get_connection(self.db_path) as conn:
            init_schema(conn)
            row = conn.execute("SELECT value FROM local_storage WHERE key = ?", [self.key]).fetchone()
        if row is None:
            return []
        try:
            return deserialize_predictions(row[0])
        except ValueError as exc:
            if self._on_status:
                self._on_status(f"Failed to parse saved predictions: {exc}")
            return []

    def save(self, predictions: list[Prediction]) -> None:
        with get_connection(self.db_path) as conn:
            init_schema(conn)
            conn.execute(
                "INSERT OR REPLACE INTO local_storage (key, value, updated_at) VALUES (?, ?, current_timestamp)",
                [self.key, serialize_predictions(predictions)],
            )
