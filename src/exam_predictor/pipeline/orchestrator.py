"""Prediction orchestration: extraction, generation with retries, and history."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from exam_predictor.core.extract import UploadedFile, check_file_type
from exam_predictor.core.retry import call_with_retry
from exam_predictor.errors import (
    EmptyContentError,
    PredictionInProgressError,
    PredictorError,
    UnsupportedFileTypeError,
    user_message,
)
from exam_predictor.history import HistoryPort
from exam_predictor.models import Prediction, PredictionSettings, Question
from exam_predictor.pipeline.generation import GenerationClient
from exam_predictor.pipeline.normalize import fallback_question, sort_by_probability

NoticeLevel = Literal["info", "success", "warning", "error"]


@dataclass(frozen=True)
class Notice:
    """Transient user notification."""

    title: str
    description: str
    level: NoticeLevel = "info"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PredictionOrchestrator:
    """Coordinates one user's prediction runs and their saved history.

    Only one generation may run at a time; ``predict`` returns ``None`` on
    failure and records the error in ``last_error`` after notifying.
    """

    def __init__(
        self,
        history: HistoryPort,
        generate: GenerationClient,
        max_retries: int = 2,
        retry_base_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now,
        on_status: Callable[[str], None] | None = None,
        on_notice: Callable[[Notice], None] | None = None,
    ) -> None:
        self._history = history
        self._generate = generate
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._sleep = sleep
        self._clock = clock
        self._on_status = on_status
        self._on_notice = on_notice
        self._predictions: list[Prediction] = history.load()
        self.current_prediction: Prediction | None = None
        self.is_loading = False
        self.last_error: PredictorError | None = None

    @property
    def predictions(self) -> list[Prediction]:
        return list(self._predictions)

    def _emit(self, message: str) -> None:
        if self._on_status:
            self._on_status(message)

    def _notify(self, title: str, description: str, level: NoticeLevel = "info") -> None:
        if self._on_notice:
            self._on_notice(Notice(title=title, description=description, level=level))

    def _persist(self) -> None:
        self._history.save(list(self._predictions))

    def _new_prediction_id(self, now: datetime) -> str:
        base = f"pred-{int(now.timestamp() * 1000)}"
        taken = {prediction.id for prediction in self._predictions}
        if self.current_prediction is not None:
            taken.add(self.current_prediction.id)
        candidate, suffix = base, 1
        while candidate in taken:
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate

    def _fail(self, error: PredictorError) -> None:
        self.last_error = error
        self._emit(f"Failed to predict questions: {error}")
        title = "Invalid File Type" if isinstance(error, UnsupportedFileTypeError) else "Prediction Failed"
        self._notify(title, user_message(error), level="error")

    def _read_upload(self, upload: UploadedFile) -> str:
        try:
            limited = check_file_type(upload.name)
        except UnsupportedFileTypeError:
            upload.close()
            raise
        if limited:
            self._notify(
                "Limited Support",
                "Full text extraction is only supported for TXT files. "
                "For PDF and DOCX, only partial content might be extracted.",
                level="warning",
            )
        content = upload.read_text()
        if not content.strip():
            raise EmptyContentError(f"{upload.name} contains no readable text.")
        return content

    def predict(self, upload: UploadedFile, settings: PredictionSettings) -> Prediction | None:
        """Generate a new current prediction from an uploaded file."""
        if self.is_loading:
            raise PredictionInProgressError("A prediction is already in progress.")
        self.is_loading = True
        self.last_error = None
        try:
            try:
                content = self._read_upload(upload)
            except PredictorError as exc:
                self._fail(exc)
                return None

            outcome = call_with_retry(
                lambda: self._generate(content, settings),
                max_retries=self._max_retries,
                base_delay=self._retry_base_delay,
                sleep=self._sleep,
                on_status=self._on_status,
            )
            if outcome.error is not None:
                self._fail(outcome.error)
                return None

            questions: list[Question] = sort_by_probability(outcome.value or [])
            if not questions:
                questions = [fallback_question(settings.question_type)]
            now = self._clock()
            prediction = Prediction(
                id=self._new_prediction_id(now),
                date=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
                title=upload.name,
                questions=questions,
                settings=settings,
            )
            self.current_prediction = prediction
            self._emit(f"Predicted {len(questions)} questions for {upload.name} in {outcome.attempts} attempt(s).")
            return prediction
        finally:
            self.is_loading = False

    def get(self, prediction_id: str) -> Prediction | None:
        return next((p for p in self._predictions if p.id == prediction_id), None)

    def open_prediction(self, prediction_id: str) -> Prediction | None:
        """Make a saved prediction the current one."""
        prediction = self.get(prediction_id)
        if prediction is not None:
            self.current_prediction = prediction
        return prediction

    def save(self, prediction: Prediction) -> bool:
        """Add a prediction to the front of the history; duplicates are ignored."""
        if self.get(prediction.id) is not None:
            self._notify("Already Saved", "This prediction is already in Past Predictions.", level="warning")
            return False
        self._predictions.insert(0, prediction)
        self._persist()
        self._notify("Prediction Saved", "Your prediction has been saved to Past Predictions.", level="success")
        return True

    def delete(self, prediction_id: str) -> bool:
        """Remove a prediction by id; unknown ids are a no-op."""
        remaining = [p for p in self._predictions if p.id != prediction_id]
        if len(remaining) == len(self._predictions):
            return False
        self._predictions = remaining
        self._persist()
        self._notify("Prediction Deleted", "The prediction has been removed from your history.", level="success")
        return True

    def regenerate(self, upload: UploadedFile, settings: PredictionSettings) -> Prediction | None:
        """Save the current prediction, then generate a replacement."""
        if self.is_loading:
            raise PredictionInProgressError("A prediction is already in progress.")
        if self.current_prediction is not None and self.get(self.current_prediction.id) is None:
            self.save(self.current_prediction)
        return self.predict(upload, settings)
