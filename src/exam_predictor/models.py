"""Domain models for exam-question predictions."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

QuestionType = Literal["theory", "objective"]
QUESTION_TYPES: tuple[str, ...] = ("theory", "objective")
MIN_QUESTIONS = 1
MAX_QUESTIONS = 20
OPTION_COUNT = 4


class ObjectiveOption(BaseModel):
    """One answer choice of a multiple-choice question."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Option ID, unique within its question.")
    text: str = Field(description="Option text.")
    is_correct: bool = Field(default=False, alias="isCorrect")


class Question(BaseModel):
    """A predicted exam question with its likelihood estimate."""

    id: str
    text: str
    probability: int = Field(ge=1, le=100, description="Estimated chance of appearing (percent).")
    source: str = Field(description="Where in the document the question is believed to originate.")
    type: QuestionType
    answer: str | None = None
    options: list[ObjectiveOption] | None = None

    @model_validator(mode="after")
    def _check_type_payload(self) -> Question:
        if self.type == "theory":
            if not self.answer or self.options is not None:
                raise ValueError("theory questions carry an answer and no options")
        else:
            if self.options is None or len(self.options) != OPTION_COUNT or self.answer is not None:
                raise ValueError(f"objective questions carry exactly {OPTION_COUNT} options and no answer")
        return self


class PredictionSettings(BaseModel):
    """Parameters of one prediction request."""

    model_config = ConfigDict(populate_by_name=True)

    question_type: QuestionType = Field(alias="questionType")
    number_of_questions: int = Field(default=5, alias="numberOfQuestions")

    @field_validator("number_of_questions", mode="before")
    @classmethod
    def _clamp_count(cls, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError("numberOfQuestions must be an integer")
        try:
            count = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("numberOfQuestions must be an integer") from exc
        return max(MIN_QUESTIONS, min(MAX_QUESTIONS, count))


class Prediction(BaseModel):
    """One completed generation run: a document and its ranked questions."""

    id: str
    date: str = Field(description="ISO-8601 creation timestamp.")
    title: str = Field(description="Source file name.")
    questions: list[Question]
    settings: PredictionSettings


def dump_model(model: BaseModel) -> dict[str, Any]:
    """Serialize a model to the camelCase JSON shape used on the wire and in storage."""
    return model.model_dump(by_alias=True, exclude_none=True, mode="json")
