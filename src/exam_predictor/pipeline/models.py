"""Value objects shared by pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel, Field


class ModelBackendConfig(BaseModel):
    """Connection and sampling parameters for the chat-completion provider."""

    base_url: str
    timeout: float = Field(gt=0)
    api_key: str = ""
    model: str = "google/gemini-2.5-pro-exp-03-25:free"
    max_tokens: int = 1500
    temperature: float = 0.5
    referer: str = ""
    app_title: str = ""


@dataclass(frozen=True)
class StructuredArray:
    """Model output that contained a parseable JSON array of objects."""

    items: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class FreeText:
    """Model output with no usable JSON; handled by text heuristics."""

    text: str


@dataclass(frozen=True)
class EmptyResponse:
    """Model output that was missing or blank."""


ParsedResponse = Union[StructuredArray, FreeText, EmptyResponse]
