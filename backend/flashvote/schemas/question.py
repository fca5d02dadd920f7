"""Pydantic schemas for Questions and Options."""
from __future__ import annotations
from typing import Annotated, Optional
from pydantic import Field, StringConstraints, model_validator

from flashvote.models.question import QuestionType, QuestionStatus
from flashvote.schemas.base import CamelModel

OptionLabel = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=60)]
Prompt = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class QuestionCreate(CamelModel):
    type: QuestionType
    prompt: Prompt
    options: Optional[list[OptionLabel]] = None

    @model_validator(mode="after")
    def _options_match_type(self):
        if self.type.has_options and not self.options:
            raise ValueError(f"{self.type.value} questions require at least one option")
        if not self.type.has_options and self.options:
            raise ValueError("text questions cannot have options")
        return self


class QuestionUpdate(CamelModel):
    prompt: Optional[Prompt] = None
    options: Optional[Annotated[list[OptionLabel], Field(min_length=1)]] = None
    order: Optional[Annotated[int, Field(ge=0)]] = None

    @model_validator(mode="after")
    def _require_a_field(self):
        if self.prompt is None and self.options is None and self.order is None:
            raise ValueError("At least one of prompt, options or order must be supplied")
        return self


class OptionOut(CamelModel):
    id: str
    label: str
    order: int


class QuestionOut(CamelModel):
    id: str
    order: int
    type: QuestionType
    prompt: str
    status: QuestionStatus
    options: list[OptionOut] = []
