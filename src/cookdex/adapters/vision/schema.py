"""Pydantic models describing the vision service payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class VisionBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ChatMessage(VisionBaseModel):
    role: str | None = None
    content: str | None = None


class ChatChoice(VisionBaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: str | None = None


class ChatCompletionResponse(VisionBaseModel):
    choices: list[ChatChoice]

    @property
    def content(self) -> str | None:
        if not self.choices:
            return None
        return self.choices[0].message.content


class ErrorDetail(VisionBaseModel):
    message: str
    type: str | None = None
    code: str | None = None


class ErrorResponse(VisionBaseModel):
    error: ErrorDetail


class RecipeEntryPayload(VisionBaseModel):
    ingredient: str | None = None
    recipe_name: str | None = Field(default=None, alias="recipeName")
    page_number: int | None = Field(default=None, alias="pageNumber")
    confidence: float = 0.0

    _normalize_text = field_validator("ingredient", "recipe_name", mode="before")(_blank_to_none)

    @field_validator("confidence", mode="before")
    @classmethod
    def _default_confidence(cls, value: object) -> object:
        return 0.0 if value is None else value

    @property
    def is_complete(self) -> bool:
        return (
            self.ingredient is not None
            and self.recipe_name is not None
            and self.page_number is not None
        )


class ExtractionPayload(VisionBaseModel):
    recipes: list[RecipeEntryPayload] = Field(default_factory=list["RecipeEntryPayload"])
