"""Pydantic models describing the Card Ladder estimate payload."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CardLadderBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EstimatePayload(CardLadderBaseModel):
    """``{"estimatedValue": 1804, "confidence": 3, "grade": "g10"}``."""

    estimated_value: float = Field(alias="estimatedValue")
    confidence: int = 0
    grade: str | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _missing_confidence(cls, value: object) -> object:
        return 0 if value is None else value

    @field_validator("grade", mode="before")
    @classmethod
    def _grade_text(cls, value: object) -> object:
        if value is None:
            return None
        text = str(value).strip()
        return text or None
