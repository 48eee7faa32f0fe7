"""Pydantic models describing the PSA public API payloads."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, int | float):
        return str(value)
    return value


class PsaBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PsaCert(PsaBaseModel):
    cert_number: str | None = Field(default=None, alias="CertNumber")
    subject: str | None = Field(
        default=None,
        validation_alias=AliasChoices("Subject", "CardName", "subject"),
    )
    card_number: str | None = Field(default=None, alias="CardNumber")
    card_grade: str | None = Field(default=None, alias="CardGrade")
    year: str | None = Field(default=None, alias="Year")
    brand: str | None = Field(default=None, alias="Brand")

    _normalize_blank = field_validator(
        "cert_number",
        "subject",
        "card_number",
        "card_grade",
        "year",
        "brand",
        mode="before",
    )(_blank_to_none)


class PsaCertResponse(PsaBaseModel):
    cert: PsaCert | None = Field(default=None, alias="PSACert")
