"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class WriteMode(StrEnum):
    """Which record fields a run is allowed to fill.

    Values match the ``WRITE_MODE`` environment setting.
    """

    VALUE_AND_METADATA = "BOTH"
    METADATA_ONLY = "PSA"
    VALUE_ONLY = "CL"
    CONFIDENCE_ONLY = "CONFIDENCE"


class ValueChoice(StrEnum):
    """Which acquired number becomes the written quote."""

    RAW = "RAW"
    HIGHER = "HIGHER"


class RecordField(StrEnum):
    """Logical record fields, mapped to store columns by ``ColumnMap``."""

    ITEM_ID = "item_id"
    QUOTED_VALUE = "quoted_value"
    CONFIDENCE = "confidence"
    NAME = "name"
    CLASS_CODE = "class_code"
    GRADE_VALUE = "grade_value"
