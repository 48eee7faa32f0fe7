"""Record-level domain types for value and metadata reconciliation."""

from __future__ import annotations

from dataclasses import dataclass

NO_DATA_SENTINEL = "No comps"

type CellValue = str | int | float


def is_blank(value: object) -> bool:
    """Return ``True`` for ``None`` and for values that are empty after trimming."""

    if value is None:
        return True
    return not str(value).strip()


def _identity_part(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip().casefold()


@dataclass(frozen=True, slots=True)
class IdentityFingerprint:
    """The (name, class code, grade) triple that identifies an item."""

    name: CellValue | None = None
    class_code: CellValue | None = None
    grade_value: CellValue | None = None

    def key(self) -> tuple[str, str, str]:
        return (
            _identity_part(self.name),
            _identity_part(self.class_code),
            _identity_part(self.grade_value),
        )

    def matches(self, other: IdentityFingerprint | None) -> bool:
        """Compare whitespace- and case-insensitively, treating ``None`` as empty.

        Two fingerprints without any metadata therefore match each other.
        """

        if other is None:
            return False
        return self.key() == other.key()


@dataclass(frozen=True, slots=True)
class Record:
    """Current store state of one item under reconciliation."""

    item_id: str
    quoted_value: CellValue | None = None
    confidence: CellValue | None = None
    name: CellValue | None = None
    class_code: CellValue | None = None
    grade_value: CellValue | None = None
    row: int | None = None

    def __post_init__(self) -> None:
        if is_blank(self.item_id):
            raise ValueError("Record requires a non-blank item id")

    @property
    def fingerprint(self) -> IdentityFingerprint:
        return IdentityFingerprint(self.name, self.class_code, self.grade_value)


@dataclass(frozen=True, slots=True)
class SessionMemory:
    """State carried from one record to the next in processing order."""

    last_quoted_value: float | None = None
    last_fingerprint: IdentityFingerprint | None = None


@dataclass(frozen=True, slots=True)
class ItemMetadata:
    """Classification metadata returned by the metadata lookup."""

    name: str | None = None
    class_code: str | None = None
    grade_value: str | None = None


@dataclass(frozen=True, slots=True)
class AcquisitionResult:
    """One acquired quote.

    ``raw`` is the unrounded quote; ``comparison_value`` is the ceiling of the larger of
    ``raw`` and the comparison-sample average. ``confidence`` is 0 when undetermined.
    """

    raw: float
    comparison_value: int
    confidence: int = 0
    grade_value: str | None = None


@dataclass(frozen=True, slots=True)
class Conflict:
    """Existing and acquired quotes disagree and no overwrite was forced."""

    item_id: str
    existing_value: float | None
    acquired_value: int
    row: int | None = None


@dataclass(slots=True)
class WriteInstruction:
    """Per-record output of the reconciliation engine."""

    name: str | None = None
    class_code: str | None = None
    grade_value: str | None = None
    quoted_value: CellValue | None = None
    confidence: int | None = None
    modified: bool = False
    conflict: Conflict | None = None
    value_error: bool = False
    metadata_error: bool = False


__all__ = [
    "NO_DATA_SENTINEL",
    "AcquisitionResult",
    "CellValue",
    "Conflict",
    "IdentityFingerprint",
    "ItemMetadata",
    "Record",
    "SessionMemory",
    "WriteInstruction",
    "is_blank",
]
