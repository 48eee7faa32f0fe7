"""Write-mode policy for the row reconciliation engine.

Each ``WriteMode`` variant maps to exactly one ``ModePolicy``; the engine consults the
policy flags instead of comparing mode strings.
"""

from __future__ import annotations

from dataclasses import dataclass

from slabsync.domain.enums import ValueChoice, WriteMode


@dataclass(frozen=True, slots=True)
class ModePolicy:
    fetch_metadata: bool
    acquire_quote: bool
    write_value: bool
    write_confidence: bool


def policy_for(mode: WriteMode) -> ModePolicy:
    match mode:
        case WriteMode.VALUE_AND_METADATA:
            return ModePolicy(
                fetch_metadata=True,
                acquire_quote=True,
                write_value=True,
                write_confidence=True,
            )
        case WriteMode.METADATA_ONLY:
            return ModePolicy(
                fetch_metadata=True,
                acquire_quote=False,
                write_value=False,
                write_confidence=False,
            )
        case WriteMode.VALUE_ONLY:
            return ModePolicy(
                fetch_metadata=False,
                acquire_quote=True,
                write_value=True,
                write_confidence=True,
            )
        case WriteMode.CONFIDENCE_ONLY:
            return ModePolicy(
                fetch_metadata=False,
                acquire_quote=True,
                write_value=False,
                write_confidence=True,
            )


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconcileOptions:
    """Mode and override switches for one run."""

    write_mode: WriteMode = WriteMode.VALUE_AND_METADATA
    value_choice: ValueChoice = ValueChoice.RAW
    skip_existing: bool = False
    force_value_overwrite: bool = False
    force_confidence_overwrite: bool = False
    force_grade_overwrite: bool = False
    api_key: str | None = None

    @property
    def policy(self) -> ModePolicy:
        return policy_for(self.write_mode)


__all__ = ["ModePolicy", "ReconcileOptions", "policy_for"]
