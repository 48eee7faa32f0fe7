"""Row reconciliation engine.

Given one record's current fields, the session memory carried from earlier records and
the preceding record's raw fingerprint, decide what to fetch, what to trust and what to
write. The engine never touches the store; it returns a ``WriteInstruction`` and the
updated ``SessionMemory`` for the caller to apply.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from slabsync.domain.enums import ValueChoice
from slabsync.domain.model import (
    NO_DATA_SENTINEL,
    Conflict,
    IdentityFingerprint,
    SessionMemory,
    WriteInstruction,
    is_blank,
)

from .normalize import cells_match, normalize_grade, parse_quoted_value
from .policy import ReconcileOptions

if TYPE_CHECKING:
    from slabsync.domain.model import AcquisitionResult, ItemMetadata, Record
    from slabsync.domain.ports.acquisition import MetadataLookup

    from .policy import ModePolicy

log = getLogger(__name__)


class ValueAcquirer(Protocol):
    async def acquire(
        self,
        item_id: str,
        previous_raw: float | None,
        skip_convergence: bool,
        api_key: str | None = None,
    ) -> AcquisitionResult | None: ...


def is_same_item(
    fingerprint: IdentityFingerprint,
    memory: SessionMemory,
    previous: IdentityFingerprint | None,
) -> bool:
    """Decide identity continuity with the previous record.

    Session memory wins when it holds a fingerprint; only an empty memory falls back to
    the immediately preceding record's raw fingerprint.
    """

    if memory.last_fingerprint is not None:
        return fingerprint.matches(memory.last_fingerprint)
    return fingerprint.matches(previous)


@dataclass(slots=True)
class RowReconciliationEngine:
    metadata: MetadataLookup
    acquisition: ValueAcquirer
    options: ReconcileOptions = field(default_factory=ReconcileOptions)

    async def reconcile(
        self,
        record: Record,
        memory: SessionMemory,
        *,
        previous: IdentityFingerprint | None = None,
    ) -> tuple[WriteInstruction, SessionMemory]:
        policy = self.options.policy
        instruction = WriteInstruction()

        fingerprint, fetched = await self._fill_metadata(record, instruction, policy)
        same_item = is_same_item(fingerprint, memory, previous)

        last_quoted_value = memory.last_quoted_value
        acquired: AcquisitionResult | None = None
        if policy.acquire_quote:
            if self._trust_existing(record):
                log.info("Skipping quote check for %s; existing data trusted", record.item_id)
            else:
                acquired = await self.acquisition.acquire(
                    record.item_id,
                    memory.last_quoted_value,
                    same_item,
                    self.options.api_key,
                )
                if acquired is None:
                    self._handle_acquisition_failure(record, instruction, policy)
                else:
                    last_quoted_value = acquired.raw
                    if policy.write_value:
                        self._apply_value(record, instruction, acquired)
                    if policy.write_confidence:
                        self._apply_confidence(record, instruction, acquired)

        fingerprint = self._apply_grade_override(instruction, fingerprint, acquired, fetched)

        return instruction, SessionMemory(
            last_quoted_value=last_quoted_value,
            last_fingerprint=fingerprint,
        )

    async def _fill_metadata(
        self,
        record: Record,
        instruction: WriteInstruction,
        policy: ModePolicy,
    ) -> tuple[IdentityFingerprint, ItemMetadata | None]:
        name, class_code, grade_value = record.name, record.class_code, record.grade_value
        missing = [is_blank(part) for part in (name, class_code, grade_value)]
        if not any(missing):
            return record.fingerprint, None
        if not policy.fetch_metadata:
            log.debug("Metadata missing for %s but not fetched in this mode", record.item_id)
            return record.fingerprint, None

        log.info("Missing metadata for %s; looking it up", record.item_id)
        fetched = await self.metadata(record.item_id)
        if fetched is not None:
            if missing[0] and not is_blank(fetched.name):
                name = instruction.name = fetched.name
            if missing[1] and not is_blank(fetched.class_code):
                class_code = instruction.class_code = fetched.class_code
            if missing[2] and not is_blank(fetched.grade_value):
                grade_value = instruction.grade_value = fetched.grade_value
            instruction.modified = instruction.modified or any(
                value is not None
                for value in (instruction.name, instruction.class_code, instruction.grade_value)
            )

        if any(is_blank(part) for part in (name, class_code, grade_value)):
            log.warning("Metadata lookup left fields empty for %s", record.item_id)
            instruction.metadata_error = True
            instruction.modified = True

        return IdentityFingerprint(name, class_code, grade_value), fetched

    def _trust_existing(self, record: Record) -> bool:
        if not self.options.skip_existing:
            return False
        policy = self.options.policy
        existing = record.quoted_value if policy.write_value else record.confidence
        return not is_blank(existing)

    def _handle_acquisition_failure(
        self,
        record: Record,
        instruction: WriteInstruction,
        policy: ModePolicy,
    ) -> None:
        if not policy.write_value:
            log.warning("No quote acquired for %s", record.item_id)
            return
        if not is_blank(record.quoted_value):
            log.warning("No quote acquired for %s; keeping existing value", record.item_id)
            return
        log.warning("No quote acquired for %s; writing %r", record.item_id, NO_DATA_SENTINEL)
        instruction.quoted_value = NO_DATA_SENTINEL
        instruction.value_error = True
        instruction.modified = True

    def _candidate_value(self, acquired: AcquisitionResult) -> int:
        if self.options.value_choice is ValueChoice.HIGHER:
            return acquired.comparison_value
        return math.ceil(acquired.raw)

    def _apply_value(
        self,
        record: Record,
        instruction: WriteInstruction,
        acquired: AcquisitionResult,
    ) -> None:
        candidate = self._candidate_value(acquired)
        if is_blank(record.quoted_value) or self.options.force_value_overwrite:
            instruction.quoted_value = candidate
            instruction.conflict = None
            instruction.modified = True
            return

        existing = parse_quoted_value(record.quoted_value)
        if existing is not None and existing == candidate:
            log.info("Verified %s: existing value %s matches", record.item_id, candidate)
            return
        instruction.conflict = Conflict(
            item_id=record.item_id,
            existing_value=existing,
            acquired_value=candidate,
            row=record.row,
        )
        log.warning(
            "Mismatch for %s: store has %s, acquired %s",
            record.item_id,
            record.quoted_value,
            candidate,
        )

    def _apply_confidence(
        self,
        record: Record,
        instruction: WriteInstruction,
        acquired: AcquisitionResult,
    ) -> None:
        if not (is_blank(record.confidence) or self.options.force_confidence_overwrite):
            return
        if acquired.confidence <= 0:
            log.warning("Could not determine confidence for %s", record.item_id)
            return
        instruction.confidence = acquired.confidence
        instruction.modified = True

    def _apply_grade_override(
        self,
        instruction: WriteInstruction,
        fingerprint: IdentityFingerprint,
        acquired: AcquisitionResult | None,
        fetched: ItemMetadata | None,
    ) -> IdentityFingerprint:
        if not self.options.force_grade_overwrite:
            return fingerprint
        fresh = acquired.grade_value if acquired is not None else None
        if is_blank(fresh) and fetched is not None:
            fresh = fetched.grade_value
        fresh = normalize_grade(fresh)
        if fresh is None or cells_match(normalize_grade(fingerprint.grade_value), fresh):
            return fingerprint
        log.info("Overwriting grade %s with %s", fingerprint.grade_value, fresh)
        instruction.grade_value = fresh
        instruction.modified = True
        return IdentityFingerprint(fingerprint.name, fingerprint.class_code, fresh)


__all__ = ["RowReconciliationEngine", "ValueAcquirer", "is_same_item"]
