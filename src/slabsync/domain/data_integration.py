"""Application service reconciling every record of a tabular store in order."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from slabsync.config.errors import ConfigurationError
from slabsync.domain.enums import RecordField
from slabsync.domain.errors import StoreError
from slabsync.domain.model import IdentityFingerprint, Record, SessionMemory, is_blank
from slabsync.domain.persistence import BatchedPersistenceController, load_fields_with_retry
from slabsync.domain.ports.store import CellLocation, CellWrite
from slabsync.domain.row_window import RowWindow

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from slabsync.domain.model import Conflict, WriteInstruction
    from slabsync.domain.persistence import BatchPolicy, PersistenceReport, ReadRetryPolicy
    from slabsync.domain.ports.store import TabularStore
    from slabsync.domain.reconciliation import ModePolicy, RowReconciliationEngine

log = getLogger(__name__)

_METADATA_FIELDS = (RecordField.NAME, RecordField.CLASS_CODE, RecordField.GRADE_VALUE)


@dataclass(frozen=True, slots=True)
class ColumnMap:
    """Store column header for each record field; ``None`` means the column is absent."""

    item_id: str = "Certification Number"
    quoted_value: str | None = "CL Market Value"
    confidence: str | None = "CL Confidence Level"
    name: str | None = "Card Name"
    class_code: str | None = "Card Number"
    grade_value: str | None = "Grade"

    def column(self, record_field: RecordField) -> str | None:
        return getattr(self, record_field.value)

    def present(self) -> dict[RecordField, str]:
        return {
            record_field: column
            for record_field in RecordField
            if (column := self.column(record_field)) is not None
        }

    def resolve(self, header: Sequence[str], policy: ModePolicy) -> ColumnMap:
        """Drop columns missing from ``header`` and check the ones the mode needs."""

        available = {column.strip() for column in header}

        def keep(column: str | None) -> str | None:
            return column if column is not None and column in available else None

        if self.item_id not in available:
            raise ConfigurationError(f'Could not find header "{self.item_id}"')
        resolved = replace(
            self,
            quoted_value=keep(self.quoted_value),
            confidence=keep(self.confidence),
            name=keep(self.name),
            class_code=keep(self.class_code),
            grade_value=keep(self.grade_value),
        )
        if policy.write_value and resolved.quoted_value is None:
            raise ConfigurationError(f'Could not find header "{self.quoted_value}"')
        if policy.write_confidence and resolved.confidence is None:
            raise ConfigurationError(f'Could not find header "{self.confidence}"')
        return resolved


@dataclass(slots=True)
class ReconcileRunResult:
    """Outcome of one reconciliation run."""

    processed: int = 0
    modified: int = 0
    skipped: int = 0
    value_errors: int = 0
    metadata_errors: int = 0
    conflicts: list[Conflict] = field(default_factory=list)
    persistence: PersistenceReport | None = None


def instruction_writes(
    instruction: WriteInstruction,
    row: int,
    columns: ColumnMap,
) -> list[CellWrite]:
    """Translate a write instruction into cell writes for the columns that exist."""

    values: dict[RecordField, object] = {
        RecordField.NAME: instruction.name,
        RecordField.CLASS_CODE: instruction.class_code,
        RecordField.GRADE_VALUE: instruction.grade_value,
        RecordField.QUOTED_VALUE: instruction.quoted_value,
        RecordField.CONFIDENCE: instruction.confidence,
    }
    writes: list[CellWrite] = []
    for record_field, value in values.items():
        column = columns.column(record_field)
        if column is None:
            continue
        flagged = (instruction.value_error and record_field is RecordField.QUOTED_VALUE) or (
            instruction.metadata_error and record_field in _METADATA_FIELDS
        )
        if value is None and not flagged:
            continue
        writes.append(
            CellWrite(
                location=CellLocation(row=row, column=column),
                value=value,  # type: ignore[arg-type]
                flag_error=flagged,
            )
        )
    return writes


async def _load_row(
    store: TabularStore,
    columns: dict[RecordField, str],
    row: int,
    read_policy: ReadRetryPolicy | None,
    sleep: Callable[[float], Awaitable[None]],
) -> dict[RecordField, str | None]:
    fields = list(columns)
    locations = [CellLocation(row=row, column=columns[record_field]) for record_field in fields]
    values = await load_fields_with_retry(store, locations, policy=read_policy, sleep=sleep)
    loaded: dict[RecordField, str | None] = dict.fromkeys(RecordField)
    loaded.update(zip(fields, values, strict=True))
    return loaded


def _fingerprint(fields: dict[RecordField, str | None]) -> IdentityFingerprint:
    return IdentityFingerprint(
        fields[RecordField.NAME],
        fields[RecordField.CLASS_CODE],
        fields[RecordField.GRADE_VALUE],
    )


def _record(fields: dict[RecordField, str | None], row: int) -> Record:
    quoted_value = fields[RecordField.QUOTED_VALUE]
    return Record(
        item_id=str(fields[RecordField.ITEM_ID]).strip(),
        quoted_value=None if is_blank(quoted_value) else quoted_value,
        confidence=fields[RecordField.CONFIDENCE],
        name=fields[RecordField.NAME],
        class_code=fields[RecordField.CLASS_CODE],
        grade_value=fields[RecordField.GRADE_VALUE],
        row=row,
    )


async def reconcile_rows(
    *,
    store: TabularStore,
    engine: RowReconciliationEngine,
    columns: ColumnMap | None = None,
    window: RowWindow | None = None,
    batch_policy: BatchPolicy | None = None,
    read_policy: ReadRetryPolicy | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ReconcileRunResult:
    """Reconcile the store's rows strictly in order and commit the changes in batches.

    Session memory produced by one record is passed to the next one before it starts;
    nothing here runs concurrently.
    """

    resolved = (columns or ColumnMap()).resolve(await store.header(), engine.options.policy)
    present = resolved.present()
    rows = await store.data_rows()
    effective_window = window or RowWindow()
    selected = effective_window.resolve(rows)
    log.info("Processing range: %s", effective_window.describe(rows))

    controller = BatchedPersistenceController(store, policy=batch_policy, sleep=sleep)
    result = ReconcileRunResult()
    memory = SessionMemory()
    previous: IdentityFingerprint | None = None

    try:
        if selected and selected[0] > rows[0]:
            before = await _load_row(store, present, selected[0] - 1, read_policy, sleep)
            previous = _fingerprint(before)

        for row in selected:
            fields = await _load_row(store, present, row, read_policy, sleep)
            if is_blank(fields[RecordField.ITEM_ID]):
                log.info("Skipping row %s: no %s found", row, resolved.item_id)
                result.skipped += 1
                previous = _fingerprint(fields)
                continue

            record = _record(fields, row)
            log.info("Processing row %s | %s: %s", row, resolved.item_id, record.item_id)
            instruction, memory = await engine.reconcile(record, memory, previous=previous)
            previous = _fingerprint(fields)
            result.processed += 1

            if instruction.conflict is not None:
                result.conflicts.append(instruction.conflict)
            result.value_errors += instruction.value_error
            result.metadata_errors += instruction.metadata_error
            if instruction.modified:
                result.modified += 1
                controller.enqueue(instruction_writes(instruction, row, resolved))
                await controller.maybe_flush()
    except StoreError:
        log.error("Aborting run; flushing %s pending records first", controller.pending_records)
        await controller.finalize()
        raise

    result.persistence = await controller.finalize()
    log.info(
        "Finished: processed=%s, modified=%s, skipped=%s, conflicts=%s, commits=%s",
        result.processed,
        result.modified,
        result.skipped,
        len(result.conflicts),
        result.persistence.commits,
    )
    return result


__all__ = ["ColumnMap", "ReconcileRunResult", "instruction_writes", "reconcile_rows"]
