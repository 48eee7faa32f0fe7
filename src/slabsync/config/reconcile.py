"""Reconciliation run settings loaded from the environment."""

from __future__ import annotations

from dataclasses import dataclass, field

from slabsync.domain.data_integration import ColumnMap
from slabsync.domain.enums import ValueChoice, WriteMode
from slabsync.domain.persistence import BatchPolicy, ReadRetryPolicy
from slabsync.domain.reconciliation import ReconcileOptions
from slabsync.domain.row_window import RowWindow

from .env import env_bool, env_enum, env_float, env_int, optional_env
from .errors import ConfigurationError

DEFAULT_ID_HEADER = "Certification Number"
DEFAULT_VALUE_HEADER = "CL Market Value"
DEFAULT_NAME_HEADER = "Card Name"
DEFAULT_NUMBER_HEADER = "Card Number"
DEFAULT_GRADE_HEADER = "Grade"
DEFAULT_CONFIDENCE_HEADER = "CL Confidence Level"


@dataclass(frozen=True, slots=True)
class ReconcileSettings:
    options: ReconcileOptions = field(default_factory=ReconcileOptions)
    columns: ColumnMap = field(default_factory=ColumnMap)
    window: RowWindow = field(default_factory=RowWindow)
    batch: BatchPolicy = field(default_factory=BatchPolicy)
    reads: ReadRetryPolicy = field(default_factory=ReadRetryPolicy)


def get_column_map() -> ColumnMap:
    return ColumnMap(
        item_id=optional_env("ID_HEADER") or DEFAULT_ID_HEADER,
        quoted_value=optional_env("VALUE_HEADER") or DEFAULT_VALUE_HEADER,
        confidence=optional_env("CONFIDENCE_HEADER") or DEFAULT_CONFIDENCE_HEADER,
        name=optional_env("NAME_HEADER") or DEFAULT_NAME_HEADER,
        class_code=optional_env("NUMBER_HEADER") or DEFAULT_NUMBER_HEADER,
        grade_value=optional_env("GRADE_HEADER") or DEFAULT_GRADE_HEADER,
    )


def get_reconcile_options(*, api_key: str | None = None) -> ReconcileOptions:
    return ReconcileOptions(
        write_mode=env_enum("WRITE_MODE", WriteMode, WriteMode.VALUE_AND_METADATA),
        value_choice=env_enum("CL_VALUE_CHOICE", ValueChoice, ValueChoice.RAW),
        skip_existing=env_bool("SKIP_CL_CHECK"),
        force_value_overwrite=env_bool("FORCE_CL_OVERWRITE"),
        force_confidence_overwrite=env_bool("FORCE_CONFIDENCE_OVERWRITE"),
        force_grade_overwrite=env_bool("FORCE_GRADE_OVERWRITE"),
        api_key=api_key,
    )


def get_reconcile_settings(*, api_key: str | None = None) -> ReconcileSettings:
    """Load and validate every run setting; invalid values raise ``ConfigurationError``."""

    try:
        batch = BatchPolicy(
            batch_size=env_int("BATCH_SIZE", 25) or 0,
            inter_batch_delay=env_float("BATCH_DELAY_SECONDS", 1.0),
            retry_backoff=env_float("COMMIT_RETRY_BACKOFF_SECONDS", 2.0),
        )
        reads = ReadRetryPolicy(
            max_attempts=env_int("READ_MAX_ATTEMPTS", 5) or 0,
            quota_backoff=env_float("READ_QUOTA_BACKOFF_SECONDS", 60.0),
            timeout_backoff=env_float("READ_TIMEOUT_BACKOFF_SECONDS", 5.0),
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    return ReconcileSettings(
        options=get_reconcile_options(api_key=api_key),
        columns=get_column_map(),
        window=RowWindow(start=env_int("START_ROW"), end=env_int("END_ROW")),
        batch=batch,
        reads=reads,
    )
