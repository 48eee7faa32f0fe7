from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from slabsync.app import reconcile_csv
from slabsync.common.logging import configure_logging
from slabsync.config.env import parse_enum
from slabsync.config.errors import ConfigurationError
from slabsync.config.reconcile import get_reconcile_settings
from slabsync.domain.enums import ValueChoice, WriteMode
from slabsync.domain.persistence import BatchPolicy
from slabsync.domain.row_window import RowWindow

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from slabsync.config.reconcile import ReconcileSettings

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fill card values and metadata into a table")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    csv_parser = subparsers.add_parser("csv", help="Reconcile a CSV export")
    csv_parser.add_argument("input", type=Path, help="CSV file containing the cert column")
    csv_parser.add_argument(
        "--output",
        type=Path,
        help="Output file (default: <input>_filled.csv)",
    )
    csv_parser.add_argument(
        "--mode",
        type=str,
        help="Write mode: BOTH, PSA, CL or CONFIDENCE (overrides WRITE_MODE)",
    )
    csv_parser.add_argument(
        "--value-choice",
        type=str,
        help="Quote to write: RAW or HIGHER (overrides CL_VALUE_CHOICE)",
    )
    csv_parser.add_argument(
        "--skip-existing",
        action="store_true",
        help="Trust existing values instead of re-checking them",
    )
    csv_parser.add_argument(
        "--force-value",
        action="store_true",
        help="Overwrite existing values that disagree with the acquired quote",
    )
    csv_parser.add_argument(
        "--force-confidence",
        action="store_true",
        help="Overwrite existing confidence levels",
    )
    csv_parser.add_argument(
        "--force-grade",
        action="store_true",
        help="Overwrite grades with the freshly fetched grade",
    )
    csv_parser.add_argument("--start-row", type=int, help="First row to process")
    csv_parser.add_argument("--end-row", type=int, help="Last row to process")
    csv_parser.add_argument(
        "--batch-size",
        type=int,
        help="Modified records per commit (defaults to config)",
    )
    csv_parser.add_argument(
        "--headless",
        action="store_true",
        help="Run the browser without a window (requires CL_USER/CL_PASS or a saved login)",
    )
    return parser.parse_args(list(argv))


def _apply_overrides(settings: ReconcileSettings, args: argparse.Namespace) -> ReconcileSettings:
    options = settings.options
    if args.mode:
        options = replace(options, write_mode=parse_enum(args.mode, WriteMode, source="--mode"))
    if args.value_choice:
        choice = parse_enum(args.value_choice, ValueChoice, source="--value-choice")
        options = replace(options, value_choice=choice)
    options = replace(
        options,
        skip_existing=options.skip_existing or args.skip_existing,
        force_value_overwrite=options.force_value_overwrite or args.force_value,
        force_confidence_overwrite=options.force_confidence_overwrite or args.force_confidence,
        force_grade_overwrite=options.force_grade_overwrite or args.force_grade,
    )

    window = settings.window
    if args.start_row is not None or args.end_row is not None:
        window = RowWindow(
            start=args.start_row if args.start_row is not None else window.start,
            end=args.end_row if args.end_row is not None else window.end,
        )

    batch = settings.batch
    if args.batch_size is not None:
        batch = BatchPolicy(
            batch_size=args.batch_size,
            inter_batch_delay=batch.inter_batch_delay,
            retry_backoff=batch.retry_backoff,
        )

    return replace(settings, options=options, window=window, batch=batch)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    try:
        settings = _apply_overrides(get_reconcile_settings(), parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "csv":
            reconcile_csv(
                parsed_args.input,
                output_path=parsed_args.output,
                settings=settings,
                headless=parsed_args.headless,
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C); uncommitted rows were not saved")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
