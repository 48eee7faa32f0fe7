"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from slabsync.adapters.browser import open_browser_session
from slabsync.adapters.cardladder import CardLadderClient, CardLadderQuoteSource, ensure_logged_in
from slabsync.adapters.csv_store import CsvTabularStore
from slabsync.adapters.psa import (
    PsaCertScraper,
    PsaClient,
    PsaMetadataLookup,
    should_cache_cert_payload,
)
from slabsync.config.cardladder import get_cardladder_config
from slabsync.config.psa import get_psa_config
from slabsync.config.reconcile import get_reconcile_settings
from slabsync.domain.acquisition import StaleConvergenceSampler, ValueAcquisitionProtocol
from slabsync.domain.data_integration import reconcile_rows
from slabsync.domain.reconciliation import RowReconciliationEngine

if TYPE_CHECKING:
    from pathlib import Path

    from slabsync.config.cardladder import CardLadderConfig
    from slabsync.config.psa import PsaConfig
    from slabsync.config.reconcile import ReconcileSettings
    from slabsync.domain.data_integration import ReconcileRunResult

log = getLogger(__name__)


def reconcile_csv(
    input_path: Path,
    *,
    output_path: Path | None = None,
    settings: ReconcileSettings | None = None,
    headless: bool = False,
) -> ReconcileRunResult:
    """Reconcile a CSV export against PSA and Card Ladder using the configured adapters."""

    return asyncio.run(
        reconcile_csv_async(
            input_path,
            output_path=output_path,
            settings=settings,
            headless=headless,
        )
    )


async def reconcile_csv_async(
    input_path: Path,
    *,
    output_path: Path | None = None,
    settings: ReconcileSettings | None = None,
    headless: bool = False,
    cardladder_config: CardLadderConfig | None = None,
    psa_config: PsaConfig | None = None,
) -> ReconcileRunResult:
    cardladder = cardladder_config or get_cardladder_config()
    psa = psa_config or get_psa_config(cache_predicate=should_cache_cert_payload)
    effective = settings or get_reconcile_settings()
    if effective.options.api_key is None and cardladder.api_key:
        options = replace(effective.options, api_key=cardladder.api_key)
        effective = replace(effective, options=options)
    policy = effective.options.policy

    store = CsvTabularStore(input_path, output_path, id_header=effective.columns.item_id)
    # Fail on missing columns before a browser is launched.
    effective.columns.resolve(await store.header(), policy)
    log.info(
        "Starting reconciliation: input=%s, output=%s, mode=%s, value=%s",
        input_path,
        store.output_path,
        effective.options.write_mode,
        effective.options.value_choice,
    )

    async with open_browser_session(headless=headless) as session:
        if policy.acquire_quote:
            await ensure_logged_in(session.page, cardladder)

        protocol = ValueAcquisitionProtocol(
            sampler=StaleConvergenceSampler(CardLadderQuoteSource(session.page)),
            api=CardLadderClient(config=cardladder) if cardladder.api_key else None,
        )
        lookup = PsaMetadataLookup(
            client=PsaClient(config=psa) if psa.api_key else None,
            scraper=PsaCertScraper(session.context, url_template=psa.cert_page_url),
            scraper_attempts=psa.scraper_attempts,
        )
        engine = RowReconciliationEngine(
            metadata=lookup,
            acquisition=protocol,
            options=effective.options,
        )
        result = await reconcile_rows(
            store=store,
            engine=engine,
            columns=effective.columns,
            window=effective.window,
            batch_policy=effective.batch,
            read_policy=effective.reads,
        )

    _log_outcome(result)
    return result


def _log_outcome(result: ReconcileRunResult) -> None:
    for conflict in result.conflicts:
        log.warning(
            "Conflict on row %s (%s): store has %s, acquired %s",
            conflict.row,
            conflict.item_id,
            conflict.existing_value,
            conflict.acquired_value,
        )
    persistence = result.persistence
    if persistence is None:
        return
    if persistence.lost_batches:
        log.warning("%s batches could not be saved", persistence.lost_batches)
    for mismatch in persistence.mismatches:
        log.warning(
            "Unconfirmed write at %s: expected %r, found %r",
            mismatch.location,
            mismatch.expected,
            mismatch.actual,
        )
    log.info(
        "Finished reconciliation: processed=%s, modified=%s, value_errors=%s, "
        "metadata_errors=%s, conflicts=%s, records_saved=%s",
        result.processed,
        result.modified,
        result.value_errors,
        result.metadata_errors,
        len(result.conflicts),
        persistence.records_committed,
    )
