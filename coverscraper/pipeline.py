"""
Cover acquisition pipeline.

For every catalog entry without a cached cover: try the primary providers in
order inside one browser session, queue the entries that got nothing, retry
those once in a second session with the retry providers and another identity,
then re-scan the target directory and report what is still missing.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from coverscraper.assets import (
    asset_path,
    ensure_target_dir,
    extension_for_url,
    find_asset,
    purge_stale_assets,
)
from coverscraper.browser import PRIMARY_IDENTITY, RETRY_IDENTITY, BrowserSessions
from coverscraper.catalog import CatalogEntry
from coverscraper.config import Settings
from coverscraper.logging_config import get_logger
from coverscraper.providers.base import CoverProvider
from coverscraper.providers.registry import primary_providers, retry_providers
from coverscraper.utils.download import download_image, make_client

logger = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class EntryState(str, Enum):
    PENDING = "pending"
    PRIMARY_ATTEMPT = "primary_attempt"
    QUEUED_FOR_RETRY = "queued_for_retry"
    RETRY_ATTEMPT = "retry_attempt"
    SATISFIED = "satisfied"
    PERMANENTLY_FAILED = "permanently_failed"


class Outcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class AcquisitionAttempt:                          # One provider tried for one entry; lives only for the run
    entry: CatalogEntry
    provider: str
    outcome: Outcome
    url: Optional[str] = None                      # Candidate that was chosen (also set when its download failed)
    path: Optional[Path] = None                    # Written asset, only when outcome is FOUND
    error: Optional[str] = None


@dataclass
class RunReport:
    states: Dict[str, EntryState] = field(default_factory=dict)
    attempts: List[AcquisitionAttempt] = field(default_factory=list)
    skipped: List[CatalogEntry] = field(default_factory=list)      # Already had a cover
    failed: List[CatalogEntry] = field(default_factory=list)       # Still no cover after both passes

    @property
    def satisfied(self) -> List[str]:
        return [eid for eid, state in self.states.items() if state is EntryState.SATISFIED]

    @property
    def failed_titles(self) -> List[str]:
        return [e.title for e in self.failed]

    def attempts_for(self, entry_id: str) -> List[AcquisitionAttempt]:
        return [a for a in self.attempts if a.entry.id == entry_id]

    def to_dict(self) -> dict:
        return {
            "states": {eid: state.value for eid, state in self.states.items()},
            "skipped": [e.id for e in self.skipped],
            "failed": [{"id": e.id, "title": e.title} for e in self.failed],
            "attempts": [
                {
                    "id": a.entry.id,
                    "provider": a.provider,
                    "outcome": a.outcome.value,
                    "url": a.url,
                    "path": str(a.path) if a.path else None,
                    "error": a.error,
                }
                for a in self.attempts
            ],
        }


def politeness_delay_ms(min_ms: int, max_ms: int) -> int:
    """Random delay in [min_ms, max_ms); a collapsed window returns min_ms."""
    if max_ms <= min_ms:
        return min_ms
    return random.randrange(min_ms, max_ms)


async def try_provider(
    page,
    entry: CatalogEntry,
    provider: CoverProvider,
    target_dir: Path,
    client: httpx.AsyncClient,
) -> AcquisitionAttempt:
    """
    One provider, one entry. Only the first candidate is downloaded; if that
    download fails the provider counts as failed, the rest are not tried.
    """
    try:
        candidates = await provider.find_candidates(page, entry)
    except Exception as exc:
        logger.warning("[%s] Search error for %r: %s", provider.name, entry.title, exc)
        return AcquisitionAttempt(entry, provider.name, Outcome.ERROR, error=str(exc))

    if not candidates:
        logger.info("[%s] No suitable image found for %r", provider.name, entry.title)
        return AcquisitionAttempt(entry, provider.name, Outcome.NOT_FOUND)

    url = candidates[0]
    logger.info("[%s] Found %d candidate(s), using %s", provider.name, len(candidates), url)
    filepath = asset_path(target_dir, entry.id, extension_for_url(url))

    try:
        logger.info("Downloading to: %s", filepath)
        await download_image(client, url, filepath)
    except Exception as exc:
        logger.warning("[%s] Download failed for %r: %s", provider.name, entry.title, exc)
        return AcquisitionAttempt(entry, provider.name, Outcome.ERROR, url=url, error=str(exc))

    return AcquisitionAttempt(entry, provider.name, Outcome.FOUND, url=url, path=filepath)


async def acquire_for_entry(
    page,
    entry: CatalogEntry,
    providers: Sequence[CoverProvider],
    target_dir: Path,
    client: httpx.AsyncClient,
    report: RunReport,
) -> bool:
    """Walk the provider chain until one yields a written asset."""
    for provider in providers:
        attempt = await try_provider(page, entry, provider, target_dir, client)
        report.attempts.append(attempt)
        if attempt.outcome is Outcome.FOUND:
            logger.info("Successfully downloaded cover for %r from %s", entry.title, provider.name)
            return True
    return False


async def run_pass(
    page,
    entries: Sequence[CatalogEntry],
    providers: Sequence[CoverProvider],
    target_dir: Path,
    client: httpx.AsyncClient,
    report: RunReport,
    *,
    attempt_state: EntryState,
    miss_state: EntryState,
    settings: Settings,
    sleep_fn: SleepFn = asyncio.sleep,
) -> List[CatalogEntry]:
    """
    Sequential sweep over `entries` with one provider chain.
    Returns the entries that ended in `miss_state` (the failure set).
    """
    failures: List[CatalogEntry] = []

    for idx, entry in enumerate(entries, start=1):
        logger.info("(%d/%d) Processing %r by %s", idx, len(entries), entry.title, entry.author or "unknown")
        report.states[entry.id] = attempt_state

        if await acquire_for_entry(page, entry, providers, target_dir, client, report):
            report.states[entry.id] = EntryState.SATISFIED
        else:
            report.states[entry.id] = miss_state
            failures.append(entry)
            logger.info("Failed to get a cover for %r (%s)", entry.title, miss_state.value)

        delay = politeness_delay_ms(settings.min_delay_ms, settings.max_delay_ms)
        logger.info("Waiting for %.1fs...", delay / 1000)
        await sleep_fn(delay / 1000)

    return failures


def precheck(entries: Sequence[CatalogEntry], target_dir: Path, report: RunReport) -> List[CatalogEntry]:
    """Mark entries that already have a cover; return the rest."""
    pending = []
    for entry in entries:
        existing = find_asset(target_dir, entry.id)
        if existing:
            logger.info("Skipping %r - cover already exists at %s", entry.title, existing)
            report.states[entry.id] = EntryState.SATISFIED
            report.skipped.append(entry)
            continue
        purge_stale_assets(target_dir, entry.id)
        report.states[entry.id] = EntryState.PENDING
        pending.append(entry)
    return pending


def final_scan(entries: Sequence[CatalogEntry], target_dir: Path, report: RunReport) -> List[CatalogEntry]:
    # The directory is the source of truth for what succeeded
    failed = []
    for entry in entries:
        if find_asset(target_dir, entry.id):
            report.states[entry.id] = EntryState.SATISFIED
        else:
            report.states[entry.id] = EntryState.PERMANENTLY_FAILED
            failed.append(entry)
    report.failed = failed
    return failed


async def acquire_covers(
    entries: Sequence[CatalogEntry],
    target_dir: str | Path,
    *,
    settings: Optional[Settings] = None,
    sessions: Optional[BrowserSessions] = None,
    client: Optional[httpx.AsyncClient] = None,
    primary: Optional[Sequence[CoverProvider]] = None,
    retry: Optional[Sequence[CoverProvider]] = None,
    sleep_fn: SleepFn = asyncio.sleep,
) -> RunReport:
    """
    Full batch run over the catalog.

    Raises TargetDirectoryError / SessionStartError for whole-run failures;
    entries that end without a cover are reported, not raised.
    """
    settings = settings or Settings()
    primary = list(primary) if primary is not None else primary_providers(settings)
    retry = list(retry) if retry is not None else retry_providers(settings)

    target = ensure_target_dir(target_dir)
    report = RunReport()

    pending = precheck(entries, target, report)
    if not pending:
        logger.info("All %d entries already have covers, nothing to do", len(entries))
        final_scan(entries, target, report)
        return report

    sessions = sessions or BrowserSessions(headless=settings.headless, storage_state=settings.storage_state)
    own_client = client is None
    client = client or make_client(timeout=settings.download_timeout_s)

    try:
        async with sessions:
            async with sessions.session(PRIMARY_IDENTITY) as page:
                failures = await run_pass(
                    page, pending, primary, target, client, report,
                    attempt_state=EntryState.PRIMARY_ATTEMPT,
                    miss_state=EntryState.QUEUED_FOR_RETRY,
                    settings=settings,
                    sleep_fn=sleep_fn,
                )

            if failures:
                logger.info("Retrying %d failed entries...", len(failures))
                async with sessions.session(RETRY_IDENTITY) as page:
                    await run_pass(
                        page, failures, retry, target, client, report,
                        attempt_state=EntryState.RETRY_ATTEMPT,
                        miss_state=EntryState.PERMANENTLY_FAILED,
                        settings=settings,
                        sleep_fn=sleep_fn,
                    )
    finally:
        if own_client:
            await client.aclose()

    logger.info("Finished processing all entries.")
    final_scan(entries, target, report)
    return report


def log_summary(report: RunReport) -> None:
    if report.failed:
        logger.warning("Failed to download covers for %d entries:", len(report.failed))
        for title in report.failed_titles:
            logger.warning("- %s", title)
    else:
        logger.info("Successfully downloaded all covers!")
