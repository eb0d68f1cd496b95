"""Monitoring service that checks watched hotel pages against target prices."""
from __future__ import annotations

import asyncio
import enum
import logging
from collections import Counter
from dataclasses import dataclass, field

from models import Watch
from services.errors import (
    ExtractionError,
    FetchError,
    MarkupError,
    NotificationError,
    PriceFormatError,
    StoreError,
)
from services.extractor import Extractor
from services.notifier import EmailNotifier, compose_price_alert
from services.storage import WatchRepository

logger = logging.getLogger(__name__)


class WatchOutcome(enum.Enum):
    """Where a single watch ended up after one cycle."""

    UNSATISFIED = "unsatisfied"
    EXTRACTION_FAILED = "extraction-failed"
    SUBSCRIBER_FAILED = "subscriber-failed"
    NOTIFY_FAILED = "notify-failed"
    DEACTIVATION_FAILED = "deactivation-failed"
    DEACTIVATED = "deactivated"
    ERROR = "error"


@dataclass(slots=True)
class CycleReport:
    """Per-outcome counts for one scan of the active watches."""

    outcomes: Counter = field(default_factory=Counter)
    skipped: bool = False
    interrupted: bool = False

    @property
    def total(self) -> int:
        return sum(self.outcomes.values())

    def count(self, outcome: WatchOutcome) -> int:
        return self.outcomes[outcome]


class PriceMonitor:
    """Scans active watches, notifies subscribers and retires satisfied watches."""

    def __init__(
        self,
        repository: WatchRepository,
        extractor: Extractor,
        notifier: EmailNotifier,
    ) -> None:
        self.repository = repository
        self.extractor = extractor
        self.notifier = notifier
        self._stop_requested = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def is_running(self) -> bool:
        return not self._idle.is_set()

    def request_stop(self) -> None:
        """Ask an in-flight cycle to stop after the watch it is processing."""
        self._stop_requested.set()

    async def wait_idle(self) -> None:
        await self._idle.wait()

    async def run_cycle(self) -> CycleReport:
        """Check every active watch once."""
        report = CycleReport()
        if self.is_running:
            logger.warning("Previous monitoring cycle still running; skipping this tick")
            report.skipped = True
            return report
        if self._stop_requested.is_set():
            logger.info("Stop requested; not starting a new monitoring cycle")
            report.skipped = True
            return report

        self._idle.clear()
        try:
            await self._scan(report)
        finally:
            self._idle.set()
        return report

    async def _scan(self, report: CycleReport) -> None:
        try:
            watches = self.repository.list_active_watches()
        except StoreError:
            logger.exception("Failed to load active watches")
            return

        if not watches:
            logger.debug("No active watches to check")
            return

        logger.info("Starting monitoring check for %s active watches…", len(watches))

        for watch in watches:
            if self._stop_requested.is_set():
                logger.info("Stop requested; ending monitoring cycle early")
                report.interrupted = True
                break
            try:
                outcome = await self.check_watch(watch)
            except asyncio.CancelledError:
                logger.info("Monitoring task cancelled while checking watch %s", watch.id)
                raise
            except Exception:
                logger.exception("Unexpected error checking watch %s (%s)", watch.id, watch.url)
                outcome = WatchOutcome.ERROR
            report.outcomes[outcome] += 1

        logger.info(
            "Monitoring check completed: %d checked, %d notified, %d above target, "
            "%d extraction failures, %d delivery failures, %d errors",
            report.total,
            report.count(WatchOutcome.DEACTIVATED) + report.count(WatchOutcome.DEACTIVATION_FAILED),
            report.count(WatchOutcome.UNSATISFIED),
            report.count(WatchOutcome.EXTRACTION_FAILED),
            report.count(WatchOutcome.NOTIFY_FAILED) + report.count(WatchOutcome.SUBSCRIBER_FAILED),
            report.count(WatchOutcome.ERROR),
        )

    async def check_watch(self, watch: Watch) -> WatchOutcome:
        """Run extraction, threshold check, notification and retirement for one watch."""
        try:
            quote = await self.extractor.extract(watch.url)
        except FetchError as exc:
            logger.warning(
                "Failed to fetch watch %s (%s), status=%s: %s",
                watch.id,
                watch.url,
                exc.status,
                exc,
            )
            return WatchOutcome.EXTRACTION_FAILED
        except PriceFormatError as exc:
            logger.error(
                "Markup mismatch for watch %s (%s): %s; raw text %r",
                watch.id,
                watch.url,
                exc,
                exc.raw_text,
            )
            return WatchOutcome.EXTRACTION_FAILED
        except MarkupError as exc:
            logger.error(
                "Markup mismatch for watch %s (%s): %s; selector %r needs updating",
                watch.id,
                watch.url,
                exc,
                exc.selector,
            )
            return WatchOutcome.EXTRACTION_FAILED
        except ExtractionError as exc:
            logger.warning("Failed to extract watch %s (%s): %s", watch.id, watch.url, exc)
            return WatchOutcome.EXTRACTION_FAILED

        logger.info(
            "Hotel \"%s\" (watch %s): current price %s, target %s",
            quote.name,
            watch.id,
            quote.price,
            watch.target_price,
        )

        if not watch.is_satisfied_by(quote.price):
            return WatchOutcome.UNSATISFIED

        try:
            address = self.repository.get_subscriber_address(watch.subscriber_id)
        except StoreError as exc:
            logger.error("Failed to resolve subscriber for watch %s: %s", watch.id, exc)
            return WatchOutcome.SUBSCRIBER_FAILED

        subject, body = compose_price_alert(quote.name, watch.url, quote.price)
        try:
            await self.notifier.send(address, subject, body)
        except NotificationError as exc:
            logger.error("Failed to notify %s for watch %s: %s", address, watch.id, exc)
            return WatchOutcome.NOTIFY_FAILED

        try:
            self.repository.set_watch_inactive(watch.id)
        except StoreError as exc:
            logger.error(
                "Notified %s but failed to deactivate watch %s: %s",
                address,
                watch.id,
                exc,
            )
            return WatchOutcome.DEACTIVATION_FAILED

        return WatchOutcome.DEACTIVATED


__all__ = ["CycleReport", "PriceMonitor", "WatchOutcome"]
