"""Core scan pipeline.

This module is integration-agnostic. It only relies on ports for state,
rendering and notifications, so the browser or messenger can be swapped
without changes here.

Per target the order is strict:
1) Load the page (renderer retries navigation)
2) Extract keyword-matching detail links
3) Collapse duplicate links within the page
4) Resolve each dedup key, fingerprinting detail pages when enabled
5) Notify, then record and persist the state immediately
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Iterable, Tuple

from core.config import ScanConfig
from core.dedup import Fingerprint, build_dedup_key, fallback_fingerprint, fingerprint_fields
from core.errors import NavigationError, NotificationError
from core.extractor import dedupe_candidates, extract_candidates
from core.models import Alert, Candidate, CycleReport, NotificationState
from core.ports import NotifierPort, PageSessionPort, RendererPort, StatePort
from core.rules_engine import Rule
from core.state import (
    prune,
    record_fingerprint,
    record_notified,
    restore_fingerprint,
    should_notify,
)
from core.urls import is_detail_href

LOGGER = logging.getLogger(__name__)


def epoch_ms() -> int:
    return int(time.time() * 1000)


class _CycleCounters:
    def __init__(self) -> None:
        self.candidates = 0
        self.notified = 0
        self.delivery_failures = 0


class ScanProcessor:
    """Orchestrates extraction, dedup, fingerprinting, persistence and notifications."""

    def __init__(
        self,
        rules: Iterable[Rule],
        store: StatePort,
        notifier: NotifierPort,
        renderer: RendererPort,
        scan_config: ScanConfig,
        clock: Callable[[], int] = epoch_ms,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._rules = list(rules)
        self._store = store
        self._notifier = notifier
        self._renderer = renderer
        self._config = scan_config
        self._clock = clock
        self._sleep = sleep

    async def run_cycle(self, targets: Iterable[str]) -> CycleReport:
        """Scan every target once, in order, isolating failures per target."""

        targets = list(targets)
        # The pruned state is persisted before any target is scanned.
        state = prune(self._store.load(), self._config.ttl_ms, self._clock())
        self._store.save(state)

        counters = _CycleCounters()
        failed = 0
        async with self._renderer.session() as session:
            for target in targets:
                try:
                    await self._scan_target(session, state, target, counters)
                except NavigationError as exc:
                    failed += 1
                    LOGGER.error("Skipping %s this cycle: %s", target, exc)
                except Exception:
                    failed += 1
                    LOGGER.exception("Scan failed for %s", target)

        report = CycleReport(
            targets=len(targets),
            failed_targets=failed,
            candidates=counters.candidates,
            notified=counters.notified,
            delivery_failures=counters.delivery_failures,
        )
        LOGGER.info(
            "Cycle complete: targets=%s, failed=%s, candidates=%s, notified=%s, delivery_failures=%s",
            report.targets,
            report.failed_targets,
            report.candidates,
            report.notified,
            report.delivery_failures,
        )
        return report

    async def scan_target(
        self, session: PageSessionPort, state: NotificationState, target: str
    ) -> int:
        """Scan a single target against ``state``; returns notifications sent."""

        counters = _CycleCounters()
        await self._scan_target(session, state, target, counters)
        return counters.notified

    async def _scan_target(
        self,
        session: PageSessionPort,
        state: NotificationState,
        target: str,
        counters: _CycleCounters,
    ) -> None:
        LOGGER.info("Watching %s", target)
        snapshot = await session.load_page(target)

        waiting_room = self._config.waiting_room_pattern
        if waiting_room is not None and waiting_room.search(snapshot.body_text or ""):
            LOGGER.warning("Waiting room detected on %s; continuing anyway", target)

        found = extract_candidates(snapshot.anchors, self._rules, self._config.detail_url_pattern)
        unique = dedupe_candidates(found)
        LOGGER.info("%s: candidates=%s, unique=%s", target, len(found), len(unique))
        counters.candidates += len(unique)

        for normalized, candidate in unique:
            try:
                await self._process_candidate(session, state, target, normalized, candidate, counters)
            except Exception:
                LOGGER.exception("Failed to process %s (from %s)", candidate.href, target)

    async def _process_candidate(
        self,
        session: PageSessionPort,
        state: NotificationState,
        target: str,
        normalized: str,
        candidate: Candidate,
        counters: _CycleCounters,
    ) -> None:
        previous_fp = state.last_fingerprint.get(normalized)
        key, changed = await self._resolve_key(session, state, normalized, candidate)

        if not should_notify(state, key, self._config.force_notify):
            LOGGER.debug("Already notified %s", key)
            return

        alert = Alert(
            href=candidate.href,
            text=candidate.text,
            changed=changed,
            source_url=target,
        )
        try:
            await self._notifier.send(alert)
        except NotificationError as exc:
            # Not marked as notified: the next cycle retries the alert. The
            # fingerprint goes back too so the change is detected again.
            counters.delivery_failures += 1
            restore_fingerprint(state, normalized, previous_fp)
            LOGGER.error("Delivery failed for %s (from %s): %s", candidate.href, target, exc)
            return
        except Exception:
            restore_fingerprint(state, normalized, previous_fp)
            raise

        record_notified(state, key, self._clock())
        self._store.save(state)
        counters.notified += 1
        LOGGER.info("Notified %s%s", candidate.href, " (changed)" if changed else "")
        await self._sleep(self._config.notify_delay_seconds)

    async def _resolve_key(
        self,
        session: PageSessionPort,
        state: NotificationState,
        normalized: str,
        candidate: Candidate,
    ) -> Tuple[str, bool]:
        """Return (dedup key, changed) for a candidate."""

        if not (self._config.deep_check and is_detail_href(candidate.href, self._config.detail_url_pattern)):
            return build_dedup_key(normalized), False

        fingerprint = await self._fingerprint(session, candidate.href)
        changed = record_fingerprint(state, normalized, fingerprint.value)
        return build_dedup_key(normalized, fingerprint), changed

    async def _fingerprint(self, session: PageSessionPort, href: str) -> Fingerprint:
        try:
            fields = await session.fetch_fields(href)
        except Exception as exc:
            LOGGER.warning("Fingerprint fallback for %s (low confidence): %s", href, exc)
            return fallback_fingerprint(href)
        return fingerprint_fields(fields)

