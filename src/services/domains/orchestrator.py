"""Concurrent availability lookups for newly discovered candidates."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from core.exceptions import AvailabilityLookupError
from schemas.domains import AvailabilityRecord
from services.domains.interfaces import AvailabilityCheckerProtocol
from services.domains.output import OutputSink


logger = logging.getLogger(__name__)


class EnrichmentOrchestrator:
    """Issue one lookup task per batch and forward available results.

    Tasks are fire-and-forget for the caller but tracked in a pending set
    until they settle, whatever the outcome. Results are emitted in the order
    lookups settle, not the order they were issued.
    """

    def __init__(
        self, checker: AvailabilityCheckerProtocol, sink: OutputSink
    ) -> None:
        self._checker = checker
        self._sink = sink
        self._pending: set[asyncio.Task[None]] = set()
        self.issued = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def enqueue(self, candidates: Sequence[str]) -> None:
        if not candidates:
            return
        batch = list(candidates)
        task = asyncio.create_task(
            self._enrich(batch), name=f"availability-batch-{self.issued}"
        )
        self.issued += 1
        self._pending.add(task)
        task.add_done_callback(self._settle)

    def _settle(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Availability task %s failed: %s", task.get_name(), exc, exc_info=exc
            )

    async def _enrich(self, batch: list[str]) -> None:
        records = await self._lookup(batch)
        self._sink.emit(records)

    async def _lookup(self, batch: list[str]) -> list[AvailabilityRecord]:
        try:
            records = await self._checker.check_availability(batch)
        except AvailabilityLookupError as exc:
            # Throttled or unreachable: report every name as possibly available
            logger.warning(
                "Availability lookup degraded for %d names: %s", len(batch), exc
            )
            return [AvailabilityRecord.optimistic(name) for name in batch]
        except Exception:
            logger.exception(
                "Unexpected availability lookup error for %d names", len(batch)
            )
            return [AvailabilityRecord.optimistic(name) for name in batch]
        return [record for record in records if record.available]

    async def wait_all(self) -> None:
        """Wait until no lookup is pending."""
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._pending):
            task.cancel()
