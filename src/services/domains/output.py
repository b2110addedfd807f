"""Output stream for available domains and the barrier that closes it."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING

from core.exceptions import StreamClosedError
from schemas.domains import WIRE_DELIMITER, AvailabilityRecord


if TYPE_CHECKING:
    from services.domains.orchestrator import EnrichmentOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_GRACE_SECONDS = 0.1


class OutputSink:
    """Queue of whole, delimiter-terminated groups of records.

    Writers call `emit`; the single reader iterates the sink until `close`.
    Each `emit` enqueues one unit, so groups are never interleaved.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._closed = False
        self.units_emitted = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, records: Sequence[AvailabilityRecord]) -> None:
        if self._closed:
            raise StreamClosedError("Cannot emit to a closed output stream")
        if not records:
            return
        payload = WIRE_DELIMITER.join(record.to_wire() for record in records)
        self._queue.put_nowait((payload + WIRE_DELIMITER).encode("utf-8"))
        self.units_emitted += 1
        logger.debug("Emitted %d available domains", len(records))

    def close(self) -> None:
        if self._closed:
            raise StreamClosedError("Output stream already closed")
        self._closed = True
        self._queue.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            unit = await self._queue.get()
            if unit is None:
                return
            yield unit


class StreamState(StrEnum):
    STREAMING = "streaming"
    DRAINING = "draining"
    CLOSED = "closed"


class CompletionBarrier:
    """Close the output exactly once, after every enrichment has settled."""

    def __init__(
        self,
        orchestrator: EnrichmentOrchestrator,
        sink: OutputSink,
        grace_seconds: float = DEFAULT_FLUSH_GRACE_SECONDS,
    ) -> None:
        self._orchestrator = orchestrator
        self._sink = sink
        self._grace_seconds = grace_seconds
        self.state = StreamState.STREAMING

    async def finalize(self) -> None:
        if self.state is not StreamState.STREAMING:
            raise StreamClosedError(f"finalize called in state {self.state}")
        self.state = StreamState.DRAINING
        logger.debug("Draining %d pending lookups", self._orchestrator.pending)

        await self._orchestrator.wait_all()
        # Let writes from just-settled lookups reach the transport
        await asyncio.sleep(self._grace_seconds)

        self._sink.close()
        self.state = StreamState.CLOSED
        logger.debug(
            "Output closed after %d lookups", self._orchestrator.issued
        )

    def abort(self) -> None:
        """Cancel outstanding lookups and release the reader immediately."""
        if self.state is StreamState.CLOSED:
            return
        self._orchestrator.cancel_all()
        if not self._sink.closed:
            self._sink.close()
        self.state = StreamState.CLOSED
