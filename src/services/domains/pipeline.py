"""Per-request domain discovery pipeline.

bytes -> lines -> events -> accumulated text -> new candidates -> lookups
-> output units. Reading the generation stream and running lookups overlap:
results are written as soon as each lookup settles, and the output closes
only after the last one has.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re
from collections.abc import AsyncIterator

from core.exceptions import UpstreamStreamError
from schemas.domains import DeltaEvent, TerminalEvent
from services.domains.event_parser import parse_event
from services.domains.extraction import CandidateExtractor, ContentAccumulator
from services.domains.interfaces import AvailabilityCheckerProtocol
from services.domains.line_reassembler import LineReassembler
from services.domains.orchestrator import EnrichmentOrchestrator
from services.domains.output import (
    DEFAULT_FLUSH_GRACE_SECONDS,
    CompletionBarrier,
    OutputSink,
)


logger = logging.getLogger(__name__)


class DomainStreamPipeline:
    def __init__(
        self,
        pattern: re.Pattern[str],
        checker: AvailabilityCheckerProtocol,
        *,
        grace_seconds: float = DEFAULT_FLUSH_GRACE_SECONDS,
    ) -> None:
        self.sink = OutputSink()
        self.reassembler = LineReassembler()
        self.accumulator = ContentAccumulator()
        self.extractor = CandidateExtractor(pattern)
        self.orchestrator = EnrichmentOrchestrator(checker, self.sink)
        self.barrier = CompletionBarrier(self.orchestrator, self.sink, grace_seconds)
        self.chunks_read = 0

    async def run(self, chunks: AsyncIterator[bytes]) -> None:
        """Consume the generation stream, then close the output.

        The output is closed even when the stream fails; the failure is
        re-raised afterwards. Cancellation abandons pending lookups.
        """
        try:
            await self._consume(chunks)
        except asyncio.CancelledError:
            self.barrier.abort()
            raise
        except Exception:
            await self._finalize()
            raise
        await self._finalize()
        logger.info(
            "Domain stream finished: %d chunks, %d candidates, %d lookups",
            self.chunks_read,
            len(self.extractor.seen),
            self.orchestrator.issued,
        )

    async def stream(self, chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        """Run the pipeline in the background and yield output units."""
        runner = asyncio.create_task(self.run(chunks), name="domain-stream")
        try:
            async for unit in self.sink:
                yield unit
            try:
                await runner
            except UpstreamStreamError as exc:
                # Whatever was already sent stays valid; the response just ends
                logger.warning("Generation stream ended early: %s", exc)
        finally:
            if not runner.done():
                # Consumer went away: stop reading and drop pending lookups
                runner.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await runner
                await self.orchestrator.wait_all()

    async def _consume(self, chunks: AsyncIterator[bytes]) -> None:
        try:
            async for chunk in chunks:
                self.chunks_read += 1
                for line in self.reassembler.feed(chunk):
                    event = parse_event(line)
                    if isinstance(event, TerminalEvent):
                        logger.debug("Generation finished via sentinel")
                        return
                    if isinstance(event, DeltaEvent):
                        self._handle_delta(event.text)
        finally:
            await _close_source(chunks)

        if self.reassembler.pending.strip():
            logger.debug(
                "Dropping unterminated trailing data (%d chars)",
                len(self.reassembler.pending),
            )

    def _handle_delta(self, text: str) -> None:
        full_text = self.accumulator.append(text)
        candidates = self.extractor.extract(full_text)
        if candidates:
            logger.debug("New candidates: %s", candidates)
        self.orchestrator.enqueue(candidates)

    async def _finalize(self) -> None:
        try:
            await self.barrier.finalize()
        except asyncio.CancelledError:
            self.barrier.abort()
            raise


async def _close_source(chunks: AsyncIterator[bytes]) -> None:
    aclose = getattr(chunks, "aclose", None)
    if aclose is not None:
        await aclose()
