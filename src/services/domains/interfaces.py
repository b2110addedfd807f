"""Service interfaces for the domain discovery pipeline.

The pipeline depends only on these protocols so the concrete httpx clients
can be swapped for fakes in tests.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Protocol

from schemas.domains import AvailabilityRecord, TldDescriptor


class AvailabilityCheckerProtocol(Protocol):
    """Batch availability lookup.

    Raises `AvailabilityLookupError` on any failure the caller should
    degrade from.
    """

    async def check_availability(
        self, names: Sequence[str]
    ) -> list[AvailabilityRecord]: ...


class SuffixSourceProtocol(Protocol):
    """One-shot source of valid domain suffixes."""

    async def fetch_tlds(self) -> list[TldDescriptor]: ...


class TextStreamSourceProtocol(Protocol):
    """Chunked byte producer for generated text."""

    def stream_chunks(self, description: str) -> AsyncIterator[bytes]: ...
