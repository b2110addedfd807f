"""Shared test fixtures for pytest.

ENVIRONMENT is forced to "test" before any application module is imported
so settings never read a developer's .env file. Upstream services are
replaced by in-memory fakes; nothing here touches the network.
"""

import asyncio
import json
import os
from collections.abc import AsyncIterator, Callable, Generator, Sequence

import pytest
from fastapi.testclient import TestClient


os.environ["ENVIRONMENT"] = "test"

from core.config import get_settings
from core.exceptions import AvailabilityLookupError
from schemas.domains import AvailabilityRecord, TldDescriptor
from services.domains import reset_domain_matcher
from services.domains.suffix_matcher import build_domain_pattern


class FakeAvailabilityChecker:
    """Records every batch and answers from a fixed set of taken names.

    `fail_batches` holds batch indexes that raise `AvailabilityLookupError`;
    `delays` maps batch indexes to a sleep before answering.
    """

    def __init__(
        self,
        taken: Sequence[str] = (),
        *,
        fail_batches: Sequence[int] = (),
        delays: dict[int, float] | None = None,
    ) -> None:
        self.taken = set(taken)
        self.fail_batches = set(fail_batches)
        self.delays = delays or {}
        self.batches: list[list[str]] = []
        self.completed = 0

    async def check_availability(
        self, names: Sequence[str]
    ) -> list[AvailabilityRecord]:
        index = len(self.batches)
        self.batches.append(list(names))
        await asyncio.sleep(self.delays.get(index, 0))
        self.completed += 1
        if index in self.fail_batches:
            raise AvailabilityLookupError("throttled", status_code=429)
        return [
            AvailabilityRecord(
                domain=name,
                available=name not in self.taken,
                definitive=True,
                price=11990000,
                currency="USD",
                period=1,
            )
            for name in names
        ]


class FakeSuffixSource:
    def __init__(self, names: Sequence[str] = ("com", "io", "net")) -> None:
        self.names = list(names)
        self.calls = 0

    async def fetch_tlds(self) -> list[TldDescriptor]:
        self.calls += 1
        await asyncio.sleep(0)
        return [TldDescriptor(name=name, type="GENERIC") for name in self.names]


def completion_record(content: str | None) -> str:
    delta = {} if content is None else {"content": content}
    return "data: " + json.dumps({"choices": [{"index": 0, "delta": delta}]})


def completion_body(fragments: Sequence[str], *, done: bool = True) -> bytes:
    """Encode text fragments as a chat-completions event stream."""
    lines = [completion_record(fragment) for fragment in fragments]
    if done:
        lines.append("data: [DONE]")
    return ("\n\n".join(lines) + "\n\n").encode("utf-8")


async def iter_chunks(chunks: Sequence[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        await asyncio.sleep(0)
        yield chunk


def split_every(data: bytes, size: int) -> list[bytes]:
    return [data[i : i + size] for i in range(0, len(data), size)]


@pytest.fixture(autouse=True)
def _reset_process_state() -> Generator[None, None, None]:
    reset_domain_matcher()
    get_settings.cache_clear()
    yield
    reset_domain_matcher()
    get_settings.cache_clear()


@pytest.fixture
def domain_pattern():
    return build_domain_pattern(["com", "io", "net", "co.uk"])


@pytest.fixture
def checker_factory() -> Callable[..., FakeAvailabilityChecker]:
    return FakeAvailabilityChecker


@pytest.fixture
def suffix_source() -> FakeSuffixSource:
    return FakeSuffixSource()


@pytest.fixture
def stream_helpers():
    """Builders for fake completion streams."""

    class _Helpers:
        record = staticmethod(completion_record)
        body = staticmethod(completion_body)
        chunks = staticmethod(iter_chunks)
        split = staticmethod(split_every)

    return _Helpers


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    from main import app

    with TestClient(app) as client:
        yield client
