"""Domain-token matcher built from the registry's TLD list.

The matcher is built once per process. `SuffixMatcherCache` owns that state
explicitly: `get()` builds on first use, `reset()` drops it (called on
application shutdown and between tests).
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterable

from core.exceptions import SuffixListUnavailableError
from services.domains.interfaces import SuffixSourceProtocol


logger = logging.getLogger(__name__)

# 2-63 chars of [a-z0-9-], never starting or ending with a hyphen
LABEL_PATTERN = r"[a-z0-9][a-z0-9-]{0,61}[a-z0-9]"


def build_domain_pattern(suffixes: Iterable[str]) -> re.Pattern[str]:
    """Compile a case-insensitive `label.suffix` matcher.

    Suffixes are escaped so their dots only match literal dots, deduplicated
    case-insensitively, and ordered longest first so that `co.uk` wins over
    `co` when both are supported.

    Raises:
        SuffixListUnavailableError: if no usable suffix is supplied.
    """
    unique = {s.strip().strip(".").lower() for s in suffixes if s and s.strip(". ")}
    if not unique:
        raise SuffixListUnavailableError("No domain suffixes to build a matcher from")
    ordered = sorted(unique, key=lambda s: (-len(s), s))
    alternation = "|".join(re.escape(s) for s in ordered)
    return re.compile(rf"{LABEL_PATTERN}\.(?:{alternation})", re.IGNORECASE)


class SuffixMatcherCache:
    """Process-scoped, lazily initialized domain matcher."""

    def __init__(self) -> None:
        self._pattern: re.Pattern[str] | None = None
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._pattern is not None

    async def get(self, source: SuffixSourceProtocol) -> re.Pattern[str]:
        """Return the cached matcher, building it from `source` if absent.

        Concurrent first callers share one fetch. A failed fetch is not
        cached, so the next call retries.
        """
        if self._pattern is not None:
            return self._pattern
        async with self._lock:
            if self._pattern is None:
                tlds = await source.fetch_tlds()
                self._pattern = build_domain_pattern(tld.name for tld in tlds)
                logger.info("Domain matcher built from %d suffixes", len(tlds))
        return self._pattern

    def reset(self) -> None:
        self._pattern = None
        self._lock = asyncio.Lock()


_matcher_cache = SuffixMatcherCache()


async def get_domain_matcher(source: SuffixSourceProtocol) -> re.Pattern[str]:
    """Module-level accessor for the process-wide matcher."""
    return await _matcher_cache.get(source)


def reset_domain_matcher() -> None:
    _matcher_cache.reset()


def is_domain_matcher_ready() -> bool:
    return _matcher_cache.is_ready
