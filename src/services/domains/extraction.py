"""Accumulate generated text and extract newly seen domain candidates."""

from __future__ import annotations

import re


# Matches this long or longer are almost always run-on tokens, not names
MAX_DOMAIN_LENGTH = 25


class ContentAccumulator:
    """Append-only buffer of the generated text so far."""

    def __init__(self) -> None:
        self._text = ""

    @property
    def text(self) -> str:
        return self._text

    def append(self, fragment: str) -> str:
        if fragment:
            self._text += fragment
        return self._text


class CandidateExtractor:
    """Find domain tokens in the full text that were not reported before.

    The whole text is re-scanned on every call so a token split across two
    fragments (``"exam"`` + ``"ple.com"``) is still found once complete.
    """

    def __init__(
        self, pattern: re.Pattern[str], max_length: int = MAX_DOMAIN_LENGTH
    ) -> None:
        self._pattern = pattern
        self._max_length = max_length
        self._seen: dict[str, None] = {}

    @property
    def seen(self) -> tuple[str, ...]:
        return tuple(self._seen)

    def extract(self, full_text: str) -> list[str]:
        fresh: list[str] = []
        for match in self._pattern.finditer(full_text):
            candidate = match.group(0).lower()
            if len(candidate) >= self._max_length or candidate in self._seen:
                continue
            self._seen[candidate] = None
            fresh.append(candidate)
        return fresh
