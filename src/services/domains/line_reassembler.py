"""Reassemble newline-delimited records from arbitrary byte chunks."""

from __future__ import annotations

import codecs
import re


_LINE_BREAKS = re.compile(r"\n+")


class LineReassembler:
    """Buffer partial data and release complete lines.

    Lines are only released once the buffered text ends with a newline, and
    then all complete lines are released at once. Text that never receives a
    trailing newline stays in `pending` and is never emitted.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        # Incremental decoding keeps multi-byte characters split across
        # chunks intact.
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._incomplete = ""

    @property
    def pending(self) -> str:
        return self._incomplete

    def feed(self, chunk: bytes) -> list[str]:
        self._incomplete += self._decoder.decode(chunk)
        if not self._incomplete.endswith("\n"):
            return []

        buffered, self._incomplete = self._incomplete, ""
        return [line for line in _LINE_BREAKS.split(buffered) if line.strip()]
