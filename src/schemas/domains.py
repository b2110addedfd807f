"""Schemas for domain discovery streaming.

`AvailabilityRecord` is both the parsed form of the availability service's
response items and the unit written to the output stream. Generation events
are plain frozen dataclasses: they never leave the process.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


WIRE_DELIMITER: str = "|"


class AvailabilityRecord(BaseModel):
    """Availability of a single domain name.

    `definitive` is False when the record was synthesized because the lookup
    service failed; the domain is then only assumed to be available.
    """

    domain: str
    available: bool
    definitive: bool
    period: int | None = None
    price: int | None = None
    currency: str | None = None

    # Vendor responses carry extra keys we don't forward
    model_config = ConfigDict(extra="ignore")

    @classmethod
    def optimistic(cls, domain: str) -> AvailabilityRecord:
        """Build the non-definitive record used when a lookup fails."""
        return cls(domain=domain, available=True, definitive=False)

    def to_wire(self) -> str:
        """Serialize to a single compact JSON unit without unset fields."""
        return self.model_dump_json(exclude_none=True)


class AvailabilityResponse(BaseModel):
    """Body of a successful `POST /v1/domains/available` call."""

    domains: list[AvailabilityRecord] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class TldDescriptor(BaseModel):
    """One entry of the `GET /v1/domains/tlds` response."""

    name: str = Field(..., min_length=1)
    type: Literal["COUNTRY_CODE", "GENERIC"] | str = "GENERIC"

    model_config = ConfigDict(extra="ignore")


@dataclass(frozen=True)
class DeltaEvent:
    """An incremental text fragment from the generation stream."""

    text: str


@dataclass(frozen=True)
class TerminalEvent:
    """The generation stream's end-of-stream sentinel."""


@dataclass(frozen=True)
class MalformedEvent:
    """A record that could not be parsed; dropped by the pipeline."""

    raw: str


GenerationEvent = DeltaEvent | TerminalEvent | MalformedEvent
