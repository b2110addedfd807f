"""GoDaddy-compatible domains API client (TLD list + availability)."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx
from pydantic import TypeAdapter, ValidationError

from core.config import Settings, get_settings
from core.exceptions import AvailabilityLookupError, SuffixListUnavailableError
from schemas.domains import AvailabilityRecord, AvailabilityResponse, TldDescriptor


logger = logging.getLogger(__name__)

TLDS_PATH = "/v1/domains/tlds"
AVAILABLE_PATH = "/v1/domains/available"
TLD_FETCH_TIMEOUT_SECONDS = 10.0

_tld_list_adapter = TypeAdapter(list[TldDescriptor])


class GoDaddyClient:
    """Thin async client over the two domains endpoints the pipeline needs.

    A fresh `httpx.AsyncClient` is opened per call; `transport` is only
    injected by tests.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None,
        api_secret: str | None,
        availability_timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._auth = f"sso-key {api_key or ''}:{api_secret or ''}"
        self.availability_timeout = availability_timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> GoDaddyClient:
        settings = settings or get_settings()
        return cls(
            base_url=settings.GODADDY_URL,
            api_key=settings.GODADDY_API_KEY,
            api_secret=settings.GODADDY_API_SECRET,
            availability_timeout=settings.AVAILABILITY_TIMEOUT_SECONDS,
        )

    def _client(self, timeout: float | None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": self._auth},
            timeout=httpx.Timeout(timeout),
            transport=self._transport,
        )

    async def fetch_tlds(self) -> list[TldDescriptor]:
        """Fetch the list of supported TLDs.

        Raises:
            SuffixListUnavailableError: on transport failure, a non-success
                status, an unparsable body, or an empty list.
        """
        try:
            async with self._client(TLD_FETCH_TIMEOUT_SECONDS) as client:
                response = await client.get(TLDS_PATH)
                response.raise_for_status()
                tlds = _tld_list_adapter.validate_python(response.json())
        except httpx.HTTPError as exc:
            logger.error("TLD list request failed: %s", type(exc).__name__)
            raise SuffixListUnavailableError(
                f"TLD list request failed: {type(exc).__name__}"
            ) from exc
        except (ValueError, ValidationError) as exc:
            logger.error("TLD list response parse failed: %s", type(exc).__name__)
            raise SuffixListUnavailableError("TLD list response was malformed") from exc

        if not tlds:
            raise SuffixListUnavailableError("TLD list response was empty")
        logger.info("Fetched %d TLDs", len(tlds))
        return tlds

    async def check_availability(
        self, names: Sequence[str]
    ) -> list[AvailabilityRecord]:
        """Look up availability for a batch of domain names.

        Returns every record the service reports, available or not.

        Raises:
            AvailabilityLookupError: on transport failure, timeout, a
                non-success status (e.g. 429 throttling), or an unparsable body.
        """
        try:
            async with self._client(self.availability_timeout) as client:
                response = await client.post(
                    AVAILABLE_PATH,
                    json=list(names),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as exc:
            raise AvailabilityLookupError(
                f"Availability request failed: {type(exc).__name__}"
            ) from exc

        if not response.is_success:
            raise AvailabilityLookupError(
                f"Availability service returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = AvailabilityResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise AvailabilityLookupError(
                "Availability response was malformed",
                status_code=response.status_code,
            ) from exc

        logger.debug(
            "Availability ok for %d names (%d records)", len(names), len(payload.domains)
        )
        return payload.domains
