"""Streaming chat-completions client for the generative text source."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from core.config import Settings, get_settings
from core.exceptions import UpstreamStreamError


logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    "List some suitable domain names for my project in CSV format. "
    'Description of my project: "{description}"'
)

# Connect/write are bounded; reads are not, since tokens may trickle in slowly.
STREAM_TIMEOUT = httpx.Timeout(10.0, read=None)


def build_prompt(description: str) -> str:
    return PROMPT_TEMPLATE.format(description=description)


class CompletionClient:
    """Yields the raw byte chunks of a streaming chat completion."""

    def __init__(
        self,
        *,
        url: str,
        api_key: str | None,
        model: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.model = model
        self._api_key = api_key
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CompletionClient:
        settings = settings or get_settings()
        return cls(
            url=settings.OPENAI_URL,
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
        )

    def _request_body(self, description: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "stream": True,
            "messages": [{"role": "user", "content": build_prompt(description)}],
        }

    async def stream_chunks(self, description: str) -> AsyncIterator[bytes]:
        """Stream the completion body as it arrives.

        A non-success status ends the stream without yielding anything; the
        caller still closes its own output normally.

        Raises:
            UpstreamStreamError: if the connection fails or drops mid-stream.
        """
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key or ''}",
        }
        try:
            async with httpx.AsyncClient(
                timeout=STREAM_TIMEOUT, transport=self._transport
            ) as client:
                async with client.stream(
                    "POST",
                    self.url,
                    json=self._request_body(description),
                    headers=headers,
                ) as response:
                    if not response.is_success:
                        logger.warning(
                            "Completion request failed with status %s",
                            response.status_code,
                        )
                        return
                    async for chunk in response.aiter_bytes():
                        if chunk:
                            yield chunk
        except httpx.HTTPError as exc:
            raise UpstreamStreamError(
                f"Completion stream failed: {type(exc).__name__}"
            ) from exc
