"""Streaming domain-name suggestion endpoint."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from core.config import Settings, get_settings
from services.domains import (
    CompletionClient,
    DomainStreamPipeline,
    GoDaddyClient,
    get_domain_matcher,
)
from services.domains.interfaces import TextStreamSourceProtocol


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/domains", tags=["domains"])

DEFAULT_DESCRIPTION = "test domain name generator"


def get_godaddy_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> GoDaddyClient:
    return GoDaddyClient.from_settings(settings)


def get_completion_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> CompletionClient:
    return CompletionClient.from_settings(settings)


@router.get(
    "",
    response_class=StreamingResponse,
    summary="Stream available domain names suggested for a project description",
)
async def stream_available_domains(
    settings: Annotated[Settings, Depends(get_settings)],
    godaddy: Annotated[GoDaddyClient, Depends(get_godaddy_client)],
    completion: Annotated[
        TextStreamSourceProtocol, Depends(get_completion_client)
    ],
    description: Annotated[str, Query(max_length=1000)] = DEFAULT_DESCRIPTION,
) -> StreamingResponse:
    """Stream available domains while the suggestions are still being generated.

    The body is a sequence of JSON availability records, each followed by
    `|`, e.g. `{"domain":"coolsite.com","available":true,"definitive":true}|`.
    Records with `"definitive": false` could not be verified and are only
    assumed to be available. The response simply ends when every lookup has
    finished.

    A 503 is returned before streaming starts if the TLD list is unavailable.
    """
    # Raises SuffixListUnavailableError before any bytes are sent
    pattern = await get_domain_matcher(godaddy)

    description = description.strip()[: settings.MAX_DESCRIPTION_LENGTH]
    if not description:
        description = DEFAULT_DESCRIPTION
    logger.debug("Streaming domains for description of %d chars", len(description))

    pipeline = DomainStreamPipeline(
        pattern, godaddy, grace_seconds=settings.FLUSH_GRACE_SECONDS
    )
    return StreamingResponse(
        pipeline.stream(completion.stream_chunks(description)),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-store", "X-Accel-Buffering": "no"},
    )
