"""Slack incoming-webhook notifier and message formatting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import httpx
from pydantic import BaseModel, Field

from .errors import DispatchError
from .fetch import redact_url

if TYPE_CHECKING:
    from .enrichment import Enrichment
    from .models import Event, LogSnapshot

logger = logging.getLogger(__name__)

# Date/time format presented in the Slack post.
POST_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
POST_TIMEOUT = 10.0


class Attachment(BaseModel):
    color: str | None = Field(default=None, description="'good', 'warning', 'danger' or a hex colour.")
    pretext: str | None = None
    title: str | None = None
    text: str | None = None
    footer: str | None = None
    ts: int | None = Field(default=None, description="Unix timestamp shown next to the footer.")


class SlackMessage(BaseModel):
    text: str | None = None
    attachments: list[Attachment] = Field(default_factory=list)


class Notifier(Protocol):
    """Sink interface: deliver one message or raise DispatchError."""

    async def post(self, message: SlackMessage) -> None:
        """Send a formatted message."""
        ...


def format_message(
    snapshot: LogSnapshot,
    event: Event,
    enrichment: Enrichment | None = None,
) -> SlackMessage:
    """Build the Slack message for one accepted event."""
    who = snapshot.entity_id or redact_url(snapshot.source)
    footer = event.timestamp.strftime(POST_TIME_FORMAT)
    if snapshot.log_type:
        footer = f"{snapshot.log_type} | {footer}"

    attachment = Attachment(
        pretext=f"{who}: {event.message}",
        footer=footer,
        ts=int(event.timestamp.timestamp()),
    )
    if enrichment is not None:
        attachment = attachment.model_copy(
            update={
                "title": enrichment.title,
                "text": enrichment.text,
                "color": enrichment.color,
            }
        )
    return SlackMessage(attachments=[attachment])


class SlackNotifier:
    """Post messages to a Slack incoming webhook.

    In dry mode the payload is only logged.
    """

    def __init__(
        self,
        webhook: str,
        *,
        dry: bool = False,
        client: httpx.AsyncClient | None = None,
        timeout: float = POST_TIMEOUT,
    ) -> None:
        self._webhook = webhook
        self._dry = dry
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    async def post(self, message: SlackMessage) -> None:
        payload = message.model_dump(exclude_none=True)
        if self._dry:
            logger.info("Dry run, not posting Slack message: %s", payload)
            return

        logger.debug("Posting Slack message: %s", payload)
        if self._client is None:
            self._client = httpx.AsyncClient()
        try:
            response = await self._client.post(self._webhook, json=payload, timeout=self._timeout)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DispatchError(f"unable to post to Slack: {exc}") from exc

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
