"""Link preview lookups via an oEmbed-compatible metadata service.

Fetches title and thumbnail metadata for example URLs. Lookups never raise:
any transport or payload problem produces a failed result so the caller can
fall back to a plain link.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TypedDict

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://noembed.com/embed"


class PreviewStatus(StrEnum):
    """Lifecycle state of a preview lookup."""

    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class PreviewResultDict(TypedDict):
    """Dictionary representation of a preview result."""

    status: str
    title: str | None
    thumbnail_url: str | None


@dataclass(frozen=True)
class PreviewResult:
    """Outcome of a preview lookup for one URL."""

    status: PreviewStatus
    title: str | None = None
    thumbnail_url: str | None = None

    @classmethod
    def pending(cls) -> PreviewResult:
        return cls(status=PreviewStatus.PENDING)

    @classmethod
    def resolved(cls, title: str, thumbnail_url: str | None = None) -> PreviewResult:
        return cls(status=PreviewStatus.RESOLVED, title=title, thumbnail_url=thumbnail_url)

    @classmethod
    def failed(cls) -> PreviewResult:
        return cls(status=PreviewStatus.FAILED)

    @property
    def is_pending(self) -> bool:
        return self.status is PreviewStatus.PENDING

    @property
    def is_resolved(self) -> bool:
        return self.status is PreviewStatus.RESOLVED

    @property
    def is_failed(self) -> bool:
        return self.status is PreviewStatus.FAILED

    def to_dict(self) -> PreviewResultDict:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": str(self.status),
            "title": self.title,
            "thumbnail_url": self.thumbnail_url,
        }


class PreviewResolver:
    """Resolves preview metadata for URLs.

    Each call performs its own lookup; nothing is cached and nothing is
    retried. The only timeout is the HTTP client's default.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            endpoint: Metadata service URL; the target URL is passed as ``url``
            client: HTTP client to use (default: a new client owned by the resolver)
        """
        self._endpoint = endpoint
        self._client = client or httpx.AsyncClient()

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def resolve(self, url: str) -> PreviewResult:
        """Look up preview metadata for a URL.

        Args:
            url: Target URL

        Returns:
            Resolved result with title and optional thumbnail, or a failed
            result on any error
        """
        try:
            response = await self._client.get(self._endpoint, params={"url": url})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Preview lookup failed for {url}: {e}")
            return PreviewResult.failed()

        if not isinstance(payload, dict):
            logger.debug(f"Preview lookup for {url} returned a non-object body")
            return PreviewResult.failed()

        title = payload.get("title")
        if not isinstance(title, str) or not title:
            title = url

        thumbnail_url = payload.get("thumbnail_url")
        if not isinstance(thumbnail_url, str) or not thumbnail_url:
            thumbnail_url = None

        return PreviewResult.resolved(title, thumbnail_url)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


class PreviewSlot:
    """Display slot for one URL's preview.

    Holds the current result and the task performing the lookup. Once
    discarded, a slot never changes again, even if its lookup completes.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self.result = PreviewResult.pending()
        self._task: asyncio.Task[None] | None = None
        self._discarded = False

    @property
    def discarded(self) -> bool:
        return self._discarded

    def start(
        self,
        resolver: PreviewResolver,
        on_done: Callable[[PreviewSlot], None] | None = None,
    ) -> None:
        """Start the lookup in a background task.

        Must be called from a running event loop. Starting an already started
        or discarded slot does nothing.

        Args:
            resolver: Resolver performing the lookup
            on_done: Called with the slot after its result has been applied
        """
        if self._task is not None or self._discarded:
            return
        self._task = asyncio.create_task(self._run(resolver, on_done))

    def discard(self) -> None:
        """Drop interest in the result and cancel the lookup."""
        self._discarded = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait until the lookup finishes or is cancelled."""
        if self._task is None:
            return
        await asyncio.wait({self._task})

    async def _run(
        self,
        resolver: PreviewResolver,
        on_done: Callable[[PreviewSlot], None] | None,
    ) -> None:
        result = await resolver.resolve(self.url)
        if self._discarded:
            return
        self.result = result
        if on_done is not None:
            on_done(self)
