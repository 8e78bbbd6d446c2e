"""
Building enrichment (description text + image).

When a building enters `DETAIL`, the overlay wants its description and photo.
Both are fetched concurrently with `httpx.AsyncClient`; failures never raise to
the caller, they produce the configured fallback text / no image and are listed
in `BuildingDetails.errors`.

`EnrichmentScheduler` runs fetches fire-and-forget on an event loop so the
proximity engine is never on this path.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, Iterable

import httpx

from artour.config.settings import EnrichmentSettings
from artour.core.http import aget_bytes, aget_text
from artour.domain.models import Building, DisplayState, TransitionEvent

logger = logging.getLogger(__name__)

# Malformed dataset URLs surface as InvalidURL or ValueError before any request is sent.
FETCH_ERRORS = (httpx.HTTPError, httpx.InvalidURL, ValueError)


@dataclass(frozen=True)
class BuildingDetails:
    building_id: str
    name: str
    description: str
    image: bytes | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class EnrichmentClient:
    def __init__(self, settings: EnrichmentSettings, *, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    async def _description(self, client: httpx.AsyncClient, url: str | None) -> str | None:
        if not url:
            return None
        return (await aget_text(client, url)).strip()

    async def _image(self, client: httpx.AsyncClient, url: str | None) -> bytes | None:
        if not url:
            return None
        return await aget_bytes(client, url)

    async def fetch(self, building: Building) -> BuildingDetails:
        """Fetch description and image for `building`; never raises on HTTP or URL failure."""
        async with httpx.AsyncClient(timeout=self._settings.timeout_seconds, transport=self._transport) as client:
            description, image = await asyncio.gather(
                self._description(client, building.description_url),
                self._image(client, building.image_url),
                return_exceptions=True,
            )

        errors: list[str] = []
        if isinstance(description, BaseException):
            if not isinstance(description, FETCH_ERRORS):
                raise description
            logger.warning("Description fetch failed for %s: %s", building.id, description)
            errors.append(f"description: {description}")
            description = None
        if isinstance(image, BaseException):
            if not isinstance(image, FETCH_ERRORS):
                raise image
            logger.warning("Image fetch failed for %s: %s", building.id, image)
            errors.append(f"image: {image}")
            image = None

        return BuildingDetails(
            building_id=building.id,
            name=building.name,
            description=description or self._settings.fallback_text,
            image=image,
            errors=errors,
        )


DetailsCallback = Callable[[BuildingDetails], None]


class EnrichmentScheduler:
    """Fire-and-forget enrichment on a given event loop."""

    def __init__(self, client: EnrichmentClient, loop: asyncio.AbstractEventLoop):
        self._client = client
        self._loop = loop
        self._pending: set[asyncio.Task | Future] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def _run(self, building: Building, callback: DetailsCallback | None) -> BuildingDetails:
        details = await self._client.fetch(building)
        if callback is not None:
            try:
                callback(details)
            except Exception:
                logger.exception("Enrichment callback failed for %s", building.id)
        return details

    def schedule(self, building: Building, callback: DetailsCallback | None = None) -> None:
        """Start fetching details for `building` without waiting for them."""
        coro = self._run(building, callback)
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            handle: asyncio.Task | Future = self._loop.create_task(coro)
        else:
            handle = asyncio.run_coroutine_threadsafe(coro, self._loop)
        self._pending.add(handle)
        handle.add_done_callback(self._pending.discard)

    def schedule_for_events(
        self,
        events: Iterable[TransitionEvent],
        buildings: dict[str, Building],
        callback: DetailsCallback | None = None,
    ) -> int:
        """Schedule enrichment for every building that just entered `DETAIL`."""
        scheduled = 0
        for event in events:
            if event.new_state is not DisplayState.DETAIL:
                continue
            building = buildings.get(event.building_id)
            if building is None:
                continue
            self.schedule(building, callback)
            scheduled += 1
        return scheduled

    async def drain(self) -> None:
        """Wait for tasks scheduled on the current loop (used on teardown and in tests)."""
        tasks = [t for t in self._pending if isinstance(t, asyncio.Task)]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
