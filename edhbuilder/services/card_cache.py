"""
Local card cache.

Cache-first access to previously resolved Scryfall printings, and a
write-through that stores newly resolved cards without making the import
wait for it.

INVARIANTS:
1. Cache reads never fail an import (errors are logged, lookup returns nothing)
2. Cache writes are detached tasks; their failures are logged, never raised
3. Only stale-free rows are served; stale rows are left for the refresh job
"""

import asyncio
import logging
from collections.abc import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from edhbuilder.config import settings
from edhbuilder.db.operations import (
    cached_card_to_ref,
    get_cached_card_by_printing,
    get_cached_cards_by_names,
    upsert_cached_cards,
)
from edhbuilder.models.catalog_card import CatalogCardRef

logger = logging.getLogger(__name__)


class CardCache:
    """Read side of the local card cache."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        stale_after_days: int | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._stale_after_days = (
            stale_after_days if stale_after_days is not None else settings.card_cache_stale_days
        )

    async def lookup_names(self, names: Iterable[str]) -> dict[str, list[CatalogCardRef]]:
        """
        Fresh cached printings grouped by lowercased name.

        Returns an empty mapping if the cache cannot be read.
        """
        try:
            async with self._session_factory() as session:
                rows = await get_cached_cards_by_names(session, names, self._stale_after_days)
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Card cache read failed, falling back to Scryfall: %s", e)
            return {}

        found: dict[str, list[CatalogCardRef]] = {}
        for row in rows:
            found.setdefault(row.name_lower, []).append(cached_card_to_ref(row))
        return found

    async def lookup_printing(self, set_code: str, collector_number: str) -> CatalogCardRef | None:
        """A cached printing by set + collector number, or None."""
        try:
            async with self._session_factory() as session:
                row = await get_cached_card_by_printing(session, set_code, collector_number)
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Card cache read failed for %s/%s: %s", set_code, collector_number, e)
            return None
        return cached_card_to_ref(row) if row is not None else None


class CardCacheWriter:
    """
    Fire-and-forget write-through for resolved cards.

    `submit()` schedules a task and returns immediately. Pending tasks are
    tracked so they are not garbage collected mid-flight and so shutdown
    (or a test) can `drain()` them.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._pending: set[asyncio.Task[int]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, cards: Iterable[CatalogCardRef]) -> asyncio.Task[int] | None:
        """Schedule a cache write. Returns the task, or None if there is nothing to write."""
        to_write = [card for card in cards if card.is_printing and card.scryfall_id]
        if not to_write:
            return None

        task = asyncio.get_running_loop().create_task(self._write(to_write))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _write(self, cards: list[CatalogCardRef]) -> int:
        try:
            async with self._session_factory() as session:
                written = await upsert_cached_cards(session, cards)
                await session.commit()
        except Exception:
            logger.exception("Card cache write failed for %d cards", len(cards))
            return 0

        logger.debug("Cached %d cards", written)
        return written

    async def drain(self) -> None:
        """Wait for every pending write to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
