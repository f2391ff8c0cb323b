"""
Scheduled job to refresh the local card cache.

Re-fetches cached printings older than the staleness window from
Scryfall and writes them back. Can be run as a standalone script or
called from a scheduler.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from edhbuilder.config import CATALOG_BATCH_SIZE, settings
from edhbuilder.db.database import async_session_factory
from edhbuilder.db.operations import find_stale_cards, upsert_cached_cards
from edhbuilder.services.card_catalog import (
    CardCatalog,
    CatalogServiceError,
    ScryfallCatalog,
    printing_identifier,
)

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_LIMIT = 750


async def refresh_stale_cards(
    catalog: CardCatalog,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    stale_after_days: int | None = None,
    limit: int = DEFAULT_REFRESH_LIMIT,
) -> int:
    """
    Refresh up to `limit` stale cached printings.

    A failed batch is logged and skipped; its cards stay stale and are
    picked up by the next run.

    Returns:
        Number of cards refreshed
    """
    days = stale_after_days if stale_after_days is not None else settings.card_cache_stale_days

    async with session_factory() as session:
        stale = await find_stale_cards(session, days, limit=limit)
    identifiers = [
        printing_identifier(card.set_code, card.collector_number)
        for card in stale
        if card.set_code and card.collector_number
    ]
    logger.info("Found %d stale cached cards", len(identifiers))

    refreshed = 0
    for start in range(0, len(identifiers), CATALOG_BATCH_SIZE):
        batch = identifiers[start : start + CATALOG_BATCH_SIZE]
        try:
            lookup = await catalog.fetch_collection(batch)
        except CatalogServiceError as e:
            logger.error("Refresh batch at offset %d failed: %s", start, e)
            continue

        async with session_factory() as session:
            refreshed += await upsert_cached_cards(session, lookup.cards)
            await session.commit()

        if lookup.not_found:
            logger.warning("%d cached printings no longer found on Scryfall", len(lookup.not_found))

    logger.info("Refreshed %d cached cards", refreshed)
    return refreshed


async def run_refresh() -> int:
    async with ScryfallCatalog() as catalog:
        return await refresh_stale_cards(catalog)


def main() -> None:
    """CLI entry point for refreshing the card cache."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_refresh())


if __name__ == "__main__":
    main()
