"""
Card cache operations.

Async functions for reading and writing cached Scryfall printings.
"""

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from edhbuilder.models.catalog_card import CardRefSource, CatalogCardRef
from edhbuilder.models.db import CachedCardDB


def stale_threshold(stale_after_days: int) -> datetime:
    """Cards cached before this moment are stale."""
    return datetime.now(UTC) - timedelta(days=stale_after_days)


def _as_aware(moment: datetime) -> datetime:
    # SQLite returns naive datetimes even for timezone-aware columns
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


def cached_card_to_ref(card: CachedCardDB) -> CatalogCardRef:
    """Convert a cache row to a CACHE card reference."""
    return CatalogCardRef(
        name=card.name,
        source=CardRefSource.CACHE,
        scryfall_id=card.scryfall_id,
        oracle_id=card.oracle_id,
        set_code=card.set_code,
        collector_number=card.collector_number,
        type_line=card.type_line or "",
        mana_cost=card.mana_cost,
        cmc=card.cmc or 0.0,
        color_identity=tuple(card.color_identity or ()),
        released_at=card.released_at,
        promo=card.promo,
        rarity=card.rarity,
        image_uri=card.image_uri,
        legal_commander=card.legal_commander,
    )


async def get_cached_cards_by_names(
    session: AsyncSession,
    names: Iterable[str],
    stale_after_days: int,
) -> list[CachedCardDB]:
    """
    Get fresh cached printings whose name matches any of `names`.

    Matching is case-insensitive. May return several printings per name.
    """
    lowered = sorted({name.lower() for name in names})
    if not lowered:
        return []

    result = await session.execute(
        select(CachedCardDB).where(CachedCardDB.name_lower.in_(lowered))
    )
    threshold = stale_threshold(stale_after_days)
    return [card for card in result.scalars() if _as_aware(card.cached_at) >= threshold]


async def get_cached_card_by_printing(
    session: AsyncSession,
    set_code: str,
    collector_number: str,
) -> CachedCardDB | None:
    """Get a cached printing by set code and collector number."""
    result = await session.execute(
        select(CachedCardDB).where(
            CachedCardDB.set_code == set_code.lower(),
            CachedCardDB.collector_number == collector_number,
        )
    )
    return result.scalars().first()


async def upsert_cached_cards(
    session: AsyncSession,
    cards: Iterable[CatalogCardRef],
) -> int:
    """
    Insert or refresh cached printings.

    Suggestion refs (no scryfall_id) are skipped.

    Returns:
        Number of rows written
    """
    by_id = {card.scryfall_id: card for card in cards if card.scryfall_id}
    if not by_id:
        return 0

    result = await session.execute(
        select(CachedCardDB).where(CachedCardDB.scryfall_id.in_(list(by_id)))
    )
    existing = {row.scryfall_id: row for row in result.scalars()}
    now = datetime.now(UTC)

    for scryfall_id, card in by_id.items():
        row = existing.get(scryfall_id)
        if row is None:
            row = CachedCardDB(scryfall_id=scryfall_id)
            session.add(row)
        row.oracle_id = card.oracle_id
        row.name = card.name
        row.name_lower = card.name.lower()
        row.set_code = card.set_code.lower() if card.set_code else None
        row.collector_number = card.collector_number
        row.type_line = card.type_line
        row.mana_cost = card.mana_cost
        row.cmc = card.cmc
        row.color_identity = list(card.color_identity)
        row.released_at = card.released_at
        row.promo = card.promo
        row.rarity = card.rarity
        row.image_uri = card.image_uri
        row.legal_commander = card.legal_commander
        row.cached_at = now

    await session.flush()
    return len(by_id)


async def find_stale_cards(
    session: AsyncSession,
    stale_after_days: int,
    limit: int = 100,
) -> list[CachedCardDB]:
    """Oldest stale cached cards first."""
    result = await session.execute(
        select(CachedCardDB)
        .where(CachedCardDB.cached_at < stale_threshold(stale_after_days))
        .order_by(CachedCardDB.cached_at.asc())
        .limit(limit)
    )
    return list(result.scalars())


async def get_cache_stats(session: AsyncSession, stale_after_days: int) -> dict[str, int]:
    """Total, fresh and stale cached card counts."""
    total = await session.scalar(select(func.count()).select_from(CachedCardDB)) or 0
    fresh = (
        await session.scalar(
            select(func.count())
            .select_from(CachedCardDB)
            .where(CachedCardDB.cached_at >= stale_threshold(stale_after_days))
        )
        or 0
    )
    return {"total_cards": total, "fresh_cards": fresh, "stale_cards": total - fresh}
