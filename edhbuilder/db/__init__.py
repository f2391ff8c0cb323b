from edhbuilder.db.database import get_session, init_db
from edhbuilder.db.operations import (
    cached_card_to_ref,
    find_stale_cards,
    get_cache_stats,
    get_cached_card_by_printing,
    get_cached_cards_by_names,
    upsert_cached_cards,
)

__all__ = [
    "cached_card_to_ref",
    "find_stale_cards",
    "get_cache_stats",
    "get_cached_card_by_printing",
    "get_cached_cards_by_names",
    "get_session",
    "init_db",
    "upsert_cached_cards",
]
