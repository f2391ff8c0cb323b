"""
EDH Builder services.

Card resolution, land suggestions and import previews.
"""

from edhbuilder.services.basic_lands import derive_lands
from edhbuilder.services.card_cache import CardCache, CardCacheWriter
from edhbuilder.services.card_catalog import (
    CardCatalog,
    CatalogServiceError,
    CollectionLookup,
    ScryfallCatalog,
)
from edhbuilder.services.card_resolver import CardNameResolver, select_canonical_printing
from edhbuilder.services.deck_import import DeckImporter, generate_deck_list_text
from edhbuilder.services.import_preview import assemble_preview

__all__ = [
    # Land suggestions
    "derive_lands",
    # Card resolution
    "CardCache",
    "CardCacheWriter",
    "CardCatalog",
    "CardNameResolver",
    "CatalogServiceError",
    "CollectionLookup",
    "ScryfallCatalog",
    "select_canonical_printing",
    # Import
    "DeckImporter",
    "assemble_preview",
    "generate_deck_list_text",
]
