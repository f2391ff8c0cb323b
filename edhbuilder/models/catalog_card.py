"""
Catalog Card Reference.

A single card shape for everything the resolver hands back, whether the
data came from Scryfall, from the local card cache, or is only a name
suggestion for an ambiguous line.

INVARIANTS:
- CATALOG and CACHE refs always carry a scryfall_id
- SUGGESTION refs carry a name only
- All refs are frozen (immutable after construction)
"""

from dataclasses import dataclass
from enum import Enum

WUBRG = ("W", "U", "B", "R", "G")


class CardRefSource(str, Enum):
    """Where a card reference came from."""

    CATALOG = "catalog"
    CACHE = "cache"
    SUGGESTION = "suggestion"


@dataclass(frozen=True, slots=True)
class CatalogCardRef:
    """
    Reference to a card printing (or a candidate name).

    Attributes:
        name: Canonical card name
        source: Tag describing which fields are populated
        scryfall_id: Printing ID (stable per printing)
        oracle_id: Oracle ID (stable across printings)
        set_code: Lowercase set code of this printing
        collector_number: Collector number within the set
        type_line: Full type line
        mana_cost: Mana cost string, e.g. "{1}{G}"
        cmc: Converted mana cost
        color_identity: Color letters in WUBRG order
        released_at: ISO release date of the printing
        promo: True for promotional printings
        rarity: common, uncommon, rare, mythic, special or bonus
        image_uri: Normal-size image URL
        legal_commander: True if the card can lead a Commander deck
    """

    name: str
    source: CardRefSource
    scryfall_id: str | None = None
    oracle_id: str | None = None
    set_code: str | None = None
    collector_number: str | None = None
    type_line: str = ""
    mana_cost: str | None = None
    cmc: float = 0.0
    color_identity: tuple[str, ...] = ()
    released_at: str | None = None
    promo: bool = False
    rarity: str | None = None
    image_uri: str | None = None
    legal_commander: bool = False

    @classmethod
    def suggestion(cls, name: str) -> "CatalogCardRef":
        """Create a name-only candidate reference."""
        return cls(name=name, source=CardRefSource.SUGGESTION)

    @property
    def is_printing(self) -> bool:
        """True if this ref carries printing data (not a bare suggestion)."""
        return self.source is not CardRefSource.SUGGESTION

    @property
    def is_basic_land(self) -> bool:
        supertypes = self.type_line.split("—")[0]
        return "Basic" in supertypes and "Land" in supertypes


def order_colors(colors: tuple[str, ...] | list[str]) -> tuple[str, ...]:
    """Return distinct color letters in canonical WUBRG order."""
    present = {c.upper() for c in colors}
    return tuple(c for c in WUBRG if c in present)
