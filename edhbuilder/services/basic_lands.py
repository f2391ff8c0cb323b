"""
Basic Land Deriver.

Suggests basic land counts for a color identity. Pure functions only:
the same (color_identity, target_total) always gives the same BasicLands.
"""

from collections.abc import Iterable

from edhbuilder.models.catalog_card import WUBRG, order_colors
from edhbuilder.models.deck_import import BasicLands

# Color letter -> BasicLands field
BASIC_LAND_FIELDS: dict[str, str] = {
    "W": "plains",
    "U": "island",
    "B": "swamp",
    "R": "mountain",
    "G": "forest",
}

BASIC_LAND_NAMES: dict[str, str] = {
    "plains": "Plains",
    "island": "Island",
    "swamp": "Swamp",
    "mountain": "Mountain",
    "forest": "Forest",
    "wastes": "Wastes",
}


def derive_lands(color_identity: Iterable[str], target_total: int) -> BasicLands:
    """
    Split `target_total` basic lands across a color identity.

    Colorless identities get Wastes. Otherwise the total is split evenly
    and any remainder goes to the colors earliest in WUBRG order.

    Args:
        color_identity: Color letters (any order, duplicates ignored)
        target_total: Number of basic lands wanted

    Returns:
        BasicLands summing to target_total

    Raises:
        ValueError: If target_total is negative or a color letter is unknown
    """
    if target_total < 0:
        raise ValueError(f"target_total must be >= 0, got {target_total}")

    letters = [c.upper() for c in color_identity]
    unknown = sorted({c for c in letters if c not in WUBRG})
    if unknown:
        raise ValueError(f"Unknown colors: {', '.join(unknown)}")

    colors = order_colors(letters)
    if not colors:
        return BasicLands(wastes=target_total)

    share, remainder = divmod(target_total, len(colors))
    counts = {
        BASIC_LAND_FIELDS[color]: share + (1 if i < remainder else 0)
        for i, color in enumerate(colors)
    }
    return BasicLands(**counts)


def land_lines(lands: BasicLands) -> list[tuple[int, str]]:
    """(quantity, card name) pairs for every non-zero basic land type."""
    return [
        (getattr(lands, field_name), card_name)
        for field_name, card_name in BASIC_LAND_NAMES.items()
        if getattr(lands, field_name) > 0
    ]
