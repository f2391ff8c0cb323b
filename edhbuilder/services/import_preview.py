"""
Import Preview Assembler.

Merges card resolutions into the ImportPreview the user confirms before
anything is saved.

INVARIANTS:
1. Input order is preserved within every category
2. At most one commander; later COMMANDER lines are demoted to MAIN
   and reported, never dropped
3. Category lists only hold RESOLVED entries; the rest go to `unresolved`
   (the commander slot keeps its resolution whatever the status)
"""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import replace

from edhbuilder.config import COMMANDER_DECK_SIZE
from edhbuilder.models.catalog_card import order_colors
from edhbuilder.models.deck_import import (
    BasicLands,
    CardResolution,
    DeckCategory,
    ImportPreview,
    LineError,
)
from edhbuilder.services.basic_lands import BASIC_LAND_NAMES, derive_lands

logger = logging.getLogger(__name__)

_BASIC_NAMES = {name.lower() for name in BASIC_LAND_NAMES.values()}


def is_basic_land(resolution: CardResolution) -> bool:
    if resolution.resolved_card is not None:
        return resolution.resolved_card.is_basic_land
    return resolution.query.name.lower() in _BASIC_NAMES


def deck_color_identity(
    commander: CardResolution | None,
    cards: Iterable[CardResolution],
) -> tuple[str, ...]:
    """
    Color identity used for land suggestions.

    The commander's identity when it resolved, otherwise the union of the
    resolved cards' identities.
    """
    if commander is not None and commander.resolved_card is not None:
        return commander.resolved_card.color_identity

    colors: set[str] = set()
    for resolution in cards:
        if resolution.resolved_card is not None:
            colors.update(resolution.resolved_card.color_identity)
    return order_colors(list(colors))


def default_land_count(
    commander: CardResolution | None,
    main_cards: Iterable[CardResolution],
) -> int:
    """
    Basic lands to add so the deck reaches 100 cards.

    Basics already in the list count toward the total, since suggested
    lands are added next to them.
    """
    used = sum(r.query.quantity for r in main_cards)
    if commander is not None:
        used += commander.query.quantity
    return max(0, COMMANDER_DECK_SIZE - used)


def commander_warnings(
    commander: CardResolution | None,
    deck_cards: Sequence[CardResolution],
) -> list[str]:
    """
    Commander-format sanity checks. Warnings never block an import.

    Args:
        commander: The commander slot, if any
        deck_cards: Every MAIN line (resolved or not)
    """
    warnings = []
    if commander is None:
        warnings.append("No commander detected. Add a 'Commander' section to your list.")

    deck_size = sum(r.query.quantity for r in deck_cards)
    if deck_size > COMMANDER_DECK_SIZE - 1:
        warnings.append(
            f"Deck has {deck_size} cards besides the commander "
            f"(Commander allows {COMMANDER_DECK_SIZE - 1})."
        )

    non_basic = [r for r in deck_cards if not is_basic_land(r)]
    for resolution in non_basic:
        if resolution.query.quantity > 1:
            warnings.append(
                f"{resolution.display_name} has quantity {resolution.query.quantity}; "
                "Commander decks allow one copy of each non-basic card."
            )

    seen = Counter(r.display_name.lower() for r in non_basic)
    reported: set[str] = set()
    for resolution in non_basic:
        key = resolution.display_name.lower()
        if seen[key] > 1 and key not in reported:
            reported.add(key)
            warnings.append(f"{resolution.display_name} appears on {seen[key]} lines.")

    return warnings


def assemble_preview(
    resolutions: Sequence[CardResolution],
    errors: Sequence[LineError] = (),
    suggest_lands: bool = False,
    land_count: int | None = None,
    source: str = "text",
    deck_name: str | None = None,
    author: str | None = None,
) -> ImportPreview:
    """
    Build the ImportPreview for a set of resolutions.

    Args:
        resolutions: One resolution per parsed card line
        errors: Line-level errors from parsing
        suggest_lands: Attach a basic land suggestion
        land_count: Basic lands to suggest; defaults to filling a 100-card deck
        source: "text" or "moxfield"
        deck_name: Deck name from the export, if any
        author: Deck author from the export, if any

    Returns:
        ImportPreview with categories in input order
    """
    ordered = sorted(resolutions, key=lambda r: r.query.line_number)

    commander: CardResolution | None = None
    demoted: list[CardResolution] = []
    grouped: dict[DeckCategory, list[CardResolution]] = {category: [] for category in DeckCategory}
    unresolved: list[CardResolution] = []

    for resolution in ordered:
        category = resolution.query.category
        if category is DeckCategory.COMMANDER:
            if commander is None:
                commander = resolution
                continue
            resolution = replace(
                resolution,
                query=replace(resolution.query, category=DeckCategory.MAIN),
            )
            demoted.append(resolution)
            category = DeckCategory.MAIN

        if resolution.is_resolved:
            grouped[category].append(resolution)
        else:
            unresolved.append(resolution)

    main_lines = grouped[DeckCategory.MAIN] + [
        r for r in unresolved if r.query.category is DeckCategory.MAIN
    ]

    warnings = [
        f"Only one commander is supported; {r.display_name} (line {r.query.line_number}) "
        "was moved to the main deck."
        for r in demoted
    ]
    warnings.extend(commander_warnings(commander, main_lines))

    suggested: BasicLands | None = None
    if suggest_lands:
        colors = deck_color_identity(commander, grouped[DeckCategory.MAIN])
        total = land_count if land_count is not None else default_land_count(commander, main_lines)
        suggested = derive_lands(colors, total)
        logger.debug("Suggested %d basic lands for identity %s", total, "".join(colors) or "C")

    return ImportPreview(
        commander=commander,
        main_cards=grouped[DeckCategory.MAIN],
        sideboard_cards=grouped[DeckCategory.SIDEBOARD],
        considering_cards=grouped[DeckCategory.CONSIDERING],
        unresolved=unresolved,
        suggested_lands=suggested,
        errors=list(errors),
        warnings=warnings,
        demoted_commanders=demoted,
        source=source,
        deck_name=deck_name,
        author=author,
    )
