"""
Deck Import Service.

Runs the whole import pipeline for pasted text or a Moxfield deck:

    text -> parse -> resolve -> assemble preview

Line-level problems travel inside the preview. Only a failed deck fetch
aborts an import, and it comes back as ImportResult.failure rather than
an exception.
"""

import logging

import httpx

from edhbuilder.models.deck_import import (
    CardResolution,
    DeckCategory,
    ImportErrorCode,
    ImportFailure,
    ImportPreview,
    ImportResult,
)
from edhbuilder.parsers.deck_list import parse_deck_list
from edhbuilder.scrapers.moxfield import DeckFetchError, fetch_moxfield_deck, moxfield_deck_to_text
from edhbuilder.services.basic_lands import land_lines
from edhbuilder.services.card_resolver import CardNameResolver
from edhbuilder.services.import_preview import assemble_preview

logger = logging.getLogger(__name__)


class DeckImporter:
    """
    Imports deck lists into previews.

    Usage:
        importer = DeckImporter(resolver)
        result = await importer.import_text("1 Sol Ring", suggest_lands=True)
        if result.ok:
            preview = result.preview
    """

    def __init__(
        self,
        resolver: CardNameResolver,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._resolver = resolver
        self._http_client = http_client

    async def import_text(
        self,
        text: str,
        suggest_lands: bool = False,
        land_count: int | None = None,
        source: str = "text",
        deck_name: str | None = None,
        author: str | None = None,
    ) -> ImportResult:
        """
        Import a pasted deck list.

        Args:
            text: Deck-list text in any supported format
            suggest_lands: Attach a basic land suggestion
            land_count: Basic lands to suggest (default fills a 100-card deck)
            source: Where the text came from
            deck_name: Deck name, if known
            author: Deck author, if known

        Returns:
            ImportResult with a preview
        """
        segmented = parse_deck_list(text)
        resolutions = await self._resolver.resolve(segmented.cards)

        preview = assemble_preview(
            resolutions,
            errors=segmented.errors,
            suggest_lands=suggest_lands,
            land_count=land_count,
            source=source,
            deck_name=deck_name,
            author=author,
        )
        logger.info(
            "Import preview: %d lines resolved, %d unresolved, %d line errors",
            preview.resolved_count,
            preview.unresolved_count,
            len(preview.errors),
        )
        return ImportResult(preview=preview)

    async def import_from_moxfield(
        self,
        url_or_id: str,
        suggest_lands: bool = False,
        land_count: int | None = None,
    ) -> ImportResult:
        """
        Import a public Moxfield deck.

        Returns:
            ImportResult with a preview, or a FETCH_FAILED failure
        """
        try:
            deck = await fetch_moxfield_deck(url_or_id, client=self._http_client)
        except DeckFetchError as e:
            logger.info("Moxfield import failed: %s", e.reason)
            return ImportResult(
                failure=ImportFailure(
                    code=ImportErrorCode.FETCH_FAILED,
                    reason=e.reason,
                    message=e.message,
                    status_code=e.status_code,
                )
            )

        return await self.import_text(
            moxfield_deck_to_text(deck),
            suggest_lands=suggest_lands,
            land_count=land_count,
            source="moxfield",
            deck_name=deck.name,
            author=deck.author,
        )


def _section(label: str, entries: list[tuple[int, str]]) -> list[str]:
    if not entries:
        return []
    total = sum(quantity for quantity, _ in entries)
    return [f"{label} ({total}):"] + [f"{quantity} {name}" for quantity, name in entries] + [""]


def _entries(resolutions: list[CardResolution]) -> list[tuple[int, str]]:
    return [(r.query.quantity, r.display_name) for r in resolutions]


def generate_deck_list_text(preview: ImportPreview) -> str:
    """
    Render a preview back to deck-list text.

    Unresolved lines keep the name as typed. Suggested basic lands are
    added to the deck section. The output parses back to the same
    categories.
    """
    lines: list[str] = []
    if preview.commander is not None:
        lines += ["Commander:", f"1 {preview.commander.display_name}", ""]

    def unresolved(category: DeckCategory) -> list[CardResolution]:
        return [r for r in preview.unresolved if r.query.category is category]

    deck = _entries(preview.main_cards + unresolved(DeckCategory.MAIN))
    if preview.suggested_lands is not None:
        deck += land_lines(preview.suggested_lands)

    lines += _section("Deck", deck)
    lines += _section(
        "Sideboard",
        _entries(preview.sideboard_cards + unresolved(DeckCategory.SIDEBOARD)),
    )
    lines += _section(
        "Considering",
        _entries(preview.considering_cards + unresolved(DeckCategory.CONSIDERING)),
    )
    return "\n".join(lines).strip()
