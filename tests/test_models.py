"""Tests for import data models."""

import pytest

from edhbuilder.models.catalog_card import CardRefSource, CatalogCardRef, order_colors
from edhbuilder.models.deck_import import (
    BasicLands,
    CardQuery,
    CardResolution,
    DeckCategory,
    ImportErrorCode,
    ImportFailure,
    ImportPreview,
    ImportResult,
    ParsedCardLine,
    ResolutionStatus,
)


class TestParsedCardLine:
    def test_valid(self) -> None:
        line = ParsedCardLine(quantity=4, name="Forest", category=DeckCategory.MAIN, line_number=3)

        assert line.quantity == 4
        assert line.set_code is None

    def test_zero_quantity_rejected(self) -> None:
        with pytest.raises(ValueError, match="quantity"):
            ParsedCardLine(quantity=0, name="Forest", category=DeckCategory.MAIN, line_number=1)

    def test_blank_name_rejected(self) -> None:
        with pytest.raises(ValueError, match="name"):
            ParsedCardLine(quantity=1, name="  ", category=DeckCategory.MAIN, line_number=1)


class TestCardQuery:
    def test_case_insensitive_key(self) -> None:
        upper = ParsedCardLine(
            quantity=1,
            name="SOL RING",
            category=DeckCategory.MAIN,
            line_number=1,
            set_code="C21",
            collector_number="263",
        )
        lower = ParsedCardLine(
            quantity=2,
            name="sol ring",
            category=DeckCategory.SIDEBOARD,
            line_number=9,
            set_code="c21",
            collector_number="263",
        )

        assert CardQuery.from_line(upper) == CardQuery.from_line(lower)
        assert CardQuery.from_line(upper).typed_name == "SOL RING"
        assert CardQuery.from_line(upper).has_printing

    def test_no_printing(self) -> None:
        line = ParsedCardLine(
            quantity=1, name="Sol Ring", category=DeckCategory.MAIN, line_number=1
        )

        assert not CardQuery.from_line(line).has_printing


class TestCatalogCardRef:
    def test_suggestion(self) -> None:
        ref = CatalogCardRef.suggestion("Sol Ring")

        assert ref.source is CardRefSource.SUGGESTION
        assert ref.scryfall_id is None
        assert not ref.is_printing

    @pytest.mark.parametrize(
        ("type_line", "expected"),
        [
            ("Basic Land — Forest", True),
            ("Basic Snow Land — Island", True),
            ("Land — Forest Island", False),
            ("Legendary Land", False),
            ("Creature — Elf Druid", False),
        ],
    )
    def test_is_basic_land(self, type_line: str, expected: bool) -> None:
        ref = CatalogCardRef(name="x", source=CardRefSource.CATALOG, type_line=type_line)

        assert ref.is_basic_land is expected

    def test_order_colors(self) -> None:
        assert order_colors(["g", "W", "B", "G"]) == ("W", "B", "G")


class TestCardResolution:
    def test_display_name_prefers_canonical(self, card_factory) -> None:
        line = ParsedCardLine(
            quantity=1, name="sol ring", category=DeckCategory.MAIN, line_number=1
        )

        resolved = CardResolution(
            query=line,
            status=ResolutionStatus.RESOLVED,
            resolved_card=card_factory("Sol Ring"),
        )
        missing = CardResolution(
            query=line,
            status=ResolutionStatus.NOT_FOUND,
            error_code=ImportErrorCode.NOT_FOUND,
        )

        assert resolved.display_name == "Sol Ring"
        assert resolved.is_resolved
        assert missing.display_name == "sol ring"
        assert not missing.is_resolved


class TestImportResult:
    def test_preview(self) -> None:
        result = ImportResult(preview=ImportPreview())

        assert result.ok

    def test_failure(self) -> None:
        result = ImportResult(
            failure=ImportFailure(
                code=ImportErrorCode.FETCH_FAILED,
                reason="RATE_LIMITED",
                message="Too many requests",
                status_code=429,
            )
        )

        assert not result.ok

    def test_needs_exactly_one(self) -> None:
        with pytest.raises(ValueError):
            ImportResult()
        with pytest.raises(ValueError):
            ImportResult(
                preview=ImportPreview(),
                failure=ImportFailure(
                    code=ImportErrorCode.FETCH_FAILED,
                    reason="API_ERROR",
                    message="Moxfield API error",
                ),
            )


class TestBasicLands:
    def test_total(self) -> None:
        assert BasicLands(plains=3, forest=4, wastes=1).total == 8
