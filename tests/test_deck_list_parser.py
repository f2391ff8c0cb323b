"""Tests for deck-list tokenizing and segmenting."""

import pytest

from edhbuilder.models.deck_import import (
    DeckCategory,
    ImportErrorCode,
    LineKind,
    ParsedCardLine,
    RawImportLine,
)
from edhbuilder.parsers.deck_list import (
    MAX_LINE_LENGTH,
    category_for_label,
    parse_deck_list,
    segment_deck_list,
    tokenize_deck_list,
    tokenize_line,
)


def token(text: str, line_number: int = 1):
    return tokenize_line(RawImportLine(raw_text=text, line_number=line_number))


class TestTokenizeLine:
    def test_blank_line(self) -> None:
        assert token("").kind is LineKind.BLANK
        assert token("   \t").kind is LineKind.BLANK

    @pytest.mark.parametrize("text", ["// Ramp package", "# sideboard notes", "  //indented"])
    def test_comment_lines(self, text: str) -> None:
        assert token(text).kind is LineKind.COMMENT

    def test_quantity_and_name(self) -> None:
        result = token("4 Lightning Bolt")

        assert result.kind is LineKind.CARD
        assert result.error is None
        assert result.card is not None
        assert result.card.quantity == 4
        assert result.card.name == "Lightning Bolt"
        assert result.card.set_code is None

    @pytest.mark.parametrize("text", ["4x Lightning Bolt", "4X Lightning Bolt", "4xLightning Bolt"])
    def test_quantity_with_x_suffix(self, text: str) -> None:
        result = token(text)

        assert result.card is not None
        assert result.card.quantity == 4
        assert result.card.name == "Lightning Bolt"

    @pytest.mark.parametrize(("text", "quantity"), [("Sol Ring x2", 2), ("Sol Ring X3", 3)])
    def test_trailing_quantity(self, text: str, quantity: int) -> None:
        result = token(text)

        assert result.kind is LineKind.CARD
        assert result.card is not None
        assert result.card.quantity == quantity
        assert result.card.name == "Sol Ring"

    def test_trailing_zero_quantity_is_invalid(self) -> None:
        result = token("Sol Ring x0")

        assert result.card is None
        assert result.error is not None
        assert result.error.code is ImportErrorCode.INVALID_QUANTITY

    def test_bare_name_defaults_to_one(self) -> None:
        result = token("Sol Ring")

        assert result.kind is LineKind.CARD
        assert result.card is not None
        assert result.card.quantity == 1
        assert result.card.name == "Sol Ring"

    def test_arena_format(self) -> None:
        result = token("1 Sol Ring (C21) 263")

        assert result.card is not None
        assert result.card.quantity == 1
        assert result.card.name == "Sol Ring"
        assert result.card.set_code == "C21"
        assert result.card.collector_number == "263"

    def test_arena_format_without_collector_number(self) -> None:
        result = token("1x Command Tower (CMM)")

        assert result.card is not None
        assert result.card.name == "Command Tower"
        assert result.card.set_code == "CMM"
        assert result.card.collector_number is None

    def test_arena_format_with_foil_marker(self) -> None:
        """Moxfield exports mark foils with *F*."""
        result = token("1 Arcane Signet (M3C) 283 *F*")

        assert result.card is not None
        assert result.card.name == "Arcane Signet"
        assert result.card.collector_number == "283"

    def test_split_card_name(self) -> None:
        result = token("1 Fire // Ice (MH2) 290")

        assert result.card is not None
        assert result.card.name == "Fire // Ice"

    def test_name_with_colon_is_not_a_header(self) -> None:
        result = token("Circle of Protection: Red")

        assert result.kind is LineKind.CARD
        assert result.card is not None
        assert result.card.name == "Circle of Protection: Red"

    def test_internal_whitespace_collapsed(self) -> None:
        result = token("  2   Llanowar    Elves  ")

        assert result.card is not None
        assert result.card.quantity == 2
        assert result.card.name == "Llanowar Elves"

    @pytest.mark.parametrize("text", ["0 Invalid Quantity Card", "-1 Sol Ring", "2.5 Sol Ring"])
    def test_invalid_quantity(self, text: str) -> None:
        result = token(text)

        assert result.kind is LineKind.CARD
        assert result.card is None
        assert result.error is not None
        assert result.error.code is ImportErrorCode.INVALID_QUANTITY

    @pytest.mark.parametrize("text", ["4", "4x"])
    def test_quantity_without_name(self, text: str) -> None:
        result = token(text)

        assert result.kind is LineKind.ERROR
        assert result.error is not None
        assert result.error.code is ImportErrorCode.INVALID_CARD_NAME

    def test_line_too_long(self) -> None:
        result = token("1 " + "A" * MAX_LINE_LENGTH, line_number=7)

        assert result.kind is LineKind.ERROR
        assert result.card is None
        assert result.error is not None
        assert result.error.code is ImportErrorCode.LINE_TOO_LONG
        assert result.error.line_number == 7
        assert len(result.error.content) == MAX_LINE_LENGTH

    def test_line_at_limit_is_accepted(self) -> None:
        result = token("A" * MAX_LINE_LENGTH)

        assert result.kind is LineKind.CARD
        assert result.error is None


class TestHeaders:
    @pytest.mark.parametrize(
        ("text", "category"),
        [
            ("Commander", DeckCategory.COMMANDER),
            ("Commander:", DeckCategory.COMMANDER),
            ("COMMANDERS", DeckCategory.COMMANDER),
            ("Sideboard", DeckCategory.SIDEBOARD),
            ("Considering:", DeckCategory.CONSIDERING),
            ("Maybeboard", DeckCategory.CONSIDERING),
            ("Deck", DeckCategory.MAIN),
            ("Main Deck:", DeckCategory.MAIN),
            ("Creatures (30):", DeckCategory.MAIN),
            ("Creatures: (30)", DeckCategory.MAIN),
            ("Sideboard: (2)", DeckCategory.SIDEBOARD),
            ("Instants", DeckCategory.MAIN),
        ],
    )
    def test_known_headers(self, text: str, category: DeckCategory) -> None:
        result = token(text)

        assert result.kind is LineKind.HEADER
        assert result.header is not None
        assert result.header.category is category

    def test_declared_count_recorded(self) -> None:
        result = token("Creatures (30):")

        assert result.header is not None
        assert result.header.label == "Creatures"
        assert result.header.declared_count == 30

    def test_colon_before_declared_count(self) -> None:
        result = token("Creatures: (30)")

        assert result.header is not None
        assert result.header.label == "Creatures"
        assert result.header.declared_count == 30
        assert result.header.category is DeckCategory.MAIN

    def test_unknown_label_with_colon_before_count(self) -> None:
        result = token("Ramp Package: (8)")

        assert result.kind is LineKind.HEADER
        assert result.header is not None
        assert result.header.label == "Ramp Package"
        assert result.header.declared_count == 8

    def test_unknown_label_with_colon(self) -> None:
        result = token("Ramp Package:")

        assert result.kind is LineKind.HEADER
        assert result.header is not None
        assert result.header.label == "Ramp Package"
        assert result.header.category is DeckCategory.MAIN

    def test_unknown_label_without_colon_is_a_card(self) -> None:
        assert token("Ramp Package").kind is LineKind.CARD

    def test_category_for_label_is_case_insensitive(self) -> None:
        assert category_for_label("  sIdEbOaRd ") is DeckCategory.SIDEBOARD
        assert category_for_label("Whatever") is DeckCategory.MAIN


class TestTokenizeDeckList:
    def test_line_numbers_are_one_based(self) -> None:
        tokens = tokenize_deck_list("Commander\n1 Atraxa, Praetors' Voice")

        assert [t.line.line_number for t in tokens] == [1, 2]

    def test_windows_line_endings(self) -> None:
        tokens = tokenize_deck_list("1 Sol Ring\r\n1 Arcane Signet\r\n")

        cards = [t.card.name for t in tokens if t.card is not None]
        assert cards == ["Sol Ring", "Arcane Signet"]

    def test_never_raises_on_garbage(self) -> None:
        tokens = tokenize_deck_list("((((\n)))\n:::\n0x\n" + "x" * 10_000)

        assert len(tokens) == 5


class TestSegmentDeckList:
    def test_worked_example(self) -> None:
        text = "Commander:\n1 Atraxa, Praetors' Voice\n\nCreatures (2):\n1 Llanowar Elves\n4 Forest"
        result = parse_deck_list(text)

        commanders = [c for c in result.cards if c.category is DeckCategory.COMMANDER]
        main = [c for c in result.cards if c.category is DeckCategory.MAIN]

        assert [c.name for c in commanders] == ["Atraxa, Praetors' Voice"]
        assert [(c.name, c.quantity) for c in main] == [("Llanowar Elves", 1), ("Forest", 4)]
        assert result.errors == ()

        creatures = result.headers[1]
        assert creatures.declared_count == 2
        assert creatures.category is DeckCategory.MAIN

    def test_cards_before_any_header_are_main(self) -> None:
        result = parse_deck_list("1 Sol Ring\nSideboard\n1 Negate")

        assert result.cards[0].category is DeckCategory.MAIN
        assert result.cards[1].category is DeckCategory.SIDEBOARD

    def test_colon_before_count_starts_a_section(self) -> None:
        result = parse_deck_list("Sideboard: (2)\n1 Swords to Plowshares\n1 Path to Exile")

        assert [(c.name, c.category) for c in result.cards] == [
            ("Swords to Plowshares", DeckCategory.SIDEBOARD),
            ("Path to Exile", DeckCategory.SIDEBOARD),
        ]
        assert [h.declared_count for h in result.headers] == [2]

    def test_header_never_retags_earlier_lines(self) -> None:
        result = parse_deck_list("Commander\n1 Atraxa, Praetors' Voice\nDeck\n1 Sol Ring")

        assert [c.category for c in result.cards] == [DeckCategory.COMMANDER, DeckCategory.MAIN]

    def test_declared_count_mismatch_is_not_an_error(self) -> None:
        result = parse_deck_list("Creatures (30):\n1 Llanowar Elves")

        assert result.errors == ()
        assert len(result.cards) == 1

    def test_section_label_kept(self, sample_deck_list: str) -> None:
        result = parse_deck_list(sample_deck_list)

        sol_ring = next(c for c in result.cards if c.name == "Sol Ring")
        assert sol_ring.section == "Artifacts"
        assert sol_ring.set_code == "C21"
        assert sol_ring.line_number == 10

    def test_errors_collected_not_resolved(self) -> None:
        text = "1 Sol Ring\n0 Invalid Quantity Card\n" + "A" * 600 + "\n4"
        result = parse_deck_list(text)

        assert [c.name for c in result.cards] == ["Sol Ring"]
        assert [e.code for e in result.errors] == [
            ImportErrorCode.INVALID_QUANTITY,
            ImportErrorCode.LINE_TOO_LONG,
            ImportErrorCode.INVALID_CARD_NAME,
        ]
        assert [e.line_number for e in result.errors] == [2, 3, 4]

    def test_blank_and_comment_lines_dropped(self) -> None:
        result = segment_deck_list(tokenize_deck_list("\n// note\n# note\n\n1 Sol Ring\n"))

        assert len(result.cards) == 1
        assert result.errors == ()

    def test_quantity_and_name_round_trip(self) -> None:
        """Every card line keeps the quantity and name it was written with."""
        lines = [(1, "Sol Ring"), (12, "Island"), (1, "Fire // Ice"), (3, "Rat Colony")]
        text = "\n".join(f"{qty} {name}" for qty, name in lines)

        result = parse_deck_list(text)

        assert [(c.quantity, c.name) for c in result.cards] == lines


class TestParsedCardLine:
    def test_rejects_zero_quantity(self) -> None:
        with pytest.raises(ValueError, match="quantity"):
            ParsedCardLine(quantity=0, name="Sol Ring", category=DeckCategory.MAIN, line_number=1)

    def test_rejects_empty_name(self) -> None:
        with pytest.raises(ValueError, match="name"):
            ParsedCardLine(quantity=1, name="  ", category=DeckCategory.MAIN, line_number=1)
