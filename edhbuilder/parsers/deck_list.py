"""
Deck List Parser.

Turns pasted deck-list text (MTGO, Arena, Moxfield or plain text exports)
into categorized card lines.

Two stages:

    tokenize_deck_list(text)   -> list[TokenizedLine]   (classify each line)
    segment_deck_list(tokens)  -> SegmentedDeckList     (assign categories)

Supported card line formats:
    1 Sol Ring
    1x Sol Ring
    1 Sol Ring (C21) 263
    Sol Ring x2
    Sol Ring                  (quantity 1)

Section headers:
    Commander
    Creatures (30):
    Sideboard: (2)

Malformed lines never raise. They come back as LineError entries so the
caller can report every problem at once.
"""

import re
from dataclasses import dataclass, replace
from functools import reduce

from edhbuilder.models.deck_import import (
    CardEntry,
    CategoryHeader,
    DeckCategory,
    ImportErrorCode,
    LineError,
    LineKind,
    ParsedCardLine,
    RawImportLine,
    SegmentedDeckList,
    TokenizedLine,
)

# Lines longer than this are rejected before any regex runs
MAX_LINE_LENGTH = 500

COMMENT_PREFIXES = ("//", "#")

# Quantity-looking token: "4", "4x", "0", "-1", "2.5". Validated separately.
_QTY = r"-?\d+(?:[.,]\d+)?"

# "1 Sol Ring (C21) 263", "1x Sol Ring (C21)", "Sol Ring (C21) 263 *F*"
# Groups: (quantity, name, set_code, collector_number)
ARENA_PATTERN = re.compile(
    rf"^(?:(?P<qty>{_QTY})(?:[xX]\s*|\s+))?"
    r"(?P<name>.+?)\s+\((?P<set>[A-Za-z0-9]{2,6})\)"
    r"(?:\s+(?P<number>[^\s*]+))?"
    r"(?:\s+\*[A-Za-z]+\*)?$"
)

# "4 Forest", "4x Forest", "4xForest"
# Groups: (quantity, name)
QUANTITY_PATTERN = re.compile(rf"^(?P<qty>{_QTY})(?:[xX]\s*|\s+)(?P<name>.+)$")

# "Forest x4", "Forest X4"
# Groups: (name, quantity)
TRAILING_QUANTITY_PATTERN = re.compile(r"^(?P<name>.+?)\s+[xX](?P<qty>\d+)$")

# A quantity with nothing after it: "4", "4x"
QUANTITY_ONLY_PATTERN = re.compile(rf"^{_QTY}[xX]?$")

VALID_QUANTITY_PATTERN = re.compile(r"^\d+$")

# "Creatures (30):", "Creatures: (30)", "Commander", "Custom Section:"
# Groups: (label, colon, declared count, colon after the count)
HEADER_PATTERN = re.compile(
    r"^(?P<label>[^\d\s():][^():]*?)\s*(?P<colon>:)?"
    r"\s*(?:\((?P<count>\d+)\))?\s*(?P<trailing_colon>:)?$"
)

# Known header labels (lowercase, single-spaced) and their categories.
# Card-type headers are informational and keep cards in MAIN.
KNOWN_HEADERS: dict[str, DeckCategory] = {
    "commander": DeckCategory.COMMANDER,
    "commanders": DeckCategory.COMMANDER,
    "sideboard": DeckCategory.SIDEBOARD,
    "considering": DeckCategory.CONSIDERING,
    "maybeboard": DeckCategory.CONSIDERING,
    "maybe": DeckCategory.CONSIDERING,
    "deck": DeckCategory.MAIN,
    "main": DeckCategory.MAIN,
    "main deck": DeckCategory.MAIN,
    "maindeck": DeckCategory.MAIN,
    "mainboard": DeckCategory.MAIN,
    "companion": DeckCategory.MAIN,
    "creature": DeckCategory.MAIN,
    "creatures": DeckCategory.MAIN,
    "instant": DeckCategory.MAIN,
    "instants": DeckCategory.MAIN,
    "sorcery": DeckCategory.MAIN,
    "sorceries": DeckCategory.MAIN,
    "artifact": DeckCategory.MAIN,
    "artifacts": DeckCategory.MAIN,
    "enchantment": DeckCategory.MAIN,
    "enchantments": DeckCategory.MAIN,
    "planeswalker": DeckCategory.MAIN,
    "planeswalkers": DeckCategory.MAIN,
    "battle": DeckCategory.MAIN,
    "battles": DeckCategory.MAIN,
    "land": DeckCategory.MAIN,
    "lands": DeckCategory.MAIN,
}


def normalize_card_name(name: str) -> str:
    """Collapse internal whitespace and trim."""
    return " ".join(name.split())


def category_for_label(label: str) -> DeckCategory:
    """Map a header label to a deck category. Unknown labels map to MAIN."""
    return KNOWN_HEADERS.get(normalize_card_name(label).lower(), DeckCategory.MAIN)


# =============================================================================
# TOKENIZER
# =============================================================================


def tokenize_deck_list(text: str) -> list[TokenizedLine]:
    """
    Classify every physical line of a deck list.

    Args:
        text: Raw deck-list text

    Returns:
        One TokenizedLine per input line, in input order
    """
    return [
        tokenize_line(RawImportLine(raw_text=raw, line_number=number))
        for number, raw in enumerate(re.split(r"\r?\n", text), 1)
    ]


def tokenize_line(line: RawImportLine) -> TokenizedLine:
    """Classify a single line. Never raises."""
    stripped = line.raw_text.strip()

    if not stripped:
        return TokenizedLine(line=line, kind=LineKind.BLANK)

    if stripped.startswith(COMMENT_PREFIXES):
        return TokenizedLine(line=line, kind=LineKind.COMMENT)

    # Length check happens before any pattern matching
    if len(stripped) > MAX_LINE_LENGTH:
        return TokenizedLine(
            line=line,
            kind=LineKind.ERROR,
            error=_line_error(
                line,
                ImportErrorCode.LINE_TOO_LONG,
                f"Line is longer than {MAX_LINE_LENGTH} characters",
            ),
        )

    header = _match_header(stripped, line.line_number)
    if header is not None:
        return TokenizedLine(line=line, kind=LineKind.HEADER, header=header)

    return _tokenize_card(line, stripped)


def _match_header(stripped: str, line_number: int) -> CategoryHeader | None:
    match = HEADER_PATTERN.match(stripped)
    if match is None:
        return None

    label = normalize_card_name(match.group("label"))
    known = label.lower() in KNOWN_HEADERS

    # Unknown labels need an explicit colon, otherwise "Sol Ring" would be a header
    if not known and match.group("colon") is None and match.group("trailing_colon") is None:
        return None

    count = match.group("count")
    return CategoryHeader(
        label=label,
        category=category_for_label(label),
        declared_count=int(count) if count is not None else None,
        line_number=line_number,
    )


def _tokenize_card(line: RawImportLine, stripped: str) -> TokenizedLine:
    set_code: str | None = None
    collector_number: str | None = None

    match = ARENA_PATTERN.match(stripped)
    if match:
        qty_str = match.group("qty")
        name = match.group("name")
        set_code = match.group("set")
        collector_number = match.group("number")
    elif match := QUANTITY_PATTERN.match(stripped):
        qty_str = match.group("qty")
        name = match.group("name")
    elif match := TRAILING_QUANTITY_PATTERN.match(stripped):
        qty_str = match.group("qty")
        name = match.group("name")
    elif QUANTITY_ONLY_PATTERN.match(stripped):
        return TokenizedLine(
            line=line,
            kind=LineKind.ERROR,
            error=_line_error(line, ImportErrorCode.INVALID_CARD_NAME, "Missing card name"),
        )
    else:
        qty_str = None
        name = stripped

    name = normalize_card_name(name)
    if not name:
        return TokenizedLine(
            line=line,
            kind=LineKind.ERROR,
            error=_line_error(line, ImportErrorCode.INVALID_CARD_NAME, "Missing card name"),
        )

    quantity = 1
    if qty_str is not None:
        parsed = _parse_quantity(qty_str)
        if parsed is None:
            return TokenizedLine(
                line=line,
                kind=LineKind.CARD,
                error=_line_error(
                    line,
                    ImportErrorCode.INVALID_QUANTITY,
                    f"Invalid quantity '{qty_str}' for {name}",
                ),
            )
        quantity = parsed

    return TokenizedLine(
        line=line,
        kind=LineKind.CARD,
        card=CardEntry(
            quantity=quantity,
            name=name,
            set_code=set_code,
            collector_number=collector_number,
        ),
    )


def _parse_quantity(qty_str: str) -> int | None:
    """Return the quantity if it is an integer >= 1, else None."""
    if not VALID_QUANTITY_PATTERN.match(qty_str):
        return None
    quantity = int(qty_str)
    return quantity if quantity >= 1 else None


def _line_error(line: RawImportLine, code: ImportErrorCode, message: str) -> LineError:
    return LineError(
        line_number=line.line_number,
        # Keep error reports bounded even for oversized lines
        content=line.raw_text[:MAX_LINE_LENGTH],
        code=code,
        message=message,
    )


# =============================================================================
# SEGMENTER
# =============================================================================


@dataclass(frozen=True, slots=True)
class _SegmentState:
    """Accumulator threaded through the segmenting fold."""

    category: DeckCategory = DeckCategory.MAIN
    section: str | None = None
    cards: tuple[ParsedCardLine, ...] = ()
    headers: tuple[CategoryHeader, ...] = ()
    errors: tuple[LineError, ...] = ()


def _segment_step(state: _SegmentState, token: TokenizedLine) -> _SegmentState:
    if token.error is not None:
        return replace(state, errors=state.errors + (token.error,))

    if token.kind is LineKind.HEADER and token.header is not None:
        return replace(
            state,
            category=token.header.category,
            section=token.header.label,
            headers=state.headers + (token.header,),
        )

    if token.kind is LineKind.CARD and token.card is not None:
        card = ParsedCardLine(
            quantity=token.card.quantity,
            name=token.card.name,
            category=state.category,
            line_number=token.line.line_number,
            set_code=token.card.set_code,
            collector_number=token.card.collector_number,
            section=state.section,
        )
        return replace(state, cards=state.cards + (card,))

    return state


def segment_deck_list(tokens: list[TokenizedLine]) -> SegmentedDeckList:
    """
    Tag each card line with the category of the most recent header.

    Strictly sequential: a header only affects the lines after it.
    Cards before any header are MAIN.
    """
    state = reduce(_segment_step, tokens, _SegmentState())
    return SegmentedDeckList(cards=state.cards, headers=state.headers, errors=state.errors)


def parse_deck_list(text: str) -> SegmentedDeckList:
    """Tokenize and segment a deck list in one call."""
    return segment_deck_list(tokenize_deck_list(text))
