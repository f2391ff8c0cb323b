from edhbuilder.parsers.deck_list import (
    category_for_label,
    parse_deck_list,
    segment_deck_list,
    tokenize_deck_list,
    tokenize_line,
)

__all__ = [
    "category_for_label",
    "parse_deck_list",
    "segment_deck_list",
    "tokenize_deck_list",
    "tokenize_line",
]
