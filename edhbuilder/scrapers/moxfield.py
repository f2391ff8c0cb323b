"""
Moxfield deck export fetcher.

Fetches public decks from Moxfield's API and turns them into deck-list
text, so exports go through the same parser as pasted lists.

Private, missing or rate-limited decks raise DeckFetchError. Nothing is
partially imported from a failed fetch.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import httpx

from edhbuilder.config import settings
from edhbuilder.models.failure import FailureKind, KnownError

logger = logging.getLogger(__name__)

DECK_URL_PATTERN = re.compile(r"moxfield\.com/decks/([a-zA-Z0-9_-]+)")
DECK_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{6,}$")

# DeckFetchError reason -> envelope failure kind; other reasons are FETCH_FAILED
FETCH_FAILURE_KINDS: dict[str, FailureKind] = {
    "DECK_NOT_FOUND": FailureKind.NOT_FOUND,
    "RATE_LIMITED": FailureKind.RATE_LIMITED,
    "API_ERROR": FailureKind.EXTERNAL_API_ERROR,
}

# Board key -> deck-list header
BOARD_HEADERS: dict[str, str] = {
    "commanders": "Commander",
    "mainboard": "Mainboard",
    "sideboard": "Sideboard",
    "maybeboard": "Maybeboard",
}


def failure_kind_for(reason: str) -> FailureKind:
    return FETCH_FAILURE_KINDS.get(reason, FailureKind.FETCH_FAILED)


class DeckFetchError(KnownError):
    """
    A deck export could not be fetched.

    `reason` is one of INVALID_URL, DECK_NOT_FOUND, PRIVATE_DECK,
    RATE_LIMITED or API_ERROR.
    """

    def __init__(self, reason: str, message: str, status_code: int) -> None:
        self.reason = reason
        super().__init__(
            kind=failure_kind_for(reason),
            message=message,
            detail=reason,
            status_code=status_code,
        )


@dataclass(frozen=True, slots=True)
class MoxfieldCard:
    name: str
    quantity: int
    scryfall_id: str | None = None


@dataclass
class MoxfieldDeck:
    """A public Moxfield deck, boards kept separate."""

    deck_id: str
    name: str
    format: str = ""
    author: str | None = None
    commanders: list[MoxfieldCard] = field(default_factory=list)
    mainboard: list[MoxfieldCard] = field(default_factory=list)
    sideboard: list[MoxfieldCard] = field(default_factory=list)
    maybeboard: list[MoxfieldCard] = field(default_factory=list)

    @property
    def cards(self) -> list[MoxfieldCard]:
        """Every card on every board, commanders first."""
        return self.commanders + self.mainboard + self.sideboard + self.maybeboard


def extract_deck_id(url_or_id: str) -> str | None:
    """
    Extract a deck ID from a Moxfield URL or a bare ID.

    Accepts:
        https://www.moxfield.com/decks/{id}
        https://moxfield.com/decks/{id}/primer
        {id}  (at least 6 characters of letters, digits, '_' or '-')

    Returns:
        The deck ID, or None if the input is neither
    """
    trimmed = url_or_id.strip()

    if "moxfield.com" in trimmed:
        match = DECK_URL_PATTERN.search(trimmed)
        return match.group(1) if match else None

    if DECK_ID_PATTERN.match(trimmed):
        return trimmed
    return None


def _parse_board(board: Any) -> list[MoxfieldCard]:
    if not isinstance(board, dict):
        return []
    cards = []
    for entry in board.values():
        card = entry.get("card") or {}
        if not card.get("name"):
            continue
        cards.append(
            MoxfieldCard(
                name=str(card["name"]),
                quantity=int(entry.get("quantity", 1)),
                scryfall_id=card.get("scryfall_id"),
            )
        )
    return cards


def parse_moxfield_deck(data: dict[str, Any]) -> MoxfieldDeck:
    """Map a Moxfield API deck payload to a MoxfieldDeck."""
    author = (data.get("createdByUser") or {}).get("userName")
    return MoxfieldDeck(
        deck_id=str(data.get("publicId") or data.get("id", "")),
        name=str(data.get("name", "")),
        format=str(data.get("format", "")),
        author=author,
        commanders=_parse_board(data.get("commanders")),
        mainboard=_parse_board(data.get("mainboard")),
        sideboard=_parse_board(data.get("sideboard")),
        maybeboard=_parse_board(data.get("maybeboard")),
    )


async def fetch_moxfield_deck(
    url_or_id: str,
    client: httpx.AsyncClient | None = None,
) -> MoxfieldDeck:
    """
    Fetch a public deck from Moxfield.

    Args:
        url_or_id: Moxfield deck URL or deck ID
        client: Optional httpx client for connection reuse

    Returns:
        The parsed deck

    Raises:
        DeckFetchError: If the ID is invalid or Moxfield does not return the deck
    """
    deck_id = extract_deck_id(url_or_id)
    if deck_id is None:
        raise DeckFetchError(
            "INVALID_URL",
            "Invalid Moxfield URL or deck ID. Please provide a valid Moxfield deck URL.",
            400,
        )

    url = f"{settings.moxfield_api_url.rstrip('/')}/decks/all/{deck_id}"
    headers = {"Accept": "application/json", "User-Agent": settings.user_agent}

    try:
        if client:
            response = await client.get(url, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=settings.http_timeout) as own_client:
                response = await own_client.get(url, headers=headers)
    except httpx.HTTPError as e:
        logger.warning("Moxfield request for deck %s failed: %s", deck_id, e)
        raise DeckFetchError(
            "API_ERROR",
            "Failed to fetch deck from Moxfield. Please try again.",
            502,
        ) from e

    if response.status_code == 404:
        raise DeckFetchError(
            "DECK_NOT_FOUND",
            "Deck not found. Make sure the deck exists and is public.",
            404,
        )
    if response.status_code == 403:
        raise DeckFetchError(
            "PRIVATE_DECK",
            "This deck is private. Only public decks can be imported.",
            403,
        )
    if response.status_code == 429:
        raise DeckFetchError(
            "RATE_LIMITED",
            "Too many requests to Moxfield. Please try again in a few seconds.",
            429,
        )
    if response.status_code != 200:
        raise DeckFetchError(
            "API_ERROR",
            f"Moxfield API error: {response.status_code} {response.reason_phrase}",
            502,
        )

    try:
        deck = parse_moxfield_deck(response.json())
    except (ValueError, AttributeError, TypeError) as e:
        raise DeckFetchError(
            "API_ERROR",
            "Moxfield returned a deck we could not read.",
            502,
        ) from e

    logger.info(
        "Fetched Moxfield deck %s (%s, %d cards)", deck.deck_id, deck.format or "?", len(deck.cards)
    )
    return deck


def moxfield_deck_to_text(deck: MoxfieldDeck) -> str:
    """
    Render a Moxfield deck as deck-list text, one header per board.

    Empty boards are left out.
    """
    sections = []
    for board, header in BOARD_HEADERS.items():
        cards: list[MoxfieldCard] = getattr(deck, board)
        if not cards:
            continue
        lines = [f"{header}:"] + [f"{card.quantity} {card.name}" for card in cards]
        sections.append("\n".join(lines))
    return "\n\n".join(sections)
