"""
Scryfall card catalog client.

Async access to the Scryfall endpoints the import resolver needs:

    POST /cards/collection      batch lookup by name or set + collector number
    GET  /cards/named?exact=    single card by exact name
    GET  /cards/autocomplete    candidate names for fuzzy matching

Respects Scryfall rate limits (~10 requests/second) with a bounded number
of requests in flight and a minimum interval between request starts.

Transport errors, 5xx and 429 responses raise CatalogServiceError so the
resolver can tell an outage apart from a real miss.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from edhbuilder.config import CATALOG_BATCH_SIZE, settings
from edhbuilder.models.catalog_card import CardRefSource, CatalogCardRef, order_colors

logger = logging.getLogger(__name__)

# Identifier shapes accepted by /cards/collection
CardIdentifier = dict[str, str]


class CatalogServiceError(Exception):
    """Raised when the catalog cannot answer (network error, 5xx, rate limit)."""

    pass


@dataclass
class CollectionLookup:
    """Result of one /cards/collection batch."""

    cards: list[CatalogCardRef] = field(default_factory=list)
    not_found: list[CardIdentifier] = field(default_factory=list)


class CardCatalog(Protocol):
    """What the resolver needs from a card catalog."""

    async def fetch_collection(self, identifiers: Sequence[CardIdentifier]) -> CollectionLookup: ...

    async def fetch_named(self, name: str) -> CatalogCardRef | None: ...

    async def autocomplete(self, query: str) -> list[str]: ...


def name_identifier(name: str) -> CardIdentifier:
    return {"name": name}


def printing_identifier(set_code: str, collector_number: str) -> CardIdentifier:
    return {"set": set_code.lower(), "collector_number": collector_number}


# =============================================================================
# CARD MAPPING
# =============================================================================


def _is_legal_commander(card: dict[str, Any]) -> bool:
    """Legendary creatures, and planeswalkers that say they can be your commander."""
    if card.get("legalities", {}).get("commander") != "legal":
        return False
    type_line = str(card.get("type_line", ""))
    if "Legendary" not in type_line:
        return False
    if "Creature" in type_line:
        return True
    oracle_text = card.get("oracle_text") or ""
    if not oracle_text and card.get("card_faces"):
        oracle_text = card["card_faces"][0].get("oracle_text") or ""
    return "Planeswalker" in type_line and "can be your commander" in oracle_text


def scryfall_card_to_ref(card: dict[str, Any]) -> CatalogCardRef:
    """
    Map a Scryfall card object to a CatalogCardRef.

    Double-faced cards keep their images and mana cost on the first face.
    """
    faces = card.get("card_faces") or []
    front = faces[0] if faces else {}

    image_uris = card.get("image_uris") or front.get("image_uris") or {}

    return CatalogCardRef(
        name=str(card["name"]),
        source=CardRefSource.CATALOG,
        scryfall_id=str(card["id"]),
        oracle_id=card.get("oracle_id") or front.get("oracle_id"),
        set_code=card.get("set"),
        collector_number=card.get("collector_number"),
        type_line=str(card.get("type_line", "")),
        mana_cost=card.get("mana_cost") or front.get("mana_cost"),
        cmc=float(card.get("cmc", 0.0)),
        color_identity=order_colors(card.get("color_identity", [])),
        released_at=card.get("released_at"),
        promo=bool(card.get("promo", False)),
        rarity=card.get("rarity"),
        image_uri=image_uris.get("normal"),
        legal_commander=_is_legal_commander(card),
    )


# =============================================================================
# THROTTLE
# =============================================================================


class RequestThrottle:
    """
    Bounds outbound requests: at most `max_concurrency` in flight and at
    least `min_interval` seconds between request starts.
    """

    def __init__(self, max_concurrency: int, min_interval: float) -> None:
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._lock = asyncio.Lock()
        self._min_interval = min_interval
        self._last_start: float | None = None

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        async with self._semaphore:
            async with self._lock:
                loop = asyncio.get_running_loop()
                if self._last_start is not None:
                    wait = self._last_start + self._min_interval - loop.time()
                    if wait > 0:
                        await asyncio.sleep(wait)
                self._last_start = loop.time()
            yield


# =============================================================================
# CLIENT
# =============================================================================


class ScryfallCatalog:
    """
    Scryfall catalog client.

    Usage:
        async with ScryfallCatalog() as catalog:
            lookup = await catalog.fetch_collection([{"name": "Sol Ring"}])
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        throttle: RequestThrottle | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
            timeout=settings.http_timeout,
        )
        self._base_url = (base_url or settings.scryfall_api_url).rstrip("/")
        self._throttle = throttle or RequestThrottle(
            settings.catalog_max_concurrency,
            settings.catalog_request_interval,
        )

    async def __aenter__(self) -> "ScryfallCatalog":
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}{path}"
        async with self._throttle.slot():
            try:
                response = await self._client.request(method, url, **kwargs)
            except httpx.HTTPError as e:
                raise CatalogServiceError(f"Scryfall request failed: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise CatalogServiceError(f"Scryfall returned HTTP {response.status_code} for {path}")
        return response

    async def fetch_collection(self, identifiers: Sequence[CardIdentifier]) -> CollectionLookup:
        """
        Look up a batch of cards by name or set + collector number.

        Args:
            identifiers: At most 75 identifiers

        Returns:
            Found cards and the identifiers Scryfall could not match

        Raises:
            ValueError: If the batch is too large
            CatalogServiceError: If Scryfall cannot answer
        """
        if not identifiers:
            return CollectionLookup()
        if len(identifiers) > CATALOG_BATCH_SIZE:
            raise ValueError(f"At most {CATALOG_BATCH_SIZE} identifiers per batch")

        response = await self._request(
            "POST",
            "/cards/collection",
            json={"identifiers": list(identifiers)},
        )
        if response.status_code != 200:
            raise CatalogServiceError(
                f"Scryfall collection lookup returned HTTP {response.status_code}"
            )

        data = response.json()
        return CollectionLookup(
            cards=[scryfall_card_to_ref(card) for card in data.get("data", [])],
            not_found=list(data.get("not_found", [])),
        )

    async def fetch_named(self, name: str) -> CatalogCardRef | None:
        """Fetch a card by exact name. Returns None if Scryfall has no such card."""
        response = await self._request("GET", "/cards/named", params={"exact": name})
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise CatalogServiceError(f"Scryfall named lookup returned HTTP {response.status_code}")
        return scryfall_card_to_ref(response.json())

    async def autocomplete(self, query: str) -> list[str]:
        """Return up to 20 card names starting with or resembling `query`."""
        if len(query) < 2:
            return []
        response = await self._request("GET", "/cards/autocomplete", params={"q": query})
        if response.status_code != 200:
            logger.debug("Autocomplete for %r returned HTTP %d", query, response.status_code)
            return []
        return [str(name) for name in response.json().get("data", [])]
