from collections.abc import Callable, Sequence
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from edhbuilder.models.catalog_card import CardRefSource, CatalogCardRef
from edhbuilder.models.db import Base
from edhbuilder.services.card_catalog import CardIdentifier, CatalogServiceError, CollectionLookup
from edhbuilder.services.card_resolver import name_keys


@pytest.fixture
def sample_deck_list() -> str:
    """Commander deck list with headers, comments and an Arena line."""
    return """// Atraxa superfriends
Commander:
1 Atraxa, Praetors' Voice

Creatures (2):
1 Llanowar Elves
4 Forest

Artifacts:
1x Sol Ring (C21) 263

Sideboard
1 Swords to Plowshares"""


def make_card(name: str, **overrides: Any) -> CatalogCardRef:
    """Build a CATALOG card ref with sensible defaults."""
    defaults: dict[str, Any] = {
        "source": CardRefSource.CATALOG,
        "scryfall_id": f"id-{name.lower().replace(' ', '-')}",
        "oracle_id": f"oracle-{name.lower().replace(' ', '-')}",
        "set_code": "cmm",
        "collector_number": "1",
        "type_line": "Creature",
        "released_at": "2023-08-04",
    }
    defaults.update(overrides)
    return CatalogCardRef(name=name, **defaults)


@pytest.fixture
def card_factory() -> Callable[..., CatalogCardRef]:
    return make_card


class FakeCatalog:
    """
    In-memory card catalog.

    Collection lookups return every matching printing; names listed in
    `failing_names` make their whole batch fail like a Scryfall outage.
    """

    def __init__(self, cards: Sequence[CatalogCardRef] = ()) -> None:
        self.cards = list(cards)
        self.autocomplete_results: dict[str, list[str]] = {}
        self.failing_names: set[str] = set()
        self.autocomplete_fails = False
        self.collection_calls: list[list[CardIdentifier]] = []
        self.named_calls: list[str] = []

    async def fetch_collection(self, identifiers: Sequence[CardIdentifier]) -> CollectionLookup:
        self.collection_calls.append(list(identifiers))
        if any(i.get("name", "").lower() in self.failing_names for i in identifiers):
            raise CatalogServiceError("Scryfall returned HTTP 503 for /cards/collection")

        lookup = CollectionLookup()
        for identifier in identifiers:
            if "name" in identifier:
                matches = [c for c in self.cards if identifier["name"].lower() in name_keys(c)]
            else:
                matches = [
                    c
                    for c in self.cards
                    if c.set_code == identifier["set"]
                    and c.collector_number == identifier["collector_number"]
                ]
            if matches:
                lookup.cards.extend(matches)
            else:
                lookup.not_found.append(identifier)
        return lookup

    async def fetch_named(self, name: str) -> CatalogCardRef | None:
        self.named_calls.append(name)
        for card in self.cards:
            if card.name.lower() == name.lower():
                return card
        return None

    async def autocomplete(self, query: str) -> list[str]:
        if self.autocomplete_fails:
            raise CatalogServiceError("Scryfall request failed: timed out")
        return self.autocomplete_results.get(query.lower(), [])


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog(
        [
            make_card(
                "Atraxa, Praetors' Voice",
                type_line="Legendary Creature — Phyrexian Angel Horror",
                color_identity=("W", "U", "B", "G"),
                legal_commander=True,
            ),
            make_card("Llanowar Elves", color_identity=("G",)),
            make_card(
                "Sol Ring",
                set_code="c21",
                collector_number="263",
                type_line="Artifact",
            ),
            make_card("Swords to Plowshares", type_line="Instant", color_identity=("W",)),
            make_card(
                "Forest",
                type_line="Basic Land — Forest",
                color_identity=("G",),
            ),
        ]
    )


@pytest.fixture
async def async_engine():
    """In-memory SQLite engine shared by every session of a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session
