"""Tests for scheduled jobs."""

import logging
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from edhbuilder.db.operations import find_stale_cards, upsert_cached_cards
from edhbuilder.jobs.refresh_cards import refresh_stale_cards, run_refresh
from edhbuilder.models.db import CachedCardDB
from edhbuilder.services.card_catalog import CatalogServiceError


async def seed_stale(session_factory, cards, days: int = 45) -> None:
    async with session_factory() as session:
        await upsert_cached_cards(session, cards)
        for card in cards:
            row = await session.get(CachedCardDB, card.scryfall_id)
            row.cached_at = datetime.now(UTC) - timedelta(days=days)
        await session.commit()


class TestRefreshStaleCards:
    async def test_refreshes_stale_rows(self, session_factory, fake_catalog, card_factory) -> None:
        """Stale printings are re-fetched by set and number and become fresh."""
        old = card_factory("Sol Ring", set_code="c21", collector_number="263", rarity="common")
        await seed_stale(session_factory, [old])
        fake_catalog.cards = [
            card_factory("Sol Ring", set_code="c21", collector_number="263", rarity="uncommon")
        ]

        refreshed = await refresh_stale_cards(fake_catalog, session_factory, stale_after_days=30)

        assert refreshed == 1
        assert fake_catalog.collection_calls == [[{"set": "c21", "collector_number": "263"}]]
        async with session_factory() as session:
            assert await find_stale_cards(session, 30) == []
            row = await session.get(CachedCardDB, old.scryfall_id)
            assert row is not None
            assert row.rarity == "uncommon"

    async def test_fresh_rows_untouched(self, session_factory, fake_catalog, card_factory) -> None:
        async with session_factory() as session:
            await upsert_cached_cards(session, [card_factory("Sol Ring")])
            await session.commit()

        refreshed = await refresh_stale_cards(fake_catalog, session_factory, stale_after_days=30)

        assert refreshed == 0
        assert fake_catalog.collection_calls == []

    async def test_batches_of_75(self, session_factory, fake_catalog, card_factory) -> None:
        cards = [
            card_factory(f"Card {i}", scryfall_id=f"id-{i}", collector_number=str(i))
            for i in range(80)
        ]
        await seed_stale(session_factory, cards)
        fake_catalog.cards = cards

        refreshed = await refresh_stale_cards(fake_catalog, session_factory, stale_after_days=30)

        assert refreshed == 80
        assert sorted(len(call) for call in fake_catalog.collection_calls) == [5, 75]

    async def test_limit(self, session_factory, fake_catalog, card_factory) -> None:
        cards = [
            card_factory(f"Card {i}", scryfall_id=f"id-{i}", collector_number=str(i))
            for i in range(5)
        ]
        await seed_stale(session_factory, cards)
        fake_catalog.cards = cards

        refreshed = await refresh_stale_cards(
            fake_catalog, session_factory, stale_after_days=30, limit=2
        )

        assert refreshed == 2

    async def test_failed_batch_is_skipped(
        self, session_factory, card_factory, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A catalog outage leaves the cards stale for the next run."""
        await seed_stale(session_factory, [card_factory("Sol Ring", collector_number="263")])
        catalog = MagicMock()
        catalog.fetch_collection = AsyncMock(side_effect=CatalogServiceError("HTTP 503"))

        with caplog.at_level(logging.ERROR):
            refreshed = await refresh_stale_cards(catalog, session_factory, stale_after_days=30)

        assert refreshed == 0
        assert "Refresh batch at offset 0 failed" in caplog.text
        async with session_factory() as session:
            assert len(await find_stale_cards(session, 30)) == 1

    async def test_missing_printings_logged(
        self, session_factory, fake_catalog, card_factory, caplog: pytest.LogCaptureFixture
    ) -> None:
        await seed_stale(session_factory, [card_factory("Retired Card", collector_number="999")])
        fake_catalog.cards = []

        with caplog.at_level(logging.WARNING):
            refreshed = await refresh_stale_cards(
                fake_catalog, session_factory, stale_after_days=30
            )

        assert refreshed == 0
        assert "no longer found on Scryfall" in caplog.text


class TestRunRefresh:
    async def test_uses_scryfall_catalog(self) -> None:
        """The CLI entry point opens and closes its own catalog client."""
        with (
            patch("edhbuilder.jobs.refresh_cards.ScryfallCatalog") as catalog_cls,
            patch(
                "edhbuilder.jobs.refresh_cards.refresh_stale_cards",
                new_callable=AsyncMock,
                return_value=3,
            ) as refresh,
        ):
            catalog = catalog_cls.return_value
            catalog.__aenter__ = AsyncMock(return_value=catalog)
            catalog.__aexit__ = AsyncMock(return_value=None)

            result = await run_refresh()

        assert result == 3
        refresh.assert_awaited_once_with(catalog)
        catalog.__aexit__.assert_awaited_once()
