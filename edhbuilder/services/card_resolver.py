"""
Card Name Resolution Service.

Resolves parsed deck-list lines to Scryfall printings.

Resolution order for each distinct query:
1. Set + collector number (when the line has both), cache then catalog
2. Exact name, cache then batched catalog lookup
3. Fuzzy match on autocomplete candidates

INVARIANTS:
1. One CardResolution per input line, in input order
2. Several printings of one name resolve to ONE canonical printing (RESOLVED)
3. A catalog outage only affects the queries it touched
   (NOT_FOUND with CATALOG_SERVICE_ERROR); everything else still resolves
4. Caching resolved cards never delays or fails resolution
"""

import asyncio
import difflib
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from edhbuilder.config import CATALOG_BATCH_SIZE, FUZZY_MATCH_THRESHOLD, MAX_CANDIDATES
from edhbuilder.models.catalog_card import CardRefSource, CatalogCardRef
from edhbuilder.models.deck_import import (
    CardQuery,
    CardResolution,
    ImportErrorCode,
    ParsedCardLine,
    ResolutionStatus,
)
from edhbuilder.services.card_cache import CardCache, CardCacheWriter
from edhbuilder.services.card_catalog import (
    CardCatalog,
    CardIdentifier,
    CatalogServiceError,
    name_identifier,
    printing_identifier,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QueryOutcome:
    """Resolution outcome for one distinct query."""

    status: ResolutionStatus
    card: CatalogCardRef | None = None
    candidates: tuple[CatalogCardRef, ...] = ()
    error_code: ImportErrorCode | None = None

    @classmethod
    def resolved(cls, card: CatalogCardRef) -> "QueryOutcome":
        return cls(status=ResolutionStatus.RESOLVED, card=card)

    @classmethod
    def not_found(cls) -> "QueryOutcome":
        return cls(status=ResolutionStatus.NOT_FOUND, error_code=ImportErrorCode.NOT_FOUND)

    @classmethod
    def service_error(cls) -> "QueryOutcome":
        return cls(
            status=ResolutionStatus.NOT_FOUND,
            error_code=ImportErrorCode.CATALOG_SERVICE_ERROR,
        )


def select_canonical_printing(printings: Sequence[CatalogCardRef]) -> CatalogCardRef:
    """
    Pick the default printing for a card name.

    Non-promo before promo, then most recent release, then lowest
    scryfall_id so the choice is stable.
    """
    if not printings:
        raise ValueError("No printings to choose from")
    ranked = sorted(printings, key=lambda card: card.scryfall_id or "")
    ranked.sort(key=lambda card: card.released_at or "", reverse=True)
    ranked.sort(key=lambda card: card.promo)
    return ranked[0]


def name_keys(card: CatalogCardRef) -> set[str]:
    """Lowercased names a card can be looked up by (full name and front face)."""
    full = card.name.lower()
    return {full, full.split(" // ")[0]}


def similarity(a: str, b: str) -> float:
    return difflib.SequenceMatcher(None, a.lower(), b.lower()).ratio()


def _chunks(items: Sequence[CardIdentifier], size: int) -> list[Sequence[CardIdentifier]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class CardNameResolver:
    """
    Resolves ParsedCardLine -> CardResolution against a card catalog.

    Usage:
        resolver = CardNameResolver(catalog, cache=cache, cache_writer=writer)
        resolutions = await resolver.resolve(segmented.cards)
    """

    def __init__(
        self,
        catalog: CardCatalog,
        cache: CardCache | None = None,
        cache_writer: CardCacheWriter | None = None,
        batch_size: int = CATALOG_BATCH_SIZE,
        fuzzy_threshold: float = FUZZY_MATCH_THRESHOLD,
        max_candidates: int = MAX_CANDIDATES,
    ) -> None:
        self._catalog = catalog
        self._cache = cache
        self._cache_writer = cache_writer
        self._batch_size = batch_size
        self._fuzzy_threshold = fuzzy_threshold
        self._max_candidates = max_candidates

    async def resolve(self, lines: Sequence[ParsedCardLine]) -> list[CardResolution]:
        """
        Resolve every line. Always returns; failures are reported per line.

        Args:
            lines: Parsed card lines (duplicates allowed)

        Returns:
            One CardResolution per line, in input order
        """
        queries = list(dict.fromkeys(CardQuery.from_line(line) for line in lines))
        outcomes = await self.resolve_queries(queries)

        resolutions = []
        for line in lines:
            outcome = outcomes[CardQuery.from_line(line)]
            resolutions.append(
                CardResolution(
                    query=line,
                    status=outcome.status,
                    resolved_card=outcome.card,
                    candidates=outcome.candidates,
                    error_code=outcome.error_code,
                )
            )

        if self._cache_writer is not None:
            fetched = {
                outcome.card.scryfall_id: outcome.card
                for outcome in outcomes.values()
                if outcome.card is not None and outcome.card.source is CardRefSource.CATALOG
            }
            self._cache_writer.submit(fetched.values())

        logger.info(
            "Resolved %d/%d distinct cards",
            sum(1 for o in outcomes.values() if o.status is ResolutionStatus.RESOLVED),
            len(outcomes),
        )
        return resolutions

    async def resolve_queries(self, queries: Sequence[CardQuery]) -> dict[CardQuery, QueryOutcome]:
        """Resolve distinct queries. Every query gets an outcome."""
        outcomes: dict[CardQuery, QueryOutcome] = {}

        # Phase 1: exact printings
        printing_queries = [q for q in queries if q.has_printing]
        outcomes.update(await self._resolve_printings(printing_queries))

        # Phase 2: names (including printing misses)
        typed: dict[str, str] = {}
        for query in queries:
            if query not in outcomes:
                typed.setdefault(query.name, query.typed_name or query.name)
        by_name = await self._resolve_names(typed)

        for query in queries:
            if query not in outcomes:
                outcomes[query] = by_name[query.name]
        return outcomes

    # -------------------------------------------------------------------------
    # Printings
    # -------------------------------------------------------------------------

    async def _resolve_printings(
        self,
        queries: Sequence[CardQuery],
    ) -> dict[CardQuery, QueryOutcome]:
        """Resolve set + collector number queries. Misses are simply absent."""
        found: dict[CardQuery, QueryOutcome] = {}
        remaining: list[CardQuery] = []

        for query in queries:
            cached = None
            if self._cache is not None:
                cached = await self._cache.lookup_printing(
                    query.set_code or "", query.collector_number or ""
                )
            if cached is not None and query.name in name_keys(cached):
                found[query] = QueryOutcome.resolved(cached)
            else:
                remaining.append(query)

        if not remaining:
            return found

        identifiers = [
            printing_identifier(q.set_code or "", q.collector_number or "") for q in remaining
        ]
        lookups = await asyncio.gather(
            *(self._fetch_batch(batch) for batch in _chunks(identifiers, self._batch_size))
        )

        by_printing: dict[tuple[str, str], CatalogCardRef] = {}
        for cards in lookups:
            for card in cards or []:
                if card.set_code and card.collector_number:
                    by_printing[(card.set_code.lower(), card.collector_number)] = card

        for query in remaining:
            card = by_printing.get((query.set_code or "", query.collector_number or ""))
            # A printing that belongs to a different card is treated as a miss
            if card is not None and query.name in name_keys(card):
                found[query] = QueryOutcome.resolved(card)
        return found

    # -------------------------------------------------------------------------
    # Names
    # -------------------------------------------------------------------------

    async def _resolve_names(self, typed: dict[str, str]) -> dict[str, QueryOutcome]:
        """
        Resolve names: cache, batched exact lookup, then fuzzy.

        Args:
            typed: Lowercased name -> name as the user typed it
        """
        outcomes: dict[str, QueryOutcome] = {}
        names = list(typed)
        if not names:
            return outcomes

        if self._cache is not None:
            cached = await self._cache.lookup_names(names)
            for name in names:
                if cached.get(name):
                    outcomes[name] = QueryOutcome.resolved(select_canonical_printing(cached[name]))

        remaining = [name for name in names if name not in outcomes]
        batches = _chunks([name_identifier(typed[name]) for name in remaining], self._batch_size)
        lookups = await asyncio.gather(*(self._fetch_batch(batch) for batch in batches))

        printings: dict[str, list[CatalogCardRef]] = {}
        for batch, cards in zip(batches, lookups, strict=True):
            if cards is None:
                for identifier in batch:
                    outcomes[identifier["name"].lower()] = QueryOutcome.service_error()
                continue
            for card in cards:
                for key in name_keys(card):
                    printings.setdefault(key, []).append(card)

        needs_fuzzy = []
        for name in remaining:
            if name in outcomes:
                continue
            if printings.get(name):
                outcomes[name] = QueryOutcome.resolved(select_canonical_printing(printings[name]))
            else:
                needs_fuzzy.append(name)

        fuzzy = await asyncio.gather(*(self._resolve_fuzzy(typed[name]) for name in needs_fuzzy))
        outcomes.update(zip(needs_fuzzy, fuzzy, strict=True))
        return outcomes

    async def _fetch_batch(self, batch: Sequence[CardIdentifier]) -> list[CatalogCardRef] | None:
        """One collection request. None means the catalog could not answer."""
        try:
            lookup = await self._catalog.fetch_collection(batch)
        except CatalogServiceError as e:
            logger.warning("Catalog batch of %d identifiers failed: %s", len(batch), e)
            return None
        return lookup.cards

    async def _resolve_fuzzy(self, name: str) -> QueryOutcome:
        """Best-effort match for a name with no exact hit."""
        try:
            candidates = await self._catalog.autocomplete(name)
        except CatalogServiceError as e:
            logger.warning("Fuzzy lookup for %r failed: %s", name, e)
            return QueryOutcome.service_error()

        if not candidates:
            return QueryOutcome.not_found()

        scored = sorted(
            ((similarity(name, candidate), candidate) for candidate in dict.fromkeys(candidates)),
            key=lambda pair: pair[0],
            reverse=True,
        )
        best_score, best_name = scored[0]
        runner_up = scored[1][0] if len(scored) > 1 else None

        if best_score >= self._fuzzy_threshold and (runner_up is None or best_score > runner_up):
            try:
                card = await self._catalog.fetch_named(best_name)
            except CatalogServiceError as e:
                logger.warning("Named lookup for %r failed: %s", best_name, e)
                return QueryOutcome.service_error()
            if card is not None:
                logger.debug("Fuzzy matched %r -> %r (%.2f)", name, card.name, best_score)
                return QueryOutcome.resolved(card)

        return QueryOutcome(
            status=ResolutionStatus.AMBIGUOUS,
            candidates=tuple(
                CatalogCardRef.suggestion(candidate)
                for _, candidate in scored[: self._max_candidates]
            ),
            error_code=ImportErrorCode.AMBIGUOUS,
        )
