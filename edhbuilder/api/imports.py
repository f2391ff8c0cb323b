"""
Deck import API endpoints.

    POST /import/parse      pasted deck-list text -> import preview
    POST /import/moxfield   public Moxfield deck  -> import preview
    POST /import/lands      color identity + total -> basic land split

Every endpoint answers with the ApiResponse envelope. Line-level problems
are part of a successful preview; a failed Moxfield fetch is a known
failure with the matching HTTP status.
"""

from dataclasses import replace
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field, field_validator

from edhbuilder.config import COMMANDER_DECK_SIZE
from edhbuilder.db.database import async_session_factory
from edhbuilder.models.catalog_card import CatalogCardRef
from edhbuilder.models.deck_import import (
    BasicLands,
    CardResolution,
    ImportPreview,
    ImportResult,
    LineError,
)
from edhbuilder.models.failure import ApiResponse, FailureKind, KnownError, create_success
from edhbuilder.scrapers.moxfield import DECK_ID_PATTERN, failure_kind_for
from edhbuilder.services.basic_lands import derive_lands
from edhbuilder.services.card_cache import CardCache
from edhbuilder.services.card_resolver import CardNameResolver
from edhbuilder.services.deck_import import DeckImporter, generate_deck_list_text

router = APIRouter(prefix="/import", tags=["import"])

MIN_TEXT_LENGTH = 10
MAX_TEXT_LENGTH = 50_000
MAX_LANDS_PER_TYPE = 40


# =============================================================================
# REQUEST MODELS
# =============================================================================


class BasicLandsPayload(BaseModel):
    """Basic land quantities as edited by the user."""

    plains: int = Field(default=0, ge=0, le=MAX_LANDS_PER_TYPE)
    island: int = Field(default=0, ge=0, le=MAX_LANDS_PER_TYPE)
    swamp: int = Field(default=0, ge=0, le=MAX_LANDS_PER_TYPE)
    mountain: int = Field(default=0, ge=0, le=MAX_LANDS_PER_TYPE)
    forest: int = Field(default=0, ge=0, le=MAX_LANDS_PER_TYPE)
    wastes: int = Field(default=0, ge=0, le=MAX_LANDS_PER_TYPE)

    def to_basic_lands(self) -> BasicLands:
        return BasicLands(**self.model_dump())


class TextImportRequest(BaseModel):
    """Request body for a pasted deck list."""

    text: str = Field(..., min_length=MIN_TEXT_LENGTH, max_length=MAX_TEXT_LENGTH)
    suggest_lands: bool = False
    land_count: int | None = Field(default=None, ge=0, le=COMMANDER_DECK_SIZE)
    lands: BasicLandsPayload | None = Field(
        default=None,
        description="User-edited basic lands; replaces the suggestion",
    )

    @field_validator("text")
    @classmethod
    def has_card_lines(cls, value: str) -> str:
        lines = [line.strip() for line in value.splitlines() if line.strip()]
        card_like = [
            line
            for line in lines
            if not line.startswith(("//", "#")) and not line.endswith(":") and len(line) > 2
        ]
        if not card_like:
            raise ValueError("Could not find any valid card entries in the deck list")
        return value


class MoxfieldImportRequest(BaseModel):
    """Request body for a Moxfield import."""

    url: str = Field(..., min_length=1, description="Moxfield deck URL or deck ID")
    suggest_lands: bool = False
    land_count: int | None = Field(default=None, ge=0, le=COMMANDER_DECK_SIZE)

    @field_validator("url")
    @classmethod
    def looks_like_moxfield(cls, value: str) -> str:
        trimmed = value.strip()
        if "moxfield.com/decks/" not in trimmed and not DECK_ID_PATTERN.match(trimmed):
            raise ValueError(
                "Please enter a valid Moxfield URL (e.g., https://moxfield.com/decks/abc123)"
            )
        return trimmed


class LandsRequest(BaseModel):
    """Request body for a basic land split."""

    color_identity: list[str] = Field(default_factory=list)
    total: int = Field(..., ge=0, le=COMMANDER_DECK_SIZE)


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class CardRefResponse(BaseModel):
    name: str
    source: str
    scryfall_id: str | None = None
    set_code: str | None = None
    collector_number: str | None = None
    type_line: str = ""
    mana_cost: str | None = None
    color_identity: list[str] = Field(default_factory=list)
    image_uri: str | None = None


class CardResolutionResponse(BaseModel):
    """One card line and how it resolved."""

    line_number: int
    name: str
    quantity: int
    category: str
    section: str | None = None
    status: str
    card: CardRefResponse | None = None
    candidates: list[CardRefResponse] = Field(default_factory=list)
    error_code: str | None = None


class LineErrorResponse(BaseModel):
    line_number: int
    content: str
    code: str
    message: str


class BasicLandsResponse(BaseModel):
    plains: int
    island: int
    swamp: int
    mountain: int
    forest: int
    wastes: int
    total: int


class ImportPreviewResponse(BaseModel):
    """Import preview returned for confirmation."""

    source: str
    deck_name: str | None = None
    author: str | None = None
    commander: CardResolutionResponse | None = None
    main_cards: list[CardResolutionResponse]
    sideboard_cards: list[CardResolutionResponse]
    considering_cards: list[CardResolutionResponse]
    unresolved: list[CardResolutionResponse]
    suggested_lands: BasicLandsResponse | None = None
    errors: list[LineErrorResponse]
    warnings: list[str]
    total_cards: int
    resolved_count: int
    unresolved_count: int
    deck_list_text: str


def _card_ref_response(card: CatalogCardRef) -> CardRefResponse:
    return CardRefResponse(
        name=card.name,
        source=card.source.value,
        scryfall_id=card.scryfall_id,
        set_code=card.set_code,
        collector_number=card.collector_number,
        type_line=card.type_line,
        mana_cost=card.mana_cost,
        color_identity=list(card.color_identity),
        image_uri=card.image_uri,
    )


def _resolution_response(resolution: CardResolution) -> CardResolutionResponse:
    line = resolution.query
    return CardResolutionResponse(
        line_number=line.line_number,
        name=resolution.display_name,
        quantity=line.quantity,
        category=line.category.value,
        section=line.section,
        status=resolution.status.value,
        card=(
            _card_ref_response(resolution.resolved_card)
            if resolution.resolved_card is not None
            else None
        ),
        candidates=[_card_ref_response(c) for c in resolution.candidates],
        error_code=resolution.error_code.value if resolution.error_code else None,
    )


def _line_error_response(error: LineError) -> LineErrorResponse:
    return LineErrorResponse(
        line_number=error.line_number,
        content=error.content,
        code=error.code.value,
        message=error.message,
    )


def _lands_response(lands: BasicLands) -> BasicLandsResponse:
    return BasicLandsResponse(
        plains=lands.plains,
        island=lands.island,
        swamp=lands.swamp,
        mountain=lands.mountain,
        forest=lands.forest,
        wastes=lands.wastes,
        total=lands.total,
    )


def preview_to_response(preview: ImportPreview) -> ImportPreviewResponse:
    """Convert an ImportPreview to its API shape."""
    return ImportPreviewResponse(
        source=preview.source,
        deck_name=preview.deck_name,
        author=preview.author,
        commander=(
            _resolution_response(preview.commander) if preview.commander is not None else None
        ),
        main_cards=[_resolution_response(r) for r in preview.main_cards],
        sideboard_cards=[_resolution_response(r) for r in preview.sideboard_cards],
        considering_cards=[_resolution_response(r) for r in preview.considering_cards],
        unresolved=[_resolution_response(r) for r in preview.unresolved],
        suggested_lands=(
            _lands_response(preview.suggested_lands)
            if preview.suggested_lands is not None
            else None
        ),
        errors=[_line_error_response(e) for e in preview.errors],
        warnings=preview.warnings,
        total_cards=preview.total_cards,
        resolved_count=preview.resolved_count,
        unresolved_count=preview.unresolved_count,
        deck_list_text=generate_deck_list_text(preview),
    )


# =============================================================================
# DEPENDENCIES
# =============================================================================


def get_deck_importer(request: Request) -> DeckImporter:
    """Build an importer on the catalog and cache writer owned by the app."""
    state = request.app.state
    resolver = CardNameResolver(
        state.catalog,
        cache=CardCache(async_session_factory),
        cache_writer=state.cache_writer,
    )
    return DeckImporter(resolver, http_client=state.http_client)


def _preview_or_raise(result: ImportResult) -> ImportPreview:
    """Return the preview, or raise the source failure as a KnownError."""
    if result.preview is not None:
        return result.preview

    failure = result.failure
    raise KnownError(
        kind=failure_kind_for(failure.reason) if failure else FailureKind.FETCH_FAILED,
        message=failure.message if failure else "The deck could not be fetched.",
        detail=failure.reason if failure else None,
        suggestion="Check that the deck is public and the URL is correct.",
        status_code=failure.status_code if failure else 502,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.post("/parse", response_model=ApiResponse[ImportPreviewResponse])
async def parse_import(
    body: TextImportRequest,
    importer: Annotated[DeckImporter, Depends(get_deck_importer)],
) -> ApiResponse[ImportPreviewResponse]:
    """
    Parse and resolve a pasted deck list.

    Supported line formats: "1 Sol Ring", "1x Sol Ring",
    "1 Sol Ring (C21) 263", "Sol Ring x2" and a bare "Sol Ring".
    """
    result = await importer.import_text(
        body.text,
        suggest_lands=body.suggest_lands or body.lands is not None,
        land_count=body.land_count,
    )
    preview = _preview_or_raise(result)
    if body.lands is not None:
        preview = replace(preview, suggested_lands=body.lands.to_basic_lands())
    return create_success(preview_to_response(preview))


@router.post("/moxfield", response_model=ApiResponse[ImportPreviewResponse])
async def moxfield_import(
    body: MoxfieldImportRequest,
    importer: Annotated[DeckImporter, Depends(get_deck_importer)],
) -> ApiResponse[ImportPreviewResponse]:
    """
    Import a public Moxfield deck.

    Private or missing decks come back as a known failure with the
    matching status (403, 404, 429 or 502).
    """
    result = await importer.import_from_moxfield(
        body.url,
        suggest_lands=body.suggest_lands,
        land_count=body.land_count,
    )
    return create_success(preview_to_response(_preview_or_raise(result)))


@router.post("/lands", response_model=ApiResponse[BasicLandsResponse])
async def suggest_lands(body: LandsRequest) -> ApiResponse[BasicLandsResponse]:
    """Split a number of basic lands across a color identity."""
    try:
        lands = derive_lands(body.color_identity, body.total)
    except ValueError as e:
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message=str(e),
            detail="INVALID_COLOR_IDENTITY",
            suggestion="Use color letters W, U, B, R and G.",
        ) from e
    return create_success(_lands_response(lands))
