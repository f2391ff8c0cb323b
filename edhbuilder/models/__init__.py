from edhbuilder.models.catalog_card import CardRefSource, CatalogCardRef, order_colors
from edhbuilder.models.deck_import import (
    BasicLands,
    CardEntry,
    CardQuery,
    CardResolution,
    CategoryHeader,
    DeckCategory,
    ImportErrorCode,
    ImportFailure,
    ImportPreview,
    ImportResult,
    LineError,
    LineKind,
    ParsedCardLine,
    RawImportLine,
    ResolutionStatus,
    SegmentedDeckList,
    TokenizedLine,
)
from edhbuilder.models.failure import (
    STANDARD_MESSAGES,
    STANDARD_SUGGESTIONS,
    ApiResponse,
    FailureDetail,
    FailureKind,
    KnownError,
    OutcomeType,
    create_known_failure,
    create_success,
    create_unknown_failure,
    finalize_response,
    is_finalized,
)

__all__ = [
    "ApiResponse",
    "BasicLands",
    "CardEntry",
    "CardQuery",
    "CardRefSource",
    "CardResolution",
    "CatalogCardRef",
    "CategoryHeader",
    "DeckCategory",
    "FailureDetail",
    "FailureKind",
    "ImportErrorCode",
    "ImportFailure",
    "ImportPreview",
    "ImportResult",
    "KnownError",
    "LineError",
    "LineKind",
    "OutcomeType",
    "ParsedCardLine",
    "RawImportLine",
    "ResolutionStatus",
    "STANDARD_MESSAGES",
    "STANDARD_SUGGESTIONS",
    "SegmentedDeckList",
    "TokenizedLine",
    "create_known_failure",
    "create_success",
    "create_unknown_failure",
    "finalize_response",
    "is_finalized",
    "order_colors",
]
