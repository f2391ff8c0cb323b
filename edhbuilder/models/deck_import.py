"""
Deck Import Models.

Structures that flow through the import pipeline:

    text -> TokenizedLine -> ParsedCardLine -> CardResolution -> ImportPreview

Every structure is owned by the import that created it. Nothing here is
shared between concurrent imports and nothing is persisted.
"""

from dataclasses import dataclass, field
from enum import Enum

from edhbuilder.models.catalog_card import CatalogCardRef


class ImportErrorCode(str, Enum):
    """Classification of import problems reported back to the user."""

    # Line-level (tokenizer)
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_CARD_NAME = "INVALID_CARD_NAME"
    LINE_TOO_LONG = "LINE_TOO_LONG"

    # Card-level (resolver)
    NOT_FOUND = "NOT_FOUND"
    AMBIGUOUS = "AMBIGUOUS"
    CATALOG_SERVICE_ERROR = "CATALOG_SERVICE_ERROR"

    # Source-level (aborts the import)
    FETCH_FAILED = "FETCH_FAILED"


class LineKind(str, Enum):
    BLANK = "BLANK"
    COMMENT = "COMMENT"
    HEADER = "HEADER"
    CARD = "CARD"
    ERROR = "ERROR"


class DeckCategory(str, Enum):
    """Deck board a card line belongs to."""

    COMMANDER = "COMMANDER"
    MAIN = "MAIN"
    SIDEBOARD = "SIDEBOARD"
    CONSIDERING = "CONSIDERING"


class ResolutionStatus(str, Enum):
    RESOLVED = "RESOLVED"
    AMBIGUOUS = "AMBIGUOUS"
    NOT_FOUND = "NOT_FOUND"


# =============================================================================
# TOKENIZER OUTPUT
# =============================================================================


@dataclass(frozen=True, slots=True)
class RawImportLine:
    """One physical line of input. line_number is 1-based."""

    raw_text: str
    line_number: int


@dataclass(frozen=True, slots=True)
class LineError:
    """A problem with a single input line. Never aborts the import."""

    line_number: int
    content: str
    code: ImportErrorCode
    message: str


@dataclass(frozen=True, slots=True)
class CategoryHeader:
    """
    A section header such as "Commander:" or "Creatures (30)".

    declared_count is informational only; it is never compared with the
    cards that follow.
    """

    label: str
    category: DeckCategory
    declared_count: int | None = None
    line_number: int = 0


@dataclass(frozen=True, slots=True)
class CardEntry:
    """Card fields extracted from a line, before categorization."""

    quantity: int
    name: str
    set_code: str | None = None
    collector_number: str | None = None


@dataclass(frozen=True, slots=True)
class TokenizedLine:
    """A classified input line."""

    line: RawImportLine
    kind: LineKind
    header: CategoryHeader | None = None
    card: CardEntry | None = None
    error: LineError | None = None


# =============================================================================
# SEGMENTER OUTPUT
# =============================================================================


@dataclass(frozen=True, slots=True)
class ParsedCardLine:
    """
    A card line tagged with its deck category.

    INVARIANTS:
    - quantity >= 1
    - name is non-empty with whitespace collapsed
    """

    quantity: int
    name: str
    category: DeckCategory
    line_number: int
    set_code: str | None = None
    collector_number: str | None = None
    section: str | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {self.quantity}")
        if not self.name.strip():
            raise ValueError("name must not be empty")


@dataclass(frozen=True, slots=True)
class SegmentedDeckList:
    """Parsed deck list: categorized cards, headers seen, and line errors."""

    cards: tuple[ParsedCardLine, ...] = ()
    headers: tuple[CategoryHeader, ...] = ()
    errors: tuple[LineError, ...] = ()


# =============================================================================
# RESOLVER OUTPUT
# =============================================================================


@dataclass(frozen=True, slots=True)
class CardQuery:
    """Distinct lookup key. Names compare case-insensitively."""

    name: str
    set_code: str | None = None
    collector_number: str | None = None
    # Name as typed, sent to the catalog; not part of the key
    typed_name: str = field(default="", compare=False)

    @classmethod
    def from_line(cls, line: ParsedCardLine) -> "CardQuery":
        return cls(
            name=line.name.lower(),
            typed_name=line.name,
            set_code=line.set_code.lower() if line.set_code else None,
            collector_number=line.collector_number,
        )

    @property
    def has_printing(self) -> bool:
        return bool(self.set_code and self.collector_number)


@dataclass(frozen=True, slots=True)
class CardResolution:
    """
    Outcome of resolving one ParsedCardLine.

    error_code is None when RESOLVED. A NOT_FOUND caused by a catalog
    outage carries CATALOG_SERVICE_ERROR instead of NOT_FOUND.
    """

    query: ParsedCardLine
    status: ResolutionStatus
    resolved_card: CatalogCardRef | None = None
    candidates: tuple[CatalogCardRef, ...] = ()
    error_code: ImportErrorCode | None = None

    @property
    def is_resolved(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED

    @property
    def display_name(self) -> str:
        """Canonical name when resolved, otherwise the name as typed."""
        if self.resolved_card is not None:
            return self.resolved_card.name
        return self.query.name


# =============================================================================
# PREVIEW
# =============================================================================


@dataclass(frozen=True, slots=True)
class BasicLands:
    """Suggested basic land quantities."""

    plains: int = 0
    island: int = 0
    swamp: int = 0
    mountain: int = 0
    forest: int = 0
    wastes: int = 0

    @property
    def total(self) -> int:
        return self.plains + self.island + self.swamp + self.mountain + self.forest + self.wastes


@dataclass(frozen=True)
class ImportPreview:
    """
    Everything the user confirms before a deck is committed.

    Discarded on commit or cancel; never persisted directly.
    """

    commander: CardResolution | None = None
    main_cards: list[CardResolution] = field(default_factory=list)
    sideboard_cards: list[CardResolution] = field(default_factory=list)
    considering_cards: list[CardResolution] = field(default_factory=list)
    unresolved: list[CardResolution] = field(default_factory=list)
    suggested_lands: BasicLands | None = None
    errors: list[LineError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    demoted_commanders: list[CardResolution] = field(default_factory=list)
    source: str = "text"
    deck_name: str | None = None
    author: str | None = None

    def all_resolutions(self) -> list[CardResolution]:
        """Every resolution in the preview, commander first."""
        resolutions = [self.commander] if self.commander is not None else []
        return (
            resolutions
            + self.main_cards
            + self.sideboard_cards
            + self.considering_cards
            + self.unresolved
        )

    @property
    def total_cards(self) -> int:
        return sum(r.query.quantity for r in self.all_resolutions())

    @property
    def resolved_count(self) -> int:
        return sum(1 for r in self.all_resolutions() if r.is_resolved)

    @property
    def unresolved_count(self) -> int:
        return sum(1 for r in self.all_resolutions() if not r.is_resolved)


@dataclass(frozen=True, slots=True)
class ImportFailure:
    """Source-level failure. The whole import is aborted."""

    code: ImportErrorCode
    reason: str
    message: str
    status_code: int = 400


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Import outcome. Exactly one of preview or failure is set."""

    preview: ImportPreview | None = None
    failure: ImportFailure | None = None

    def __post_init__(self) -> None:
        if (self.preview is None) == (self.failure is None):
            raise ValueError("ImportResult needs exactly one of preview or failure")

    @property
    def ok(self) -> bool:
        return self.preview is not None
