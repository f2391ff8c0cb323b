from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "EDH Builder"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/edhbuilder"

    scryfall_api_url: str = "https://api.scryfall.com"
    moxfield_api_url: str = "https://api2.moxfield.com/v2"
    user_agent: str = "EDH-Builder/1.0"
    http_timeout: float = 30.0

    # Scryfall asks for ~10 requests/second at most
    catalog_max_concurrency: int = 4
    catalog_request_interval: float = 0.1

    # Days before a cached card is refreshed from Scryfall
    card_cache_stale_days: int = 30


settings = Settings()


# =============================================================================
# IMPORT LIMITS
# =============================================================================

# Scryfall /cards/collection accepts at most 75 identifiers per request
CATALOG_BATCH_SIZE = 75

# Minimum similarity for a fuzzy match to count as resolved
FUZZY_MATCH_THRESHOLD = 0.85

# Maximum candidates offered for an ambiguous card name
MAX_CANDIDATES = 5

# Commander decks are 100 cards including the commander
COMMANDER_DECK_SIZE = 100
