"""
SQLAlchemy ORM models for persistent storage.

Only the local card cache lives here; decks and users belong to the
surrounding application.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CachedCardDB(Base):
    """
    A Scryfall printing cached after a successful resolution.

    Rows are refreshed from Scryfall once `cached_at` is older than the
    configured staleness window.
    """

    __tablename__ = "cached_cards"

    scryfall_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    oracle_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    # Lowercased name for case-insensitive lookups
    name_lower: Mapped[str] = mapped_column(String(255), index=True)

    set_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    collector_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    type_line: Mapped[str] = mapped_column(Text, default="")
    mana_cost: Mapped[str | None] = mapped_column(String(128), nullable=True)
    cmc: Mapped[float] = mapped_column(Float, default=0.0)
    color_identity: Mapped[list[Any]] = mapped_column(JSON, default=list)
    released_at: Mapped[str | None] = mapped_column(String(10), nullable=True)
    promo: Mapped[bool] = mapped_column(Boolean, default=False)
    rarity: Mapped[str | None] = mapped_column(String(16), nullable=True)
    image_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    legal_commander: Mapped[bool] = mapped_column(Boolean, default=False)

    cached_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<CachedCardDB(name={self.name}, set={self.set_code})>"
