"""
SQLAlchemy ORM models for Gemeinde Info.

- municipality_master_data: canonical dataset (read-only to the core)
- authority_info_cache: one extracted payload per (municipality, category, scope)
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from gemeinde_info.db.database import Base


class TimestampMixin:
    """Mixin for created_at and updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )


class MunicipalityModel(Base, TimestampMixin):
    """Swiss municipality with postal codes, Ortsteile and website."""

    __tablename__ = "municipality_master_data"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    bfs_nummer: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)
    gemeinde_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    kanton: Mapped[str] = mapped_column(String(2), nullable=False, index=True)
    plz: Mapped[list] = mapped_column(JSON, default=list)  # ["5314", "5315"]
    ortsteile: Mapped[list] = mapped_column(JSON, default=list)  # ["Kleindöttingen", ...]
    official_website: Mapped[str | None] = mapped_column(String(500))
    registration_pages: Mapped[list] = mapped_column(JSON, default=list)

    # Schools: "single" | "multi_district" | "regional", NULL means single
    school_authority_type: Mapped[str | None] = mapped_column(String(50))
    school_administration_url: Mapped[str | None] = mapped_column(String(500))
    school_districts: Mapped[list] = mapped_column(JSON, default=list)  # Schulkreise


class AuthorityInfoCacheModel(Base):
    """Cached extraction result. Staleness is checked at read time."""

    __tablename__ = "authority_info_cache"
    __table_args__ = (
        UniqueConstraint("bfs_nummer", "category", "scope", name="uq_authority_info_cache_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    bfs_nummer: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(40), nullable=False)
    scope: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    data: Mapped[dict] = mapped_column(JSON, nullable=False)
    cached_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ttl_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
