"""
Database seeder for the canonical municipality dataset.

Loads the bundled municipalities.json and upserts it into
municipality_master_data keyed by BFS number.
"""

import json
from pathlib import Path
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gemeinde_info.core.models import CanonicalAuthority
from gemeinde_info.db.models import MunicipalityModel

logger = structlog.get_logger()

SEED_DATA_PATH = Path(__file__).parent.parent / "data" / "municipalities.json"


def load_seed_data(path: Path = SEED_DATA_PATH) -> list[CanonicalAuthority]:
    """Load and validate seed records. Missing file yields an empty list."""
    if not path.exists():
        logger.warning("Seed data not found", path=str(path))
        return []

    records: list[dict[str, Any]] = json.loads(path.read_text(encoding="utf-8"))
    return [CanonicalAuthority.model_validate(r) for r in records]


async def seed_municipalities(db: AsyncSession, path: Path = SEED_DATA_PATH) -> tuple[int, int]:
    """
    Upsert municipalities from seed data.

    Returns:
        (created, updated)
    """
    authorities = load_seed_data(path)
    created = updated = 0

    for authority in authorities:
        result = await db.execute(
            select(MunicipalityModel).where(MunicipalityModel.bfs_nummer == authority.bfs_nummer)
        )
        existing = result.scalar_one_or_none()

        record = authority.model_dump(mode="json")
        if existing:
            existing.gemeinde_name = authority.gemeinde_name
            existing.kanton = authority.kanton
            existing.plz = authority.plz
            existing.ortsteile = authority.ortsteile
            existing.official_website = authority.official_website
            existing.registration_pages = authority.registration_pages
            existing.school_authority_type = record["school_authority_type"]
            existing.school_administration_url = authority.school_administration_url
            existing.school_districts = record["school_districts"]
            updated += 1
        else:
            db.add(MunicipalityModel(**record))
            created += 1

    await db.commit()
    logger.info("Seeded municipalities", created=created, updated=updated)
    return created, updated
