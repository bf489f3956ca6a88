"""
Municipality routes: resolve a location and fetch authority info.

GET /resolve?query=&canton=
GET /info?query=&canton=&forceRefresh=&category=
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, status

from gemeinde_info.api.dependencies import ServiceDep
from gemeinde_info.core.models import InfoCategory, ResolvedAuthority
from gemeinde_info.services.extraction import format_office_hours

router = APIRouter()


def _require_query(query: str | None) -> str:
    if not query or not query.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query parameter required",
        )
    return query.strip()


@router.get("/resolve", response_model=ResolvedAuthority)
async def resolve_municipality(
    service: ServiceDep,
    query: str | None = Query(None, description="Postal code, municipality or Ortsteil"),
    canton: str | None = Query(None, min_length=2, max_length=2, description="Canton code, e.g. AG"),
) -> ResolvedAuthority:
    """
    Resolve a location to its municipality.

    "Kleindöttingen" resolves to Böttstein with the Ortsteil echoed back.
    Unknown locations return 404 with a hint.
    """
    resolved = await service.resolve_location(_require_query(query), canton)
    return resolved


@router.get("/info")
async def municipality_info(
    service: ServiceDep,
    query: str | None = Query(None, description="Postal code, municipality or Ortsteil"),
    canton: str | None = Query(None, min_length=2, max_length=2),
    force_refresh: bool = Query(False, alias="forceRefresh"),
    category: InfoCategory = Query(InfoCategory.OPERATIONAL),
) -> dict[str, Any]:
    """
    Opening hours, contact and registration details for a municipality.

    Served from cache when fresh; `cached` and `cached_at` tell the caller
    where the data came from.
    """
    if category == InfoCategory.SCHOOL_REGISTRATION:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="School registration is served by /api/v1/school/registration-info",
        )

    resolved = await service.resolve_location(_require_query(query), canton)
    result = await service.get_authority_info(resolved, force_refresh=force_refresh, category=category)

    return {
        "gemeinde_name": resolved.gemeinde_name,
        "ortsteil": resolved.ortsteil,
        "bfs_nummer": resolved.bfs_nummer,
        "kanton": resolved.kanton,
        "website_url": resolved.registration_pages[0] if resolved.registration_pages else resolved.website_url,
        "category": result.category.value,
        "info": result.info.model_dump(mode="json", exclude={"kind"}),
        "office_hours": format_office_hours(result.info.hours),
        "cached": result.cached,
        "cached_at": result.cached_at.isoformat(),
    }
