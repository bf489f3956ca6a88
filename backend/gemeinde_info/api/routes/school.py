"""
School routes: who enrols a child at an address, and how.

GET /registration-info?municipality=&plz=&address=&childAge=&canton=&forceRefresh=
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, status

from gemeinde_info.api.dependencies import ServiceDep

router = APIRouter()


@router.get("/registration-info")
async def school_registration_info(
    service: ServiceDep,
    municipality: str | None = Query(None, description="Municipality, Ortsteil or postal code"),
    plz: str | None = Query(None, max_length=4, description="Postal code, picks the Schulkreis"),
    address: str | None = Query(None, max_length=300, description="Street address"),
    child_age: int = Query(5, ge=0, le=25, alias="childAge"),
    canton: str | None = Query(None, min_length=2, max_length=2),
    force_refresh: bool = Query(False, alias="forceRefresh"),
) -> dict[str, Any]:
    """
    School authority (Gemeinde or Schulkreis) for an address with its
    Kindergarten / Primarschule registration details and age guidance.
    """
    if not municipality or not municipality.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Municipality parameter required",
        )

    resolved = await service.resolve_location(municipality.strip(), canton)
    result = await service.get_school_registration_info(
        resolved,
        plz=plz,
        address=address,
        child_age=child_age,
        force_refresh=force_refresh,
    )

    return {
        "gemeinde_name": resolved.gemeinde_name,
        "bfs_nummer": resolved.bfs_nummer,
        "kanton": resolved.kanton,
        "authority": result.school_authority.model_dump(mode="json"),
        "registration_info": result.info.model_dump(mode="json", exclude={"kind"}),
        "guidance": result.guidance.model_dump(mode="json", exclude_none=True),
        "cached": result.cached,
        "cached_at": result.cached_at.isoformat(),
    }
