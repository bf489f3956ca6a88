"""
FastAPI dependencies.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from gemeinde_info.services.authority_info import AuthorityInfoService


def get_authority_info_service(request: Request) -> AuthorityInfoService:
    """Service wired by the application lifespan (or by tests)."""
    service = getattr(request.app.state, "authority_info_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return service


ServiceDep = Annotated[AuthorityInfoService, Depends(get_authority_info_service)]
