"""
Database package initialization.
"""

from gemeinde_info.db.database import (
    Base,
    close_db,
    get_db,
    get_db_session,
    get_engine,
    get_session_maker,
    init_db,
)
from gemeinde_info.db.models import AuthorityInfoCacheModel, MunicipalityModel

__all__ = [
    # Database
    "Base",
    "get_engine",
    "get_session_maker",
    "get_db",
    "get_db_session",
    "init_db",
    "close_db",
    # Models
    "MunicipalityModel",
    "AuthorityInfoCacheModel",
]
