"""
API Middleware package.

Provides middleware components for the FastAPI application:
- WideEventMiddleware: Canonical log line per request
"""

from gemeinde_info.api.middleware.wide_events import WideEventMiddleware

__all__ = [
    "WideEventMiddleware",
]
