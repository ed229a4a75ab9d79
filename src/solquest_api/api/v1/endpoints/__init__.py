# src/solquest_api/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .og_nft import router as og_nft_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "og_nft_router",
    "users_router",
]
