# src/solquest_api/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import auth_router, og_nft_router, users_router

__all__ = [
    "auth_router",
    "og_nft_router",
    "users_router",
]
