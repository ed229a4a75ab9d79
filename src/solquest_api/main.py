# src/solquest_api/main.py
"""Main entry point for the SolQuest API."""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from solquest_api.api.v1 import auth_router, og_nft_router, users_router
from solquest_api.core.settings import settings
from solquest_api.db.session import create_tables
from solquest_api.services.claim_ledger import get_claim_ledger
from solquest_api.services.mint_client import get_mint_client
from solquest_api.services.reconciliation import ClaimReconciler

logger = logging.getLogger(__name__)

WALLET_FIELDS = {"walletAddress", "wallet_address"}

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Wallet sign-in and OG NFT claims for SolQuest",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(og_nft_router, prefix="/api/v1")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed requests as 400 with a structured error body."""
    errors = exc.errors()
    wallet_at_fault = any(
        WALLET_FIELDS.intersection(str(part) for part in error.get("loc", ()))
        for error in errors
    )
    code = "InvalidAddress" if wallet_at_fault else "InvalidRequest"
    message = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in errors
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": {"error": code, "message": message or "Invalid request"}},
    )


def _sync_startup() -> None:
    if settings.create_tables_on_startup:
        create_tables()
    get_claim_ledger().ensure_counter()


@app.on_event("startup")
async def on_startup() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await asyncio.to_thread(_sync_startup)
    if settings.reconcile_enabled:
        reconciler = ClaimReconciler()
        await reconciler.start()
        app.state.claim_reconciler = reconciler
    else:
        app.state.claim_reconciler = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    reconciler: ClaimReconciler | None = getattr(app.state, "claim_reconciler", None)
    if reconciler:
        await reconciler.stop()
    await get_mint_client().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Wallet sign-in and OG NFT claims for SolQuest",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("solquest_api.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
