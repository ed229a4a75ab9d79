"""Metadata for OG collectibles."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from solquest_api.core.settings import settings

SELLER_FEE_BASIS_POINTS = 500
LEGENDARY_MAX_TOKEN_ID = 100
RARE_MAX_TOKEN_ID = 1000


def rarity_for(token_id: int) -> str:
    """Return the rarity tier implied by a token id."""
    if token_id <= LEGENDARY_MAX_TOKEN_ID:
        return "Legendary"
    if token_id <= RARE_MAX_TOKEN_ID:
        return "Rare"
    return "Common"


def build_og_metadata(
    token_id: int,
    attributes: Iterable[Mapping[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build the off-chain metadata document for OG token `token_id`.

    Caller supplied attributes are appended after the standard traits.
    """
    name = settings.og_collection_name
    traits: list[dict[str, Any]] = [
        {"trait_type": "Token ID", "value": str(token_id)},
        {"trait_type": "XP Boost", "value": "10%"},
        {"trait_type": "SOL Bonus", "value": "10% on leaderboard rewards"},
        {"trait_type": "Collection", "value": "OG"},
        {"trait_type": "Rarity", "value": rarity_for(token_id)},
        {"trait_type": "Mint Type", "value": "Community Free Mint"},
        {"trait_type": "Limited Edition", "value": "1 per wallet"},
    ]
    traits.extend(dict(attribute) for attribute in attributes or ())
    return {
        "name": f"{name} #{token_id}",
        "symbol": settings.og_collection_symbol,
        "description": (
            f"Exclusive {name} NFT #{token_id}. Holders get XP boosts, exclusive access, "
            "and special privileges. Limited to 1 per wallet."
        ),
        "seller_fee_basis_points": SELLER_FEE_BASIS_POINTS,
        "external_url": f"{settings.og_external_url_base.rstrip('/')}/{token_id}",
        "attributes": traits,
        "collection": {"name": name, "family": "SolQuest"},
    }
