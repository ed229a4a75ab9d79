# tests/services/test_og_metadata.py
"""Tests for OG metadata generation."""

import pytest

from solquest_api.services.og_metadata import build_og_metadata, rarity_for


@pytest.mark.parametrize(
    ("token_id", "rarity"),
    [(1, "Legendary"), (100, "Legendary"), (101, "Rare"), (1000, "Rare"), (1001, "Common")],
)
def test_rarity_tiers(token_id, rarity):
    assert rarity_for(token_id) == rarity


def test_metadata_document():
    metadata = build_og_metadata(42, [{"trait_type": "Quest", "value": "Genesis"}])

    assert metadata["name"] == "SolQuest OG #42"
    assert metadata["symbol"] == "SQOG"
    assert metadata["seller_fee_basis_points"] == 500
    assert metadata["external_url"].endswith("/42")
    traits = {a["trait_type"]: a["value"] for a in metadata["attributes"]}
    assert traits["Token ID"] == "42"
    assert traits["Rarity"] == "Legendary"
    assert traits["Limited Edition"] == "1 per wallet"
    assert metadata["attributes"][-1] == {"trait_type": "Quest", "value": "Genesis"}
    assert metadata["collection"] == {"name": "SolQuest OG", "family": "SolQuest"}
