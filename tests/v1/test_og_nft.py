# tests/v1/test_og_nft.py
"""API tests for OG NFT eligibility, stats and claims."""

from fastapi import status

from solquest_api.api.v1.dependencies import get_claim_ledger_dep
from solquest_api.core.errors import StoreUnavailableError
from solquest_api.services.claim_ledger import ClaimLedger


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestMint:
    """POST /og-nft/mint."""

    def test_wallet_signs_in_and_claims_once(self, client, wallet, login, mint_client):
        token = login(wallet)["token"]

        eligibility = client.get(f"/api/v1/og-nft/eligibility/{wallet.address}")
        assert eligibility.json()["eligible"] is True
        assert eligibility.json()["nextTokenId"] == 1

        mint = client.post("/api/v1/og-nft/mint", json={}, headers=_bearer(token))
        assert mint.status_code == status.HTTP_200_OK, mint.text
        body = mint.json()
        assert body["success"] is True
        assert body["tokenId"] == 1
        assert body["receipt"]["signature"] == "sig-1"

        again = client.post("/api/v1/og-nft/mint", json={}, headers=_bearer(token))
        assert again.status_code == status.HTTP_409_CONFLICT
        assert again.json()["detail"]["error"] == "AlreadyClaimed"
        assert len(mint_client.calls) == 1

        me = client.get("/api/v1/users/me", headers=_bearer(token)).json()
        assert me["claimState"] == "MINTED"
        assert me["ownsOgNft"] is True

        after = client.get("/api/v1/og-nft/eligibility", headers=_bearer(token)).json()
        assert after["eligible"] is False
        assert after["claimStatus"] == "MINTED"

    def test_mint_without_body(self, client, wallet, login):
        token = login(wallet)["token"]

        response = client.post("/api/v1/og-nft/mint", headers=_bearer(token))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["tokenId"] == 1

    def test_mint_requires_authentication(self, client, wallet, mint_client):
        response = client.post("/api/v1/og-nft/mint", json={"walletAddress": wallet.address})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert mint_client.calls == []

    def test_body_wallet_must_match_session(self, client, wallet, make_wallet, login, mint_client):
        token = login(wallet)["token"]

        response = client.post(
            "/api/v1/og-nft/mint",
            json={"walletAddress": make_wallet().address},
            headers=_bearer(token),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"]["error"] == "WalletMismatch"
        assert mint_client.calls == []

    def test_matching_body_wallet_and_attributes(self, client, wallet, login, mint_client):
        token = login(wallet)["token"]

        response = client.post(
            "/api/v1/og-nft/mint",
            json={
                "walletAddress": wallet.address,
                "attributes": [{"trait_type": "Quest", "value": "Genesis"}],
            },
            headers=_bearer(token),
        )

        assert response.status_code == status.HTTP_200_OK
        _, recipient, metadata = mint_client.calls[0]
        assert recipient == wallet.address
        assert {"trait_type": "Quest", "value": "Genesis"} in metadata["attributes"]

    def test_malformed_body_wallet_is_invalid_address(self, client, wallet, login):
        token = login(wallet)["token"]

        response = client.post(
            "/api/v1/og-nft/mint", json={"walletAddress": "bogus"}, headers=_bearer(token)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["error"] == "InvalidAddress"

    def test_failed_mint_is_retryable_with_same_token(self, client, wallet, login, mint_client):
        token = login(wallet)["token"]
        mint_client.failures = 1

        failed = client.post("/api/v1/og-nft/mint", json={}, headers=_bearer(token))
        assert failed.status_code == status.HTTP_502_BAD_GATEWAY
        assert failed.json()["detail"]["error"] == "MintFailed"
        assert failed.json()["detail"]["tokenId"] == 1

        eligibility = client.get(f"/api/v1/og-nft/eligibility/{wallet.address}").json()
        assert eligibility["eligible"] is True
        assert eligibility["claimStatus"] == "FAILED"

        retry = client.post("/api/v1/og-nft/mint", json={}, headers=_bearer(token))
        assert retry.status_code == status.HTTP_200_OK
        assert retry.json()["tokenId"] == 1

    def test_failed_mint_that_cannot_be_recorded_is_unavailable(
        self, client, wallet, login, mint_client, ledger, mocker
    ):
        token = login(wallet)["token"]
        mint_client.failures = 1
        mocker.patch.object(
            ledger, "finalize", side_effect=StoreUnavailableError("claim store unavailable")
        )

        response = client.post("/api/v1/og-nft/mint", json={}, headers=_bearer(token))

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["detail"]["error"] == "StoreUnavailable"

    def test_supply_exhausted(self, app, client, make_wallet, login, session_factory):
        small = ClaimLedger(session_factory, max_supply=2)
        small.ensure_counter()
        app.dependency_overrides[get_claim_ledger_dep] = lambda: small
        tokens = [login(make_wallet())["token"] for _ in range(3)]

        codes = [
            client.post("/api/v1/og-nft/mint", json={}, headers=_bearer(token)).status_code
            for token in tokens
        ]

        assert codes == [status.HTTP_200_OK, status.HTTP_200_OK, status.HTTP_410_GONE]
        stats = client.get("/api/v1/og-nft/stats").json()
        assert stats["totalIssued"] == 2
        assert stats["remaining"] == 0
        assert stats["nextTokenId"] == 3
        newcomer = client.get(f"/api/v1/og-nft/eligibility/{make_wallet().address}").json()
        assert (newcomer["eligible"], newcomer["nextTokenId"]) == (False, 3)


class TestReadEndpoints:
    """Eligibility and stats."""

    def test_eligibility_for_unknown_wallet(self, client, wallet):
        response = client.get(f"/api/v1/og-nft/eligibility/{wallet.address}")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body == {
            "walletAddress": wallet.address,
            "eligible": True,
            "reason": "Eligible for OG NFT",
            "claimStatus": "NONE",
            "remaining": 10,
            "nextTokenId": 1,
            "maxSupply": 10,
            "totalIssued": 0,
        }

    def test_eligibility_invalid_address(self, client):
        response = client.get("/api/v1/og-nft/eligibility/not-a-wallet")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["error"] == "InvalidAddress"

    def test_own_eligibility_requires_token(self, client):
        response = client.get("/api/v1/og-nft/eligibility")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_stats(self, client, make_wallet, login):
        for _ in range(2):
            token = login(make_wallet())["token"]
            client.post("/api/v1/og-nft/mint", json={}, headers=_bearer(token))

        response = client.get("/api/v1/og-nft/stats")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "totalIssued": 2,
            "totalMinted": 2,
            "maxSupply": 10,
            "remaining": 8,
            "nextTokenId": 3,
        }


class TestOpenApi:
    """Documented response shapes."""

    def test_mint_documents_structured_errors(self, client):
        schema = client.get("/openapi.json").json()

        responses = schema["paths"]["/api/v1/og-nft/mint"]["post"]["responses"]
        for code in ("400", "403", "409", "410", "502", "503"):
            ref = responses[code]["content"]["application/json"]["schema"]["$ref"]
            assert ref.endswith("/ErrorResponse")
        detail = schema["components"]["schemas"]["ErrorDetail"]["properties"]
        assert set(detail) == {"error", "message", "tokenId"}

    def test_next_token_id_is_documented(self, client):
        schema = client.get("/openapi.json").json()["components"]["schemas"]

        description = schema["StatsResponse"]["properties"]["nextTokenId"]["description"]
        assert "maxSupply + 1" in description
