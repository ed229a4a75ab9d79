"""Domain exceptions shared by the SolQuest services.

Endpoint modules translate these into HTTP responses. Cryptographic and
session failures collapse into one generic 401 so that callers cannot tell
a bad signature from an expired token; claim and supply failures stay
distinct so clients can render "already claimed" versus "sold out".
"""

from __future__ import annotations


class SolQuestError(RuntimeError):
    """Base exception for all SolQuest service failures."""


class InvalidAddressError(SolQuestError, ValueError):
    """Raised when a wallet address is not a valid base58 Ed25519 public key."""


class AuthenticationFailedError(SolQuestError):
    """Raised when a challenge or its signature does not check out."""


class TokenInvalidError(SolQuestError):
    """Base class for session token failures."""


class TokenMalformedError(TokenInvalidError):
    """Raised when a token cannot be parsed or lacks required claims."""


class TokenSignatureInvalidError(TokenInvalidError):
    """Raised when a token was not signed with the server secret."""


class TokenExpiredError(TokenInvalidError):
    """Raised when a token is past its expiry."""


class ClaimError(SolQuestError):
    """Base class for business-rule failures of the OG claim flow."""


class AlreadyClaimedError(ClaimError):
    """Raised when a wallet already holds a reserved or minted claim."""

    def __init__(self, wallet_address: str, status: str | None = None) -> None:
        self.wallet_address = wallet_address
        self.status = status
        super().__init__(f"Wallet {wallet_address} has already claimed an OG NFT")


class SupplyExhaustedError(ClaimError):
    """Raised when every token id up to the supply cap has been handed out."""

    def __init__(self, max_supply: int) -> None:
        self.max_supply = max_supply
        super().__init__(f"All {max_supply} OG NFTs have been claimed")


class ClaimStateError(ClaimError):
    """Raised on an illegal claim state transition."""


class StoreUnavailableError(SolQuestError):
    """Raised when the claim store cannot be read or written."""


class MintClientError(SolQuestError):
    """Raised by mint clients when the external ledger write fails."""


class ExternalMintFailedError(SolQuestError):
    """Raised when the external mint failed after a slot was reserved.

    The reservation has been moved to FAILED; a fresh claim re-attempts it.
    """

    def __init__(self, wallet_address: str, token_id: int, reason: str) -> None:
        self.wallet_address = wallet_address
        self.token_id = token_id
        self.reason = reason
        super().__init__(f"Minting OG #{token_id} for {wallet_address} failed: {reason}")
