"""Service layer for the SolQuest API."""

from .challenge import Challenge, ChallengeService, get_challenge_service
from .claim_ledger import ClaimLedger, Eligibility, Reservation, SupplyStats, get_claim_ledger
from .mint_client import HttpMintClient, MintClient, MintReceipt, SimulatedMintClient, get_mint_client
from .mint_orchestrator import MintOrchestrator, MintResult
from .replay import ReplayProtectionService, get_replay_service
from .session_tokens import SessionIdentity, SessionTokenService, get_session_token_service

__all__ = [
    "Challenge", "ChallengeService", "get_challenge_service",
    "ClaimLedger", "Eligibility", "Reservation", "SupplyStats", "get_claim_ledger",
    "HttpMintClient", "MintClient", "MintReceipt", "SimulatedMintClient", "get_mint_client",
    "MintOrchestrator", "MintResult",
    "ReplayProtectionService", "get_replay_service",
    "SessionIdentity", "SessionTokenService", "get_session_token_service",
]
