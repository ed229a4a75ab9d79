"""Signature utilities built on Ed25519 primitives."""
from __future__ import annotations

import base64
import binascii
import re

import base58
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from solquest_api.core.errors import InvalidAddressError

PUBKEY_LENGTH_BYTES = 32
SIGNATURE_LENGTH_BYTES = 64

# Solana addresses are 32 bytes rendered in the Bitcoin base58 alphabet.
_WALLET_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def decode_wallet_address(wallet_address: str) -> bytes:
    """Decode a base58 wallet address into raw Ed25519 public key bytes.

    Raises:
        InvalidAddressError: If the address is not 32 bytes of base58.
    """
    if not isinstance(wallet_address, str) or not _WALLET_ADDRESS_RE.match(wallet_address):
        raise InvalidAddressError("Wallet address must be a base58 encoded public key")
    try:
        pubkey_bytes = base58.b58decode(wallet_address)
    except ValueError as err:
        raise InvalidAddressError(f"Invalid base58 encoding: {err}") from err
    if len(pubkey_bytes) != PUBKEY_LENGTH_BYTES:
        raise InvalidAddressError("Wallet address must decode to a 32 byte public key")
    return pubkey_bytes


def is_valid_wallet_address(wallet_address: str) -> bool:
    """Return True if `wallet_address` is a syntactically valid wallet address."""
    try:
        decode_wallet_address(wallet_address)
    except InvalidAddressError:
        return False
    return True


def decode_signature(signature: str) -> bytes:
    """Decode a detached signature from base58, falling back to base64."""
    try:
        decoded = base58.b58decode(signature)
        if len(decoded) == SIGNATURE_LENGTH_BYTES:
            return decoded
    except ValueError:
        pass
    try:
        decoded = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError("Signature is neither base58 nor base64") from err
    if len(decoded) != SIGNATURE_LENGTH_BYTES:
        raise ValueError("Ed25519 signatures must be 64 bytes")
    return decoded


def verify_signature(wallet_address: str, message: str, signature: str) -> bool:
    """Verify a detached Ed25519 signature from a Solana wallet.

    Args:
        wallet_address: Base58 encoded wallet address (the public key).
        message: Exact text that was signed; verified over its UTF-8 bytes.
        signature: Base58 (or base64) encoded 64-byte signature.

    Returns:
        True if the signature is valid for `message` under `wallet_address`;
        False for any invalid or malformed input.
    """
    try:
        verify_key = VerifyKey(decode_wallet_address(wallet_address))
        verify_key.verify(message.encode("utf-8"), decode_signature(signature))
        return True
    except (BadSignatureError, InvalidAddressError, ValueError, TypeError):
        return False
