"""
Keypair generation for Solana-style vanity identifiers.

Secret material uses the 64-byte Solana layout: the 32-byte Ed25519 seed
followed by the 32-byte public key. The identifier is the base-58 encoding
of the public key.
"""

from typing import NamedTuple

import base58
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

SEED_LENGTH = 32           # bytes
PUBLIC_KEY_LENGTH = 32     # bytes
SECRET_LENGTH = SEED_LENGTH + PUBLIC_KEY_LENGTH

# Serialization constants cached at module level for performance
_RAW = serialization.Encoding.Raw
_RAW_PRV = serialization.PrivateFormat.Raw
_RAW_PUB = serialization.PublicFormat.Raw
_NO_ENC = serialization.NoEncryption()


class Candidate(NamedTuple):
    public_identifier: str
    secret_material: bytes


def encode_identifier(public_key: bytes) -> str:
    return base58.b58encode(public_key).decode("ascii")


def generate_candidate() -> Candidate:
    """Generate one keypair and encode its public half.

    This is the hot-path function called in the inner loop of each worker.
    """
    prv = Ed25519PrivateKey.generate()
    seed = prv.private_bytes(_RAW, _RAW_PRV, _NO_ENC)
    pub = prv.public_key().public_bytes(_RAW, _RAW_PUB)
    return Candidate(encode_identifier(pub), seed + pub)


def keypair_from_secret(secret: bytes) -> tuple[bytes, bytes]:
    """Split 64-byte secret material and re-derive the public key from its seed.

    Returns:
        (seed, derived_public_key)

    Raises ValueError if the secret has the wrong length.
    """
    if len(secret) != SECRET_LENGTH:
        raise ValueError(
            f"Secret material must be {SECRET_LENGTH} bytes, got {len(secret)}."
        )
    seed = bytes(secret[:SEED_LENGTH])
    prv = Ed25519PrivateKey.from_private_bytes(seed)
    return seed, prv.public_key().public_bytes(_RAW, _RAW_PUB)


def secret_to_base58(secret: bytes) -> str:
    """Wallet-import form of the full 64-byte secret."""
    return base58.b58encode(secret).decode("ascii")
