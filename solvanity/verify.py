"""
Verification of found keys.

Re-derives the public key from the secret's seed and checks it against both
the embedded public half and the reported identifier.
"""

from typing import Optional

from solvanity.core import PUBLIC_KEY_LENGTH, SEED_LENGTH, encode_identifier, keypair_from_secret
from solvanity.export import load_keyfile


def verify_secret(
    secret: bytes,
    expected_identifier: str,
    keyfile: Optional[str] = None,
) -> dict:
    """Verify secret material against the identifier it was reported with.

    Args:
        secret: 64-byte secret material (seed + public key).
        expected_identifier: Base-58 identifier reported by the search.
        keyfile: Optional keyfile path whose contents must equal secret.

    Returns dict with:
        derived_identifier, public_key_match, identifier_match, keyfile_match, error
    """
    result = {
        "derived_identifier": None,
        "public_key_match": None,
        "identifier_match": None,
        "keyfile_match": None,
        "error": None,
    }

    try:
        _, derived_pub = keypair_from_secret(secret)
    except ValueError as e:
        result["error"] = str(e)
        return result

    embedded_pub = bytes(secret[SEED_LENGTH:SEED_LENGTH + PUBLIC_KEY_LENGTH])
    derived = encode_identifier(derived_pub)
    result["derived_identifier"] = derived
    result["public_key_match"] = derived_pub == embedded_pub
    result["identifier_match"] = derived == expected_identifier

    if keyfile is not None:
        try:
            result["keyfile_match"] = load_keyfile(keyfile) == bytes(secret)
        except (OSError, ValueError) as e:
            result["keyfile_match"] = False
            result["error"] = str(e)

    return result
