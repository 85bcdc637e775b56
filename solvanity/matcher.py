"""Prefix/suffix matching for base-58 vanity identifiers."""

from dataclasses import dataclass

import base58

from solvanity.errors import ConfigurationError

BASE58_ALPHABET = base58.BITCOIN_ALPHABET.decode("ascii")

# A 32-byte public key encodes to 32..44 base-58 characters.
MAX_IDENTIFIER_LENGTH = 44


def matches(identifier: str, prefix: str, suffix: str, require_all: bool = True) -> bool:
    """Test an identifier against the prefix and suffix constraints.

    Empty constraints are ignored. With ``require_all`` every non-empty
    constraint must hold; otherwise any single one is enough. If both
    constraints are empty nothing matches.
    """
    if not prefix and not suffix:
        return False
    prefix_ok = identifier.startswith(prefix) if prefix else None
    suffix_ok = identifier.endswith(suffix) if suffix else None
    if require_all:
        return prefix_ok is not False and suffix_ok is not False
    return bool(prefix_ok or suffix_ok)


@dataclass(frozen=True)
class MatchPattern:
    """Immutable, picklable pattern specification for workers."""
    prefix: str = ""
    suffix: str = ""
    require_all: bool = True

    def matches(self, identifier: str) -> bool:
        return matches(identifier, self.prefix, self.suffix, self.require_all)

    def describe(self) -> str:
        parts = []
        if self.prefix:
            parts.append(f"prefix='{self.prefix}'")
        if self.suffix:
            parts.append(f"suffix='{self.suffix}'")
        joiner = " and " if self.require_all else " or "
        return joiner.join(parts) or "<empty>"


def validate_base58_pattern(pattern: str, label: str = "Pattern") -> str:
    """Validate a pattern contains only base-58 characters.

    Returns the pattern unchanged (base-58 is case sensitive). An empty
    pattern is allowed here; the caller decides whether that is acceptable.
    Raises ConfigurationError for invalid patterns.
    """
    if not isinstance(pattern, str):
        raise ConfigurationError(f"{label} must be a string, got {type(pattern).__name__}.")
    bad = sorted({c for c in pattern if c not in BASE58_ALPHABET})
    if bad:
        raise ConfigurationError(
            f"{label} '{pattern}' contains non-base58 characters: {''.join(bad)!r}. "
            "0, O, I and l are not part of the alphabet."
        )
    if len(pattern) > MAX_IDENTIFIER_LENGTH:
        raise ConfigurationError(
            f"{label} length {len(pattern)} exceeds maximum identifier length "
            f"of {MAX_IDENTIFIER_LENGTH} characters."
        )
    return pattern


def estimate_difficulty(pattern: MatchPattern) -> dict:
    """Estimate expected attempts and time to find a match.

    Treats every identifier position as uniform over the alphabet, ignoring
    the skewed distribution of leading characters.

    Returns dict with: expected_attempts, estimated_seconds_per_core, difficulty_description
    """
    n = len(BASE58_ALPHABET)
    a, b = len(pattern.prefix), len(pattern.suffix)

    if not a and not b:
        return {
            "expected_attempts": None,
            "estimated_seconds_per_core": None,
            "difficulty_description": "Nothing to match",
        }
    if not a or not b or pattern.require_all:
        expected = n ** (a + b)
    else:
        # 1 / P(prefix or suffix)
        expected = n ** (a + b) / (n ** a + n ** b - 1)

    keys_per_sec = 15000  # conservative single-core estimate
    secs = expected / keys_per_sec

    if expected < 100:
        desc = "Instant"
    elif expected < 1_000_000:
        desc = "Seconds"
    elif expected < 50_000_000:
        desc = "Minutes"
    elif expected < 1_000_000_000:
        desc = "Hours"
    elif expected < 100_000_000_000:
        desc = "Days"
    else:
        desc = "Weeks+ (consider a shorter pattern)"

    return {
        "expected_attempts": int(expected),
        "estimated_seconds_per_core": secs,
        "difficulty_description": desc,
    }
