import pytest

from solvanity.errors import ConfigurationError
from solvanity.matcher import (
    MatchPattern,
    estimate_difficulty,
    matches,
    validate_base58_pattern,
)


@pytest.mark.parametrize("identifier, expected", [
    ("ABcdpump", True),
    ("ABcdxxxx", False),
    ("xxcdpump", False),
    ("xxxxxxxx", False),
])
def test_prefix_and_suffix_both_required(identifier, expected):
    assert matches(identifier, "AB", "pump") is expected


@pytest.mark.parametrize("identifier", ["So1abc", "Xso1", "so1", ""])
def test_prefix_only(identifier):
    assert matches(identifier, "So1", "") == identifier.startswith("So1")


@pytest.mark.parametrize("identifier", ["abcpump", "pumpabc", "Pump"])
def test_suffix_only(identifier):
    assert matches(identifier, "", "pump") == identifier.endswith("pump")


def test_empty_constraints_never_match():
    assert matches("anything", "", "") is False
    assert matches("", "", "") is False


def test_match_any_accepts_either_side():
    assert matches("ABcdxxxx", "AB", "pump", require_all=False)
    assert matches("xxcdpump", "AB", "pump", require_all=False)
    assert not matches("xxxxxxxx", "AB", "pump", require_all=False)
    assert not matches("anything", "", "", require_all=False)


def test_match_pattern_delegates():
    pattern = MatchPattern(prefix="AB", suffix="pump")
    assert pattern.matches("ABpump")
    assert not pattern.matches("ABpum")
    assert pattern.describe() == "prefix='AB' and suffix='pump'"
    assert MatchPattern(suffix="x", require_all=False).describe() == "suffix='x'"


def test_validate_rejects_non_base58():
    for bad in ("0", "O", "I", "l", "ab-c"):
        with pytest.raises(ConfigurationError):
            validate_base58_pattern(bad)


def test_validate_rejects_overlong_pattern():
    with pytest.raises(ConfigurationError, match="exceeds"):
        validate_base58_pattern("1" * 45)


def test_validate_keeps_case():
    assert validate_base58_pattern("AbC") == "AbC"
    assert validate_base58_pattern("") == ""


def test_estimate_difficulty():
    assert estimate_difficulty(MatchPattern(prefix="A"))["expected_attempts"] == 58
    both = estimate_difficulty(MatchPattern(prefix="A", suffix="b"))
    assert both["expected_attempts"] == 58 * 58
    either = estimate_difficulty(MatchPattern(prefix="A", suffix="b", require_all=False))
    assert either["expected_attempts"] < 58
    assert estimate_difficulty(MatchPattern())["expected_attempts"] is None
    assert "Weeks" in estimate_difficulty(MatchPattern(suffix="pumppumppump"))["difficulty_description"]
