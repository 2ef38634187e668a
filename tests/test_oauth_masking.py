"""Unit tests for token masking used in OAuth logging and pages."""

from strava_climbs.utils import mask_token


def test_mask_token_handles_short_values() -> None:
    assert mask_token("abcd", visible=4) == "abcd"
    assert mask_token("abcd", visible=2) == "**cd"
    assert mask_token("abcd", visible=0) == "****"


def test_mask_token_handles_empty_and_smaller_values() -> None:
    assert mask_token("", visible=4) == ""
    assert mask_token(None) == ""
    assert mask_token("a", visible=4) == "a"
    assert mask_token("ab", visible=5) == "ab"


def test_mask_token_negative_visible_defaults_to_all_masked() -> None:
    assert mask_token("abcdef", visible=-2) == "******"
