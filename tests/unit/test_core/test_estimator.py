"""Tests for approximate token estimation."""

import pytest

from context_allocator.core.estimator import (
    CHARS_PER_TOKEN,
    DEFAULT_ESTIMATOR,
    TokenEstimator,
    char_limit_for,
    estimate_tokens,
)


class TestTokenEstimator:
    """Tests for TokenEstimator."""

    def test_default_ratio_is_four(self):
        """Test that the default ratio is four characters per token."""
        assert CHARS_PER_TOKEN == 4
        assert DEFAULT_ESTIMATOR.chars_per_token == 4

    def test_estimate_rounds_up(self):
        """Test that a partial token counts as a whole token."""
        assert DEFAULT_ESTIMATOR.estimate_tokens("Hello, world!") == 4
        assert DEFAULT_ESTIMATOR.estimate_tokens("abcd") == 1
        assert DEFAULT_ESTIMATOR.estimate_tokens("abcde") == 2

    def test_empty_text_is_zero_tokens(self):
        assert DEFAULT_ESTIMATOR.estimate_tokens("") == 0
        assert DEFAULT_ESTIMATOR.tokens_for_chars(0) == 0
        assert DEFAULT_ESTIMATOR.tokens_for_chars(-5) == 0

    def test_char_limit_is_exact_multiple(self):
        assert DEFAULT_ESTIMATOR.char_limit_for(250) == 1000
        assert DEFAULT_ESTIMATOR.char_limit_for(0) == 0

    def test_negative_token_budget_gives_zero_chars(self):
        assert DEFAULT_ESTIMATOR.char_limit_for(-10) == 0

    def test_fits(self):
        assert DEFAULT_ESTIMATOR.fits("abcd", 1)
        assert not DEFAULT_ESTIMATOR.fits("abcde", 1)

    def test_custom_ratio(self):
        estimator = TokenEstimator(chars_per_token=3)
        assert estimator.estimate_tokens("abcdefg") == 3
        assert estimator.char_limit_for(10) == 30

    @pytest.mark.parametrize("ratio", [0, -1])
    def test_non_positive_ratio_rejected(self, ratio):
        """Test that a non-positive ratio raises ValueError."""
        with pytest.raises(ValueError, match="chars_per_token must be positive"):
            TokenEstimator(chars_per_token=ratio)


class TestModuleShortcuts:
    """Tests for the module-level helpers."""

    def test_estimate_tokens_uses_default(self):
        assert estimate_tokens("x" * 10) == 3

    def test_char_limit_for_uses_default(self):
        assert char_limit_for(600) == 2400
