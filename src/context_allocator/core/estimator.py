"""Approximate token estimation.

Converts raw text length to an approximate token count and back using a
fixed characters-per-token ratio. No tokenizer is involved.

Usage:
    from context_allocator.core.estimator import TokenEstimator, estimate_tokens

    estimator = TokenEstimator()
    estimator.estimate_tokens("Hello, world!")   # 4
    estimator.char_limit_for(250)                # 1000

    # Module-level shortcuts use the default ratio
    estimate_tokens("Hello, world!")             # 4
"""

import math
from dataclasses import dataclass

# Characters per token estimate
CHARS_PER_TOKEN = 4


@dataclass(frozen=True)
class TokenEstimator:
    """Fixed-ratio token estimator.

    ``estimate_tokens`` rounds up so a computed budget is never over-spent by
    under-counting. ``char_limit_for`` is the exact inverse multiplication
    and sizes truncation windows.

    Attributes:
        chars_per_token: Characters counted as one token (default 4)
    """

    chars_per_token: int = CHARS_PER_TOKEN

    def __post_init__(self) -> None:
        if self.chars_per_token <= 0:
            raise ValueError(
                f"chars_per_token must be positive, got {self.chars_per_token}"
            )

    def estimate_tokens(self, text: str) -> int:
        """Estimate tokens in text (ceiling of length / ratio)."""
        return self.tokens_for_chars(len(text))

    def tokens_for_chars(self, chars: int) -> int:
        """Estimate tokens for a raw character count."""
        if chars <= 0:
            return 0
        return math.ceil(chars / self.chars_per_token)

    def char_limit_for(self, tokens: int) -> int:
        """Character limit for a token budget."""
        return max(0, tokens) * self.chars_per_token

    def fits(self, text: str, budget_tokens: int) -> bool:
        """Check whether text fits within a token budget."""
        return self.estimate_tokens(text) <= budget_tokens


DEFAULT_ESTIMATOR = TokenEstimator()


def estimate_tokens(text: str) -> int:
    """Estimate tokens using the default ratio."""
    return DEFAULT_ESTIMATOR.estimate_tokens(text)


def char_limit_for(tokens: int) -> int:
    """Character limit for a token budget using the default ratio."""
    return DEFAULT_ESTIMATOR.char_limit_for(tokens)
