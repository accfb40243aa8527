"""Budget allocation across content categories.

Turns a total token budget and a set of percentage weights into an absolute
budget per category. One category, ``reserved``, holds space back for the
eventual response and never takes part in content selection.

Key Components:
    - Category: The fixed set of budget categories
    - BudgetConfiguration: Validated total budget + percentage weights
    - Allocation: Immutable snapshot of absolute per-category budgets
    - BudgetAllocator: Normalizes weights and computes the allocation
    - PRESETS: Named weight sets for common scenarios

Usage:
    from context_allocator.core.allocation import (
        BudgetAllocator,
        BudgetConfiguration,
        Category,
    )

    allocator = BudgetAllocator(BudgetConfiguration(total_budget=6000))
    allocator.budget_for(Category.INSTRUCTIONS)          # 2400
    allocator.remaining(2000, Category.INSTRUCTIONS)     # 400

    # Weights that drift away from 100% are rescaled with a warning
    config = BudgetConfiguration(
        total_budget=1000,
        weights={"instructions": 50, "docs": 50, "agent": 50, "reserved": 50},
    )
    BudgetAllocator(config).allocation().to_dict()
"""

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from numbers import Real
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from context_allocator.core.errors import ConfigurationError
from context_allocator.core.estimator import DEFAULT_ESTIMATOR, TokenEstimator

logger = logging.getLogger(__name__)


class Category(str, Enum):
    """Named buckets of content competing for budget."""

    INSTRUCTIONS = "instructions"
    DOCS = "docs"
    AGENT = "agent"
    RESERVED = "reserved"


# Selectable categories in default priority order
CONTENT_CATEGORIES: Tuple[Category, ...] = (
    Category.INSTRUCTIONS,
    Category.DOCS,
    Category.AGENT,
)

ALL_CATEGORIES: Tuple[Category, ...] = CONTENT_CATEGORIES + (Category.RESERVED,)

DEFAULT_TOTAL_BUDGET = 6000

DEFAULT_WEIGHTS: Dict[Category, float] = {
    Category.INSTRUCTIONS: 40.0,
    Category.DOCS: 30.0,
    Category.AGENT: 20.0,
    Category.RESERVED: 10.0,
}

# Raw weight sums within this many points of 100 are rescaled silently
NORMALIZATION_TOLERANCE = 1.0

CategoryKey = Union[Category, str]


def coerce_category(value: CategoryKey) -> Category:
    """Convert a category name to a Category.

    Raises:
        ConfigurationError: If the name is not a known category
    """
    if isinstance(value, Category):
        return value
    try:
        return Category(str(value).strip().lower())
    except ValueError:
        raise ConfigurationError(
            f"Unknown category: {value!r}",
            details={"valid": [c.value for c in ALL_CATEGORIES]},
        ) from None


@dataclass(frozen=True)
class BudgetConfiguration:
    """Total budget plus percentage weight per category.

    Validated once, at construction. Weights need not sum to 100; the
    allocator normalizes them. Every category, ``reserved`` included, must
    carry a weight.

    Attributes:
        total_budget: Total budget in abstract tokens (non-negative integer)
        weights: Mapping of category to percentage weight in [0, 100]

    Raises:
        ConfigurationError: On a negative or non-integer total, an unknown
            category, a missing category, a weight outside [0, 100], or a
            zero weight sum
    """

    total_budget: int = DEFAULT_TOTAL_BUDGET
    weights: Mapping[Category, float] = field(
        default_factory=lambda: dict(DEFAULT_WEIGHTS)
    )

    def __post_init__(self) -> None:
        total = self.total_budget
        if isinstance(total, bool) or not isinstance(total, int):
            raise ConfigurationError(
                f"total_budget must be an integer, got {type(total).__name__}",
                details={"field": "total_budget", "value": repr(total)},
            )
        if total < 0:
            raise ConfigurationError(
                f"total_budget must be non-negative, got {total}",
                details={"field": "total_budget", "value": total},
            )

        if not isinstance(self.weights, Mapping):
            raise ConfigurationError(
                f"weights must be a mapping, got {type(self.weights).__name__}",
                details={"field": "weights"},
            )

        coerced: Dict[Category, float] = {}
        for key, weight in self.weights.items():
            category = coerce_category(key)
            if isinstance(weight, bool) or not isinstance(weight, Real):
                raise ConfigurationError(
                    f"Weight for {category.value} must be a number, got {weight!r}",
                    details={"field": category.value},
                )
            weight = float(weight)
            if not 0.0 <= weight <= 100.0:
                raise ConfigurationError(
                    f"Weight for {category.value} must be in [0, 100], got {weight}",
                    details={"field": category.value, "value": weight},
                )
            coerced[category] = weight

        missing = [c.value for c in ALL_CATEGORIES if c not in coerced]
        if missing:
            raise ConfigurationError(
                f"Missing weights for categories: {', '.join(missing)}",
                details={"missing": missing},
            )
        if sum(coerced.values()) <= 0:
            raise ConfigurationError("Category weights must not all be zero")

        object.__setattr__(
            self, "weights", {c: coerced[c] for c in ALL_CATEGORIES}
        )

    @classmethod
    def from_percentages(
        cls,
        total_budget: int = DEFAULT_TOTAL_BUDGET,
        *,
        instructions: float = DEFAULT_WEIGHTS[Category.INSTRUCTIONS],
        docs: float = DEFAULT_WEIGHTS[Category.DOCS],
        agent: float = DEFAULT_WEIGHTS[Category.AGENT],
        reserved: float = DEFAULT_WEIGHTS[Category.RESERVED],
    ) -> "BudgetConfiguration":
        """Build a configuration from keyword percentages."""
        return cls(
            total_budget=total_budget,
            weights={
                Category.INSTRUCTIONS: instructions,
                Category.DOCS: docs,
                Category.AGENT: agent,
                Category.RESERVED: reserved,
            },
        )

    @classmethod
    def from_preset(
        cls, name: str, total_budget: Optional[int] = None
    ) -> "BudgetConfiguration":
        """Build a configuration from a named preset.

        Args:
            name: Preset name (see PRESETS), case-insensitive
            total_budget: Overrides the preset's own total, if any

        Raises:
            ConfigurationError: If the preset does not exist
        """
        preset = PRESETS.get(name.strip().lower().replace("-", "_"))
        if preset is None:
            raise ConfigurationError(
                f"Unknown preset: {name}",
                details={"valid": sorted(PRESETS)},
            )
        if total_budget is None:
            total_budget = preset.total_budget or DEFAULT_TOTAL_BUDGET
        return cls(total_budget=total_budget, weights=dict(preset.weights))

    def with_total(self, total_budget: int) -> "BudgetConfiguration":
        """Copy of this configuration with a different total budget."""
        return BudgetConfiguration(total_budget=total_budget, weights=dict(self.weights))

    @property
    def weight_sum(self) -> float:
        return sum(self.weights.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_budget": self.total_budget,
            "weights": {c.value: w for c, w in self.weights.items()},
        }


@dataclass(frozen=True)
class Preset:
    """Named weight set, optionally with its own total budget."""

    weights: Mapping[Category, float]
    total_budget: Optional[int] = None
    description: str = ""


def _preset_weights(instructions: float, docs: float, agent: float, reserved: float):
    return {
        Category.INSTRUCTIONS: instructions,
        Category.DOCS: docs,
        Category.AGENT: agent,
        Category.RESERVED: reserved,
    }


PRESETS: Dict[str, Preset] = {
    "balanced": Preset(_preset_weights(40, 30, 20, 10), description="Default balanced approach"),
    "documentation": Preset(_preset_weights(30, 50, 10, 10), description="Heavy documentation focus"),
    "agent_focused": Preset(_preset_weights(20, 20, 50, 10), description="Agent-heavy for complex guidance"),
    "learning": Preset(_preset_weights(60, 20, 10, 10), description="Instruction-heavy for implementation"),
    "response_focused": Preset(_preset_weights(20, 20, 20, 40), description="Minimal context, maximize response"),
    "generous": Preset(_preset_weights(40, 30, 20, 10), total_budget=8000, description="High token budget"),
    "minimal": Preset(_preset_weights(40, 30, 20, 10), total_budget=2000, description="Low token budget"),
}


@dataclass(frozen=True)
class Allocation:
    """Absolute budget per category at a point in time.

    The sum of all budgets (reserved included) never exceeds ``total``.
    Integer flooring may leave up to one token per category unassigned.

    Attributes:
        total: Total budget the allocation was computed from
        budgets: Tokens per category, reserved included
        normalized: Whether the weights were rescaled to sum to 100
        raw_weight_sum: Weight sum before normalization
    """

    total: int
    budgets: Mapping[Category, int]
    normalized: bool = False
    raw_weight_sum: float = 100.0

    def budget_for(self, category: CategoryKey) -> int:
        return self.budgets.get(coerce_category(category), 0)

    @property
    def reserved(self) -> int:
        return self.budgets.get(Category.RESERVED, 0)

    @property
    def content_budget(self) -> int:
        """Tokens available for content selection (reserved excluded)."""
        return sum(self.budgets.get(c, 0) for c in CONTENT_CATEGORIES)

    @property
    def allocated(self) -> int:
        return sum(self.budgets.values())

    def char_limits(self, estimator: TokenEstimator = DEFAULT_ESTIMATOR) -> Dict[Category, int]:
        """Character limit per selectable category."""
        return {c: estimator.char_limit_for(self.budget_for(c)) for c in CONTENT_CATEGORIES}

    def with_budgets(self, budgets: Mapping[Category, int]) -> "Allocation":
        """Derive a new allocation with some budgets replaced."""
        merged = dict(self.budgets)
        merged.update(budgets)
        return replace(self, budgets=merged)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {c.value: self.budget_for(c) for c in ALL_CATEGORIES}
        result["total"] = self.total
        result["normalized"] = self.normalized
        return result


class BudgetAllocator:
    """Computes per-category budgets from a BudgetConfiguration.

    The allocation is computed once at construction and reused; the
    configuration is immutable so repeated calls return the same snapshot.

    Example:
        allocator = BudgetAllocator(BudgetConfiguration(total_budget=6000))
        allocation = allocator.allocation()
        allocation.reserved        # 600
        allocation.content_budget  # 5400
    """

    def __init__(
        self,
        config: Optional[BudgetConfiguration] = None,
        *,
        estimator: TokenEstimator = DEFAULT_ESTIMATOR,
    ):
        self.config = config or BudgetConfiguration()
        self.estimator = estimator
        self.normalized_weights, normalized = self._normalize(self.config)
        self._allocation = self._calculate(normalized)

    @classmethod
    def from_preset(
        cls, name: str, total_budget: Optional[int] = None
    ) -> "BudgetAllocator":
        return cls(BudgetConfiguration.from_preset(name, total_budget))

    @staticmethod
    def _normalize(config: BudgetConfiguration) -> Tuple[Dict[Category, float], bool]:
        raw_sum = config.weight_sum
        if raw_sum == 100.0:
            return dict(config.weights), False

        if abs(raw_sum - 100.0) > NORMALIZATION_TOLERANCE:
            logger.warning(
                f"Context allocation percentages total {raw_sum:g}%, normalizing to 100%",
                extra={"raw_weight_sum": raw_sum},
            )
        scale = 100.0 / raw_sum
        return {c: w * scale for c, w in config.weights.items()}, True

    def _calculate(self, normalized: bool) -> Allocation:
        total = self.config.total_budget
        budgets: Dict[Category, int] = {}
        for category, weight in self.normalized_weights.items():
            # Absorb float noise before flooring so 40% of 6000 stays 2400
            budgets[category] = math.floor(round(total * weight / 100.0, 6))
        return Allocation(
            total=total,
            budgets=budgets,
            normalized=normalized,
            raw_weight_sum=self.config.weight_sum,
        )

    def allocation(self) -> Allocation:
        """Return the memoized allocation snapshot."""
        return self._allocation

    def budget_for(self, category: CategoryKey) -> int:
        return self._allocation.budget_for(category)

    def remaining(self, used: int, category: CategoryKey) -> int:
        """Budget left in a category after ``used`` tokens (never negative)."""
        return max(0, self.budget_for(category) - used)

    def summary(self) -> Dict[str, Any]:
        """Describe configuration, allocation and char limits.

        Returns:
            Dict with ``config``, ``allocation``, ``breakdown`` (human
            readable percent/token strings) and ``char_limits``
        """
        allocation = self._allocation
        breakdown = {
            c.value: f"{self.normalized_weights[c]:g}% ({allocation.budget_for(c)} tokens)"
            for c in ALL_CATEGORIES
        }
        return {
            "config": self.config.to_dict(),
            "allocation": allocation.to_dict(),
            "breakdown": breakdown,
            "char_limits": {
                c.value: limit for c, limit in allocation.char_limits(self.estimator).items()
            },
        }
