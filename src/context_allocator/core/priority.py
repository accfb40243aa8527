"""Task-driven priority ranking and budget reallocation.

Scans a free-text task description for fixed keyword sets and orders the
content categories accordingly. The ordering then redistributes the
non-reserved part of an allocation with front-loaded shares.

Rules are evaluated in declaration order and the last matching rule wins.
Every matching rule is recorded on the assignment so callers can see when
an earlier match was overridden.

Usage:
    from context_allocator.core.priority import PriorityRanker

    ranker = PriorityRanker()
    assignment = ranker.rank("implement security authentication")
    assignment.order          # (INSTRUCTIONS, DOCS, AGENT)
    assignment.matched_rules  # ("security",)

    request_allocation = ranker.reallocate(
        "implement security authentication", allocator.allocation()
    )
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from context_allocator.core.allocation import (
    CONTENT_CATEGORIES,
    Allocation,
    Category,
)

logger = logging.getLogger(__name__)


# Share of the non-reserved budget per rank position, in percent
RANK_SHARES: Tuple[int, ...] = (50, 35, 15)


@dataclass(frozen=True)
class PriorityRule:
    """Keyword rule that reorders categories when any keyword matches.

    Attributes:
        name: Stable rule identifier reported in diagnostics
        keywords: Lower-case substrings searched for in the task
        order: Category order applied when the rule matches (rank 1 first)
    """

    name: str
    keywords: Tuple[str, ...]
    order: Tuple[Category, ...]

    def matches(self, task_lower: str) -> bool:
        return any(keyword in task_lower for keyword in self.keywords)


# Evaluation order matters: later matches override earlier ones.
DEFAULT_RULES: Tuple[PriorityRule, ...] = (
    PriorityRule(
        "api",
        ("api", "rest", "endpoint"),
        (Category.AGENT, Category.INSTRUCTIONS, Category.DOCS),
    ),
    PriorityRule(
        "security",
        ("security", "auth", "owasp"),
        (Category.INSTRUCTIONS, Category.DOCS, Category.AGENT),
    ),
    PriorityRule(
        "performance",
        ("performance", "optimize"),
        (Category.DOCS, Category.INSTRUCTIONS, Category.AGENT),
    ),
    PriorityRule(
        "testing",
        ("test", "spec"),
        (Category.INSTRUCTIONS, Category.DOCS, Category.AGENT),
    ),
    PriorityRule(
        "architecture",
        ("architecture", "design"),
        (Category.AGENT, Category.DOCS, Category.INSTRUCTIONS),
    ),
)


@dataclass(frozen=True)
class PriorityAssignment:
    """Ranking of the content categories for one task.

    Attributes:
        ranks: Category to rank (1 = highest); contiguous, no ties
        matched_rules: Names of every rule that matched, in evaluation order
        applied_rule: Rule that decided the order, or None for the default
    """

    ranks: Mapping[Category, int]
    matched_rules: Tuple[str, ...] = ()
    applied_rule: Optional[str] = None

    def __post_init__(self) -> None:
        expected = set(range(1, len(CONTENT_CATEGORIES) + 1))
        if set(self.ranks) != set(CONTENT_CATEGORIES):
            raise ValueError(
                f"ranks must cover exactly {[c.value for c in CONTENT_CATEGORIES]}"
            )
        if sorted(self.ranks.values()) != sorted(expected):
            raise ValueError(
                f"ranks must be a permutation of {sorted(expected)}, "
                f"got {sorted(self.ranks.values())}"
            )

    @classmethod
    def from_order(
        cls,
        order: Sequence[Category],
        *,
        matched_rules: Sequence[str] = (),
        applied_rule: Optional[str] = None,
    ) -> "PriorityAssignment":
        return cls(
            ranks={category: i for i, category in enumerate(order, start=1)},
            matched_rules=tuple(matched_rules),
            applied_rule=applied_rule,
        )

    @property
    def order(self) -> Tuple[Category, ...]:
        """Categories sorted by rank, highest priority first."""
        return tuple(sorted(self.ranks, key=self.ranks.__getitem__))

    def rank_of(self, category: Category) -> int:
        return self.ranks[category]

    @property
    def overridden(self) -> bool:
        """True when more than one rule matched and a later one won."""
        return len(self.matched_rules) > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "priorities": [
                {"type": c.value, "priority": self.ranks[c]} for c in self.order
            ],
            "matched_rules": list(self.matched_rules),
            "applied_rule": self.applied_rule,
        }


class PriorityRanker:
    """Ranks categories for a task and reallocates budget by rank.

    Args:
        rules: Ordered keyword rules (default: DEFAULT_RULES)
        default_order: Order used when no rule matches
        shares: Percent of the non-reserved budget per rank position
    """

    def __init__(
        self,
        rules: Sequence[PriorityRule] = DEFAULT_RULES,
        *,
        default_order: Sequence[Category] = CONTENT_CATEGORIES,
        shares: Sequence[int] = RANK_SHARES,
    ):
        if len(shares) != len(CONTENT_CATEGORIES):
            raise ValueError(
                f"shares must have {len(CONTENT_CATEGORIES)} entries, got {len(shares)}"
            )
        if sum(shares) > 100:
            raise ValueError(f"shares must not exceed 100%, got {sum(shares)}")
        self.rules = tuple(rules)
        self.default_order = tuple(default_order)
        self.shares = tuple(shares)

    def rank(self, task_description: str) -> PriorityAssignment:
        """Assign a rank to every content category for the task."""
        task_lower = (task_description or "").lower()
        order = self.default_order
        matched = []

        for rule in self.rules:
            if rule.matches(task_lower):
                matched.append(rule.name)
                order = rule.order

        applied = matched[-1] if matched else None
        if len(matched) > 1:
            logger.debug(
                f"Priority rules {matched[:-1]} overridden by '{applied}'",
                extra={"matched_rules": matched},
            )

        return PriorityAssignment.from_order(
            order, matched_rules=matched, applied_rule=applied
        )

    def reallocate(
        self,
        task_description: str,
        allocation: Allocation,
        assignment: Optional[PriorityAssignment] = None,
    ) -> Allocation:
        """Redistribute the non-reserved budget by task priority.

        The source allocation is left untouched; the result is scoped to a
        single request.

        Args:
            task_description: Task used for ranking (ignored if
                ``assignment`` is given)
            allocation: Static allocation to redistribute
            assignment: Precomputed ranking for the same task

        Returns:
            New Allocation with the same total and reserved budget
        """
        if assignment is None:
            assignment = self.rank(task_description)

        available = max(0, allocation.total - allocation.reserved)
        budgets = {
            category: available * self.shares[assignment.rank_of(category) - 1] // 100
            for category in CONTENT_CATEGORIES
        }
        return allocation.with_budgets(budgets)
