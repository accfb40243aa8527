"""Request routing: rank, reallocate, select, report.

The router is the glue a request handler calls with a task description and
the candidate content a provider gathered. It ranks the categories for the
task, redistributes the budget for this request only, orders the items by
rank and selects them under the aggregate ceiling. It returns a
JSON-serializable bundle with per-item records and an aggregate summary.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from context_allocator.config import log_call
from context_allocator.core.allocation import Allocation, BudgetAllocator, Category
from context_allocator.core.estimator import DEFAULT_ESTIMATOR, TokenEstimator
from context_allocator.core.priority import PriorityAssignment, PriorityRanker
from context_allocator.core.selection import ContentItem, SelectionResult, select

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContextBundle:
    """Outcome of routing one request."""

    task: str
    assignment: PriorityAssignment
    allocation: Allocation
    selection: SelectionResult
    estimator: TokenEstimator = DEFAULT_ESTIMATOR

    @property
    def files_loaded(self) -> int:
        return self.selection.item_count

    def items(self) -> List[Dict[str, Any]]:
        return [
            {
                "category": entry.item.category.value,
                "sourceId": entry.item.source_id,
                "content": entry.content,
                "truncated": entry.was_truncated,
                "originalLength": len(entry.item.content),
                "usedLength": entry.used_chars,
                "estimatedTokens": self.estimator.tokens_for_chars(entry.used_chars),
            }
            for entry in self.selection.selected
        ]

    def summary(self) -> Dict[str, Any]:
        selection = self.selection
        return {
            "filesLoaded": selection.item_count,
            "totalCharsUsed": selection.chars_used,
            "totalTokensUsed": self.estimator.tokens_for_chars(selection.chars_used),
            "remainingBudget": selection.chars_remaining,
            "remainingTokens": self.estimator.tokens_for_chars(selection.chars_remaining),
            "omitted": list(selection.omitted),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task": self.task,
            "priority": [c.value for c in self.assignment.order],
            "matchedRules": list(self.assignment.matched_rules),
            "appliedRule": self.assignment.applied_rule,
            "allocation": self.allocation.to_dict(),
            "items": self.items(),
            "summary": self.summary(),
        }


class ContextRouter:
    """Serves the highest-priority, budget-compliant content for a task.

    Args:
        allocator: Static allocator; its allocation is never modified
        ranker: Priority ranker (default rules if omitted)
    """

    def __init__(
        self,
        allocator: Optional[BudgetAllocator] = None,
        ranker: Optional[PriorityRanker] = None,
    ):
        self.allocator = allocator or BudgetAllocator()
        self.ranker = ranker or PriorityRanker()

    def _allocator_for(self, budget_override: Optional[int]) -> BudgetAllocator:
        if budget_override is None:
            return self.allocator
        return BudgetAllocator(
            self.allocator.config.with_total(budget_override),
            estimator=self.allocator.estimator,
        )

    @log_call()
    def route(
        self,
        task_description: str,
        items: Iterable[ContentItem],
        budget_override: Optional[int] = None,
    ) -> ContextBundle:
        """Rank, reallocate and select content for one request.

        Args:
            task_description: Free-text description of the task
            items: Candidate items in provider order
            budget_override: Total budget in tokens for this request only

        Returns:
            ContextBundle; empty (``files_loaded == 0``) when nothing fits

        Raises:
            ConfigurationError: If ``budget_override`` is not a valid total
        """
        allocator = self._allocator_for(budget_override)
        estimator = allocator.estimator

        assignment = self.ranker.rank(task_description)
        allocation = self.ranker.reallocate(
            task_description, allocator.allocation(), assignment=assignment
        )

        candidates = [item for item in items if item.category != Category.RESERVED]
        # Stable: provider order is kept within a category
        candidates.sort(key=lambda item: assignment.rank_of(item.category))

        targets = allocation.char_limits(estimator)
        selection = select(candidates, targets, estimator=estimator)

        if selection.item_count == 0:
            logger.info(
                "No content selected for task",
                extra={"candidates": len(candidates), "budget_chars": selection.budget_chars},
            )
        over = selection.over_target()
        if over:
            logger.debug(
                "Advisory category targets exceeded",
                extra={"over_target": {c.value: n for c, n in over.items()}},
            )

        return ContextBundle(
            task=task_description,
            assignment=assignment,
            allocation=allocation,
            selection=selection,
            estimator=estimator,
        )
