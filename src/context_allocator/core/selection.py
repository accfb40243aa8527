"""Content selection and boundary-aware truncation.

Selects category-tagged content items in priority order under an aggregate
character budget. Items that overrun the remaining allowance are cut at a
sentence, line or heading boundary when one lies close enough to the limit.

Key Components:
    - ContentItem: Immutable text payload with category and source id
    - TruncationOutcome: Result of truncating one text, with retention metrics
    - SelectedItem: One entry of a selection (item, used chars, outcome)
    - SelectionResult: Ordered selection plus aggregate totals
    - truncate(): Boundary-aware truncation
    - select(): Priority-ordered selection under an aggregate ceiling

Usage:
    from context_allocator.core.selection import ContentItem, select, truncate

    outcome = truncate("Sentence one. Sentence two. Sentence three.", 32)
    outcome.content   # "Sentence one. Sentence two." + TRUNCATION_MARKER

    items = [
        ContentItem("...", Category.INSTRUCTIONS, "java.instructions.md"),
        ContentItem("...", Category.DOCS, "performance.md"),
    ]
    result = select(items, 24_000)
    print(f"{result.item_count} items, {result.chars_used} chars")
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Union

from context_allocator.core.allocation import Category, CategoryKey, coerce_category
from context_allocator.core.estimator import DEFAULT_ESTIMATOR, TokenEstimator

logger = logging.getLogger(__name__)


# Appended after a cut; not counted against the budget
TRUNCATION_MARKER = "\n\n[... content truncated to fit context budget ...]"

# A boundary must lie past this fraction of the budget to be used
BOUNDARY_FLOOR = 0.7

SENTENCE_TERMINATOR = "."
LINE_BREAK = "\n"
HEADING_MARKER = "#"


@dataclass(frozen=True)
class ContentItem:
    """Content loaded by a provider, consumed read-only by the engine.

    Attributes:
        content: Text payload
        category: Budget category the content competes in
        source_id: Identifier used for reporting (e.g. a file name)
    """

    content: str
    category: Category
    source_id: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", coerce_category(self.category))

    def __len__(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class TruncationOutcome:
    """Result of truncating a single text.

    ``truncated_length`` and ``truncated_tokens`` describe the kept text
    without the marker suffix.
    """

    content: str
    original_length: int
    original_tokens: int
    truncated_length: int
    truncated_tokens: int
    was_truncated: bool
    percent_retained: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "original": {"length": self.original_length, "tokens": self.original_tokens},
            "truncated": {"length": self.truncated_length, "tokens": self.truncated_tokens},
            "was_truncated": self.was_truncated,
            "percent_retained": self.percent_retained,
        }


def _boundary_cut(candidate: str, budget_chars: int) -> int:
    """Return the cut position inside ``candidate``.

    The rightmost sentence terminator, line break or heading marker is used
    when it lies past the boundary floor; otherwise the hard cut. A heading
    marker run is kept with its title only if the cut before the run still
    clears the floor.
    """
    floor = budget_chars * BOUNDARY_FLOOR
    last_period = candidate.rfind(SENTENCE_TERMINATOR)
    last_newline = candidate.rfind(LINE_BREAK)
    last_heading = candidate.rfind(HEADING_MARKER)
    boundary = max(last_period, last_newline, last_heading)

    if boundary <= floor:
        return budget_chars

    if boundary == last_heading:
        cut = boundary
        while cut > 0 and candidate[cut - 1] == HEADING_MARKER:
            cut -= 1
        if cut > floor:
            return cut
    return boundary + 1


def truncate(
    text: str,
    budget_chars: int,
    *,
    estimator: TokenEstimator = DEFAULT_ESTIMATOR,
    marker: str = TRUNCATION_MARKER,
) -> TruncationOutcome:
    """Truncate text to a character budget at a content-aware boundary.

    Args:
        text: Text to truncate
        budget_chars: Maximum characters to keep (negative is treated as 0)
        estimator: Token estimator for the reported token counts
        marker: Suffix appended after a cut

    Returns:
        TruncationOutcome; ``content`` is ``text`` unchanged when it fits
    """
    budget_chars = max(0, budget_chars)
    original_length = len(text)
    original_tokens = estimator.estimate_tokens(text)

    if original_length <= budget_chars:
        return TruncationOutcome(
            content=text,
            original_length=original_length,
            original_tokens=original_tokens,
            truncated_length=original_length,
            truncated_tokens=original_tokens,
            was_truncated=False,
            percent_retained=100,
        )

    kept = text[: _boundary_cut(text[:budget_chars], budget_chars)]
    logger.debug(
        f"Truncated content from {original_length} to {len(kept)} chars",
        extra={"budget_chars": budget_chars, "boundary_cut": len(kept) != budget_chars},
    )
    return TruncationOutcome(
        content=kept + marker,
        original_length=original_length,
        original_tokens=original_tokens,
        truncated_length=len(kept),
        truncated_tokens=estimator.estimate_tokens(kept),
        was_truncated=True,
        percent_retained=round(len(kept) / original_length * 100),
    )


@dataclass(frozen=True)
class SelectedItem:
    """One selected item with its budget usage.

    Attributes:
        item: The original, unmodified content item
        used_chars: Budget consumed by this item
        was_truncated: Whether the item was cut to fit
        outcome: Truncation details; ``outcome.content`` is the text to serve
    """

    item: ContentItem
    used_chars: int
    was_truncated: bool
    outcome: TruncationOutcome

    @property
    def content(self) -> str:
        return self.outcome.content


@dataclass
class SelectionResult:
    """Ordered selection plus aggregate totals.

    Attributes:
        selected: Entries in processing order
        budget_chars: Aggregate ceiling that was available
        chars_used: Sum of ``used_chars`` across entries
        omitted: Source ids of items never considered (budget exhausted)
        category_targets: Advisory per-category char targets, if given
    """

    selected: List[SelectedItem] = field(default_factory=list)
    budget_chars: int = 0
    chars_used: int = 0
    omitted: List[str] = field(default_factory=list)
    category_targets: Dict[Category, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.chars_used > self.budget_chars:
            raise ValueError(
                f"chars_used ({self.chars_used}) exceeds budget ({self.budget_chars})"
            )

    @property
    def chars_remaining(self) -> int:
        return max(0, self.budget_chars - self.chars_used)

    @property
    def item_count(self) -> int:
        return len(self.selected)

    @property
    def truncated_count(self) -> int:
        return sum(1 for entry in self.selected if entry.was_truncated)

    def category_usage(self) -> Dict[Category, int]:
        """Chars used per category."""
        usage: Dict[Category, int] = {}
        for entry in self.selected:
            usage[entry.item.category] = usage.get(entry.item.category, 0) + entry.used_chars
        return usage

    def over_target(self) -> Dict[Category, int]:
        """Categories whose usage exceeded their advisory target, with overage."""
        usage = self.category_usage()
        return {
            category: usage[category] - target
            for category, target in self.category_targets.items()
            if usage.get(category, 0) > target
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [
                {
                    "source_id": entry.item.source_id,
                    "category": entry.item.category.value,
                    "used_chars": entry.used_chars,
                    "was_truncated": entry.was_truncated,
                    "percent_retained": entry.outcome.percent_retained,
                }
                for entry in self.selected
            ],
            "budget_chars": self.budget_chars,
            "chars_used": self.chars_used,
            "chars_remaining": self.chars_remaining,
            "item_count": self.item_count,
            "omitted": list(self.omitted),
        }


BudgetSpec = Union[int, Mapping[CategoryKey, int]]


def select(
    items: Iterable[ContentItem],
    budget: BudgetSpec,
    *,
    estimator: TokenEstimator = DEFAULT_ESTIMATOR,
    marker: str = TRUNCATION_MARKER,
) -> SelectionResult:
    """Select items in the given order under an aggregate character budget.

    Items are expected to be pre-sorted by priority. Processing stops as
    soon as the remaining budget reaches zero; per-category figures are
    advisory targets and never stop selection on their own.

    Args:
        items: Content items, highest priority first
        budget: Aggregate char budget, or per-category char budgets whose
            sum is the aggregate ceiling
        estimator: Token estimator for truncation metrics
        marker: Suffix appended to truncated items

    Returns:
        SelectionResult with entries in processing order
    """
    targets: Dict[Category, int] = {}
    if isinstance(budget, Mapping):
        targets = {coerce_category(k): max(0, int(v)) for k, v in budget.items()}
        aggregate = sum(targets.values())
    else:
        aggregate = max(0, int(budget))

    selected: List[SelectedItem] = []
    omitted: List[str] = []
    remaining = aggregate
    pending = list(items)

    for index, item in enumerate(pending):
        if not item.content:
            continue
        if remaining <= 0:
            omitted = [i.source_id for i in pending[index:] if i.content]
            logger.debug(
                f"Budget exhausted; omitting {len(omitted)} item(s)",
                extra={"omitted": omitted},
            )
            break

        chars_to_use = min(len(item.content), remaining)
        outcome = truncate(item.content, chars_to_use, estimator=estimator, marker=marker)
        selected.append(
            SelectedItem(
                item=item,
                used_chars=chars_to_use,
                was_truncated=outcome.was_truncated,
                outcome=outcome,
            )
        )
        remaining -= chars_to_use

    return SelectionResult(
        selected=selected,
        budget_chars=aggregate,
        chars_used=aggregate - remaining,
        omitted=omitted,
        category_targets=targets,
    )
