"""Budget allocation, priority ranking and content selection engine."""

from context_allocator.core.errors import (
    ConfigurationError,
    ContentNotFoundError,
    ContextAllocatorError,
)

from context_allocator.core.estimator import (
    CHARS_PER_TOKEN,
    DEFAULT_ESTIMATOR,
    TokenEstimator,
)

from context_allocator.core.allocation import (
    ALL_CATEGORIES,
    CONTENT_CATEGORIES,
    PRESETS,
    Allocation,
    BudgetAllocator,
    BudgetConfiguration,
    Category,
)

from context_allocator.core.priority import (
    DEFAULT_RULES,
    PriorityAssignment,
    PriorityRanker,
    PriorityRule,
)

from context_allocator.core.selection import (
    TRUNCATION_MARKER,
    ContentItem,
    SelectionResult,
    TruncationOutcome,
    select,
    truncate,
)

from context_allocator.core.content_cache import ContentCache

__all__ = [
    "ConfigurationError",
    "ContentNotFoundError",
    "ContextAllocatorError",
    "CHARS_PER_TOKEN",
    "DEFAULT_ESTIMATOR",
    "TokenEstimator",
    "ALL_CATEGORIES",
    "CONTENT_CATEGORIES",
    "PRESETS",
    "Allocation",
    "BudgetAllocator",
    "BudgetConfiguration",
    "Category",
    "DEFAULT_RULES",
    "PriorityAssignment",
    "PriorityRanker",
    "PriorityRule",
    "TRUNCATION_MARKER",
    "ContentItem",
    "SelectionResult",
    "TruncationOutcome",
    "select",
    "truncate",
    "ContentCache",
]
