"""context-allocator - token budget allocation and context selection for AI assistants."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("context-allocator")
except PackageNotFoundError:
    # Package not installed (development mode without editable install)
    __version__ = "0.1.0"

from context_allocator.core import (
    BudgetAllocator,
    BudgetConfiguration,
    Category,
    ConfigurationError,
    ContentItem,
    PriorityRanker,
    TokenEstimator,
    select,
    truncate,
)
from context_allocator.core.router import ContextBundle, ContextRouter

__all__ = [
    "__version__",
    "BudgetAllocator",
    "BudgetConfiguration",
    "Category",
    "ConfigurationError",
    "ContentItem",
    "ContextBundle",
    "ContextRouter",
    "PriorityRanker",
    "TokenEstimator",
    "select",
    "truncate",
]
