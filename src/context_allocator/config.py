"""
Configuration for context-allocator.

Supports configuration via:
1. Environment variables (highest priority)
2. TOML config file (context-allocator.toml)
3. Default values (lowest priority)

Environment variables:
- CONTEXT_ALLOCATOR_CONFIG_FILE: Path to TOML config file
- CONTEXT_ALLOCATOR_TOTAL_BUDGET: Total token budget
- CONTEXT_ALLOCATOR_PRESET: Named weight preset (balanced, documentation, ...)
- CONTEXT_ALLOCATOR_CONTENT_ROOT: Directory holding instructions/, docs/, agents/
- CONTEXT_ALLOCATOR_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
- CONTEXT_ALLOCATOR_STRUCTURED_LOGGING: JSON log lines (true/false)

Example TOML:

    [budget]
    total = 8000
    instructions = 40
    docs = 30
    agent = 20
    reserved = 10

    [content]
    root = ".github"

    [logging]
    level = "DEBUG"
    structured = false
"""

import functools
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from context_allocator.core.allocation import (
    DEFAULT_TOTAL_BUDGET,
    BudgetConfiguration,
    Category,
)
from context_allocator.core.errors import ConfigurationError


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONFIG_FILES = ("context-allocator.toml", ".context-allocator.toml")


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _parse_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"{name} must be an integer, got {value!r}", details={"field": name}
        ) from None


@dataclass
class BudgetSettings:
    """Raw budget settings before validation.

    Weights left as None fall back to the preset (or the defaults).
    """

    total: Optional[int] = None
    preset: Optional[str] = None
    weights: Dict[Category, float] = field(default_factory=dict)

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "BudgetSettings":
        """Create settings from the [budget] TOML section."""
        settings = cls()
        if "total" in data:
            settings.total = _parse_int("budget.total", data["total"])
        if "preset" in data:
            settings.preset = str(data["preset"])
        for category in Category:
            if category.value in data:
                settings.weights[category] = data[category.value]
        return settings


@dataclass
class ContentSettings:
    """Where the content provider looks for files."""

    root: Path = field(default_factory=lambda: Path(".github"))
    instructions_dir: str = "instructions"
    docs_dir: str = "docs"
    agents_dir: str = "agents"

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "ContentSettings":
        """Create settings from the [content] TOML section."""
        return cls(
            root=Path(data.get("root", ".github")),
            instructions_dir=str(data.get("instructions_dir", "instructions")),
            docs_dir=str(data.get("docs_dir", "docs")),
            agents_dir=str(data.get("agents_dir", "agents")),
        )


@dataclass
class AllocatorConfig:
    """Configuration with support for env vars and TOML overrides."""

    budget: BudgetSettings = field(default_factory=BudgetSettings)
    content: ContentSettings = field(default_factory=ContentSettings)

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = False

    config_file: Optional[Path] = None

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "AllocatorConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. TOML config file
        3. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get("CONTEXT_ALLOCATOR_CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            for default_path in DEFAULT_CONFIG_FILES:
                if Path(default_path).exists():
                    config._load_toml(Path(default_path))
                    break

        config._load_env()
        return config

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(
                f"Error loading config file {path}: {e}", details={"path": str(path)}
            ) from e

        self.config_file = path

        if "budget" in data:
            self.budget = BudgetSettings.from_toml_dict(data["budget"])

        if "content" in data:
            self.content = ContentSettings.from_toml_dict(data["content"])

        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = str(log["level"]).upper()
            if "structured" in log:
                self.structured_logging = _parse_bool(log["structured"])

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if total := os.environ.get("CONTEXT_ALLOCATOR_TOTAL_BUDGET"):
            self.budget.total = _parse_int("CONTEXT_ALLOCATOR_TOTAL_BUDGET", total)

        if preset := os.environ.get("CONTEXT_ALLOCATOR_PRESET"):
            self.budget.preset = preset

        if root := os.environ.get("CONTEXT_ALLOCATOR_CONTENT_ROOT"):
            self.content.root = Path(root)

        if level := os.environ.get("CONTEXT_ALLOCATOR_LOG_LEVEL"):
            self.log_level = level.upper()

        if structured := os.environ.get("CONTEXT_ALLOCATOR_STRUCTURED_LOGGING"):
            self.structured_logging = _parse_bool(structured)

    def budget_configuration(self) -> BudgetConfiguration:
        """Build the validated budget configuration.

        Preset weights (or the defaults) are the base; explicit per-category
        weights from TOML override them.

        Raises:
            ConfigurationError: If the resulting configuration is invalid
        """
        if self.budget.preset:
            base = BudgetConfiguration.from_preset(self.budget.preset, self.budget.total)
        else:
            base = BudgetConfiguration(
                total_budget=(
                    self.budget.total
                    if self.budget.total is not None
                    else DEFAULT_TOTAL_BUDGET
                )
            )

        if not self.budget.weights:
            return base

        weights = dict(base.weights)
        weights.update(self.budget.weights)
        return BudgetConfiguration(total_budget=base.total_budget, weights=weights)

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        from context_allocator.core.logging_config import configure_logging

        configure_logging(
            level=getattr(logging, self.log_level, logging.INFO),
            format="structured" if self.structured_logging else "human",
        )


# Global configuration instance
_config: Optional[AllocatorConfig] = None


def get_config() -> AllocatorConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AllocatorConfig.from_env()
    return _config


def set_config(config: Optional[AllocatorConfig]) -> None:
    """Set (or reset with None) the global configuration instance."""
    global _config
    _config = config


def log_call(
    logger_name: Optional[str] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to log function calls with structured data.

    Args:
        logger_name: Optional logger name (defaults to function module)
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        log = logging.getLogger(logger_name or func.__module__)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            log.debug(
                f"Calling {func.__name__}",
                extra={
                    "function": func.__name__,
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                },
            )
            try:
                result = func(*args, **kwargs)
                log.debug(
                    f"Completed {func.__name__}",
                    extra={"function": func.__name__, "success": True},
                )
                return result
            except Exception as e:
                log.error(
                    f"Error in {func.__name__}: {e}",
                    extra={
                        "function": func.__name__,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                raise

        return wrapper

    return decorator
