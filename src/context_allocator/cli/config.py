"""CLI execution context.

Resolves the effective configuration for a command and builds the engine
objects (allocator, router, content provider) from it.
"""

from pathlib import Path
from typing import Optional

from context_allocator.config import AllocatorConfig, get_config
from context_allocator.core.allocation import BudgetAllocator, BudgetConfiguration
from context_allocator.core.content_cache import ContentCache
from context_allocator.core.providers import DirectoryContentProvider
from context_allocator.core.router import ContextRouter


class CLIContext:
    """CLI execution context with resolved configuration.

    Holds the effective configuration for a CLI command, including
    any overrides from command-line options.
    """

    def __init__(
        self,
        content_root: Optional[str] = None,
        config: Optional[AllocatorConfig] = None,
    ):
        """Initialize CLI context.

        Args:
            content_root: Explicit content root override from --content-root.
            config: Optional config (uses global if not provided).
        """
        self._content_root_override = content_root
        self._config = config or get_config()
        self.cache = ContentCache()
        self._provider: Optional[DirectoryContentProvider] = None

    @property
    def config(self) -> AllocatorConfig:
        return self._config

    @property
    def content_root(self) -> Path:
        """Resolved content root.

        Resolution order:
        1. CLI --content-root option (highest priority)
        2. AllocatorConfig.content.root (from env/TOML/default)
        """
        if self._content_root_override:
            return Path(self._content_root_override).resolve()
        return self._config.content.root.resolve()

    def budget_configuration(
        self,
        *,
        total: Optional[int] = None,
        preset: Optional[str] = None,
    ) -> BudgetConfiguration:
        """Configured budget with optional command-line overrides.

        Raises:
            ConfigurationError: If the configuration or overrides are invalid
        """
        if preset:
            return BudgetConfiguration.from_preset(preset, total)
        config = self._config.budget_configuration()
        if total is not None:
            config = config.with_total(total)
        return config

    def allocator(self, **overrides) -> BudgetAllocator:
        return BudgetAllocator(self.budget_configuration(**overrides))

    def router(self) -> ContextRouter:
        return ContextRouter(self.allocator())

    def provider(self) -> DirectoryContentProvider:
        if self._provider is None:
            content = self._config.content
            self._provider = DirectoryContentProvider(
                self.content_root,
                cache=self.cache,
                instructions_dir=content.instructions_dir,
                docs_dir=content.docs_dir,
                agents_dir=content.agents_dir,
            )
        return self._provider


def create_context(
    content_root: Optional[str] = None,
    config_file: Optional[str] = None,
) -> CLIContext:
    """Create a CLI context with optional overrides.

    Args:
        content_root: Optional content root override.
        config_file: Optional TOML config path (replaces the global config).

    Raises:
        ConfigurationError: If the config file cannot be parsed
    """
    config = AllocatorConfig.from_env(config_file) if config_file else None
    return CLIContext(content_root=content_root, config=config)
