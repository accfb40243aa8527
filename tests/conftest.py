"""
Root pytest configuration and shared fixtures.

Provides a throwaway content root (instructions/, docs/, agents/) and
resets process-wide configuration and logging between tests.
"""

import logging
from pathlib import Path
from typing import Dict

import pytest

from context_allocator.cli.registry import set_context
from context_allocator.config import set_config
from context_allocator.core.context import correlation_id_var

# Response contract version from responses.py
RESPONSE_CONTRACT_VERSION = "response-v2"


INSTRUCTION_FILES: Dict[str, str] = {
    "code-review-generic.instructions.md": (
        "# Code Review\n\nReview every change for correctness. Prefer small diffs.\n"
    ),
    "java.instructions.md": (
        "# Java\n\nUse records for immutable data. Avoid checked exceptions in lambdas.\n"
        "Prefer constructor injection over field injection.\n"
    ),
    "security-and-owasp.instructions.md": (
        "# Security\n\nValidate all input. Follow the OWASP Top 10.\n"
        "Never log credentials or session tokens.\n"
    ),
    "performance-optimization.instructions.md": (
        "# Performance\n\nMeasure before you optimize. Cache expensive lookups.\n"
    ),
}

DOC_FILES: Dict[str, str] = {
    "performance-guide.md": "# Performance Guide\n\nUse pagination for large queries.\n",
    "style-guide.md": "# Style Guide\n\nFour spaces, no tabs.\n",
}

AGENT_FILES: Dict[str, str] = {
    "api-agent.md": "# API Agent\n\nDesign endpoints around resources.\n",
    "architecture-agent.md": "# Architecture Agent\n\nKeep modules loosely coupled.\n",
}


def _write_files(directory: Path, files: Dict[str, str]) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        (directory / name).write_text(content, encoding="utf-8")


@pytest.fixture
def content_root(tmp_path: Path) -> Path:
    """Create a content root with instructions, docs and agent guides."""
    root = tmp_path / ".github"
    _write_files(root / "instructions", INSTRUCTION_FILES)
    _write_files(root / "docs", DOC_FILES)
    _write_files(root / "agents", AGENT_FILES)
    return root


@pytest.fixture(autouse=True)
def reset_global_state(monkeypatch):
    """Isolate tests from the environment and from each other."""
    for var in (
        "CONTEXT_ALLOCATOR_CONFIG_FILE",
        "CONTEXT_ALLOCATOR_TOTAL_BUDGET",
        "CONTEXT_ALLOCATOR_PRESET",
        "CONTEXT_ALLOCATOR_CONTENT_ROOT",
        "CONTEXT_ALLOCATOR_LOG_LEVEL",
        "CONTEXT_ALLOCATOR_STRUCTURED_LOGGING",
    ):
        monkeypatch.delenv(var, raising=False)
    set_config(None)
    set_context(None)
    token = correlation_id_var.set("")
    yield
    correlation_id_var.reset(token)
    set_config(None)
    set_context(None)
    root_logger = logging.getLogger("context_allocator")
    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)
