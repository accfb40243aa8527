"""Directory-backed content provider.

Loads instruction files, reference docs and agent guides from a content
root and tags them with their budget category. All reads go through an
injected ContentCache. The selection engine never touches the file system;
this provider is the collaborator that does.

Expected layout (directory names are configurable):

    <root>/
        instructions/   java.instructions.md, security-and-owasp.instructions.md, ...
        docs/           performance-guide.md, ...
        agents/         api-agent.md, architecture-agent.md, ...

Usage:
    from context_allocator.core.providers import DirectoryContentProvider

    provider = DirectoryContentProvider(Path(".github"))
    items = provider.items_for_task("optimize entity queries", file_type="java")
    item = provider.instruction_for_file("src/UserService.java")
"""

import logging
import math
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from context_allocator.core.allocation import Category
from context_allocator.core.content_cache import ContentCache
from context_allocator.core.errors import ContentNotFoundError
from context_allocator.core.estimator import DEFAULT_ESTIMATOR, TokenEstimator
from context_allocator.core.selection import ContentItem

logger = logging.getLogger(__name__)


GENERIC_INSTRUCTIONS = "code-review-generic.instructions.md"

# File extension -> instruction file
FILE_TYPE_INSTRUCTIONS: Dict[str, str] = {
    "java": "java.instructions.md",
    "groovy": "groovy.instructions.md",
    "js": "typescript-5-es2022.instructions.md",
    "ts": "typescript-5-es2022.instructions.md",
    "vue": "vuejs3.instructions.md",
    "md": "markdown.instructions.md",
    "ftl": "java-mcp-server.instructions.md",
    "xml": "java-mcp-server.instructions.md",
    "scss": "vuejs3.instructions.md",
}

# Language names accepted as file types -> instruction file
LANGUAGE_INSTRUCTIONS: Dict[str, str] = {
    "java": "java.instructions.md",
    "groovy": "groovy.instructions.md",
    "typescript": "typescript-5-es2022.instructions.md",
    "javascript": "typescript-5-es2022.instructions.md",
    "ts": "typescript-5-es2022.instructions.md",
    "js": "typescript-5-es2022.instructions.md",
    "vue": "vuejs3.instructions.md",
    "scss": "vuejs3.instructions.md",
}

# (keywords, instruction file) for domain-specific guidance
DOMAIN_INSTRUCTIONS = (
    (("security", "auth", "owasp"), "security-and-owasp.instructions.md"),
    (("performance", "optimize"), "performance-optimization.instructions.md"),
    (("ui", "component", "quasar"), "quasar.instructions.md"),
    (("localize", "i18n", "translation"), "localization.instructions.md"),
)

REFERENCE_DOC_LIMIT = 2
REFERENCE_SUMMARY_CHARS = 1000
REFERENCE_SUMMARY_SUFFIX = "\n... [see full doc for complete content]"
AGENT_GUIDE_LINES = 40

SEARCH_BEFORE_CHARS = 80
SEARCH_AFTER_CHARS = 150
DEFAULT_SEARCH_LIMIT = 8

_WORD_RE = re.compile(r"[a-z0-9]+")
_MIN_WORD_LENGTH = 3


def _words(text: str) -> set:
    return {w for w in _WORD_RE.findall(text.lower()) if len(w) >= _MIN_WORD_LENGTH}


def read_text_lenient(path: Path) -> str:
    """Read UTF-8 text, dropping undecodable bytes with a warning."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        logger.warning(f"Content file {path} is not valid UTF-8; undecodable bytes dropped")
        return path.read_text(encoding="utf-8", errors="ignore")


class DirectoryContentProvider:
    """Serves category-tagged content from a content root directory.

    Args:
        root: Content root directory
        cache: Shared cache; a private one is created if omitted
        instructions_dir: Subdirectory holding instruction files
        docs_dir: Subdirectory holding reference docs
        agents_dir: Subdirectory holding agent guides
        estimator: Token estimator for listing metadata
    """

    def __init__(
        self,
        root: Path,
        *,
        cache: Optional[ContentCache] = None,
        instructions_dir: str = "instructions",
        docs_dir: str = "docs",
        agents_dir: str = "agents",
        estimator: TokenEstimator = DEFAULT_ESTIMATOR,
    ):
        self.root = Path(root)
        self.cache = cache if cache is not None else ContentCache()
        self.estimator = estimator
        self._dirs: Dict[Category, Path] = {
            Category.INSTRUCTIONS: self.root / instructions_dir,
            Category.DOCS: self.root / docs_dir,
            Category.AGENT: self.root / agents_dir,
        }

    def directory_for(self, category: Category) -> Path:
        try:
            return self._dirs[category]
        except KeyError:
            raise ContentNotFoundError("Content category", category.value) from None

    def load(self, category: Category, filename: str) -> Optional[str]:
        """Read a content file through the cache.

        Returns:
            File text, or None when the file does not exist
        """
        path = self.directory_for(category) / filename

        def _read() -> Optional[str]:
            if not path.is_file():
                return None
            logger.debug(f"Loading content file {path}")
            return read_text_lenient(path)

        return self.cache.get_or_load(f"{category.value}/{filename}", _read)

    def available(self, category: Category, suffix: str = ".md") -> List[str]:
        """Sorted file names in a category directory."""
        directory = self.directory_for(category)
        if not directory.is_dir():
            raise ContentNotFoundError("Content directory", str(directory))
        return sorted(
            p.name for p in directory.iterdir() if p.is_file() and p.name.endswith(suffix)
        )

    def instruction_for_file(self, filepath: str) -> ContentItem:
        """Instruction file for a source file, chosen by extension.

        Raises:
            ContentNotFoundError: If the mapped instruction file is missing
        """
        ext = Path(filepath).suffix.lstrip(".").lower()
        filename = FILE_TYPE_INSTRUCTIONS.get(ext, GENERIC_INSTRUCTIONS)
        content = self.load(Category.INSTRUCTIONS, filename)
        if content is None:
            raise ContentNotFoundError("Instructions", ext or filepath)
        return ContentItem(content, Category.INSTRUCTIONS, filename)

    def relevant_instructions(self, task: str, file_type: Optional[str] = None) -> List[str]:
        """Instruction files relevant to a task, generic review first."""
        task_lower = task.lower()
        relevant = [GENERIC_INSTRUCTIONS]

        if file_type:
            language_file = LANGUAGE_INSTRUCTIONS.get(file_type.strip().lower().lstrip("."))
            if language_file:
                relevant.append(language_file)

        for keywords, filename in DOMAIN_INSTRUCTIONS:
            if any(keyword in task_lower for keyword in keywords):
                relevant.append(filename)

        return list(dict.fromkeys(relevant))

    def _matching_files(self, category: Category, task_words: set) -> List[str]:
        directory = self.directory_for(category)
        if not directory.is_dir():
            return []
        return [
            name
            for name in self.available(category)
            if _words(Path(name).stem) & task_words
        ]

    def items_for_task(self, task: str, file_type: Optional[str] = None) -> List[ContentItem]:
        """Collect candidate items for a task across all categories.

        Missing instruction files are skipped. Docs and agent guides are
        included when their file name shares a word with the task.
        """
        items: List[ContentItem] = []
        for filename in self.relevant_instructions(task, file_type):
            content = self.load(Category.INSTRUCTIONS, filename)
            if content is None:
                logger.debug(f"Skipping missing instruction file {filename}")
                continue
            items.append(ContentItem(content, Category.INSTRUCTIONS, filename))

        task_words = _words(task)
        for category in (Category.DOCS, Category.AGENT):
            for filename in self._matching_files(category, task_words):
                content = self.load(category, filename)
                if content is not None:
                    items.append(ContentItem(content, category, filename))
        return items

    def reference_docs(self, topic: str, limit: int = REFERENCE_DOC_LIMIT) -> Dict[str, Any]:
        """Intro summaries of the reference docs whose name contains ``topic``.

        Args:
            topic: Case-insensitive substring of the doc file name
            limit: Maximum number of docs returned

        Returns:
            Dict with ``topic``, ``docs`` (file, content, lengths, tokens),
            ``total_chars`` and ``total_tokens``

        Raises:
            ContentNotFoundError: If no doc matches; ``details.available``
                lists the doc files
        """
        available = self.available(Category.DOCS)
        needle = topic.lower()
        matches = [name for name in available if needle in name.lower()]
        if not matches:
            raise ContentNotFoundError("Documentation topic", topic, available=available)

        docs = []
        for filename in matches[:limit]:
            content = self.load(Category.DOCS, filename) or ""
            summary = content
            if len(content) > REFERENCE_SUMMARY_CHARS:
                summary = content[:REFERENCE_SUMMARY_CHARS] + REFERENCE_SUMMARY_SUFFIX
            docs.append(
                {
                    "file": filename,
                    "content": summary,
                    "original_length": len(content),
                    "summary_length": len(summary),
                    "tokens": self.estimator.estimate_tokens(summary),
                }
            )

        return {
            "topic": topic,
            "docs": docs,
            "matches_found": len(matches),
            "total_chars": sum(d["summary_length"] for d in docs),
            "total_tokens": sum(d["tokens"] for d in docs),
        }

    def agent_guide(self, name: str) -> Dict[str, Any]:
        """Opening lines of the agent guide ``<name>.md``.

        Raises:
            ContentNotFoundError: If the guide does not exist;
                ``details.available`` lists the agent names
        """
        filename = f"{name}.md"
        content = None
        if Path(filename).name == filename:
            content = self.load(Category.AGENT, filename)
        if content is None:
            agents = [Path(f).stem for f in self.available(Category.AGENT)]
            raise ContentNotFoundError("Agent", name, available=agents)

        lines = content.split("\n")
        summary = "\n".join(lines[:AGENT_GUIDE_LINES])
        return {
            "agent": name,
            "file": filename,
            "summary": summary,
            "original_length": len(content),
            "summary_length": len(summary),
            "tokens": self.estimator.estimate_tokens(summary),
            "truncated": len(lines) > AGENT_GUIDE_LINES,
        }

    def search(self, keyword: str, limit: int = DEFAULT_SEARCH_LIMIT) -> Dict[str, Any]:
        """Case-insensitive keyword search over instruction files.

        Returns:
            Dict with ``matches_found``, up to ``limit`` ``results`` (file,
            snippet, position, line number) and a short ``summary``
        """
        needle = keyword.lower()
        results = []
        for filename in self.available(Category.INSTRUCTIONS, suffix=""):
            content = self.load(Category.INSTRUCTIONS, filename)
            if not content:
                continue
            position = content.lower().find(needle)
            if position < 0:
                continue
            start = max(0, position - SEARCH_BEFORE_CHARS)
            end = min(len(content), position + SEARCH_AFTER_CHARS)
            snippet = content[start:end]
            results.append(
                {
                    "file": filename,
                    "snippet": f"{'...' if start > 0 else ''}{snippet}"
                    f"{'...' if end < len(content) else ''}",
                    "position": position,
                    "line_number": content.count("\n", 0, position) + 1,
                }
            )

        return {
            "keyword": keyword,
            "matches_found": len(results),
            "results": results[:limit],
            "summary": {
                "matches": len(results),
                "top_files": [r["file"] for r in results[:3]],
            },
        }

    def list_available(self, category: Category = Category.INSTRUCTIONS) -> Dict[str, Any]:
        """File names, sizes and token estimates for a category."""
        files = []
        total_chars = 0
        for filename in self.available(category):
            content = self.load(category, filename)
            if content is None:
                continue
            files.append(
                {
                    "file": filename,
                    "length": len(content),
                    "tokens": self.estimator.estimate_tokens(content),
                }
            )
            total_chars += len(content)

        return {
            "category": category.value,
            "files": files,
            "count": len(files),
            "total_chars": total_chars,
            "total_tokens": self.estimator.tokens_for_chars(total_chars),
            "average_size": math.ceil(total_chars / len(files)) if files else 0,
        }

    def clear_cache(self) -> int:
        return self.cache.clear()

