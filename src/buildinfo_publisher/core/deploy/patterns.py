"""Include/exclude pattern matching for artifact paths.

Patterns are Ant-style globs evaluated against repository-relative paths:

    *    any characters within one path segment
    ?    exactly one character within one path segment
    **   any number of path segments (including none)

A pattern ending in ``/`` is treated as ``/**``. Matching is case-sensitive.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional, Pattern, Tuple


def _split(patterns: Optional[str]) -> Tuple[str, ...]:
    if not patterns:
        return ()
    return tuple(p.strip() for p in patterns.split(",") if p.strip())


def _normalize(path: str) -> str:
    return path.replace("\\", "/").lstrip("/")


@dataclass(frozen=True)
class IncludeExcludePatterns:
    """A pair of include and exclude pattern sets."""

    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()

    @classmethod
    def from_strings(
        cls, include: Optional[str] = None, exclude: Optional[str] = None
    ) -> "IncludeExcludePatterns":
        """Build patterns from comma-separated strings."""
        return cls(include=_split(include), exclude=_split(exclude))


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Pattern[str]:
    """Translate an Ant-style pattern to a compiled regular expression."""
    pattern = _normalize(pattern)
    if pattern.endswith("/"):
        pattern += "**"

    trailing_any = pattern.endswith("/**")
    if trailing_any:
        pattern = pattern[: -len("/**")]

    parts = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1

    if trailing_any:
        parts.append("(?:/.*)?")
    return re.compile("".join(parts) + r"\Z")


def matches(path: str, pattern: str) -> bool:
    """Check whether a path matches a single pattern."""
    return compile_pattern(pattern).match(_normalize(path)) is not None


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    """Check whether a path matches at least one pattern."""
    return any(matches(path, pattern) for pattern in patterns)


def path_conflicts(path: str, patterns: Optional[IncludeExcludePatterns]) -> bool:
    """Decide whether a path must be skipped for the current operation.

    Args:
        path: Repository-relative artifact path
        patterns: Include/exclude patterns, or None for no filtering

    Returns:
        True if the path is excluded, or include patterns exist and none match
    """
    if patterns is None:
        return False
    if patterns.include and not matches_any(path, patterns.include):
        return True
    return matches_any(path, patterns.exclude)
