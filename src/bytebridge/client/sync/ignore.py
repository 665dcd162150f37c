"""Ignore patterns for the sync folder.

This module provides:
- IgnorePatterns: fnmatch-style matching against file names
- DEFAULT_IGNORE_PATTERNS: Files that are never uploaded
"""

from __future__ import annotations

import fnmatch
from pathlib import Path

# Editor droppings, OS metadata and our own in-flight downloads (*.tmp)
DEFAULT_IGNORE_PATTERNS = [
    ".DS_Store",
    "Thumbs.db",
    "desktop.ini",
    "*.tmp",
    "*.temp",
    "~*",
    "*.swp",
    "*.swo",
    "*~",
    ".syncignore",
]

SYNCIGNORE_FILE = ".syncignore"


class IgnorePatterns:
    """Decides which files in the sync folder the watcher skips."""

    def __init__(self, patterns: list[str] | None = None) -> None:
        self._patterns = [*DEFAULT_IGNORE_PATTERNS, *(patterns or [])]

    @property
    def patterns(self) -> list[str]:
        """Get a copy of the active patterns."""
        return list(self._patterns)

    def add_pattern(self, pattern: str) -> None:
        self._patterns.append(pattern)

    def load_from_file(self, path: Path) -> None:
        """Append the patterns listed in a .syncignore file, if there is one.

        Blank lines and lines starting with ``#`` are skipped.
        """
        if not path.is_file():
            return
        for raw in path.read_text(encoding="utf-8").splitlines():
            pattern = raw.strip()
            if pattern and not pattern.startswith("#"):
                self._patterns.append(pattern)

    def should_ignore(self, path: Path, base_path: Path) -> bool:
        """Check if a path should be ignored.

        Symlinks and anything outside ``base_path`` are always ignored.

        Args:
            path: Absolute path to check.
            base_path: Sync folder the path should live in.

        Returns:
            True if the path should be ignored.
        """
        if path.is_symlink():
            return True
        try:
            relative = path.relative_to(base_path).as_posix()
        except ValueError:
            return True
        return any(
            fnmatch.fnmatch(path.name, pattern) or fnmatch.fnmatch(relative, pattern)
            for pattern in self._patterns
        )
