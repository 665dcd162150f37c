"""Per-path rate limiting of upload attempts.

This module provides:
- DebounceGate: Suppresses repeated uploads of the same path within a window
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DEBOUNCE_WINDOW = 2.0  # seconds


class DebounceGate:
    """Remembers when each path was last uploaded.

    Not thread-safe on its own: the owning UploadCoordinator calls it
    while holding its lock. Entries are never evicted.
    """

    def __init__(self, window: float = DEFAULT_DEBOUNCE_WINDOW) -> None:
        """Initialize the gate.

        Args:
            window: Seconds during which a repeated attempt is suppressed.
        """
        self._window = window
        self._last_uploaded: dict[str, float] = {}

    @property
    def window(self) -> float:
        """Get the debounce window in seconds."""
        return self._window

    @staticmethod
    def _key(path: Path | str) -> str:
        return str(path)

    def should_proceed(self, path: Path | str, now: float) -> bool:
        """Check whether an upload of ``path`` may go ahead at ``now``.

        Does not record anything; call record() once the attempt is made.
        """
        last = self._last_uploaded.get(self._key(path))
        if last is None:
            return True
        return now - last >= self._window

    def record(self, path: Path | str, now: float) -> None:
        """Remember ``now`` as the last upload attempt for ``path``."""
        self._last_uploaded[self._key(path)] = now

    def last_uploaded_at(self, path: Path | str) -> float | None:
        """Get the last recorded attempt for ``path``, if any."""
        return self._last_uploaded.get(self._key(path))
