"""Fetch-once latch for re-entrant initialization.

UI frameworks may fire the same initialization signal twice in quick
succession (double-invoked mount hooks, repeated navigation events). The
guard lets exactly one of them start a fetch per key. It only deduplicates
initiation; callers still store the fetched data themselves.
"""

import logging
from collections.abc import Hashable

logger = logging.getLogger(__name__)


class FetchOnceGuard:
    """Per-key latch.

    Each consumer owns its own instance, so the effective latch identity is
    (guard instance, key).
    """

    def __init__(self, name: str = "fetch") -> None:
        self.name = name
        self._latched: set[Hashable] = set()

    def guard(self, key: Hashable | None) -> bool:
        """Return True the first time `key` is seen, False afterwards.

        A falsy key means "no active selection": every latch is reset and
        False is returned, so a key can be fetched again on re-entry.
        """
        if not key:
            if self._latched:
                logger.debug(f"{self.name} guard reset")
            self._latched.clear()
            return False
        if key in self._latched:
            logger.debug(f"{self.name} guard skipped duplicate start for {key!r}")
            return False
        self._latched.add(key)
        return True

    def release(self, key: Hashable) -> None:
        """Reset the latch for a single key."""
        self._latched.discard(key)

    def reset(self) -> None:
        self._latched.clear()

    def is_latched(self, key: Hashable) -> bool:
        return key in self._latched
