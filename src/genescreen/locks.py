"""Per-key mutual exclusion for decryption sessions.

Unlike a single busy flag, a ``KeyedLock`` only blocks callers that share a
key, so decryption of unrelated records proceeds concurrently.  Entries are
dropped as soon as they are released, keeping the table bounded by the
number of in-flight sessions.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Hashable, Iterator


class KeyedLock:
    """Non-blocking try-lock keyed by an arbitrary hashable.

    The event loop is single-threaded, so claiming a key is a plain set
    insertion; there is no await point between the check and the claim.
    """

    def __init__(self) -> None:
        self._held: set[Hashable] = set()

    def is_held(self, key: Hashable) -> bool:
        return key in self._held

    def try_acquire(self, key: Hashable) -> bool:
        """Claim ``key``; return ``False`` if it is already held."""
        if key in self._held:
            return False
        self._held.add(key)
        return True

    def release(self, key: Hashable) -> None:
        self._held.discard(key)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[bool]:
        """Context manager yielding whether ``key`` was acquired.

        Only releases the key if this context acquired it.
        """
        acquired = self.try_acquire(key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)

    def __len__(self) -> int:
        return len(self._held)
