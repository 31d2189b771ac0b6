"""Keyed mutual exclusion for check-then-act sequences.

Stock checks, order transitions and cart mutations read a record, decide, then
write it back. Under a threaded server two requests can interleave between the
read and the write, so each sequence runs while holding the lock(s) for the
records it touches. Locks are re-entrant so a holder can call into another
operation that takes the same key.
"""

import threading
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.RLock()
        self.users = 0


class KeyedLocks:
    """A registry of re-entrant locks, one per key while anyone holds or waits for it.

    Each entry counts its holders and waiters under ``_guard`` and is dropped
    when the count returns to zero, so the registry only holds keys in use.
    """

    def __init__(self, name: str):
        self.name = name
        self._guard = threading.Lock()
        self._locks: dict[str, _Entry] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def _held(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _Entry()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        """Hold the locks for all ``keys``, acquired in sorted order."""
        with self.hold_all(keys):
            yield

    @contextmanager
    def hold_all(self, keys: Iterable[str]) -> Iterator[None]:
        # Global acquisition order: sorted, de-duplicated
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._held(key))
            yield


stock_locks = KeyedLocks("stock")
order_locks = KeyedLocks("order")
cart_locks = KeyedLocks("cart")
sequence_locks = KeyedLocks("order-code-sequence")
