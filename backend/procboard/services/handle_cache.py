"""Shared cache of opened namespace handles."""

from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from typing import Callable, Iterable, Iterator

from .namespaces import NamespaceHandle

# purpose: avoid rebuilding table handles per request while never serving a stale one
# inputs: namespace ids derived from process names, handle factories from the coordinator
# outputs: one handle per namespace id until the id is invalidated
# status: active


class _KeyedLocks:
    """Locks keyed by string that live only while someone holds or waits on them."""

    def __init__(self, factory: Callable[[], object]) -> None:
        self._factory = factory
        # key -> [lock, number of holders and waiters]
        self._entries: dict[str, list] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def acquire(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = [self._factory(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]


class NamespaceHandleCache:
    def __init__(self) -> None:
        self._handles: dict[str, NamespaceHandle] = {}
        self._entry_locks = _KeyedLocks(threading.Lock)
        self._guard = threading.Lock()

    def __contains__(self, namespace_id: str) -> bool:
        with self._guard:
            return namespace_id in self._handles

    def __len__(self) -> int:
        with self._guard:
            return len(self._handles)

    @property
    def pending(self) -> int:
        """Number of namespace ids with a build in progress."""
        return len(self._entry_locks)

    def get(self, namespace_id: str) -> NamespaceHandle | None:
        with self._guard:
            return self._handles.get(namespace_id)

    def get_or_create(
        self,
        namespace_id: str,
        factory: Callable[[], NamespaceHandle],
    ) -> NamespaceHandle:
        """Return the cached handle or build it once, even under concurrent callers."""

        handle = self.get(namespace_id)
        if handle is not None:
            return handle
        with self._entry_locks.acquire(namespace_id):
            handle = self.get(namespace_id)
            if handle is None:
                handle = factory()
                with self._guard:
                    self._handles[namespace_id] = handle
        return handle

    def invalidate(self, namespace_id: str) -> bool:
        with self._guard:
            return self._handles.pop(namespace_id, None) is not None

    def invalidate_many(self, namespace_ids: Iterable[str]) -> int:
        return sum(1 for namespace_id in namespace_ids if self.invalidate(namespace_id))


class ProcessNameLocks:
    """Re-entrant lock per process name; different names never contend."""

    def __init__(self) -> None:
        self._locks = _KeyedLocks(threading.RLock)

    def __len__(self) -> int:
        return len(self._locks)

    @contextmanager
    def hold(self, *names: str) -> Iterator[None]:
        # sorted acquisition keeps two renames across the same pair deadlock free
        with ExitStack() as stack:
            for name in sorted(set(names)):
                stack.enter_context(self._locks.acquire(name))
            yield
