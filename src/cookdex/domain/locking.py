"""In-process locks serializing identity edits per ingredient."""

from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from uuid import UUID


class IdentityLocks:
    """Keyed mutexes over ingredient ids plus one lock over the name space.

    ``hold`` acquires the per-ingredient locks in sorted id order, so two
    operations touching overlapping ingredient sets cannot deadlock.
    ``claiming_names`` serializes operations that introduce a name or alias
    not previously owned by any of the ingredients involved. Merge and delete
    take it too, because import confirmation resolves names to ingredients
    under it. Callers take ``hold`` first.
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: dict[UUID, threading.Lock] = {}
        self._names_lock = threading.RLock()

    def _lock_for(self, ingredient_id: UUID) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(ingredient_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[ingredient_id] = lock
            return lock

    @contextmanager
    def hold(self, ingredient_ids: Iterable[UUID]) -> Iterator[None]:
        ordered = sorted(set(ingredient_ids))
        with ExitStack() as stack:
            for ingredient_id in ordered:
                stack.enter_context(self._lock_for(ingredient_id))
            yield

    @contextmanager
    def claiming_names(self) -> Iterator[None]:
        with self._names_lock:
            yield
