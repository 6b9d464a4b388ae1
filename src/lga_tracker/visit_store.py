from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Set

from .errors import PersistenceReadError, PersistenceWriteError
from .persistence import PersistenceStore

logger = logging.getLogger(__name__)

Listener = Callable[["VisitStore"], None]


def _coerce_ids(values: Iterable[Any]) -> Set[int]:
    """
    Stored ids as a set of ints. Anything that is not an integer (or an
    integral string) is dropped; duplicates collapse.
    """
    out: Set[int] = set()
    for v in values:
        if isinstance(v, bool):
            continue
        if isinstance(v, int):
            out.add(v)
        elif isinstance(v, float) and v.is_integer():
            out.add(int(v))
        elif isinstance(v, str):
            try:
                out.add(int(v.strip()))
            except ValueError:
                continue
    return out


class VisitStore:
    """
    The set of visited region ids. Every mutation is written through to the
    persistence store before listeners are notified.
    """

    def __init__(self, persistence: PersistenceStore) -> None:
        self._persistence = persistence
        self._visited: Set[int] = set()
        self._listeners: List[Listener] = []
        self.last_write_error: PersistenceWriteError | None = None

    # ----------------------------
    # Queries
    # ----------------------------
    def is_visited(self, region_id: int) -> bool:
        return region_id in self._visited

    def visited_ids(self) -> frozenset[int]:
        return frozenset(self._visited)

    def size(self) -> int:
        return len(self._visited)

    def __len__(self) -> int:
        return len(self._visited)

    def __contains__(self, region_id: object) -> bool:
        return region_id in self._visited

    def stale_ids(self, valid_ids: Iterable[int]) -> frozenset[int]:
        """Visited ids that are not in `valid_ids` (e.g. regions since removed upstream)."""
        return frozenset(self._visited - set(valid_ids))

    # ----------------------------
    # Persistence
    # ----------------------------
    def load(self) -> None:
        try:
            raw = self._persistence.load()
        except PersistenceReadError as e:
            logger.debug("No usable stored visits (%s); starting empty", e)
            raw = []

        self._visited = _coerce_ids(raw)
        logger.info("Loaded %d visited regions", len(self._visited))
        self._notify()

    def save(self) -> bool:
        """
        Overwrite the stored snapshot with the current set. Returns False when
        the write failed; the in-memory set is kept either way.
        """
        try:
            self._persistence.save(sorted(self._visited))
        except PersistenceWriteError as e:
            self.last_write_error = e
            logger.warning("Could not persist visited regions; changes will be lost on reload: %s", e)
            return False

        self.last_write_error = None
        return True

    # ----------------------------
    # Mutations
    # ----------------------------
    def toggle(self, region_id: int) -> bool:
        """Flip the visited state of `region_id` and return the new state."""
        if region_id in self._visited:
            self._visited.remove(region_id)
            visited = False
        else:
            self._visited.add(region_id)
            visited = True

        self.save()
        self._notify()
        return visited

    def clear(self) -> None:
        self._visited.clear()
        self.save()
        self._notify()

    # ----------------------------
    # Observers
    # ----------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
