from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional

from . import config
from .assembly import build_registry
from .errors import FetchError
from .overpass import BoundaryProvider
from .registry import RegionRegistry

logger = logging.getLogger(__name__)

Listener = Callable[[RegionRegistry], None]


class RegistryLoader:
    """
    Owns the current RegionRegistry and the loaded/unloaded state.

    Each load takes a new generation number. A finished fetch only commits if
    no newer load was started in the meantime; older results are dropped.
    The registry reference is swapped in one step, so readers see either the
    previous registry or the complete new one.
    """

    def __init__(
        self,
        provider: BoundaryProvider,
        admin_level: str | int | None = config.LGA_ADMIN_LEVEL,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._provider = provider
        self._admin_level = admin_level
        self._executor = executor
        self._lock = threading.Lock()
        self._generation = 0
        self._registry: Optional[RegionRegistry] = None
        self._listeners: List[Listener] = []
        self.error: Optional[FetchError] = None

    @property
    def loaded(self) -> bool:
        return self._registry is not None

    @property
    def registry(self) -> Optional[RegionRegistry]:
        return self._registry

    @property
    def generation(self) -> int:
        return self._generation

    def _begin(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _build(self) -> RegionRegistry:
        payload = self._provider.fetch()
        try:
            return build_registry(payload, self._admin_level)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise FetchError(f"Malformed boundary payload: {type(e).__name__}: {e}") from e

    def _run(self, generation: int) -> Optional[RegionRegistry]:
        try:
            registry = self._build()
        except FetchError as e:
            with self._lock:
                if not self._is_current(generation):
                    logger.info("Ignoring failure of superseded fetch #%d: %s", generation, e)
                    return None
                self.error = e
            logger.error("Boundary data unavailable: %s", e)
            raise

        return self._commit(generation, registry)

    def _commit(self, generation: int, registry: RegionRegistry) -> Optional[RegionRegistry]:
        with self._lock:
            if not self._is_current(generation):
                logger.info(
                    "Discarding superseded fetch #%d (latest is #%d)",
                    generation,
                    self._generation,
                )
                return None
            self._registry = registry
            self.error = None

        logger.info("Registry #%d committed with %d regions", generation, registry.count())
        for listener in list(self._listeners):
            listener(registry)
        return registry

    def load(self) -> Optional[RegionRegistry]:
        """
        Fetch and assemble on the calling thread. Raises FetchError on failure;
        returns None if a newer load superseded this one.
        """
        return self._run(self._begin())

    def load_async(self) -> "Future[Optional[RegionRegistry]]":
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="lga-fetch")
        generation = self._begin()
        return self._executor.submit(self._run, generation)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
