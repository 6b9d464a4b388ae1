from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Dict, Optional

from .loader import RegistryLoader
from .overpass import BoundaryProvider
from .persistence import PersistenceStore
from .progress import ProgressStats, compute_progress, style_for
from .registry import RegionRegistry
from .visit_store import VisitStore

logger = logging.getLogger(__name__)


class LGATracker:
    """
    Wires the registry loader, the visit store and the progress aggregator
    together. Map and UI surfaces talk to this object only.
    """

    def __init__(
        self,
        provider: BoundaryProvider,
        persistence: PersistenceStore,
        loader: RegistryLoader | None = None,
    ) -> None:
        self.loader = loader or RegistryLoader(provider)
        self.visits = VisitStore(persistence)

    @property
    def registry(self) -> Optional[RegionRegistry]:
        return self.loader.registry

    @property
    def loaded(self) -> bool:
        return self.loader.loaded

    def start(self, background: bool = False) -> "Future | None":
        """
        Hydrate visits from storage, then load boundaries. With
        background=True the fetch runs on the loader's worker thread and the
        future is returned.
        """
        self.visits.load()
        if background:
            return self.loader.load_async()
        self.loader.load()
        return None

    def retry(self) -> "Future":
        return self.loader.load_async()

    def stats(self) -> ProgressStats:
        return compute_progress(self.registry, self.visits)

    def handle_click(self, region_id: int) -> ProgressStats:
        """
        Toggle a region from a map click. Clicks on ids the loaded registry does
        not know about are ignored.
        """
        registry = self.registry
        if registry is None or region_id not in registry:
            logger.warning("Ignoring click on unknown region %s", region_id)
            return self.stats()

        visited = self.visits.toggle(region_id)
        logger.info("Region %s (%s) marked %s", region_id, registry.get(region_id).name, "visited" if visited else "not visited")
        return self.stats()

    def style_for(self, region_id: int) -> Dict[str, bool]:
        return style_for(region_id, self.visits)

    def tooltip_for(self, region_id: int) -> str:
        region = self.registry.get(region_id) if self.registry is not None else None
        return region.name if region is not None else ""


def clicked_region_id(map_state: Optional[Dict[str, Any]]) -> Optional[int]:
    """
    Region id of the feature clicked on the map, from the state dict the map
    component returns (``last_active_drawing`` is the clicked GeoJSON feature).
    """
    drawing = (map_state or {}).get("last_active_drawing")
    if not isinstance(drawing, dict):
        return None
    properties = drawing.get("properties")
    if not isinstance(properties, dict):
        return None
    try:
        return int(properties["id"])
    except (KeyError, TypeError, ValueError):
        return None
