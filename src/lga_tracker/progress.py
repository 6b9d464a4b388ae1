from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .registry import RegionRegistry
from .visit_store import VisitStore


@dataclass(frozen=True)
class ProgressStats:
    total: int
    visited: int
    percentage: float  # unrounded; see display_percentage

    @property
    def display_percentage(self) -> float:
        return round(self.percentage, 1)

    @property
    def fraction(self) -> float:
        """0..1, for progress bars."""
        return max(0.0, min(1.0, self.percentage / 100))

    def label(self) -> str:
        return f"Visited {self.visited} of {self.total} LGAs ({self.display_percentage:.1f}%)"

    def as_dict(self) -> Dict[str, float]:
        return {"total": self.total, "visited": self.visited, "percentage": self.display_percentage}


def compute_progress(registry: Optional[RegionRegistry], visits: VisitStore) -> ProgressStats:
    """
    Derive stats from the registry and the visited set. An unloaded registry
    counts as zero regions.
    """
    total = registry.count() if registry is not None else 0
    visited = visits.size()
    percentage = 0.0 if total == 0 else visited * 100 / total
    return ProgressStats(total=total, visited=visited, percentage=percentage)


def style_for(region_id: int, visits: VisitStore) -> Dict[str, bool]:
    """Fill state only; mapping it to colours belongs to the map surface."""
    return {"visited": visits.is_visited(region_id)}
