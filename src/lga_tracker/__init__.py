"""Track visited Australian Local Government Areas on a map."""

from .errors import (
    AssemblyError,
    FetchError,
    LGATrackerError,
    PersistenceReadError,
    PersistenceWriteError,
)
from .progress import ProgressStats, compute_progress
from .registry import Region, RegionRegistry
from .tracker import LGATracker
from .visit_store import VisitStore

__all__ = [
    "AssemblyError",
    "FetchError",
    "LGATracker",
    "LGATrackerError",
    "PersistenceReadError",
    "PersistenceWriteError",
    "ProgressStats",
    "Region",
    "RegionRegistry",
    "VisitStore",
    "compute_progress",
]

__version__ = "0.1.0"
