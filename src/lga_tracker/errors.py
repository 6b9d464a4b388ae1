from __future__ import annotations


class LGATrackerError(Exception):
    """Base class for all tracker errors."""


class FetchError(LGATrackerError):
    """
    Boundary data could not be fetched or the payload could not be parsed.
    The registry stays unloaded; retrying is up to the caller.
    """


class AssemblyError(LGATrackerError):
    """A relation's ways could not be stitched into any closed ring."""

    def __init__(self, relation_id: int, message: str = "no closed rings") -> None:
        super().__init__(f"relation {relation_id}: {message}")
        self.relation_id = relation_id


class PersistenceError(LGATrackerError):
    pass


class PersistenceReadError(PersistenceError):
    """Stored visited set is missing or malformed. Callers fall back to an empty set."""


class PersistenceWriteError(PersistenceError):
    """Writing the visited set failed. The in-memory state stays authoritative."""
