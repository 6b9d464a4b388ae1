"""Shared fixtures: small hand-built Overpass payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pytest

from lga_tracker.registry import Region, RegionRegistry
from lga_tracker.persistence import MemoryStore


def node(nid: int, lat: float, lon: float) -> Dict[str, Any]:
    return {"type": "node", "id": nid, "lat": lat, "lon": lon}


def way(wid: int, nodes: Sequence[int]) -> Dict[str, Any]:
    return {"type": "way", "id": wid, "nodes": list(nodes)}


def relation(
    rid: int,
    way_ids: Sequence[int],
    name: Optional[str] = None,
    roles: Optional[Sequence[str]] = None,
    tags: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    all_tags = {"boundary": "administrative", "admin_level": "6"}
    if name is not None:
        all_tags["name"] = name
    all_tags.update(tags or {})
    roles = roles or ["outer"] * len(way_ids)
    return {
        "type": "relation",
        "id": rid,
        "tags": all_tags,
        "members": [{"type": "way", "ref": w, "role": r} for w, r in zip(way_ids, roles)],
    }


def square_elements(base: int, lat0: float, lon0: float, size: float = 1.0) -> List[Dict[str, Any]]:
    """Four corner nodes and four one-edge ways forming a square.

    Node ids are base+1..base+4, way ids base+11..base+14.
    """
    a, b, c, d = base + 1, base + 2, base + 3, base + 4
    return [
        node(a, lat0, lon0),
        node(b, lat0, lon0 + size),
        node(c, lat0 + size, lon0 + size),
        node(d, lat0 + size, lon0),
        way(base + 11, [a, b]),
        way(base + 12, [b, c]),
        way(base + 13, [c, d]),
        way(base + 14, [d, a]),
    ]


def square_way_ids(base: int) -> List[int]:
    return [base + 11, base + 12, base + 13, base + 14]


def payload(*elements: Dict[str, Any]) -> Dict[str, Any]:
    return {"version": 0.6, "elements": list(elements)}


def alpha_beta_payload() -> Dict[str, Any]:
    return payload(
        relation(1, square_way_ids(100), name="Alpha"),
        relation(2, square_way_ids(200), name="Beta"),
        *square_elements(100, 0.0, 0.0),
        *square_elements(200, 0.0, 5.0),
    )


def make_region(rid: int, name: str = "", lat0: float = 0.0, lon0: float = 0.0) -> Region:
    ring = ((lat0, lon0), (lat0, lon0 + 1), (lat0 + 1, lon0 + 1), (lat0 + 1, lon0), (lat0, lon0))
    return Region(id=rid, name=name or f"Region {rid}", rings=(ring,))


class StaticProvider:
    def __init__(self, data: Dict[str, Any]) -> None:
        self.data = data
        self.calls = 0

    def fetch(self) -> Dict[str, Any]:
        self.calls += 1
        return self.data


@pytest.fixture
def ab_payload() -> Dict[str, Any]:
    return alpha_beta_payload()


@pytest.fixture
def ten_region_registry() -> RegionRegistry:
    return RegionRegistry(make_region(i, lon0=float(i * 2)) for i in range(1, 11))


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
