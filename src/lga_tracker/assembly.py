"""
Turn raw Overpass elements (nodes, ways, relations) into Regions.

Boundary relations reference their outline as a list of unclosed ways. The
ways are stitched end-to-end by shared node ids until each chain returns to
its start node; every closed chain becomes one ring.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from . import config
from .errors import AssemblyError
from .overpass import validate_payload
from .registry import ROLE_INNER, ROLE_OUTER, LatLon, Region, RegionRegistry

logger = logging.getLogger(__name__)

NodeIds = Tuple[int, ...]

# Member roles that carry boundary outline; anything else (subarea,
# admin_centre, label) is ignored.
OUTLINE_ROLES = {"outer": ROLE_OUTER, "": ROLE_OUTER, "inner": ROLE_INNER}


def _index_elements(
    elements: Sequence[Any],
) -> Tuple[Dict[int, LatLon], Dict[int, NodeIds], List[Mapping[str, Any]]]:
    nodes: Dict[int, LatLon] = {}
    ways: Dict[int, NodeIds] = {}
    relations: List[Mapping[str, Any]] = []

    for el in elements:
        if not isinstance(el, dict):
            continue
        kind = el.get("type")
        try:
            if kind == "node":
                nodes[int(el["id"])] = (float(el["lat"]), float(el["lon"]))
            elif kind == "way":
                ways[int(el["id"])] = tuple(int(n) for n in el.get("nodes") or ())
            elif kind == "relation":
                if not isinstance(el.get("tags") or {}, dict) or not isinstance(el.get("members") or [], list):
                    raise TypeError("tags must be an object and members a list")
                relations.append(el)
        except (KeyError, TypeError, ValueError):
            logger.debug("Skipping malformed %s element: %r", kind, el.get("id"))

    return nodes, ways, relations


def is_boundary_relation(relation: Mapping[str, Any], admin_level: str | int | None = config.LGA_ADMIN_LEVEL) -> bool:
    """
    The Overpass query already filters by boundary type and admin level; this
    only rejects relations whose tags say otherwise.
    """
    tags = relation.get("tags") or {}
    if not isinstance(tags, Mapping):
        return False

    boundary = tags.get("boundary")
    if boundary is not None and boundary != "administrative":
        return False

    level = tags.get("admin_level")
    if level is not None and admin_level is not None and str(level) != str(admin_level):
        return False

    return True


def stitch_rings(ways: Sequence[NodeIds]) -> List[NodeIds]:
    """
    Join ways that share endpoint node ids into closed rings.

    Ways may be used reversed. When several ways touch the current chain end,
    the first unconsumed one in input order wins. A chain that cannot be
    closed is abandoned; its starting way is dropped and the other ways it
    picked up are released for later chains.
    """
    pending = [tuple(w) for w in ways if len(w) >= 2]
    used = [False] * len(pending)
    rings: List[NodeIds] = []

    for start, way in enumerate(pending):
        if used[start]:
            continue
        used[start] = True

        chain = list(way)
        taken: List[int] = []

        while chain[0] != chain[-1]:
            tail = chain[-1]
            nxt: Optional[NodeIds] = None
            for j, cand in enumerate(pending):
                if used[j]:
                    continue
                if cand[0] == tail:
                    nxt = cand
                elif cand[-1] == tail:
                    nxt = cand[::-1]
                if nxt is not None:
                    used[j] = True
                    taken.append(j)
                    break

            if nxt is None:
                break
            chain.extend(nxt[1:])

        if chain[0] == chain[-1] and len(chain) >= 4:
            rings.append(tuple(chain))
        else:
            for j in taken:
                used[j] = False

    return rings


def assemble_region(
    relation: Mapping[str, Any],
    ways: Mapping[int, NodeIds],
    nodes: Mapping[int, LatLon],
) -> Region:
    """
    Build one Region from a relation. Raises AssemblyError when no closed ring
    can be formed.
    """
    relation_id = int(relation["id"])
    tags = dict(relation.get("tags") or {})

    by_role: Dict[str, List[NodeIds]] = {ROLE_OUTER: [], ROLE_INNER: []}
    for member in relation.get("members") or ():
        if not isinstance(member, dict) or member.get("type") != "way":
            continue
        raw_role = member.get("role") or ""
        role = OUTLINE_ROLES.get(raw_role) if isinstance(raw_role, str) else None
        if role is None:
            continue

        ref = member.get("ref")
        node_ids = ways.get(ref) if isinstance(ref, int) else None
        if not node_ids:
            logger.debug("relation %s: way %s not in payload", relation_id, ref)
            continue
        if any(n not in nodes for n in node_ids):
            logger.debug("relation %s: way %s references missing nodes", relation_id, ref)
            continue

        by_role[role].append(node_ids)

    rings: List[Tuple[LatLon, ...]] = []
    roles: List[str] = []
    for role in (ROLE_OUTER, ROLE_INNER):
        for ring in stitch_rings(by_role[role]):
            rings.append(tuple(nodes[n] for n in ring))
            roles.append(role)

    if not any(role == ROLE_OUTER for role in roles):
        raise AssemblyError(relation_id)

    return Region(
        id=relation_id,
        name=str(tags.get("name") or config.UNKNOWN_LGA_NAME),
        rings=tuple(rings),
        roles=tuple(roles),
        tags=tags,
    )


def assemble_regions(
    payload: Mapping[str, Any],
    admin_level: str | int | None = config.LGA_ADMIN_LEVEL,
) -> List[Region]:
    """
    Regions for every qualifying relation, in payload order. Relations that
    yield no closed outer ring are left out.
    """
    data = validate_payload(payload)
    nodes, ways, relations = _index_elements(data["elements"])

    regions: List[Region] = []
    seen: set[int] = set()
    skipped = 0

    for relation in relations:
        if not is_boundary_relation(relation, admin_level):
            continue
        try:
            relation_id = int(relation["id"])
        except (KeyError, TypeError, ValueError):
            continue
        if relation_id in seen:
            continue
        seen.add(relation_id)

        try:
            regions.append(assemble_region(relation, ways, nodes))
        except AssemblyError as e:
            skipped += 1
            logger.debug("Excluding region: %s", e)

    logger.info("Assembled %d regions (%d excluded without closed rings)", len(regions), skipped)
    return regions


def build_registry(
    payload: Mapping[str, Any],
    admin_level: str | int | None = config.LGA_ADMIN_LEVEL,
) -> RegionRegistry:
    return RegionRegistry(assemble_regions(payload, admin_level))
