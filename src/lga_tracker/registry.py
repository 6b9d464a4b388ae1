from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

import geopandas as gpd
from shapely.geometry import MultiPolygon, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.validation import make_valid

from .config import UNKNOWN_LGA_NAME

LatLon = Tuple[float, float]
Ring = Tuple[LatLon, ...]

ROLE_OUTER = "outer"
ROLE_INNER = "inner"


@dataclass(frozen=True)
class Region:
    id: int
    name: str
    rings: Tuple[Ring, ...]
    # Parallel to rings: "outer" or "inner"
    roles: Tuple[str, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not self.name or not str(self.name).strip():
            object.__setattr__(self, "name", UNKNOWN_LGA_NAME)
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))
        if not self.roles:
            object.__setattr__(self, "roles", tuple(ROLE_OUTER for _ in self.rings))
        if len(self.roles) != len(self.rings):
            raise ValueError(f"Region {self.id}: {len(self.rings)} rings but {len(self.roles)} roles")
        for ring in self.rings:
            if len(ring) < 4 or ring[0] != ring[-1]:
                raise ValueError(f"Region {self.id}: ring is not closed")
        if ROLE_OUTER not in self.roles:
            raise ValueError(f"Region {self.id}: no outer ring")

    @property
    def outer_rings(self) -> Tuple[Ring, ...]:
        return tuple(r for r, role in zip(self.rings, self.roles) if role != ROLE_INNER)

    @property
    def inner_rings(self) -> Tuple[Ring, ...]:
        return tuple(r for r, role in zip(self.rings, self.roles) if role == ROLE_INNER)

    def to_shape(self) -> BaseGeometry:
        """
        Polygon or MultiPolygon in (lon, lat) order. Inner rings become holes
        of the outer ring that contains them; an inner ring with no container
        is dropped.
        """
        shells = [Polygon([(lon, lat) for lat, lon in ring]) for ring in self.outer_rings]
        holes = [Polygon([(lon, lat) for lat, lon in ring]) for ring in self.inner_rings]

        polygons = []
        for shell in shells:
            own_holes = [h.exterior.coords for h in holes if shell.contains(h.representative_point())]
            polygons.append(Polygon(shell.exterior.coords, own_holes))

        geom: BaseGeometry = polygons[0] if len(polygons) == 1 else MultiPolygon(polygons)
        if not geom.is_valid:
            geom = make_valid(geom)
        return geom

    def to_feature(self) -> Dict[str, Any]:
        return {
            "type": "Feature",
            "properties": {"id": self.id, "name": self.name},
            "geometry": self.to_shape().__geo_interface__,
        }


class RegionRegistry:
    """
    Read-only id -> Region lookup. Built once; a rebuild produces a new
    registry rather than mutating this one.
    """

    def __init__(self, regions: Iterable[Region] = ()) -> None:
        self._regions: Dict[int, Region] = {}
        for region in regions:
            # First occurrence wins; order is insertion order of the source
            self._regions.setdefault(region.id, region)
        self._gdf: gpd.GeoDataFrame | None = None

    def get(self, region_id: int) -> Optional[Region]:
        return self._regions.get(region_id)

    def all(self) -> Tuple[Region, ...]:
        return tuple(self._regions.values())

    def count(self) -> int:
        return len(self._regions)

    def ids(self) -> frozenset[int]:
        return frozenset(self._regions)

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions.values())

    def __contains__(self, region_id: object) -> bool:
        return region_id in self._regions

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [r.to_feature() for r in self._regions.values()],
        }

    def to_geodataframe(self) -> gpd.GeoDataFrame:
        if self._gdf is None:
            regions = self.all()
            self._gdf = gpd.GeoDataFrame(
                {
                    "id": [r.id for r in regions],
                    "name": [r.name for r in regions],
                },
                geometry=[r.to_shape() for r in regions],
                crs="EPSG:4326",
            )
        return self._gdf

    def lookup(self, lat: float, lon: float) -> Optional[Region]:
        """
        Return the region containing the given latitude/longitude.
        """
        if not self._regions:
            return None

        gdf = self.to_geodataframe()
        point = Point(lon, lat)  # shapely uses (x, y) == (lon, lat)
        match = gdf[gdf.contains(point)]

        if match.empty:
            return None

        return self._regions[int(match.iloc[0]["id"])]
