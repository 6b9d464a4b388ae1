from __future__ import annotations

import sys
from pathlib import Path

from lga_tracker import config
from lga_tracker.assembly import build_registry
from lga_tracker.errors import FetchError
from lga_tracker.overpass import FileProvider, OverpassProvider, save_payload

PAYLOAD_PATH = config.LGA_PAYLOAD_PATH
OUT_PATH = config.LGA_ARTIFACT_PATH


def main() -> None:
    if PAYLOAD_PATH.exists():
        payload = FileProvider(PAYLOAD_PATH).fetch()
    else:
        try:
            payload = OverpassProvider().fetch()
        except FetchError as e:
            sys.exit(f"Could not fetch boundaries: {e}")
        save_payload(payload, PAYLOAD_PATH)
        print(f"Saved raw payload to {PAYLOAD_PATH}")

    registry = build_registry(payload)
    gdf = registry.to_geodataframe().copy()

    # simplify geometries (tune tolerance later if needed)
    gdf["geometry"] = gdf["geometry"].simplify(
        tolerance=0.001,
        preserve_topology=True
    )

    Path(OUT_PATH).parent.mkdir(parents=True, exist_ok=True)
    gdf[["id", "name", "geometry"]].to_file(
        OUT_PATH,
        driver="GeoJSON"
    )

    print(f"Wrote {OUT_PATH} ({len(gdf)} LGAs)")

if __name__ == "__main__":
    main()
