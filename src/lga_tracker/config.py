from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(), override=False)

BASE_DIR = Path(__file__).resolve().parents[2]

OVERPASS_URL = os.getenv("OVERPASS_URL", "https://overpass-api.de/api/interpreter")

# HTTP timeout (seconds) for the Overpass POST; the query itself asks the
# server for QUERY_TIMEOUT.
OVERPASS_TIMEOUT = float(os.getenv("OVERPASS_TIMEOUT", "60"))
QUERY_TIMEOUT = int(os.getenv("OVERPASS_QUERY_TIMEOUT", "25"))

LGA_COUNTRY = os.getenv("LGA_COUNTRY", "AU")
LGA_ADMIN_LEVEL = os.getenv("LGA_ADMIN_LEVEL", "6")

VISITS_DB_PATH = Path(os.getenv("VISITS_DB_PATH", "cache/visits.db"))
VISITS_STORAGE_KEY = os.getenv("VISITS_STORAGE_KEY", "visitedLGAs")

LGA_PAYLOAD_PATH = Path(os.getenv("LGA_PAYLOAD_PATH", "data/lga_overpass_raw.json"))
LGA_ARTIFACT_PATH = Path(os.getenv("LGA_ARTIFACT_PATH", "data/lga_boundaries.geojson"))

REPORT_OUTPUT_DIR = Path(os.getenv("REPORT_OUTPUT_DIR", str(BASE_DIR / "outputs" / "lga_progress")))

UNKNOWN_LGA_NAME = "Unknown LGA"
