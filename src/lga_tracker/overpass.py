from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Protocol

import requests

from . import config
from .errors import FetchError

logger = logging.getLogger(__name__)

USER_AGENT = "lga-tracker/0.1 (+https://github.com/lga-tracker)"


class BoundaryProvider(Protocol):
    def fetch(self) -> Dict[str, Any]:
        ...


def build_query(
    country: str = config.LGA_COUNTRY,
    admin_level: str | int = config.LGA_ADMIN_LEVEL,
    timeout: int = config.QUERY_TIMEOUT,
) -> str:
    """
    Overpass QL for every administrative boundary relation at `admin_level`
    inside the country area, followed by the ways and nodes they reference.
    """
    return f"""
[out:json][timeout:{timeout}];
area["ISO3166-1"="{country}"][admin_level=2]->.country;
(
  rel(area.country)["admin_level"="{admin_level}"]["boundary"="administrative"];
);
out body;
>;
out skel qt;
""".strip()


def validate_payload(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise FetchError(f"Unexpected payload type: {type(data).__name__}")

    elements = data.get("elements")
    if not isinstance(elements, list):
        # Overpass reports runtime errors (timeouts, quota) in "remark"
        remark = data.get("remark")
        raise FetchError(f"Payload has no elements list{f': {remark}' if remark else ''}")

    return data


class OverpassProvider:
    """Fetch raw boundary elements from an Overpass API endpoint."""

    def __init__(
        self,
        url: str = config.OVERPASS_URL,
        country: str = config.LGA_COUNTRY,
        admin_level: str | int = config.LGA_ADMIN_LEVEL,
        timeout: float = config.OVERPASS_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.country = country
        self.admin_level = str(admin_level)
        self.timeout = timeout
        self.session = session or requests.Session()

    def query(self) -> str:
        return build_query(self.country, self.admin_level)

    def fetch(self) -> Dict[str, Any]:
        logger.info("Fetching admin_level=%s boundaries for %s from %s", self.admin_level, self.country, self.url)
        try:
            resp = self.session.post(
                self.url,
                data=self.query(),
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise FetchError(f"Overpass request failed: {e}") from e
        except ValueError as e:
            # resp.json() raises a ValueError subclass on bad JSON
            raise FetchError(f"Overpass returned invalid JSON: {e}") from e

        data = validate_payload(data)
        logger.info("Fetched %d raw elements", len(data["elements"]))
        return data


class FileProvider:
    """Serve a raw payload previously written by save_payload()."""

    def __init__(self, path: Path = config.LGA_PAYLOAD_PATH) -> None:
        self.path = Path(path)

    def fetch(self) -> Dict[str, Any]:
        if not self.path.exists():
            raise FetchError(
                f"Missing boundary payload: {self.path}. "
                f"Run `lga-tracker fetch` to download it."
            )
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise FetchError(f"Could not read boundary payload {self.path}: {e}") from e

        return validate_payload(data)


def save_payload(payload: Dict[str, Any], path: Path = config.LGA_PAYLOAD_PATH) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
