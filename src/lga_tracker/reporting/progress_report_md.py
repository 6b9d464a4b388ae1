from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..progress import compute_progress
from ..registry import Region, RegionRegistry
from ..visit_store import VisitStore


def fmt_date(d: date) -> str:
    return d.strftime("%d %b %Y")


@dataclass(frozen=True)
class ReportContext:
    prepared_as_at: date
    output_dir: Path
    source: str


def _md_escape(value: str) -> str:
    return value.replace("|", "\\|")


def _md_table(headers: List[str], rows: List[List[str]]) -> str:
    out = []
    out.append("| " + " | ".join(headers) + " |")
    out.append("| " + " | ".join(["---"] * len(headers)) + " |")
    for r in rows:
        out.append("| " + " | ".join(r) + " |")
    return "\n".join(out)


def summarise(registry: Optional[RegionRegistry], visits: VisitStore) -> Dict[str, Any]:
    stats = compute_progress(registry, visits)
    regions = registry.all() if registry is not None else ()

    visited: List[Region] = [r for r in regions if visits.is_visited(r.id)]
    remaining: List[Region] = [r for r in regions if not visits.is_visited(r.id)]
    stale = sorted(visits.stale_ids(registry.ids())) if registry is not None else []

    return {
        "stats": stats,
        "loaded": registry is not None,
        "visited": sorted(visited, key=lambda r: (r.name.lower(), r.id)),
        "remaining": sorted(remaining, key=lambda r: (r.name.lower(), r.id)),
        "stale_ids": stale,
    }


def render_markdown(ctx: ReportContext, summary: Dict[str, Any], *, list_remaining: bool = True) -> str:
    stats = summary["stats"]

    md_parts: List[str] = [
        "# LGA Visit Progress",
        "",
        f"Prepared {fmt_date(ctx.prepared_as_at)} from {ctx.source}.",
        "",
    ]

    if not summary["loaded"]:
        md_parts += [
            "> Boundary data is not loaded, so totals are unavailable. "
            f"{stats.visited} visited region id(s) are stored.",
            "",
        ]

    md_parts += [
        "## Summary",
        "",
        _md_table(
            ["Total LGAs", "Visited", "Remaining", "Progress"],
            [[
                str(stats.total),
                str(stats.visited),
                str(max(stats.total - len(summary["visited"]), 0)),
                f"{stats.display_percentage:.1f}%",
            ]],
        ),
        "",
        "## Visited",
        "",
    ]

    if summary["visited"]:
        md_parts.append(
            _md_table(["ID", "Name"], [[str(r.id), _md_escape(r.name)] for r in summary["visited"]])
        )
    else:
        md_parts.append("No LGAs visited yet.")
    md_parts.append("")

    if list_remaining and summary["remaining"]:
        md_parts += [
            "## Remaining",
            "",
            ", ".join(_md_escape(r.name) for r in summary["remaining"]),
            "",
        ]

    if summary["stale_ids"]:
        md_parts += [
            "## Stored ids not in the current boundary data",
            "",
            "These ids are counted as visited but no longer match a loaded region:",
            "",
            ", ".join(str(i) for i in summary["stale_ids"]),
            "",
        ]

    return "\n".join(md_parts).strip() + "\n"


def write_report_markdown(md: str, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    out_path = output_dir / "lga_progress_report.md"
    out_path.write_text(md, encoding="utf-8")
    return out_path


def generate_progress_report(
    registry: Optional[RegionRegistry],
    visits: VisitStore,
    output_dir: Path,
    *,
    source: str = "OpenStreetMap",
    list_remaining: bool = True,
) -> Path:
    ctx = ReportContext(
        prepared_as_at=date.today(),
        output_dir=output_dir,
        source=source,
    )
    summary = summarise(registry, visits)
    md = render_markdown(ctx, summary, list_remaining=list_remaining)
    return write_report_markdown(md, output_dir)
