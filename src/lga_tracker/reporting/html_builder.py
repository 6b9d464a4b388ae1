from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Tuple

import markdown

logger = logging.getLogger(__name__)

BASE_CSS = """
body {
    font-family: system-ui, -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
    font-size: 14px;
    line-height: 1.5;
    color: #1f2937;
    margin: 0;
    padding: 2rem;
    background: #f1f5f9;
}

.report-container {
    max-width: 820px;
    margin: 0 auto;
    background: #fff;
    padding: 2rem 2.5rem;
    border-radius: 8px;
    border-top: 6px solid #22c55e;
}

h1 { font-size: 1.7rem; margin-bottom: 0.5rem; }
h2 { font-size: 1.3rem; margin-top: 1.75rem; color: #166534; }

table {
    border-collapse: collapse;
    width: 100%;
    margin: 0.75rem 0;
    font-size: 0.9rem;
}

th, td {
    border: 1px solid #e2e8f0;
    padding: 0.35rem 0.5rem;
    text-align: left;
}

th { background: #f0fdf4; }

blockquote {
    border-left: 4px solid #cbd5e1;
    margin: 0.75rem 0;
    padding: 0.5rem 0.75rem;
    color: #475569;
}
"""


def report_title(md_text: str, default: str = "LGA Visit Progress") -> str:
    """First top-level Markdown heading, used as the HTML document title."""
    for line in md_text.splitlines():
        if line.startswith("# "):
            return line[2:].strip() or default
    return default


def build_html_and_pdf(
    md_path: Path,
    out_dir: Path,
    title: str | None = None,
) -> Tuple[Path, Path | None]:
    """
    Render a Markdown progress report as a standalone HTML page next to it,
    plus a PDF when WeasyPrint is installed. The page title comes from the
    report's first heading unless `title` is given.

    Returns (html_path, pdf_path_or_None).
    """
    out_dir.mkdir(parents=True, exist_ok=True)

    md_text = md_path.read_text(encoding="utf-8")
    title = html.escape(title or report_title(md_text))
    body_html = markdown.markdown(md_text, extensions=["tables"])

    html_doc = f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
  <style>
  {BASE_CSS}
  </style>
</head>
<body>
  <div class="report-container">
    {body_html}
  </div>
</body>
</html>
"""

    html_path = out_dir / md_path.with_suffix(".html").name
    html_path.write_text(html_doc, encoding="utf-8")

    # WeasyPrint is an optional extra and needs system libraries
    pdf_path: Path | None = None
    try:
        from weasyprint import HTML  # type: ignore

        pdf_path = out_dir / md_path.with_suffix(".pdf").name
        HTML(string=html_doc, base_url=str(out_dir)).write_pdf(str(pdf_path))
    except (ImportError, OSError) as e:
        logger.info("PDF export skipped: %s", e)
        pdf_path = None

    return html_path, pdf_path
