from .html_builder import build_html_and_pdf
from .progress_report_md import generate_progress_report

__all__ = ["build_html_and_pdf", "generate_progress_report"]
