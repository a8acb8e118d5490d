"""
Reporting utilities (PDF/text) for the relief load summary.
"""

from reliever_app.reports.simple_text_report import build_relief_summary_text
from reliever_app.reports.pdf_report import export_relief_summary_to_pdf

__all__ = [
    "build_relief_summary_text",
    "export_relief_summary_to_pdf",
]
