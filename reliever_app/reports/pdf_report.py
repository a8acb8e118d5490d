"""
PDF report generation for a vessel's relief load summary.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from reliever_app.models import CaseRecord, DesignBasisFlow, Vessel

REPORT_TITLE = "Pressure Relief Load Summary"

_TABLE_STYLE = [
    ("BACKGROUND", (0, 0), (-1, 0), "#4472C4"),
    ("TEXTCOLOR", (0, 0), (-1, 0), "white"),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("FONTSIZE", (0, 0), (-1, 0), 10),
    ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
    ("BACKGROUND", (0, 1), (-1, -1), "#F5F5F5"),
    ("GRID", (0, 0), (-1, -1), 0.4, "#BBBBBB"),
    ("FONTSIZE", (0, 0), (-1, -1), 9),
    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ("LEFTPADDING", (0, 0), (-1, -1), 6),
    ("RIGHTPADDING", (0, 0), (-1, -1), 6),
    ("TOPPADDING", (0, 0), (-1, -1), 3),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
]


def _fmt(value: object, fmt: str) -> str:
    """Safely format numeric values for PDF tables."""
    if value is None:
        return ""
    try:
        return format(float(value), fmt)
    except (TypeError, ValueError):
        return str(value)


def _section_title(text: str, styles) -> Paragraph:
    return Paragraph(f"<b>{text}</b>", styles["Heading3"])


def _vessel_rows(vessel: Vessel) -> list[list[str]]:
    return [
        ["Property", "Value"],
        ["Tag", vessel.tag],
        ["Name", vessel.name],
        ["Orientation", vessel.orientation.value.capitalize()],
        ["Diameter (in)", _fmt(vessel.diameter_in, ".2f")],
        ["Straight side height (in)", _fmt(vessel.straight_side_height_in, ".2f")],
        ["Head type", vessel.head_type.value],
        ["Design MAWP (psig)", _fmt(vessel.design_mawp_psig, ".1f")],
        ["ASME set pressure (psig)", _fmt(vessel.asme_set_pressure_psig, ".1f")],
        ["Working fluid", vessel.working_fluid],
    ]


def _case_rows(cases: Iterable[CaseRecord], basis: Optional[DesignBasisFlow]) -> list[list[str]]:
    rows = [["Case", "Included", "ASME VIII design flow (lb/h)", "Basis"]]
    for case in cases:
        is_basis = basis is not None and basis.case_type == case.case_type
        flow = _fmt(case.design_flow_lb_hr, ",.0f") if case.is_calculated else "Not calculated"
        rows.append(
            [
                case.case_name or case.case_type.display_name,
                "YES" if case.is_selected else "NO",
                flow,
                "*" if is_basis else "",
            ]
        )
    return rows


def export_relief_summary_to_pdf(
    filepath: Path,
    vessel: Vessel,
    cases: Iterable[CaseRecord],
    design_basis: Optional[DesignBasisFlow] = None,
) -> None:
    """
    Generate a PDF report with the vessel properties, every case, and the
    governing (design basis) flow.
    """
    doc = SimpleDocTemplate(
        str(filepath),
        pagesize=A4,
        rightMargin=2.2 * cm,
        leftMargin=2.2 * cm,
        topMargin=2.0 * cm,
        bottomMargin=2.0 * cm,
    )
    doc.title = REPORT_TITLE
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "CustomTitle",
        parent=styles["Heading1"],
        fontSize=16,
        leading=20,
        spaceAfter=6,
    )
    styles["Heading3"].spaceBefore = 6
    styles["Heading3"].spaceAfter = 2

    def _draw_page_frame(canvas, _doc) -> None:
        canvas.setTitle(REPORT_TITLE)
        width, height = canvas._pagesize
        margin = 0.7 * cm
        canvas.saveState()
        canvas.setStrokeColor(colors.HexColor("#000000"))
        canvas.setLineWidth(0.7)
        canvas.rect(margin, margin, width - 2 * margin, height - 2 * margin, stroke=1, fill=0)
        canvas.restoreState()

    story = []
    story.append(Paragraph(REPORT_TITLE, title_style))
    story.append(Paragraph(f"Vessel: {vessel.display_name}", styles["Normal"]))
    story.append(Spacer(1, 0.5 * cm))

    story.append(_section_title("Vessel Properties", styles))
    story.append(Spacer(1, 0.2 * cm))
    vessel_table = Table(_vessel_rows(vessel), colWidths=[8 * cm, 6 * cm])
    vessel_table.setStyle(TableStyle(_TABLE_STYLE + [("FONTNAME", (0, 1), (0, -1), "Helvetica-Bold")]))
    story.append(vessel_table)
    story.append(Spacer(1, 0.5 * cm))

    story.append(_section_title("Overpressure Cases", styles))
    story.append(Spacer(1, 0.2 * cm))
    case_table = Table(_case_rows(cases, design_basis), colWidths=[6.5 * cm, 2 * cm, 5 * cm, 1.5 * cm])
    case_table.setStyle(TableStyle(_TABLE_STYLE))
    story.append(case_table)
    story.append(Spacer(1, 0.5 * cm))

    story.append(_section_title("Design Basis Flow", styles))
    if design_basis is None:
        story.append(Paragraph("No selected case has been calculated.", styles["Normal"]))
    else:
        story.append(
            Paragraph(
                f"{_fmt(design_basis.flow_lb_hr, ',.0f')} lb/h ({design_basis.case_name})",
                styles["Normal"],
            )
        )

    doc.build(story, onFirstPage=_draw_page_frame, onLaterPages=_draw_page_frame)
