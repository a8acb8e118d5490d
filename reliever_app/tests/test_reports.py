"""Tests for relief summary reports."""

from __future__ import annotations

from reliever_app.models import CaseRecord, CaseType, DesignBasisFlow
from reliever_app.reports import build_relief_summary_text, export_relief_summary_to_pdf


def _cases():
    fire = CaseRecord.default_for(CaseType.EXTERNAL_FIRE)
    fire.is_selected = True
    fire.is_calculated = True
    fire.design_flow_lb_hr = 16466.0
    overfill = CaseRecord.default_for(CaseType.LIQUID_OVERFILL)
    overfill.is_selected = True
    return [fire, overfill, CaseRecord.default_for(CaseType.BLOCKED_OUTLET)]


def test_text_summary(sample_vessel):
    basis = DesignBasisFlow(16466.0, CaseType.EXTERNAL_FIRE, "External Fire")
    text = build_relief_summary_text(sample_vessel, _cases(), basis)

    assert "Vessel: Flash Drum (V-101)" in text
    assert "External Fire: 16,466 lb/h" in text
    assert "Liquid Overfill: not calculated" in text
    assert "Blocked Outlet" not in text
    assert text.endswith("Design basis: 16,466 lb/h (External Fire)")


def test_pdf_export(tmp_path, sample_vessel):
    target = tmp_path / "relief.pdf"
    basis = DesignBasisFlow(16466.0, CaseType.EXTERNAL_FIRE, "External Fire")

    export_relief_summary_to_pdf(target, sample_vessel, _cases(), basis)

    assert target.exists()
    assert target.read_bytes().startswith(b"%PDF")


def test_pdf_export_without_basis(tmp_path, sample_vessel):
    target = tmp_path / "empty.pdf"
    export_relief_summary_to_pdf(target, sample_vessel, [], None)
    assert target.stat().st_size > 0
