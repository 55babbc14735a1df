from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
    Image,
    PageBreak,
)

from photonfield.calculation.field import FixtureAnnotation, GridField
from photonfield.models.photometric_file import PhotometricFile
from photonfield.plotting.plots import PlotPaths


@dataclass(frozen=True)
class PDFPaths:
    pdf_path: Path


def _first_kw(phot: PhotometricFile, key: str) -> str:
    vals = phot.keywords.get(key, [])
    if not vals:
        return "-"
    v = vals[0].strip()
    return v if v else "-"


def _kv_table(rows):
    t = Table(rows, colWidths=[5.2 * cm, 12.5 * cm])
    t.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("ROWBACKGROUNDS", (0, 0), (-1, -1), [colors.whitesmoke, colors.white]),
                ("BOX", (0, 0), (-1, -1), 0.5, colors.lightgrey),
                ("INNERGRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                ("LEFTPADDING", (0, 0), (-1, -1), 6),
                ("RIGHTPADDING", (0, 0), (-1, -1), 6),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return t


def _annotation_table(annotations: Sequence[FixtureAnnotation]):
    rows: List[List[str]] = [["#", "Fixture", "PPFD below", "Mean contribution", "Share", "Radius"]]
    for a in annotations:
        rows.append(
            [
                str(a.index + 1),
                a.id or "-",
                f"{a.ppfd_below:.1f}" if a.enabled else "off",
                f"{a.mean_contribution:.1f}",
                f"{a.field_share * 100.0:.1f}%",
                f"{a.coverage_radius:.2f}",
            ]
        )
    t = Table(rows, colWidths=[1.2 * cm, 4.5 * cm, 2.8 * cm, 3.4 * cm, 2.4 * cm, 2.4 * cm])
    t.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("BOX", (0, 0), (-1, -1), 0.5, colors.lightgrey),
                ("INNERGRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                ("LEFTPADDING", (0, 0), (-1, -1), 4),
                ("RIGHTPADDING", (0, 0), (-1, -1), 4),
                ("TOPPADDING", (0, 0), (-1, -1), 3),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
            ]
        )
    )
    return t


def _document(out_pdf_path: Path, title: str) -> SimpleDocTemplate:
    return SimpleDocTemplate(
        str(out_pdf_path),
        pagesize=A4,
        leftMargin=1.6 * cm,
        rightMargin=1.6 * cm,
        topMargin=1.6 * cm,
        bottomMargin=1.6 * cm,
        title=title,
        author="Photonfield",
    )


def build_pdf_report(
    phot: PhotometricFile,
    plots: PlotPaths,
    out_pdf_path: Path,
    source_file: Optional[Path] = None,
) -> PDFPaths:
    """
    Create a shareable photometry PDF report:
      - Metadata / header
      - Photometric line and derived beam figures
      - Embedded plots
    """
    out_pdf_path = out_pdf_path.expanduser().resolve()
    out_pdf_path.parent.mkdir(parents=True, exist_ok=True)

    styles = getSampleStyleSheet()
    h2 = styles["Heading2"]
    body = styles["BodyText"]

    story = []
    story.append(Paragraph("Photometry Report", styles["Title"]))
    story.append(Spacer(1, 0.25 * cm))
    src = str(source_file) if source_file is not None else "-"
    story.append(Paragraph(f"<b>Source</b>: {src}", body))
    story.append(Paragraph(f"<b>TILT</b>: {phot.tilt_mode}", body))
    story.append(Spacer(1, 0.35 * cm))

    story.append(Paragraph("Metadata", h2))
    meta_rows = [
        ["Manufacturer", _first_kw(phot, "MANUFAC")],
        ["Luminaire Catalog", _first_kw(phot, "LUMCAT")],
        ["Luminaire", _first_kw(phot, "LUMINAIRE")],
        ["Test", _first_kw(phot, "TEST")],
        ["Test Lab", _first_kw(phot, "TESTLAB")],
    ]
    story.append(_kv_table(meta_rows))
    story.append(Spacer(1, 0.35 * cm))

    story.append(Paragraph("Photometry Summary", h2))
    units = "m" if phot.units_type == 2 else "ft"
    v = phot.vertical_angles
    h = phot.horizontal_angles
    rows = [
        ["Vertical angles", f"{len(v)} ({v[0]:g}° to {v[-1]:g}°)"],
        ["Horizontal angles", f"{len(h)} ({h[0]:g}° to {h[-1]:g}°), {phot.symmetry}"],
        ["Opening (W x L x H)", f"{phot.width:g} x {phot.length:g} x {phot.height:g} {units}"],
        ["Max candela", f"{phot.max_candela:g}"],
        ["Beam angle (50%)", f"{phot.beam_angle:g}°"],
        ["Field angle (10%)", f"{phot.field_angle:g}°"],
        ["Total lumens", f"{phot.total_lumens:g}" if phot.total_lumens > 0 else "absolute photometry"],
        ["Input watts", f"{phot.input_watts:g}"],
        ["Efficacy", f"{phot.efficacy:.1f} lm/W"],
    ]
    story.append(_kv_table(rows))

    story.append(PageBreak())
    story.append(Paragraph("Plots", h2))
    story.append(Spacer(1, 0.25 * cm))
    max_w = 17.0 * cm
    for label, path in (("Intensity curves", plots.intensity_png), ("Polar plot", plots.polar_png)):
        img = Image(str(path))
        img._restrictSize(max_w, 12.5 * cm)
        story.append(Paragraph(f"<b>{label}</b>", body))
        story.append(img)
        story.append(Spacer(1, 0.35 * cm))

    _document(out_pdf_path, "Photometry Report").build(story)
    return PDFPaths(pdf_path=out_pdf_path)


def build_field_report(
    field: GridField,
    out_pdf_path: Path,
    heatmap_png: Optional[Path] = None,
    annotations: Sequence[FixtureAnnotation] = (),
    photoperiod_hours: float = 12.0,
    title: str = "PPFD Field Report",
) -> PDFPaths:
    """
    Summary statistics, optional heatmap and per-fixture annotations of an
    evaluated field.
    """
    out_pdf_path = out_pdf_path.expanduser().resolve()
    out_pdf_path.parent.mkdir(parents=True, exist_ok=True)

    styles = getSampleStyleSheet()
    h2 = styles["Heading2"]
    body = styles["BodyText"]
    stats = field.statistics
    grid = field.grid

    story = []
    story.append(Paragraph(title, styles["Title"]))
    story.append(Spacer(1, 0.25 * cm))
    story.append(Paragraph("Field Statistics", h2))
    rows = [
        ["Area", f"{grid.width:g} x {grid.length:g} ({grid.nx} x {grid.ny} cells)"],
        ["Fixtures", str(len(field.source_positions))],
        ["Mean PPFD", f"{stats.mean:.1f} μmol/m²/s"],
        ["Min / Max", f"{stats.min:.1f} / {stats.max:.1f}"],
        ["Uniformity (min/mean)", f"{stats.uniformity:.3f}"],
        ["Coefficient of variation", f"{stats.coefficient_of_variation:.3f}"],
        [f"DLI ({photoperiod_hours:g} h)", f"{stats.dli(photoperiod_hours):.2f} mol/m²/day"],
    ]
    story.append(_kv_table(rows))
    story.append(Spacer(1, 0.35 * cm))

    if heatmap_png is not None:
        img = Image(str(heatmap_png))
        img._restrictSize(17.0 * cm, 14.0 * cm)
        story.append(Paragraph("<b>PPFD heatmap</b>", body))
        story.append(img)

    if annotations:
        story.append(PageBreak())
        story.append(Paragraph("Fixture Annotations", h2))
        story.append(Spacer(1, 0.25 * cm))
        story.append(_annotation_table(annotations))

    _document(out_pdf_path, title).build(story)
    return PDFPaths(pdf_path=out_pdf_path)
