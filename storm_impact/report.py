from __future__ import annotations

"""
Storm impact report
-------------------
Pure presentation on top of a `StormAnalysis`:

- console tables (top-5 damage, top-5 health impact, top-3 frequency)
- three bar charts (damage, fatalities, injuries) as PNG files
- an optional DOCX report bundling all of the above
- session metadata for reproducibility

Nothing here computes new statistics; the only arithmetic is unit scaling
(US$ -> millions / billions) and percentage shares.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import os
import platform
import sys
import tempfile
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version

from .engine import StormAnalysis
from .models import GroupSummary

logger = logging.getLogger(__name__)


# -----------------------------
# Configuration / citation types
# -----------------------------

@dataclass
class DatasetCitation:
    """Minimal dataset citation metadata for the DOCX report."""
    database_name: str = "NOAA Storm Events Database"
    institutional_author: str = "U.S. National Oceanic and Atmospheric Administration (NOAA)"
    website: str = "https://www.ncdc.noaa.gov/stormevents/"
    coverage: str = "1950 to November 2011"
    file_name: Optional[str] = None


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Storm Impact Report"
    subtitle: str = "Health and economic consequences of severe weather in the U.S."
    citation: DatasetCitation = field(default_factory=DatasetCitation)

    # Rows in the damage / fatalities / injuries rankings
    top_n: int = 5
    # Rows in the event-frequency summary
    top_frequency: int = 3

    # Where PNG charts are written; a temp dir is used when None
    chart_dir: Optional[str] = None


# -----------------------------
# Formatting helpers
# -----------------------------

def format_money(value: Optional[float]) -> str:
    """Scale a US$ amount for display: $1.23 B, $45.60 M, or $12,345."""
    if value is None:
        return ""
    if abs(value) >= 1e9:
        return f"${value / 1e9:,.2f} B"
    if abs(value) >= 1e6:
        return f"${value / 1e6:,.2f} M"
    return f"${value:,.0f}"

def format_pct(part: float, whole: float) -> str:
    """Share of `whole` as a percentage string with one decimal."""
    if not whole:
        return "-"
    return f"{100.0 * part / whole:.1f}%"

def render_table(rows: Sequence[Sequence[object]], headers: Sequence[str]) -> str:
    """Plain-text table: first column left-aligned, the others right-aligned."""
    cells = [[str(h) for h in headers]] + [[str(c) for c in r] for r in rows]
    widths = [max(len(row[i]) for row in cells) for i in range(len(headers))]

    def _line(row: List[str]) -> str:
        parts = [row[0].ljust(widths[0])] + [c.rjust(w) for c, w in zip(row[1:], widths[1:])]
        return "  ".join(parts).rstrip()

    sep = "  ".join("-" * w for w in widths)
    return "\n".join([_line(cells[0]), sep] + [_line(r) for r in cells[1:]])


# -----------------------------
# Table builders
# -----------------------------

DAMAGE_HEADERS = ["Event type", "Total damage", "Share", "Mean per event"]
HEALTH_HEADERS = ["Event type", "Fatalities", "Share", "Injuries", "Share"]
FREQUENCY_HEADERS = ["Event type", "Events", "Share"]

def damage_rows(analysis: StormAnalysis, k: int = 5) -> List[List[str]]:
    total = analysis.totals()["total_damage"]
    return [
        [g.event_type, format_money(g.total_damage), format_pct(g.total_damage, total), format_money(g.mean_damage)]
        for g in analysis.top_damage(k)
    ]

def health_rows(analysis: StormAnalysis, k: int = 5) -> List[List[str]]:
    """Top-k by fatalities, with injuries alongside."""
    totals = analysis.totals()
    return [
        [g.event_type,
         f"{g.fatalities:,}", format_pct(g.fatalities, totals["fatalities"]),
         f"{g.injuries:,}", format_pct(g.injuries, totals["injuries"])]
        for g in analysis.top_fatalities(k)
    ]

def frequency_rows(analysis: StormAnalysis, k: int = 3) -> List[List[str]]:
    total = analysis.totals()["count"]
    return [[g.event_type, f"{g.count:,}", format_pct(g.count, total)] for g in analysis.top_frequency(k)]

def render_console_report(analysis: StormAnalysis, config: Optional[ReportConfig] = None) -> str:
    """All tables plus the override note, as one printable string."""
    config = config or ReportConfig()
    totals = analysis.totals()
    out = [
        f"Records analysed: {int(totals['count']):,} "
        f"({int(totals['damage_count']):,} with valid damage unit codes)",
        "",
    ]
    if analysis.override.applied:
        out.append(
            f"Damage of record {analysis.override.event_id} corrected from "
            f"{format_money(analysis.override.original_damage)} to {format_money(analysis.override.new_damage)}"
        )
        out.append("")
    out.append(f"Top {config.top_n} event types by total damage")
    out.append(render_table(damage_rows(analysis, config.top_n), DAMAGE_HEADERS))
    out.append("")
    out.append(f"Top {config.top_n} event types by fatalities")
    out.append(render_table(health_rows(analysis, config.top_n), HEALTH_HEADERS))
    out.append("")
    out.append(f"Top {config.top_frequency} most frequent event types")
    out.append(render_table(frequency_rows(analysis, config.top_frequency), FREQUENCY_HEADERS))
    return "\n".join(out)


# -----------------------------
# Charts
# -----------------------------

def _pyplot():
    # Lazy import: charts are only needed for --charts-dir / --report.
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib.\n"
            "Install it with: python -m pip install matplotlib"
        ) from e
    return plt

def plot_bar_charts(analysis: StormAnalysis, out_dir: str, k: int = 5) -> List[Tuple[str, str]]:
    """
    Write the three ranking bar charts into `out_dir`.

    Returns a list of (title, png_path).
    """
    plt = _pyplot()
    os.makedirs(out_dir, exist_ok=True)
    charts: List[Tuple[str, str]] = []

    def _bar(title: str, groups: List[GroupSummary], values: List[float], ylabel: str, filename: str) -> None:
        fig, ax = plt.subplots(figsize=(8, 5))
        ax.bar([g.event_type for g in groups], values, color="steelblue")
        ax.set_title(title)
        ax.set_ylabel(ylabel)
        ax.tick_params(axis="x", labelrotation=30)
        for lbl in ax.get_xticklabels():
            lbl.set_horizontalalignment("right")
        fig.tight_layout()
        path = os.path.join(out_dir, filename)
        fig.savefig(path, dpi=150)
        plt.close(fig)
        charts.append((title, path))

    top = analysis.top_damage(k)
    _bar(f"Top {k} event types by total damage", top,
         [g.total_damage / 1e9 for g in top], "Damage (US$ billions)", "top_damage.png")
    top = analysis.top_fatalities(k)
    _bar(f"Top {k} event types by fatalities", top,
         [g.fatalities for g in top], "Fatalities", "top_fatalities.png")
    top = analysis.top_injuries(k)
    _bar(f"Top {k} event types by injuries", top,
         [g.injuries for g in top], "Injuries", "top_injuries.png")

    logger.info("Wrote %d charts to %s", len(charts), out_dir)
    return charts


# -----------------------------
# Session metadata
# -----------------------------

SESSION_PACKAGES = ("pandas", "numpy", "matplotlib", "python-docx", "requests")

def session_info() -> Dict[str, str]:
    """Versions of the interpreter, platform and key libraries."""
    from . import __version__

    info = {
        "storm_impact": __version__,
        "python": sys.version.split()[0],
        "platform": platform.platform(),
    }
    for pkg in SESSION_PACKAGES:
        try:
            info[pkg] = version(pkg)
        except PackageNotFoundError:
            info[pkg] = "not installed"
    return info

def render_session_info(info: Optional[Dict[str, str]] = None) -> str:
    info = info or session_info()
    width = max(len(k) for k in info)
    return "\n".join(f"{k.ljust(width)}  {v}" for k, v in info.items())


# -----------------------------
# DOCX report
# -----------------------------

def generate_docx_report(
    analysis: StormAnalysis,
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
) -> str:
    """
    Generate a DOCX report with tables, charts and a reproducibility footer.

    Charts go to `config.chart_dir` (or a fresh temp dir) and are embedded.
    """
    config = config or ReportConfig()

    # Lazy imports: only required when a report is requested.
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    if not analysis.summaries:
        raise ValueError("No events to report on (dataset is empty).")

    chart_dir = config.chart_dir or tempfile.mkdtemp(prefix="storm_impact_")
    charts = plot_bar_charts(analysis, chart_dir, config.top_n)
    totals = analysis.totals()

    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    def _table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
        t = doc.add_table(rows=1, cols=len(headers))
        for cell, h in zip(t.rows[0].cells, headers):
            cell.text = h
        for row in rows:
            for cell, value in zip(t.add_row().cells, row):
                cell.text = value

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv("Records analysed", f"{int(totals['count']):,}")
    _kv("Records with valid damage codes", f"{int(totals['damage_count']):,}")
    _kv("Event types after normalization", str(len(analysis.summaries)))
    _kv("Total damage", format_money(totals["total_damage"]))
    _kv("Total fatalities", f"{int(totals['fatalities']):,}")
    _kv("Total injuries", f"{int(totals['injuries']):,}")

    doc.add_heading("Dataset", level=1)
    cit = config.citation
    if cit.file_name:
        doc.add_paragraph(f"Data file used: {cit.file_name}")
    doc.add_paragraph(f"{cit.institutional_author}. {cit.database_name} ({cit.coverage}). {cit.website}")

    doc.add_heading("Data processing", level=1)
    for note in [
        "Event-type labels are uppercased, TSTM is expanded to THUNDERSTORM, and labels containing "
        "a known keyword are collapsed onto that keyword (later keywords take precedence).",
        "Damage = property magnitude x unit multiplier + crop magnitude x unit multiplier, "
        "with multipliers ''/U=1, K=1e3, M=1e6, B=1e9.",
        "Records with any other unit code are excluded from damage figures but still counted "
        "for fatalities and injuries.",
    ]:
        doc.add_paragraph(note, style="List Bullet")
    if analysis.override.applied:
        ov = analysis.override
        doc.add_paragraph(
            f"The largest single record (id {ov.event_id}) was corrected from "
            f"{format_money(ov.original_damage)} to {format_money(ov.new_damage)}.",
            style="List Bullet",
        )
        if ov.remarks:
            doc.add_paragraph(f"Remarks of the corrected record: {ov.remarks[:500]}")

    doc.add_heading("Economic consequences", level=1)
    doc.add_paragraph(f"Top {config.top_n} event types by total damage")
    _table(DAMAGE_HEADERS, damage_rows(analysis, config.top_n))

    doc.add_heading("Population health", level=1)
    doc.add_paragraph(f"Top {config.top_n} event types by fatalities")
    _table(HEALTH_HEADERS, health_rows(analysis, config.top_n))

    doc.add_heading("Event frequency", level=1)
    _table(FREQUENCY_HEADERS, frequency_rows(analysis, config.top_frequency))

    doc.add_heading("Charts", level=1)
    for title, path in charts:
        doc.add_paragraph(title)
        doc.add_picture(path, width=Inches(6.0))

    doc.add_heading("Reproducibility footer", level=1)
    doc.add_paragraph(f"Report generated at: {datetime.now().isoformat(timespec='seconds')}")
    for k, v in session_info().items():
        doc.add_paragraph(f"{k}: {v}", style="List Bullet")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    logger.info("Report written to %s", out_path)
    return out_path
