"""
pdf_builder.py — Weekly Business Report PDF Generator.

Draws the report directly on a ReportLab canvas, page by page, tracking a
vertical Cursor down each page. Every drawing step takes a Cursor and
returns the advanced one; a new page starts again from Cursor.top().

    Page 1:   Title — header bar, headline, generation date
    Page 2:   Executive Summary — summary + KPI analysis text, KPI table
    Page 3:   Performance Visuals — top-5 products bar chart, category doughnut
    Page 4:   Strategic Insights — highlights, improvements, recommendations
    Page 5+:  Detailed Product Data — full product table (only with products;
              continues onto further pages as rows overflow)

Footers ("Page i of N" + confidentiality caption) are stamped in a final
pass once the total page count is known.

Charts are rasterised by charts.ChartRenderer to PNG byte streams and
embedded via ImageReader; nothing is written to disk until save_report().
"""

import io
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Optional, Sequence, Union
from xml.sax.saxutils import escape

import yaml

from reportlab.lib import colors
from reportlab.lib.enums import TA_JUSTIFY, TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Frame, Paragraph, Table, TableStyle
from reportlab.platypus.doctemplate import LayoutError

from mspcc_report.charts import ChartRenderer, ChartSpec, category_chart, top_products_chart
from mspcc_report.metrics import Metrics, Product
from mspcc_report.narrative import Recommendation, ReportContent, _pct, _usd
from mspcc_report.theme import Theme

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Layout constants
# ---------------------------------------------------------------------------
PAGE_W, PAGE_H = A4
MARGIN = 15 * mm
CONTENT_W = PAGE_W - 2 * MARGIN

HEADER_BAR_H = 20 * mm
HEADER_BASELINE = 12 * mm
TOP_MARGIN = 30 * mm
CONTENT_BOTTOM = 20 * mm        # measured from the bottom edge
FOOTER_RULE_Y = 15 * mm
FOOTER_TEXT_Y = 10 * mm

SECTION_TITLE_H = 8 * mm
ACCENT_RULE_W = 40 * mm
ACCENT_RULE_DROP = 1.5 * mm
LINE_H = 4.5 * mm
PARAGRAPH_GAP = 5 * mm
BULLET_GAP = 2 * mm
SECTION_GAP = 5 * mm
BULLET_INDENT = 5 * mm
DETAIL_INDENT = 10 * mm

REC_LINE_H = 5 * mm
REC_DETAIL_LINE_H = 4 * mm
REC_IMPACT_GAP = 1 * mm
REC_ENTRY_GAP = 5 * mm

CHART_RAISE = 3 * mm
CHART_SPACING = 10 * mm
BAR_CHART_H = 80 * mm
DOUGHNUT_W = 120 * mm
DOUGHNUT_H = 100 * mm

BULLET = "•"
PRODUCT_TABLE_HEADER = ["Product Name", "Category", "Selling Price", "Units/Week", "Margin", "Weekly Profit"]


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReportData:
    """Everything one report is assembled from."""
    metrics: Metrics
    report_content: ReportContent
    products: Sequence[Product] = ()


@dataclass(frozen=True)
class Cursor:
    """Vertical drawing position, in points measured down from the page top."""
    y: float = TOP_MARGIN

    @classmethod
    def top(cls) -> "Cursor":
        return cls(TOP_MARGIN)

    def advance(self, dy: float) -> "Cursor":
        if dy < 0:
            raise ValueError(f"Cursor can only move down the page (dy={dy})")
        return Cursor(self.y + dy)

    @property
    def canvas_y(self) -> float:
        """The same position in ReportLab's bottom-up coordinates."""
        return PAGE_H - self.y


@dataclass
class BuiltReport:
    """A finished PDF plus what the footer pass stamped on it."""
    content: bytes
    page_count: int
    footer_labels: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def _long_date(d: date) -> str:
    """'October 18, 2026' — month name from the process locale."""
    return f"{d:%B} {d.day}, {d.year}"


def summary_rows(metrics: Metrics) -> list[list[str]]:
    """The four KPI rows of the executive-summary table."""
    top = metrics.top_product_by_profit
    top_name = top.name if top and top.name else "N/A"
    top_profit = top.weekly_profit if top else 0
    return [
        ["Total Weekly Profit", _usd(metrics.total_weekly_profit)],
        ["Total Weekly Revenue", _usd(metrics.total_weekly_revenue)],
        ["Average Profit Margin", _pct(metrics.average_margin)],
        ["Top Product by Profit", f"{top_name} ({_usd(top_profit)})"],
    ]


def product_rows(products: Sequence[Product]) -> list[list[str]]:
    """One detailed-table row per product, in input order."""
    return [
        [
            p.name,
            p.category or "N/A",
            _usd(p.selling_price),
            str(p.units_sold_week),
            _pct(p.margin),
            _usd(p.weekly_profit),
        ]
        for p in products
    ]


# ---------------------------------------------------------------------------
# Canvas with deferred footers
# ---------------------------------------------------------------------------

class _NumberedCanvas(canvas.Canvas):
    """Canvas that holds finished pages back until save() so each footer can
    carry the final page count.

    Args:
        stamp: Callable(canvas, page_number, page_count) -> label, drawn on
            every page during save().
    """

    def __init__(self, *args, stamp=None, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._stamp = stamp
        self._saved_page_states = []
        self.page_count = 0
        self.footer_labels: list[str] = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        labels = []
        for number, state in enumerate(self._saved_page_states, start=1):
            self.__dict__.update(state)
            if self._stamp is not None:
                labels.append(self._stamp(self, number, total))
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)
        self.page_count = total
        self.footer_labels = labels


# ---------------------------------------------------------------------------
# Stylesheet
# ---------------------------------------------------------------------------

def _build_styles(theme: Theme) -> dict[str, ParagraphStyle]:
    """Create the paragraph styles used in the report body."""
    text_col = theme.color("text_primary")
    muted = theme.color("text_secondary")
    return {
        "body": ParagraphStyle(
            "body", fontName="Helvetica", fontSize=10, leading=LINE_H,
            textColor=text_col, alignment=TA_JUSTIFY,
        ),
        "bullet": ParagraphStyle(
            "bullet", fontName="Helvetica", fontSize=10, leading=LINE_H,
            textColor=text_col, alignment=TA_LEFT,
        ),
        "recommendation": ParagraphStyle(
            "recommendation", fontName="Helvetica-Bold", fontSize=11, leading=REC_LINE_H,
            textColor=text_col, alignment=TA_LEFT,
        ),
        "rec_detail": ParagraphStyle(
            "rec_detail", fontName="Helvetica", fontSize=9, leading=REC_DETAIL_LINE_H,
            textColor=muted, alignment=TA_LEFT,
        ),
        "table_cell": ParagraphStyle(
            "table_cell", fontName="Helvetica", fontSize=9, leading=11,
            textColor=text_col,
        ),
    }


# ---------------------------------------------------------------------------
# Assembler
# ---------------------------------------------------------------------------

class ReportAssembler:
    """Builds the multi-page weekly report.

    Args:
        theme: Colours and captions.
        chart_renderer: Rasteriser for chart specs (default 96 dpi x 3).
    """

    def __init__(self, theme: Optional[Theme] = None, chart_renderer: Optional[ChartRenderer] = None):
        self.theme = theme or Theme()
        self.chart_renderer = chart_renderer or ChartRenderer()
        self._styles = _build_styles(self.theme)

    @classmethod
    def from_config(cls, cfg: dict[str, Any]) -> "ReportAssembler":
        charts_cfg = cfg.get("report", {}).get("charts", {})
        renderer = ChartRenderer(
            dpi=int(charts_cfg.get("dpi", 96)),
            scale=int(charts_cfg.get("scale", 3)),
        )
        return cls(Theme.from_config(cfg), renderer)

    # -- public API ---------------------------------------------------------

    def generate(self, report_data: ReportData, today: Optional[date] = None) -> bytes:
        """Assemble the report and return the PDF bytes."""
        return self.build(report_data, today).content

    def build(self, report_data: ReportData, today: Optional[date] = None) -> BuiltReport:
        """Assemble the report.

        Args:
            report_data: Metrics, narrative content and products.
            today: Date printed on the title page (default: today).

        Returns:
            BuiltReport with the PDF bytes and stamped footer labels.
        """
        today = today or date.today()
        products = list(report_data.products)
        buf = io.BytesIO()
        canv = _NumberedCanvas(buf, pagesize=A4, stamp=self._draw_footer)
        canv.setTitle(self.theme.report_title)

        self._page_title(canv, today)
        self._page_summary(canv, report_data.metrics, report_data.report_content)
        self._page_visuals(canv, products)
        self._page_insights(canv, report_data.report_content)
        if products:
            self._page_product_table(canv, products)

        canv.save()
        logger.info("PDF report assembled: %d pages, %d products", canv.page_count, len(products))
        return BuiltReport(buf.getvalue(), canv.page_count, canv.footer_labels)

    # -- page furniture -----------------------------------------------------

    def _draw_header(self, canv, title: str) -> None:
        canv.saveState()
        canv.setFillColor(self.theme.color("primary"))
        canv.rect(0, PAGE_H - HEADER_BAR_H, PAGE_W, HEADER_BAR_H, fill=1, stroke=0)
        canv.setFillColor(self.theme.color("background"))
        canv.setFont("Helvetica-Bold", 16)
        canv.drawCentredString(PAGE_W / 2, PAGE_H - HEADER_BASELINE, title)
        canv.restoreState()

    def _new_page(self, canv, title: str) -> Cursor:
        self._draw_header(canv, title)
        return Cursor.top()

    def _draw_footer(self, canv, page_number: int, page_count: int) -> str:
        label = f"Page {page_number} of {page_count}"
        canv.saveState()
        canv.setFont("Helvetica", 9)
        canv.setFillColor(self.theme.color("text_secondary"))
        canv.drawCentredString(PAGE_W / 2, FOOTER_TEXT_Y, label)
        canv.drawString(MARGIN, FOOTER_TEXT_Y, self.theme.confidentiality)
        canv.setStrokeColor(self.theme.color("accent"))
        canv.setLineWidth(0.5)
        canv.line(MARGIN, FOOTER_RULE_Y, PAGE_W - MARGIN, FOOTER_RULE_Y)
        canv.restoreState()
        return label

    # -- drawing primitives -------------------------------------------------

    def _draw_paragraph(self, canv, text: str, style: ParagraphStyle,
                        x: float, width: float, cursor: Cursor) -> int:
        """Wrap `text` to `width` with its first baseline on the cursor.

        Returns:
            Number of rendered lines.
        """
        para = Paragraph(escape(text), style)
        _, height = para.wrap(width, PAGE_H)
        top = cursor.canvas_y + style.fontSize
        para.drawOn(canv, x, top - height)
        return max(1, int(round(height / style.leading)))

    def _draw_section_title(self, canv, title: str, cursor: Cursor) -> Cursor:
        canv.saveState()
        canv.setFont("Helvetica-Bold", 14)
        canv.setFillColor(self.theme.color("primary"))
        canv.drawString(MARGIN, cursor.canvas_y, title)
        canv.setStrokeColor(self.theme.color("accent"))
        canv.setLineWidth(0.5 * mm)
        rule_y = cursor.canvas_y - ACCENT_RULE_DROP
        canv.line(MARGIN, rule_y, MARGIN + ACCENT_RULE_W, rule_y)
        canv.restoreState()
        return cursor.advance(SECTION_TITLE_H)

    def draw_section(self, canv, title: str, content: Union[str, Sequence[str]], cursor: Cursor) -> Cursor:
        """Titled block of prose (a str) or bullets (a sequence of str).

        Args:
            canv: Canvas positioned on the target page.
            title: Section heading.
            content: One paragraph, or bullet items. Empty content draws the title only.
            cursor: Where the section starts.

        Returns:
            Cursor just below the section, including the inter-section gap.
        """
        cursor = self._draw_section_title(canv, title, cursor)

        if isinstance(content, str):
            if content:
                lines = self._draw_paragraph(canv, content, self._styles["body"],
                                             MARGIN, CONTENT_W, cursor)
                cursor = cursor.advance(lines * LINE_H + PARAGRAPH_GAP)
        else:
            for item in content:
                lines = self._draw_paragraph(canv, f"{BULLET} {item}", self._styles["bullet"],
                                             MARGIN + BULLET_INDENT, CONTENT_W - BULLET_INDENT, cursor)
                cursor = cursor.advance(lines * LINE_H + BULLET_GAP)

        return cursor.advance(SECTION_GAP)

    def draw_recommendations(self, canv, title: str, recommendations: Sequence[Recommendation],
                             cursor: Cursor) -> Cursor:
        """Bold recommendation line with indented Impact / Risk lines per entry."""
        cursor = self._draw_section_title(canv, title, cursor)
        detail_x = MARGIN + DETAIL_INDENT
        detail_w = CONTENT_W - DETAIL_INDENT

        for item in recommendations:
            lines = self._draw_paragraph(canv, f"{BULLET} {item.recommendation}",
                                         self._styles["recommendation"],
                                         MARGIN + BULLET_INDENT, CONTENT_W - BULLET_INDENT, cursor)
            cursor = cursor.advance(lines * REC_LINE_H)

            lines = self._draw_paragraph(canv, f"Impact: {item.impact}", self._styles["rec_detail"],
                                         detail_x, detail_w, cursor)
            cursor = cursor.advance(lines * REC_DETAIL_LINE_H + REC_IMPACT_GAP)

            lines = self._draw_paragraph(canv, f"Risk: {item.risk}", self._styles["rec_detail"],
                                         detail_x, detail_w, cursor)
            cursor = cursor.advance(lines * REC_DETAIL_LINE_H + REC_ENTRY_GAP)

        return cursor.advance(SECTION_GAP)

    def draw_chart(self, canv, spec: ChartSpec, x: float, cursor: Cursor) -> Cursor:
        """Rasterise `spec` and place it at a fixed footprint just above the cursor."""
        png = self.chart_renderer.render(spec)
        top = cursor.canvas_y + CHART_RAISE
        canv.drawImage(ImageReader(io.BytesIO(png)), x, top - spec.height,
                       width=spec.width, height=spec.height, mask="auto")
        return cursor.advance(spec.height + CHART_SPACING)

    def draw_table(self, canv, table: Table, cursor: Cursor) -> Cursor:
        """Draw a table that fits on the current page below the cursor.

        Raises:
            LayoutError: If the table would cross the content floor.
        """
        _, height = table.wrapOn(canv, CONTENT_W, PAGE_H)
        bottom = cursor.canvas_y - height
        if bottom < CONTENT_BOTTOM:
            raise LayoutError(
                f"Table needs {height:.1f}pt but only {cursor.canvas_y - CONTENT_BOTTOM:.1f}pt "
                "remain on the page"
            )
        table.drawOn(canv, MARGIN, bottom)
        return cursor.advance(height)

    @staticmethod
    def _warn_if_overflowing(cursor: Cursor, page_title: str) -> None:
        if cursor.canvas_y < CONTENT_BOTTOM:
            logger.warning("'%s' content runs %.1fpt past the page footer",
                           page_title, CONTENT_BOTTOM - cursor.canvas_y)

    # -- tables -------------------------------------------------------------

    def _summary_table(self, metrics: Metrics) -> Table:
        table = Table(summary_rows(metrics), colWidths=[CONTENT_W / 2] * 2)
        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
            ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("TEXTCOLOR", (0, 0), (-1, -1), self.theme.color("text_primary")),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ("TOPPADDING", (0, 0), (-1, -1), 6),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ("LEFTPADDING", (0, 0), (-1, -1), 6),
        ]))
        return table

    def _product_table(self, products: Sequence[Product]) -> Table:
        cell = self._styles["table_cell"]
        body = [
            [Paragraph(escape(row[0]), cell)] + row[1:]
            for row in product_rows(products)
        ]
        col_widths = [CONTENT_W * w for w in (0.27, 0.17, 0.15, 0.13, 0.11, 0.17)]
        table = Table([PRODUCT_TABLE_HEADER] + body, colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), self.theme.color("primary")),
            ("TEXTCOLOR", (0, 0), (-1, 0), self.theme.color("background")),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.Color(0.96, 0.96, 0.96)]),
            ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("TOPPADDING", (0, 0), (-1, -1), 4),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ]))
        return table

    # -- pages --------------------------------------------------------------

    def _page_title(self, canv, today: date) -> None:
        self._draw_header(canv, self.theme.report_title)
        canv.saveState()
        canv.setFont("Helvetica-Bold", 32)
        canv.setFillColor(self.theme.color("primary"))
        canv.drawCentredString(PAGE_W / 2, PAGE_H - 105 * mm, self.theme.headline)
        canv.setFont("Helvetica", 12)
        canv.setFillColor(self.theme.color("text_secondary"))
        canv.drawCentredString(PAGE_W / 2, PAGE_H - 120 * mm, f"Report Generated: {_long_date(today)}")
        canv.restoreState()
        canv.showPage()

    def _page_summary(self, canv, metrics: Metrics, content: ReportContent) -> None:
        cursor = self._new_page(canv, "Executive Summary & Key Insights")
        cursor = self.draw_section(canv, "Executive Summary", content.executive_summary, cursor)
        cursor = self.draw_section(canv, "AI-Generated KPI Analysis", content.kpi_analysis, cursor)
        self.draw_table(canv, self._summary_table(metrics), cursor)
        canv.showPage()

    def _page_visuals(self, canv, products: Sequence[Product]) -> None:
        cursor = self._new_page(canv, "Performance Visuals")

        cursor = self.draw_section(canv, "Top 5 Products by Weekly Profit", "", cursor)
        bar_spec = top_products_chart(products, self.theme, CONTENT_W, BAR_CHART_H)
        cursor = self.draw_chart(canv, bar_spec, MARGIN, cursor)

        cursor = self.draw_section(canv, "Category Revenue Analysis", "", cursor)
        doughnut_spec = category_chart(products, self.theme, DOUGHNUT_W, DOUGHNUT_H)
        if doughnut_spec is not None:
            self.draw_chart(canv, doughnut_spec, MARGIN, cursor)
        else:
            logger.info("No categorised revenue -- category chart skipped")
        canv.showPage()

    def _page_insights(self, canv, content: ReportContent) -> None:
        title = "AI-Generated Strategic Insights"
        cursor = self._new_page(canv, title)
        cursor = self.draw_section(canv, "Performance Highlights", content.performance_highlights, cursor)
        cursor = self.draw_section(canv, "Areas for Improvement", content.areas_for_improvement, cursor)
        cursor = self.draw_recommendations(canv, "Strategic Recommendations",
                                           content.strategic_recommendations, cursor)
        self._warn_if_overflowing(cursor, title)
        canv.showPage()

    def _page_product_table(self, canv, products: Sequence[Product]) -> None:
        """Product table, continued onto fresh pages (header row repeated) as it overflows."""
        title = "Detailed Product Performance Data"
        cursor = self._new_page(canv, title)
        pending = [self._product_table(products)]

        while pending:
            flowable = pending.pop(0)
            frame = Frame(MARGIN, CONTENT_BOTTOM, CONTENT_W, cursor.canvas_y - CONTENT_BOTTOM,
                          leftPadding=0, rightPadding=0, topPadding=0, bottomPadding=0)
            if frame.add(flowable, canv, trySplit=1):
                continue
            parts = frame.split(flowable, canv)
            if len(parts) < 2:
                raise LayoutError("Product table row too tall to fit on a page")
            frame.add(parts[0], canv)
            pending[:0] = parts[1:]
            canv.showPage()
            cursor = self._new_page(canv, title)

        canv.showPage()


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def save_report(
    pdf_bytes: bytes,
    output_dir: Union[str, Path],
    filename_template: str = "MSPCC_Report_{date}.pdf",
    today: Optional[date] = None,
) -> Path:
    """Write PDF bytes to `output_dir`, naming the file by date (YYYY-MM-DD)."""
    today = today or date.today()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / filename_template.format(date=today.isoformat())
    output_path.write_bytes(pdf_bytes)
    logger.info("PDF report saved to %s (%d bytes)", output_path, len(pdf_bytes))
    return output_path


def generate_pdf(
    report_data: ReportData,
    config_path: str = "config.yaml",
    today: Optional[date] = None,
) -> Path:
    """Assemble and write the weekly report PDF.

    Args:
        report_data: Metrics, narrative content and products.
        config_path: Path to configuration YAML.
        today: Report date (default: today).

    Returns:
        Path to the generated PDF file.
    """
    with open(config_path, "r") as fh:
        cfg = yaml.safe_load(fh)

    assembler = ReportAssembler.from_config(cfg)
    pdf_bytes = assembler.generate(report_data, today)

    paths = cfg.get("paths", {})
    return save_report(
        pdf_bytes,
        paths.get("output_dir", "data/output"),
        paths.get("pdf_filename", "MSPCC_Report_{date}.pdf"),
        today,
    )
