"""
charts.py — Chart specifications and matplotlib rasterisation.

A ChartSpec is a declarative description of one chart (kind, labelled
series, per-datum annotations, legend, colours, physical footprint). The
ChartRenderer turns a spec into PNG bytes:

    spec  →  off-screen Agg figure  →  savefig(BytesIO)  →  plt.close(fig)

`render()` returns only after the PNG is fully written, so the bytes it
hands back are always a finished drawing. No figure outlives the call.

The data-shaping helpers (top products, category revenue) live here too so
the PDF report and the HTML dashboard chart the same numbers.
"""

import io
import logging
from dataclasses import dataclass
from typing import Sequence

import matplotlib
matplotlib.use("Agg")  # non-interactive backend — no display needed
import matplotlib.pyplot as plt
import numpy as np

from mspcc_report.metrics import Product
from mspcc_report.narrative import _pct, _usd
from mspcc_report.theme import Theme

logger = logging.getLogger(__name__)

CHART_KINDS = ("bar", "doughnut")
TOP_N_PRODUCTS = 5


# ---------------------------------------------------------------------------
# Spec
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChartSpec:
    """One chart render request. Sizes are in PDF points."""
    kind: str
    labels: tuple
    values: tuple
    width: float
    height: float
    annotations: tuple = ()
    legend_labels: tuple = ()
    colors: tuple = ()
    edge_color: str = "#FFFFFF"

    def __post_init__(self):
        if self.kind not in CHART_KINDS:
            raise ValueError(f"Unsupported chart kind {self.kind!r}; expected one of {CHART_KINDS}")
        if len(self.labels) != len(self.values):
            raise ValueError("Chart labels and values must have the same length")


# ---------------------------------------------------------------------------
# Data shaping
# ---------------------------------------------------------------------------

def select_top_products(products: Sequence[Product], n: int = TOP_N_PRODUCTS) -> list[Product]:
    """Top `n` products by weekly profit, in display order.

    Sorted by descending profit (ties keep input order), truncated to `n`,
    then reversed: a horizontal bar chart draws index 0 at the bottom, so
    the most profitable product ends up last in the list and on top of
    the chart.
    """
    ranked = sorted(products, key=lambda p: p.weekly_profit, reverse=True)[:n]
    ranked.reverse()
    return ranked


def category_revenue(products: Sequence[Product]) -> dict[str, float]:
    """Sum weekly revenue per category, in first-seen order.

    Products without a category label or with zero revenue are skipped;
    categories whose total is not positive are dropped.
    """
    totals: dict[str, float] = {}
    for p in products:
        if p.category and p.weekly_revenue:
            totals[p.category] = totals.get(p.category, 0.0) + p.weekly_revenue
    return {name: value for name, value in totals.items() if value > 0}


def category_shares(totals: dict[str, float]) -> dict[str, float]:
    """Percentage share of each category in the categorised revenue total."""
    grand_total = sum(totals.values())
    if grand_total <= 0:
        return {name: 0.0 for name in totals}
    return {name: value / grand_total * 100 for name, value in totals.items()}


def top_products_chart(
    products: Sequence[Product],
    theme: Theme,
    width: float,
    height: float,
) -> ChartSpec:
    """Horizontal bar chart spec for the top products by weekly profit."""
    top = select_top_products(products)
    return ChartSpec(
        kind="bar",
        labels=tuple(f"{p.name} ({_pct(p.margin)})" for p in top),
        values=tuple(p.weekly_profit for p in top),
        annotations=tuple(
            f"{_usd(p.weekly_profit, grouped=True)} | Margin: {_pct(p.margin)}" for p in top
        ),
        colors=(theme.css("primary"),),
        edge_color=theme.css("accent"),
        width=width,
        height=height,
    )


def category_chart(
    products: Sequence[Product],
    theme: Theme,
    width: float,
    height: float,
):
    """Doughnut chart spec of revenue per category, or None when no category qualifies."""
    totals = category_revenue(products)
    if not totals:
        return None
    shares = category_shares(totals)
    return ChartSpec(
        kind="doughnut",
        labels=tuple(totals),
        values=tuple(totals.values()),
        legend_labels=tuple(f"{name} ({shares[name]:.1f}%)" for name in totals),
        annotations=tuple(
            f"{name}: {_usd(value, grouped=True)} ({shares[name]:.1f}%)"
            for name, value in totals.items()
        ),
        colors=tuple(theme.chart_palette),
        width=width,
        height=height,
    )


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class ChartRenderer:
    """Rasterise ChartSpecs to PNG with matplotlib.

    Args:
        dpi: Base resolution.
        scale: Resolution multiplier applied on top of `dpi` for print output.
    """

    def __init__(self, dpi: int = 96, scale: int = 3):
        self.dpi = dpi
        self.scale = scale

    def render(self, spec: ChartSpec) -> bytes:
        """Draw `spec` and return the finished PNG bytes."""
        fig = plt.figure(figsize=(spec.width / 72, spec.height / 72))
        try:
            fig.patch.set_facecolor("white")
            ax = fig.add_subplot(1, 1, 1)
            if spec.kind == "bar":
                self._draw_bar(ax, spec)
            else:
                self._draw_doughnut(ax, spec)
            fig.tight_layout()

            buf = io.BytesIO()
            fig.savefig(buf, format="png", dpi=self.dpi * self.scale,
                        facecolor=fig.get_facecolor())
        finally:
            plt.close(fig)

        png = buf.getvalue()
        logger.debug("Rendered %s chart: %d points, %d bytes", spec.kind, len(spec.values), len(png))
        return png

    @staticmethod
    def _draw_bar(ax, spec: ChartSpec) -> None:
        """Horizontal bars, one per label; index 0 at the bottom."""
        y = np.arange(len(spec.values))
        color = spec.colors[0] if spec.colors else "#0F2557"
        ax.barh(y, spec.values, height=0.6, color=color,
                edgecolor=spec.edge_color, linewidth=1, zorder=3)
        ax.set_yticks(y)
        ax.set_yticklabels(spec.labels, fontsize=8)

        for i, (value, note) in enumerate(zip(spec.values, spec.annotations)):
            ax.annotate(note, xy=(value, i), xytext=(4, 0), textcoords="offset points",
                        va="center", fontsize=7, color="#4B5563")

        ax.xaxis.set_major_formatter(plt.FuncFormatter(lambda v, _: f"${v:,.0f}"))
        ax.tick_params(axis="x", labelsize=8)
        ax.margins(x=0.25)
        ax.spines[["top", "right"]].set_visible(False)
        ax.grid(axis="x", color="#e0e0e0", zorder=0)

    @staticmethod
    def _draw_doughnut(ax, spec: ChartSpec) -> None:
        """Ring chart starting at 12 o'clock, clockwise, legend on the right."""
        palette = list(spec.colors) or ["#0F2557"]
        slice_colors = [palette[i % len(palette)] for i in range(len(spec.values))]
        wedges = ax.pie(
            spec.values,
            colors=slice_colors,
            startangle=90,
            counterclock=False,
            wedgeprops=dict(width=0.4, edgecolor="white"),
        )[0]
        ax.legend(wedges, spec.legend_labels or spec.labels,
                  loc="center left", bbox_to_anchor=(1.0, 0.5),
                  fontsize=8, frameon=False, handlelength=1.2)
        ax.set_aspect("equal")
