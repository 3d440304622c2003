"""
dashboard.py — Interactive Plotly HTML Dashboard.

Generates a self-contained HTML page with the weekly headline numbers in
interactive form, next to the profit goal card. No server required.

Sections:
    Header KPI bar     — profit, revenue, average margin, top product
    Goal card          — weekly profit vs goal (GoalTrackerCard)
    Row 1:             — Top 5 products by profit (bar) | Category revenue (donut)

All charts use the theme colours from config.yaml.
"""

import logging
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Optional, Sequence

import plotly.graph_objects as go
import yaml

from mspcc_report.charts import category_revenue, category_shares, select_top_products
from mspcc_report.goal_tracker import GoalTrackerCard
from mspcc_report.metrics import Metrics, Product
from mspcc_report.narrative import _pct, _usd
from mspcc_report.theme import Theme

logger = logging.getLogger(__name__)

TEMPLATE = "plotly_white"


def _chart_top_products(products: Sequence[Product], theme: Theme) -> go.Figure:
    """Horizontal bar: top 5 products by weekly profit, best on top."""
    top = select_top_products(products)
    fig = go.Figure(go.Bar(
        x=[p.weekly_profit for p in top],
        y=[f"{p.name} ({_pct(p.margin)})" for p in top],
        orientation="h",
        marker=dict(color=theme.css("primary"), line=dict(color=theme.css("accent"), width=1)),
        customdata=[p.margin for p in top],
        hovertemplate="Weekly Profit: $%{x:,.2f}<br>Margin: %{customdata:.1f}%<extra></extra>",
    ))
    fig.update_layout(
        title=dict(text="Top 5 Products by Weekly Profit", font=dict(size=14, color=theme.css("primary"))),
        template=TEMPLATE,
        xaxis=dict(tickprefix="$", tickformat=",.0f"),
        height=360,
        margin=dict(l=50, r=30, t=60, b=40),
    )
    return fig


def _chart_category_revenue(products: Sequence[Product], theme: Theme) -> Optional[go.Figure]:
    """Donut: weekly revenue share per category (None when nothing is categorised)."""
    totals = category_revenue(products)
    if not totals:
        return None
    shares = category_shares(totals)
    fig = go.Figure(go.Pie(
        labels=[f"{name} ({shares[name]:.1f}%)" for name in totals],
        values=list(totals.values()),
        hole=0.6,
        sort=False,
        direction="clockwise",
        marker=dict(colors=theme.chart_palette),
        textinfo="none",
        hovertemplate="%{label}: $%{value:,.2f}<extra></extra>",
    ))
    fig.update_layout(
        title=dict(text="Category Revenue Analysis", font=dict(size=14, color=theme.css("primary"))),
        template=TEMPLATE,
        height=360,
        margin=dict(l=30, r=30, t=60, b=30),
    )
    return fig


def _build_kpi_header(metrics: Metrics, theme: Theme, title: str) -> str:
    """Generate the HTML KPI banner."""
    top = metrics.top_product_by_profit
    tiles = [
        ("Weekly Profit",  _usd(metrics.total_weekly_profit, grouped=True)),
        ("Weekly Revenue", _usd(metrics.total_weekly_revenue, grouped=True)),
        ("Avg Margin",     _pct(metrics.average_margin)),
        ("Top Product",    top.name if top else "N/A"),
    ]

    tile_html = ""
    for label, value in tiles:
        tile_html += f"""
        <div style="background:rgba(255,255,255,.12);color:#fff;border-radius:8px;padding:10px 16px;
                    min-width:130px;text-align:center;">
            <div style="font-size:10px;font-weight:600;letter-spacing:.8px;opacity:.85;">{label.upper()}</div>
            <div style="font-size:20px;font-weight:700;margin-top:2px;">{escape(value)}</div>
        </div>"""

    return f"""
    <div style="font-family:'Segoe UI',Arial,sans-serif;background:{theme.css('primary')};padding:20px 28px;">
        <h1 style="color:#fff;margin:0 0 3px;font-size:20px;">{escape(title)}</h1>
        <p style="color:rgba(255,255,255,.7);margin:0 0 14px;font-size:12px;">
            Generated: {datetime.today().strftime('%Y-%m-%d %H:%M')}
        </p>
        <div style="display:flex;gap:10px;flex-wrap:wrap;">{tile_html}</div>
    </div>"""


def build_dashboard_html(
    metrics: Metrics,
    products: Sequence[Product],
    profit_goal: float,
    theme: Optional[Theme] = None,
) -> str:
    """Assemble the dashboard page as an HTML string."""
    theme = theme or Theme()
    card = GoalTrackerCard(metrics.total_weekly_profit, profit_goal)

    chart_args = {"include_plotlyjs": False, "full_html": False}
    bar_div = _chart_top_products(products, theme).to_html(**chart_args)
    donut = _chart_category_revenue(products, theme)
    donut_div = (
        donut.to_html(**chart_args) if donut is not None
        else '<p class="empty">No categorised revenue this week.</p>'
    )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width,initial-scale=1.0">
    <title>{escape(theme.report_title)}</title>
    <script src="https://cdn.plot.ly/plotly-latest.min.js"></script>
    <style>
        *{{box-sizing:border-box;margin:0;padding:0;}}
        body{{font-family:'Segoe UI',Arial,sans-serif;background:#F4F7FA;}}
        .grid{{display:grid;grid-template-columns:1fr 1fr;gap:14px;padding:18px;}}
        .card{{background:#fff;border-radius:8px;padding:6px;
               box-shadow:0 2px 8px rgba(0,0,0,.07);}}
        .goal{{padding:18px 18px 0;max-width:420px;}}
        .empty{{padding:40px;color:#888;text-align:center;}}
        .footer{{text-align:center;padding:14px;color:#888;font-size:11px;}}
        @media(max-width:880px){{.grid{{grid-template-columns:1fr;}}}}
    </style>
</head>
<body>
    {_build_kpi_header(metrics, theme, theme.report_title)}
    <div class="goal">{card.to_html(theme)}</div>
    <div class="grid">
        <div class="card">{bar_div}</div>
        <div class="card">{donut_div}</div>
    </div>
    <div class="footer">{escape(theme.confidentiality)}</div>
</body>
</html>"""


def generate_dashboard(
    metrics: Metrics,
    products: Sequence[Product],
    profit_goal: Optional[float] = None,
    config_path: str = "config.yaml",
) -> Path:
    """Write the interactive HTML dashboard to disk.

    Args:
        metrics: Weekly Metrics.
        products: Product records for the week.
        profit_goal: Weekly profit goal (default: dashboard.profit_goal in config).
        config_path: Path to configuration YAML.

    Returns:
        Path to the generated .html file.
    """
    with open(config_path, "r") as fh:
        cfg = yaml.safe_load(fh)

    theme = Theme.from_config(cfg)
    if profit_goal is None:
        profit_goal = float(cfg.get("dashboard", {}).get("profit_goal", 0))

    paths = cfg.get("paths", {})
    output_dir = Path(paths.get("output_dir", "data/output"))
    output_dir.mkdir(parents=True, exist_ok=True)
    filename = paths.get("dashboard_filename", "MSPCC_Dashboard_{date}.html").format(
        date=datetime.today().strftime("%Y-%m-%d"))
    output_path = output_dir / filename

    logger.info("Building dashboard -- goal $%.2f", profit_goal)
    html = build_dashboard_html(metrics, products, profit_goal, theme)
    output_path.write_text(html, encoding="utf-8")
    logger.info("Dashboard saved to %s", output_path)
    return output_path
