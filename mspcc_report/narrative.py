"""
narrative.py — Report Narrative Content.

The prose on pages 2 and 4 of the report normally arrives pre-written (an
AI model produces it upstream and saves it as JSON). This module:

    1. Defines the ReportContent structure the PDF assembler lays out
    2. Loads it from a JSON or YAML file (camelCase or snake_case keys)
    3. Falls back to template-driven text resolved from the weekly metrics
       when no content file is available

It also hosts the currency / percentage formatting helpers shared by the
PDF builder and the dashboard.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

import yaml

from mspcc_report.metrics import Metrics, Product

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structure
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Recommendation:
    """One strategic recommendation with its expected impact and risk."""
    recommendation: str
    impact: str
    risk: str


@dataclass(frozen=True)
class ReportContent:
    """Pre-generated text for the narrative sections of the report."""
    executive_summary: str
    kpi_analysis: str
    performance_highlights: list[str] = field(default_factory=list)
    areas_for_improvement: list[str] = field(default_factory=list)
    strategic_recommendations: list[Recommendation] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def _usd(value: float, grouped: bool = False) -> str:
    """Format a dollar amount to 2 decimal places.

    Args:
        value: Raw float value in USD.
        grouped: Insert thousands separators ('$1,234.50' instead of '$1234.50').

    Returns:
        Formatted string. Negative values keep their sign after the '$'.
    """
    if grouped:
        abs_val = abs(value)
        sign = "-" if value < 0 else ""
        return f"{sign}${abs_val:,.2f}"
    return f"${value:.2f}"


def _pct(value: float, decimals: int = 1) -> str:
    """Format a value that is already a percentage ('34.5' → '34.5%')."""
    return f"{value:.{decimals}f}%"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

_KEY_ALIASES = {
    "executiveSummary": "executive_summary",
    "kpiAnalysis": "kpi_analysis",
    "performanceHighlights": "performance_highlights",
    "areasForImprovement": "areas_for_improvement",
    "strategicRecommendations": "strategic_recommendations",
}


def content_from_dict(raw: dict[str, Any]) -> ReportContent:
    """Build ReportContent from a parsed mapping.

    Args:
        raw: Mapping with camelCase or snake_case keys.

    Returns:
        ReportContent instance.

    Raises:
        ValueError: If the mapping is not a dict or a recommendation entry
            is missing one of its fields.
    """
    if not isinstance(raw, dict):
        raise ValueError("Report content must be a mapping of section name to text")

    data = {_KEY_ALIASES.get(k, k): v for k, v in raw.items()}

    recommendations = []
    for entry in data.get("strategic_recommendations") or []:
        try:
            recommendations.append(Recommendation(
                recommendation=str(entry["recommendation"]),
                impact=str(entry["impact"]),
                risk=str(entry["risk"]),
            ))
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed strategic recommendation: {entry!r}") from exc

    return ReportContent(
        executive_summary=str(data.get("executive_summary") or ""),
        kpi_analysis=str(data.get("kpi_analysis") or ""),
        performance_highlights=[str(s) for s in data.get("performance_highlights") or []],
        areas_for_improvement=[str(s) for s in data.get("areas_for_improvement") or []],
        strategic_recommendations=recommendations,
    )


def load_report_content(path: str) -> ReportContent:
    """Load narrative content from a .json, .yaml or .yml file.

    Args:
        path: Content file path.

    Returns:
        ReportContent instance.
    """
    content_path = Path(path)
    with open(content_path, "r", encoding="utf-8") as fh:
        if content_path.suffix.lower() == ".json":
            try:
                raw = json.load(fh)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON in {content_path}: {exc}") from exc
        else:
            raw = yaml.safe_load(fh)

    content = content_from_dict(raw)
    logger.info(
        "Loaded report content from %s -- %d highlights, %d recommendations",
        content_path,
        len(content.performance_highlights),
        len(content.strategic_recommendations),
    )
    return content


# ---------------------------------------------------------------------------
# Template fallback
# ---------------------------------------------------------------------------

def _load_templates(templates_dir: str = "templates") -> dict[str, Any]:
    """Load narrative templates from narrative.yaml.

    Args:
        templates_dir: Directory containing narrative.yaml.

    Returns:
        Parsed template dictionary.
    """
    path = Path(templates_dir) / "narrative.yaml"
    with open(path, "r") as fh:
        return yaml.safe_load(fh)


def _placeholders(metrics: Metrics, products: Sequence[Product]) -> dict[str, str]:
    top = metrics.top_product_by_profit
    categories = {p.category for p in products if p.category}
    low_margin = [p for p in products if p.margin < metrics.average_margin]
    return {
        "total_profit": _usd(metrics.total_weekly_profit, grouped=True),
        "total_revenue": _usd(metrics.total_weekly_revenue, grouped=True),
        "avg_margin": _pct(metrics.average_margin),
        "top_product": top.name if top else "N/A",
        "top_profit": _usd(top.weekly_profit if top else 0, grouped=True),
        "n_products": str(len(products)),
        "n_categories": str(len(categories)),
        "n_low_margin": str(len(low_margin)),
    }


def generate_report_content(
    metrics: Metrics,
    products: Sequence[Product],
    templates_dir: str = "templates",
) -> ReportContent:
    """Resolve the narrative templates against this week's metrics.

    Used when no AI-written content file exists. The margin band
    ('healthy' when the average margin reaches the template threshold,
    'thin' otherwise) picks the executive-summary variant.

    Args:
        metrics: Weekly Metrics.
        products: Product records for the week.
        templates_dir: Directory containing narrative.yaml.

    Returns:
        ReportContent with every section filled.
    """
    templates = _load_templates(templates_dir)
    values = _placeholders(metrics, products)

    summary_set = templates["executive_summary"]
    if not products:
        variant = "no_data"
    elif metrics.average_margin >= float(summary_set.get("healthy_margin_threshold", 30)):
        variant = "healthy"
    else:
        variant = "thin"

    def fill(text: str) -> str:
        return text.format(**values).strip()

    content = ReportContent(
        executive_summary=fill(summary_set[variant]),
        kpi_analysis=fill(templates["kpi_analysis"]),
        performance_highlights=[fill(t) for t in templates["performance_highlights"]],
        areas_for_improvement=[fill(t) for t in templates["areas_for_improvement"]],
        strategic_recommendations=[
            Recommendation(fill(r["recommendation"]), fill(r["impact"]), fill(r["risk"]))
            for r in templates["strategic_recommendations"]
        ],
    )
    logger.info("Template narrative generated (%s variant) -- summary: %d chars",
                variant, len(content.executive_summary))
    return content
