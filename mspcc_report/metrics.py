"""
metrics.py — Weekly Product Metrics.

Holds the immutable input records every downstream module (PDF report,
dashboard, narrative fallback) reads from, plus the loader that turns a
product catalogue CSV into them.

    Product   — one catalogue line with its weekly sales figures
    Metrics   — headline KPIs for the week (totals, average margin, top product)

CSV columns expected by `load_products`:
    name, category, selling_price, unit_cost, units_sold_week
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("name", "category", "selling_price", "unit_cost", "units_sold_week")


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Product:
    """A product line with its weekly performance."""
    name: str
    category: Optional[str]
    selling_price: float
    units_sold_week: int
    margin: float           # percent, e.g. 34.5
    weekly_profit: float
    weekly_revenue: float


@dataclass(frozen=True)
class Metrics:
    """Headline KPIs for the reporting week."""
    total_weekly_profit: float
    total_weekly_revenue: float
    average_margin: float   # percent
    top_product_by_profit: Optional[Product] = None


# ---------------------------------------------------------------------------
# Derivations
# ---------------------------------------------------------------------------

def _margin_pct(selling_price: float, unit_cost: float) -> float:
    """Gross margin as a percentage of selling price (0 when price is 0)."""
    if selling_price == 0:
        return 0.0
    return (selling_price - unit_cost) / selling_price * 100


def _clean_category(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def products_from_frame(df: pd.DataFrame) -> list[Product]:
    """Convert a catalogue DataFrame into Product records, preserving row order.

    Args:
        df: DataFrame with the REQUIRED_COLUMNS.

    Returns:
        List of Product instances.

    Raises:
        ValueError: If a required column is missing.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Product data is missing columns: {', '.join(missing)}")

    products = []
    for row in df.itertuples(index=False):
        price = float(row.selling_price)
        cost = float(row.unit_cost)
        units = int(row.units_sold_week)
        products.append(Product(
            name=str(row.name),
            category=_clean_category(row.category),
            selling_price=price,
            units_sold_week=units,
            margin=_margin_pct(price, cost),
            weekly_profit=(price - cost) * units,
            weekly_revenue=price * units,
        ))
    return products


def load_products(csv_path: str) -> list[Product]:
    """Read the product catalogue CSV.

    Args:
        csv_path: Path to the catalogue file.

    Returns:
        Products in file order.
    """
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"Product file not found: {path}")
    df = pd.read_csv(path, dtype={"name": str, "category": str})
    products = products_from_frame(df)
    logger.info("Loaded %d products from %s", len(products), path)
    return products


def compute_metrics(products: Sequence[Product]) -> Metrics:
    """Compute the weekly headline KPIs.

    The average margin is the simple mean of product margins. The top
    product is the first one with the highest weekly profit.

    Args:
        products: Product records for the week.

    Returns:
        Metrics snapshot.
    """
    if not products:
        return Metrics(0.0, 0.0, 0.0, None)

    df = pd.DataFrame({
        "weekly_profit": [p.weekly_profit for p in products],
        "weekly_revenue": [p.weekly_revenue for p in products],
        "margin": [p.margin for p in products],
    })
    top_idx = int(df["weekly_profit"].idxmax())

    metrics = Metrics(
        total_weekly_profit=float(df["weekly_profit"].sum()),
        total_weekly_revenue=float(df["weekly_revenue"].sum()),
        average_margin=float(df["margin"].mean()),
        top_product_by_profit=products[top_idx],
    )
    logger.info(
        "Metrics computed -- profit: $%.2f | revenue: $%.2f | avg margin: %.1f%%",
        metrics.total_weekly_profit,
        metrics.total_weekly_revenue,
        metrics.average_margin,
    )
    return metrics
