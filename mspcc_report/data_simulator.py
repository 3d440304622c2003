"""
data_simulator.py — Synthetic Product Catalogue Generator.

Generates a week of product sales that mirrors what a shop owner would
export from their point-of-sale system before building the report:

    products.csv — name, category, selling_price, unit_cost, units_sold_week

The catalogue has:
    - Category-specific price levels (household lines cost more than snacks)
    - Margins drawn per product from the configured range
    - A share of uncategorised lines (they drop out of category analysis)
    - One deliberately loss-making line so margin commentary has something to say
"""

import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import yaml

logger = logging.getLogger(__name__)

_PRODUCT_NOUNS = {
    "Beverages": ["Cold Brew", "Sparkling Water", "Green Tea", "Orange Juice", "Energy Drink"],
    "Bakery": ["Sourdough Loaf", "Croissant", "Bagel Pack", "Rye Bread", "Muffin"],
    "Snacks": ["Sea Salt Crisps", "Trail Mix", "Protein Bar", "Rice Crackers", "Popcorn"],
    "Household": ["Dish Soap", "Laundry Pods", "Paper Towels", "Bin Liners", "Sponges"],
    "Personal Care": ["Hand Cream", "Shampoo", "Toothpaste", "Lip Balm", "Body Wash"],
}
_CATEGORY_PRICE_FACTOR = {
    "Beverages": 0.6,
    "Bakery": 0.5,
    "Snacks": 0.4,
    "Household": 1.3,
    "Personal Care": 1.1,
}


def _load_config(config_path: str = "config.yaml") -> dict[str, Any]:
    with open(config_path, "r") as fh:
        return yaml.safe_load(fh)


def _product_name(category: str, index: int) -> str:
    nouns = _PRODUCT_NOUNS.get(category, ["Item"])
    return f"{nouns[index % len(nouns)]} {index // len(nouns) + 1}"


def _generate_catalogue(sim: dict[str, Any], rng: np.random.Generator) -> pd.DataFrame:
    """Draw one row per product.

    Args:
        sim: `data_simulation` block of the config.
        rng: Seeded NumPy random generator.

    Returns:
        DataFrame with columns:
            name, category, selling_price, unit_cost, units_sold_week
    """
    n = int(sim["n_products"])
    categories = list(sim["categories"])
    low_price, high_price = sim["price_range"]
    low_margin, high_margin = sim["margin_range"]
    low_units, high_units = sim["units_range"]
    uncategorised = float(sim.get("uncategorised_share", 0.0))

    counters: dict[str, int] = {}
    records = []
    for i in range(n):
        category = categories[i % len(categories)]
        factor = _CATEGORY_PRICE_FACTOR.get(category, 1.0)
        price = float(np.clip(rng.uniform(low_price, high_price) * factor, low_price, high_price))
        margin = float(rng.uniform(low_margin, high_margin))
        units = int(rng.integers(low_units, high_units + 1))

        idx = counters.get(category, 0)
        counters[category] = idx + 1
        records.append({
            "name": _product_name(category, idx),
            "category": "" if rng.random() < uncategorised else category,
            "selling_price": round(price, 2),
            "unit_cost": round(price * (1 - margin), 2),
            "units_sold_week": units,
        })

    # Injected loss-maker
    if records:
        loss = records[-1]
        loss["unit_cost"] = round(loss["selling_price"] * 1.08, 2)

    logger.info("Generated product catalogue: %d products", len(records))
    return pd.DataFrame(records)


def generate_products(config_path: str = "config.yaml") -> pd.DataFrame:
    """Generate the synthetic catalogue and write it to paths.products_file.

    Args:
        config_path: Path to configuration YAML.

    Returns:
        The generated DataFrame.
    """
    cfg = _load_config(config_path)
    sim = cfg["data_simulation"]
    seed = sim["seed"]
    rng = np.random.default_rng(seed)

    logger.info("Starting catalogue generation (seed=%d)", seed)
    df = _generate_catalogue(sim, rng)

    path = Path(cfg["paths"]["products_file"])
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    logger.info("Written products: %d rows -> %s", len(df), path)
    return df
