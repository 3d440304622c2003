"""
test_charts.py — Unit tests for chart data shaping and rasterisation.

Tests cover:
    - Top-5 product selection and display order
    - Category revenue aggregation, exclusions and percentage shares
    - ChartSpec construction and validation
    - ChartRenderer PNG output and figure cleanup
"""

import sys
from pathlib import Path

import matplotlib.pyplot as plt
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from mspcc_report.charts import (
    ChartRenderer,
    ChartSpec,
    category_chart,
    category_revenue,
    category_shares,
    select_top_products,
    top_products_chart,
)
from mspcc_report.metrics import Product
from mspcc_report.theme import Theme


def _product(name, profit=10.0, category="A", revenue=100.0, margin=25.0):
    return Product(name, category, 10.0, 10, margin, profit, revenue)


# ---------------------------------------------------------------------------
# Top products
# ---------------------------------------------------------------------------

class TestSelectTopProducts:
    """Tests for select_top_products."""

    def test_at_most_five(self):
        products = [_product(f"P{i}", profit=float(i)) for i in range(9)]
        assert len(select_top_products(products)) == 5

    def test_highest_profit_is_last(self):
        products = [_product("Low", 1.0), _product("High", 99.0), _product("Mid", 50.0)]
        assert [p.name for p in select_top_products(products)] == ["Low", "Mid", "High"]

    def test_selects_highest_five(self):
        products = [_product(f"P{i}", profit=float(i)) for i in range(8)]
        names = {p.name for p in select_top_products(products)}
        assert names == {"P3", "P4", "P5", "P6", "P7"}

    def test_fewer_than_five(self):
        assert len(select_top_products([_product("Only")])) == 1

    def test_empty(self):
        assert select_top_products([]) == []

    def test_ties_keep_input_order_before_reversal(self):
        products = [_product("First", 5.0), _product("Second", 5.0)]
        assert [p.name for p in select_top_products(products)] == ["Second", "First"]


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

class TestCategoryRevenue:
    """Tests for category_revenue / category_shares."""

    def test_sums_per_category_in_first_seen_order(self):
        products = [
            _product("a", category="Snacks", revenue=10.0),
            _product("b", category="Bakery", revenue=5.0),
            _product("c", category="Snacks", revenue=15.0),
        ]
        assert category_revenue(products) == {"Snacks": 25.0, "Bakery": 5.0}

    def test_excludes_uncategorised_and_zero_revenue(self):
        products = [
            _product("a", category=None, revenue=10.0),
            _product("b", category="Empty", revenue=0.0),
            _product("c", category="Real", revenue=3.0),
        ]
        assert category_revenue(products) == {"Real": 3.0}

    def test_drops_non_positive_totals(self):
        products = [
            _product("a", category="Refunds", revenue=-20.0),
            _product("b", category="Sales", revenue=20.0),
        ]
        assert category_revenue(products) == {"Sales": 20.0}

    def test_shares_sum_to_100(self):
        shares = category_shares({"A": 1.0, "B": 2.0, "C": 3.5})
        assert sum(shares.values()) == pytest.approx(100.0)
        assert shares["B"] == pytest.approx(2.0 / 6.5 * 100)


# ---------------------------------------------------------------------------
# Specs
# ---------------------------------------------------------------------------

class TestChartSpecs:
    """Tests for ChartSpec construction helpers."""

    def test_bar_labels_and_annotations(self):
        spec = top_products_chart([_product("Latte", profit=1234.5, margin=12.34)], Theme(), 300, 200)
        assert spec.kind == "bar"
        assert spec.labels == ("Latte (12.3%)",)
        assert spec.values == (1234.5,)
        assert spec.annotations == ("$1,234.50 | Margin: 12.3%",)

    def test_category_chart_legend_percentages(self):
        products = [
            _product("a", category="X", revenue=75.0),
            _product("b", category="Y", revenue=25.0),
        ]
        spec = category_chart(products, Theme(), 300, 250)
        assert spec.kind == "doughnut"
        assert spec.legend_labels == ("X (75.0%)", "Y (25.0%)")

    def test_category_chart_none_without_categories(self):
        assert category_chart([_product("a", category=None)], Theme(), 300, 250) is None

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            ChartSpec(kind="radar", labels=(), values=(), width=10, height=10)

    def test_mismatched_series_rejected(self):
        with pytest.raises(ValueError):
            ChartSpec(kind="bar", labels=("a",), values=(), width=10, height=10)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class TestChartRenderer:
    """Tests for ChartRenderer.render."""

    PNG_MAGIC = b"\x89PNG\r\n\x1a\n"

    def _renderer(self):
        return ChartRenderer(dpi=40, scale=1)

    def test_bar_chart_png(self):
        products = [_product(f"P{i}", profit=float(i * 10)) for i in range(6)]
        png = self._renderer().render(top_products_chart(products, Theme(), 300, 200))
        assert png.startswith(self.PNG_MAGIC)

    def test_empty_bar_chart_still_renders(self):
        png = self._renderer().render(top_products_chart([], Theme(), 300, 200))
        assert png.startswith(self.PNG_MAGIC)

    def test_doughnut_png(self):
        products = [_product("a", category="X"), _product("b", category="Y")]
        png = self._renderer().render(category_chart(products, Theme(), 300, 250))
        assert png.startswith(self.PNG_MAGIC)

    def test_figures_released_after_render(self):
        plt.close("all")
        self._renderer().render(top_products_chart([_product("a")], Theme(), 300, 200))
        assert plt.get_fignums() == []

    def test_scale_multiplies_pixel_size(self):
        # 144 x 72 pt footprint = 2 x 1 inch
        spec = top_products_chart([_product("a")], Theme(), 144, 72)
        small = ChartRenderer(dpi=40, scale=1).render(spec)
        large = ChartRenderer(dpi=40, scale=3).render(spec)
        width = lambda png: int.from_bytes(png[16:20], "big")
        assert width(small) == 80
        assert width(large) == 240
