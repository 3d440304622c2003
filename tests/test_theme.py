"""
test_theme.py — Unit tests for building a Theme from config.yaml.
"""

import sys
from pathlib import Path

import pytest
import yaml

sys.path.insert(0, str(Path(__file__).parent.parent))

from mspcc_report.theme import Theme


class TestThemeFromConfig:
    """Tests for Theme.from_config."""

    def test_quoted_colours_and_branding(self):
        cfg = yaml.safe_load("""
report:
  branding:
    title: "Weekly Ops"
  theme:
    primary: "000000"
    accent: "#4ECDC4"
    palette: ["112233", "AABBCC"]
""")
        theme = Theme.from_config(cfg)
        assert theme.primary == "000000"
        assert theme.css("accent") == "#4ECDC4"
        assert theme.chart_palette == ["#112233", "#AABBCC"]
        assert theme.report_title == "Weekly Ops"
        assert theme.color("primary").red == 0

    def test_missing_block_uses_defaults(self):
        assert Theme.from_config({}) == Theme()

    def test_unquoted_numeric_colour_rejected(self):
        cfg = yaml.safe_load("report:\n  theme:\n    background: 000000\n")
        with pytest.raises(ValueError, match="quoted"):
            Theme.from_config(cfg)

    def test_unquoted_numeric_palette_entry_rejected(self):
        cfg = yaml.safe_load("report:\n  theme:\n    palette: [112233]\n")
        with pytest.raises(ValueError, match="palette"):
            Theme.from_config(cfg)

    def test_short_hex_rejected(self):
        with pytest.raises(ValueError, match="6-digit"):
            Theme.from_config({"report": {"theme": {"primary": "FFF"}}})
