"""
theme.py — Report colour theme and branding.

A Theme is an immutable value handed to the PDF assembler, the chart
renderer and the dashboard, so several report styles can coexist in one
process. Colours are stored as bare hex strings ("0F2557"), as in config.yaml.
"""

from dataclasses import dataclass
from typing import Any

from reportlab.lib import colors

DEFAULT_PALETTE = ("0F2557", "4ECDC4", "4B8F8C", "5A6E8C", "2E4057", "93C5FD")


def _hex(h: str):
    """Convert a hex colour string to ReportLab Color."""
    h = h.lstrip("#")
    r, g, b = int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)
    return colors.Color(r / 255, g / 255, b / 255)


def _mpl_hex(h: str) -> str:
    """Return hex with # for matplotlib / HTML."""
    return f"#{h.lstrip('#')}"


def _config_colour(key: str, value: Any) -> str:
    """Validate a colour read from YAML.

    Unquoted all-digit values (000000, 112233) arrive as ints with their
    digits already mangled, so only strings are accepted.
    """
    if not isinstance(value, str):
        raise ValueError(f"Theme colour {key!r} must be a quoted hex string, got {value!r}")
    digits = value.lstrip("#")
    if len(digits) != 6 or any(c not in "0123456789abcdefABCDEF" for c in digits):
        raise ValueError(f"Theme colour {key!r} is not a 6-digit hex value: {value!r}")
    return digits


@dataclass(frozen=True)
class Theme:
    """Colours and fixed captions used across the report."""
    primary: str = "0F2557"
    secondary: str = "4B5563"
    accent: str = "4ECDC4"
    text_primary: str = "1F2937"
    text_secondary: str = "4B5563"
    background: str = "FFFFFF"
    profit: str = "10B981"
    palette: tuple = DEFAULT_PALETTE
    report_title: str = "MSPCC Executive Business Report"
    headline: str = "Weekly Performance Analysis"
    confidentiality: str = "MSPCC Analytical Dashboard | Confidential"

    def color(self, name: str):
        """ReportLab colour for a named theme slot."""
        return _hex(getattr(self, name))

    def css(self, name: str) -> str:
        """'#RRGGBB' string for a named theme slot."""
        return _mpl_hex(getattr(self, name))

    @property
    def chart_palette(self) -> list[str]:
        return [_mpl_hex(c) for c in self.palette]

    @classmethod
    def from_config(cls, cfg: dict[str, Any]) -> "Theme":
        """Build a Theme from the `report` block of config.yaml.

        Missing keys fall back to the defaults above.

        Raises:
            ValueError: If a colour is not a quoted 6-digit hex string.
        """
        report = cfg.get("report", {})
        theme_cfg = dict(report.get("theme", {}))
        branding = report.get("branding", {})

        kwargs: dict[str, Any] = {
            k: _config_colour(k, v) for k, v in theme_cfg.items()
            if k in cls.__dataclass_fields__ and k != "palette"
        }
        if theme_cfg.get("palette"):
            kwargs["palette"] = tuple(_config_colour("palette", c) for c in theme_cfg["palette"])
        for src_key, dst_key in (
            ("title", "report_title"),
            ("headline", "headline"),
            ("confidentiality", "confidentiality"),
        ):
            if branding.get(src_key):
                kwargs[dst_key] = branding[src_key]
        return cls(**kwargs)
