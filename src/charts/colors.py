# src/charts/colors.py

import re
from typing import Optional, Tuple

from matplotlib import colors as mcolors


# Standard colors for the evaluation value categories
CATEGORY_COLORS = {
    "Inovação": "#3b82f6",
    "Colaboração": "#10b981",
    "Excelência": "#f59e0b",
    "Integridade": "#ef4444",
    "Sustentabilidade": "#8b5cf6",
    "Liderança": "#06b6d4",
    "Responsabilidade": "#84cc16",
    "Transparência": "#f97316"
}

NEUTRAL_COLOR = "#6b7280"

# Index palette for pie slices without an explicit or category color
DEFAULT_PALETTE = [
    "#3b82f6", "#10b981", "#f59e0b", "#ef4444",
    "#8b5cf6", "#06b6d4", "#84cc16", "#f97316"
]

RGBA = Tuple[float, float, float, float]

_FUNCTIONAL = re.compile(r"^rgba?\(\s*([^)]*)\)$", re.IGNORECASE)


def _channel(raw: str) -> float:
    raw = raw.strip()
    if raw.endswith("%"):
        value = float(raw[:-1]) / 100.0
    else:
        value = float(raw) / 255.0
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"color channel out of range: {raw}")
    return value


def parse_css_color(value: str) -> RGBA:
    """
    Convert a CSS color string into an RGBA tuple of floats in [0, 1].

    Accepts hex (#rgb, #rgba, #rrggbb, #rrggbbaa), rgb()/rgba() and any
    named color matplotlib knows about. Raises ValueError otherwise.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("color must be a non-empty string")

    text = value.strip()
    match = _FUNCTIONAL.match(text)
    if match:
        parts = [p for p in match.group(1).split(",")]
        if len(parts) not in (3, 4):
            raise ValueError(f"invalid color: {value}")
        r, g, b = (_channel(p) for p in parts[:3])
        alpha = float(parts[3]) if len(parts) == 4 else 1.0
        if not 0.0 <= alpha <= 1.0:
            raise ValueError(f"invalid alpha in color: {value}")
        return (r, g, b, alpha)

    if text.startswith("#") and len(text) in (4, 5):
        # Short hex, expand each digit
        text = "#" + "".join(ch * 2 for ch in text[1:])

    try:
        return tuple(mcolors.to_rgba(text))
    except ValueError as e:
        raise ValueError(f"invalid color: {value}") from e


def is_valid_color(value) -> bool:
    try:
        parse_css_color(value)
    except (ValueError, TypeError):
        return False
    return True


def with_alpha(value: str, alpha: float) -> str:
    """Return value as an rgba() string with the given opacity."""
    r, g, b, _ = parse_css_color(value)
    return f"rgba({round(r * 255)}, {round(g * 255)}, {round(b * 255)}, {alpha})"


def category_color(name: str, explicit: Optional[str] = None) -> str:
    """Explicit color first, then the category table, then the neutral fallback."""
    if explicit:
        return explicit
    return CATEGORY_COLORS.get(name, NEUTRAL_COLOR)


def palette_color(name: str, index: int, explicit: Optional[str] = None) -> str:
    if explicit:
        return explicit
    if name in CATEGORY_COLORS:
        return CATEGORY_COLORS[name]
    return DEFAULT_PALETTE[index % len(DEFAULT_PALETTE)]
