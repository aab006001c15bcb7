# src/charts/mapper.py

"""
Maps validated chart descriptions onto renderer-agnostic configurations.

The configuration reproduces the look of the frontend widgets (radar chart,
overall-result gauge, bar and pie charts) so exported images match what
users see in the app. Mapping is deterministic: the same description always
yields an equal ChartConfig.
"""

import math
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from src.charts.colors import (
    CATEGORY_COLORS,
    NEUTRAL_COLOR,
    category_color,
    palette_color,
    with_alpha,
)
from src.charts.models import (
    BarChartData,
    ChartDescription,
    GaugeChartData,
    PieChartData,
    RadarChartData,
)


DEFAULT_DIMENSIONS: Dict[str, Tuple[int, int]] = {
    "radar": (480, 480),
    "radialBar": (320, 240),
    "bar": (600, 400),
    "pie": (600, 400),
}

BACKGROUND_COLOR = "#ffffff"

# Radar widget palette
RADAR_FILL = "rgba(59, 130, 246, 0.4)"
RADAR_BORDER = "#2563eb"
RADAR_GRID = "rgba(100, 116, 139, 0.2)"
RADAR_POINT_LABEL = "#64748b"
RADAR_SCALE_MAX = 10.0
RADAR_SCALE_STEP = 2.0
RADAR_MAX_RINGS = 5
_NICE_FRACTIONS = (1.0, 2.0, 2.5, 5.0, 10.0)

# Gauge widget
GAUGE_TRACK = "#f1f5f9"
GAUGE_SWEEP = 180.0
GAUGE_ROTATION = 270.0
GAUGE_CUTOUT = 0.75
GAUGE_SCORE_COLOR = "#1f2937"

BAR_GRID = "rgba(0, 0, 0, 0.1)"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class SeriesStyle(_Frozen):
    fill_color: Optional[str] = None
    border_color: Optional[str] = None
    border_width: float = 0.0
    point_color: Optional[str] = None
    point_border_color: Optional[str] = None
    point_radius: float = 0.0
    fill: bool = False
    tension: float = 0.0


class SeriesConfig(_Frozen):
    label: str = ""
    values: List[float]
    colors: List[str] = []
    border_colors: List[str] = []
    style: SeriesStyle = SeriesStyle()


class RadialScale(_Frozen):
    min: float = 0.0
    max: float = RADAR_SCALE_MAX
    step: float = RADAR_SCALE_STEP
    show_ticks: bool = False
    grid_color: str = RADAR_GRID
    grid_width: float = 1.0
    angle_line_color: str = RADAR_GRID
    angle_line_width: float = 1.0
    point_label_color: str = RADAR_POINT_LABEL
    point_label_size: float = 12.0
    point_label_padding: float = 15.0


class AxisConfig(_Frozen):
    title: Optional[str] = None
    show_title: bool = False
    grid_color: str = BAR_GRID
    begin_at_zero: bool = True


class GaugeLayout(_Frozen):
    """
    Pixel layout of the half-doughnut gauge, in canvas coordinates (y grows down).

    The arc is a 180 degree sweep that starts at the left end and passes
    through the top. The centre text and badge are laid out around the
    canvas centre, not the ring centre.
    """

    percentage: float
    arc_values: List[float]
    arc_colors: List[str]
    sweep: float = GAUGE_SWEEP
    rotation: float = GAUGE_ROTATION
    cutout: float = GAUGE_CUTOUT
    ring_center_x: float
    ring_center_y: float
    outer_radius: float
    inner_radius: float
    text_center_x: float
    text_center_y: float
    score_text: str
    score_font_size: float = 32.0
    score_color: str = GAUGE_SCORE_COLOR
    score_y: float
    badge_label: str
    badge_color: str
    badge_text_color: str = "#ffffff"
    badge_font_size: float = 11.0
    badge_padding: float = 8.0
    badge_height: float = 20.0
    badge_y: float


class ChartConfig(_Frozen):
    kind: Literal["radar", "radialBar", "bar", "pie"]
    geometry: Literal["radial", "arc", "linear", "pie"]
    width: int
    height: int
    background: str = BACKGROUND_COLOR
    title: Optional[str] = None
    show_title: bool = False
    title_size: float = 16.0
    labels: List[str] = []
    series: List[SeriesConfig] = []
    show_legend: bool = False
    legend_position: Optional[Literal["top", "bottom"]] = None
    legend_labels: List[str] = []
    index_axis: Literal["x", "y"] = "x"
    x_axis: Optional[AxisConfig] = None
    y_axis: Optional[AxisConfig] = None
    radial_scale: Optional[RadialScale] = None
    gauge: Optional[GaugeLayout] = None


# ============================================================================
# HELPERS
# ============================================================================

def to_fixed(value: float, digits: int = 1) -> str:
    """
    Format like JavaScript's Number.toFixed: exact value, ties away from zero.

    Magnitudes of 1e21 and above use exponent notation, as toFixed does.
    """
    if abs(value) >= 1e21:
        return repr(float(value))

    exact = Decimal(value)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + digits + 2)
        return str(exact.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP))


def format_number(value: float) -> str:
    """Shortest plain text for a number, integers without a trailing .0"""
    if float(value).is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(float(value))


def resolve_dimensions(description: ChartDescription) -> Tuple[int, int]:
    default_width, default_height = DEFAULT_DIMENSIONS[description.kind]
    return (description.width or default_width, description.height or default_height)


def nice_step(raw: float) -> float:
    """Smallest 1, 2, 2.5 or 5 times a power of ten that is at least raw."""
    magnitude = 10.0 ** math.floor(math.log10(raw))
    fraction = raw / magnitude
    for nice in _NICE_FRACTIONS:
        if fraction <= nice:
            return nice * magnitude
    return 10.0 * magnitude


def radar_scale(data_max: float) -> Tuple[float, float]:
    """
    Upper bound and ring step of the radar scale.

    The widget's 0-10 scale in steps of 2 is kept unless a value would be
    clipped. Larger data gets a round step chosen so the scale never has
    more than RADAR_MAX_RINGS rings.
    """
    if data_max <= RADAR_SCALE_MAX:
        return RADAR_SCALE_MAX, RADAR_SCALE_STEP

    step = nice_step(data_max / RADAR_MAX_RINGS)
    scale_max = math.ceil(data_max / step) * step
    if not math.isfinite(scale_max):
        scale_max = data_max
    return scale_max, step


def gauge_percentage(score: float, max_score: float) -> float:
    """score / max_score as a percentage, clamped to [0, 100]."""
    return min(max(score / max_score * 100.0, 0.0), 100.0)


def gauge_geometry(width: float, height: float) -> Tuple[float, float, float]:
    """
    Centre and outer radius of a half ring fitted into a width x height canvas.

    The half ring's bounding box is twice as wide as it is tall, so the
    radius is limited by half the width or the full height. The ring centre
    sits on the box's bottom edge, half a radius below the canvas centre.
    """
    radius = max(min(width / 2.0, height), 0.0)
    return (width / 2.0, height / 2.0 + radius / 2.0, radius)


# ============================================================================
# PER-KIND MAPPERS
# ============================================================================

def _radar_series_style(label: str, index: int) -> SeriesStyle:
    if label in CATEGORY_COLORS:
        border = CATEGORY_COLORS[label]
        fill = with_alpha(border, 0.4)
    elif index == 0:
        border, fill = RADAR_BORDER, RADAR_FILL
    else:
        border, fill = NEUTRAL_COLOR, with_alpha(NEUTRAL_COLOR, 0.4)

    return SeriesStyle(
        fill_color=fill,
        border_color=border,
        border_width=2.0,
        point_color=border,
        point_border_color="#ffffff",
        point_radius=3.0,
        fill=True,
        tension=0.1,
    )


def map_radar(data: RadarChartData) -> ChartConfig:
    width, height = resolve_dimensions(data)

    series = [
        SeriesConfig(
            label=dataset.label,
            values=list(dataset.data),
            style=_radar_series_style(dataset.label, index),
        )
        for index, dataset in enumerate(data.datasets)
    ]

    data_max = max(max(dataset.data) for dataset in data.datasets)
    scale_max, scale_step = radar_scale(data_max)

    return ChartConfig(
        kind="radar",
        geometry="radial",
        width=width,
        height=height,
        title=data.title,
        labels=list(data.labels),
        series=series,
        radial_scale=RadialScale(max=scale_max, step=scale_step),
    )


def map_gauge(data: GaugeChartData) -> ChartConfig:
    width, height = resolve_dimensions(data)
    percentage = gauge_percentage(data.score, data.max_score)
    ring_x, ring_y, outer = gauge_geometry(width, height)
    text_x, text_y = width / 2.0, height / 2.0

    gauge = GaugeLayout(
        percentage=percentage,
        arc_values=[percentage, 100.0 - percentage],
        arc_colors=[data.category.color, GAUGE_TRACK],
        ring_center_x=ring_x,
        ring_center_y=ring_y,
        outer_radius=outer,
        inner_radius=outer * GAUGE_CUTOUT,
        text_center_x=text_x,
        text_center_y=text_y,
        score_text=to_fixed(data.score, 1),
        score_y=text_y - 15.0,
        badge_label=data.category.label,
        badge_color=data.category.color,
        badge_y=text_y + 20.0,
    )

    return ChartConfig(
        kind="radialBar",
        geometry="arc",
        width=width,
        height=height,
        title=data.title,
        series=[SeriesConfig(values=gauge.arc_values, colors=gauge.arc_colors)],
        gauge=gauge,
    )


def map_bar(data: BarChartData) -> ChartConfig:
    width, height = resolve_dimensions(data)
    colors = [category_color(item.name, item.color) for item in data.data]

    return ChartConfig(
        kind="bar",
        geometry="linear",
        width=width,
        height=height,
        title=data.title,
        show_title=bool(data.title),
        labels=[item.name for item in data.data],
        series=[
            SeriesConfig(
                values=[item.value for item in data.data],
                colors=colors,
                border_colors=colors,
                style=SeriesStyle(border_width=1.0),
            )
        ],
        # "vertical" follows the frontend's naming: categories on the y axis
        index_axis="y" if data.layout == "vertical" else "x",
        x_axis=AxisConfig(title=data.x_axis_label, show_title=bool(data.x_axis_label)),
        y_axis=AxisConfig(title=data.y_axis_label, show_title=bool(data.y_axis_label)),
    )


def map_pie(data: PieChartData) -> ChartConfig:
    width, height = resolve_dimensions(data)
    values = [item.value for item in data.data]
    total = sum(values)

    legend_labels = [
        f"{item.name}: {format_number(item.value)} ({to_fixed(item.value / total * 100.0, 1)}%)"
        for item in data.data
    ]

    return ChartConfig(
        kind="pie",
        geometry="pie",
        width=width,
        height=height,
        title=data.title,
        show_title=bool(data.title),
        labels=[item.name for item in data.data],
        series=[
            SeriesConfig(
                values=values,
                colors=[palette_color(item.name, index, item.color) for index, item in enumerate(data.data)],
                border_colors=["#ffffff"] * len(values),
                style=SeriesStyle(border_width=2.0),
            )
        ],
        show_legend=True,
        legend_position="bottom",
        legend_labels=legend_labels,
    )


MAPPERS = {
    "radar": map_radar,
    "radialBar": map_gauge,
    "bar": map_bar,
    "pie": map_pie,
}


def build_chart_config(description: ChartDescription) -> ChartConfig:
    """
    Translate a validated chart description into a ChartConfig.

    Args:
        description: Output of validate_chart_request

    Returns:
        Frozen, renderer-agnostic configuration
    """
    return MAPPERS[description.kind](description)
