# src/charts/renderer.py

import asyncio
import io
import logging
from typing import Any, Callable, Dict, List, Optional

import matplotlib
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.patches import Rectangle, Wedge
import numpy as np
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from src.charts.colors import parse_css_color
from src.charts.errors import ChartExportError, RenderError, UnsupportedChartTypeError
from src.charts.mapper import ChartConfig
from src.charts.models import RenderedImage
from src.utils.tracing import setup_logger_with_tracing, traced

LOGGER = setup_logger_with_tracing(__name__, logging.INFO, service_name="chart-renderer")

# Agg truncates the figure's pixel size, so width / dpi * dpi must never land
# just below the requested integer
_PIXEL_NUDGE = 1e-6


class RendererSetup(BaseModel):
    """One-time matplotlib setup handed to create_renderer()."""

    dpi: int = Field(default=100, gt=0)
    settle_seconds: float = Field(default=0.0, ge=0.0, le=5.0)
    rc_params: Dict[str, Any] = Field(default_factory=lambda: {
        "font.family": "sans-serif",
        "font.sans-serif": ["Arial", "Helvetica", "Liberation Sans", "DejaVu Sans"],
        "axes.unicode_minus": False,
    })

    def apply(self) -> None:
        matplotlib.rcParams.update(self.rc_params)


Painter = Callable[[Figure, ChartConfig], None]


class ChartRenderer:
    """
    Rasterises ChartConfig objects to PNG with matplotlib's Agg canvas.

    Every render gets its own Figure, so nothing is shared between requests
    and pyplot's global figure registry is never touched.
    """

    def __init__(self, setup: Optional[RendererSetup] = None):
        self.setup = setup or RendererSetup()
        self._painters: Dict[str, Painter] = {
            "radar": self._paint_radar,
            "radialBar": self._paint_gauge,
            "bar": self._paint_bar,
            "pie": self._paint_pie,
        }

    @property
    def supported_kinds(self) -> List[str]:
        return list(self._painters)

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    @traced("render_chart")
    async def render(self, config: ChartConfig) -> RenderedImage:
        """
        Render a chart configuration to a PNG of config.width x config.height pixels.

        Raises:
            UnsupportedChartTypeError: no painter for config.kind
            RenderError: matplotlib failed while drawing or encoding
        """
        painter = self._painters.get(config.kind)
        if painter is None:
            raise UnsupportedChartTypeError(config.kind, self.supported_kinds)

        LOGGER.info(f"Rendering {config.kind} chart ({config.width}x{config.height})")

        try:
            figure = await run_in_threadpool(self._draw, painter, config)

            # Drawing is synchronous, the awaited draw above is the completion signal.
            # The optional settle is a bounded fallback for slow font backends.
            if self.setup.settle_seconds > 0:
                await asyncio.sleep(self.setup.settle_seconds)

            data = await run_in_threadpool(self._encode, figure, config)
        except ChartExportError:
            raise
        except Exception as e:
            LOGGER.error(f"Failed to render {config.kind} chart: {e}", exc_info=True)
            raise RenderError(details=str(e)) from e

        LOGGER.info(f"Chart rendered: {config.kind}, {len(data)} bytes")
        return RenderedImage(data=data, width=config.width, height=config.height)

    # ========================================================================
    # FIGURE LIFECYCLE
    # ========================================================================

    def _new_figure(self, config: ChartConfig) -> Figure:
        dpi = self.setup.dpi
        figure = Figure(
            figsize=((config.width + _PIXEL_NUDGE) / dpi, (config.height + _PIXEL_NUDGE) / dpi),
            dpi=dpi,
            facecolor=parse_css_color(config.background),
        )
        FigureCanvasAgg(figure)
        return figure

    def _draw(self, painter: Painter, config: ChartConfig) -> Figure:
        figure = self._new_figure(config)
        painter(figure, config)
        figure.canvas.draw()
        return figure

    def _encode(self, figure: Figure, config: ChartConfig) -> bytes:
        buffer = io.BytesIO()
        figure.savefig(
            buffer,
            format="png",
            dpi=self.setup.dpi,
            facecolor=parse_css_color(config.background),
            metadata={"Software": None},
        )
        return buffer.getvalue()

    def _pt(self, pixels: float) -> float:
        """Convert canvas pixels into points at the renderer's dpi."""
        return pixels * 72.0 / self.setup.dpi

    # ========================================================================
    # PAINTERS
    # ========================================================================

    def _paint_radar(self, figure: Figure, config: ChartConfig) -> None:
        scale = config.radial_scale
        count = len(config.labels)
        angles = np.linspace(0, 2 * np.pi, count, endpoint=False)
        closed_angles = np.append(angles, angles[0])

        # Square plot area centred on the canvas, leaving room for the point labels
        side = min(config.width, config.height)
        margin = scale.point_label_padding + scale.point_label_size * 4
        size = max(side - 2 * margin, side * 0.3)
        rect = [
            (config.width - size) / 2 / config.width,
            (config.height - size) / 2 / config.height,
            size / config.width,
            size / config.height,
        ]
        ax = figure.add_axes(rect, projection="polar")
        ax.set_theta_offset(np.pi / 2)
        ax.set_theta_direction(-1)
        ax.set_ylim(scale.min, scale.max)
        ax.grid(False)
        ax.spines["polar"].set_visible(False)
        ax.set_facecolor("none")

        # Polygon grid and angle lines
        grid_color = parse_css_color(scale.grid_color)
        for radius in np.arange(scale.min + scale.step, scale.max + scale.step / 2, scale.step):
            ax.plot(closed_angles, [radius] * (count + 1), color=grid_color,
                    linewidth=self._pt(scale.grid_width), zorder=0)
        for angle in angles:
            ax.plot([angle, angle], [scale.min, scale.max], color=parse_css_color(scale.angle_line_color),
                    linewidth=self._pt(scale.angle_line_width), zorder=0)

        ax.set_yticks(np.arange(scale.min, scale.max + scale.step / 2, scale.step))
        if not scale.show_ticks:
            ax.set_yticklabels([])

        ax.set_xticks(angles)
        ax.set_xticklabels(config.labels, color=parse_css_color(scale.point_label_color),
                           fontsize=self._pt(scale.point_label_size))
        ax.tick_params(axis="x", pad=self._pt(scale.point_label_padding))

        for series in config.series:
            style = series.style
            values = list(series.values) + [series.values[0]]
            if style.fill and style.fill_color:
                ax.fill(closed_angles, values, color=parse_css_color(style.fill_color), zorder=1)
            ax.plot(closed_angles, values, color=parse_css_color(style.border_color),
                    linewidth=self._pt(style.border_width), zorder=2)
            if style.point_radius > 0:
                ax.scatter(
                    angles, series.values,
                    s=(self._pt(style.point_radius) * 2) ** 2,
                    color=parse_css_color(style.point_color),
                    edgecolors=parse_css_color(style.point_border_color),
                    linewidths=self._pt(1),
                    zorder=3,
                )

        if config.show_title and config.title:
            figure.suptitle(config.title, fontsize=self._pt(config.title_size), fontweight="bold")

    def _paint_gauge(self, figure: Figure, config: ChartConfig) -> None:
        gauge = config.gauge

        # Axes cover the whole canvas in pixel units, y growing downwards
        ax = figure.add_axes([0, 0, 1, 1])
        ax.set_xlim(0, config.width)
        ax.set_ylim(config.height, 0)
        ax.set_axis_off()

        # With y flipped, 180 degrees is the left end and 270 the top of the ring
        start = 180.0
        ring_width = gauge.outer_radius - gauge.inner_radius
        center = (gauge.ring_center_x, gauge.ring_center_y)

        theta = start
        for value, color in zip(gauge.arc_values, gauge.arc_colors):
            span = gauge.sweep * value / 100.0
            if span > 0:
                ax.add_patch(Wedge(center, gauge.outer_radius, theta, theta + span, width=ring_width,
                                   facecolor=parse_css_color(color), edgecolor="none", linewidth=0))
            theta += span

        ax.text(gauge.text_center_x, gauge.score_y, gauge.score_text,
                ha="center", va="center", fontsize=self._pt(gauge.score_font_size),
                fontweight="bold", color=parse_css_color(gauge.score_color), zorder=3)

        label = ax.text(gauge.text_center_x, gauge.badge_y + gauge.badge_height / 2, gauge.badge_label,
                        ha="center", va="center", fontsize=self._pt(gauge.badge_font_size),
                        fontweight="bold", color=parse_css_color(gauge.badge_text_color), zorder=3)

        # Badge rectangle hugs the measured label width plus padding on each side
        text_width = label.get_window_extent(renderer=figure.canvas.get_renderer()).width
        badge_width = text_width + 2 * gauge.badge_padding
        ax.add_patch(Rectangle((gauge.text_center_x - badge_width / 2, gauge.badge_y), badge_width,
                               gauge.badge_height, facecolor=parse_css_color(gauge.badge_color),
                               edgecolor="none", linewidth=0, zorder=2))

    def _paint_bar(self, figure: Figure, config: ChartConfig) -> None:
        ax = figure.add_subplot(111)
        series = config.series[0]
        positions = np.arange(len(config.labels))
        colors = [parse_css_color(c) for c in series.colors]
        borders = [parse_css_color(c) for c in series.border_colors]

        if config.index_axis == "x":
            ax.bar(positions, series.values, color=colors, edgecolor=borders,
                   linewidth=self._pt(series.style.border_width), zorder=2)
            ax.set_xticks(positions)
            ax.set_xticklabels(config.labels)
            if len(config.labels) > 6:
                for tick in ax.get_xticklabels():
                    tick.set_rotation(45)
                    tick.set_ha("right")
        else:
            ax.barh(positions, series.values, color=colors, edgecolor=borders,
                    linewidth=self._pt(series.style.border_width), zorder=2)
            ax.set_yticks(positions)
            ax.set_yticklabels(config.labels)
            # First category on top
            ax.invert_yaxis()

        for axis, setter in ((config.x_axis, ax.set_xlabel), (config.y_axis, ax.set_ylabel)):
            if axis is not None and axis.show_title:
                setter(axis.title, fontsize=self._pt(12))

        grid_color = parse_css_color(config.x_axis.grid_color if config.x_axis else "rgba(0, 0, 0, 0.1)")
        ax.grid(True, color=grid_color, zorder=0)
        ax.set_axisbelow(True)
        for side in ("top", "right"):
            ax.spines[side].set_visible(False)

        if config.show_title and config.title:
            ax.set_title(config.title, fontsize=self._pt(config.title_size), fontweight="bold", pad=self._pt(20))

        figure.tight_layout()

    def _paint_pie(self, figure: Figure, config: ChartConfig) -> None:
        ax = figure.add_subplot(111)
        series = config.series[0]

        wedges, _ = ax.pie(
            series.values,
            colors=[parse_css_color(c) for c in series.colors],
            startangle=90,
            counterclock=False,
            wedgeprops={
                "edgecolor": parse_css_color(series.border_colors[0]) if series.border_colors else "white",
                "linewidth": self._pt(series.style.border_width),
            },
        )
        ax.set_aspect("equal")

        if config.show_legend:
            ax.legend(
                wedges,
                config.legend_labels or config.labels,
                loc="upper center",
                bbox_to_anchor=(0.5, -0.02),
                ncol=min(len(wedges), 3),
                frameon=False,
                fontsize=self._pt(12),
            )

        if config.show_title and config.title:
            ax.set_title(config.title, fontsize=self._pt(config.title_size), fontweight="bold", pad=self._pt(20))

        figure.tight_layout()


def create_renderer(setup: Optional[RendererSetup] = None) -> ChartRenderer:
    """Apply the matplotlib setup once and build a renderer around it."""
    setup = setup or RendererSetup()
    setup.apply()
    LOGGER.info(f"Chart renderer ready (dpi={setup.dpi}, kinds=radar, radialBar, bar, pie)")
    return ChartRenderer(setup)
