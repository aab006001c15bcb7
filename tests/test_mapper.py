# tests/test_mapper.py

import pytest

from src.charts.colors import CATEGORY_COLORS, DEFAULT_PALETTE, NEUTRAL_COLOR
from src.charts.mapper import (
    GAUGE_TRACK,
    RADAR_BORDER,
    RADAR_FILL,
    build_chart_config,
    format_number,
    gauge_geometry,
    gauge_percentage,
    nice_step,
    to_fixed,
)
from src.charts.validation import validate_chart_request


def _config(chart_type, chart_data):
    return build_chart_config(validate_chart_request(chart_type, chart_data))


@pytest.fixture
def gauge_data():
    return {"score": 7.5, "maxScore": 10, "category": {"label": "Good", "color": "#3b82f6"}}


@pytest.fixture
def radar_data():
    return {
        "labels": ["Inovação", "Colaboração", "Excelência"],
        "datasets": [{"label": "Desempenho", "data": [8, 6.5, 9]}]
    }


class TestHelpers:
    """Test number formatting and gauge math"""

    @pytest.mark.parametrize("value,expected", [
        (7.5, "7.5"),
        (7, "7.0"),
        (0.25, "0.3"),
        (0.35, "0.3"),
        (8.05, "8.1"),
        (33.333333, "33.3"),
    ])
    def test_to_fixed_one_digit(self, value, expected):
        """Test one-decimal formatting follows the exact binary value"""
        assert to_fixed(value, 1) == expected

    @pytest.mark.parametrize("value,expected", [
        (1e27, "1e+27"),
        (-1.5e21, "-1.5e+21"),
        (1e20, "100000000000000000000.0"),
    ])
    def test_to_fixed_large_magnitudes(self, value, expected):
        """Test very large scores format without a decimal context error"""
        assert to_fixed(value, 1) == expected

    @pytest.mark.parametrize("raw,expected", [
        (0.3, 0.5),
        (2.6, 5.0),
        (4000, 5000.0),
        (200000, 200000.0),
        (7, 10.0),
    ])
    def test_nice_step(self, raw, expected):
        """Test steps round up to 1, 2, 2.5 or 5 times a power of ten"""
        assert nice_step(raw) == pytest.approx(expected)

    def test_format_number(self):
        """Test integers drop the trailing .0"""
        assert format_number(3.0) == "3"
        assert format_number(2.5) == "2.5"

    @pytest.mark.parametrize("score,max_score,expected", [
        (7.5, 10, 75.0),
        (0, 10, 0.0),
        (12, 10, 100.0),
        (-3, 10, 0.0),
    ])
    def test_gauge_percentage_is_clamped(self, score, max_score, expected):
        """Test percentage stays within [0, 100]"""
        assert gauge_percentage(score, max_score) == pytest.approx(expected)

    def test_gauge_geometry_default_canvas(self):
        """Test the half ring fills a 320x240 canvas"""
        assert gauge_geometry(320, 240) == (160.0, 200.0, 160.0)

    def test_gauge_geometry_tall_canvas(self):
        """Test a narrow canvas limits the radius by width"""
        center_x, center_y, radius = gauge_geometry(200, 400)

        assert radius == 100.0
        assert center_x == 100.0
        assert center_y == 250.0


class TestGaugeMapping:
    """Test radialBar configuration"""

    def test_arc_values(self, gauge_data):
        """Test the arc splits into score and track"""
        config = _config("radialBar", gauge_data)

        assert config.geometry == "arc"
        assert config.gauge.percentage == pytest.approx(75.0)
        assert config.gauge.arc_values == pytest.approx([75.0, 25.0])
        assert config.gauge.arc_colors == ["#3b82f6", GAUGE_TRACK]
        assert config.gauge.sweep == 180.0
        assert config.gauge.cutout == 0.75

    def test_layout_on_default_canvas(self, gauge_data):
        """Test ring, score text and badge positions"""
        config = _config("radialBar", gauge_data)
        gauge = config.gauge

        assert (config.width, config.height) == (320, 240)
        assert gauge.ring_center_x == 160.0
        assert gauge.ring_center_y == 200.0
        assert gauge.outer_radius == 160.0
        assert gauge.inner_radius == 120.0
        assert gauge.score_y == 105.0
        assert gauge.badge_y == 140.0

    def test_score_text_and_badge(self, gauge_data):
        """Test the centre shows the score and the category badge"""
        gauge = _config("radialBar", gauge_data).gauge

        assert gauge.score_text == "7.5"
        assert gauge.badge_label == "Good"
        assert gauge.badge_color == "#3b82f6"

    def test_overflowing_score(self, gauge_data):
        """Test a score above maxScore fills the arc"""
        gauge_data["score"] = 15
        gauge = _config("radialBar", gauge_data).gauge

        assert gauge.arc_values == pytest.approx([100.0, 0.0])
        assert gauge.score_text == "15.0"

    def test_huge_score(self, gauge_data):
        """Test a score far beyond maxScore still maps"""
        gauge_data["score"] = 1e27
        gauge = _config("radialBar", gauge_data).gauge

        assert gauge.score_text == "1e+27"
        assert gauge.percentage == 100.0

    def test_title_not_drawn(self, gauge_data):
        """Test gauge titles are kept but not shown"""
        gauge_data["title"] = "Resultado"
        config = _config("radialBar", gauge_data)

        assert config.title == "Resultado"
        assert config.show_title is False


class TestRadarMapping:
    """Test radar configuration"""

    def test_default_style(self, radar_data):
        """Test a single dataset gets the widget blue"""
        config = _config("radar", radar_data)
        style = config.series[0].style

        assert config.geometry == "radial"
        assert (config.width, config.height) == (480, 480)
        assert style.border_color == RADAR_BORDER
        assert style.fill_color == RADAR_FILL
        assert style.fill is True

    def test_scale(self, radar_data):
        """Test the 0-10 scale with hidden ticks"""
        scale = _config("radar", radar_data).radial_scale

        assert (scale.min, scale.max, scale.step) == (0.0, 10.0, 2.0)
        assert scale.show_ticks is False

    def test_scale_grows_with_data(self, radar_data):
        """Test values above 10 raise the scale to the next step"""
        radar_data["datasets"][0]["data"] = [8, 13, 9]
        scale = _config("radar", radar_data).radial_scale

        assert (scale.max, scale.step) == (15.0, 5.0)

    @pytest.mark.parametrize("value,expected_max,expected_step", [
        (20000, 20000.0, 5000.0),
        (1e6, 1e6, 2e5),
    ])
    def test_large_values_keep_few_rings(self, radar_data, value, expected_max, expected_step):
        """Test the ring count stays bounded however large the data is"""
        radar_data["datasets"][0]["data"] = [1, value, 3]
        scale = _config("radar", radar_data).radial_scale

        assert scale.max == pytest.approx(expected_max)
        assert scale.step == pytest.approx(expected_step)
        assert scale.max / scale.step <= 5 + 1e-9

    def test_extreme_value_scale(self, radar_data):
        """Test near-float-limit values still give a finite, coarse scale"""
        radar_data["datasets"][0]["data"] = [1, 1e300, 3]
        scale = _config("radar", radar_data).radial_scale

        assert scale.max >= 1e300 * (1 - 1e-9)
        assert scale.max / scale.step <= 5 + 1e-9

    def test_category_and_neutral_series(self, radar_data):
        """Test named categories use their color, others fall back to neutral"""
        radar_data["datasets"] = [
            {"label": "Desempenho", "data": [1, 2, 3]},
            {"label": "Inovação", "data": [3, 2, 1]},
            {"label": "Outro", "data": [2, 2, 2]},
        ]
        series = _config("radar", radar_data).series

        assert series[1].style.border_color == CATEGORY_COLORS["Inovação"]
        assert series[1].style.fill_color == "rgba(59, 130, 246, 0.4)"
        assert series[2].style.border_color == NEUTRAL_COLOR


class TestSeriesMapping:
    """Test bar and pie configuration"""

    def test_bar_colors(self):
        """Test explicit, category and neutral colors"""
        config = _config("bar", {"data": [
            {"name": "A", "value": 1, "color": "#123456"},
            {"name": "Integridade", "value": 2},
            {"name": "Outro", "value": 3},
        ]})

        assert config.series[0].colors == ["#123456", CATEGORY_COLORS["Integridade"], NEUTRAL_COLOR]
        assert config.labels == ["A", "Integridade", "Outro"]

    def test_bar_layout(self):
        """Test the vertical layout puts categories on the y axis"""
        horizontal = _config("bar", {"data": [{"name": "A", "value": 1}]})
        vertical = _config("bar", {"data": [{"name": "A", "value": 1}], "layout": "vertical"})

        assert horizontal.index_axis == "x"
        assert vertical.index_axis == "y"

    def test_bar_title_and_axes(self):
        """Test titles and axis labels are shown when given"""
        config = _config("bar", {
            "data": [{"name": "A", "value": 1}],
            "title": "Vendas",
            "xAxisLabel": "Mês",
        })

        assert config.show_title is True
        assert config.x_axis.title == "Mês"
        assert config.x_axis.show_title is True
        assert config.y_axis.show_title is False

    def test_dimension_override(self):
        """Test width and height override the defaults"""
        config = _config("bar", {"data": [{"name": "A", "value": 1}], "width": 800, "height": 300})

        assert (config.width, config.height) == (800, 300)

    def test_pie_legend(self):
        """Test legend entries carry value and share"""
        config = _config("pie", {"data": [{"name": "A", "value": 1}, {"name": "B", "value": 3}]})

        assert config.show_legend is True
        assert config.legend_position == "bottom"
        assert config.legend_labels == ["A: 1 (25.0%)", "B: 3 (75.0%)"]

    def test_pie_palette(self):
        """Test slices without a color take the palette by position"""
        config = _config("pie", {"data": [
            {"name": "A", "value": 1},
            {"name": "B", "value": 1, "color": "#000000"},
            {"name": "C", "value": 1},
        ]})

        assert config.series[0].colors == [DEFAULT_PALETTE[0], "#000000", DEFAULT_PALETTE[2]]


class TestDeterminism:
    """Test equal input gives equal configuration"""

    @pytest.mark.parametrize("chart_type,chart_data", [
        ("radar", {"labels": ["a", "b", "c"], "datasets": [{"label": "x", "data": [1, 2, 3]}]}),
        ("radialBar", {"score": 3, "maxScore": 5, "category": {"label": "Ok", "color": "orange"}}),
        ("bar", {"data": [{"name": "A", "value": 1}]}),
        ("pie", {"data": [{"name": "A", "value": 1}, {"name": "B", "value": 2}]}),
    ])
    def test_same_config(self, chart_type, chart_data):
        """Test mapping twice yields equal configs"""
        assert _config(chart_type, chart_data) == _config(chart_type, chart_data)


if __name__ == "__main__":
    pytest.main([__file__, "-v", "-s"])
