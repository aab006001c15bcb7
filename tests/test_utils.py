# tests/test_utils.py

import logging

import pytest

from src.charts.colors import (
    NEUTRAL_COLOR,
    category_color,
    is_valid_color,
    parse_css_color,
    with_alpha,
)
from src.utils.config import DEVELOPMENT_ORIGINS, PRODUCTION_ORIGINS, Settings
from src.utils.logging import ColoredFormatter, level_from_name


ENV_VARS = ["APP_ENV", "NODE_ENV", "CORS_ORIGINS", "PORT", "RENDER_SETTLE_SECONDS", "LOG_LEVEL"]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Test environment-driven settings"""

    def test_defaults(self, clean_env):
        """Test development defaults"""
        settings = Settings.from_env()

        assert settings.environment == "development"
        assert settings.is_development
        assert settings.port == 3000
        assert settings.cors_origins == DEVELOPMENT_ORIGINS
        assert settings.render_settle_seconds == 0.0

    def test_production_origins(self, clean_env):
        """Test production switches the allow-list"""
        clean_env.setenv("APP_ENV", "production")

        settings = Settings.from_env()

        assert settings.is_production
        assert settings.cors_origins == PRODUCTION_ORIGINS

    def test_node_env_fallback(self, clean_env):
        """Test NODE_ENV is read when APP_ENV is unset"""
        clean_env.setenv("NODE_ENV", "production")

        assert Settings.from_env().environment == "production"

    def test_explicit_origins(self, clean_env):
        """Test CORS_ORIGINS overrides both lists"""
        clean_env.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")

        assert Settings.from_env().cors_origins == ["https://a.example.com", "https://b.example.com"]

    def test_settle_is_bounded(self, clean_env):
        """Test the settle delay cannot exceed five seconds"""
        clean_env.setenv("RENDER_SETTLE_SECONDS", "30")

        with pytest.raises(ValueError):
            Settings.from_env()


class TestColors:
    """Test CSS color parsing"""

    def test_hex_and_short_hex(self):
        """Test both hex forms"""
        assert parse_css_color("#ffffff") == (1.0, 1.0, 1.0, 1.0)
        assert parse_css_color("#fff") == (1.0, 1.0, 1.0, 1.0)

    def test_rgba(self):
        """Test rgba() with alpha"""
        r, g, b, a = parse_css_color("rgba(59, 130, 246, 0.4)")

        assert (round(r * 255), round(g * 255), round(b * 255)) == (59, 130, 246)
        assert a == pytest.approx(0.4)

    @pytest.mark.parametrize("value", ["not-a-color", "rgb(300, 0, 0)", "", None, 12])
    def test_invalid(self, value):
        """Test junk is rejected"""
        assert not is_valid_color(value)

    def test_named(self):
        """Test named colors"""
        assert is_valid_color("orange")

    def test_with_alpha(self):
        """Test hex becomes rgba()"""
        assert with_alpha("#3b82f6", 0.4) == "rgba(59, 130, 246, 0.4)"

    def test_category_fallback(self):
        """Test unknown names use the neutral color"""
        assert category_color("Excelência") == "#f59e0b"
        assert category_color("Outro") == NEUTRAL_COLOR
        assert category_color("Outro", "#000") == "#000"


class TestLogging:
    """Test logging helpers"""

    @pytest.mark.parametrize("name,expected", [
        ("debug", logging.DEBUG),
        ("WARNING", logging.WARNING),
        ("bogus", logging.INFO),
    ])
    def test_level_from_name(self, name, expected):
        """Test LOG_LEVEL strings map to levels"""
        assert level_from_name(name) == expected

    def test_colored_formatter_keeps_record(self):
        """Test coloring does not leak into the original record"""
        formatter = ColoredFormatter(fmt="%(levelname)s %(message)s")
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)

        output = formatter.format(record)

        assert "\033[32m" in output
        assert record.levelname == "INFO"


if __name__ == "__main__":
    pytest.main([__file__, "-v", "-s"])
