# src/charts/__init__.py

from .errors import (
    ChartExportError,
    ChartValidationError,
    UnsupportedChartTypeError,
    RenderError,
    DocumentError
)

from .models import (
    CHART_TYPES,
    DocumentOptions,
    RenderedImage,
    GeneratedDocument
)

from .validation import (
    validate_chart_request,
    validate_document_options
)

from .mapper import (
    ChartConfig,
    build_chart_config
)

from .renderer import (
    ChartRenderer,
    RendererSetup,
    create_renderer
)


__all__ = [
    'ChartExportError',
    'ChartValidationError',
    'UnsupportedChartTypeError',
    'RenderError',
    'DocumentError',
    'CHART_TYPES',
    'DocumentOptions',
    'RenderedImage',
    'GeneratedDocument',
    'validate_chart_request',
    'validate_document_options',
    'ChartConfig',
    'build_chart_config',
    'ChartRenderer',
    'RendererSetup',
    'create_renderer'
]
