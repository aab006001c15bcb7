# src/charts/errors.py

from typing import Optional, Sequence


RENDER_FAILED_MESSAGE = "Erro interno do servidor ao gerar imagem"
DOCUMENT_FAILED_MESSAGE = "Erro ao gerar o PDF"


class ChartExportError(Exception):
    """Base class for failures that the HTTP layer turns into JSON responses."""

    status_code = 500

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field
        # Underlying library error, only shown to clients in development
        self.details = details


class ChartValidationError(ChartExportError):
    """The request payload is missing a field or carries a malformed one."""

    status_code = 400


class UnsupportedChartTypeError(ChartExportError):
    """The chart type is not one of the supported kinds."""

    status_code = 400

    def __init__(self, chart_type, supported: Sequence[str]):
        self.chart_type = chart_type
        self.supported = tuple(supported)
        super().__init__(
            f"Tipo de gráfico não suportado. Tipos suportados: {', '.join(self.supported)}",
            field="chartType",
        )


class RenderError(ChartExportError):
    """The rendering surface failed while drawing or encoding the chart."""

    def __init__(self, details: Optional[str] = None):
        super().__init__(RENDER_FAILED_MESSAGE, details=details)


class DocumentError(ChartExportError):
    """The PDF document could not be assembled."""

    def __init__(self, details: Optional[str] = None):
        super().__init__(DOCUMENT_FAILED_MESSAGE, details=details)
