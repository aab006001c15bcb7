# src/charts/validation.py

"""
Request validation for chart export payloads.

Every check runs before any rendering work starts. Failures are raised as
ChartValidationError / UnsupportedChartTypeError with a client-facing
message; the HTTP layer turns them into 400 responses.
"""

from typing import Any, Dict, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from src.charts.errors import ChartValidationError, UnsupportedChartTypeError
from src.charts.models import (
    CHART_TYPES,
    BarChartData,
    ChartDescription,
    DocumentOptions,
    GaugeChartData,
    PieChartData,
    RadarChartData,
)


MODELS: Dict[str, Type[BaseModel]] = {
    "radar": RadarChartData,
    "radialBar": GaugeChartData,
    "bar": BarChartData,
    "pie": PieChartData,
}

MISSING_FIELDS_MESSAGE = "chartType e chartData são obrigatórios"
RADAR_MESSAGE = "Dados do gráfico radar inválidos. Verifique se você forneceu labels e datasets."
RADAR_EMPTY_DATASET_MESSAGE = "Todos os datasets devem conter dados válidos."
GAUGE_MESSAGE = "Dados do gráfico radial inválidos. Verifique score, maxScore e category."
SERIES_MESSAGE = "Dados do gráfico inválidos. Verifique se você forneceu um array de dados."


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_location(prefix: str, loc: Tuple[Any, ...]) -> str:
    """Render a pydantic error location as a dotted path, e.g. chartData.data[1].value."""
    path = prefix
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}"
    return path


def _raise_from_pydantic(exc: ValidationError, prefix: str) -> None:
    error = exc.errors()[0]
    # Drop pydantic's "Value error, " prefix from custom validators
    reason = str(error.get("msg", "")).replace("Value error, ", "")
    field = format_location(prefix, tuple(error.get("loc", ())))
    raise ChartValidationError(f"Campo inválido em {field}: {reason}", field=field) from exc


def _check_radar_shape(chart_data: Mapping[str, Any]) -> None:
    labels = chart_data.get("labels")
    datasets = chart_data.get("datasets")

    if not isinstance(labels, list) or not labels or not isinstance(datasets, list) or not datasets:
        raise ChartValidationError(RADAR_MESSAGE, field="chartData.datasets")

    for index, dataset in enumerate(datasets):
        data = dataset.get("data") if isinstance(dataset, dict) else None
        if not isinstance(data, list) or not data:
            raise ChartValidationError(RADAR_EMPTY_DATASET_MESSAGE, field=f"chartData.datasets[{index}].data")
        if len(data) != len(labels):
            name = dataset.get("label") or index
            raise ChartValidationError(
                f"O dataset '{name}' tem {len(data)} valores, mas existem {len(labels)} labels.",
                field=f"chartData.datasets[{index}].data",
            )


def _check_gauge_shape(chart_data: Mapping[str, Any]) -> None:
    if (
        not _is_number(chart_data.get("score"))
        or not _is_number(chart_data.get("maxScore"))
        or not chart_data.get("category")
    ):
        raise ChartValidationError(GAUGE_MESSAGE, field="chartData")


def _check_series_shape(chart_data: Mapping[str, Any]) -> None:
    data = chart_data.get("data")
    if not isinstance(data, list) or not data:
        raise ChartValidationError(SERIES_MESSAGE, field="chartData.data")


SHAPE_CHECKS = {
    "radar": _check_radar_shape,
    "radialBar": _check_gauge_shape,
    "bar": _check_series_shape,
    "pie": _check_series_shape,
}


def validate_chart_type(chart_type: Any) -> str:
    if chart_type not in CHART_TYPES:
        raise UnsupportedChartTypeError(chart_type, CHART_TYPES)
    return chart_type


def validate_chart_request(chart_type: Any, chart_data: Any) -> ChartDescription:
    """
    Turn a raw (chartType, chartData) pair into a typed chart description.

    Args:
        chart_type: Declared chart kind, one of radar, radialBar, bar, pie
        chart_data: The decoded JSON object describing the chart

    Returns:
        The matching RadarChartData, GaugeChartData, BarChartData or PieChartData

    Raises:
        ChartValidationError: a field is missing or malformed
        UnsupportedChartTypeError: chart_type is not a supported kind
    """
    if not chart_type or chart_data is None:
        raise ChartValidationError(MISSING_FIELDS_MESSAGE)

    validate_chart_type(chart_type)

    if not isinstance(chart_data, dict):
        raise ChartValidationError("chartData deve ser um objeto JSON.", field="chartData")

    SHAPE_CHECKS[chart_type](chart_data)

    payload = dict(chart_data)
    payload["kind"] = chart_type

    try:
        return MODELS[chart_type].model_validate(payload)
    except ValidationError as exc:
        _raise_from_pydantic(exc, "chartData")


def validate_document_options(pdf_options: Optional[Any]) -> DocumentOptions:
    """Validate the optional pdfOptions block; absent options get the defaults."""
    if pdf_options is None:
        return DocumentOptions()

    if not isinstance(pdf_options, dict):
        raise ChartValidationError("pdfOptions deve ser um objeto JSON.", field="pdfOptions")

    try:
        return DocumentOptions.model_validate(pdf_options)
    except ValidationError as exc:
        _raise_from_pydantic(exc, "pdfOptions")
