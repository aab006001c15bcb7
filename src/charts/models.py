# src/charts/models.py

import math
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from src.charts.colors import is_valid_color


CHART_TYPES = ("radar", "radialBar", "bar", "pie")

MAX_DIMENSION = 4000


def _require_finite_number(value):
    # bool is an int subclass, JSON true/false are not chart values
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    try:
        as_float = float(value)
    except OverflowError:
        raise ValueError("must be a finite number") from None
    if not math.isfinite(as_float):
        raise ValueError("must be a finite number")
    return as_float


def _require_color(value):
    if not is_valid_color(value):
        raise ValueError(f"invalid color: {value!r}")
    return value


FiniteNumber = Annotated[float, BeforeValidator(_require_finite_number)]
CssColor = Annotated[str, BeforeValidator(_require_color)]
Dimension = Annotated[int, Field(gt=0, le=MAX_DIMENSION)]


class _ChartDataBase(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    title: Optional[str] = None
    width: Optional[Dimension] = None
    height: Optional[Dimension] = None


class RadarDataset(BaseModel):
    # Chart.js styling keys (backgroundColor, borderWidth, ...) are accepted and ignored
    model_config = ConfigDict(extra="ignore", frozen=True)

    label: str = ""
    data: List[FiniteNumber] = Field(min_length=1)


class RadarChartData(_ChartDataBase):
    kind: Literal["radar"] = "radar"
    labels: List[str] = Field(min_length=1)
    datasets: List[RadarDataset] = Field(min_length=1)


class GaugeCategory(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    label: str
    color: CssColor


class GaugeChartData(_ChartDataBase):
    kind: Literal["radialBar"] = "radialBar"
    score: FiniteNumber
    max_score: FiniteNumber = Field(alias="maxScore")
    category: GaugeCategory

    @field_validator("max_score")
    @classmethod
    def _positive_max(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than 0")
        return value


class ChartItem(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    value: FiniteNumber
    color: Optional[CssColor] = None


class BarChartData(_ChartDataBase):
    kind: Literal["bar"] = "bar"
    data: List[ChartItem] = Field(min_length=1)
    layout: Literal["vertical", "horizontal"] = "horizontal"
    x_axis_label: Optional[str] = Field(default=None, alias="xAxisLabel")
    y_axis_label: Optional[str] = Field(default=None, alias="yAxisLabel")


class PieChartData(_ChartDataBase):
    kind: Literal["pie"] = "pie"
    data: List[ChartItem] = Field(min_length=1)

    @field_validator("data")
    @classmethod
    def _non_negative_total(cls, items: List[ChartItem]) -> List[ChartItem]:
        if any(item.value < 0 for item in items):
            raise ValueError("pie values must not be negative")
        total = sum(item.value for item in items)
        if not math.isfinite(total):
            raise ValueError("pie values are too large to add up")
        if total <= 0:
            raise ValueError("pie values must add up to more than zero")
        return items


ChartDescription = Annotated[
    Union[RadarChartData, GaugeChartData, BarChartData, PieChartData],
    Field(discriminator="kind"),
]


class DocumentOptions(BaseModel):
    """The pdfOptions block of a PDF export request."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    file_name: Optional[str] = Field(default=None, alias="fileName")
    page_size: Literal["A4", "A3", "LETTER"] = Field(default="A4", alias="pageSize")
    page_orientation: Literal["portrait", "landscape"] = Field(default="portrait", alias="pageOrientation")


class RenderedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    width: int
    height: int
    content_type: str = "image/png"


class GeneratedDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    file_name: str
    image: RenderedImage
    content_type: str = "application/pdf"
