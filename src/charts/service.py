# src/charts/service.py

import logging
import re
import unicodedata
from typing import Any, Optional
from urllib.parse import quote

from src.charts.mapper import build_chart_config
from src.charts.models import GeneratedDocument, RenderedImage
from src.charts.renderer import ChartRenderer
from src.charts.validation import validate_chart_request, validate_document_options
from src.documents.assembler import DocumentAssembler
from src.utils.tracing import setup_logger_with_tracing

LOGGER = setup_logger_with_tracing(__name__, logging.INFO, service_name="chart-export")

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/"\';\r\n\t\x00-\x1f]')


def safe_file_name(requested: Optional[str], default: str) -> str:
    """
    File name for the Content-Disposition header.

    Path separators, quotes and control characters are dropped and a .pdf
    extension is appended when missing.
    """
    name = _UNSAFE_FILENAME_CHARS.sub("", requested or "").strip()
    if not name:
        name = default
    if not name.lower().endswith(".pdf"):
        name = f"{name}.pdf"
    return name


def content_disposition(file_name: str) -> str:
    """
    Attachment header value for file_name.

    Header values travel as latin-1, so names outside ASCII are sent as an
    RFC 5987 filename* with a transliterated ASCII filename for old clients.
    """
    if file_name.isascii():
        return f"attachment; filename={file_name}"

    fallback = unicodedata.normalize("NFKD", file_name).encode("ascii", "ignore").decode("ascii")
    if fallback.lower() == ".pdf" or not fallback.strip():
        fallback = "chart.pdf"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name)}"


class ChartExportService:
    """Validate, map, render and optionally wrap a chart in a PDF."""

    def __init__(self, renderer: ChartRenderer, assembler: Optional[DocumentAssembler] = None):
        self.renderer = renderer
        self.assembler = assembler or DocumentAssembler()

    async def render_image(self, chart_type: Any, chart_data: Any) -> RenderedImage:
        description = validate_chart_request(chart_type, chart_data)
        config = build_chart_config(description)
        return await self.renderer.render(config)

    async def render_document(
        self,
        chart_type: Any,
        chart_data: Any,
        pdf_options: Any = None,
        default_file_name: Optional[str] = None,
    ) -> GeneratedDocument:
        """
        Render the chart and place it on a single PDF page.

        Both the chart data and the pdfOptions are validated before any
        rendering starts.
        """
        description = validate_chart_request(chart_type, chart_data)
        options = validate_document_options(pdf_options)
        config = build_chart_config(description)

        image = await self.renderer.render(config)
        data = await self.assembler.assemble(image, options)

        file_name = safe_file_name(options.file_name, default_file_name or f"{chart_type}-chart.pdf")
        LOGGER.info(f"Document ready: {file_name} ({len(data)} bytes)")

        return GeneratedDocument(data=data, file_name=file_name, image=image)
