# src/documents/assembler.py

import io
import logging
from typing import Dict, Tuple

from reportlab.lib.pagesizes import A3, A4, LETTER, landscape, portrait
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from starlette.concurrency import run_in_threadpool

from src.charts.errors import DocumentError
from src.charts.models import DocumentOptions, RenderedImage
from src.utils.tracing import setup_logger_with_tracing, traced

LOGGER = setup_logger_with_tracing(__name__, logging.INFO, service_name="document-assembler")

PAGE_SIZES: Dict[str, Tuple[float, float]] = {
    "A4": A4,
    "A3": A3,
    "LETTER": LETTER,
}

DEFAULT_TITLE = "Gráfico"
DEFAULT_AUTHOR = "Microserviço PDF Export"
DEFAULT_SUBJECT = "Gráfico em PDF"

MARGIN = 72.0
TITLE_FONT = "Helvetica-Bold"
TITLE_SIZE = 18.0
LINE_HEIGHT_FACTOR = 1.2


def page_dimensions(page_size: str, orientation: str) -> Tuple[float, float]:
    """Width and height in points for a page size / orientation pair."""
    size = PAGE_SIZES[page_size]
    return landscape(size) if orientation == "landscape" else portrait(size)


def image_placement(
    page_width: float,
    page_height: float,
    image_width: float,
    image_height: float,
    has_title: bool,
) -> Tuple[float, float, float, float]:
    """
    Where the chart goes on the page, as (x, y, width, height) in reportlab's
    bottom-left coordinate system.

    The image keeps its pixel size in points, is centred horizontally and
    sits below the title (or at the top margin). Images wider than the
    printable width, or taller than what is left of the page, are scaled
    down proportionally.
    """
    top = MARGIN
    if has_title:
        line = TITLE_SIZE * LINE_HEIGHT_FACTOR
        top += line * 1.5

    scale = min(
        1.0,
        (page_width - 2 * MARGIN) / image_width,
        (page_height - top - MARGIN) / image_height,
    )
    width = image_width * scale
    height = image_height * scale

    x = (page_width - width) / 2
    y = page_height - top - height
    return x, y, width, height


class DocumentAssembler:
    """Builds single-page PDF documents around a rendered chart image."""

    @traced("assemble_document")
    async def assemble(self, image: RenderedImage, options: DocumentOptions) -> bytes:
        """
        Lay out one page with the optional title and the centred chart.

        The whole document is buffered in memory before returning.

        Raises:
            DocumentError: reportlab could not read the image or write the PDF
        """
        try:
            data = await run_in_threadpool(self._build, image, options)
        except Exception as e:
            LOGGER.error(f"Failed to assemble PDF: {e}", exc_info=True)
            raise DocumentError(details=str(e)) from e

        LOGGER.info(f"PDF assembled: {options.page_size} {options.page_orientation}, {len(data)} bytes")
        return data

    def _build(self, image: RenderedImage, options: DocumentOptions) -> bytes:
        page_width, page_height = page_dimensions(options.page_size, options.page_orientation)
        buffer = io.BytesIO()

        # invariant: no creation date or random file id, identical input gives identical bytes
        pdf = canvas.Canvas(buffer, pagesize=(page_width, page_height), invariant=1)
        pdf.setTitle(options.title or DEFAULT_TITLE)
        pdf.setAuthor(options.author or DEFAULT_AUTHOR)
        pdf.setSubject(options.subject or DEFAULT_SUBJECT)

        if options.title:
            pdf.setFont(TITLE_FONT, TITLE_SIZE)
            # Baseline sits one font size below the top margin
            pdf.drawCentredString(page_width / 2, page_height - MARGIN - TITLE_SIZE, options.title)

        x, y, width, height = image_placement(
            page_width, page_height, image.width, image.height, bool(options.title)
        )
        pdf.drawImage(
            ImageReader(io.BytesIO(image.data)),
            x,
            y,
            width=width,
            height=height,
            preserveAspectRatio=False,
            mask="auto",
        )

        pdf.showPage()
        pdf.save()
        return buffer.getvalue()
