# src/servers/export_server.py

import time
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.charts.errors import ChartExportError
from src.charts.renderer import RendererSetup, create_renderer
from src.charts.service import ChartExportService, content_disposition
from src.utils.config import Settings
from src.utils.logging import level_from_name, setup_global_logging
from src.utils.tracing import setup_tracing, setup_logger_with_tracing

# Tracing must be set up before any FastAPI app is instantiated
setup_tracing("pdf-export-server", enable_console_export=False)
LOGGER = setup_logger_with_tracing(__name__, service_name="pdf-export-server")


GENERIC_SERVER_ERROR = "Algo deu errado"


def _error_body(settings: Settings, error: str, exc: Exception, key: str) -> Dict[str, Any]:
    """JSON body for a server-side failure; detail text only in development."""
    body: Dict[str, Any] = {"error": error}
    if settings.is_development:
        body[key] = getattr(exc, "details", None) or str(exc)
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    else:
        body[key] = GENERIC_SERVER_ERROR
    return body


def _pdf_response(document) -> Response:
    return Response(
        content=document.data,
        media_type=document.content_type,
        headers={"Content-Disposition": content_disposition(document.file_name)},
    )


def create_app(settings: Optional[Settings] = None, service: Optional[ChartExportService] = None) -> FastAPI:
    """
    Build the export API.

    Args:
        settings: Runtime settings, read from the environment when omitted
        service: Export service to use, built from settings when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings.from_env()
    LOGGER.setLevel(level_from_name(settings.log_level))

    if service is None:
        renderer = create_renderer(RendererSetup(
            dpi=settings.render_dpi,
            settle_seconds=settings.render_settle_seconds,
        ))
        service = ChartExportService(renderer)

    app = FastAPI(title=settings.service_name, version=settings.version)
    app.state.settings = settings
    app.state.export_service = service

    # Single policy: explicit origin allow-list with credentials
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=settings.cors_methods,
        allow_headers=settings.cors_headers,
    )

    # ========================================================================
    # MIDDLEWARE
    # ========================================================================

    @app.middleware("http")
    async def limit_body_and_log(request: Request, call_next):
        started = time.perf_counter()

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > settings.max_body_bytes:
            LOGGER.warning(f"Rejected {request.method} {request.url.path}: body of {content_length} bytes")
            return JSONResponse(status_code=413, content={"error": "Corpo da requisição muito grande"})

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        LOGGER.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f} ms)")
        return response

    # ========================================================================
    # ERROR HANDLERS
    # ========================================================================

    @app.exception_handler(ChartExportError)
    async def handle_export_error(request: Request, exc: ChartExportError):
        if exc.status_code < 500:
            LOGGER.warning(f"Rejected {request.url.path}: {exc.message}")
            return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

        LOGGER.error(f"Export failed on {request.url.path}: {exc.message}", exc_info=exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(settings, exc.message, exc, "details"),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_bad_body(request: Request, exc: RequestValidationError):
        LOGGER.warning(f"Malformed body on {request.url.path}")
        return JSONResponse(status_code=400, content={"error": "Corpo da requisição deve ser um objeto JSON válido"})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "Rota não encontrada", "path": request.url.path})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        LOGGER.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        body = _error_body(settings, "Erro interno do servidor", exc, "message")
        return JSONResponse(status_code=500, content=body)

    # ========================================================================
    # ROUTES
    # ========================================================================

    @app.get("/")
    def root():
        """Service description."""
        return {
            "message": "Microserviço de Exportação de PDF",
            "version": settings.version,
            "endpoints": {
                "health": "/health",
                "chartImage": "/api/chart-image",
                "chartPdf": "/api/chart-pdf",
                "radarChartPdf": "/api/radar-chart-pdf"
            }
        }

    @app.get("/health")
    def health():
        """Liveness check."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": settings.service_name,
            "version": settings.version,
            "env": settings.environment
        }

    @app.post("/api/chart-image")
    async def chart_image(payload: Dict[str, Any] = Body(...)):
        """
        Render a chart to PNG.

        Body:
            {"chartType": "bar", "chartData": {"data": [{"name": "A", "value": 3}]}}
        """
        image = await service.render_image(payload.get("chartType"), payload.get("chartData"))

        return Response(
            content=image.data,
            media_type=image.content_type,
            headers={"Cache-Control": "no-cache"}
        )

    @app.post("/api/chart-pdf")
    async def chart_pdf(payload: Dict[str, Any] = Body(...)):
        """
        Render a chart and return it inside a PDF download.

        Body:
            {"chartType": "radialBar", "chartData": {...}, "pdfOptions": {"title": "Resultado"}}
        """
        document = await service.render_document(
            payload.get("chartType"),
            payload.get("chartData"),
            payload.get("pdfOptions"),
        )
        return _pdf_response(document)

    @app.post("/api/radar-chart-pdf")
    async def radar_chart_pdf(payload: Dict[str, Any] = Body(...)):
        """Legacy radar-only PDF endpoint, kept for older clients."""
        document = await service.render_document(
            "radar",
            payload.get("chartData") or {},
            payload.get("pdfOptions"),
            default_file_name="radar-chart.pdf",
        )
        return _pdf_response(document)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    setup_global_logging(level_from_name(settings.log_level))
    LOGGER.info(f"🚀 PDF export service on http://{settings.host}:{settings.port} ({settings.environment})")
    LOGGER.info("📊 Endpoints: POST /api/chart-image, POST /api/chart-pdf, POST /api/radar-chart-pdf, GET /health")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
