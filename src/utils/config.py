# src/utils/config.py

import os
from typing import List, Optional

from pydantic import BaseModel, Field


PRODUCTION_ORIGINS = [
    "https://microservice-pdf-export.onrender.com",
    "https://lapi-dados-web.vercel.app",
]

DEVELOPMENT_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
]


def _split_csv(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    """Runtime settings for the export service, read from the environment."""

    service_name: str = "PDF Export Microservice"
    version: str = "1.0.0"
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    cors_origins: List[str] = Field(default_factory=lambda: list(DEVELOPMENT_ORIGINS))
    cors_methods: List[str] = Field(default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"])
    cors_headers: List[str] = Field(default_factory=lambda: ["Content-Type", "Authorization"])

    render_dpi: int = Field(default=100, gt=0)
    render_settle_seconds: float = Field(default=0.0, ge=0.0, le=5.0)
    max_body_bytes: int = Field(default=10 * 1024 * 1024, gt=0)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        APP_ENV takes precedence over NODE_ENV so deployments that still
        export the old variable keep working. When CORS_ORIGINS is unset the
        allow-list depends on the environment.
        """
        environment = os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development"

        origins = _split_csv(os.getenv("CORS_ORIGINS"))
        if not origins:
            origins = PRODUCTION_ORIGINS if environment.lower() == "production" else DEVELOPMENT_ORIGINS

        return cls(
            environment=environment,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            cors_origins=list(origins),
            render_dpi=int(os.getenv("RENDER_DPI", "100")),
            render_settle_seconds=float(os.getenv("RENDER_SETTLE_SECONDS", "0")),
            max_body_bytes=int(os.getenv("MAX_BODY_BYTES", str(10 * 1024 * 1024))),
        )
