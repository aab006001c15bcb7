# src/utils/__init__.py

from .logging import (
    setup_global_logging,
    level_from_name
)

from .tracing import (
    setup_tracing,
    setup_logger_with_tracing,
    traced
)

from .config import Settings

__all__ = [
    'setup_global_logging',
    'level_from_name',
    'setup_tracing',
    'setup_logger_with_tracing',
    'traced',
    'Settings'
]
