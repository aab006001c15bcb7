# src/documents/__init__.py

from .assembler import (
    DocumentAssembler,
    page_dimensions,
    image_placement
)

__all__ = [
    'DocumentAssembler',
    'page_dimensions',
    'image_placement'
]
