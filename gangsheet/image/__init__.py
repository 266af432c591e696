"""
Gang Sheet Image Processing Module

Contains the export pipeline:
- Asset loading (HTTP, file URLs and local paths) with per-asset limits
- High resolution compositing and PNG encoding at print DPI
"""

from .loader import AssetLoader, AssetLoadError, LoadResult
from .compositor import (
    Compositor, CompositorError, ExportValidationError, NoAssetsLoadedError,
    RenderFinalizeError, ExportRequest, ExportResult,
    parse_export_request, destination_rect, export_payload
)

__all__ = [
    'AssetLoader',
    'AssetLoadError',
    'LoadResult',
    'Compositor',
    'CompositorError',
    'ExportValidationError',
    'NoAssetsLoadedError',
    'RenderFinalizeError',
    'ExportRequest',
    'ExportResult',
    'parse_export_request',
    'destination_rect',
    'export_payload',
]
