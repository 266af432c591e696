"""
Gang Sheet Core Module

Contains the core data structures:
- Shapes: Point, Rect and the design objects placed on a sheet
- Document: Sheet, uploaded assets and the Design aggregate
- History: Snapshot undo/redo stack
"""

# Import order matters - shapes first, then document, then history
from .shapes import (
    Point, Rect, ObjectKind, DesignObject, ImageObject,
    DesignObjectError, new_object_id, paint_order
)
from .document import Sheet, UploadedAsset, Design
from .history import History

__all__ = [
    'Point', 'Rect', 'ObjectKind', 'DesignObject', 'ImageObject',
    'DesignObjectError', 'new_object_id', 'paint_order',
    'Sheet', 'UploadedAsset', 'Design',
    'History',
]
