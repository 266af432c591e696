"""
Gang Sheet Geometry Module

Pure geometry used by editing and export:
- Oriented corners of transformed objects
- Separating Axis Theorem overlap test
- Marquee and pointer hit tests
"""

from .collision import (
    Polygon, inches_to_units, oriented_corners, overlaps, objects_overlap,
    find_overlaps, marquee_rect, aabb_intersects, contains_point
)

__all__ = [
    'Polygon', 'inches_to_units', 'oriented_corners', 'overlaps',
    'objects_overlap', 'find_overlaps', 'marquee_rect', 'aabb_intersects',
    'contains_point',
]
