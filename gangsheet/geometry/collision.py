"""
Collision Detection for Gang Sheets

Oriented rectangle corners and Separating Axis Theorem overlap tests used to
warn when printed pieces sit closer than the minimum gap. Also holds the
cheaper axis-aligned tests used for marquee selection and pointer hits.

All functions here are pure and never raise on well-formed rectangles.
"""

import math
from itertools import combinations
from typing import Iterable, List, Sequence, Set, Tuple

from ..core.shapes import DesignObject, Point, Rect

Polygon = Sequence[Point]


def inches_to_units(value: float, ppi: float = 96.0) -> float:
    """Convert inches to sheet units."""
    return value * ppi


def oriented_corners(obj: DesignObject, buffer: float = 0.0) -> List[Point]:
    """
    Corners of an object's box after scale, rotation and translation.

    The box is sized by the absolute scale, rotated by ``obj.rotation``
    degrees about the object's center and inflated outward by ``buffer`` on
    every side.

    Args:
        obj: Object to measure
        buffer: Outward inflation in sheet units

    Returns:
        Four points: top-left, top-right, bottom-right, bottom-left in the
        object's local frame
    """
    half_w = obj.width * abs(obj.scale_x) / 2 + buffer
    half_h = obj.height * abs(obj.scale_y) / 2 + buffer
    center = obj.center

    rad = math.radians(obj.rotation)
    cos_r = math.cos(rad)
    sin_r = math.sin(rad)

    local = [
        (-half_w, -half_h),
        (half_w, -half_h),
        (half_w, half_h),
        (-half_w, half_h),
    ]
    return [
        Point(center.x + lx * cos_r - ly * sin_r,
              center.y + lx * sin_r + ly * cos_r)
        for lx, ly in local
    ]


def _project(polygon: Polygon, axis_x: float, axis_y: float) -> Tuple[float, float]:
    """Project polygon vertices onto an axis and return the interval."""
    projections = [axis_x * p.x + axis_y * p.y for p in polygon]
    return min(projections), max(projections)


def overlaps(a: Polygon, b: Polygon) -> bool:
    """
    Separating Axis Theorem test for two convex polygons.

    Every edge normal of both polygons is a candidate axis. If the projected
    intervals are disjoint on any axis the polygons do not intersect.
    Touching intervals count as intersecting.
    """
    for polygon in (a, b):
        count = len(polygon)
        for i in range(count):
            p1 = polygon[i]
            p2 = polygon[(i + 1) % count]
            axis_x = p2.y - p1.y
            axis_y = p1.x - p2.x
            if axis_x == 0 and axis_y == 0:
                # Degenerate edge
                continue

            min_a, max_a = _project(a, axis_x, axis_y)
            min_b, max_b = _project(b, axis_x, axis_y)
            if max_a < min_b or max_b < min_a:
                return False
    return True


def objects_overlap(a: DesignObject, b: DesignObject, buffer: float = 0.0) -> bool:
    """Check if two objects' buffered boxes overlap."""
    return overlaps(oriented_corners(a, buffer), oriented_corners(b, buffer))


def find_overlaps(objects: Iterable[DesignObject],
                  buffer: float = 0.0) -> Set[Tuple[str, str]]:
    """
    Find every overlapping pair of objects.

    Returns:
        Set of (id, id) pairs, each ordered as in the input sequence
    """
    items = [(obj.id, oriented_corners(obj, buffer)) for obj in objects]
    pairs = set()
    for (id_a, corners_a), (id_b, corners_b) in combinations(items, 2):
        if overlaps(corners_a, corners_b):
            pairs.add((id_a, id_b))
    return pairs


def marquee_rect(obj: DesignObject) -> Rect:
    """
    Un-rotated box used by marquee selection.

    Rotation is ignored. The size uses the signed scale, so a mirrored
    object's box extends back from ``x, y``; the result is normalized.
    """
    return Rect(obj.x, obj.y, obj.width * obj.scale_x, obj.height * obj.scale_y).normalized()


def aabb_intersects(a: Rect, b: Rect) -> bool:
    """Axis-aligned overlap test. Boxes that only share an edge do not intersect."""
    a = a.normalized()
    b = b.normalized()
    return (a.x < b.right and a.right > b.x and
            a.y < b.bottom and a.bottom > b.y)


def contains_point(polygon: Polygon, point: Point) -> bool:
    """
    Check if a point lies inside or on a convex polygon.

    Works for either winding order.
    """
    sign = 0
    count = len(polygon)
    for i in range(count):
        p1 = polygon[i]
        p2 = polygon[(i + 1) % count]
        cross = (p2.x - p1.x) * (point.y - p1.y) - (p2.y - p1.y) * (point.x - p1.x)
        if cross == 0:
            continue
        current = 1 if cross > 0 else -1
        if sign == 0:
            sign = current
        elif current != sign:
            return False
    return True
