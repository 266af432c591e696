"""
Transform Operations for Gang Sheets

Handles transformation of design objects including:
- Translation (dragging)
- Scaling via resize handles, anchored at the opposite edge or corner
- Rotation via the rotater handle, with optional snapping
- Mirroring (flip horizontal/vertical)

Every function takes the object state at gesture start plus the current
pointer and returns a new object. Nothing is accumulated frame to frame, so
long gestures do not drift.
"""

from enum import Enum
from typing import Dict, Iterable, Optional, Tuple
import math

from ..core.shapes import DesignObject, Point


class HandleType(Enum):
    """Transform handles around a selected object."""
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    MIDDLE_LEFT = "middle-left"
    MIDDLE_RIGHT = "middle-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"
    ROTATER = "rotater"

    @property
    def direction(self) -> Tuple[int, int]:
        """Unit direction of the handle from the object center."""
        return _HANDLE_DIRECTIONS[self]

    @property
    def is_corner(self) -> bool:
        hx, hy = self.direction
        return hx != 0 and hy != 0


_HANDLE_DIRECTIONS: Dict[HandleType, Tuple[int, int]] = {
    HandleType.TOP_LEFT: (-1, -1),
    HandleType.TOP_CENTER: (0, -1),
    HandleType.TOP_RIGHT: (1, -1),
    HandleType.MIDDLE_LEFT: (-1, 0),
    HandleType.MIDDLE_RIGHT: (1, 0),
    HandleType.BOTTOM_LEFT: (-1, 1),
    HandleType.BOTTOM_CENTER: (0, 1),
    HandleType.BOTTOM_RIGHT: (1, 1),
    HandleType.ROTATER: (0, -1),
}


def translate(start: DesignObject, dx: float, dy: float) -> DesignObject:
    """Move an object by a delta from its start position."""
    return start.with_patch(x=start.x + dx, y=start.y + dy)


def handle_positions(obj: DesignObject,
                     rotater_offset: float = 20.0) -> Dict[HandleType, Point]:
    """
    World positions of every handle of an object.

    The rotater sits ``rotater_offset`` units above the top edge.
    """
    half_w = obj.display_width / 2
    half_h = obj.display_height / 2
    center = obj.center
    angle = math.radians(obj.rotation)

    positions = {}
    for handle in HandleType:
        hx, hy = handle.direction
        local = Point(hx * half_w, hy * half_h)
        if handle is HandleType.ROTATER:
            local = Point(0, -half_h - rotater_offset)
        positions[handle] = center + local.rotate(angle)
    return positions


def resize_from_handle(start: DesignObject, handle: HandleType, pointer: Point,
                       keep_ratio: bool = True,
                       min_size: float = 1.0) -> DesignObject:
    """
    Resize an object by dragging one of its resize handles.

    The opposite edge or corner stays fixed on the sheet, measured in the
    object's rotated frame. Sizes are clamped to ``min_size`` so the scale
    never reaches zero, and the sign of each scale (mirroring) is kept.

    Args:
        start: Object state when the gesture began
        handle: Handle being dragged (not the rotater)
        pointer: Current pointer position in sheet units
        keep_ratio: Keep aspect ratio when a corner handle is dragged
        min_size: Smallest displayed width/height in sheet units

    Returns:
        Resized copy of ``start``
    """
    hx, hy = handle.direction
    width = start.display_width
    height = start.display_height
    angle = math.radians(start.rotation)
    center = start.center

    anchor = center + Point(-hx * width / 2, -hy * height / 2).rotate(angle)
    local = (pointer - anchor).rotate(-angle)

    new_width = max(min_size, local.x * hx) if hx else width
    new_height = max(min_size, local.y * hy) if hy else height

    if keep_ratio and handle.is_corner:
        factor = max(new_width / width, new_height / height,
                     min_size / width, min_size / height)
        new_width = width * factor
        new_height = height * factor

    new_center = anchor + Point(hx * new_width / 2, hy * new_height / 2).rotate(angle)

    return start.with_patch(
        x=new_center.x - new_width / 2,
        y=new_center.y - new_height / 2,
        scale_x=math.copysign(new_width / start.width, start.scale_x),
        scale_y=math.copysign(new_height / start.height, start.scale_y),
    )


def snap_rotation(angle: float, snaps: Iterable[float] = (),
                  tolerance: float = 0.0) -> float:
    """
    Normalize an angle to [0, 360) and snap it to the nearest snap angle.

    Snapping only happens within ``tolerance`` degrees.
    """
    angle = angle % 360.0
    if tolerance > 0:
        for snap in snaps:
            diff = (angle - snap + 180.0) % 360.0 - 180.0
            if abs(diff) <= tolerance:
                angle = (angle - diff) % 360.0
                break
    return angle


def rotate_from_handle(start: DesignObject, pointer: Point,
                       snaps: Iterable[float] = (),
                       tolerance: float = 0.0) -> DesignObject:
    """
    Rotate an object so its rotater points at the pointer.

    The rotater sits above the top edge, so a pointer straight above the
    center gives 0 degrees. Rotation is about the center, which leaves the
    object's position unchanged.
    """
    center = start.center
    if pointer == center:
        return start
    angle = math.degrees(math.atan2(pointer.y - center.y, pointer.x - center.x)) + 90.0
    return start.with_patch(rotation=snap_rotation(angle, snaps, tolerance))


def apply_handle(start: DesignObject, handle: HandleType, pointer: Point,
                 keep_ratio: bool = True, min_size: float = 1.0,
                 snaps: Iterable[float] = (),
                 snap_tolerance: float = 0.0) -> DesignObject:
    """Apply a handle drag, dispatching on the handle type."""
    if handle is HandleType.ROTATER:
        return rotate_from_handle(start, pointer, snaps, snap_tolerance)
    return resize_from_handle(start, handle, pointer, keep_ratio, min_size)


def mirror(obj: DesignObject, horizontal: bool = True) -> DesignObject:
    """
    Mirror an object in place (flip about its own center).

    Position does not change because the box is sized by absolute scale.
    """
    if horizontal:
        return obj.with_patch(scale_x=-obj.scale_x)
    return obj.with_patch(scale_y=-obj.scale_y)


def live_transform(obj: DesignObject) -> Dict[str, float]:
    """The transform fields a gesture may change."""
    return {
        'x': obj.x,
        'y': obj.y,
        'rotation': obj.rotation,
        'scale_x': obj.scale_x,
        'scale_y': obj.scale_y,
    }


def with_live_transform(committed: DesignObject,
                        live: Optional[DesignObject]) -> DesignObject:
    """Apply a live object's transform onto its committed counterpart."""
    if live is None or committed.transform_equals(live):
        return committed
    return committed.with_patch(**live_transform(live))
