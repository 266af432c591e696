"""
Selection Handling for Gang Sheets

Selection is an ordered tuple of object ids. These helpers implement the
selection rules (click, modifier-click toggle, rubber band) and resolve what
a pointer-down landed on.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple, Union

from ..core.shapes import DesignObject, Point, Rect, paint_order
from ..geometry import aabb_intersects, contains_point, marquee_rect, oriented_corners
from .transform import HandleType, handle_positions

Selection = Tuple[str, ...]


@dataclass(frozen=True)
class BackgroundTarget:
    """Pointer landed on empty sheet."""


@dataclass(frozen=True)
class ObjectTarget:
    """Pointer landed on an object body."""
    object_id: str


@dataclass(frozen=True)
class HandleTarget:
    """Pointer landed on a transform handle of an object."""
    object_id: str
    handle: HandleType


InteractionTarget = Union[BackgroundTarget, ObjectTarget, HandleTarget]


@dataclass(frozen=True)
class Modifiers:
    """Keyboard modifiers held during a pointer event."""
    shift: bool = False
    ctrl: bool = False
    meta: bool = False

    @property
    def multi_select(self) -> bool:
        return self.shift or self.ctrl or self.meta


def toggle(selection: Selection, object_id: str) -> Selection:
    """Add an id to the selection, or remove it if already selected."""
    if object_id in selection:
        return tuple(sid for sid in selection if sid != object_id)
    return selection + (object_id,)


def click(selection: Selection, object_id: str, modifiers: Modifiers) -> Selection:
    """
    Selection after clicking an object.

    A plain click on an unselected object selects only it. A plain click on
    an already selected object keeps the selection so the group can be
    dragged. Modifier-click toggles membership.
    """
    if modifiers.multi_select:
        return toggle(selection, object_id)
    if object_id in selection:
        return selection
    return (object_id,)


def marquee_hits(objects: Iterable[DesignObject], rect: Rect) -> Selection:
    """
    Ids of objects whose un-rotated box intersects the marquee rectangle.

    Rotation is ignored.
    """
    return tuple(obj.id for obj in objects if aabb_intersects(marquee_rect(obj), rect))


def prune(selection: Selection, objects: Iterable[DesignObject]) -> Selection:
    """Drop ids that no longer exist."""
    existing = {obj.id for obj in objects}
    return tuple(sid for sid in selection if sid in existing)


def hit_test(objects: Sequence[DesignObject], point: Point) -> Optional[str]:
    """Id of the topmost object under the point, or None."""
    for obj in reversed(paint_order(objects)):
        if contains_point(oriented_corners(obj), point):
            return obj.id
    return None


def handle_hit(obj: DesignObject, point: Point, radius: float = 6.0,
               rotater_offset: float = 20.0) -> Optional[HandleType]:
    """Handle of ``obj`` within ``radius`` of the point, or None."""
    for handle, position in handle_positions(obj, rotater_offset).items():
        if position.distance_to(point) <= radius:
            return handle
    return None


def resolve_target(objects: Sequence[DesignObject], selection: Selection,
                   point: Point, handle_radius: float = 6.0) -> InteractionTarget:
    """
    Resolve what a pointer-down at ``point`` is aimed at.

    Handles are only shown, and therefore only hit, when exactly one object
    is selected. Handles win over object bodies.
    """
    if len(selection) == 1:
        selected = next((obj for obj in objects if obj.id == selection[0]), None)
        if selected is not None:
            handle = handle_hit(selected, point, handle_radius)
            if handle is not None:
                return HandleTarget(selected.id, handle)

    object_id = hit_test(objects, point)
    if object_id is not None:
        return ObjectTarget(object_id)
    return BackgroundTarget()
