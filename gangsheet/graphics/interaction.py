"""
Interaction State Machine for Gang Sheets

Editing is modelled as one immutable EditorState plus a pure
``reduce(state, action, settings)`` transition. Pointer gestures move through
these modes:

    idle -> marquee-selecting -> idle
    idle -> dragging-single | dragging-multi -> idle
    idle -> transforming -> idle

Live transforms are kept on the gesture and overlaid on the committed
objects. A gesture commits to history exactly once, when it ends.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple, Union

from ..config import EditorSettings
from ..core.document import Design
from ..core.history import History
from ..core.shapes import DesignObject, Point, Rect
from ..geometry import objects_overlap
from . import selection as sel
from .selection import (
    BackgroundTarget, HandleTarget, InteractionTarget, Modifiers, ObjectTarget,
    Selection
)
from .transform import HandleType, apply_handle, translate, with_live_transform

logger = logging.getLogger(__name__)


class InteractionMode(Enum):
    """Pointer interaction modes."""
    IDLE = "idle"
    MARQUEE_SELECTING = "marquee-selecting"
    DRAGGING_SINGLE = "dragging-single"
    DRAGGING_MULTI = "dragging-multi"
    TRANSFORMING = "transforming"


DRAG_MODES = (InteractionMode.DRAGGING_SINGLE, InteractionMode.DRAGGING_MULTI)


# --- Actions ---------------------------------------------------------------

@dataclass(frozen=True)
class PointerDown:
    point: Point
    target: InteractionTarget
    modifiers: Modifiers = Modifiers()


@dataclass(frozen=True)
class PointerMove:
    point: Point


@dataclass(frozen=True)
class PointerUp:
    point: Optional[Point] = None


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class Redo:
    pass


@dataclass(frozen=True)
class Cancel:
    """Abort the current gesture without committing."""


Action = Union[PointerDown, PointerMove, PointerUp, Undo, Redo, Cancel]


# --- State -----------------------------------------------------------------

@dataclass(frozen=True)
class Gesture:
    """
    An in-progress pointer gesture.

    ``anchors`` holds each participant's object as it was when the gesture
    began, keyed by id. ``live`` holds the working objects.
    """
    origin: Point
    driver_id: Optional[str] = None
    anchors: Dict[str, DesignObject] = field(default_factory=dict)
    live: Dict[str, DesignObject] = field(default_factory=dict)
    handle: Optional[HandleType] = None

    @property
    def participants(self) -> Tuple[str, ...]:
        return tuple(self.anchors)


@dataclass(frozen=True)
class EditorState:
    """Everything the editing surface needs, in one value."""
    design: Design
    history: History
    selection: Selection = ()
    mode: InteractionMode = InteractionMode.IDLE
    gesture: Optional[Gesture] = None
    marquee: Optional[Rect] = None
    overlapping: FrozenSet[str] = frozenset()

    @classmethod
    def create(cls, design: Design,
               settings: Optional[EditorSettings] = None) -> 'EditorState':
        """Fresh state with a single history entry for the design's objects."""
        settings = settings or EditorSettings()
        history = History.initial(design.objects, max_entries=settings.max_history)
        return cls(design=design, history=history)

    @property
    def objects(self) -> Tuple[DesignObject, ...]:
        """Committed objects."""
        return self.design.objects

    @property
    def live_objects(self) -> Tuple[DesignObject, ...]:
        """Committed objects with the current gesture's live transforms applied."""
        if self.gesture is None or not self.gesture.live:
            return self.design.objects
        return tuple(self.gesture.live.get(obj.id, obj) for obj in self.design.objects)

    @property
    def selected_objects(self) -> Tuple[DesignObject, ...]:
        index = self.design.object_index()
        return tuple(index[sid] for sid in self.selection if sid in index)

    @property
    def is_idle(self) -> bool:
        return self.mode is InteractionMode.IDLE

    def commit(self, objects, selection: Optional[Selection] = None) -> 'EditorState':
        """Commit a new object list as one history entry."""
        objects = tuple(objects)
        changes = dict(design=self.design.with_objects(objects),
                       history=self.history.commit(objects))
        if selection is not None:
            changes['selection'] = sel.prune(selection, objects)
        return replace(self, **changes)


# --- Transitions -----------------------------------------------------------

def reduce(state: EditorState, action: Action,
           settings: Optional[EditorSettings] = None) -> EditorState:
    """
    Apply one action and return the next state.

    Unknown or out-of-mode actions return ``state`` unchanged.
    """
    settings = settings or EditorSettings()
    if isinstance(action, PointerDown):
        return _pointer_down(state, action)
    if isinstance(action, PointerMove):
        return _pointer_move(state, action.point, settings)
    if isinstance(action, PointerUp):
        return _pointer_up(state, action, settings)
    if isinstance(action, Undo):
        return _travel(_cancel(state), state.history.undo())
    if isinstance(action, Redo):
        return _travel(_cancel(state), state.history.redo())
    if isinstance(action, Cancel):
        return _cancel(state)
    return state


def _cancel(state: EditorState) -> EditorState:
    if state.is_idle and state.gesture is None:
        return state
    return replace(state, mode=InteractionMode.IDLE, gesture=None,
                   marquee=None, overlapping=frozenset())


def _travel(state: EditorState, history: History) -> EditorState:
    """Move to another history entry. Selection is always cleared."""
    if history is state.history:
        return state
    logger.debug(f"History cursor {state.history.cursor} -> {history.cursor}")
    return replace(state, history=history,
                   design=state.design.with_objects(history.current),
                   selection=())


def _pointer_down(state: EditorState, action: PointerDown) -> EditorState:
    if not state.is_idle:
        return state

    target = action.target
    if isinstance(target, BackgroundTarget):
        selection = state.selection if action.modifiers.multi_select else ()
        return replace(
            state,
            mode=InteractionMode.MARQUEE_SELECTING,
            selection=selection,
            gesture=Gesture(origin=action.point),
            marquee=Rect(action.point.x, action.point.y, 0, 0),
        )

    index = state.design.object_index()
    if target.object_id not in index:
        return state

    if isinstance(target, HandleTarget):
        obj = index[target.object_id]
        return replace(
            state,
            mode=InteractionMode.TRANSFORMING,
            gesture=Gesture(origin=action.point, driver_id=obj.id,
                            anchors={obj.id: obj}, handle=target.handle),
        )

    if isinstance(target, ObjectTarget):
        selection = sel.click(state.selection, target.object_id, action.modifiers)
        if target.object_id in selection:
            participants = selection
        else:
            participants = (target.object_id,)
        mode = (InteractionMode.DRAGGING_MULTI if len(participants) > 1
                else InteractionMode.DRAGGING_SINGLE)
        anchors = {pid: index[pid] for pid in participants if pid in index}
        return replace(
            state,
            mode=mode,
            selection=selection,
            gesture=Gesture(origin=action.point, driver_id=target.object_id,
                            anchors=anchors),
        )

    return state


def _pointer_move(state: EditorState, point: Point,
                  settings: EditorSettings) -> EditorState:
    gesture = state.gesture
    if state.is_idle or gesture is None:
        return state

    if state.mode is InteractionMode.MARQUEE_SELECTING:
        return replace(state, marquee=Rect.from_points(gesture.origin, point))

    if state.mode in DRAG_MODES:
        driver_start = gesture.anchors[gesture.driver_id]
        driver_live = translate(driver_start,
                                point.x - gesture.origin.x,
                                point.y - gesture.origin.y)
        # Every participant gets the driver's exact delta
        dx = driver_live.x - driver_start.x
        dy = driver_live.y - driver_start.y
        live = {pid: translate(start, dx, dy) for pid, start in gesture.anchors.items()}
        live[gesture.driver_id] = driver_live
    elif state.mode is InteractionMode.TRANSFORMING:
        start = gesture.anchors[gesture.driver_id]
        live = {gesture.driver_id: apply_handle(
            start, gesture.handle, point,
            keep_ratio=settings.keep_ratio,
            min_size=settings.min_transform_size,
            snaps=settings.rotation_snaps,
            snap_tolerance=settings.rotation_snap_tolerance,
        )}
    else:
        return state

    gesture = replace(gesture, live=live)
    moved = replace(state, gesture=gesture)
    return replace(moved, overlapping=live_overlaps(moved, settings.overlap_buffer))


def live_overlaps(state: EditorState, buffer: float) -> FrozenSet[str]:
    """
    Ids of gesture participants that overlap any other object.

    Advisory only; used to highlight pieces closer than the print gap.
    """
    gesture = state.gesture
    if gesture is None or not gesture.live:
        return frozenset()

    live_objects = state.live_objects
    hits = set()
    for pid in gesture.live:
        moving = gesture.live[pid]
        for other in live_objects:
            if other.id != pid and objects_overlap(moving, other, buffer):
                hits.add(pid)
                break
    return frozenset(hits)


def _pointer_up(state: EditorState, action: PointerUp,
                settings: EditorSettings) -> EditorState:
    if state.is_idle:
        return state
    if action.point is not None:
        state = _pointer_move(state, action.point, settings)

    if state.mode is InteractionMode.MARQUEE_SELECTING:
        hits = sel.marquee_hits(state.objects, state.marquee) if state.marquee else ()
        selection = hits if hits else state.selection
        return replace(_cancel(state), selection=selection)

    gesture = state.gesture
    idle = _cancel(state)
    if gesture is None or not gesture.live:
        return idle

    objects = tuple(with_live_transform(obj, gesture.live.get(obj.id))
                    for obj in state.objects)
    if objects == state.objects:
        return idle

    logger.debug(f"Committing {state.mode.value} of {len(gesture.live)} object(s)")
    return idle.commit(objects)
