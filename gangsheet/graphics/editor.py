"""
Gang Sheet Editor

Stateful facade over the interaction reducer. Holds the current EditorState,
runs every pointer and keyboard command through it, and notifies listeners
after each transition. Commands that edit objects commit exactly one history
entry each.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, List, Optional

from ..config import EditorSettings
from ..core.document import Design, Sheet, UploadedAsset
from ..core.shapes import DesignObject, ImageObject, Point, new_object_id
from ..geometry import find_overlaps
from . import selection as sel
from .interaction import (
    Action, EditorState, PointerDown, PointerMove, PointerUp, Redo, Undo,
    Cancel, reduce
)
from .selection import Modifiers
from .transform import mirror

logger = logging.getLogger(__name__)


class EditorError(Exception):
    """Raised when an editor command cannot be carried out."""


class Editor:
    """
    Interactive editing session for one design.

    Features:
    - Pointer gestures (select, marquee, drag, transform)
    - Undo/redo over object-list snapshots
    - Place, duplicate, delete and mirror objects
    - Asset library bookkeeping
    - Busy flags for save and export running off the event loop
    """

    def __init__(self, design: Design, settings: Optional[EditorSettings] = None):
        self.settings = settings or EditorSettings()
        self._state = EditorState.create(design, self.settings)
        self._callbacks: List[Callable[[EditorState], None]] = []
        self._busy_lock = threading.Lock()
        self._busy_counts = {'is_saving': 0, 'is_exporting': 0}
        self.is_saving = False
        self.is_exporting = False

    # --- State access ------------------------------------------------------

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def design(self) -> Design:
        return self._state.design

    @property
    def objects(self):
        return self._state.design.objects

    @property
    def selection(self):
        return self._state.selection

    @property
    def selected_object(self) -> Optional[DesignObject]:
        """The selected object when exactly one is selected."""
        selected = self._state.selected_objects
        return selected[0] if len(selected) == 1 else None

    def add_change_callback(self, callback: Callable[[EditorState], None]):
        """Register a callback run after every state change."""
        self._callbacks.append(callback)

    def remove_change_callback(self, callback: Callable[[EditorState], None]):
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _set_state(self, state: EditorState):
        if state is self._state:
            return
        self._state = state
        for callback in self._callbacks:
            callback(state)

    # --- Interaction -------------------------------------------------------

    def dispatch(self, action: Action) -> EditorState:
        """Run an action through the reducer."""
        self._set_state(reduce(self._state, action, self.settings))
        return self._state

    def pointer_down(self, point: Point, modifiers: Modifiers = Modifiers(),
                     handle_radius: float = 6.0) -> EditorState:
        """Pointer pressed; the target is resolved once, here."""
        target = sel.resolve_target(self.objects, self.selection, point, handle_radius)
        return self.dispatch(PointerDown(point, target, modifiers))

    def pointer_move(self, point: Point) -> EditorState:
        return self.dispatch(PointerMove(point))

    def pointer_up(self, point: Optional[Point] = None) -> EditorState:
        return self.dispatch(PointerUp(point))

    def cancel(self) -> EditorState:
        return self.dispatch(Cancel())

    def undo(self) -> EditorState:
        return self.dispatch(Undo())

    def redo(self) -> EditorState:
        return self.dispatch(Redo())

    @property
    def can_undo(self) -> bool:
        return self._state.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._state.history.can_redo

    def _commit(self, objects, selection=None) -> EditorState:
        if not self._state.is_idle:
            raise EditorError("Cannot edit objects while a gesture is in progress")
        self._set_state(self._state.commit(objects, selection))
        return self._state

    def set_selection(self, ids) -> EditorState:
        """Replace the selection, ignoring unknown ids."""
        return self._set_and_return(replace(self._state, selection=sel.prune(tuple(ids), self.objects)))

    def _set_and_return(self, state: EditorState) -> EditorState:
        self._set_state(state)
        return self._state

    # --- Object commands ---------------------------------------------------

    def place_asset(self, asset_id: str) -> ImageObject:
        """
        Place a library asset on the sheet as a new image object.

        Wide assets are scaled down to ``max_place_inches``. New objects
        cascade diagonally so they do not stack exactly.

        Raises:
            EditorError: if the asset is unknown or still uploading
        """
        asset = self.design.get_asset(asset_id)
        if asset is None:
            raise EditorError(f"Unknown asset: {asset_id}")
        if asset.is_uploading:
            raise EditorError("Please wait for the image to finish uploading")

        max_width = self.settings.max_place_inches * self.settings.reference_ppi
        scale = max_width / asset.width if asset.width > max_width else 1.0

        count = len(self.objects)
        offset = (count % self.settings.placement_cycle) * self.settings.placement_step
        obj = ImageObject(
            id=new_object_id(),
            x=self.settings.placement_origin + offset,
            y=self.settings.placement_origin + offset,
            width=asset.width,
            height=asset.height,
            scale_x=scale,
            scale_y=scale,
            proxy_src=asset.proxy_src,
            high_res_src=asset.high_res_src,
            z_index=count,
        )
        self.add_object(obj)
        logger.debug(f"Placed asset {asset_id} as object {obj.id} at scale {scale:.3f}")
        return obj

    def add_object(self, obj: DesignObject) -> EditorState:
        """Add an object and select it. Duplicate ids are ignored."""
        if self.design.get_object(obj.id) is not None:
            return self._state
        return self._commit(self.objects + (obj,), selection=(obj.id,))

    def delete_selected(self) -> EditorState:
        """Delete all selected objects."""
        if not self.selection:
            return self._state
        doomed = set(self.selection)
        remaining = tuple(obj for obj in self.objects if obj.id not in doomed)
        return self._commit(remaining, selection=())

    def delete_object(self, object_id: str) -> EditorState:
        """Delete one object, keeping the rest of the selection."""
        if self.design.get_object(object_id) is None:
            return self._state
        remaining = tuple(obj for obj in self.objects if obj.id != object_id)
        selection = tuple(sid for sid in self.selection if sid != object_id)
        return self._commit(remaining, selection=selection)

    def duplicate_selected(self) -> EditorState:
        """Copy every selected object with an offset and select the copies."""
        if not self.selection:
            return self._state

        offset = self.settings.duplicate_offset
        selected = set(self.selection)
        copies = []
        for obj in self.objects:
            if obj.id in selected:
                copies.append(_copy_object(
                    obj,
                    x=obj.x + offset,
                    y=obj.y + offset,
                    z_index=len(self.objects) + len(copies),
                ))
        if not copies:
            return self._state
        return self._commit(self.objects + tuple(copies),
                            selection=tuple(c.id for c in copies))

    def mirror_selected(self, horizontal: bool = True) -> EditorState:
        """Flip selected objects horizontally or vertically."""
        if not self.selection:
            return self._state
        selected = set(self.selection)
        objects = tuple(mirror(obj, horizontal) if obj.id in selected else obj
                        for obj in self.objects)
        return self._commit(objects, selection=self.selection)

    def set_physical_size(self, object_id: str, width_in: Optional[float] = None,
                          height_in: Optional[float] = None) -> EditorState:
        """
        Set an object's printed width or height in inches.

        The aspect ratio is kept and the mirror state is preserved.

        Raises:
            EditorError: if the object is unknown or the size is not positive
        """
        obj = self.design.get_object(object_id)
        if obj is None:
            raise EditorError(f"Unknown object: {object_id}")
        ppi = self.settings.reference_ppi

        if width_in is not None:
            if width_in <= 0:
                raise EditorError("Width must be positive")
            factor = (width_in * ppi / obj.width) / abs(obj.scale_x)
        elif height_in is not None:
            if height_in <= 0:
                raise EditorError("Height must be positive")
            factor = (height_in * ppi / obj.height) / abs(obj.scale_y)
        else:
            return self._state

        resized = obj.with_patch(scale_x=obj.scale_x * factor,
                                 scale_y=obj.scale_y * factor)
        objects = tuple(resized if o.id == object_id else o for o in self.objects)
        return self._commit(objects, selection=self.selection)

    def physical_size(self, object_id: str):
        """Printed (width, height) of an object in inches."""
        obj = self.design.get_object(object_id)
        if obj is None:
            raise EditorError(f"Unknown object: {object_id}")
        ppi = self.settings.reference_ppi
        return obj.display_width / ppi, obj.display_height / ppi

    def find_overlaps(self):
        """Overlapping object pairs using the configured print gap."""
        return find_overlaps(self.objects, self.settings.overlap_buffer)

    # --- Design-level commands (not in history) ----------------------------

    def set_sheet(self, sheet: Sheet) -> EditorState:
        """Change the sheet size."""
        return self._set_and_return(
            replace(self._state, design=self.design.with_sheet(sheet)))

    def add_asset(self, asset: UploadedAsset) -> EditorState:
        """Add an uploaded (or uploading) asset to the library."""
        library = self.design.asset_library + (asset,)
        return self._set_and_return(
            replace(self._state, design=self.design.with_asset_library(library)))

    def update_asset(self, asset_id: str, **changes) -> EditorState:
        """Update a library asset, for example when its upload finishes."""
        library = tuple(replace(a, **changes) if a.id == asset_id else a
                        for a in self.design.asset_library)
        return self._set_and_return(
            replace(self._state, design=self.design.with_asset_library(library)))

    def remove_asset(self, asset_id: str) -> EditorState:
        """Remove an asset from the library. Placed objects are kept."""
        library = tuple(a for a in self.design.asset_library if a.id != asset_id)
        return self._set_and_return(
            replace(self._state, design=self.design.with_asset_library(library)))

    def load(self, design: Design) -> EditorState:
        """Replace the design; history restarts with its objects."""
        return self._set_and_return(EditorState.create(design, self.settings))

    # --- Collaborators -----------------------------------------------------

    def save(self, store, design_id: Optional[str] = None) -> str:
        """
        Save the design through a persistence collaborator.

        Returns:
            The design id used
        """
        self._mark_busy('is_saving', True)
        try:
            design_id = design_id or self.design.id or store.new_design_id()
            design = self.design.with_id(design_id)
            store.save(design_id, design)
            self._set_state(replace(self._state, design=design))
            logger.info(f"Saved design {design_id} ({len(design.objects)} objects)")
            return design_id
        finally:
            self._mark_busy('is_saving', False)

    def export_request(self):
        """The sheet and committed objects, as handed to the compositor."""
        from ..image.compositor import ExportRequest
        return ExportRequest(sheet=self.design.sheet, objects=self.objects)

    def export(self, compositor):
        """Run an export synchronously with the busy flag set."""
        self._mark_busy('is_exporting', True)
        try:
            return compositor.export(self.export_request())
        finally:
            self._mark_busy('is_exporting', False)

    def export_in_background(self, compositor, executor: ThreadPoolExecutor) -> Future:
        """
        Submit an export without blocking the caller.

        ``is_exporting`` stays set until every submitted export completes.
        """
        request = self.export_request()
        self._mark_busy('is_exporting', True)
        try:
            future = executor.submit(compositor.export, request)
        except Exception:
            self._mark_busy('is_exporting', False)
            raise
        future.add_done_callback(lambda _: self._mark_busy('is_exporting', False))
        return future

    def _mark_busy(self, flag: str, value: bool):
        # Counted so overlapping operations keep the flag up until the last ends
        with self._busy_lock:
            count = self._busy_counts[flag] + (1 if value else -1)
            self._busy_counts[flag] = max(0, count)
            setattr(self, flag, self._busy_counts[flag] > 0)


def _copy_object(obj: DesignObject, **changes) -> DesignObject:
    """Copy an object under a fresh id."""
    return replace(obj, id=new_object_id(), **changes)
