"""
Gang Sheet Graphics Module

Interactive editing without a rendering surface:
- Transform: drag, resize, rotate and mirror math
- Selection: click, toggle, marquee and hit testing
- Interaction: EditorState and the pure reduce() transition
- Editor: stateful facade with undo/redo and object commands
"""

from .transform import HandleType, handle_positions, apply_handle, mirror
from .selection import (
    BackgroundTarget, ObjectTarget, HandleTarget, InteractionTarget, Modifiers,
    resolve_target, hit_test, marquee_hits
)
from .interaction import (
    InteractionMode, EditorState, Gesture, PointerDown, PointerMove, PointerUp,
    Undo, Redo, Cancel, reduce, live_overlaps
)
from .editor import Editor, EditorError

__all__ = [
    'HandleType', 'handle_positions', 'apply_handle', 'mirror',
    'BackgroundTarget', 'ObjectTarget', 'HandleTarget', 'InteractionTarget',
    'Modifiers', 'resolve_target', 'hit_test', 'marquee_hits',
    'InteractionMode', 'EditorState', 'Gesture', 'PointerDown', 'PointerMove',
    'PointerUp', 'Undo', 'Redo', 'Cancel', 'reduce', 'live_overlaps',
    'Editor', 'EditorError',
]
