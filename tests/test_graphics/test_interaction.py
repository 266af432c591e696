"""
Tests for the interaction reducer: marquee selection, lockstep multi-drag,
handle transforms and commit-once-per-gesture.
"""

import unittest

from gangsheet.config import EditorSettings
from gangsheet.core.document import Design, Sheet
from gangsheet.core.shapes import ImageObject, Point
from gangsheet.graphics.interaction import (
    Cancel, EditorState, InteractionMode, PointerDown, PointerMove, PointerUp,
    Redo, Undo, reduce
)
from gangsheet.graphics.selection import (
    BackgroundTarget, HandleTarget, Modifiers, ObjectTarget
)
from gangsheet.graphics.transform import HandleType

SHIFT = Modifiers(shift=True)


def image(obj_id, x, y, size=100.0):
    return ImageObject(id=obj_id, x=x, y=y, width=size, height=size, proxy_src='p.png')


class ReducerTestCase(unittest.TestCase):
    """Three 100x100 objects in a row, 100 units apart."""

    def setUp(self):
        self.settings = EditorSettings()
        objects = [image('a', 0, 0), image('b', 200, 0), image('c', 400, 0)]
        design = Design(sheet=Sheet(width=2112, height=1152), objects=objects)
        self.state = EditorState.create(design, self.settings)

    def run_actions(self, *actions):
        state = self.state
        for action in actions:
            state = reduce(state, action, self.settings)
        return state

    def obj(self, state, obj_id):
        return state.design.get_object(obj_id)


class TestMarquee(ReducerTestCase):
    """Test rubber band selection."""

    def test_marquee_selects_intersecting(self):
        """Test marquee selection."""
        state = self.run_actions(
            PointerDown(Point(-10, -10), BackgroundTarget()),
            PointerMove(Point(250, 50)),
            PointerUp(),
        )
        self.assertEqual(state.selection, ('a', 'b'))
        self.assertIs(state.mode, InteractionMode.IDLE)
        self.assertIsNone(state.marquee)
        self.assertEqual(len(state.history), 1)

    def test_marquee_dragged_backwards(self):
        """Test a marquee dragged up and left."""
        state = self.run_actions(
            PointerDown(Point(450, 150), BackgroundTarget()),
            PointerMove(Point(350, 50)),
            PointerUp(),
        )
        self.assertEqual(state.selection, ('c',))

    def test_marquee_rect_tracks_pointer(self):
        """Test the marquee follows the pointer."""
        state = self.run_actions(
            PointerDown(Point(10, 120), BackgroundTarget()),
            PointerMove(Point(60, 150)),
        )
        self.assertIs(state.mode, InteractionMode.MARQUEE_SELECTING)
        self.assertEqual((state.marquee.width, state.marquee.height), (50, 30))

    def test_background_click_clears_selection(self):
        """Test clicking the background."""
        state = self.run_actions(
            PointerDown(Point(50, 50), ObjectTarget('a')),
            PointerUp(),
            PointerDown(Point(150, 500), BackgroundTarget()),
            PointerUp(),
        )
        self.assertEqual(state.selection, ())


class TestDrag(ReducerTestCase):
    """Test single and multi-object dragging."""

    def select_a_and_b(self):
        return self.run_actions(
            PointerDown(Point(50, 50), ObjectTarget('a')),
            PointerUp(),
            PointerDown(Point(250, 50), ObjectTarget('b'), SHIFT),
            PointerUp(),
        )

    def test_click_selects_without_commit(self):
        """Test a click selects without a commit."""
        state = self.run_actions(PointerDown(Point(50, 50), ObjectTarget('a')), PointerUp())
        self.assertEqual(state.selection, ('a',))
        self.assertEqual(len(state.history), 1)

    def test_single_drag(self):
        """Test dragging one object."""
        state = self.run_actions(
            PointerDown(Point(50, 50), ObjectTarget('c')),
            PointerMove(Point(60, 70)),
            PointerUp(),
        )
        self.assertEqual(state.selection, ('c',))
        self.assertEqual((self.obj(state, 'c').x, self.obj(state, 'c').y), (410, 20))
        self.assertEqual((self.obj(state, 'a').x, self.obj(state, 'a').y), (0, 0))

    def test_multi_drag_moves_in_lockstep(self):
        """Test selected objects move by the same delta."""
        self.state = self.select_a_and_b()
        self.assertEqual(self.state.selection, ('a', 'b'))

        state = self.run_actions(PointerDown(Point(50, 50), ObjectTarget('a')))
        self.assertIs(state.mode, InteractionMode.DRAGGING_MULTI)
        self.state = state
        state = self.run_actions(
            PointerMove(Point(60, 60)),
            PointerMove(Point(75, 80)),
            PointerMove(Point(80, 90)),
            PointerUp(),
        )
        a, b, c = (self.obj(state, i) for i in 'abc')
        self.assertEqual((a.x, a.y), (30, 40))
        self.assertEqual((b.x, b.y), (230, 40))
        self.assertEqual((c.x, c.y), (400, 0))
        self.assertEqual(state.selection, ('a', 'b'))

    def test_gesture_commits_once(self):
        """Test a drag commits exactly once."""
        self.state = self.select_a_and_b()
        before = len(self.state.history)
        state = self.run_actions(
            PointerDown(Point(50, 50), ObjectTarget('a')),
            *[PointerMove(Point(50 + i, 50 + i)) for i in range(1, 20)],
            PointerUp(Point(70, 70)),
        )
        self.assertEqual(len(state.history), before + 1)
        self.assertEqual(state.history.current, state.design.objects)

    def test_live_transform_not_committed_mid_gesture(self):
        """Test live positions stay out of history mid-drag."""
        state = self.run_actions(
            PointerDown(Point(50, 50), ObjectTarget('a')),
            PointerMove(Point(80, 50)),
        )
        self.assertEqual(self.obj(state, 'a').x, 0)
        live = {o.id: o for o in state.live_objects}
        self.assertEqual(live['a'].x, 30)
        self.assertEqual(len(state.history), 1)

    def test_toggle_off_then_drag_moves_only_that_object(self):
        """Test dragging after a modifier-click deselect."""
        self.state = self.select_a_and_b()
        state = self.run_actions(
            PointerDown(Point(50, 50), ObjectTarget('a'), SHIFT),
            PointerMove(Point(60, 50)),
            PointerUp(),
        )
        self.assertEqual(state.selection, ('b',))
        self.assertEqual(self.obj(state, 'a').x, 10)
        self.assertEqual(self.obj(state, 'b').x, 200)

    def test_cancel_discards_gesture(self):
        """Test cancelling a drag."""
        state = self.run_actions(
            PointerDown(Point(50, 50), ObjectTarget('a')),
            PointerMove(Point(90, 90)),
            Cancel(),
        )
        self.assertIs(state.mode, InteractionMode.IDLE)
        self.assertEqual(self.obj(state, 'a').x, 0)
        self.assertEqual(len(state.history), 1)

    def test_pointer_down_ignored_mid_gesture(self):
        """Test a second press mid-gesture is ignored."""
        state = self.run_actions(PointerDown(Point(50, 50), ObjectTarget('a')))
        again = reduce(state, PointerDown(Point(250, 50), ObjectTarget('b')), self.settings)
        self.assertIs(again, state)

    def test_overlap_feedback(self):
        """Test advisory overlap ids during a drag."""
        state = self.run_actions(
            PointerDown(Point(50, 50), ObjectTarget('a')),
            PointerMove(Point(170, 50)),
        )
        self.assertIn('a', state.overlapping)
        state = reduce(state, PointerMove(Point(50, 400)), self.settings)
        self.assertEqual(state.overlapping, frozenset())
        state = reduce(state, PointerUp(Point(170, 50)), self.settings)
        self.assertEqual(state.overlapping, frozenset())
        self.assertEqual(self.obj(state, 'a').x, 120)


class TestTransformGesture(ReducerTestCase):
    """Test handle driven resize and rotate."""

    def test_resize(self):
        """Test a resize gesture."""
        self.state = self.run_actions(PointerDown(Point(50, 50), ObjectTarget('a')), PointerUp())
        state = self.run_actions(
            PointerDown(Point(100, 100), HandleTarget('a', HandleType.BOTTOM_RIGHT)),
            PointerMove(Point(150, 150)),
            PointerMove(Point(200, 200)),
            PointerUp(),
        )
        a = self.obj(state, 'a')
        self.assertAlmostEqual(a.scale_x, 2.0)
        self.assertAlmostEqual(a.scale_y, 2.0)
        self.assertEqual(len(state.history), 2)

    def test_rotate(self):
        """Test a rotate gesture."""
        state = self.run_actions(
            PointerDown(Point(50, -20), HandleTarget('a', HandleType.ROTATER)),
            PointerMove(Point(300, 52)),
            PointerUp(),
        )
        self.assertAlmostEqual(self.obj(state, 'a').rotation, 90.0)
        self.assertEqual((self.obj(state, 'a').x, self.obj(state, 'a').y), (0, 0))


class TestUndoRedo(ReducerTestCase):
    """Test history travel through the reducer."""

    def drag_a(self, dx):
        return self.run_actions(
            PointerDown(Point(50, 50), ObjectTarget('a')),
            PointerMove(Point(50 + dx, 50)),
            PointerUp(),
        )

    def test_undo_restores_and_clears_selection(self):
        """Test undo restores positions and clears selection."""
        dragged = self.drag_a(25)
        self.assertEqual(dragged.selection, ('a',))
        undone = reduce(dragged, Undo(), self.settings)
        self.assertEqual(self.obj(undone, 'a').x, 0)
        self.assertEqual(undone.selection, ())
        redone = reduce(undone, Redo(), self.settings)
        self.assertEqual(self.obj(redone, 'a').x, 25)

    def test_undo_at_start_is_noop(self):
        """Test undo with nothing to undo."""
        self.assertIs(reduce(self.state, Undo(), self.settings), self.state)

    def test_commit_after_undo_drops_redo(self):
        """Test a new gesture after undo drops redo."""
        self.state = self.drag_a(25)
        self.state = reduce(self.state, Undo(), self.settings)
        state = self.drag_a(60)
        self.assertFalse(state.history.can_redo)
        self.assertEqual(len(state.history), 2)
        self.assertEqual(self.obj(state, 'a').x, 60)


if __name__ == '__main__':
    unittest.main()
