"""
Tests for the design object model and undo history.
"""

import unittest

from gangsheet.core.shapes import (
    Point, Rect, ImageObject, DesignObjectError, ObjectKind, paint_order
)
from gangsheet.core.document import Design, Sheet, UploadedAsset
from gangsheet.core.history import History


def make_image(obj_id, **kwargs):
    kwargs.setdefault('width', 100.0)
    kwargs.setdefault('height', 50.0)
    return ImageObject(id=obj_id, proxy_src=f"{obj_id}.png", **kwargs)


class TestPointAndRect(unittest.TestCase):
    """Test geometric primitives."""

    def test_point_rotate_about_center(self):
        """Test point rotation about a center."""
        p = Point(10, 0).rotate(3.141592653589793 / 2, Point(0, 0))
        self.assertAlmostEqual(p.x, 0.0, places=9)
        self.assertAlmostEqual(p.y, 10.0, places=9)

    def test_rect_from_points_any_order(self):
        """Test rectangle from opposite corners."""
        rect = Rect.from_points(Point(30, 40), Point(10, 5))
        self.assertEqual(rect, Rect(10, 5, 20, 35))

    def test_rect_normalized(self):
        """Test normalizing negative sizes."""
        rect = Rect(100, 100, -40, -20).normalized()
        self.assertEqual(rect, Rect(60, 80, 40, 20))


class TestDesignObject(unittest.TestCase):
    """Test ImageObject invariants and patching."""

    def test_kind_and_defaults(self):
        """Test object kind and default transform."""
        obj = make_image('a')
        self.assertEqual(obj.kind, ObjectKind.IMAGE)
        self.assertEqual(obj.scale_x, 1.0)
        self.assertEqual(obj.rotation, 0.0)

    def test_rejects_non_positive_size(self):
        """Test zero and negative sizes are refused."""
        with self.assertRaises(DesignObjectError):
            make_image('a', width=0)
        with self.assertRaises(DesignObjectError):
            make_image('a', height=-5)

    def test_rejects_zero_scale(self):
        """Test zero scale is refused."""
        with self.assertRaises(DesignObjectError):
            make_image('a', scale_x=0)

    def test_rejects_empty_id(self):
        """Test an empty id is refused."""
        with self.assertRaises(DesignObjectError):
            make_image('')

    def test_rejects_non_finite_values(self):
        """Test NaN, infinity and oversized numbers are refused."""
        for field_name in ('x', 'y', 'width', 'height', 'rotation', 'scale_x', 'scale_y'):
            for value in (float('nan'), float('inf'), float('-inf')):
                with self.subTest(field=field_name, value=value):
                    with self.assertRaises(DesignObjectError):
                        make_image('a', **{field_name: value})
        with self.assertRaises(DesignObjectError):
            make_image('a', z_index=10 ** 400)

    def test_patch_rejects_non_finite(self):
        """Test patching cannot introduce a NaN scale."""
        with self.assertRaises(DesignObjectError):
            make_image('a').with_patch(scale_x=float('nan'))

    def test_patch_returns_copy(self):
        """Test patching leaves the original untouched."""
        obj = make_image('a', x=10)
        moved = obj.with_patch(x=25, y=5)
        self.assertEqual(obj.x, 10)
        self.assertEqual(moved.x, 25)
        self.assertEqual(moved.y, 5)
        self.assertEqual(moved.id, 'a')

    def test_patch_rejects_immutable_fields(self):
        """Test creation-time fields cannot be patched."""
        obj = make_image('a')
        for field_name in ('id', 'width', 'height'):
            with self.assertRaises(DesignObjectError):
                obj.with_patch(**{field_name: 'b' if field_name == 'id' else 10})

    def test_patch_rejects_unknown_field(self):
        """Test patching an unknown field."""
        with self.assertRaises(DesignObjectError):
            make_image('a').with_patch(opacity=0.5)

    def test_display_size_ignores_mirror(self):
        """Test display size uses absolute scale."""
        obj = make_image('a', scale_x=-2.0, scale_y=0.5)
        self.assertEqual(obj.display_width, 200.0)
        self.assertEqual(obj.display_height, 25.0)
        self.assertEqual(obj.center, Point(100.0, 12.5))

    def test_best_src_prefers_high_res(self):
        """Test export source selection."""
        proxy_only = make_image('a')
        self.assertEqual(proxy_only.best_src, 'a.png')
        self.assertTrue(proxy_only.uses_proxy)

        full = make_image('b', high_res_src='hq-b.png')
        self.assertEqual(full.best_src, 'hq-b.png')
        self.assertFalse(full.uses_proxy)


class TestPaintOrder(unittest.TestCase):
    """Test back-to-front ordering."""

    def test_z_index_orders_objects(self):
        """Test z-index paint order."""
        a = make_image('a', z_index=2)
        b = make_image('b', z_index=0)
        c = make_image('c', z_index=1)
        self.assertEqual([o.id for o in paint_order([a, b, c])], ['b', 'c', 'a'])

    def test_missing_z_uses_list_position(self):
        """Test list position stands in for a missing z-index."""
        a = make_image('a')
        b = make_image('b')
        self.assertEqual([o.id for o in paint_order([a, b])], ['a', 'b'])

    def test_ties_keep_list_order(self):
        """Test equal keys keep list order."""
        a = make_image('a', z_index=1)
        b = make_image('b', z_index=1)
        self.assertEqual([o.id for o in paint_order([b, a])], ['b', 'a'])


class TestDesign(unittest.TestCase):
    """Test the Design aggregate."""

    def setUp(self):
        self.sheet = Sheet(width=2112, height=1152, label="22 x 12 in")

    def test_objects_stored_as_tuple(self):
        """Test object lists are frozen into tuples."""
        design = Design(sheet=self.sheet, objects=[make_image('a')])
        self.assertIsInstance(design.objects, tuple)

    def test_duplicate_ids_rejected(self):
        """Test duplicate object ids are refused."""
        with self.assertRaises(DesignObjectError):
            Design(sheet=self.sheet, objects=[make_image('a'), make_image('a')])

    def test_invalid_sheet(self):
        """Test a zero-width sheet is refused."""
        with self.assertRaises(DesignObjectError):
            Sheet(width=0, height=100)

    def test_non_finite_sheet(self):
        """Test infinite and NaN sheet sizes are refused."""
        with self.assertRaises(DesignObjectError):
            Sheet(width=float('inf'), height=100)
        with self.assertRaises(DesignObjectError):
            Sheet(width=100, height=float('nan'))

    def test_lookup(self):
        """Test finding objects and assets by id."""
        asset = UploadedAsset(id='u1', proxy_src='thumb.png', width=10, height=10)
        design = Design(sheet=self.sheet, objects=[make_image('a')], asset_library=[asset])
        self.assertEqual(design.get_object('a').id, 'a')
        self.assertIsNone(design.get_object('missing'))
        self.assertIs(design.get_asset('u1'), asset)

    def test_with_objects_leaves_original(self):
        """Test replacing objects returns a new design."""
        design = Design(sheet=self.sheet, objects=[make_image('a')])
        changed = design.with_objects([])
        self.assertEqual(len(design.objects), 1)
        self.assertEqual(len(changed.objects), 0)


class TestHistory(unittest.TestCase):
    """Test snapshot undo/redo."""

    def setUp(self):
        self.s0 = ()
        self.s1 = (make_image('a'),)
        self.s2 = (make_image('a'), make_image('b'))

    def test_initial_state(self):
        """Test a fresh history."""
        history = History.initial()
        self.assertEqual(len(history), 1)
        self.assertEqual(history.cursor, 0)
        self.assertFalse(history.can_undo)
        self.assertFalse(history.can_redo)

    def test_commit_moves_cursor(self):
        """Test commit appends and advances."""
        history = History.initial().commit(self.s1).commit(self.s2)
        self.assertEqual(history.cursor, 2)
        self.assertEqual(history.current, self.s2)

    def test_undo_redo(self):
        """Test stepping back and forward."""
        history = History.initial().commit(self.s1).commit(self.s2)
        undone = history.undo()
        self.assertEqual(undone.current, self.s1)
        self.assertTrue(undone.can_redo)
        self.assertEqual(undone.redo().current, self.s2)

    def test_undo_at_start_is_noop(self):
        """Test undo at the first entry."""
        history = History.initial()
        self.assertIs(history.undo(), history)

    def test_redo_at_end_is_noop(self):
        """Test redo at the last entry."""
        history = History.initial().commit(self.s1)
        self.assertIs(history.redo(), history)

    def test_commit_after_undo_discards_redo_branch(self):
        """Test committing after undo drops forward entries."""
        history = History.initial().commit(self.s1).commit(self.s2)
        branched = history.undo().undo().commit(self.s2)
        self.assertEqual(len(branched), 2)
        self.assertEqual(branched.cursor, 1)
        self.assertFalse(branched.can_redo)

    def test_undo_k_then_redo_k_restores(self):
        """Test N undos then N redos restore the last state."""
        history = History.initial()
        snapshots = [tuple(make_image(f"o{i}") for i in range(n)) for n in range(1, 6)]
        for snapshot in snapshots:
            history = history.commit(snapshot)
        final = history.current
        for _ in range(3):
            history = history.undo()
        for _ in range(3):
            history = history.redo()
        self.assertEqual(history.current, final)

    def test_cursor_always_in_range(self):
        """Test the cursor stays within the entries."""
        history = History.initial()
        for step in range(10):
            history = history.commit(((make_image(f"x{step}"),)))
            if step % 3 == 0:
                history = history.undo()
            self.assertTrue(0 <= history.cursor < len(history))

    def test_max_entries_drops_oldest(self):
        """Test the optional entry cap."""
        history = History.initial(max_entries=3)
        history = history.commit(self.s1).commit(self.s2).commit(self.s0)
        self.assertEqual(len(history), 3)
        self.assertEqual(history.cursor, 2)
        self.assertEqual(history.entries[0], self.s1)

    def test_invalid_cursor(self):
        """Test constructing with a bad cursor."""
        with self.assertRaises(ValueError):
            History(entries=((),), cursor=1)


if __name__ == '__main__':
    unittest.main()
