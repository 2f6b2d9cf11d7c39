"""
Tests for EditorSession operations.

Each mutating operation must add exactly one history entry; no-ops must
leave history alone.
"""

import math
import unittest

from replaydraw.config import EditorSettings
from replaydraw.core.actions import (
    Arc, BrushType, Fill, Gradient, Line, Rect, Stroke
)
from replaydraw.core.geometry import Point
from replaydraw.editor.session import EditorSession, Status


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.session = EditorSession(EditorSettings(canvas_width=400, canvas_height=400))

    def add_rect(self, x=10, y=10, w=100, h=50, **kwargs):
        result = self.session.commit_action(Rect(x=x, y=y, w=w, h=h, **kwargs))
        return result.data


class TestAdding(SessionTestCase):
    """Test committing new actions."""

    def test_commit_shape(self):
        result = self.session.commit_shape("rect", Point(10, 10), Point(110, 60))
        self.assertEqual(result.status, Status.CHANGED)
        self.assertTrue(result.changed)
        self.assertEqual(len(self.session.scene), 1)
        self.assertEqual(self.session.selection.primary, self.session.scene[0].id)
        self.assertEqual(self.session.history.undo_depth, 1)

    def test_small_shape_rejected(self):
        result = self.session.commit_shape("ellipse", Point(10, 10), Point(10.2, 10.2))
        self.assertEqual(result.status, Status.UNCHANGED)
        self.assertEqual(result.message, "Shape too small to add")
        self.assertEqual(self.session.history.undo_depth, 0)

    def test_zero_length_line_still_added(self):
        result = self.session.commit_shape("line", Point(5, 5), Point(5, 5))
        self.assertEqual(result.status, Status.CHANGED)

    def test_commit_clones_and_reassigns_duplicate_id(self):
        rect = Rect(x=1, y=1, w=5, h=5)
        self.session.commit_action(rect)
        again = self.session.commit_action(rect).data
        self.assertNotEqual(again.id, rect.id)
        self.assertIsNot(self.session.scene[0], rect)
        self.assertEqual(len(set(self.session.scene.ids())), 2)

    def test_commit_clears_redo(self):
        self.add_rect()
        self.session.undo()
        self.assertTrue(self.session.history.can_redo)
        self.add_rect()
        self.assertFalse(self.session.history.can_redo)


class TestFill(SessionTestCase):
    """Test bucket fill through the session."""

    def test_fill_applied(self):
        self.session.settings.color = "#ff0000"
        self.add_rect()
        result = self.session.apply_fill(Point(300.4, 300.6))
        self.assertEqual(result.status, Status.CHANGED)
        fill = self.session.scene[-1]
        self.assertIsInstance(fill, Fill)
        self.assertEqual((fill.x, fill.y), (300, 301))
        self.assertEqual(fill.tolerance, 24)
        self.assertTrue(self.session.selection.is_empty)
        self.assertEqual(result.data[300, 300].tolist(), [255, 0, 0, 255])

    def test_noop_fill_leaves_history(self):
        self.add_rect()
        self.session.undo()
        self.session.settings.color = "#ffffff"
        result = self.session.apply_fill(Point(200, 200))
        self.assertEqual(result.status, Status.UNCHANGED)
        self.assertEqual(result.message, "Fill region unchanged")
        self.assertEqual(self.session.history.undo_depth, 0)
        self.assertEqual(self.session.history.redo_depth, 1)

    def test_repeated_fill_is_noop(self):
        self.session.settings.color = "#00ff00"
        self.assertTrue(self.session.apply_fill(Point(5, 5)).changed)
        self.assertFalse(self.session.apply_fill(Point(50, 50)).changed)
        self.assertEqual(len(self.session.scene), 1)


class TestSelecting(SessionTestCase):
    """Test selection and style loading."""

    def test_select_at_loads_style(self):
        self.add_rect(filled=True, fill_color="#abcdef", stroke_weight=7)
        self.session.selection.clear()
        result = self.session.select_at(Point(50, 30))
        self.assertEqual(result.status, Status.OK)
        self.assertEqual(self.session.settings.color, "#abcdef")
        self.assertEqual(self.session.settings.stroke_weight, 7)
        self.assertTrue(self.session.settings.fill_shapes)

    def test_select_miss(self):
        self.add_rect(filled=True)
        result = self.session.select_at(Point(390, 390))
        self.assertEqual(result.status, Status.NO_SELECTION)
        self.assertTrue(self.session.selection.is_empty)

    def test_select_arc_loads_degrees(self):
        self.session.commit_action(Arc(x=0, y=0, w=100, h=100, start=math.pi / 2, stop=math.pi))
        self.session.load_style_from(self.session.scene[0])
        self.assertEqual(self.session.settings.arc_start_deg, 90)
        self.assertEqual(self.session.settings.arc_stop_deg, 180)

    def test_select_marquee(self):
        a = self.add_rect(x=10, y=10, w=20, h=20)
        b = self.add_rect(x=300, y=300, w=20, h=20)
        result = self.session.select_marquee(Point(0, 0), Point(399, 399))
        self.assertEqual(result.status, Status.OK)
        self.assertEqual(self.session.selection.ids, [b.id, a.id])
        empty = self.session.select_marquee(Point(150, 150), Point(200, 200))
        self.assertEqual(empty.status, Status.NO_SELECTION)


class TestEditing(SessionTestCase):
    """Test style, delete, layer order and clipboard."""

    def test_apply_style(self):
        rect = self.add_rect()
        eraser = self.session.commit_action(
            Stroke(brush="eraser", color="#ffffff", size=4, points=[Point(0, 0)])).data
        arc = self.session.commit_action(Arc(x=0, y=0, w=50, h=50)).data
        fill = self.session.commit_action(Fill(x=1, y=1)).data
        self.session.selection.set([rect.id, eraser.id, arc.id, fill.id])

        settings = self.session.settings
        settings.color = "#ff0000"
        settings.size = 20
        settings.fill_shapes = True
        settings.gradient_enabled = True
        settings.gradient_color = "#0000ff"
        settings.arc_start_deg = 90
        depth = self.session.history.undo_depth

        result = self.session.apply_style()
        self.assertEqual(result.status, Status.CHANGED)
        self.assertEqual(self.session.history.undo_depth, depth + 1)

        styled_rect = self.session.scene.get(rect.id)
        self.assertEqual(styled_rect.fill_color, "#ff0000")
        self.assertTrue(styled_rect.filled)
        self.assertEqual(styled_rect.gradient, Gradient("#0000ff", "left-right"))

        styled_eraser = self.session.scene.get(eraser.id)
        self.assertEqual(styled_eraser.color, "#ffffff")
        self.assertEqual(styled_eraser.size, 20)
        self.assertEqual(styled_eraser.brush, BrushType.ERASER)

        styled_arc = self.session.scene.get(arc.id)
        self.assertIsNone(styled_arc.gradient)
        self.assertAlmostEqual(styled_arc.start, math.pi / 2)
        self.assertEqual(self.session.scene.get(fill.id), fill)

    def test_apply_style_needs_selection(self):
        self.add_rect()
        self.session.selection.clear()
        self.assertEqual(self.session.apply_style().status, Status.NO_SELECTION)

    def test_delete_selected(self):
        self.add_rect()
        result = self.session.delete_selected()
        self.assertEqual(result.message, "Object deleted")
        self.assertEqual(len(self.session.scene), 0)
        self.assertEqual(self.session.delete_selected().status, Status.NO_SELECTION)

    def test_layer_order(self):
        a = self.add_rect()
        b = self.add_rect()
        c = self.add_rect()
        self.session.selection.set([a.id])

        self.assertEqual(self.session.bring_forward().message, "Moved forward one layer")
        self.assertEqual(self.session.scene.ids(), [b.id, a.id, c.id])
        self.assertEqual(self.session.bring_to_front().message, "Moved to front")
        self.assertEqual(self.session.scene.ids(), [b.id, c.id, a.id])

        depth = self.session.history.undo_depth
        result = self.session.bring_forward()
        self.assertEqual(result.status, Status.UNCHANGED)
        self.assertEqual(result.message, "Already at front layer edge")
        self.assertEqual(self.session.bring_to_front().message, "Already at front")
        self.assertEqual(self.session.history.undo_depth, depth)

        self.session.send_to_back()
        self.assertEqual(self.session.scene.ids(), [a.id, b.id, c.id])
        self.assertEqual(self.session.send_backward().message, "Already at back layer edge")
        self.assertEqual(self.session.send_to_back().message, "Already at back")

    def test_group_moves_as_block(self):
        a = self.add_rect()
        b = self.add_rect()
        c = self.add_rect()
        self.session.selection.set([a.id, b.id])
        self.session.bring_forward()
        self.assertEqual(self.session.scene.ids(), [c.id, a.id, b.id])

    def test_copy_paste(self):
        self.assertEqual(self.session.paste().message, "Clipboard empty")
        rect = self.add_rect()
        self.assertEqual(self.session.copy_selected().status, Status.OK)

        first = self.session.paste().data
        self.assertNotEqual(first.id, rect.id)
        self.assertEqual((first.x, first.y), (28, 28))
        self.assertEqual(self.session.selection.ids, [first.id])

        second = self.session.paste().data
        self.assertEqual((second.x, second.y), (46, 46))
        self.assertEqual(len(set(self.session.scene.ids())), 3)

    def test_copy_without_selection(self):
        self.assertEqual(self.session.copy_selected().status, Status.NO_SELECTION)


class TestHistory(SessionTestCase):
    """Test undo/redo through the session."""

    def test_undo_redo(self):
        self.assertEqual(self.session.undo().message, "Nothing to undo")
        self.assertEqual(self.session.redo().message, "Nothing to redo")
        rect = self.add_rect()
        self.assertEqual(self.session.undo().message, "Undo applied")
        self.assertEqual(len(self.session.scene), 0)
        self.assertTrue(self.session.selection.is_empty)
        self.assertEqual(self.session.redo().message, "Redo applied")
        self.assertEqual(self.session.scene.ids(), [rect.id])

    def test_undo_restores_exact_state(self):
        self.add_rect()
        self.add_rect(x=50)
        before = self.session.scene.snapshot()
        self.session.delete_selected()
        self.session.undo()
        self.assertEqual(self.session.scene.actions, before)

    def test_history_depth(self):
        for i in range(130):
            self.session.commit_action(Line(x1=i, y1=0, x2=i, y2=10))
        self.assertEqual(self.session.history.undo_depth, 120)
        while self.session.undo().changed:
            pass
        self.assertEqual(len(self.session.scene), 10)


class TestCanvas(SessionTestCase):
    """Test clear and resize."""

    def test_clear(self):
        self.assertEqual(self.session.clear().status, Status.UNCHANGED)
        self.add_rect()
        self.assertEqual(self.session.clear().message, "Canvas cleared")
        self.assertEqual(len(self.session.scene), 0)
        self.session.undo()
        self.assertEqual(len(self.session.scene), 1)

    def test_resize(self):
        self.add_rect()
        depth = self.session.history.undo_depth
        self.assertEqual(self.session.resize_canvas(400, 400).message, "Canvas size unchanged")
        result = self.session.resize_canvas(800, 50)
        self.assertEqual(result.message, "Canvas resized to 800x100")
        self.assertEqual(self.session.settings.canvas_width, 800)
        self.assertEqual(self.session.settings.canvas_height, 100)
        self.assertEqual(self.session.history.undo_depth, depth)


class TestPersistence(SessionTestCase):
    """Test save, restore and export."""

    def test_save_and_restore(self):
        rect = self.add_rect()
        written = []
        self.assertEqual(self.session.save(written.append).status, Status.OK)

        other = EditorSession()
        result = other.restore(written[0])
        self.assertEqual(result.status, Status.CHANGED)
        self.assertEqual(other.scene.ids(), [rect.id])
        self.assertFalse(other.history.can_undo)
        self.assertTrue(other.selection.is_empty)

    def test_save_failure(self):
        def failing_writer(text):
            raise OSError("disk full")

        result = self.session.save(failing_writer)
        self.assertEqual(result.status, Status.ERROR)
        self.assertIn("disk full", result.message)

    def test_storage_quota_failure(self):
        class QuotaExceeded(Exception):
            pass

        def full_storage(text):
            raise QuotaExceeded("quota exceeded")

        result = self.session.save(full_storage)
        self.assertEqual(result.status, Status.ERROR)
        self.assertIn("quota exceeded", result.message)

    def test_corrupted_restore_keeps_scene(self):
        rect = self.add_rect()
        result = self.session.restore("{oops")
        self.assertEqual(result.status, Status.ERROR)
        self.assertEqual(result.message, "Saved project is corrupted")
        self.assertEqual(self.session.scene.ids(), [rect.id])
        self.assertTrue(self.session.history.can_undo)

    def test_restore_skips_non_string_type(self):
        result = self.session.restore('{"actions": [{"type": ["rect"]}, {"type": "rect", "w": 5}]}')
        self.assertEqual(result.status, Status.CHANGED)
        self.assertEqual(len(self.session.scene), 1)

    def test_restore_ignores_oversized_numbers(self):
        huge = "1" + "0" * 400
        text = '{"settings": {"size": ' + huge + '}, "actions": [{"type": "rect", "x": ' + huge + '}]}'
        result = self.session.restore(text)
        self.assertEqual(result.status, Status.CHANGED)
        self.assertEqual(self.session.settings.size, 8)
        self.assertEqual(self.session.scene[0].x, 0)

    def test_restore_applies_canvas_size(self):
        self.session.resize_canvas(640, 480)
        text = self.session.dumps()
        other = EditorSession()
        other.restore(text)
        self.assertEqual((other.scene.width, other.scene.height), (640, 480))

    def test_export_program(self):
        self.add_rect()
        result = self.session.export_program()
        self.assertEqual(result.status, Status.OK)
        self.assertTrue(result.data.startswith("// Generated by ReplayDraw\n"))
        image = self.session.export_program(image_mode=True)
        self.assertIn("(Image Mode)", image.data)


if __name__ == '__main__':
    unittest.main()
