"""
Tests for move, rotate, scale and point/edge editing.
"""

import math
import unittest

from replaydraw.core.actions import (
    Arc, Bezier, Ellipse, Fill, Line, PolygonShape, Rect, Stroke, VertexPath
)
from replaydraw.core.geometry import BoundingBox, Point
from replaydraw.graphics.selection import EdgeHandle, editable_edge_handles
from replaydraw.graphics.transform import (
    move_action, move_control_point, move_edge, move_group, resize_factors,
    rotate_action, rotate_group, scale_action_from
)


class TestMove(unittest.TestCase):
    """Test translation."""

    def test_move_rect(self):
        rect = Rect(x=10, y=10, w=100, h=50)
        moved = move_action(rect, 5, -5)
        self.assertEqual((moved.x, moved.y, moved.w, moved.h), (15, 5, 100, 50))
        self.assertEqual(moved.id, rect.id)
        self.assertEqual(rect.x, 10)

    def test_move_stroke_moves_points_and_dots(self):
        spray = Stroke(brush="spray", points=[Point(0, 0)], dots=[Point(1, 1)])
        moved = move_action(spray, 10, 20)
        self.assertEqual(moved.points, [Point(10, 20)])
        self.assertEqual(moved.dots, [Point(11, 21)])

    def test_move_bezier(self):
        curve = Bezier(x1=0, y1=0, cx1=1, cy1=1, cx2=2, cy2=2, x2=3, y2=3)
        moved = move_action(curve, 1, 1)
        self.assertEqual(moved.control_points, [Point(1, 1), Point(2, 2), Point(3, 3), Point(4, 4)])

    def test_move_group(self):
        actions = [Line(x1=0, y1=0, x2=1, y2=1), VertexPath(points=[Point(2, 2)])]
        moved = move_group(actions, 3, 3)
        self.assertEqual(moved[0].x2, 4)
        self.assertEqual(moved[1].points, [Point(5, 5)])


class TestRotate(unittest.TestCase):
    """Test rotation."""

    def test_zero_rotation_is_identity(self):
        for action in (Rect(x=1, y=2, w=30, h=40), Line(x1=0, y1=0, x2=5, y2=5),
                       VertexPath(points=[Point(1, 1), Point(4, 8)])):
            self.assertEqual(rotate_action(action, Point(7, 7), 0), action)

    def test_rect_keeps_size_and_accumulates_rotation(self):
        rect = Rect(x=0, y=0, w=100, h=20)
        turned = rotate_action(rect, Point(50, 10), math.pi / 2)
        self.assertEqual((turned.w, turned.h), (100, 20))
        self.assertAlmostEqual(turned.rotation, math.pi / 2)
        again = rotate_action(turned, Point(50, 10), 2 * math.pi)
        self.assertAlmostEqual(again.rotation, math.pi / 2)

    def test_rect_centre_orbits(self):
        rect = Rect(x=90, y=-10, w=20, h=20)
        turned = rotate_action(rect, Point(0, 0), math.pi / 2)
        self.assertAlmostEqual(turned.center.x, 0)
        self.assertAlmostEqual(turned.center.y, 100)

    def test_line_rotates_points(self):
        line = Line(x1=0, y1=0, x2=10, y2=0)
        turned = rotate_action(line, Point(0, 0), math.pi / 2)
        self.assertAlmostEqual(turned.x2, 0)
        self.assertAlmostEqual(turned.y2, 10)

    def test_fill_unchanged(self):
        fill = Fill(x=5, y=5)
        self.assertEqual(rotate_action(fill, Point(0, 0), 1.0), fill)

    def test_group_shares_centre(self):
        actions = [Line(x1=10, y1=0, x2=20, y2=0), Ellipse(x=-30, y=-5, w=10, h=10)]
        turned = rotate_group(actions, Point(0, 0), math.pi)
        self.assertAlmostEqual(turned[0].x1, -10)
        self.assertAlmostEqual(turned[1].center.x, 25)


class TestScale(unittest.TestCase):
    """Test scaling from an anchor."""

    def test_rect_double_width(self):
        rect = Rect(x=10, y=10, w=100, h=50, stroke_weight=2)
        scaled = scale_action_from(rect, 10, 10, 2, 1)
        self.assertEqual((scaled.x, scaled.y, scaled.w, scaled.h), (10, 10, 200, 50))
        self.assertAlmostEqual(scaled.stroke_weight, 3)

    def test_box_size_floor(self):
        ellipse = Ellipse(x=0, y=0, w=10, h=10)
        scaled = scale_action_from(ellipse, 0, 0, 0.01, 0.01)
        self.assertEqual((scaled.w, scaled.h), (2, 2))
        self.assertEqual(scaled.stroke_weight, 1)

    def test_stroke_size_scales(self):
        stroke = Stroke(size=10, points=[Point(10, 10)])
        scaled = scale_action_from(stroke, 0, 0, 3, 1)
        self.assertEqual(scaled.points, [Point(30, 10)])
        self.assertEqual(scaled.size, 20)

    def test_polygon_points_scale(self):
        tri = PolygonShape(points=[Point(0, 0), Point(10, 0), Point(0, 10)])
        scaled = scale_action_from(tri, 0, 0, 2, 3)
        self.assertEqual(scaled.points, [Point(0, 0), Point(20, 0), Point(0, 30)])

    def test_resize_factors(self):
        bounds = BoundingBox(10, 10, 110, 60)
        anchor, sx, sy = resize_factors(bounds, Point(210, 60))
        self.assertEqual(anchor, Point(10, 10))
        self.assertAlmostEqual(sx, 2.0)
        self.assertAlmostEqual(sy, 1.0)

    def test_resize_factors_floor(self):
        bounds = BoundingBox(0, 0, 1, 1)
        _, sx, sy = resize_factors(bounds, Point(-50, -50))
        self.assertEqual((sx, sy), (1.0, 1.0))


class TestPointAndEdgeEdits(unittest.TestCase):
    """Test control point and edge drags."""

    def test_move_line_end(self):
        line = Line(x1=0, y1=0, x2=10, y2=10)
        edited = move_control_point(line, 1, Point(20, 5))
        self.assertEqual((edited.x2, edited.y2), (20, 5))
        self.assertEqual((edited.x1, edited.y1), (0, 0))

    def test_move_bezier_control(self):
        curve = Bezier(x1=0, y1=0, cx1=1, cy1=1, cx2=2, cy2=2, x2=3, y2=3)
        edited = move_control_point(curve, 2, Point(9, 9))
        self.assertEqual((edited.cx2, edited.cy2), (9, 9))

    def test_out_of_range_index_is_noop(self):
        path = VertexPath(points=[Point(0, 0), Point(1, 1)])
        self.assertEqual(move_control_point(path, 5, Point(9, 9)), path)

    def test_arc_angle_from_point(self):
        arc = Arc(x=0, y=0, w=100, h=50, start=0, stop=math.pi)
        # Straight below the centre on a squashed ellipse is still pi/2
        edited = move_control_point(arc, 0, Point(50, 200))
        self.assertAlmostEqual(edited.start, math.pi / 2)
        edited = move_control_point(arc, 1, Point(50, -40))
        self.assertAlmostEqual(edited.stop, 3 * math.pi / 2)

    def test_move_polygon_edge(self):
        tri = PolygonShape(points=[Point(0, 0), Point(10, 0), Point(0, 10)])
        edge = editable_edge_handles(tri)[2]
        edited = move_edge(tri, edge, 5, 0)
        self.assertEqual(edited.points, [Point(5, 0), Point(10, 0), Point(5, 10)])

    def test_move_line_edge_moves_both_ends(self):
        line = Line(x1=0, y1=0, x2=10, y2=0)
        edited = move_edge(line, EdgeHandle(5, 0, kind="line"), 0, 7)
        self.assertEqual((edited.y1, edited.y2), (7, 7))


if __name__ == '__main__':
    unittest.main()
