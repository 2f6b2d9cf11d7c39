"""
Tests for the replay program encoder.
"""

import json
import math
import unittest

import numpy as np

from replaydraw.core.actions import (
    Arc, Bezier, Ellipse, Fill, Gradient, Line, PolygonShape, Rect, Stroke, VertexPath
)
from replaydraw.core.geometry import Point
from replaydraw.core.scene import Scene
from replaydraw.io.export import (
    Normalizer, build_image_export, encode_action, encode_vector,
    generate_program, short_number
)

FILL_RGB = [0, 183, 255]
STROKE_RGB = [13, 34, 56]


def _program_data(text, name):
    for line in text.splitlines():
        prefix = f"var {name}="
        if line.startswith(prefix):
            return json.loads(line[len(prefix):-1])
    raise AssertionError(f"{name} not found")


class TestNumbers(unittest.TestCase):
    """Test numeric normalization."""

    def test_short_number(self):
        self.assertEqual(short_number(0.123456), 0.1235)
        self.assertEqual(short_number(2.0), 2)
        self.assertIsInstance(short_number(2.0), int)

    def test_normalizer(self):
        norm = Normalizer(400, 200)
        self.assertEqual(norm.x(100), 0.25)
        self.assertEqual(norm.y(100), 0.5)
        self.assertEqual(norm.size(30), 0.1)
        self.assertEqual(norm.points([Point(400, 0), Point(0, 200)]), [1, 0, 0, 1])


class TestEncodeAction(unittest.TestCase):
    """Test per-type encodings."""

    def test_rect(self):
        encoded = encode_action(Rect(x=10, y=10, w=100, h=50), 400, 400)
        self.assertEqual(encoded, [
            "R", *FILL_RGB, *STROKE_RGB, 255, 0.005, 0,
            0.025, 0.025, 0.25, 0.125, 0
        ])

    def test_gradient_rect(self):
        rect = Rect(x=0, y=0, w=200, h=200, filled=True,
                    gradient=Gradient("#ffffff", "top-bottom"))
        encoded = encode_action(rect, 400, 400)
        self.assertEqual(encoded[0], "RG")
        self.assertEqual(encoded[1:8], [*FILL_RGB, 255, 255, 255, 2])
        self.assertEqual(encoded[13], 1)

    def test_ellipse_uses_centre(self):
        encoded = encode_action(Ellipse(x=0, y=0, w=200, h=100), 400, 400)
        self.assertEqual(encoded[0], "E")
        self.assertEqual(encoded[10:14], [0.25, 0.125, 0.5, 0.25])

    def test_line(self):
        line = Line(x1=0, y1=0, x2=400, y2=200, opacity=0.5, stroke_weight=4)
        self.assertEqual(encode_action(line, 400, 400), ["L", *STROKE_RGB, 128, 0.01, 0, 0, 1, 0.5])

    def test_arc(self):
        arc = Arc(x=0, y=0, w=200, h=200, start=0, stop=math.pi, filled=True)
        encoded = encode_action(arc, 400, 400)
        self.assertEqual(encoded[0], "A")
        self.assertEqual(encoded[6:10], [0.25, 0.25, 0.5, 0.5])
        self.assertEqual(encoded[10:12], [0, 3.1416])
        self.assertEqual(encoded[13], 1)
        self.assertEqual(encoded[14:], FILL_RGB)

    def test_strokes(self):
        pen = Stroke(color="#ff0000", size=8, points=[Point(0, 0), Point(400, 400)])
        self.assertEqual(encode_action(pen, 400, 400), ["S", 255, 0, 0, 255, 0.02, [0, 0, 1, 1]])

        pencil = Stroke(brush="pencil", size=10, points=[Point(0, 0)])
        self.assertEqual(encode_action(pencil, 400, 400)[5], short_number(5.5 / 400))

        eraser = Stroke(brush="eraser", color="#ff0000", size=8, points=[Point(0, 0)])
        self.assertEqual(encode_action(eraser, 400, 400)[:4], ["S", 255, 255, 255])

        glow = Stroke(brush="glow", size=8, points=[Point(0, 0)])
        self.assertEqual(encode_action(glow, 400, 400)[0], "G")

        spray = Stroke(brush="spray", size=8, points=[Point(0, 0)], dots=[Point(200, 200)])
        encoded = encode_action(spray, 400, 400)
        self.assertEqual(encoded[0], "P")
        self.assertEqual(encoded[5], 0.01)
        self.assertEqual(encoded[6], [0.5, 0.5])

    def test_polygon_without_gradient_is_path(self):
        tri = PolygonShape(points=[Point(0, 0), Point(400, 0), Point(0, 400)], filled=True)
        encoded = encode_action(tri, 400, 400)
        self.assertEqual(encoded[0], "VP")
        self.assertEqual(encoded[9:12], [0, 1, 1])
        self.assertEqual(encoded[12], [0, 0, 1, 0, 0, 1])

    def test_polygon_with_gradient(self):
        quad = PolygonShape(
            shape="quad", points=[Point(0, 0), Point(400, 0), Point(400, 400), Point(0, 400)],
            gradient=Gradient("#000000", "center-in")
        )
        encoded = encode_action(quad, 400, 400)
        self.assertEqual(encoded[0], "QG")
        self.assertEqual(encoded[7], 5)
        self.assertEqual(encoded[-8:], [0, 0, 1, 0, 1, 1, 0, 1])

    def test_vertex_path_flags(self):
        path = VertexPath(points=[Point(0, 0), Point(200, 200)], curved=True,
                          closed=False, filled=True)
        encoded = encode_action(path, 400, 400)
        self.assertEqual(encoded[9:12], [1, 0, 0])

    def test_bezier(self):
        curve = Bezier(x1=0, y1=0, cx1=100, cy1=0, cx2=300, cy2=400, x2=400, y2=400)
        encoded = encode_action(curve, 400, 400)
        self.assertEqual(encoded[0], "B")
        self.assertEqual(encoded[6:], [0, 0, 0.25, 0, 0.75, 1, 1, 1])

    def test_fill_is_not_encoded(self):
        self.assertIsNone(encode_action(Fill(), 400, 400))


class TestVectorProgram(unittest.TestCase):
    """Test vector mode output."""

    def test_deterministic(self):
        def build():
            scene = Scene(400, 400)
            scene.append(Rect(x=10, y=10, w=100, h=50))
            scene.append(Line(x1=0, y1=0, x2=50, y2=50))
            return scene

        first = generate_program(build())
        second = generate_program(build())
        self.assertEqual(first, second)

    def test_fill_only_scene(self):
        scene = Scene(400, 400)
        scene.append(Fill(x=5, y=5, color="#ff0000"))
        vector = encode_vector(scene)
        self.assertEqual(vector.actions, [])
        self.assertEqual(vector.skipped_fills, 1)

        program = generate_program(scene)
        self.assertEqual(_program_data(program, "ART_DATA"), [])
        self.assertIn("1 fill-bucket action(s) were skipped", program)

    def test_header_and_order(self):
        scene = Scene(400, 400)
        scene.append(Line(x1=0, y1=0, x2=1, y2=1))
        scene.append(Rect(x=0, y=0, w=10, h=10))
        program = generate_program(scene)
        self.assertTrue(program.startswith("// Generated by ReplayDraw\n"))
        data = _program_data(program, "ART_DATA")
        self.assertEqual([entry[0] for entry in data], ["L", "R"])
        self.assertNotIn("skipped", program)


class TestImageExport(unittest.TestCase):
    """Test palette and run-length encoding."""

    def test_runs_and_palette(self):
        raster = np.full((2, 3, 4), 255, dtype=np.uint8)
        raster[0, 2] = (255, 0, 0, 255)
        raster[1, :] = (255, 0, 0, 255)
        image = build_image_export(raster)
        self.assertEqual((image.width, image.height), (3, 2))
        self.assertEqual(image.palette, [[255, 255, 255, 255], [255, 0, 0, 255]])
        self.assertEqual(image.runs, [[0, 0, 2, 0], [2, 0, 1, 1], [0, 1, 3, 1]])

    def test_runs_cover_every_pixel(self):
        rng = np.random.default_rng(5)
        raster = rng.integers(0, 3, size=(6, 7, 4), dtype=np.uint8)
        image = build_image_export(raster)
        self.assertEqual(sum(run[2] for run in image.runs), 6 * 7)
        for x, row, length, index in image.runs:
            expected = image.palette[index]
            for col in range(x, x + length):
                self.assertEqual(raster[row, col].tolist(), expected)

    def test_palette_is_unique(self):
        raster = np.zeros((4, 4, 4), dtype=np.uint8)
        raster[::2] = 255
        image = build_image_export(raster)
        self.assertEqual(len(image.palette), 2)
        self.assertEqual(len(image.runs), 4)

    def test_image_program_includes_fills(self):
        scene = Scene(100, 100)
        scene.append(Fill(x=5, y=5, color="#ff0000"))
        program = generate_program(scene, image_mode=True)
        self.assertTrue(program.startswith("// Generated by ReplayDraw (Image Mode)"))
        self.assertEqual(_program_data(program, "ART_IMG_W"), 100)
        self.assertEqual(_program_data(program, "ART_IMG_P"), [[255, 0, 0, 255]])
        self.assertEqual(_program_data(program, "ART_IMG_R")[0], [0, 0, 100, 0])
        self.assertEqual(len(_program_data(program, "ART_IMG_R")), 100)


if __name__ == '__main__':
    unittest.main()
