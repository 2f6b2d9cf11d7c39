"""
Tests for the replaydraw command line.
"""

import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from PIL import Image

from replaydraw.config import EditorSettings
from replaydraw.core.actions import Fill, Rect
from replaydraw.io.project_io import save_project
from replaydraw.main import main


class TestCommandLine(unittest.TestCase):
    """Test the export and render commands."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.project = os.path.join(self.tmp.name, "drawing.json")
        save_project(self.project, EditorSettings(canvas_width=120, canvas_height=100),
                     [Rect(x=10, y=10, w=50, h=20, filled=True), Fill(x=100, y=90)])

    def tearDown(self):
        self.tmp.cleanup()

    def test_export_to_stdout(self):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(["export", self.project])
        self.assertEqual(code, 0)
        text = out.getvalue()
        self.assertIn("var ART_DATA=[[\"R\"", text)
        self.assertIn("1 fill-bucket action(s) were skipped", text)

    def test_export_image_to_file(self):
        output = os.path.join(self.tmp.name, "drawing.pjs")
        code = main(["export", self.project, "--image", "-o", output])
        self.assertEqual(code, 0)
        with open(output, encoding="utf-8") as f:
            text = f.read()
        self.assertIn("var ART_IMG_W=120;", text)
        self.assertIn("var ART_IMG_H=100;", text)

    def test_render(self):
        output = os.path.join(self.tmp.name, "drawing.png")
        self.assertEqual(main(["render", self.project, output]), 0)
        with Image.open(output) as image:
            self.assertEqual(image.size, (120, 100))

    def test_corrupted_project(self):
        with open(self.project, "w", encoding="utf-8") as f:
            f.write("{broken")
        self.assertEqual(main(["export", self.project]), 1)

    def test_missing_project(self):
        missing = os.path.join(self.tmp.name, "missing.json")
        self.assertEqual(main(["render", missing, "out.png"]), 1)


if __name__ == '__main__':
    unittest.main()
