import os
import tempfile
import unittest

from config import CFG
from io_files import layout_view_html, write_coords, write_layout_view_html
from models import Item
from render import render_board


class WriteOutputsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self._orig_coords = CFG.COORDS_OUT
        self._orig_layout = CFG.LAYOUT_HTML
        self._orig_grid = CFG.GRID_PX
        CFG.GRID_PX = 16

    def tearDown(self) -> None:
        CFG.COORDS_OUT = self._orig_coords
        CFG.LAYOUT_HTML = self._orig_layout
        CFG.GRID_PX = self._orig_grid

    def test_write_coords_uses_configured_relative_path(self) -> None:
        CFG.COORDS_OUT = "outputs/custom_coords.txt"
        items = [Item(id="hero", kind="site", gx=1, gy=2, gw=3, gh=4)]

        path = write_coords(items, 10, 8, self.tmpdir.name)

        expected = os.path.join(self.tmpdir.name, "outputs", "custom_coords.txt")
        self.assertEqual(path, expected)
        self.assertTrue(os.path.exists(path))

        with open(path, "r", encoding="utf-8") as fh:
            contents = fh.read()
        self.assertIn("canvas 10x8 cells (160x128 px)", contents)
        self.assertIn("hero [site] @ (1,2) size (3×4) px=(16,32,48,64)", contents)

    def test_write_coords_marks_empty_board(self) -> None:
        CFG.COORDS_OUT = "coords.txt"
        path = write_coords([], 4, 4, self.tmpdir.name)
        with open(path, "r", encoding="utf-8") as fh:
            self.assertIn("No items", fh.read())

    def test_write_layout_view_html_accepts_absolute_path(self) -> None:
        target = os.path.join(self.tmpdir.name, "html", "layout.html")
        CFG.LAYOUT_HTML = target

        svg, legend = render_board([Item(id="a<b", gw=2, gh=2)], 10, 10)

        path = write_layout_view_html(svg, legend, self.tmpdir.name)

        self.assertEqual(path, target)
        self.assertTrue(os.path.exists(path))

        with open(path, "r", encoding="utf-8") as fh:
            contents = fh.read()
        self.assertIn(svg, contents)
        self.assertIn(legend, contents)
        self.assertIn("a&lt;b", contents)
        self.assertIn("image × 1", legend)

    def test_layout_view_html_escapes_title(self) -> None:
        page = layout_view_html("<svg/>", "", title="Board <b>&</b>")
        self.assertIn("<title>Board &lt;b&gt;&amp;&lt;/b&gt;</title>", page)
        self.assertIn("<h1>Board &lt;b&gt;&amp;&lt;/b&gt;</h1>", page)
        self.assertIn("<svg/>", page)


if __name__ == "__main__":
    unittest.main()
