"""
Tests for the gangsheet command line.
"""

import contextlib
import io
import os
import shutil
import tempfile
import unittest

from PIL import Image

from gangsheet.core.document import Design, Sheet
from gangsheet.core.shapes import ImageObject
from gangsheet.io import save_project
from gangsheet.main import main


class TestCommandLine(unittest.TestCase):
    """Test the export, check and sizes commands."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.asset = os.path.join(self.tmpdir, 'a.png')
        Image.new('RGBA', (96, 96), (255, 0, 0, 255)).save(self.asset)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def write_design(self, objects):
        path = os.path.join(self.tmpdir, 'design.json')
        save_project(Design(sheet=Sheet(width=192, height=96), objects=objects), path)
        return path

    def obj(self, obj_id, x, src=None):
        return ImageObject(id=obj_id, x=x, y=0, width=96, height=96,
                           proxy_src='thumb.png', high_res_src=src or self.asset)

    def run_main(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_sizes(self):
        """Test listing sheet sizes."""
        code, out, _ = self.run_main(['sizes'])
        self.assertEqual(code, 0)
        self.assertIn('22 x 12 in', out)
        self.assertIn('22 x 60 in', out)

    def test_export(self):
        """Test exporting a design file to PNG."""
        design = self.write_design([self.obj('a', 0)])
        output = os.path.join(self.tmpdir, 'out.png')
        code, out, _ = self.run_main(['export', design, '-o', output])
        self.assertEqual(code, 0)
        self.assertIn('600x300', out)
        with Image.open(output) as img:
            self.assertEqual(img.size, (600, 300))

    def test_export_total_failure(self):
        """Test a failed export writes nothing and exits nonzero."""
        missing = os.path.join(self.tmpdir, 'gone.png')
        design = self.write_design([self.obj('a', 0, src=missing)])
        output = os.path.join(self.tmpdir, 'out.png')
        code, _, err = self.run_main(['export', design, '-o', output])
        self.assertEqual(code, 1)
        self.assertIn('Export failed', err)
        self.assertFalse(os.path.exists(output))

    def test_check(self):
        """Test the overlap check and its buffer option."""
        design = self.write_design([self.obj('a', 0), self.obj('b', 100)])
        code, out, _ = self.run_main(['check', design])
        self.assertEqual(code, 1)
        self.assertIn('a <-> b', out)

        code, out, _ = self.run_main(['check', design, '--buffer', '0'])
        self.assertEqual(code, 0)
        self.assertIn('No overlaps', out)

    def test_invalid_design_file(self):
        """Test a malformed design file exits cleanly."""
        path = os.path.join(self.tmpdir, 'broken.json')
        with open(path, 'w', encoding='utf-8') as f:
            f.write('[]')
        with self.assertRaises(SystemExit):
            self.run_main(['export', path])

    def test_design_with_stray_entries(self):
        """Test a design listing a non-object entry exits cleanly instead of crashing."""
        path = os.path.join(self.tmpdir, 'stray.json')
        with open(path, 'w', encoding='utf-8') as f:
            f.write('{"objects": ["oops"]}')
        for command in ('check', 'export'):
            with self.subTest(command=command):
                with self.assertRaises(SystemExit):
                    self.run_main([command, path])


if __name__ == '__main__':
    unittest.main()
