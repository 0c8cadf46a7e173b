# Copyright Red Hat
#
# tests/treediff/test_tmpfiles.py - Temporary file writer tests.
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import patch
import tempfile
import os
import re

from builddiff import BuilddiffSystemError
from builddiff.treediff.tmpfiles import (
    TempFileWriter,
    tmp_dirs,
    tmp_filename,
)


class TestTmpDirs(unittest.TestCase):
    def test_tmp_dirs_default(self):
        self.assertEqual(tmp_dirs({}, "/work"), ["/tmp", "/work/tmp"])

    def test_tmp_dirs_env_order(self):
        env = {"TMP": "/b", "TEMP": "/c", "TMPDIR": "/a"}
        self.assertEqual(tmp_dirs(env, "/work"), ["/a", "/work/tmp"])
        del env["TMPDIR"]
        self.assertEqual(tmp_dirs(env, "/work"), ["/b", "/work/tmp"])
        del env["TMP"]
        self.assertEqual(tmp_dirs(env, "/work"), ["/c", "/work/tmp"])

    def test_tmp_dirs_skips_empty(self):
        env = {"TMPDIR": "", "TMP": "/b"}
        self.assertEqual(tmp_dirs(env, "/work"), ["/b", "/work/tmp"])

    def test_tmp_filename(self):
        self.assertEqual(tmp_filename(1700000000, 42, 7), "tmp-1700000000-42-7")


class TestTempFileWriter(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)
        self.root = self.tmp_dir.name

    def test_write_first_candidate(self):
        writer = TempFileWriter(environ={"TMPDIR": self.root}, cwd="/nonexistent")
        path = writer.write(b"content")
        self.assertEqual(os.path.dirname(path), self.root)
        self.assertRegex(os.path.basename(path), r"^tmp-\d+-\d+-\d+$")
        with open(path, "rb") as f:
            self.assertEqual(f.read(), b"content")

    def test_write_falls_through(self):
        os.mkdir(os.path.join(self.root, "tmp"))
        writer = TempFileWriter(
            environ={"TMPDIR": os.path.join(self.root, "missing")}, cwd=self.root
        )
        path = writer.write(b"x")
        self.assertEqual(os.path.dirname(path), os.path.join(self.root, "tmp"))
        self.assertTrue(os.path.exists(path))

    def test_write_exhausted(self):
        writer = TempFileWriter(
            environ={"TMPDIR": os.path.join(self.root, "missing")},
            cwd=os.path.join(self.root, "also_missing"),
        )
        with self.assertRaises(BuilddiffSystemError) as cm:
            writer.write(b"x")
        self.assertIn("could not write tmp file", str(cm.exception))

    def test_write_uses_process_environment(self):
        with patch.dict(os.environ, {"TMPDIR": self.root}):
            path = TempFileWriter().write(b"y")
        self.assertTrue(path.startswith(self.root))

    def test_files_left_on_disk(self):
        writer = TempFileWriter(environ={"TMPDIR": self.root}, cwd=self.root)
        paths = [writer.write(b"a"), writer.write(b"b")]
        self.assertNotEqual(paths[0], paths[1])
        for path in paths:
            self.assertTrue(os.path.exists(path))
        self.assertEqual(len(os.listdir(self.root)), 2)
