# Copyright Red Hat
#
# tests/test_command.py - CLI layer tests
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import patch
from contextlib import redirect_stdout
import tempfile
import io
import os

import builddiff
import builddiff.command as command
from builddiff.treediff import CompareOptions
from builddiff.treediff.difftypes import CompareResults, FileDiff

from tests import MockArgs
from tests.treediff._util import make_beam, term_to_binary, write_file
from builddiff.treediff.etf import Atom


class CommandTestsBase(unittest.TestCase):
    def get_main_args(self):
        return [os.path.join(os.getcwd(), "bin/builddiff")]

    def setUp(self):
        tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(tmp_dir.cleanup)
        self.root = tmp_dir.name
        self.dir1 = os.path.join(self.root, "dir1")
        self.dir2 = os.path.join(self.root, "dir2")
        os.mkdir(self.dir1)
        os.mkdir(self.dir2)

    def run_main(self, *argv):
        out = io.StringIO()
        with redirect_stdout(out):
            status = command.main(self.get_main_args() + list(argv))
        return status, out.getvalue()


class CommandTests(CommandTestsBase):
    def test_main_wrong_argument_count(self):
        for argv in ([], [self.dir1], [self.dir1, self.dir2, self.root]):
            with patch("builddiff.command.compare_dirs") as mock_compare:
                status, out = self.run_main(*argv)
            self.assertEqual(status, 1)
            self.assertIn("Please, provide two directories as arguments", out)
            mock_compare.assert_not_called()

    def test_main_equal(self):
        write_file(self.dir1, "a.txt", "same\n")
        write_file(self.dir2, "a.txt", "same\n")
        status, out = self.run_main(self.dir1, self.dir2)
        self.assertEqual(status, 0)
        self.assertEqual(out, f'"{self.dir1}" and "{self.dir2}" are equal\n')

    def test_main_only_in(self):
        write_file(self.dir1, "a.txt", "same\n")
        write_file(self.dir2, "a.txt", "same\n")
        write_file(self.dir1, "b.beam", make_beam([]))
        write_file(self.dir2, "c.beam", make_beam([]))
        status, out = self.run_main(self.dir1, self.dir2)
        self.assertEqual(status, 1)
        self.assertIn(f"Only in {self.dir1}: b.beam", out)
        self.assertIn(f"Only in {self.dir2}: c.beam", out)
        self.assertNotIn("Diff ", out)

    def test_main_diff_unified(self):
        meta1 = term_to_binary([(Atom("vsn"), 1)])
        meta2 = term_to_binary([(Atom("vsn"), 2)])
        write_file(self.dir1, "x.beam", make_beam([("Meta", meta1)]))
        write_file(self.dir2, "x.beam", make_beam([("Meta", meta2)]))
        with patch.dict(os.environ, {"TMPDIR": self.root}):
            status, out = self.run_main("--unified", self.dir1, self.dir2)
        self.assertEqual(status, 1)
        self.assertIn("Diff x.beam:\n", out)
        self.assertIn("+[('Meta', [(Atom('vsn'), 2)])]", out)

    def test_main_not_a_directory(self):
        path = write_file(self.root, "file.txt", "x")
        status, out = self.run_main(path, self.dir2)
        self.assertEqual(status, 1)
        self.assertEqual(out, "")

    def test_main_bad_debug(self):
        status, _ = self.run_main("--debug", "bogus", self.dir1, self.dir2)
        self.assertEqual(status, 1)

    def test_print_results(self):
        results = CompareResults(
            ["l.txt"], ["r.txt"], [FileDiff("d.txt", "1c1\n< a\n---\n> b\n")]
        )
        out = io.StringIO()
        command.print_results("one", "two", results, out=out)
        self.assertEqual(
            out.getvalue(),
            "Only in one: l.txt\n"
            "Only in two: r.txt\n"
            "Diff d.txt:\n1c1\n< a\n---\n> b\n\n",
        )

    def test_options_from_cmd_args(self):
        args = MockArgs()
        args.use_unified_diff = True
        args.diff_program = "colordiff"
        options = CompareOptions.from_cmd_args(args)
        self.assertTrue(options.use_unified_diff)
        self.assertEqual(options.diff_program, "colordiff")
        self.assertEqual(options.beam_extension, ".beam")
        self.assertFalse(options.include_hidden)

    def test_set_debug(self):
        command.set_debug("treediff,beam")
        self.assertEqual(
            builddiff.get_debug_mask(),
            builddiff.BUILDDIFF_DEBUG_TREEDIFF | builddiff.BUILDDIFF_DEBUG_BEAM,
        )
        command.set_debug("all")
        self.assertEqual(builddiff.get_debug_mask(), builddiff.BUILDDIFF_DEBUG_ALL)
        builddiff.set_debug_mask(0)

    def test_set_debug_unknown(self):
        with self.assertRaises(ValueError):
            command.set_debug("nope")

    def test_print_results_equal_quotes_dirs(self):
        out = io.StringIO()
        command.print_results("build one", "two", CompareResults([], [], []), out=out)
        self.assertEqual(out.getvalue(), '"build one" and "two" are equal\n')

    def test_compare_dirs_is_treediff_compare_dirs(self):
        from builddiff import treediff

        self.assertIs(command.compare_dirs, treediff.compare_dirs)

    def test_main_diff_args(self):
        with patch("builddiff.command.compare_dirs") as mock_compare:
            mock_compare.return_value = CompareResults([], [], [])
            status, _ = self.run_main(
                "--diff-args=-w", "--diff-args=-B", self.dir1, self.dir2
            )
        self.assertEqual(status, 0)
        options = mock_compare.call_args.kwargs["options"]
        self.assertEqual(options.diff_args, ("-w", "-B"))

    def test_options_from_cmd_args_diff_args(self):
        args = MockArgs()
        args.diff_args = ["--strip-trailing-cr"]
        options = CompareOptions.from_cmd_args(args)
        self.assertEqual(options.diff_args, ("--strip-trailing-cr",))
        self.assertEqual(CompareOptions.from_cmd_args(MockArgs()).diff_args, ())
