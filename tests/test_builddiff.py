# Copyright Red Hat
#
# tests/test_builddiff.py - Top-level package tests
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import logging
import io
import sys

import builddiff


class BuilddiffTests(unittest.TestCase):
    def tearDown(self):
        builddiff.set_debug_mask(0)

    def test_set_debug_mask(self):
        builddiff.set_debug_mask(builddiff.BUILDDIFF_DEBUG_ALL)
        self.assertEqual(builddiff.get_debug_mask(), builddiff.BUILDDIFF_DEBUG_ALL)

    def test_set_debug_mask_bad_mask(self):
        with self.assertRaises(ValueError):
            builddiff.set_debug_mask(builddiff.BUILDDIFF_DEBUG_ALL + 1)

    def test_SubsystemFilter(self):
        builddiff.set_debug_mask(0)
        sf = builddiff.SubsystemFilter("builddiff")
        self.assertEqual(sf.enabled_subsystems, set())
        builddiff.set_debug_mask(builddiff.BUILDDIFF_DEBUG_BEAM)
        sf2 = builddiff.SubsystemFilter("builddiff")
        self.assertIn(builddiff.BUILDDIFF_SUBSYSTEM_BEAM, sf2.enabled_subsystems)

        record = logging.LogRecord("builddiff", logging.DEBUG, "", 0, "m", (), None)
        self.assertTrue(sf2.filter(record))
        record.subsystem = builddiff.BUILDDIFF_SUBSYSTEM_TREEDIFF
        self.assertFalse(sf2.filter(record))
        record.subsystem = builddiff.BUILDDIFF_SUBSYSTEM_BEAM
        self.assertTrue(sf2.filter(record))

    def test_exception_hierarchy(self):
        for exc in (
            builddiff.BuilddiffArgumentError,
            builddiff.BuilddiffSystemError,
            builddiff.BuilddiffCalloutError,
            builddiff.BuilddiffFormatError,
            builddiff.BuilddiffTermError,
        ):
            self.assertTrue(issubclass(exc, builddiff.BuilddiffError))

    def test_ConsoleHandler(self):
        self.assertIs(builddiff.ConsoleHandler().stream, sys.stderr)
        stream = io.StringIO()
        handler = builddiff.ConsoleHandler(stream)
        handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
        handler.emit(logging.makeLogRecord({"msg": "hello", "levelname": "INFO"}))
        self.assertEqual(stream.getvalue(), "INFO - hello\n")
