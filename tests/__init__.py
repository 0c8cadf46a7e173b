# Copyright Red Hat
#
# tests/__init__.py - Build artifact differ test package
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
import logging

log = logging.getLogger()
log.setLevel(logging.DEBUG)
formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
file_handler = logging.FileHandler("test.log")
file_handler.setFormatter(formatter)
log.addHandler(file_handler)


class MockArgs(object):
    debug = None
    verbose = 0
    diff_program = None
    diff_args = None
    use_unified_diff = False
    include_hidden = False
    dirs = []
