# Copyright Red Hat
#
# builddiff/__init__.py - Build artifact differ package initialisation
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Builddiff top-level package.
"""
from ._builddiff import *  # noqa: F401, F403
from ._builddiff import __all__  # noqa: F401

__version__ = "0.1.0"
