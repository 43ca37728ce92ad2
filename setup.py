# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

import sys

"""
Gives a readable error when platformtree is installed on an interpreter that is too old; metadata lives in pyproject.toml
"""
if sys.version_info < (3, 9):
    sys.exit("Python 3.9 or greater required")

from setuptools import setup

setup()
