# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

import logging

from .compiler import Compiler, CompileResult, CompilerOptions, Conf, Program, load_file, load_tree
from .drivers import default_registry
from .ptc import Ptc


logging.getLogger("platformtree").addHandler(logging.NullHandler())

__all__ = ["Ptc", "Compiler", "CompileResult", "CompilerOptions", "Conf", "Program", "default_registry", "load_file", "load_tree"]
