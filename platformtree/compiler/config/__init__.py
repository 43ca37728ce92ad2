# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
Package for compiler configuration: options, command-line arguments and user ``Conf`` hooks

"""

from .options import CompilerOptions
from .cmdline import add_arguments
from .conf import Conf

__all__ = ["CompilerOptions", "add_arguments", "Conf"]
