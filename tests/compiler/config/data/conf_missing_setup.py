# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
Example Conf
"""

from dataclasses import replace

from platformtree.compiler import CompilerOptions, Conf


class StrictConf(Conf):
    """
    Example Conf. Turns warnings into errors.

    It doesn't include any setup(), should raise a RuntimeError when imported
    """

    def pre_compile(self, options: CompilerOptions) -> CompilerOptions:
        return replace(options, warnings_as_errors=True)
