# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

import argparse

from platformtree.hal import FAMILIES


def add_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Command line arguments for ``CompilerOptions``. Input and output arguments for ``ptc`` are in ``ptc.py``

    All arguments should default to None, so ``CompilerOptions.from_clargs`` keeps the option defaults.

    """

    compiler_args = parser.add_argument_group("Compiler", "Arguments that control code generation")
    compiler_args.add_argument(
        "--target",
        default=None,
        choices=sorted(FAMILIES),
        help="MCU family or part number to generate code for. Defaults to tiva_c",
    )
    compiler_args.add_argument(
        "--max_lock_polls",
        default=None,
        type=int,
        help="Give up waiting for oscillator and PLL lock after this many polls. \nDefault is to busy-wait forever",
    )
    compiler_args.add_argument(
        "--warnings_as_errors",
        action="store_true",
        default=None,
        help="Fail compilation if any warning is reported",
    )
    compiler_args.add_argument(
        "--entry_name",
        default=None,
        type=str,
        help="Name of the generated init function. Defaults to platformtree_init",
    )
