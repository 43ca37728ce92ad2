#! /usr/bin/env python3
# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

import argparse
import abc
from pathlib import Path
from typing import Any

"""
Base class for platformtree command-line tools

**Template for Extending:**

.. code-block:: python

    from platformtree.lib.cli_base import CliBase

    class Dump(CliBase):
        prog = "ptdump"
        description = "Print a description tree"

        def __init__(self, input_file: Path):
            self.input_file = input_file

        @staticmethod
        def add_arguments(parser):
            parser.add_argument("--input_file", type=Path, help="Description to load")

        @classmethod
        def run_cli(cls, args=None, **kwargs):
            cl_args = cls.parser().parse_args(args)
            return cls(cl_args.input_file).run()

"""


class CliBase(abc.ABC):
    prog = "platformtree"
    description = "platformtree command-line tool"

    @staticmethod
    @abc.abstractmethod
    def add_arguments(parser: argparse.ArgumentParser):
        pass

    @classmethod
    def parser(cls) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(prog=cls.prog, description=cls.description, formatter_class=argparse.RawTextHelpFormatter)
        cls.add_arguments(parser)
        return parser

    @classmethod
    @abc.abstractmethod
    def run_cli(cls, args=None, **kwargs) -> Any:
        pass

    # common helper methods
    @staticmethod
    def check_valid_file(filepath: Path) -> Path:
        if not filepath.exists():
            raise FileNotFoundError(f"No file {filepath.name} at path {filepath}")
        if not filepath.is_file():
            raise FileNotFoundError(f"{filepath} is not a file")
        return filepath
