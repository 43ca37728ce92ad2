# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import Optional

import platformtree.lib.logger as PtLogger
from platformtree.lib.cli_base import CliBase
from platformtree.compiler import CompileResult, Compiler, CompilerOptions, Conf, MaterializerRegistry, PlatformTreeError, Program, load_file
from platformtree.compiler.config import add_arguments as add_compiler_arguments
from platformtree.drivers import default_registry


log = logging.getLogger("platformtree")  # ptc can be a main module


class Ptc(CliBase):
    """
    Platform tree compiler. Compiles a hardware description into a C init routine.

    Constructor makes run_dir if it doesn't exist.

    :param input_file: description to compile, ``.yaml``, ``.yml`` or ``.json``
    :param run_dir: directory generated files and the log go to. Defaults to current directory
    :param registry: node kinds to compile with. Defaults to the Tiva C drivers
    """

    prog = "ptc"
    description = "Compile a platform tree hardware description into C init code"

    def __init__(self, input_file: Path, run_dir: Path = Path("."), registry: Optional[MaterializerRegistry] = None):
        self.input_file = self.check_valid_file(Path(input_file)).resolve()
        self.name = self.input_file.stem
        self.run_dir = Path(run_dir).resolve()
        self.run_dir.mkdir(parents=True, exist_ok=True)
        self.registry = registry if registry is not None else default_registry()
        self.options = CompilerOptions()
        self.result: Optional[CompileResult] = None

    @staticmethod
    def add_arguments(parser: argparse.ArgumentParser):
        parser.add_argument("--input", "-i", type=Path, required=True, help="Hardware description to compile (.yaml, .yml or .json)")
        parser.add_argument("--run_dir", "-rd", type=Path, default=Path("."), help="Directory for generated files")
        parser.add_argument("--output", "-o", type=Path, default=None, help="Generated C file. Defaults to <run_dir>/<input name>.c")
        parser.add_argument("--json", action="store_true", default=False, help="Also write the compiled program as <output>.json")
        parser.add_argument("--conf", type=Path, default=None, help="Path to conf.py file for extra drivers and hooks")
        add_compiler_arguments(parser)
        PtLogger.add_arguments(parser)

    @classmethod
    def run_cli(cls, args=None, **kwargs) -> CompileResult:
        """
        Main entry point for the ``ptc`` command line interface.

        :param args: Command line arguments. Passed to argparse, if not provided, sys.argv is used.
        """
        cl_args = cls.parser().parse_args(args)
        return cls.from_clargs(cl_args, **kwargs)

    @classmethod
    def from_clargs(cls, cl_args: argparse.Namespace, **kwargs) -> CompileResult:
        "Compile from parsed command line arguments"
        conf = Conf.load_conf_from_path(cl_args.conf) if cl_args.conf is not None else None
        ptc = cls(input_file=cl_args.input, run_dir=cl_args.run_dir, **kwargs)
        PtLogger.from_clargs(cl_args, default_logger_file=ptc.run_dir / f"{ptc.name}.log")
        return ptc.run(
            options=CompilerOptions.from_clargs(cl_args),
            output=cl_args.output,
            json_output=cl_args.json,
            conf=conf,
        )

    def compile(self, options: Optional[CompilerOptions] = None, conf: Optional[Conf] = None) -> CompileResult:
        """
        Load and compile the description.

        :raises TreeLoadError: description can't be loaded
        """
        if conf is not None:
            conf.add_drivers(self.registry)
        forest = load_file(self.input_file, self.registry)
        if options is None:
            options = CompilerOptions()
        if conf is not None:
            options = conf.pre_compile(options)
        self.options = options
        self.result = Compiler(self.registry, options).compile(forest)
        if self.result.program is not None and conf is not None:
            conf.post_compile(self.result.program)
        return self.result

    def run(
        self,
        options: Optional[CompilerOptions] = None,
        output: Optional[Path] = None,
        json_output: bool = False,
        conf: Optional[Conf] = None,
    ) -> CompileResult:
        """
        Compile and write the generated files. Diagnostics are printed to stderr.

        :param options: compiler options. Defaults to ``CompilerOptions()``
        :param output: generated C file. Defaults to ``<run_dir>/<input name>.c``
        :param json_output: also write the program as JSON next to ``output``
        :param conf: optional ``Conf`` hooks
        """
        result = self.compile(options, conf)
        for diagnostic in result.diagnostics:
            print(diagnostic, file=sys.stderr)
        if result.program is None:
            log.error(f"{self.input_file.name}: compilation failed with {len(result.errors)} error(s)")
            return result

        if output is None:
            output = self.run_dir / f"{self.name}.c"
        self.write(result.program, Path(output), json_output)
        return result

    def write(self, program: Program, output: Path, json_output: bool = False):
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            f.write(program.emit(self.options.entry_name))
        log.info(f"Wrote {output}")
        if json_output:
            json_file = output.with_suffix(".json")
            with open(json_file, "w") as f:
                json.dump(program.to_dict(), f, indent=2)
            log.info(f"Wrote {json_file}")


def main():
    try:
        result = Ptc.run_cli()
    except (PlatformTreeError, FileNotFoundError, ImportError, RuntimeError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(0 if result.ok else 1)


if __name__ == "__main__":
    main()
