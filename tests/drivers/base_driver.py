# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

import unittest
from typing import Optional

from platformtree.compiler import CompileResult, Compiler, CompilerOptions, Diagnostic, Program, load_tree
from platformtree.drivers import default_registry


class DriverTestCase(unittest.TestCase):
    """
    Base class for driver tests. Compiles a description document with the default drivers.

    Usage:
    .. code-block:: python

        from tests.drivers.base_driver import DriverTestCase

        class PinTest(DriverTestCase):
            def test_pin(self):
                program = self.compile_ok({"gpio": {"PortA": {"led@1": {"direction": "out"}}}})

    """

    def compile(self, document: dict, options: Optional[CompilerOptions] = None) -> CompileResult:
        registry = default_registry()
        return Compiler(registry, options).compile(load_tree(document, registry))

    def compile_ok(self, document: dict, options: Optional[CompilerOptions] = None) -> Program:
        result = self.compile(document, options)
        self.assertTrue(result.ok, "\n".join(str(d) for d in result.diagnostics))
        assert result.program is not None
        return result.program

    def compile_error(self, document: dict, options: Optional[CompilerOptions] = None) -> Diagnostic:
        "First error of a compilation expected to fail"
        result = self.compile(document, options)
        self.assertFalse(result.ok)
        return result.errors[0]

    def code_of(self, program: Program, path: str) -> str:
        "All statements emitted by the node at ``path``"
        return "\n".join(s.code for s in program.statements if s.path == path)
