# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional

from platformtree.lib.enums import Phase, Severity
from .builder import Builder, Program
from .config import CompilerOptions
from .diagnostics import CompilationFailed, Diagnostic, DiagnosticSink, DependencyCycleError, PlatformTreeError
from .node import Forest, Node
from .registry import MaterializerRegistry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileResult:
    """
    Outcome of :meth:`Compiler.compile`: a program when no error was recorded, plus every diagnostic.
    """

    program: Optional[Program]
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.program is not None

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity.is_error]

    def raise_for_errors(self) -> Program:
        "The program, or :class:`CompilationFailed` carrying every diagnostic"
        if self.program is None:
            raise CompilationFailed(self.diagnostics)
        return self.program


class Compiler:
    """
    Runs a description tree through the compilation phases:

    - attach: bind a materializer to each node by kind and apply structural dependency rules
    - verify: tree order, every node even after errors so one run reports as much as possible
    - schedule: deterministic topological order, a cycle is fatal
    - build: scheduler order, skipping nodes that failed or whose dependencies didn't build; stops at the first fatal
    - assemble: the :class:`Program`, only if no error was recorded

    .. code-block:: python

        from platformtree.compiler import Compiler
        from platformtree.drivers import default_registry

        result = Compiler(default_registry()).compile(forest)
        program = result.raise_for_errors()

    Compiling freezes ``registry``. Every call gets its own builder and diagnostics, the same forest can be compiled
    repeatedly.
    """

    def __init__(self, registry: MaterializerRegistry, options: Optional[CompilerOptions] = None):
        self.registry = registry
        self.options = options if options is not None else CompilerOptions()

    def compile(self, forest: Forest) -> CompileResult:
        self.registry.freeze()
        sink = DiagnosticSink(warnings_as_errors=self.options.warnings_as_errors)
        builder = Builder(forest, sink, self.options)

        log.info(f"Compiling {len(forest)} nodes for {self.options.target}")
        self.registry.attach(builder, forest)

        builder.phase = Phase.VERIFY
        self._verify(builder, forest)
        if sink.has_fatal:
            return self._failed(sink)

        try:
            order = builder.graph.schedule()
        except DependencyCycleError as e:
            sink.record(e)
            return self._failed(sink)

        builder.phase = Phase.BUILD
        self._build(builder, order)
        if sink.has_errors:
            return self._failed(sink)

        program = builder.assemble()
        log.info(f"Compiled {len(program.statements)} statements, {len(program.handles)} handles")
        return CompileResult(program, sink.diagnostics)

    def _failed(self, sink: DiagnosticSink) -> CompileResult:
        log.info(f"Compilation failed with {len(sink.errors)} error(s)")
        return CompileResult(None, sink.diagnostics)

    def _verify(self, builder: Builder, forest: Forest):
        log.info("Verify phase")
        for node in forest.walk():
            materializer = builder.materializer_of(node)
            if materializer is None:
                continue
            log.debug(f"verify {node.kind} {node.full_path}")
            try:
                materializer.verify(builder, node)
            except PlatformTreeError as e:
                builder.fail(node, e)

    def _build(self, builder: Builder, order: list[Node]):
        log.info("Build phase")
        built: set[Node] = set()
        for node in order:
            materializer = builder.materializer_of(node)
            if materializer is None or builder.failed(node):
                continue
            blocked = [d for d in builder.graph.dependencies_of(node) if d not in built]
            if blocked:
                builder.warning(node, f"skipped, dependency `{blocked[0].full_path}` did not build")
                continue
            log.debug(f"build {node.kind} {node.full_path}")
            try:
                materializer.build(builder, node)
            except PlatformTreeError as e:
                diagnostic = builder.fail(node, e)
                if diagnostic.severity is Severity.FATAL:
                    log.error("Stopping build phase")
                    return
                continue
            built.add(node)
