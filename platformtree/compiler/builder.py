# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from platformtree.lib.enums import Phase
from .config import CompilerOptions
from .diagnostics import Diagnostic, DiagnosticSink, InternalContractError, PlatformTreeError, StructuralError, UnresolvedReferenceError
from .graph import DependencyGraph
from .node import Forest, Node, Ref
from .registry import Materializer

log = logging.getLogger(__name__)

#: local holding the entry-point arguments in the emitted init function
ARGS_LOCAL = "platformtree_args"


@dataclass(frozen=True)
class Statement:
    "One generated init statement and the node that emitted it"

    code: str
    path: str

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class Handle:
    "Named, typed hardware resource produced by a node"

    name: str
    type: str
    path: str


@dataclass(frozen=True)
class Program:
    """
    Output of a successful compilation. Immutable.

    :param target: MCU family the statements were generated for
    :param statements: init statements, in dependency order
    :param handles: every bound handle, by name
    :param args: entry-point argument table; each entry aliases a handle from ``handles``
    :param resolved_types: handle type produced by each node, by node path
    :param entry: application routine started after init, ``None`` if the description has no task
    """

    target: str
    statements: tuple[Statement, ...] = ()
    handles: Mapping[str, Handle] = field(default_factory=dict)
    args: Mapping[str, Handle] = field(default_factory=dict)
    resolved_types: Mapping[str, str] = field(default_factory=dict)
    entry: Optional[str] = None

    def emit(self, entry_name: str = "platformtree_init") -> str:
        """
        Render as a C translation unit: the argument struct, the init function running every statement in order,
        then the call into the application routine.

        .. warning::

            The statements reference driver routines from ``platformtree/<target>.h``, which is not generated.
        """
        lines = [
            f"/* Generated by platformtree for {self.target}. Do not edit. */",
            f'#include "platformtree/{self.target}.h"',
            "",
        ]
        if self.args:
            lines.append("struct run_args {")
            lines.extend(f"    {handle.type} *{name};" for name, handle in self.args.items())
            lines.extend(["};", ""])
        if self.entry is not None:
            params = "const struct run_args *args" if self.args else "void"
            lines.extend([f"extern void {self.entry}({params});", ""])

        lines.extend([f"void {entry_name}(void)", "{"])
        for statement in self.statements:
            lines.extend(f"    {line}" if line else "" for line in statement.code.splitlines())
        if self.entry is not None:
            if self.args:
                fields = ", ".join(f".{name} = &{handle.name}" for name, handle in self.args.items())
                lines.append(f"    struct run_args {ARGS_LOCAL} = {{{fields}}};")
                lines.append(f"    {self.entry}(&{ARGS_LOCAL});")
            else:
                lines.append(f"    {self.entry}();")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict[str, Any]:
        "JSON-serialisable form"
        return {
            "target": self.target,
            "entry": self.entry,
            "statements": [{"path": s.path, "code": s.code} for s in self.statements],
            "handles": {name: {"type": h.type, "path": h.path} for name, h in self.handles.items()},
            "args": {name: {"handle": h.name, "type": h.type} for name, h in self.args.items()},
            "resolved_types": dict(self.resolved_types),
        }


class Builder:
    """
    Shared state of a single compilation, and the API drivers call into.

    ``verify`` handlers use :meth:`add_dependency`, :meth:`lookup` and :meth:`warning`;
    ``build`` handlers use :meth:`add_statement`, :meth:`bind_handle`, :meth:`set_resolved_type`, :meth:`resolve`,
    :meth:`bind_arg` and :meth:`set_entry`. Calls outside their phase raise :class:`InternalContractError`.

    :param forest: tree being compiled
    :param sink: diagnostics of this compilation
    :param options: compiler options
    """

    def __init__(self, forest: Forest, sink: Optional[DiagnosticSink] = None, options: Optional[CompilerOptions] = None):
        self.forest = forest
        self.sink = sink if sink is not None else DiagnosticSink()
        self.options = options if options is not None else CompilerOptions()
        self.graph = DependencyGraph()
        self.phase = Phase.ATTACH

        self._materializers: dict[Node, Materializer] = {}
        self._failed: set[Node] = set()
        self._statements: list[Statement] = []
        self._handles: dict[str, Handle] = {}
        self._args: dict[str, Handle] = {}
        self._resolved_types: dict[Node, str] = {}
        self._entry: Optional[str] = None

    # materializers
    def bind(self, node: Node, materializer: Materializer):
        """
        Bind ``materializer`` to ``node``.

        :raises InternalContractError: node already has one
        """
        if node in self._materializers:
            raise InternalContractError(f"materializer bound twice (`{self._materializers[node].kind}` then `{materializer.kind}`)", node)
        self._materializers[node] = materializer
        self.graph.add_node(node)

    def materializer_of(self, node: Node) -> Optional[Materializer]:
        return self._materializers.get(node)

    # failure bookkeeping
    def fail(self, node: Node, error: PlatformTreeError) -> Diagnostic:
        "Record ``error`` against ``node`` and exclude the node from the build phase"
        self._failed.add(node)
        return self.sink.record(error, node)

    def failed(self, node: Node) -> bool:
        return node in self._failed

    def warning(self, node: Node, message: str) -> Diagnostic:
        return self.sink.warning(message, node)

    # dependencies
    def add_dependency(self, dependent: Node, dependency: Node):
        "``dependent`` must be built strictly after ``dependency``. Only allowed before the build phase"
        if self.phase not in (Phase.ATTACH, Phase.VERIFY):
            raise InternalContractError(f"dependency on `{dependency.full_path}` added during {self.phase.name.lower()} phase", dependent)
        self.graph.add_dependency(dependent, dependency)

    def lookup(self, name: str) -> list[Node]:
        "Every node declared as ``name``, in declaration order. Which of them binds a handle is only known after build"
        return [n for n in self.forest.walk() if n.name == name]

    # program
    def _expect_build(self, what: str, node: Node):
        if self.phase is not Phase.BUILD:
            raise InternalContractError(f"{what} outside the build phase", node)

    def add_statement(self, node: Node, code: str) -> Statement:
        "Append to the init sequence; statements keep scheduler order"
        self._expect_build("statement emitted", node)
        statement = Statement(code=code, path=node.full_path)
        self._statements.append(statement)
        return statement

    def bind_handle(self, name: str, type: str, node: Node) -> Handle:
        """
        Bind a named handle produced by ``node``.

        :raises StructuralError: name already bound
        """
        self._expect_build(f"handle `{name}` bound", node)
        existing = self._handles.get(name)
        if existing is not None:
            raise StructuralError(f"handle `{name}` is already bound by `{existing.path}`", node)
        handle = Handle(name=name, type=type, path=node.full_path)
        self._handles[name] = handle
        log.debug(f"Bound handle {name}: {type}")
        return handle

    def handle(self, name: str) -> Optional[Handle]:
        return self._handles.get(name)

    def resolve(self, ref: Ref, node: Node) -> Handle:
        """
        Handle a reference points at.

        :raises UnresolvedReferenceError: nothing bound under that name
        """
        handle = self._handles.get(ref.name)
        if handle is None:
            raise UnresolvedReferenceError(f"unresolved reference `{ref}`", [ref.name], node)
        return handle

    def set_resolved_type(self, node: Node, type: str):
        self._expect_build("resolved type set", node)
        self._resolved_types[node] = type

    def resolved_type(self, node: Node) -> Optional[str]:
        return self._resolved_types.get(node)

    def bind_arg(self, name: str, handle: Handle, node: Node):
        "Add ``name`` to the entry-point argument table, aliasing ``handle``"
        self._expect_build(f"argument `{name}` bound", node)
        if name in self._args:
            raise StructuralError(f"entry argument `{name}` is already bound", node)
        self._args[name] = handle

    def set_entry(self, routine: str, node: Node):
        self._expect_build("entry routine set", node)
        if self._entry is not None:
            raise StructuralError(f"entry routine already set to `{self._entry}`", node)
        self._entry = routine

    def assemble(self) -> Program:
        """
        Freeze the build state into a :class:`Program`.

        :raises InternalContractError: called before the build phase or after errors were recorded
        """
        if self.phase is not Phase.BUILD:
            raise InternalContractError(f"can't assemble a program during {self.phase.name.lower()} phase")
        if self.sink.has_errors:
            raise InternalContractError("can't assemble a program from a compilation with errors")
        self.phase = Phase.DONE
        return Program(
            target=self.options.family,
            statements=tuple(self._statements),
            handles=MappingProxyType(dict(self._handles)),
            args=MappingProxyType(dict(sorted(self._args.items()))),
            resolved_types=MappingProxyType({n.full_path: t for n, t in sorted(self._resolved_types.items(), key=lambda item: item[0].index)}),
            entry=self._entry,
        )
