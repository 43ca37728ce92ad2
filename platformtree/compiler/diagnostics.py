# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Optional, Sequence

from platformtree.lib.enums import DiagnosticKind, Severity

if TYPE_CHECKING:
    from .node import Node

log = logging.getLogger(__name__)


class PlatformTreeError(Exception):
    """
    Base class for every error raised while loading or compiling a description tree.

    Handlers raise these; the compiler turns them into :class:`Diagnostic` entries against the node being processed.

    :param message: Human readable description of the problem
    :param node: Offending node, used as the diagnostic location. Defaults to the node being verified or built
    :param fatal: Force fatal severity. A driver uses this for references it cannot work without
    """

    kind = DiagnosticKind.NOTE

    def __init__(self, message: str, node: Optional[Node] = None, fatal: bool = False):
        super().__init__(message)
        self.message = message
        self.node = node
        self.fatal = fatal or self.kind.fatal

    @property
    def path(self) -> Optional[str]:
        return self.node.full_path if self.node is not None else None

    @property
    def severity(self) -> Severity:
        return Severity.FATAL if self.fatal else Severity.ERROR


class StructuralError(PlatformTreeError):
    "Missing or unexpected attribute, or a node of the wrong shape"

    kind = DiagnosticKind.STRUCTURAL


class TreeLoadError(StructuralError):
    "Description document can't be turned into a node tree"


class TypeMismatchError(PlatformTreeError):
    "Attribute present but of the wrong kind or outside its valid range"

    kind = DiagnosticKind.TYPE_MISMATCH


class UnresolvedReferenceError(PlatformTreeError):
    """
    A ``&name`` reference that doesn't resolve to a bound handle at build time.

    :param names: every unresolved name, in the order they were looked up
    """

    kind = DiagnosticKind.REFERENCE

    def __init__(self, message: str, names: Sequence[str], node: Optional[Node] = None, fatal: bool = False):
        super().__init__(message, node=node, fatal=fatal)
        self.names = list(names)


class DependencyCycleError(PlatformTreeError):
    """
    Nodes that depend on each other. Always fatal.

    :param cycle: node paths along the cycle, first path repeated at the end. Each entry depends on the next one
    """

    kind = DiagnosticKind.DEPENDENCY_CYCLE

    def __init__(self, cycle: Sequence[str], node: Optional[Node] = None):
        self.cycle = list(cycle)
        super().__init__("dependency cycle: " + " -> ".join(self.cycle), node=node)


class InternalContractError(PlatformTreeError):
    "A driver broke the registration contract, e.g. binding a materializer twice. Always fatal"

    kind = DiagnosticKind.INTERNAL_CONTRACT


@dataclass(frozen=True)
class Diagnostic:
    """
    One reported problem: ``(severity, message, node_path)``.

    ``path`` is ``None`` for problems that have no single location, e.g. a cycle is located at its first node.
    """

    severity: Severity
    kind: DiagnosticKind
    message: str
    path: Optional[str] = None

    def __str__(self) -> str:
        location = f"{self.path}: " if self.path is not None else ""
        return f"{self.severity.label()}: {location}{self.message}"

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"severity": self.severity.label(), "kind": self.kind.name.lower(), "path": self.path, "message": self.message}

    @classmethod
    def from_error(cls, error: PlatformTreeError, node: Optional[Node] = None) -> Diagnostic:
        "Build from a raised error. ``node`` is the fallback location when the error doesn't name one"
        location = error.node if error.node is not None else node
        return cls(
            severity=error.severity,
            kind=error.kind,
            message=error.message,
            path=location.full_path if location is not None else None,
        )


class CompilationFailed(PlatformTreeError):
    """
    Raised by :meth:`CompileResult.raise_for_errors` and the command line when compilation produced errors.

    :param diagnostics: everything reported during the run, warnings included
    """

    def __init__(self, diagnostics: Sequence[Diagnostic]):
        self.diagnostics = list(diagnostics)
        errors = [d for d in self.diagnostics if d.severity.is_error]
        super().__init__(f"compilation failed with {len(errors)} error(s)")


class DiagnosticSink:
    """
    Collects diagnostics for a single compilation and answers whether the run failed.

    Every recorded diagnostic is also logged: warnings and recoverable errors at WARNING, fatal ones at ERROR.

    :param warnings_as_errors: promote warnings to recoverable errors
    """

    def __init__(self, warnings_as_errors: bool = False):
        self.warnings_as_errors = warnings_as_errors
        self._diagnostics: list[Diagnostic] = []

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return list(self._diagnostics)

    def report(self, diagnostic: Diagnostic) -> Diagnostic:
        if self.warnings_as_errors and diagnostic.severity is Severity.WARNING:
            diagnostic = Diagnostic(Severity.ERROR, diagnostic.kind, diagnostic.message, diagnostic.path)
        self._diagnostics.append(diagnostic)
        if diagnostic.severity is Severity.FATAL:
            log.error(str(diagnostic))
        else:
            log.warning(str(diagnostic))
        return diagnostic

    def record(self, error: PlatformTreeError, node: Optional[Node] = None) -> Diagnostic:
        "Record a raised error, located at ``node`` unless the error names its own node"
        return self.report(Diagnostic.from_error(error, node))

    def warning(self, message: str, node: Optional[Node] = None, kind: DiagnosticKind = DiagnosticKind.NOTE) -> Diagnostic:
        return self.report(Diagnostic(Severity.WARNING, kind, message, node.full_path if node is not None else None))

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self._diagnostics if d.severity.is_error]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._diagnostics if d.severity is Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(d.severity.is_error for d in self._diagnostics)

    @property
    def has_fatal(self) -> bool:
        return any(d.severity is Severity.FATAL for d in self._diagnostics)
