# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

# pyright: strict

from __future__ import annotations
from enum import Enum, auto


class PtEnum(Enum):

    def __str__(self):
        return f"{self.name}"


class Severity(PtEnum):
    """
    Severity of a :class:`~platformtree.compiler.diagnostics.Diagnostic`.

    ``ERROR`` is recoverable: it is reported and compilation keeps going so more problems surface in the same run,
    but no program is produced. ``FATAL`` stops the build phase.
    """

    WARNING = auto()
    ERROR = auto()
    FATAL = auto()

    @property
    def is_error(self) -> bool:
        return self is not Severity.WARNING

    def label(self) -> str:
        return self.name.lower()


class DiagnosticKind(PtEnum):
    STRUCTURAL = auto()
    TYPE_MISMATCH = auto()
    REFERENCE = auto()
    DEPENDENCY_CYCLE = auto()
    INTERNAL_CONTRACT = auto()
    NOTE = auto()

    @property
    def fatal(self) -> bool:
        "Graph and driver-contract problems abort the build phase"
        return self in (DiagnosticKind.DEPENDENCY_CYCLE, DiagnosticKind.INTERNAL_CONTRACT)


class AttributeKind(PtEnum):
    INT = auto()
    STR = auto()
    BOOL = auto()
    REF = auto()

    def describe(self) -> str:
        return {
            AttributeKind.INT: "an integer",
            AttributeKind.STR: "a string",
            AttributeKind.BOOL: "a boolean",
            AttributeKind.REF: "a reference",
        }[self]


class Phase(PtEnum):
    "Compilation phases, in the order the compiler runs them"

    ATTACH = auto()
    VERIFY = auto()
    BUILD = auto()
    DONE = auto()
