# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
Node-tree compiler: turns a hardware description tree into an ordered init sequence and a table of typed handles.
"""

from .node import Node, Forest, Ref, Value, check_range, numeric_slot
from .diagnostics import (
    PlatformTreeError,
    StructuralError,
    TreeLoadError,
    TypeMismatchError,
    UnresolvedReferenceError,
    DependencyCycleError,
    InternalContractError,
    CompilationFailed,
    Diagnostic,
    DiagnosticSink,
)
from .registry import Materializer, MaterializerRegistry, no_build
from .graph import DependencyGraph
from .builder import Builder, Handle, Program, Statement
from .compiler import Compiler, CompileResult
from .loader import load_file, load_tree
from .config import CompilerOptions, Conf

__all__ = [
    "Node",
    "Forest",
    "Ref",
    "Value",
    "check_range",
    "numeric_slot",
    "PlatformTreeError",
    "StructuralError",
    "TreeLoadError",
    "TypeMismatchError",
    "UnresolvedReferenceError",
    "DependencyCycleError",
    "InternalContractError",
    "CompilationFailed",
    "Diagnostic",
    "DiagnosticSink",
    "Materializer",
    "MaterializerRegistry",
    "no_build",
    "DependencyGraph",
    "Builder",
    "Handle",
    "Program",
    "Statement",
    "Compiler",
    "CompileResult",
    "load_file",
    "load_tree",
    "CompilerOptions",
    "Conf",
]
