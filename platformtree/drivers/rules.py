# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
Structural dependency rules shared by the driver modules. A rule returns the nodes a node must be built after.
"""

from __future__ import annotations
from typing import Iterator

from platformtree.compiler.node import Forest, Node


def depends_on_parent(forest: Forest, node: Node) -> Iterator[Node]:
    "Pins after their port, units after their peripheral section"
    parent = node.parent
    if parent is not None:
        yield parent


def depends_on_clock(forest: Forest, node: Node) -> Iterator[Node]:
    "Peripherals after the system clock, when the description configures one"
    clock = forest.find("clock")
    if clock is not None and clock is not node:
        yield clock
