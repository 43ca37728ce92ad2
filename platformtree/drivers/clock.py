# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
``clock`` section: system clock source, optional PLL and divisor.

.. code-block:: yaml

    clock:
      source: MOSC
      source_frequency: 16000000
      pll: true
      divisor: 5

"""

from __future__ import annotations
import logging

from platformtree.compiler.builder import Builder
from platformtree.compiler.diagnostics import StructuralError, TypeMismatchError
from platformtree.compiler.node import Forest, Node
from platformtree.lib.enums import AttributeKind
from platformtree.hal.sysctl import ClockConfig, ClockSequencer, ClockSource
from .emit import render_op

log = logging.getLogger(__name__)

ATTRIBUTES = ("source", "source_frequency", "pll", "divisor")
RESET_FREQUENCY = ClockSource.PIOSC.fixed_frequency  # the part boots from PIOSC


def clock_config(node: Node) -> ClockConfig:
    """
    Configuration described by a ``clock`` node.

    :raises StructuralError: missing attribute
    :raises TypeMismatchError: unknown source, bad frequency or divisor
    """
    source_name = node.require_string("source")
    try:
        source = ClockSource[source_name.upper()]
    except KeyError:
        raise TypeMismatchError(f"unknown clock source `{source_name}`, expected one of " + ", ".join(s.name for s in ClockSource), node) from None

    fixed = source.fixed_frequency
    frequency = node.require_int("source_frequency") if fixed is None or "source_frequency" in node.attributes else fixed
    pll = node.optional_attribute("pll", AttributeKind.BOOL, False)
    divisor = node.optional_attribute("divisor", AttributeKind.INT)
    assert divisor is None or isinstance(divisor, int)

    try:
        return ClockConfig(source=source, frequency=frequency, pll=bool(pll), divisor=divisor)
    except ValueError as e:
        raise TypeMismatchError(str(e), node) from None


def system_frequency(forest: Forest) -> int:
    "System clock in Hz the description runs at"
    node = forest.find("clock")
    if node is None:
        assert RESET_FREQUENCY is not None
        return RESET_FREQUENCY
    return clock_config(node).system_frequency


def verify_clock(builder: Builder, node: Node):
    if node.parent is not None:
        raise StructuralError("`clock` must be a top-level section", node)
    node.expect_no_children()
    node.expect_only(ATTRIBUTES)
    others = [n for n in builder.forest.find_all("clock") if n is not node]
    if others and others[0].index < node.index:
        raise StructuralError(f"only one clock section allowed, first declared at `{others[0].full_path}`", node)
    config = clock_config(node)
    log.debug(f"clock {config.source} {config.frequency} Hz -> system {config.system_frequency} Hz")


def build_clock(builder: Builder, node: Node):
    sequencer = ClockSequencer(clock_config(node))
    for op in sequencer.plan():
        builder.add_statement(node, "\n".join(render_op(op, builder.options.max_lock_polls)))
