# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
``timer`` section and its ``timer_unit`` handles. Slots ``0``..``5`` are the 16/32-bit timers, ``w0``..``w5`` the
32/64-bit wide timers.
"""

from __future__ import annotations

from platformtree.compiler.builder import Builder
from platformtree.compiler.diagnostics import StructuralError, TypeMismatchError
from platformtree.compiler.node import Node
from .emit import RCGCTIMER, RCGCWTIMER, check_c_name, enable_gate, hex32

TIMERS = {
    "0": 0x4003_0000,
    "1": 0x4003_1000,
    "2": 0x4003_2000,
    "3": 0x4003_3000,
    "4": 0x4003_4000,
    "5": 0x4003_5000,
    "w0": 0x4003_6000,
    "w1": 0x4003_7000,
    "w2": 0x4004_C000,
    "w3": 0x4004_D000,
    "w4": 0x4004_E000,
    "w5": 0x4004_F000,
}
MODES = {"periodic": "TIVA_C_TIMER_PERIODIC", "oneshot": "TIVA_C_TIMER_ONESHOT"}
UNSUPPORTED_MODES = ("rtc", "edge_count", "edge_time", "pwm")
PRESCALE = range(1, 65536)
TIMER_TYPE = "tiva_c_timer_t"


def verify_timer(builder: Builder, node: Node):
    node.expect_no_attributes()
    node.expect_unique_paths()


def verify_timer_unit(builder: Builder, node: Node):
    if node.name is None:
        raise StructuralError("timer needs a name", node)
    check_c_name(node, "timer", node.name)
    if node.path is None:
        raise StructuralError(f"timer `{node.name}` needs a slot, e.g. `{node.name}@w0`", node)
    if node.path not in TIMERS:
        raise TypeMismatchError(f"unknown timer `{node.path}`, allowed values: 0..5, w0..w5", node)
    node.expect_no_children()
    node.expect_only(("prescale", "mode"))
    node.require_int("prescale", PRESCALE)
    mode = node.require_string("mode")
    if mode in UNSUPPORTED_MODES:
        raise TypeMismatchError(f"timer mode `{mode}` is not supported, use one of " + ", ".join(MODES), node)
    if mode not in MODES:
        raise TypeMismatchError(f"unknown timer mode `{mode}`, expected one of " + ", ".join(MODES), node)


def build_timer_unit(builder: Builder, node: Node):
    assert node.name is not None and node.path is not None
    wide = node.path.startswith("w")
    unit = int(node.path.lstrip("w"))
    builder.add_statement(node, enable_gate(RCGCWTIMER if wide else RCGCTIMER, unit, f"timer {node.path}"))
    mode = MODES[node.require_string("mode")]
    prescale = node.require_int("prescale")
    builder.add_statement(node, f"{TIMER_TYPE} {node.name} = tiva_c_timer_new({hex32(TIMERS[node.path])}, {mode}, {prescale});")
    builder.bind_handle(node.name, TIMER_TYPE, node)
    builder.set_resolved_type(node, TIMER_TYPE)
