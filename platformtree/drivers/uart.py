# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
``uart`` section and its ``uart_unit`` handles.

.. code-block:: yaml

    uart:
      console@0: {mode: "115200,8n1"}

"""

from __future__ import annotations
import logging

from platformtree.compiler.builder import Builder
from platformtree.compiler.diagnostics import StructuralError, TypeMismatchError
from platformtree.compiler.node import Node, numeric_slot
from platformtree.hal.uart import UartMode, calculate_divisors
from .clock import system_frequency
from .emit import RCGCUART, check_c_name, enable_gate, hex32

log = logging.getLogger(__name__)

UARTS = range(0, 8)
UART_BASE = 0x4000_C000
UART_STRIDE = 0x1000
MAX_BAUD_ERROR = 0.02
UART_TYPE = "tiva_c_uart_t"


def uart_index(node: Node) -> int:
    return numeric_slot(node, "uart", UARTS)


def uart_mode(node: Node) -> UartMode:
    try:
        return UartMode.parse(node.require_string("mode"))
    except ValueError as e:
        raise TypeMismatchError(str(e), node) from None


def verify_uart(builder: Builder, node: Node):
    node.expect_no_attributes()
    node.expect_unique_paths()


def verify_uart_unit(builder: Builder, node: Node):
    if node.name is None:
        raise StructuralError("uart needs a name", node)
    check_c_name(node, "uart", node.name)
    node.expect_no_children()
    node.expect_only(("mode",))
    uart_index(node)
    uart_mode(node)


def build_uart_unit(builder: Builder, node: Node):
    assert node.name is not None
    index = uart_index(node)
    mode = uart_mode(node)
    pclk = system_frequency(builder.forest)
    divisors = calculate_divisors(pclk, mode.baud)

    actual = divisors.effective_baud(pclk)
    error = abs(actual - mode.baud) / mode.baud
    if error > MAX_BAUD_ERROR:
        builder.warning(node, f"{mode.baud} baud is off by {error:.1%} at {pclk} Hz ({actual:.0f} baud)")

    builder.add_statement(node, enable_gate(RCGCUART, index, f"uart {index}"))
    parity = f"TIVA_C_UART_PARITY_{mode.parity.name}"
    builder.add_statement(
        node,
        f"{UART_TYPE} {node.name} = tiva_c_uart_new({hex32(UART_BASE + index * UART_STRIDE)}, "
        f"{divisors.dl}, {divisors.add}, {divisors.mul}, {mode.word_length}, {parity}, {mode.stop_bits}); /* {mode} */",
    )
    builder.bind_handle(node.name, UART_TYPE, node)
    builder.set_resolved_type(node, UART_TYPE)
