# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
``gpio`` section, ``port`` containers and ``pin`` handles.

.. code-block:: yaml

    gpio:
      PortF:
        led1@1: {direction: out}
        sw1@4: {direction: in}

"""

from __future__ import annotations

from platformtree.compiler.builder import Builder
from platformtree.compiler.diagnostics import StructuralError, TypeMismatchError
from platformtree.compiler.node import Node, check_range, numeric_slot
from platformtree.lib.enums import AttributeKind
from .emit import RCGCGPIO, check_c_name, enable_gate, hex32

PORTS = {
    "PortA": 0x4000_4000,
    "PortB": 0x4000_5000,
    "PortC": 0x4000_6000,
    "PortD": 0x4000_7000,
    "PortE": 0x4002_4000,
    "PortF": 0x4002_5000,
}
PIN_INDEXES = range(0, 8)
FUNCTIONS = range(0, 16)
DIRECTIONS = {"in": "TIVA_C_PIN_IN", "out": "TIVA_C_PIN_OUT"}
PIN_TYPE = "tiva_c_pin_t"


def pin_index(node: Node) -> int:
    "Pin number from the node path, ``led1@1`` -> ``1``"
    if node.path is None:
        raise StructuralError(f"pin `{node.label}` needs an index, e.g. `{node.label}@0`", node)
    return numeric_slot(node, "pin index", PIN_INDEXES)


def verify_gpio(builder: Builder, node: Node):
    node.expect_no_attributes()
    for child in node.children:
        if child.kind != "port":
            raise StructuralError(f"`{child.label}` isn't a port, gpio only holds ports", child)


def verify_port(builder: Builder, node: Node):
    if node.name not in PORTS:
        raise TypeMismatchError(f"unknown port `{node.label}`, expected one of " + ", ".join(PORTS), node)
    if node.path is not None:
        raise StructuralError(f"port `{node.name}` doesn't take a slot", node)
    node.expect_no_attributes()
    node.expect_unique_paths()


def build_port(builder: Builder, node: Node):
    assert node.name is not None
    builder.add_statement(node, enable_gate(RCGCGPIO, list(PORTS).index(node.name), node.name))


def verify_pin(builder: Builder, node: Node):
    if node.name is None:
        raise StructuralError("pin needs a name", node)
    check_c_name(node, "pin", node.name)
    if node.parent is None or node.parent.kind != "port":
        raise StructuralError("pin must be declared inside a port", node)
    node.expect_no_children()
    node.expect_only(("direction", "function"))
    pin_index(node)
    direction = node.require_string("direction")
    if direction not in DIRECTIONS:
        raise TypeMismatchError(f"unknown direction `{direction}`, expected `in` or `out`", node)
    function = node.optional_attribute("function", AttributeKind.INT)
    if function is not None:
        assert isinstance(function, int)
        check_range(node, "alternate function", function, FUNCTIONS)


def build_pin(builder: Builder, node: Node):
    port = node.parent
    assert port is not None and port.name is not None and node.name is not None
    direction = DIRECTIONS[node.require_string("direction")]
    function = node.optional_attribute("function", AttributeKind.INT, 0)
    builder.add_statement(node, f"{PIN_TYPE} {node.name} = tiva_c_pin_new({hex32(PORTS[port.name])}, {pin_index(node)}, {direction}, {function});")
    builder.bind_handle(node.name, PIN_TYPE, node)
    builder.set_resolved_type(node, PIN_TYPE)
