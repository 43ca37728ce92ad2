# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
Drivers for the TI Tiva C (TM4C123GH6PM) family.

Each module provides ``verify``/``build`` handlers for its node kinds; :func:`register_all` wires them into a
:class:`~platformtree.compiler.MaterializerRegistry` together with their structural dependency rules.
"""

from platformtree.compiler.registry import MaterializerRegistry, no_build
from .rules import depends_on_clock, depends_on_parent
from .clock import build_clock, verify_clock, clock_config, system_frequency
from .gpio import build_pin, build_port, verify_gpio, verify_pin, verify_port
from .timer import build_timer_unit, verify_timer, verify_timer_unit
from .uart import build_uart_unit, verify_uart, verify_uart_unit
from .tasks import build_single_task, verify_os, verify_single_task, verify_task_args


def register_all(registry: MaterializerRegistry) -> MaterializerRegistry:
    "Register every Tiva C node kind into ``registry``"
    registry.register("clock", verify_clock, build_clock)

    registry.register("gpio", verify_gpio, no_build, dependency_rules=[depends_on_clock], children="port")
    registry.register("port", verify_port, build_port, dependency_rules=[depends_on_parent], children="pin")
    registry.register("pin", verify_pin, build_pin, dependency_rules=[depends_on_parent])

    registry.register("timer", verify_timer, no_build, dependency_rules=[depends_on_clock], children="timer_unit")
    registry.register("timer_unit", verify_timer_unit, build_timer_unit, dependency_rules=[depends_on_parent])

    registry.register("uart", verify_uart, no_build, dependency_rules=[depends_on_clock], children="uart_unit")
    registry.register("uart_unit", verify_uart_unit, build_uart_unit, dependency_rules=[depends_on_parent])

    registry.register("os", verify_os, no_build)
    registry.register("single_task", verify_single_task, build_single_task, children={"args": "task_args"})
    registry.register("task_args", verify_task_args, no_build)
    return registry


def default_registry() -> MaterializerRegistry:
    return register_all(MaterializerRegistry())


__all__ = [
    "register_all",
    "default_registry",
    "depends_on_clock",
    "depends_on_parent",
    "clock_config",
    "system_frequency",
]
