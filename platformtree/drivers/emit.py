# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
C fragments shared by the driver modules. ``HWREG`` and the ``tiva_c_*`` routines come from the target header.
"""

from __future__ import annotations
import re
from typing import Optional

from platformtree.compiler.diagnostics import TypeMismatchError
from platformtree.compiler.node import Node
from platformtree.hal.sysctl import SYSCTL_BASE, OpKind, RegisterOp

# run-mode clock gating registers
RCGCTIMER = SYSCTL_BASE + 0x604
RCGCGPIO = SYSCTL_BASE + 0x608
RCGCUART = SYSCTL_BASE + 0x618
RCGCWTIMER = SYSCTL_BASE + 0x65C

INDENT = "    "

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# C11
C_KEYWORDS = frozenset(
    (
        "auto break case char const continue default do double else enum extern float for goto if inline int long "
        "register restrict return short signed sizeof static struct switch typedef union unsigned void volatile while "
        "_Alignas _Alignof _Atomic _Bool _Complex _Generic _Imaginary _Noreturn _Static_assert _Thread_local"
    ).split()
)
#: prefixes of the driver header and of the names the init function declares itself
RESERVED_PREFIXES = ("tiva_c_", "platformtree_")


def check_c_name(node: Node, what: str, name: str):
    """
    Names from the description end up as C identifiers in the init function: handle locals, argument fields and the
    loop routine.

    :raises TypeMismatchError: ``name`` is not an identifier, is a keyword or uses a reserved prefix
    """
    if not _IDENTIFIER.match(name):
        raise TypeMismatchError(f"{what} `{name}` is not a C identifier", node)
    if name in C_KEYWORDS:
        raise TypeMismatchError(f"{what} `{name}` is a C keyword", node)
    if name.startswith(RESERVED_PREFIXES):
        raise TypeMismatchError(f"{what} `{name}` uses a reserved prefix (" + ", ".join(f"`{p}`" for p in RESERVED_PREFIXES) + ")", node)


def hex32(value: int) -> str:
    return f"0x{value:08X}u"


def hwreg(address: int) -> str:
    return f"HWREG({hex32(address)})"


def enable_gate(register: int, bit: int, what: str) -> str:
    "Statement turning on the run-mode clock of one peripheral instance"
    return f"{hwreg(register)} |= {hex32(1 << bit)}; /* clock {what} */"


def render_op(op: RegisterOp, max_polls: Optional[int] = None) -> list[str]:
    """
    C lines for one register operation.

    Polls are plain busy-waits unless ``max_polls`` is given, in which case the wait gives up and calls
    ``tiva_c_lock_timeout()``.
    """
    comment = f" /* {op.comment} */" if op.comment else ""
    if op.op is OpKind.MODIFY:
        reg = hwreg(op.address)
        if op.value == 0:
            return [f"{reg} &= ~{hex32(op.mask)};{comment}"]
        if op.value == op.mask:
            return [f"{reg} |= {hex32(op.mask)};{comment}"]
        return [f"{reg} = ({reg} & ~{hex32(op.mask)}) | {hex32(op.value)};{comment}"]

    if op.op is OpKind.POLL:
        condition = f"!({hwreg(op.address)} & {hex32(op.mask)})"
        if max_polls is None:
            return [f"while ({condition}) {{}}{comment}"]
        return [
            f"{{{comment}",
            f"{INDENT}uint32_t polls = {max_polls}u;",
            f"{INDENT}while ({condition} && --polls) {{}}",
            f"{INDENT}if (polls == 0u) {{",
            f"{INDENT}{INDENT}tiva_c_lock_timeout();",
            f"{INDENT}}}",
            "}",
        ]

    lines = [f"if ({hwreg(op.address)} & {hex32(op.mask)}) {{{comment}"]
    for inner in op.body:
        lines.extend(INDENT + line for line in render_op(inner, max_polls))
    lines.append("}")
    return lines
