# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

from typing import Protocol


class RegisterIO(Protocol):
    "32-bit memory-mapped register access"

    def read32(self, address: int) -> int: ...

    def write32(self, address: int, value: int) -> None: ...


class MemoryIO:
    """
    Register file backed by a dict, unset registers read as ``0``. Keeps a log of every write.

    :param initial: register values at reset
    """

    def __init__(self, initial=None):
        self.registers = dict(initial or {})
        self.writes: list[tuple[int, int]] = []

    def read32(self, address: int) -> int:
        return self.registers.get(address, 0)

    def write32(self, address: int, value: int) -> None:
        value &= 0xFFFF_FFFF
        self.writes.append((address, value))
        self.registers[address] = value
