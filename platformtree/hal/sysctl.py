# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
System clock bring-up for the Tiva C / TM4C123 run-mode clock configuration register (RCC).

:class:`ClockSequencer` is a small state machine::

    BYPASSED -> SOURCE_SELECTED -> WAIT_LOCK -> PLL_ENABLED

It starts the main oscillator when the source needs it and it isn't running yet, selects the source, and when the
PLL is requested programs it while still bypassed, waits for lock and only then removes the bypass. Without the PLL
the sequence ends right after source selection.

The sequence is produced as data (:meth:`ClockSequencer.plan`) so the compiler can emit it, and can be executed
against a :class:`~platformtree.hal.io.RegisterIO` (:meth:`ClockSequencer.run`).
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import auto
from typing import Optional

from platformtree.lib.enums import PtEnum
from .io import RegisterIO

log = logging.getLogger(__name__)

SYSCTL_BASE = 0x400F_E000
RIS = SYSCTL_BASE + 0x050
RCC = SYSCTL_BASE + 0x060

RCC_MOSCDIS = 1 << 0
RCC_OSCSRC_SHIFT = 4
RCC_OSCSRC = 0x3 << RCC_OSCSRC_SHIFT
RCC_XTAL_SHIFT = 6
RCC_XTAL = 0x1F << RCC_XTAL_SHIFT
RCC_BYPASS = 1 << 11
RCC_PWRDN = 1 << 13
RCC_USESYSDIV = 1 << 22
RCC_SYSDIV_SHIFT = 23
RCC_SYSDIV = 0xF << RCC_SYSDIV_SHIFT

RIS_PLLLRIS = 1 << 6
RIS_MOSCPUPRIS = 1 << 8

PLL_FREQUENCY = 400_000_000
PLL_SYSCLK = PLL_FREQUENCY // 2  # the PLL output is always predivided by 2
PLL_DIVISORS = range(3, 17)
DIVISORS = range(1, 17)

#: Main oscillator crystals the PLL can be configured for, frequency in Hz -> RCC.XTAL encoding
CRYSTALS = {
    5_000_000: 0x09,
    5_120_000: 0x0A,
    6_000_000: 0x0B,
    6_144_000: 0x0C,
    7_372_800: 0x0D,
    8_000_000: 0x0E,
    8_192_000: 0x0F,
    10_000_000: 0x10,
    12_000_000: 0x11,
    12_288_000: 0x12,
    13_560_000: 0x13,
    14_318_180: 0x14,
    16_000_000: 0x15,
    16_384_000: 0x16,
    18_000_000: 0x17,
    20_000_000: 0x18,
    24_000_000: 0x19,
    25_000_000: 0x1A,
}
PIOSC_XTAL = CRYSTALS[16_000_000]


class ClockSource(PtEnum):
    "Oscillators selectable through RCC.OSCSRC; the value is the field encoding"

    MOSC = 0
    PIOSC = 1
    PIOSC_4MHZ = 2
    LFIOSC = 3

    @property
    def external(self) -> bool:
        "Needs an external crystal that has to be started and waited on"
        return self is ClockSource.MOSC

    @property
    def pll_capable(self) -> bool:
        return self in (ClockSource.MOSC, ClockSource.PIOSC)

    @property
    def fixed_frequency(self) -> Optional[int]:
        "Frequency of internal oscillators, ``None`` for the main oscillator"
        return {
            ClockSource.MOSC: None,
            ClockSource.PIOSC: 16_000_000,
            ClockSource.PIOSC_4MHZ: 4_000_000,
            ClockSource.LFIOSC: 30_000,
        }[self]


class ClockState(PtEnum):
    BYPASSED = auto()
    SOURCE_SELECTED = auto()
    WAIT_LOCK = auto()
    PLL_ENABLED = auto()


class OpKind(PtEnum):
    MODIFY = auto()
    POLL = auto()
    WHEN_SET = auto()


@dataclass(frozen=True)
class RegisterOp:
    """
    One step of a register sequence.

    ``MODIFY`` replaces the ``mask`` bits of ``address`` with ``value``; ``POLL`` busy-waits until any ``mask`` bit
    reads as set; ``WHEN_SET`` runs ``body`` only if a ``mask`` bit currently reads as set.

    :param enters: state the sequencer is in once this step starts
    """

    op: OpKind
    address: int
    mask: int
    value: int = 0
    body: tuple[RegisterOp, ...] = ()
    enters: Optional[ClockState] = None
    comment: str = ""

    @classmethod
    def modify(cls, address: int, mask: int, value: int, enters: Optional[ClockState] = None, comment: str = "") -> RegisterOp:
        if value & ~mask:
            raise ValueError(f"value 0x{value:08x} has bits outside mask 0x{mask:08x}")
        return cls(OpKind.MODIFY, address, mask, value, enters=enters, comment=comment)

    @classmethod
    def poll(cls, address: int, mask: int, enters: Optional[ClockState] = None, comment: str = "") -> RegisterOp:
        return cls(OpKind.POLL, address, mask, enters=enters, comment=comment)

    @classmethod
    def when_set(cls, address: int, mask: int, body: tuple[RegisterOp, ...], comment: str = "") -> RegisterOp:
        return cls(OpKind.WHEN_SET, address, mask, body=body, comment=comment)


class LockTimeout(RuntimeError):
    "A lock/ready flag didn't set within the poll bound"


@dataclass(frozen=True)
class ClockConfig:
    """
    Requested system clock.

    :param source: oscillator driving the system clock
    :param frequency: source frequency in Hz. Must match internal oscillators, and be a supported crystal for MOSC
    :param pll: run from the 400 MHz PLL
    :param divisor: system clock divisor, 3..16 with the PLL (required), 1..16 without

    :raises ValueError: inconsistent configuration
    """

    source: ClockSource
    frequency: int
    pll: bool = False
    divisor: Optional[int] = None

    def __post_init__(self):
        fixed = self.source.fixed_frequency
        if fixed is None and self.frequency not in CRYSTALS:
            mhz = ", ".join(f"{f / 1_000_000:g}" for f in CRYSTALS)
            raise ValueError(f"unsupported crystal frequency {self.frequency} Hz for {self.source}, supported (MHz): {mhz}")
        if fixed is not None and self.frequency != fixed:
            raise ValueError(f"{self.source} runs at {fixed} Hz, got {self.frequency} Hz")
        if self.pll and not self.source.pll_capable:
            raise ValueError(f"{self.source} can't drive the PLL, use MOSC or PIOSC")
        if self.pll and self.divisor is None:
            raise ValueError("the PLL needs a divisor")
        valid = PLL_DIVISORS if self.pll else DIVISORS
        if self.divisor is not None and self.divisor not in valid:
            raise ValueError(f"invalid divisor {self.divisor}, valid range {valid.start}..{valid.stop - 1}")

    @property
    def xtal(self) -> Optional[int]:
        "RCC.XTAL encoding; the PLL reference must be described even when running from PIOSC"
        if self.source is ClockSource.MOSC:
            return CRYSTALS[self.frequency]
        if self.source is ClockSource.PIOSC:
            return PIOSC_XTAL
        return None

    @property
    def system_frequency(self) -> int:
        "Resulting system clock in Hz"
        if self.pll:
            assert self.divisor is not None
            return PLL_SYSCLK // self.divisor
        return self.frequency // (self.divisor or 1)

    def sysdiv_bits(self) -> int:
        if self.divisor is None or self.divisor == 1:
            return 0
        return ((self.divisor - 1) << RCC_SYSDIV_SHIFT) | RCC_USESYSDIV


class ClockSequencer:
    """
    Plans and runs the bring-up sequence for a :class:`ClockConfig`.

    .. code-block:: python

        sequencer = ClockSequencer(ClockConfig(ClockSource.MOSC, 16_000_000, pll=True, divisor=5))
        for op in sequencer.plan():
            ...  # emit
        sequencer.run(io, max_polls=100_000)

    """

    def __init__(self, config: ClockConfig):
        self.config = config
        self.state: Optional[ClockState] = None
        self.history: list[ClockState] = []

    def plan(self) -> list[RegisterOp]:
        config = self.config
        ops = [
            RegisterOp.modify(RCC, RCC_BYPASS | RCC_USESYSDIV, RCC_BYPASS, enters=ClockState.BYPASSED, comment="run from the raw source while reconfiguring"),
        ]

        if config.source.external:
            start_oscillator = (
                RegisterOp.modify(RCC, RCC_MOSCDIS, 0),
                RegisterOp.poll(RIS, RIS_MOSCPUPRIS),
            )
            ops.append(RegisterOp.when_set(RCC, RCC_MOSCDIS, start_oscillator, comment="start the main oscillator if it is off"))

        mask = RCC_OSCSRC
        value = config.source.value << RCC_OSCSRC_SHIFT
        if config.xtal is not None:
            mask |= RCC_XTAL
            value |= config.xtal << RCC_XTAL_SHIFT
        if not config.pll:
            # sysdiv and PLL power-down go in with the source, nothing left to wait for
            mask |= RCC_PWRDN | RCC_SYSDIV | RCC_USESYSDIV
            value |= RCC_PWRDN | config.sysdiv_bits()
            ops.append(RegisterOp.modify(RCC, mask, value, enters=ClockState.SOURCE_SELECTED, comment=f"select {config.source}, PLL off"))
            return ops

        ops.append(RegisterOp.modify(RCC, mask, value, enters=ClockState.SOURCE_SELECTED, comment=f"select {config.source}"))
        ops.append(
            RegisterOp.modify(RCC, RCC_PWRDN | RCC_SYSDIV | RCC_USESYSDIV, config.sysdiv_bits(), comment=f"power up the PLL, divide by {config.divisor}"),
        )
        ops.append(RegisterOp.poll(RIS, RIS_PLLLRIS, enters=ClockState.WAIT_LOCK, comment="wait for PLL lock"))
        ops.append(RegisterOp.modify(RCC, RCC_BYPASS, 0, enters=ClockState.PLL_ENABLED, comment="switch to the PLL"))
        return ops

    def run(self, io: RegisterIO, max_polls: Optional[int] = None) -> ClockState:
        """
        Execute the plan against ``io``.

        :param max_polls: reads allowed per wait before giving up. ``None`` waits forever, like the generated code
        :raises LockTimeout: a wait exceeded ``max_polls``
        """
        self.state = None
        self.history = []
        for op in self.plan():
            self._execute(io, op, max_polls)
        assert self.state is not None
        return self.state

    def _execute(self, io: RegisterIO, op: RegisterOp, max_polls: Optional[int]):
        if op.enters is not None:
            self.state = op.enters
            self.history.append(op.enters)
            log.debug(f"clock state -> {op.enters}")

        if op.op is OpKind.MODIFY:
            current = io.read32(op.address)
            io.write32(op.address, (current & ~op.mask) | op.value)
        elif op.op is OpKind.POLL:
            polls = 0
            while io.read32(op.address) & op.mask == 0:
                polls += 1
                if max_polls is not None and polls >= max_polls:
                    raise LockTimeout(f"flag 0x{op.mask:08x} at 0x{op.address:08x} not set after {polls} polls ({self.state})")
        elif op.op is OpKind.WHEN_SET:
            if io.read32(op.address) & op.mask:
                for inner in op.body:
                    self._execute(io, inner, max_polls)
