# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

import unittest

from platformtree.hal.io import MemoryIO
from platformtree.hal.sysctl import (
    RCC,
    RCC_BYPASS,
    RCC_MOSCDIS,
    RCC_OSCSRC,
    RCC_OSCSRC_SHIFT,
    RCC_PWRDN,
    RCC_SYSDIV,
    RCC_SYSDIV_SHIFT,
    RCC_USESYSDIV,
    RCC_XTAL,
    RCC_XTAL_SHIFT,
    RIS,
    RIS_MOSCPUPRIS,
    RIS_PLLLRIS,
    ClockConfig,
    ClockSequencer,
    ClockSource,
    ClockState,
    LockTimeout,
    OpKind,
    RegisterOp,
)

RCC_RESET = 0x078E_3AD1  # main oscillator off, PIOSC, bypassed, PLL powered down


class LockingIO(MemoryIO):
    "Raises the ready flags after a number of RIS reads"

    def __init__(self, initial=None, ready_after=3, flags=RIS_MOSCPUPRIS | RIS_PLLLRIS):
        super().__init__(initial)
        self.ready_after = ready_after
        self.flags = flags
        self.ris_reads = 0

    def read32(self, address: int) -> int:
        if address == RIS:
            self.ris_reads += 1
            if self.ris_reads >= self.ready_after:
                return self.flags
            return 0
        return super().read32(address)


def field(value: int, mask: int, shift: int) -> int:
    return (value & mask) >> shift


class ClockConfigTest(unittest.TestCase):
    """Test suite for :class:`platformtree.hal.sysctl.ClockConfig`."""

    def test_system_frequency(self):
        self.assertEqual(ClockConfig(ClockSource.MOSC, 16_000_000, pll=True, divisor=5).system_frequency, 40_000_000)
        self.assertEqual(ClockConfig(ClockSource.PIOSC, 16_000_000, pll=True, divisor=3).system_frequency, 66_666_666)
        self.assertEqual(ClockConfig(ClockSource.MOSC, 8_000_000, divisor=2).system_frequency, 4_000_000)
        self.assertEqual(ClockConfig(ClockSource.LFIOSC, 30_000).system_frequency, 30_000)

    def test_xtal(self):
        self.assertEqual(ClockConfig(ClockSource.MOSC, 25_000_000).xtal, 0x1A)
        self.assertEqual(ClockConfig(ClockSource.MOSC, 5_000_000).xtal, 0x09)
        self.assertEqual(ClockConfig(ClockSource.PIOSC, 16_000_000).xtal, 0x15)
        self.assertIsNone(ClockConfig(ClockSource.PIOSC_4MHZ, 4_000_000).xtal)

    def test_invalid(self):
        cases = [
            dict(source=ClockSource.MOSC, frequency=11_000_000),
            dict(source=ClockSource.PIOSC, frequency=8_000_000),
            dict(source=ClockSource.LFIOSC, frequency=30_000, pll=True, divisor=4),
            dict(source=ClockSource.MOSC, frequency=16_000_000, pll=True),
            dict(source=ClockSource.MOSC, frequency=16_000_000, pll=True, divisor=2),
            dict(source=ClockSource.MOSC, frequency=16_000_000, divisor=17),
        ]
        for kwargs in cases:
            with self.subTest(**kwargs):
                with self.assertRaises(ValueError):
                    ClockConfig(**kwargs)

    def test_divisor_message_cites_range(self):
        with self.assertRaises(ValueError) as cm:
            ClockConfig(ClockSource.MOSC, 16_000_000, pll=True, divisor=1)
        self.assertIn("valid range 3..16", str(cm.exception))


class ClockSequencerPlanTest(unittest.TestCase):
    """Test suite for :meth:`platformtree.hal.sysctl.ClockSequencer.plan`."""

    def test_pll_states(self):
        plan = ClockSequencer(ClockConfig(ClockSource.MOSC, 16_000_000, pll=True, divisor=5)).plan()
        states = [op.enters for op in plan if op.enters is not None]
        self.assertEqual(states, [ClockState.BYPASSED, ClockState.SOURCE_SELECTED, ClockState.WAIT_LOCK, ClockState.PLL_ENABLED])

    def test_main_oscillator_started_conditionally(self):
        plan = ClockSequencer(ClockConfig(ClockSource.MOSC, 16_000_000)).plan()
        start = plan[1]
        self.assertIs(start.op, OpKind.WHEN_SET)
        self.assertEqual((start.address, start.mask), (RCC, RCC_MOSCDIS))
        self.assertEqual([op.op for op in start.body], [OpKind.MODIFY, OpKind.POLL])
        self.assertEqual(start.body[1].mask, RIS_MOSCPUPRIS)

    def test_internal_source_needs_no_start(self):
        plan = ClockSequencer(ClockConfig(ClockSource.PIOSC, 16_000_000)).plan()
        self.assertNotIn(OpKind.WHEN_SET, [op.op for op in plan])

    def test_without_pll_ends_at_source_selection(self):
        plan = ClockSequencer(ClockConfig(ClockSource.PIOSC, 16_000_000, divisor=4)).plan()
        self.assertIs(plan[-1].enters, ClockState.SOURCE_SELECTED)
        self.assertNotIn(OpKind.POLL, [op.op for op in plan])
        last = plan[-1]
        self.assertTrue(last.value & RCC_PWRDN)
        self.assertEqual(field(last.value, RCC_SYSDIV, RCC_SYSDIV_SHIFT), 3)

    def test_pll_programmed_while_bypassed(self):
        plan = ClockSequencer(ClockConfig(ClockSource.PIOSC, 16_000_000, pll=True, divisor=4)).plan()
        ops = [op.op for op in plan]
        self.assertEqual(ops, [OpKind.MODIFY, OpKind.MODIFY, OpKind.MODIFY, OpKind.POLL, OpKind.MODIFY])
        self.assertEqual(plan[0].value, RCC_BYPASS)
        self.assertEqual(plan[3].mask, RIS_PLLLRIS)
        self.assertEqual((plan[4].mask, plan[4].value), (RCC_BYPASS, 0))

    def test_register_op_checks_mask(self):
        with self.assertRaises(ValueError):
            RegisterOp.modify(RCC, RCC_BYPASS, RCC_PWRDN)


class ClockSequencerRunTest(unittest.TestCase):
    """Test suite for :meth:`platformtree.hal.sysctl.ClockSequencer.run`."""

    def test_pll_bring_up(self):
        io = LockingIO({RCC: RCC_RESET})
        sequencer = ClockSequencer(ClockConfig(ClockSource.MOSC, 16_000_000, pll=True, divisor=5))
        state = sequencer.run(io, max_polls=100)

        self.assertIs(state, ClockState.PLL_ENABLED)
        self.assertEqual(sequencer.history, [ClockState.BYPASSED, ClockState.SOURCE_SELECTED, ClockState.WAIT_LOCK, ClockState.PLL_ENABLED])
        rcc = io.registers[RCC]
        self.assertFalse(rcc & (RCC_BYPASS | RCC_PWRDN | RCC_MOSCDIS))
        self.assertEqual(field(rcc, RCC_OSCSRC, RCC_OSCSRC_SHIFT), ClockSource.MOSC.value)
        self.assertEqual(field(rcc, RCC_XTAL, RCC_XTAL_SHIFT), 0x15)
        self.assertEqual(field(rcc, RCC_SYSDIV, RCC_SYSDIV_SHIFT), 4)
        self.assertTrue(rcc & RCC_USESYSDIV)

    def test_bypass_removed_last(self):
        io = LockingIO({RCC: RCC_RESET})
        ClockSequencer(ClockConfig(ClockSource.MOSC, 16_000_000, pll=True, divisor=5)).run(io)
        rcc_writes = [value for address, value in io.writes if address == RCC]
        self.assertTrue(all(value & RCC_BYPASS for value in rcc_writes[:-1]))
        self.assertFalse(rcc_writes[-1] & RCC_BYPASS)

    def test_running_oscillator_not_restarted(self):
        io = LockingIO({RCC: RCC_RESET & ~RCC_MOSCDIS}, flags=0)
        state = ClockSequencer(ClockConfig(ClockSource.MOSC, 16_000_000)).run(io, max_polls=1)
        self.assertIs(state, ClockState.SOURCE_SELECTED)
        self.assertEqual(io.ris_reads, 0)

    def test_lock_timeout(self):
        io = LockingIO({RCC: RCC_RESET}, flags=0)
        sequencer = ClockSequencer(ClockConfig(ClockSource.PIOSC, 16_000_000, pll=True, divisor=5))
        with self.assertRaises(LockTimeout):
            sequencer.run(io, max_polls=10)
        self.assertIs(sequencer.state, ClockState.WAIT_LOCK)
        self.assertEqual(io.ris_reads, 10)

    def test_oscillator_timeout(self):
        io = LockingIO({RCC: RCC_RESET}, flags=0)
        sequencer = ClockSequencer(ClockConfig(ClockSource.MOSC, 16_000_000))
        with self.assertRaises(LockTimeout):
            sequencer.run(io, max_polls=5)
        self.assertIs(sequencer.state, ClockState.BYPASSED)


if __name__ == "__main__":
    unittest.main(verbosity=2)
