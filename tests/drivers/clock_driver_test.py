# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

import unittest

from platformtree.compiler import CompilerOptions, Forest, Node
from platformtree.drivers import clock_config, system_frequency
from platformtree.hal.sysctl import ClockSource
from platformtree.lib.enums import DiagnosticKind
from tests.drivers.base_driver import DriverTestCase


class ClockDriverTest(DriverTestCase):
    """Test suite for :mod:`platformtree.drivers.clock`."""

    def test_pll_sequence(self):
        program = self.compile_ok({"clock": {"source": "MOSC", "source_frequency": 16_000_000, "pll": True, "divisor": 5}})
        code = self.code_of(program, "clock")
        self.assertTrue(code.splitlines()[0].startswith("HWREG(0x400FE060u) = (HWREG(0x400FE060u) & ~0x00400800u) | 0x00000800u;"))
        self.assertIn("if (HWREG(0x400FE060u) & 0x00000001u) {", code)
        self.assertIn("while (!(HWREG(0x400FE050u) & 0x00000100u)) {}", code)
        self.assertIn("while (!(HWREG(0x400FE050u) & 0x00000040u)) {}", code)
        self.assertTrue(code.splitlines()[-1].startswith("HWREG(0x400FE060u) &= ~0x00000800u;"))
        self.assertEqual(len(program.handles), 0)

    def test_bounded_polls(self):
        program = self.compile_ok({"clock": {"source": "PIOSC", "pll": True, "divisor": 4}}, CompilerOptions(max_lock_polls=5000))
        code = self.code_of(program, "clock")
        self.assertIn("uint32_t polls = 5000u;", code)
        self.assertIn("tiva_c_lock_timeout();", code)
        self.assertNotIn("while (!(HWREG(0x400FE050u) & 0x00000040u)) {}", code)

    def test_no_pll(self):
        program = self.compile_ok({"clock": {"source": "PIOSC"}})
        code = self.code_of(program, "clock")
        self.assertNotIn("while (", code)
        self.assertEqual(len(code.splitlines()), 2)

    def test_missing_source(self):
        error = self.compile_error({"clock": {"source_frequency": 16_000_000}})
        self.assertIs(error.kind, DiagnosticKind.STRUCTURAL)
        self.assertIn("`source`", error.message)

    def test_mosc_needs_frequency(self):
        error = self.compile_error({"clock": {"source": "MOSC"}})
        self.assertIn("missing attribute `source_frequency`", error.message)

    def test_unknown_source(self):
        error = self.compile_error({"clock": {"source": "HSE"}})
        self.assertIs(error.kind, DiagnosticKind.TYPE_MISMATCH)
        self.assertIn("unknown clock source `HSE`", error.message)

    def test_unsupported_crystal(self):
        error = self.compile_error({"clock": {"source": "MOSC", "source_frequency": 11_000_000}})
        self.assertIs(error.kind, DiagnosticKind.TYPE_MISMATCH)
        self.assertIn("11000000", error.message)

    def test_pll_divisor_range(self):
        error = self.compile_error({"clock": {"source": "MOSC", "source_frequency": 16_000_000, "pll": True, "divisor": 2}})
        self.assertIn("valid range 3..16", error.message)

    def test_pll_source(self):
        error = self.compile_error({"clock": {"source": "LFIOSC", "pll": True, "divisor": 4}})
        self.assertIn("can't drive the PLL", error.message)

    def test_unknown_attribute(self):
        error = self.compile_error({"clock": {"source": "PIOSC", "speed": 3}})
        self.assertIn("unknown attribute `speed`", error.message)

    def test_single_clock(self):
        result = self.compile({"clock": {"source": "PIOSC"}, "clock@1": {"source": "PIOSC"}})
        self.assertFalse(result.ok)
        self.assertEqual([d.path for d in result.errors], ["@1"])
        self.assertIn("first declared at `clock`", result.errors[0].message)


class SystemFrequencyTest(unittest.TestCase):
    def test_reset_clock(self):
        self.assertEqual(system_frequency(Forest()), 16_000_000)

    def test_configured_clock(self):
        forest = Forest([Node("clock", attributes={"source": "MOSC", "source_frequency": 16_000_000, "pll": True, "divisor": 5})])
        self.assertEqual(system_frequency(forest), 40_000_000)

    def test_clock_config(self):
        config = clock_config(Node("clock", attributes={"source": "piosc_4mhz", "divisor": 2}))
        self.assertIs(config.source, ClockSource.PIOSC_4MHZ)
        self.assertEqual(config.system_frequency, 2_000_000)


if __name__ == "__main__":
    unittest.main(verbosity=2)
