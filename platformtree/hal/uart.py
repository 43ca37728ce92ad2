# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
UART line settings and baud-rate divisor search.

The divisor is split into an integer part ``dl`` and a fractional correction ``(add, mul)``::

    baud = pclk / (16 * dl * (1 + add / mul))

"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from enum import Enum

import numpy as np

log = logging.getLogger(__name__)

MUL_RANGE = range(1, 16)
WORD_LENGTHS = range(5, 9)
STOP_BITS = (1, 2)


class Parity(Enum):
    "Parity setting, the value is its letter in a mode string"

    NONE = "n"
    ODD = "o"
    EVEN = "e"
    FORCED_ONE = "1"
    FORCED_ZERO = "0"


@dataclass(frozen=True)
class UartMode:
    """
    Line settings parsed from strings like ``115200,8n1``.
    """

    baud: int
    word_length: int = 8
    parity: Parity = Parity.NONE
    stop_bits: int = 1

    _pattern = re.compile(r"^\s*(\d+)\s*,\s*(\d)([a-zA-Z0-9])(\d)\s*$")

    @classmethod
    def parse(cls, text: str) -> UartMode:
        """
        :raises ValueError: malformed or out of range
        """
        match = cls._pattern.match(text)
        if match is None:
            raise ValueError(f"invalid uart mode `{text}`, expected `<baud>,<bits><parity><stop>` like `115200,8n1`")
        baud, bits, parity, stop = match.groups()
        if int(baud) == 0:
            raise ValueError(f"invalid baud rate `{baud}`")
        if int(bits) not in WORD_LENGTHS:
            raise ValueError(f"invalid word length `{bits}`, valid range {WORD_LENGTHS.start}..{WORD_LENGTHS.stop - 1}")
        try:
            parsed_parity = Parity(parity.lower())
        except ValueError:
            raise ValueError(f"invalid parity `{parity}`, expected one of " + ", ".join(p.value for p in Parity)) from None
        if int(stop) not in STOP_BITS:
            raise ValueError(f"invalid stop bits `{stop}`, expected 1 or 2")
        return cls(baud=int(baud), word_length=int(bits), parity=parsed_parity, stop_bits=int(stop))

    def __str__(self) -> str:
        return f"{self.baud},{self.word_length}{self.parity.value}{self.stop_bits}"


@dataclass(frozen=True)
class Divisors:
    dl: int
    add: int = 0
    mul: int = 1

    def effective_baud(self, pclk: int) -> float:
        return effective_baud(pclk, self.dl, self.add, self.mul)


def effective_baud(pclk: int, dl: int, add: int = 0, mul: int = 1) -> float:
    "Baud rate produced by a divisor triple"
    return pclk / (16 * dl * (1 + add / mul))


def _candidates() -> tuple[np.ndarray, np.ndarray]:
    "Every ``(mul, add)`` pair in search order: mul ascending, then add ascending"
    pairs = [(mul, add) for mul in MUL_RANGE for add in range(mul)]
    muls, adds = zip(*pairs)
    return np.array(muls, dtype=np.int64), np.array(adds, dtype=np.int64)


_MULS, _ADDS = _candidates()


def calculate_divisors(pclk: int, baud: int) -> Divisors:
    """
    Divisor triple closest to ``baud`` for a peripheral clock of ``pclk``.

    Exact integer divisions return ``dl = pclk / (16 * baud)`` without searching. Otherwise every ``(mul, add)``
    candidate is evaluated and the one with the smallest absolute baud error wins; the first one in search order on
    ties, which also makes a zero-error candidate final. ``dl`` is rounded to nearest and kept at least 1, at least 2
    when ``add`` is non-zero.

    :raises ValueError: non-positive ``pclk`` or ``baud``
    """
    if pclk <= 0 or baud <= 0:
        raise ValueError(f"pclk and baud must be positive, got pclk={pclk} baud={baud}")

    if pclk % (16 * baud) == 0:
        return Divisors(dl=pclk // (16 * baud))

    muls, adds = _MULS, _ADDS
    dl = ((muls * pclk) // (8 * baud * (adds + muls)) + 1) // 2
    dl = np.maximum(dl, np.where(adds > 0, 2, 1))
    rates = ((pclk * muls) // (dl * (adds + muls) * 8) + 1) // 2
    errors = np.abs(rates - baud)

    best = int(np.argmin(errors))  # first minimum in search order
    if errors[best] >= baud:
        # nothing beats an unusable rate, keep the plain integer divisor
        fallback = Divisors(dl=max(pclk // (16 * baud), 1))
        log.debug(f"no usable divisor for {baud} baud at {pclk} Hz, falling back to {fallback}")
        return fallback
    result = Divisors(dl=int(dl[best]), add=int(adds[best]), mul=int(muls[best]))
    log.debug(f"{baud} baud at {pclk} Hz: {result}, error {int(errors[best])}")
    return result
