# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
import re
from argparse import Namespace
from dataclasses import dataclass, fields, replace
from typing import Optional

from platformtree.hal import FAMILIES

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class CompilerOptions:
    """
    Options of a single compilation.

    :param target: MCU family, or one of its part-number aliases. See :data:`platformtree.hal.FAMILIES`
    :param max_lock_polls: bound on the generated oscillator/PLL lock polls. ``None`` busy-waits forever
    :param warnings_as_errors: fail compilation on warnings
    :param entry_name: name of the emitted init function

    :raises ValueError: unknown target, non-positive poll bound or invalid ``entry_name``
    """

    target: str = "tiva_c"
    max_lock_polls: Optional[int] = None
    warnings_as_errors: bool = False
    entry_name: str = "platformtree_init"

    def __post_init__(self):
        if self.target not in FAMILIES:
            raise ValueError(f"Unknown target {self.target}, supported targets: {', '.join(sorted(FAMILIES))}")
        if self.max_lock_polls is not None and self.max_lock_polls <= 0:
            raise ValueError(f"max_lock_polls must be positive, got {self.max_lock_polls}")
        if not _IDENTIFIER.match(self.entry_name):
            raise ValueError(f"entry_name must be a C identifier, got {self.entry_name}")

    @property
    def family(self) -> str:
        "Driver family of the target, e.g. ``tm4c123gh6pm`` -> ``tiva_c``"
        return FAMILIES[self.target]

    @classmethod
    def from_clargs(cls, args: Namespace) -> CompilerOptions:
        "Options from command-line arguments; arguments left at ``None`` keep their defaults"
        overrides = {f.name: getattr(args, f.name) for f in fields(cls) if getattr(args, f.name, None) is not None}
        return replace(cls(), **overrides)
