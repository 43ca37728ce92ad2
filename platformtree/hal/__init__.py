# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
Models of the runtime hardware drivers the generated code calls into.

The compiler uses them to compute register values and sequences at build time; the same models run against a
:class:`~platformtree.hal.io.RegisterIO` so the sequences can be exercised without hardware.
"""

#: Supported targets and the driver family each one maps to
FAMILIES = {
    "tiva_c": "tiva_c",
    "tm4c123gh6pm": "tiva_c",
}
