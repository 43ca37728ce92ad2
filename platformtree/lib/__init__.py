# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
Shared, low-level Python code used across platformtree: logging setup, the command-line base class and common enums.
Only add code here that is not specific to the compiler or to a single driver family.
"""
