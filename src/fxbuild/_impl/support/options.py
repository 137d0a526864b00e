#
# ----------------------------------------------------------------------------------------------------
#
# Copyright (c) 2024, Oracle and/or its affiliates. All rights reserved.
# DO NOT ALTER OR REMOVE COPYRIGHT NOTICES OR THIS FILE HEADER.
#
# This code is free software; you can redistribute it and/or modify it
# under the terms of the GNU General Public License version 2 only, as
# published by the Free Software Foundation.
#
# This code is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or
# FITNESS FOR A PARTICULAR PURPOSE.  See the GNU General Public License
# version 2 for more details (a copy is included in the LICENSE file that
# accompanied this code).
#
# You should have received a copy of the GNU General Public License version
# 2 along with this work; if not, write to the Free Software Foundation,
# Inc., 51 Franklin St, Fifth Floor, Boston, MA 02110-1301 USA.
#
# Please contact Oracle, 500 Oracle Parkway, Redwood Shores, CA 94065 USA
# or visit www.oracle.com if you need additional information or have any
# questions.
#
# ----------------------------------------------------------------------------------------------------
#

from __future__ import annotations

__all__ = ["_opts", "_opts_parsed_deferrables", "reset_options"]

from argparse import Namespace
from typing import Callable, List

# Global options, populated by the argument parser in fxbuild.py.
# Until parsing is done, the verbosity flags are absent and verbose log calls are deferred.
_opts = Namespace(warn=True, quiet=False)

# Callables run once the global options have been parsed.
_opts_parsed_deferrables: List[Callable[[], None]] = []


def reset_options(**kwargs) -> Namespace:
    """
    Resets the global options to their defaults and applies `kwargs` on top.
    Pending deferrables are dropped.
    """
    for key in list(vars(_opts)):
        delattr(_opts, key)
    _opts.warn = True
    _opts.quiet = False
    for key, value in kwargs.items():
        setattr(_opts, key, value)
    del _opts_parsed_deferrables[:]
    return _opts
