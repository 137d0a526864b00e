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

__all__ = ["get_env", "env_var_to_bool", "str_to_bool", "strip_quotes"]

import os
from typing import Mapping, Optional, TypeVar


Ty = TypeVar("Ty")


def get_env(key: str, default: Ty = None, env: Optional[Mapping[str, str]] = None) -> str | Ty:
    """
    Gets an environment variable.
    :param default: default values if the environment variable is not set.
    :param env: environment to read from instead of ``os.environ``
    """
    if env is None:
        return os.getenv(key, default)
    return env.get(key, default)


def str_to_bool(val: str) -> bool:
    low_val = str(val).strip().lower()
    if low_val in ("false", "0", "no"):
        return False
    elif low_val in ("true", "1", "yes"):
        return True
    raise ValueError(f"Unexpected string to bool value {val}")


def env_var_to_bool(name: str, default: str = "false") -> bool:
    val = get_env(name, default)
    return str_to_bool(val)


def strip_quotes(value: str) -> str:
    """Removes one pair of surrounding double quotes, as often found in Windows environment values."""
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value
