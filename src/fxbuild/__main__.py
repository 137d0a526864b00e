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
"""
Entry point for ``python -m fxbuild``, testing the Python version requirements first.
"""
import sys

_min_required_version = (3, 8)
_min_required_version_str = f'{".".join((str(d) for d in _min_required_version))}'
if sys.version_info < _min_required_version:
    major, minor, micro, _, _ = sys.version_info
    raise SystemExit(f"fxbuild requires python {_min_required_version_str}+, not {major}.{minor}.{micro} ({sys.executable})")

from ._impl.fxbuild import main

main()
