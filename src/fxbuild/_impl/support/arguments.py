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
Splitting of user supplied option strings and creation of files with Java arguments that can be
passed using the @-syntax (e.g. ``javac @argumentsfile``).

See also the JAVA COMMAND-LINE ARGUMENT FILES section in ``man 1 java``
"""

__all__ = [
    "escape_argument",
    "split_all",
    "tokenize",
    "write_to_file",
]

import os
from typing import Iterable, List, Optional, Sequence, TextIO

_QUOTES = ('"', "'")


def tokenize(raw: Optional[str]) -> List[str]:
    """
    Splits `raw` on runs of whitespace that are not inside quotes.

    Quote characters are kept in the resulting tokens. Inside a quoted run, whitespace and the
    other kind of quote are literal. An unterminated quote extends to the end of the input.

    >>> tokenize('-Dfoo=bar "a b" \\'c"d\\'')
    ['-Dfoo=bar', '"a b"', '\\'c"d\\'']
    """
    if not raw:
        return []
    tokens = []
    current = []
    # Character that ends the current run: None outside quotes, else the opening quote
    closing = None
    for c in raw:
        if closing is None:
            if c.isspace():
                if current:
                    tokens.append("".join(current))
                    current = []
            else:
                if c in _QUOTES:
                    closing = c
                current.append(c)
        else:
            current.append(c)
            if c == closing:
                closing = None
    if current:
        tokens.append("".join(current))
    return tokens


def split_all(values: Optional[Iterable[Optional[str]]]) -> List[str]:
    """Tokenizes every entry of `values`, skipping None entries, and concatenates the results."""
    result = []
    for value in values or ():
        if value is not None:
            result.extend(tokenize(value))
    return result


SPECIAL_CHARS = [" ", "'", '"', "\n", "\r", "\t", "\f"]
"""
If any of these characters appear in an argument, the argument has to be put in double quotes and properly escaped.

Backslashes by themselves don't require quoting, but if the argument is put in quotes, backslashes have to be escaped.
"""


def escape_argument(arg: str) -> str:
    """
    Escapes a single commandline argument for use in a Java argument file.

    The returned argument can be put on its own line or next to other arguments on the same line separated by a space.
    """
    if not arg:
        # Empty arguments need to be quoted, otherwise they are ignored
        return '""'

    if any(c in arg for c in SPECIAL_CHARS):
        escaped = (
            # Inside quotes, backslashes are escape characters
            arg.replace("\\", "\\\\")
            .replace("'", "\\'")
            .replace('"', '\\"')
            .replace("\n", "\\n")
            .replace("\r", "\\r")
            .replace("\t", "\\t")
            .replace("\f", "\\f")
        )
        return f'"{escaped}"'
    return arg


def write_to_file(file: TextIO, args: Sequence[str]) -> None:
    """
    Writes the given arguments to the given file opened in text mode, one escaped argument per line.
    """
    for arg in args:
        file.write(escape_argument(arg))
        file.write(os.linesep)
