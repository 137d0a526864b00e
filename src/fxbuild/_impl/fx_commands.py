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

__all__ = ["FxCommands", "FxCommand"]

from typing import Callable, Dict, List, Optional


class FxCommands:
    def __init__(self, prog: str):
        self.prog = prog
        self._commands: Dict[str, FxCommand] = {}
        self._command_before_callbacks = []

    @property
    def command_before_callbacks(self):
        return list(self._command_before_callbacks)

    def add_command_callback(self, callback_before):
        self._command_before_callbacks.append(callback_before)

    def commands(self) -> Dict[str, FxCommand]:
        return self._commands.copy()

    def list_commands(self, names: List[str]) -> str:
        msg = ""
        for name in names:
            doc = self._commands[name].command_function.__doc__
            if doc is None:
                doc = ""
            doc_lines = doc.split("\n", 1)[0]
            msg += f" {name:<20} {doc_lines}\n"
        return msg

    def find(self, name: str) -> List[str]:
        """
        Gets the names of the commands `name` designates: itself if it is a command, otherwise
        every command it is a prefix of.
        """
        if name in self._commands:
            return [name]
        return sorted(c for c in self._commands if c.startswith(name))

    def add_commands(self, new_commands):
        for fx_command in new_commands:
            key = fx_command.command
            assert key not in self._commands, key
            self._commands[key] = fx_command


class FxCommand:
    def __init__(self, fx_commands: FxCommands, command_function: Callable, command: str, usage_msg: str = "", doc_function: Optional[Callable[[], str]] = None):
        self._fx_commands = fx_commands
        self._command_function = command_function
        self.command = command
        self.usage_msg = usage_msg
        self.doc_function = doc_function

    @property
    def command_function(self):
        return self._command_function

    def get_doc(self) -> str:
        doc = "{0} {1} {2}"
        msg = "<no documentation>"
        if self.command_function.__doc__ or self.doc_function or self.usage_msg:
            msg = ""
            if self.usage_msg:
                msg += self.usage_msg
            if self.command_function.__doc__:
                msg += "\n\n" + self.command_function.__doc__
            if self.doc_function:
                msg += "\n" + self.doc_function()

        return doc.format(self._fx_commands.prog, self.command, msg)

    def __call__(self, *args, **kwargs):
        for callback in self._fx_commands.command_before_callbacks:
            callback(self, *args, **kwargs)
        return self.command_function(*args, **kwargs)
