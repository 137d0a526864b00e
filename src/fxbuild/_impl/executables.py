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
Locating the JDK tools (``java``, ``javac``, ``jlink``) and probing their versions.
"""

from __future__ import annotations

__all__ = [
    "ExecutableResolver",
    "Toolchain",
    "ToolchainException",
    "executable_extensions",
    "find_executable",
    "get_parent",
    "is_jlink_version_13_or_higher",
    "is_target_using_java8",
    "parse_java_version",
    "sibling_tool",
]

import os, re
from os.path import abspath, basename, dirname, exists, isdir, isfile, join, realpath
from typing import List, Mapping, Optional, Sequence

from .support.envvars import get_env, strip_quotes
from .support.logging import log_error, logv
from .support.processes import CommandSpec, capture
from .support.system import is_windows

JLINK_VERSION_PATTERN = re.compile(r"(1[3-9]|[2-9][0-9]|\d{3,})")

_NATIVE_EXTENSIONS = (".exe", ".com")
_BATCH_EXTENSIONS = (".bat", ".cmd")
_DEFAULT_WINDOWS_EXTENSIONS = [".exe", ".com", ".cmd", ".bat"]


class ToolchainException(Exception):
    def __init__(self, value):
        Exception.__init__(self, value)


class Toolchain:
    """
    A JDK installation selected explicitly instead of the one found through the environment.
    """

    def __init__(self, home):
        if not isdir(home):
            raise ToolchainException("Toolchain home does not exist: " + home)
        self.home = realpath(home)

    def find_tool(self, name: str, env: Optional[Mapping[str, str]] = None) -> Optional[str]:
        return find_executable(name, [join(self.home, "bin")], env)

    def __repr__(self):
        return f"Toolchain({self.home})"


def executable_extensions(env: Optional[Mapping[str, str]] = None) -> List[str]:
    """
    Gets the file extensions tried when looking up an executable on Windows, in order.
    """
    path_ext = get_env("PATHEXT", None, env)
    if path_ext:
        return [ext for ext in path_ext.lower().split(";") if ext]
    return list(_DEFAULT_WINDOWS_EXTENSIONS)


def find_executable(name: str, paths: Sequence[str], env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Searches `paths` in order for the executable `name` and returns the absolute path of the first match.
    """
    windows = is_windows()
    extensions = executable_extensions(env) if windows else []
    for path in paths:
        candidate = join(path, name)
        if not windows:
            if isfile(candidate):
                return abspath(candidate)
            continue
        if candidate.lower().endswith(tuple(extensions)) and isfile(candidate):
            return abspath(candidate)
        for extension in extensions:
            if isfile(candidate + extension):
                return abspath(candidate + extension)
    return None


def _needs_command_interpreter(executable: str) -> bool:
    lower = executable.lower()
    return is_windows() and not lower.endswith(_NATIVE_EXTENSIONS) and lower.endswith(_BATCH_EXTENSIONS)


class ExecutableResolver:
    """
    Resolves a tool name to a concrete executable.

    The lookup order is:

    1. `tool` itself when it names an existing file
    2. the toolchain, if any
    3. the ``bin`` directory of the build JDK (`java_home`)
    4. ``$JAVA_HOME/bin``
    5. the working directory, then every ``PATH`` entry
    6. `tool` unchanged, left for the operating system to find
    """

    def __init__(self, java_home: Optional[str] = None, toolchain: Optional[Toolchain] = None):
        self.java_home = java_home
        self.toolchain = toolchain

    def resolve(
        self,
        tool: str,
        env: Optional[Mapping[str, str]] = None,
        working_dir: Optional[str] = None,
        toolchain: Optional[Toolchain] = None,
    ) -> str:
        if env is None:
            env = os.environ
        toolchain = toolchain or self.toolchain

        if isfile(tool):
            if toolchain is not None:
                logv(f"Toolchains are ignored, 'executable' parameter is set to {tool}")
            return abspath(tool)

        exe = None
        if toolchain is not None:
            exe = toolchain.find_tool(tool, env)
            if exe is None:
                logv(f"{tool} not found in {toolchain}")

        if exe is None and self.java_home:
            exe = find_executable(tool, [join(self.java_home, "bin")], env)

        if exe is None:
            java_home = get_env("JAVA_HOME", None, env)
            if java_home:
                exe = find_executable(tool, [join(strip_quotes(java_home), "bin")], env)

        if exe is None:
            paths = [abspath(working_dir or ".")]
            path = get_env("PATH", None, env)
            if path:
                paths.extend(p for p in path.split(os.pathsep) if p)
            exe = find_executable(tool, paths, env)

        if exe is None:
            exe = tool
        logv(f"Executable {exe}")
        return exe

    def command_prefix(
        self,
        tool: str,
        env: Optional[Mapping[str, str]] = None,
        working_dir: Optional[str] = None,
        toolchain: Optional[Toolchain] = None,
    ) -> List[str]:
        """
        Gets the leading elements of a command line running `tool`. Windows batch scripts are run in
        isolation by the command interpreter (``%ComSpec% /c script``).
        """
        if env is None:
            env = os.environ
        exe = self.resolve(tool, env, working_dir, toolchain)
        if _needs_command_interpreter(exe):
            return [get_env("ComSpec", None, env) or "cmd", "/c", exe]
        return [exe]


def sibling_tool(executable: str, name: str) -> str:
    """
    Gets the tool `name` in the same directory as `executable`, e.g. the ``java`` launcher next to ``jlink``.
    Returns `name` itself when `executable` has no directory part.
    """
    directory = dirname(executable)
    if not directory:
        return name
    extension = os.path.splitext(basename(executable))[1]
    return join(directory, name + extension)


def parse_java_version(output: str) -> Optional[str]:
    """
    Extracts the version string from the output of ``java -version``.

    >>> parse_java_version('openjdk version "17.0.2" 2022-01-18')
    '17.0.2'
    """
    for line in output.splitlines():
        if "version" in line and "warning" not in line:
            parts = line.split()
            if len(parts) > 2:
                return parts[2].strip('"')
    return None


def is_target_using_java8(java: str, env: Optional[Mapping[str, str]] = None) -> bool:
    """
    Determines if the ``java`` launcher `java` belongs to a JDK 8.
    A launcher that cannot be run is assumed not to be JDK 8.
    """
    try:
        result = capture(CommandSpec(java, ("-version",), env=env))
    except OSError as e:
        logv(f"Could not determine the Java version of {java}: {e}")
        return False
    if result.exit_code != 0:
        logv(f"Could not determine the Java version of {java}: exit code {result.exit_code}")
        return False
    version = parse_java_version(result.output or "")
    logv(f"Java version of {java}: {version}")
    return version is not None and version.startswith("1.8")


def is_jlink_version_13_or_higher(jlink: str, env: Optional[Mapping[str, str]] = None) -> bool:
    command = CommandSpec(jlink, ("--version",), env=env)
    try:
        result = capture(command)
    except OSError as e:
        logv(f"Error getting JLink version: {e}")
        result = None

    if result is None or result.exit_code != 0:
        log_error("Unable to get JLink version")
        log_error(f"Result of {command} execution is: '{-1 if result is None else result.exit_code}'")
        return False

    return JLINK_VERSION_PATTERN.match((result.output or "").lstrip()) is not None


def get_parent(path: Optional[str], depth: int) -> Optional[str]:
    """
    Gets the ancestor of `path` that is `depth` levels up, e.g. the JDK home for ``<home>/bin/java`` and depth 2.
    Returns None if `path` or the ancestor does not exist.
    """
    if path is None or not exists(path):
        return None
    parent = abspath(path)
    for _ in range(depth):
        up = dirname(parent)
        if up == parent:
            return None
        parent = up
    return parent if exists(parent) else None
