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
Building the argument vectors of ``java``, ``javac`` and ``jlink`` and the packaging script.

Apart from `build_jlink_command` (which clears a stale image) and `PackageBuilder`, nothing in
here touches the file system.
"""

from __future__ import annotations

__all__ = [
    "CompatMode",
    "JLinkOptions",
    "PackageBuilder",
    "build_javac_command",
    "build_jlink_command",
    "check_compress",
    "build_launch_command",
    "collect_sources",
    "create_main_class_string",
    "patch_launcher_script",
    "write_sources_argfile",
]

import fnmatch, os, shlex
from dataclasses import dataclass, replace
from enum import Enum
from os.path import abspath, basename, exists, isdir, join, relpath
from typing import Iterable, List, Optional, Sequence

from .classification import ClassificationResult, RuntimePathMode
from .exceptions import ConfigurationError, GoalExecutionException
from .javamodules import JavaModuleDescriptor
from .support.arguments import split_all, write_to_file
from .support.fileutil import SafeFileCreation, copyfile, copytree, ensure_dir_exists, make_executable, rmtree
from .support.logging import logv, warn


class CompatMode(Enum):
    """Flavor of the target JDK. JDK 8 knows nothing about modules."""

    MODERN = "modern"
    JAVA8 = "java8"


def _join_path(entries: Iterable[str]) -> str:
    return os.pathsep.join(entries)


def _strip_module(main_class: str) -> str:
    return main_class.split("/", 1)[-1]


def create_main_class_string(
    main_class: str, descriptor: Optional[JavaModuleDescriptor], mode: RuntimePathMode = RuntimePathMode.AUTO
) -> str:
    """
    Gets the main class argument for the launcher: ``module/class`` when running a named module.

    >>> create_main_class_string("org.openjfx.Main", JavaModuleDescriptor("hellofx"))
    'hellofx/org.openjfx.Main'
    """
    if mode is RuntimePathMode.CLASSPATH:
        return _strip_module(main_class)
    if descriptor is not None:
        if "/" in main_class:
            module = main_class.split("/", 1)[0]
            if module != descriptor.name:
                warn(f"Main class {main_class} is qualified with module {module} but the module descriptor declares {descriptor.name}")
            return main_class
        return descriptor.name + "/" + main_class
    return main_class


def _add_modules_value(classification: ClassificationResult) -> str:
    if classification.main_descriptor is not None:
        return classification.main_descriptor.name
    return ",".join(classification.javafx_module_names())


def build_launch_command(
    classification: ClassificationResult,
    main_class: Optional[str],
    compat: CompatMode = CompatMode.MODERN,
    options: Optional[Sequence[Optional[str]]] = None,
    args: Optional[Sequence[Optional[str]]] = None,
    mode: RuntimePathMode = RuntimePathMode.AUTO,
) -> List[str]:
    """
    Builds the arguments of the ``java`` launcher: VM options, module path and class path,
    the main class, then the program arguments.

    :param options: raw VM option strings, each split with `tokenize`
    :param args: raw program argument strings, each split with `tokenize`
    """
    command = split_all(options)
    descriptor = classification.main_descriptor

    if compat is CompatMode.JAVA8:
        output_dir = classification.output_dir
        class_path = [output_dir] + [e for e in classification.entries if e != output_dir]
        command += ["-classpath", _join_path(class_path)]
        if main_class:
            command.append(_strip_module(main_class))
    else:
        if classification.module_path:
            command += ["--module-path", _join_path(classification.module_path)]
            modules = _add_modules_value(classification)
            if modules:
                command += ["--add-modules", modules]
        if classification.class_path:
            class_path = list(classification.class_path)
            if descriptor is not None and classification.output_dir not in class_path:
                class_path.insert(0, classification.output_dir)
            command += ["-classpath", _join_path(class_path)]
        if main_class:
            main = create_main_class_string(main_class, descriptor, mode)
            if descriptor is not None:
                command += ["--module", main]
            else:
                command.append(main)

    command += split_all(args)
    return command


@dataclass(frozen=True)
class JLinkOptions:
    image_dir: str
    launcher: Optional[str] = None
    main_class: Optional[str] = None
    jmods_path: Optional[str] = None
    compress: Optional[int] = None
    strip_debug: bool = False
    strip_java_debug_attributes: bool = False
    bind_services: bool = False
    ignore_signing_information: bool = False
    no_header_files: bool = False
    no_man_pages: bool = False
    verbose: bool = False


def check_compress(compress: Optional[int]) -> None:
    if compress is not None and not 0 <= compress <= 2:
        raise ConfigurationError(f"The given compress parameters {compress} is not in the valid value range from 0..2")


def build_jlink_command(classification: ClassificationResult, options: JLinkOptions, clean: bool = True) -> List[str]:
    """
    Builds the arguments of ``jlink`` creating the runtime image `options.image_dir`.
    All parameters are validated first. With `clean`, an existing image directory is then deleted.

    :raises ConfigurationError: on an invalid compression level, or when modules or a launcher
            are requested without a module descriptor
    """
    check_compress(options.compress)
    descriptor = classification.main_descriptor
    if classification.module_path and descriptor is None:
        raise ConfigurationError("jlink requires a module descriptor")

    launcher_target = None
    if options.launcher:
        if not options.main_class:
            raise ConfigurationError("The parameter 'mainClass' is required to create the launcher " + options.launcher)
        if "/" in options.main_class:
            launcher_target = options.main_class
        elif descriptor is not None:
            launcher_target = descriptor.name + "/" + options.main_class
        else:
            raise ConfigurationError("jlink requires a module descriptor")

    command = []
    if classification.module_path:
        module_path = list(classification.module_path)
        if options.jmods_path:
            logv("Including jmods from local path: " + options.jmods_path)
            module_path.insert(0, options.jmods_path)
        command += ["--module-path", _join_path(module_path), "--add-modules", descriptor.name]

    image = abspath(options.image_dir)
    logv("image output: " + image)
    if clean and exists(image):
        try:
            rmtree(image)
        except OSError as e:
            raise GoalExecutionException("Image can't be removed " + image, e)
    command += ["--output", image]

    if options.strip_debug:
        command.append("--strip-debug")
    if options.strip_java_debug_attributes:
        command.append("--strip-java-debug-attributes")
    if options.bind_services:
        command.append("--bind-services")
    if options.ignore_signing_information:
        command.append("--ignore-signing-information")
    if options.compress is not None:
        command += ["--compress", str(options.compress)]
    if options.no_header_files:
        command.append("--no-header-files")
    if options.no_man_pages:
        command.append("--no-man-pages")
    if options.verbose:
        command.append("--verbose")
    if launcher_target is not None:
        command += ["--launcher", options.launcher + "=" + launcher_target]
    return command


def patch_launcher_script(script: str, options: Optional[Sequence[Optional[str]]], args: Optional[str]) -> None:
    """
    Bakes VM options and program arguments into a launcher script generated by jlink.
    """
    with open(script, encoding="utf-8") as fp:
        lines = fp.read().splitlines()
    if options:
        options_string = " ".join(o for o in options if o is not None)
        lines = [f'JLINK_VM_OPTIONS="{options_string}"' if line == "JLINK_VM_OPTIONS=" else line for line in lines]
    if args:
        lines = [line.replace("$@", args + " $@") if line.endswith("$@") else line for line in lines]
    with SafeFileCreation(script) as sfc:
        with open(sfc.tmpPath, "w", encoding="utf-8") as fp:
            fp.write("\n".join(lines) + "\n")
    make_executable(script)


def _matches_any(relative: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        if fnmatch.fnmatch(relative, pattern):
            return True
        if pattern.startswith("**/") and fnmatch.fnmatch(relative, pattern[3:]):
            return True
    return False


def collect_sources(source_dir: str, excludes: Sequence[str] = ()) -> List[str]:
    """
    Finds the ``.java`` files below `source_dir`, skipping those whose path relative to
    `source_dir` (with ``/`` separators) matches one of the glob patterns in `excludes`.
    """
    sources = []
    if not isdir(source_dir):
        return sources
    for dirpath, dirnames, filenames in os.walk(source_dir):
        dirnames.sort()
        for name in sorted(filenames):
            if not name.endswith(".java"):
                continue
            path = join(dirpath, name)
            relative = relpath(path, source_dir).replace(os.sep, "/")
            if _matches_any(relative, excludes):
                logv(f"Excluding {relative}")
                continue
            sources.append(path)
    return sources


def write_sources_argfile(sources: Sequence[str], argfile: str) -> str:
    with SafeFileCreation(argfile) as sfc:
        with open(sfc.tmpPath, "w", encoding="utf-8") as fp:
            write_to_file(fp, sources)
    return argfile


def build_javac_command(
    classification: ClassificationResult,
    output_dir: str,
    sources_argfile: str,
    release: Optional[str] = None,
    source: Optional[str] = None,
    target: Optional[str] = None,
    compiler_args: Sequence[str] = (),
    compat: CompatMode = CompatMode.MODERN,
) -> List[str]:
    """
    Builds the arguments of ``javac`` compiling the sources listed in `sources_argfile` to `output_dir`.
    ``--release`` is preferred over ``-source``/``-target`` except on JDK 8, which lacks it.
    """
    command = ["-d", output_dir]
    if compat is CompatMode.JAVA8:
        entries = [e for e in classification.entries if e != output_dir]
        if entries:
            command += ["-classpath", _join_path(entries)]
    else:
        if classification.module_path:
            command += ["--module-path", _join_path(classification.module_path)]
            if classification.main_descriptor is None:
                modules = _add_modules_value(classification)
                if modules:
                    command += ["--add-modules", modules]
        class_path = [e for e in classification.class_path if e != output_dir]
        if class_path:
            command += ["-classpath", _join_path(class_path)]

    if release and compat is CompatMode.MODERN:
        command += ["--release", str(release)]
    else:
        if source:
            command += ["-source", str(source)]
        if target:
            command += ["-target", str(target)]
    command += [a for a in compiler_args if a]
    command.append("@" + sources_argfile)
    return command


def _script_token(token: str) -> str:
    # Tokens carrying quotes are meant to be read by the shell as written
    if '"' in token or "'" in token:
        return token
    return shlex.quote(token)


class PackageBuilder:
    """
    Lays out a runnable application: every build path entry is copied to `jar_directory` below
    `output_dir` and a ``script.sh`` launching it with ``java`` is generated.

    :param bool absolute: refer to the copied entries by absolute path in the script, instead of relative to `output_dir`
    """

    SCRIPT_NAME = "script.sh"

    def __init__(self, output_dir: str, jar_directory: str = "jars", absolute: bool = False):
        self.output_dir = abspath(output_dir)
        self.jar_directory = jar_directory
        self.absolute = absolute

    def prepare_output_dir(self) -> str:
        if exists(self.output_dir):
            if not isdir(self.output_dir):
                raise GoalExecutionException(f"Existing output {self.output_dir} is not a directory")
        else:
            try:
                ensure_dir_exists(self.output_dir)
            except OSError as e:
                raise GoalExecutionException(f"Can't create directory {self.output_dir}", e)
        return self.output_dir

    def copy_entry(self, entry: str) -> str:
        """Copies `entry` (a file or a directory tree) and returns how the script refers to the copy."""
        destination_dir = join(self.output_dir, self.jar_directory)
        ensure_dir_exists(destination_dir)
        name = basename(entry.rstrip(os.sep))
        destination = join(destination_dir, name)
        try:
            if isdir(entry):
                copytree(entry, destination)
            else:
                copyfile(entry, destination)
        except OSError as e:
            raise GoalExecutionException(f"Can't copy {entry} to {destination}", e)
        if self.absolute:
            return destination
        return self.jar_directory + "/" + name

    def create_package(
        self,
        classification: ClassificationResult,
        main_class: Optional[str],
        compat: CompatMode = CompatMode.MODERN,
        options: Optional[Sequence[Optional[str]]] = None,
        args: Optional[Sequence[Optional[str]]] = None,
        mode: RuntimePathMode = RuntimePathMode.AUTO,
    ) -> str:
        """
        Copies the build path and writes the launch script.

        :return: the path of the script
        """
        self.prepare_output_dir()
        relocated = {entry: self.copy_entry(entry) for entry in classification.entries}
        if classification.output_dir not in relocated:
            relocated[classification.output_dir] = self.copy_entry(classification.output_dir)
        packaged = replace(
            classification,
            output_dir=relocated[classification.output_dir],
            inputs=tuple(relocated[e] for e in classification.inputs if e in relocated),
            module_path=tuple(relocated[e] for e in classification.module_path),
            class_path=tuple(relocated[e] for e in classification.class_path),
        )
        command = build_launch_command(packaged, main_class, compat, options, args, mode)
        script = "#!/bin/bash\n" + " ".join(["java"] + [_script_token(t) for t in command]) + "\n"
        logv("Script " + script)

        script_path = join(self.output_dir, PackageBuilder.SCRIPT_NAME)
        try:
            with SafeFileCreation(script_path) as sfc:
                with open(sfc.tmpPath, "w", encoding="utf-8", newline="\n") as fp:
                    fp.write(script)
            make_executable(script_path)
        except OSError as e:
            raise GoalExecutionException(f"Can't write {script_path}", e)
        return script_path
