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
The build goals: ``compile``, ``run``, ``jlink`` and ``package``.

Each goal is configured by a `GoalConfig`. `Goal.execute` returns 0 on success and raises
`GoalExecutionException` on failure, with the underlying error as cause. `ConfigurationError`
is raised as is.
"""

from __future__ import annotations

__all__ = ["Goal", "CompileGoal", "RunGoal", "JLinkGoal", "PackageGoal", "GOALS"]

import os, traceback
from os.path import dirname, exists, isdir, isfile, join
from typing import List, Mapping, Optional, Sequence

from .classfile import extends_class
from .classification import APPLICATION_CLASS, ClassificationResult, RuntimePathMode, classify
from .commands import (
    CompatMode,
    JLinkOptions,
    PackageBuilder,
    build_javac_command,
    build_jlink_command,
    build_launch_command,
    check_compress,
    collect_sources,
    patch_launcher_script,
    write_sources_argfile,
)
from .config import GoalConfig
from .dependencies import DependencyResolver, default_resolver
from .exceptions import ConfigurationError, GoalExecutionException
from .executables import (
    ExecutableResolver,
    Toolchain,
    ToolchainException,
    get_parent,
    is_jlink_version_13_or_higher,
    is_target_using_java8,
    sibling_tool,
)
from .javamodules import MODULE_INFO_CLASS, MODULE_INFO_JAVA, ModuleAnalyzer
from .support.fileutil import copytree, ensure_dir_exists, zip_directory
from .support.logging import log, log_error, logv, warn
from .support.processes import CommandSpec, run


class Goal:
    """
    Common behavior of the goals: skipping, working directory handling, path preparation and
    command execution.
    """

    name: str = None

    def __init__(
        self,
        config: GoalConfig,
        dependency_resolver: Optional[DependencyResolver] = None,
        analyzer: Optional[ModuleAnalyzer] = None,
        executable_resolver: Optional[ExecutableResolver] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        self.config = config
        self.dependency_resolver = dependency_resolver or default_resolver(config)
        self.analyzer = analyzer
        self.env = env
        if executable_resolver is None:
            executable_resolver = ExecutableResolver(config.java_home, self._toolchain())
        self.executable_resolver = executable_resolver

    def _toolchain(self) -> Optional[Toolchain]:
        if not self.config.toolchain_home:
            return None
        try:
            return Toolchain(self.config.toolchain_home)
        except ToolchainException as e:
            raise ConfigurationError(str(e)) from e

    @property
    def working_directory(self) -> str:
        return self.config.working_directory or self.config.basedir

    def execute(self) -> int:
        if self.config.skip:
            log("skipping execute as per configuration")
            return 0
        try:
            return self._execute()
        except (ConfigurationError, GoalExecutionException):
            raise
        except Exception as e:  # pylint: disable=broad-except
            raise GoalExecutionException(f"Error: {e}", e)

    def _execute(self) -> int:
        raise NotImplementedError()

    def command_prefix(self, tool: str) -> List[str]:
        return self.executable_resolver.command_prefix(tool, self.env, self.working_directory)

    def handle_working_directory(self) -> str:
        wd = self.working_directory
        if not exists(wd):
            logv(f"Making working directory '{wd}'.")
            try:
                ensure_dir_exists(wd)
            except OSError as e:
                raise GoalExecutionException(f"Could not make working directory: '{wd}'", e)
        return wd

    def _has_output(self) -> bool:
        output = self.config.output_directory
        return isdir(output) and len(os.listdir(output)) != 0

    def prepare_paths(self, jdk_home: Optional[str] = None) -> ClassificationResult:
        """
        Classifies the dependencies of the compiled project, compiling it first if its output
        directory is empty.
        """
        config = self.config
        if not config.output_directory:
            raise GoalExecutionException("Output directory doesn't exist, compile first")
        if not self._has_output():
            logv("Output directory was empty, compiling...")
            CompileGoal(config, self.dependency_resolver, self.analyzer, self.executable_resolver, self.env).compile()
            if not self._has_output():
                raise GoalExecutionException("Output directory is empty, compile first")

        descriptor = join(config.output_directory, MODULE_INFO_CLASS)
        if not isfile(descriptor):
            descriptor = None

        dependencies = self.dependency_resolver.resolve_classpath(config)
        mode = RuntimePathMode.parse(config.runtime_path_mode)
        extends_application = False
        if mode is RuntimePathMode.CLASSPATH and config.main_class:
            extends_application = extends_class(config.main_class, APPLICATION_CLASS, dependencies)
        return classify(
            dependencies,
            config.output_directory,
            descriptor_file=descriptor,
            mode=mode,
            include_path_exceptions=config.include_path_exceptions_in_classpath,
            main_class_extends_application=extends_application,
            analyzer=self.analyzer,
            jdk_home=jdk_home,
        )

    def _output_file(self) -> Optional[str]:
        output_file = self.config.output_file
        if output_file is None:
            return None
        parent = dirname(output_file)
        if parent and not exists(parent):
            try:
                ensure_dir_exists(parent)
            except OSError:
                warn(f"Could not create non existing parent directories for log file: {output_file}")
        return output_file

    def execute_command_line(self, prefix: Sequence[str], args: Sequence[str], async_: bool = False) -> int:
        """
        Runs ``prefix + args`` in the working directory.

        :raises GoalExecutionException: if the command cannot be started or exits with a non-zero status
        """
        spec = CommandSpec(prefix[0], tuple(prefix[1:]) + tuple(args), working_directory=self.working_directory, env=self.env)
        logv(f"Executing command line: {spec}")
        try:
            retcode = run(
                spec,
                async_=async_,
                destroy_on_shutdown=self.config.async_destroy_on_shutdown,
                output_file=self._output_file(),
                timeout=self.config.timeout,
            )
        except OSError as e:
            log_error("Command execution failed.")
            log_error(traceback.format_exc().rstrip())
            raise GoalExecutionException("Command execution failed.", e)
        if retcode != 0:
            message = f"Result of {spec} execution is: '{retcode}'."
            log_error(message)
            raise GoalExecutionException(message)
        return retcode


class CompileGoal(Goal):
    """Compiles the sources of the project with ``javac`` and copies its resources."""

    name = "compile"

    def _execute(self) -> int:
        if not self.config.javac_executable:
            raise ConfigurationError("The parameter 'executable' is missing or invalid")
        self.handle_working_directory()
        return self.compile()

    def _copy_resources(self) -> None:
        resources = self.config.resources_directory
        if resources and isdir(resources):
            logv(f"Copying resources from {resources}")
            copytree(resources, self.config.output_directory)

    def compile(self) -> int:
        config = self.config
        self._copy_resources()
        sources = collect_sources(config.source_directory, config.excludes)
        if not sources:
            log(f"No sources to compile in {config.source_directory}")
            return 0

        prefix = self.command_prefix(config.javac_executable)
        compat = CompatMode.MODERN
        if is_target_using_java8(sibling_tool(prefix[-1], "java"), self.env):
            compat = CompatMode.JAVA8

        descriptor = join(config.source_directory, MODULE_INFO_JAVA)
        if compat is CompatMode.JAVA8 or not isfile(descriptor):
            descriptor = None
        mode = config.runtime_path_mode
        if mode is RuntimePathMode.MODULEPATH and descriptor is None:
            mode = RuntimePathMode.AUTO

        ensure_dir_exists(config.output_directory)
        classification = classify(
            self.dependency_resolver.resolve_classpath(config),
            config.output_directory,
            descriptor_file=descriptor,
            mode=mode,
            include_path_exceptions=config.include_path_exceptions_in_classpath,
            analyzer=self.analyzer,
            jdk_home=get_parent(prefix[-1], 2),
        )
        argfile = write_sources_argfile(sources, join(config.build_directory, "fxbuild-sources.txt"))
        args = build_javac_command(
            classification,
            config.output_directory,
            argfile,
            release=config.release,
            source=config.source,
            target=config.target,
            compiler_args=config.compiler_args,
            compat=compat,
        )
        log(f"Compiling {len(sources)} source files to {config.output_directory}")
        return self.execute_command_line(prefix, args)


class RunGoal(Goal):
    """Runs the application with ``java``."""

    name = "run"

    def _execute(self) -> int:
        config = self.config
        if not config.executable:
            raise ConfigurationError("The parameter 'executable' is missing or invalid")
        self.handle_working_directory()
        prefix = self.command_prefix(config.executable)
        java = prefix[-1]
        compat = CompatMode.JAVA8 if is_target_using_java8(java, self.env) else CompatMode.MODERN
        classification = self.prepare_paths(get_parent(java, 2))
        args = build_launch_command(
            classification,
            config.main_class,
            compat,
            config.options,
            [config.commandline_args],
            config.runtime_path_mode,
        )
        return self.execute_command_line(prefix, args, async_=config.async_)


class JLinkGoal(Goal):
    """Creates a custom runtime image with ``jlink``, optionally with a launcher and as a zip file."""

    name = "jlink"

    def _execute(self) -> int:
        config = self.config
        check_compress(config.compress)
        prefix = self.command_prefix(config.jlink_executable)
        jlink = prefix[-1]
        if is_target_using_java8(sibling_tool(jlink, "java"), self.env):
            log_error("jlink is not supported on Java 8")
            return 0

        strip_java_debug_attributes = config.strip_java_debug_attributes
        if strip_java_debug_attributes and not is_jlink_version_13_or_higher(jlink, self.env):
            strip_java_debug_attributes = False
            warn("JLink parameter --strip-java-debug-attributes only supported for version 13 and higher")
            warn("The option 'stripJavaDebugAttributes' was skipped")

        self.handle_working_directory()
        classification = self.prepare_paths(get_parent(jlink, 2))
        options = JLinkOptions(
            image_dir=config.image_dir,
            launcher=config.launcher or None,
            main_class=config.main_class,
            jmods_path=config.jmods_path,
            compress=config.compress,
            strip_debug=config.strip_debug,
            strip_java_debug_attributes=strip_java_debug_attributes,
            bind_services=config.bind_services,
            ignore_signing_information=config.ignore_signing_information,
            no_header_files=config.no_header_files,
            no_man_pages=config.no_man_pages,
            verbose=config.jlink_verbose,
        )
        args = build_jlink_command(classification, options)
        self.execute_command_line(prefix, args)

        if options.launcher:
            script = join(config.image_dir, "bin", options.launcher)
            try:
                patch_launcher_script(script, config.options, config.commandline_args)
            except OSError as e:
                raise GoalExecutionException(f"Can't update the launcher script {script}", e)

        if config.jlink_zip_name:
            logv("Creating zip of runtime image")
            archive = zip_directory(config.image_dir, join(config.build_directory, config.jlink_zip_name + ".zip"))
            log(f"Created {archive}")
        return 0


class PackageGoal(Goal):
    """Copies the application and its dependencies to the package directory next to a launch script."""

    name = "package"

    def _execute(self) -> int:
        config = self.config
        if not config.executable:
            raise ConfigurationError("The parameter 'executable' is missing or invalid")
        self.handle_working_directory()
        java = self.command_prefix(config.executable)[-1]
        compat = CompatMode.JAVA8 if is_target_using_java8(java, self.env) else CompatMode.MODERN

        builder = PackageBuilder(config.package_output_dir, config.jar_directory, config.absolute)
        builder.prepare_output_dir()
        classification = self.prepare_paths(get_parent(java, 2))
        script = builder.create_package(
            classification,
            config.main_class,
            compat,
            config.options,
            [config.commandline_args],
            config.runtime_path_mode,
        )
        log(f"Created {script}")
        return 0


GOALS = {goal.name: goal for goal in (CompileGoal, RunGoal, JLinkGoal, PackageGoal)}
