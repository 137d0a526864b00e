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
The parameters of the goals.

Every parameter of `GoalConfig` is taken from the first of these sources defining it:

1. command line flags
2. ``-Djavafx.<name>=<value>`` properties
3. ``FXBUILD_<NAME>`` environment variables
4. the ``<configuration>`` of the javafx-maven-plugin in ``pom.xml`` and ``javafx.<name>`` pom properties
5. the defaults below
"""

from __future__ import annotations

__all__ = ["GoalConfig", "PLUGIN_ARTIFACT_ID", "load_config"]

import os, re
from dataclasses import dataclass, field, fields
from os.path import isabs, isfile, join, normpath
from typing import Dict, List, Mapping, Optional

from .classification import RuntimePathMode
from .exceptions import ConfigurationError
from .pom import MavenPOM, interpolate
from .support.arguments import tokenize
from .support.envvars import str_to_bool
from .support.logging import logv, logvv

PLUGIN_ARTIFACT_ID = "javafx-maven-plugin"
PROPERTY_PREFIX = "javafx."
ENV_PREFIX = "FXBUILD_"


@dataclass
class GoalConfig:
    main_class: Optional[str] = None
    skip: bool = False
    basedir: str = "."
    build_directory: Optional[str] = None
    output_directory: Optional[str] = None
    working_directory: Optional[str] = None
    output_file: Optional[str] = None
    async_: bool = False
    async_destroy_on_shutdown: bool = True
    options: List[str] = field(default_factory=list)
    commandline_args: Optional[str] = None
    include_path_exceptions_in_classpath: bool = False
    runtime_path_mode: RuntimePathMode = RuntimePathMode.AUTO
    timeout: Optional[float] = None

    executable: Optional[str] = "java"
    javac_executable: str = "javac"
    jlink_executable: str = "jlink"
    java_home: Optional[str] = None
    toolchain_home: Optional[str] = None

    # compile
    source: Optional[str] = None
    target: Optional[str] = None
    release: Optional[str] = "11"
    compiler_args: List[str] = field(default_factory=list)
    excludes: List[str] = field(default_factory=list)
    source_directory: Optional[str] = None
    resources_directory: Optional[str] = None

    # jlink
    strip_debug: bool = False
    strip_java_debug_attributes: bool = False
    compress: Optional[int] = None
    no_header_files: bool = False
    no_man_pages: bool = False
    bind_services: bool = False
    ignore_signing_information: bool = False
    jlink_verbose: bool = False
    launcher: Optional[str] = None
    jlink_image_name: str = "image"
    jlink_zip_name: Optional[str] = None
    jmods_path: Optional[str] = None

    # package
    package_directory: str = "package"
    jar_directory: str = "jars"
    absolute: bool = False

    # dependency resolution
    javafx_platform: Optional[str] = None

    def __post_init__(self):
        self.resolve_paths()

    def resolve_paths(self) -> GoalConfig:
        """Makes the directories absolute and fills in those derived from `basedir`."""
        self.basedir = os.path.abspath(self.basedir)
        if self.build_directory is None:
            self.build_directory = join(self.basedir, "target")
        if self.output_directory is None:
            self.output_directory = join(self.build_directory, "classes")
        if self.source_directory is None:
            self.source_directory = join(self.basedir, "src", "main", "java")
        if self.resources_directory is None:
            self.resources_directory = join(self.basedir, "src", "main", "resources")
        for name in ("build_directory", "output_directory", "working_directory", "output_file", "source_directory", "resources_directory", "jmods_path"):
            value = getattr(self, name)
            if value is not None and not isabs(value):
                setattr(self, name, normpath(join(self.basedir, value)))
        self.runtime_path_mode = RuntimePathMode.parse(self.runtime_path_mode)
        return self

    @property
    def image_dir(self) -> str:
        return join(self.build_directory, self.jlink_image_name)

    @property
    def package_output_dir(self) -> str:
        if isabs(self.package_directory):
            return self.package_directory
        return normpath(join(self.basedir, self.package_directory))


_ALIASES = {
    "async": "async_",
    "args": "commandline_args",
    "workingdir": "working_directory",
    "runtime_path_option": "runtime_path_mode",
    "platform": "javafx_platform",
}

_INT_FIELDS = {"compress"}
_FLOAT_FIELDS = {"timeout"}
_LIST_FIELDS = {"options", "compiler_args", "excludes"}
_BOOL_FIELDS = {f.name for f in fields(GoalConfig) if isinstance(f.default, bool)}
_FIELD_NAMES = {f.name for f in fields(GoalConfig)}


def field_name(name: str) -> Optional[str]:
    """
    Maps a parameter name as written in pom.xml (``mainClass``), in a property (``javafx.mainClass``)
    or in an environment variable (``FXBUILD_MAIN_CLASS``) to the corresponding `GoalConfig` field.
    """
    snake = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name).lower()
    snake = _ALIASES.get(snake, snake)
    return snake if snake in _FIELD_NAMES else None


def _coerce(name: str, value, origin: str):
    if value is None:
        return None
    try:
        if name in _LIST_FIELDS:
            if isinstance(value, (list, tuple)):
                return [v for v in value if v is not None]
            if name == "excludes":
                return [v.strip() for v in value.split(",") if v.strip()]
            if name == "compiler_args":
                return tokenize(value)
            return [value]
        if isinstance(value, (list, tuple)):
            raise ConfigurationError(f"Parameter '{name}' from {origin} does not accept a list")
        if name in _BOOL_FIELDS:
            return value if isinstance(value, bool) else str_to_bool(value)
        if name in _INT_FIELDS:
            return int(value)
        if name in _FLOAT_FIELDS:
            return float(value)
        if name == "runtime_path_mode":
            return RuntimePathMode.parse(value)
    except ValueError as e:
        raise ConfigurationError(f"Invalid value '{value}' for parameter '{name}' from {origin}: {e}") from e
    return value


def _apply(values: Dict[str, object], raw: Mapping[str, object], origin: str, names_are_fields: bool = False) -> None:
    for key, value in raw.items():
        name = key if names_are_fields else field_name(key)
        if name is None:
            logvv(f"Ignoring unknown parameter '{key}' from {origin}")
            continue
        values[name] = _coerce(name, value, origin)
        logvv(f"{name} = {values[name]!r} ({origin})")


def _pom_values(pom: MavenPOM, basedir: str) -> Dict[str, object]:
    props = pom.properties()
    props.setdefault("basedir", basedir)
    props.setdefault("project.basedir", basedir)
    build_directory = interpolate(pom.get_text("build/directory"), props) or join(basedir, "target")
    props.setdefault("project.build.directory", build_directory)
    output_directory = interpolate(pom.get_text("build/outputDirectory"), props) or join(build_directory, "classes")
    props.setdefault("project.build.outputDirectory", output_directory)

    raw: Dict[str, object] = {
        "buildDirectory": build_directory,
        "outputDirectory": output_directory,
    }
    source_directory = interpolate(pom.get_text("build/sourceDirectory"), props)
    if source_directory:
        raw["sourceDirectory"] = source_directory
    for name in ("source", "target", "release"):
        value = props.get("maven.compiler." + name)
        if value:
            raw[name] = interpolate(value, props)
    for key, value in props.items():
        if key.startswith(PROPERTY_PREFIX):
            raw[key[len(PROPERTY_PREFIX) :]] = interpolate(value, props)
    for key, value in pom.plugin_configuration(PLUGIN_ARTIFACT_ID).items():
        if isinstance(value, list):
            raw[key] = [interpolate(v, props) for v in value]
        else:
            raw[key] = interpolate(value, props)
    return raw


def load_config(
    project_dir: str = ".",
    overrides: Optional[Mapping[str, object]] = None,
    defines: Optional[Mapping[str, str]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> GoalConfig:
    """
    Assembles the configuration of the project in `project_dir`.

    :param overrides: values from command line flags, keyed by `GoalConfig` field name. None values are ignored.
    :param defines: ``-D`` properties; only those starting with ``javafx.`` are considered
    :param env: environment to read ``FXBUILD_*`` variables from, ``os.environ`` by default
    :raises ConfigurationError: if a value cannot be converted to the type of its parameter
    """
    if env is None:
        env = os.environ
    basedir = os.path.abspath(project_dir)
    values: Dict[str, object] = {}

    pom_file = join(basedir, "pom.xml")
    if isfile(pom_file):
        logv(f"Reading configuration from {pom_file}")
        try:
            pom = MavenPOM(pom_file)
        except Exception as e:  # pylint: disable=broad-except
            raise ConfigurationError(f"Cannot parse {pom_file}: {e}") from e
        _apply(values, _pom_values(pom, basedir), pom_file)

    _apply(
        values,
        {k[len(ENV_PREFIX) :]: v for k, v in env.items() if k.startswith(ENV_PREFIX)},
        "environment",
    )
    _apply(
        values,
        {k[len(PROPERTY_PREFIX) :]: v for k, v in (defines or {}).items() if k.startswith(PROPERTY_PREFIX)},
        "-D properties",
    )
    _apply(values, {k: v for k, v in (overrides or {}).items() if v is not None}, "command line", names_are_fields=True)

    values.pop("basedir", None)
    return GoalConfig(basedir=basedir, **values)
