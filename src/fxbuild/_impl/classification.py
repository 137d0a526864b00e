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
Splitting the resolved build path into the module path and the class path.
"""

from __future__ import annotations

__all__ = [
    "APPLICATION_CLASS",
    "ClassificationResult",
    "ResolvedDependency",
    "RuntimePathMode",
    "classify",
]

from dataclasses import dataclass, field
from enum import Enum
from os.path import basename
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import ConfigurationError
from .javafx import is_javafx_module_name
from .javamodules import JarModuleAnalyzer, JavaModuleDescriptor, ModuleAnalyzer, ModuleNameSource
from .support.logging import log, logv, logvv, warn

APPLICATION_CLASS = "javafx.application.Application"

AUTOMODULES_MESSAGE = (
    "Required filename-based automodules detected. "
    "Please don't publish this project to a public artifact repository!"
)

PATH_EXCEPTIONS_HINT = (
    "Some dependencies encountered issues while attempting to be resolved as modules "
    "and will not be included in the classpath; you can change this behavior via the "
    "'includePathExceptionsInClasspath' configuration parameter."
)


class RuntimePathMode(Enum):
    AUTO = "AUTO"
    CLASSPATH = "CLASSPATH"
    MODULEPATH = "MODULEPATH"

    @staticmethod
    def parse(value) -> RuntimePathMode:
        if value is None or value == "":
            return RuntimePathMode.AUTO
        if isinstance(value, RuntimePathMode):
            return value
        try:
            return RuntimePathMode[str(value).strip().upper()]
        except KeyError:
            choices = ", ".join(m.name for m in RuntimePathMode)
            raise ConfigurationError(f"Invalid runtime path option '{value}', expected one of {choices}") from None


@dataclass(frozen=True)
class ResolvedDependency:
    path: str
    module_name: Optional[str] = None
    module_name_source: ModuleNameSource = ModuleNameSource.NONE


@dataclass(frozen=True)
class ClassificationResult:
    """
    The outcome of `classify`. All sequences follow the order of the input dependencies and
    `module_path` and `class_path` are disjoint.
    """

    output_dir: str
    inputs: Tuple[str, ...] = ()
    module_path: Tuple[str, ...] = ()
    class_path: Tuple[str, ...] = ()
    path_elements: Mapping[str, Optional[JavaModuleDescriptor]] = field(default_factory=dict)
    main_descriptor: Optional[JavaModuleDescriptor] = None
    module_name_sources: Mapping[str, ModuleNameSource] = field(default_factory=dict)
    path_exceptions: Mapping[str, Exception] = field(default_factory=dict)

    @property
    def entries(self) -> Tuple[str, ...]:
        """The module path and class path entries together, in input order."""
        selected = set(self.module_path) | set(self.class_path)
        return tuple(f for f in self.inputs if f in selected)

    @property
    def resolved_dependencies(self) -> Tuple[ResolvedDependency, ...]:
        return tuple(
            ResolvedDependency(
                path,
                descriptor.name if descriptor is not None else None,
                self.module_name_sources.get(path, ModuleNameSource.NONE),
            )
            for path, descriptor in self.path_elements.items()
        )

    def javafx_module_names(self) -> List[str]:
        """
        Gets the JavaFX modules found on the build path, skipping the empty placeholder jars
        (``javafx.baseEmpty`` and the like).
        """
        names = []
        for descriptor in self.path_elements.values():
            if descriptor is not None and is_javafx_module_name(descriptor.name) and not descriptor.name.endswith("Empty"):
                if descriptor.name not in names:
                    names.append(descriptor.name)
        return names


def _root_cause(e: BaseException) -> BaseException:
    while e.__cause__ is not None:
        e = e.__cause__
    return e


def _dump(result: ClassificationResult) -> None:
    logv(f"Classpath: {len(result.class_path)}")
    for s in result.class_path:
        logv(" " + s)
    logv(f"Modulepath: {len(result.module_path)}")
    for s in result.module_path:
        logv(" " + s)
    logv(f"pathElements: {len(result.path_elements)}")
    for k, v in result.path_elements.items():
        logv(f" {k} :: {v.name if v is not None else v}")
    if result.main_descriptor is not None:
        logvv(result.main_descriptor.as_module_info())


def classify(
    dependencies: Sequence[str],
    output_dir: str,
    descriptor_file: Optional[str] = None,
    mode: RuntimePathMode = RuntimePathMode.AUTO,
    include_path_exceptions: bool = False,
    main_class_extends_application: bool = False,
    analyzer: Optional[ModuleAnalyzer] = None,
    jdk_home: Optional[str] = None,
) -> ClassificationResult:
    """
    Splits `dependencies` and `output_dir` into the module path and the class path.

    With a module descriptor, the module path holds the modules it requires (transitively).
    Without one, only JavaFX modules go on the module path. The `mode` can force everything onto
    one of the two paths.

    :param descriptor_file: ``module-info`` file of the project, None for a non-modular project
    :param include_path_exceptions: keep entries whose module metadata cannot be read on the class path
    :param main_class_extends_application: the main class is a ``javafx.application.Application``
    :raises ConfigurationError: for MODULEPATH without a descriptor, or CLASSPATH with an Application main class
    """
    mode = RuntimePathMode.parse(mode)
    if mode is RuntimePathMode.MODULEPATH and descriptor_file is None:
        raise ConfigurationError("Module descriptor is required when running with runtimePathOption MODULEPATH")
    if analyzer is None:
        analyzer = JarModuleAnalyzer()

    files: List[str] = []
    for f in [output_dir] + list(dependencies):
        if f not in files:
            files.append(f)
    position: Dict[str, int] = {f: i for i, f in enumerate(files)}
    logv(f"Total dependencyArtifacts: {len(files)}")
    if descriptor_file is not None:
        logv(f"module descriptor: {descriptor_file}")

    analyzed = analyzer.analyze(files, descriptor_file, jdk_home)

    for path, exception in analyzed.path_exceptions.items():
        warn(f"Can't extract module name from {basename(path)}: {_root_cause(exception)}")
    if analyzed.path_exceptions and not include_path_exceptions:
        warn(PATH_EXCEPTIONS_HINT)
    included_exceptions = list(analyzed.path_exceptions) if include_path_exceptions else []

    descriptor = analyzed.main_descriptor if descriptor_file is not None else None
    if descriptor is not None:
        module_path = list(analyzed.module_path)
        class_path = list(analyzed.class_path) + included_exceptions
    else:
        # Non-modular project: only JavaFX jars are required on the module path
        module_path = []
        class_path = list(included_exceptions)
        for path, element in analyzed.path_elements.items():
            if element is not None and is_javafx_module_name(element.name):
                module_path.append(path)
            else:
                class_path.append(path)

    # checked on the resolved module path, before the mode moves entries
    sources = [analyzed.module_name_sources.get(p) for p in module_path]
    if any(source is ModuleNameSource.FILENAME for source in sources):
        if descriptor is not None and not descriptor.exports:
            # application
            log(AUTOMODULES_MESSAGE)
        else:
            # library
            warn(AUTOMODULES_MESSAGE)

    if mode is RuntimePathMode.MODULEPATH:
        module_path = module_path + class_path
        class_path = []
    elif mode is RuntimePathMode.CLASSPATH:
        if main_class_extends_application:
            raise ConfigurationError(
                "Launcher class is required. Main-class cannot extend Application when running JavaFX application on CLASSPATH"
            )
        class_path = module_path + class_path
        module_path = []
        descriptor = None

    module_path.sort(key=position.__getitem__)
    class_path.sort(key=position.__getitem__)

    result = ClassificationResult(
        output_dir=output_dir,
        inputs=tuple(files),
        module_path=tuple(module_path),
        class_path=tuple(class_path),
        path_elements=analyzed.path_elements,
        main_descriptor=descriptor,
        module_name_sources=analyzed.module_name_sources,
        path_exceptions=analyzed.path_exceptions,
    )
    _dump(result)
    return result
