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

__all__ = [
    "Artifact",
    "version_key",
    "build_classpath",
    "DependencyResolver",
    "StaticDependencyResolver",
    "MavenDependencyResolver",
    "default_resolver",
]

import os, re
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from os.path import basename, exists, isabs, join, normpath, relpath, splitext
from typing import Iterable, List, Optional, Sequence, Tuple

from .exceptions import GoalExecutionException
from .executables import ExecutableResolver
from .javafx import JAVAFX_GROUP_ID, JavaFXModule, get_platform_classifier
from .pom import MavenPOM, interpolate
from .support.envvars import get_env
from .support.fileutil import ensure_dir_exists
from .support.logging import logv, logvv, warn
from .support.processes import CommandSpec, run

_VERSION_SEPARATOR = re.compile(r"[.\-]")


def version_key(version: str) -> Tuple:
    """
    Gets a sort key for a Maven version. Numeric components compare numerically and sort after
    qualifiers, so that ``1.0-SNAPSHOT`` < ``1.0`` < ``1.0.1`` < ``1.10``.
    """
    key = []
    for part in _VERSION_SEPARATOR.split(version or ""):
        if part.isdigit():
            key.append((1, int(part), ""))
        elif part:
            key.append((0, 0, part.lower()))
    # a missing component ranks between a qualifier and a number
    key.append((0, 1, ""))
    return tuple(key)


@dataclass(frozen=True)
class Artifact:
    group_id: str
    artifact_id: str
    version: str
    classifier: Optional[str] = None
    type: str = "jar"
    file: Optional[str] = None

    def sort_key(self) -> Tuple:
        """Orders by group, artifact and version. On ties, an artifact without classifier comes first."""
        return (self.group_id, self.artifact_id, version_key(self.version), 1 if self.classifier else 0, self.classifier or "")

    def __lt__(self, other: Artifact) -> bool:
        return self.sort_key() < other.sort_key()

    def __str__(self):
        parts = [self.group_id, self.artifact_id, self.type]
        if self.classifier:
            parts.append(self.classifier)
        parts.append(self.version)
        return ":".join(parts)

    @staticmethod
    def from_repository_path(path: str, repository: str) -> Optional[Artifact]:
        """
        Derives the coordinates of `path` from its location in the local `repository`
        (``<group>/<artifact>/<version>/<artifact>-<version>[-<classifier>].<type>``).
        Returns None if `path` is not laid out that way.
        """
        rel = relpath(os.path.abspath(path), os.path.abspath(repository))
        if rel.startswith(os.pardir):
            return None
        parts = rel.split(os.sep)
        if len(parts) < 4:
            return None
        artifact_id, version, filename = parts[-3], parts[-2], parts[-1]
        stem, ext = splitext(filename)
        prefix = f"{artifact_id}-{version}"
        if not stem.startswith(prefix):
            return None
        classifier = stem[len(prefix) :]
        if classifier and not classifier.startswith("-"):
            return None
        return Artifact(".".join(parts[:-3]), artifact_id, version, classifier[1:] or None, ext[1:] or "jar", path)


def build_classpath(output_dir: str, system_paths: Iterable[str], artifacts: Iterable[Artifact], others: Iterable[str] = ()) -> List[str]:
    """
    Assembles the dependency list: `output_dir` first, then `system_paths`, then `artifacts` sorted
    by coordinates, then `others` in their given order. Duplicates are dropped.
    """
    result: List[str] = []

    def _add(path):
        if path and path not in result:
            result.append(path)

    _add(output_dir)
    for path in system_paths:
        _add(path)
    for artifact in sorted(artifacts):
        _add(artifact.file)
    for path in others:
        _add(path)
    return result


def _split_path_list(value: str) -> List[str]:
    entries = []
    for line in value.splitlines():
        entries.extend(e.strip() for e in line.split(os.pathsep) if e.strip())
    return entries


class DependencyResolver(metaclass=ABCMeta):
    """Gets the files a project depends on at runtime."""

    @abstractmethod
    def resolve_classpath(self, project) -> List[str]:
        """
        Gets the dependencies of `project` (a `GoalConfig`), starting with its output directory.
        """


class StaticDependencyResolver(DependencyResolver):
    """
    Dependencies given explicitly, as path lists and/or the name of a file containing one.
    Relative entries are resolved against the project directory.
    """

    def __init__(self, entries: Sequence[str] = (), classpath_file: Optional[str] = None):
        self.entries = list(entries)
        self.classpath_file = classpath_file

    def resolve_classpath(self, project) -> List[str]:
        raw = []
        for entry in self.entries:
            raw.extend(_split_path_list(entry))
        if self.classpath_file:
            with open(self.classpath_file, encoding="utf-8") as fp:
                raw.extend(_split_path_list(fp.read()))
        paths = [p if isabs(p) else normpath(join(project.basedir, p)) for p in raw]
        for p in paths:
            if not exists(p):
                warn(f"Classpath entry {p} does not exist")
        return build_classpath(project.output_directory, [], [], paths)


class MavenDependencyResolver(DependencyResolver):
    """
    Lets Maven resolve the runtime dependencies of the ``pom.xml`` in the project directory, using
    ``mvn dependency:build-classpath``.
    """

    OUTPUT_FILE_NAME = "fxbuild-classpath.txt"

    def __init__(
        self,
        mvn: str = "mvn",
        repository: Optional[str] = None,
        platform: Optional[str] = None,
        executable_resolver: Optional[ExecutableResolver] = None,
    ):
        self.mvn = mvn
        self.repository = repository or join(os.path.expanduser("~"), ".m2", "repository")
        self.platform = platform
        self.executable_resolver = executable_resolver or ExecutableResolver()

    def _run_maven(self, project) -> str:
        ensure_dir_exists(project.build_directory)
        output_file = join(project.build_directory, self.OUTPUT_FILE_NAME)
        prefix = self.executable_resolver.command_prefix(self.mvn, working_dir=project.basedir)
        spec = CommandSpec(
            prefix[0],
            tuple(prefix[1:])
            + (
                "-q",
                "-B",
                "dependency:build-classpath",
                "-Dmdep.includeScope=runtime",
                "-Dmdep.outputFile=" + output_file,
                "-Dmaven.repo.local=" + self.repository,
            ),
            working_directory=project.basedir,
        )
        retcode = run(spec)
        if retcode != 0:
            raise GoalExecutionException(f"Result of {spec.command_line} execution is: '{retcode}'.")
        with open(output_file, encoding="utf-8") as fp:
            return fp.read()

    @staticmethod
    def _system_paths(project) -> List[str]:
        pom_file = join(project.basedir, "pom.xml")
        if not exists(pom_file):
            return []
        with MavenPOM(pom_file) as pom:
            props = pom.properties()
            props.setdefault("basedir", project.basedir)
            props.setdefault("project.basedir", project.basedir)
            paths = []
            for dependency in pom.dependencies():
                if dependency.get("scope") != "system":
                    continue
                system_path = interpolate(dependency.get("systemPath"), props)
                if not system_path:
                    warn(f"System dependency {dependency.get('groupId')}:{dependency.get('artifactId')} has no systemPath")
                    continue
                if not isabs(system_path):
                    system_path = normpath(join(project.basedir, system_path))
                paths.append(system_path)
            return paths

    def check_javafx_artifacts(self, artifacts: Sequence[Artifact]) -> None:
        """
        Warns about JavaFX modules whose platform specific artifact is not among `artifacts`.
        """
        try:
            platform = get_platform_classifier(self.platform)
        except ValueError as e:
            warn(str(e))
            return
        present = {(a.artifact_id, a.classifier) for a in artifacts if a.group_id == JAVAFX_GROUP_ID}
        for artifact in artifacts:
            if artifact.group_id != JAVAFX_GROUP_ID or artifact.classifier:
                continue
            module = JavaFXModule.from_artifact_name(artifact.artifact_id)
            if module is None:
                continue
            for artifact_id, classifier in module.platform_artifacts(platform):
                if (artifact_id, classifier) not in present:
                    warn(f"Missing JavaFX platform artifact {JAVAFX_GROUP_ID}:{artifact_id}:{classifier}:{artifact.version}")

    def resolve_classpath(self, project) -> List[str]:
        files = _split_path_list(self._run_maven(project))
        artifacts = []
        others = []
        for f in files:
            artifact = Artifact.from_repository_path(f, self.repository)
            if artifact is None:
                logvv(f"{basename(f)} is not in {self.repository}")
                others.append(f)
            else:
                artifacts.append(artifact)
        logv(f"Resolved {len(artifacts)} artifacts from {self.repository}")
        self.check_javafx_artifacts(artifacts)
        return build_classpath(project.output_directory, self._system_paths(project), artifacts, others)


def default_resolver(project, classpath: Sequence[str] = (), classpath_file: Optional[str] = None, env=None) -> DependencyResolver:
    """
    Chooses the resolver for `project`: the explicit class path if any is given, Maven if the
    project has a ``pom.xml``, otherwise no dependencies besides the output directory.
    """
    if classpath or classpath_file:
        return StaticDependencyResolver(classpath, classpath_file)
    if exists(join(project.basedir, "pom.xml")):
        return MavenDependencyResolver(
            mvn=get_env("FXBUILD_MVN", "mvn", env),
            repository=get_env("FXBUILD_MAVEN_REPOSITORY", None, env),
            platform=project.javafx_platform,
        )
    return StaticDependencyResolver()
