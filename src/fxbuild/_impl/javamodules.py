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
Java module metadata of the files on a build path.

The default analyzer mirrors the rules of ``java.lang.module.ModuleFinder``: a module name comes
from a compiled ``module-info.class``, from the ``Automatic-Module-Name`` manifest attribute,
or is derived from the jar file name.
"""

from __future__ import annotations

__all__ = [
    "AnalyzeResult",
    "JarModuleAnalyzer",
    "JavaModuleDescriptor",
    "ModuleAnalyzer",
    "ModuleNameSource",
    "get_automatic_module_name",
    "is_valid_module_name",
    "parse_module_info_source",
    "read_manifest",
    "read_system_modules",
]

import re, zipfile
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from io import StringIO
from os.path import basename, dirname, exists, isdir, isfile, join
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .classfile import ClassFileFormatError, parse_class_file
from .support.logging import logv, logvv

MODULE_INFO_CLASS = "module-info.class"
MODULE_INFO_JAVA = "module-info.java"
MANIFEST_PATH = "META-INF/MANIFEST.MF"


class ModuleNameSource(Enum):
    """Where the name of a module was found."""

    MODULEDESCRIPTOR = "moduledescriptor"
    MANIFEST = "manifest"
    FILENAME = "filename"
    NONE = "none"


class JavaModuleDescriptor:
    """
    Describes a Java module. This class closely mirrors ``java.lang.module.ModuleDescriptor``.

    :param str name: the name of the module
    :param dict exports: dict from a package defined by this module to the modules it's exported to. An
             empty tuple denotes an unqualified export.
    :param dict requires: dict from a module dependency to the modifiers of the dependency
    :param uses: the service types used by this module
    :param dict provides: dict from a service name to the providers of the service defined by this module
    :param str jarpath: path to the jar file or directory this module was read from
    :param bool automatic: the module has no declared descriptor and its name was derived
    """

    def __init__(self, name, exports=None, requires=None, uses=(), provides=None, jarpath=None, automatic=False, is_open=False):
        self.name = name
        self.exports = dict(exports or {})
        self.requires = dict(requires or {})
        self.uses = frozenset(uses)
        self.provides = dict(provides or {})
        self.jarpath = jarpath
        self.automatic = automatic
        self.is_open = is_open

    @staticmethod
    def automatic_module(name, jarpath=None):
        return JavaModuleDescriptor(name, jarpath=jarpath, automatic=True)

    @staticmethod
    def from_class_file(data: bytes, jarpath=None) -> JavaModuleDescriptor:
        """
        Creates a descriptor from the contents of a ``module-info.class`` file.

        :raises ClassFileFormatError: if `data` is malformed or has no ``Module`` attribute
        """
        module = parse_class_file(data).module
        if module is None:
            raise ClassFileFormatError("module-info.class has no Module attribute")
        return JavaModuleDescriptor(
            module.name,
            exports=module.exports,
            requires=module.requires,
            uses=module.uses,
            provides=module.provides,
            jarpath=jarpath,
            is_open=module.is_open,
        )

    def __str__(self):
        return "module:" + self.name

    def __repr__(self):
        return self.__str__()

    def __lt__(self, other):
        return self.name < other.name

    def __hash__(self):
        return hash(self.name)

    def __eq__(self, other):
        return isinstance(other, JavaModuleDescriptor) and self.name == other.name

    def as_module_info(self):
        """
        Gets this module descriptor expressed as the contents of a ``module-info.java`` file.
        """
        out = StringIO()
        print(("open " if self.is_open else "") + "module " + self.name + " {", file=out)
        for dependency, modifiers in sorted(self.requires.items()):
            modifiers_string = (" ".join(sorted(modifiers)) + " ") if len(modifiers) != 0 else ""
            print("    requires " + modifiers_string + dependency + ";", file=out)
        for source, targets in sorted(self.exports.items()):
            targets_string = (" to " + ", ".join(sorted(targets))) if len(targets) != 0 else ""
            print("    exports " + source + targets_string + ";", file=out)
        for use in sorted(self.uses):
            print("    uses " + use + ";", file=out)
        for service, providers in sorted(self.provides.items()):
            print("    provides " + service + " with " + ", ".join(providers) + ";", file=out)
        print("}", file=out)
        return out.getvalue()


_JAVA_KEYWORDS = frozenset(
    """abstract assert boolean break byte case catch char class const continue default do double else enum
    extends final finally float for goto if implements import instanceof int interface long native new
    package private protected public return short static strictfp super switch synchronized this throw
    throws transient try void volatile while true false null _""".split()
)


def is_valid_module_name(name: str) -> bool:
    """Checks that every dot separated part of `name` is a legal Java identifier."""
    if not name:
        return False
    for part in name.split("."):
        if not part.isidentifier() or part in _JAVA_KEYWORDS:
            return False
    return True


def get_automatic_module_name(modulejar: str) -> str:
    """
    Derives the name of an automatic module from an automatic module jar according to
    specification of ``java.lang.module.ModuleFinder.of(Path... entries)``.

    :param str modulejar: the path to a jar file treated as an automatic module
    :return: the name of the automatic module derived from `modulejar`
    """

    # Drop directory prefix and .jar (or .zip) suffix
    name = basename(modulejar)
    if name.lower().endswith((".jar", ".zip")):
        name = name[0:-4]

    # Find first occurrence of -${NUMBER}. or -${NUMBER}$
    m = re.search(r"-(\d+(\.|$))", name)
    if m:
        name = name[0 : m.start()]

    # Finally clean up the module name (see jdk.internal.module.ModulePath.cleanModuleName())
    name = re.sub(r"[^A-Za-z0-9]", ".", name)  # replace non-alphanumeric
    name = re.sub(r"(\.)(\1)+", ".", name)  # collapse repeating dots
    name = re.sub(r"^\.", "", name)  # drop leading dots
    return re.sub(r"\.$", "", name)  # drop trailing dots


def read_manifest(data: bytes) -> Dict[str, str]:
    """
    Parses the main section of a jar manifest. Continuation lines (starting with a space) are joined.
    """
    attributes = {}
    last = None
    for line in data.decode("utf-8", errors="replace").splitlines():
        if not line:
            # end of the main section
            break
        if line.startswith(" ") and last is not None:
            attributes[last] += line[1:]
            continue
        key, sep, value = line.partition(":")
        if sep:
            last = key.strip()
            attributes[last] = value.strip()
    return attributes


def _strip_comments(source: str) -> str:
    source = re.sub(r"/\*.*?\*/", " ", source, flags=re.DOTALL)
    return re.sub(r"//[^\n]*", " ", source)


def parse_module_info_source(source: str, path: Optional[str] = None) -> JavaModuleDescriptor:
    """
    Parses the contents of a ``module-info.java`` file.

    :raises ValueError: if `source` does not declare a module
    """
    text = _strip_comments(source)
    m = re.search(r"\b(open\s+)?module\s+([\w.]+)\s*\{(.*)\}", text, flags=re.DOTALL)
    if not m:
        raise ValueError(f"No module declaration found in {path or 'module-info.java'}")
    name = m.group(2)
    requires = {}
    exports = {}
    uses = []
    provides = {}
    for statement in m.group(3).split(";"):
        words = statement.replace(",", " , ").split()
        if not words:
            continue
        directive = words[0]
        if directive == "requires":
            modifiers = [w for w in words[1:-1] if w in ("transitive", "static")]
            requires[words[-1]] = frozenset(modifiers)
        elif directive == "exports":
            targets = [w for w in words[3:] if w != ","] if len(words) > 2 and words[2] == "to" else []
            exports[words[1]] = tuple(targets)
        elif directive == "uses":
            uses.append(words[1])
        elif directive == "provides" and "with" in words:
            with_index = words.index("with")
            provides[words[1]] = tuple(w for w in words[with_index + 1 :] if w != ",")
    return JavaModuleDescriptor(
        name,
        exports=exports,
        requires=requires,
        uses=uses,
        provides=provides,
        jarpath=dirname(path) if path else None,
        is_open=m.group(1) is not None,
    )


def read_system_modules(jdk_home: Optional[str]) -> frozenset:
    """
    Gets the names of the modules of the JDK at `jdk_home` from its ``release`` file.
    """
    if not jdk_home:
        return frozenset()
    release = join(jdk_home, "release")
    if not isfile(release):
        return frozenset()
    with open(release, encoding="utf-8", errors="replace") as fp:
        for line in fp:
            if line.startswith("MODULES="):
                return frozenset(line[len("MODULES=") :].strip().strip('"').split())
    return frozenset()


@dataclass(frozen=True)
class AnalyzeResult:
    """
    Module metadata of an ordered set of path entries.

    :param main_descriptor: descriptor of the module being built, if any
    :param path_elements: every readable entry mapped to its descriptor (None if it has no module name)
    :param module_name_sources: the entries having a module name mapped to the origin of that name
    :param class_path: entries not required as modules, in input order
    :param module_path: entries required as modules, in input order
    :param path_exceptions: entries whose metadata could not be read, mapped to the error
    """

    main_descriptor: Optional[JavaModuleDescriptor]
    path_elements: Mapping[str, Optional[JavaModuleDescriptor]] = field(default_factory=dict)
    module_name_sources: Mapping[str, ModuleNameSource] = field(default_factory=dict)
    class_path: Tuple[str, ...] = ()
    module_path: Tuple[str, ...] = ()
    path_exceptions: Mapping[str, Exception] = field(default_factory=dict)


class ModuleAnalyzer(metaclass=ABCMeta):
    @abstractmethod
    def analyze(self, files: Sequence[str], main_descriptor_file: Optional[str] = None, jdk_home: Optional[str] = None) -> AnalyzeResult:
        """
        Extracts the module metadata of `files`.

        :param main_descriptor_file: ``module-info.class`` or ``module-info.java`` of the module being built.
               When given, the module path is the transitive closure of its requires.
        :param jdk_home: JDK whose system modules satisfy requires not found in `files`
        """
        raise NotImplementedError()


class JarModuleAnalyzer(ModuleAnalyzer):
    """
    Reads module names from jar files and class directories.
    """

    def read_main_descriptor(self, descriptor_file: str) -> JavaModuleDescriptor:
        if descriptor_file.endswith(".java"):
            with open(descriptor_file, encoding="utf-8") as fp:
                return parse_module_info_source(fp.read(), descriptor_file)
        with open(descriptor_file, "rb") as fp:
            return JavaModuleDescriptor.from_class_file(fp.read(), dirname(descriptor_file))

    def describe(self, path: str) -> Tuple[Optional[JavaModuleDescriptor], ModuleNameSource]:
        """
        Gets the module descriptor of `path` and where its name comes from.

        :raises OSError: if `path` cannot be read
        :raises ValueError: if `path` is not a valid jar or its metadata is malformed
        """
        if isdir(path):
            return self._describe_directory(path)
        if not exists(path):
            raise FileNotFoundError(f"No such file or directory: '{path}'")
        with zipfile.ZipFile(path) as zf:
            return self._describe_jar(path, zf)

    def _describe_directory(self, path):
        descriptor_file = join(path, MODULE_INFO_CLASS)
        if isfile(descriptor_file):
            with open(descriptor_file, "rb") as fp:
                return JavaModuleDescriptor.from_class_file(fp.read(), path), ModuleNameSource.MODULEDESCRIPTOR
        manifest_file = join(path, *MANIFEST_PATH.split("/"))
        if isfile(manifest_file):
            with open(manifest_file, "rb") as fp:
                name = read_manifest(fp.read()).get("Automatic-Module-Name")
            if name:
                return JavaModuleDescriptor.automatic_module(name, path), ModuleNameSource.MANIFEST
        return None, ModuleNameSource.NONE

    def _describe_jar(self, path, zf: zipfile.ZipFile):
        names = set(zf.namelist())
        manifest = read_manifest(zf.read(MANIFEST_PATH)) if MANIFEST_PATH in names else {}

        descriptor_entry = None
        if MODULE_INFO_CLASS in names:
            descriptor_entry = MODULE_INFO_CLASS
        elif manifest.get("Multi-Release", "").lower() == "true":
            versioned = []
            for entry in names:
                m = re.match(r"META-INF/versions/(\d+)/module-info\.class$", entry)
                if m:
                    versioned.append((int(m.group(1)), entry))
            if versioned:
                descriptor_entry = max(versioned)[1]
        if descriptor_entry is not None:
            return JavaModuleDescriptor.from_class_file(zf.read(descriptor_entry), path), ModuleNameSource.MODULEDESCRIPTOR

        name = manifest.get("Automatic-Module-Name")
        if name:
            return JavaModuleDescriptor.automatic_module(name, path), ModuleNameSource.MANIFEST

        name = get_automatic_module_name(path)
        if not is_valid_module_name(name):
            raise ValueError(f"{basename(path)}: Invalid module name: '{name}' is not a Java identifier")
        return JavaModuleDescriptor.automatic_module(name, path), ModuleNameSource.FILENAME

    def analyze(self, files, main_descriptor_file=None, jdk_home=None):
        path_elements: Dict[str, Optional[JavaModuleDescriptor]] = {}
        sources: Dict[str, ModuleNameSource] = {}
        path_exceptions: Dict[str, Exception] = {}
        for f in files:
            if f in path_elements or f in path_exceptions:
                continue
            try:
                descriptor, source = self.describe(f)
            except (OSError, ValueError, zipfile.BadZipFile) as e:
                logvv(f"Cannot read module metadata of {f}: {e}")
                path_exceptions[f] = e
                continue
            path_elements[f] = descriptor
            sources[f] = source

        main_descriptor = None
        module_path: List[str] = []
        class_path: List[str] = []
        if main_descriptor_file is None:
            class_path = list(path_elements)
        else:
            main_descriptor = self.read_main_descriptor(main_descriptor_file)
            providers: Dict[str, str] = {}
            for f, descriptor in path_elements.items():
                if descriptor is not None and descriptor.name not in providers:
                    providers[descriptor.name] = f
            required = self._required_modules(main_descriptor, providers, path_elements, jdk_home)
            for f, descriptor in path_elements.items():
                if descriptor is not None and providers[descriptor.name] == f and (
                    descriptor.name == main_descriptor.name or descriptor.name in required
                ):
                    module_path.append(f)
                else:
                    class_path.append(f)

        return AnalyzeResult(
            main_descriptor=main_descriptor,
            path_elements=MappingProxyType(path_elements),
            module_name_sources=MappingProxyType({f: s for f, s in sources.items() if s is not ModuleNameSource.NONE}),
            class_path=tuple(class_path),
            module_path=tuple(module_path),
            path_exceptions=MappingProxyType(path_exceptions),
        )

    @staticmethod
    def _required_modules(main_descriptor, providers, path_elements, jdk_home) -> frozenset:
        """
        Computes the transitive closure of the requires of `main_descriptor` over the modules in `providers`.
        Static requires of dependencies are not followed.
        """
        system_modules = read_system_modules(jdk_home)
        required = set()

        def add_transitive(descriptor: JavaModuleDescriptor, is_main: bool):
            for name, modifiers in descriptor.requires.items():
                if not is_main and "static" in modifiers:
                    continue
                if name in required:
                    continue
                provider = providers.get(name)
                if provider is None:
                    if name in system_modules:
                        logvv(f"{name} required by {descriptor.name} is a system module")
                    elif system_modules or not name.startswith(("java.", "jdk.")):
                        logv(f"{name} required by {descriptor.name} is not on the module path")
                    continue
                required.add(name)
                add_transitive(path_elements[provider], False)

        add_transitive(main_descriptor, True)
        return frozenset(required)
