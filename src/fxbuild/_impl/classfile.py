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
Minimal reader for Java class files.

Only the parts needed to find module metadata and superclasses are decoded: the constant pool,
the ``this_class``/``super_class`` entries and the ``Module`` attribute of ``module-info.class``.
"""

from __future__ import annotations

__all__ = [
    "ClassFile",
    "ClassFileFormatError",
    "ClassPathLookup",
    "ModuleAttribute",
    "extends_class",
    "parse_class_file",
]

import struct, zipfile
from os.path import isdir, isfile, join
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from .support.logging import logv, logvv

CLASS_MAGIC = 0xCAFEBABE

# Constant pool tags
CONSTANT_Utf8 = 1
CONSTANT_Integer = 3
CONSTANT_Float = 4
CONSTANT_Long = 5
CONSTANT_Double = 6
CONSTANT_Class = 7
CONSTANT_String = 8
CONSTANT_Fieldref = 9
CONSTANT_Methodref = 10
CONSTANT_InterfaceMethodref = 11
CONSTANT_NameAndType = 12
CONSTANT_MethodHandle = 15
CONSTANT_MethodType = 16
CONSTANT_Dynamic = 17
CONSTANT_InvokeDynamic = 18
CONSTANT_Module = 19
CONSTANT_Package = 20

# Number of bytes following the tag, for the fixed size entries
_CONSTANT_SIZES = {
    CONSTANT_Integer: 4,
    CONSTANT_Float: 4,
    CONSTANT_Long: 8,
    CONSTANT_Double: 8,
    CONSTANT_Class: 2,
    CONSTANT_String: 2,
    CONSTANT_Fieldref: 4,
    CONSTANT_Methodref: 4,
    CONSTANT_InterfaceMethodref: 4,
    CONSTANT_NameAndType: 4,
    CONSTANT_MethodHandle: 3,
    CONSTANT_MethodType: 2,
    CONSTANT_Dynamic: 4,
    CONSTANT_InvokeDynamic: 4,
    CONSTANT_Module: 2,
    CONSTANT_Package: 2,
}

ACC_OPEN = 0x0020
ACC_TRANSITIVE = 0x0020
ACC_STATIC_PHASE = 0x0040


class ClassFileFormatError(ValueError):
    pass


class ModuleAttribute(NamedTuple):
    """Decoded ``Module`` attribute. Package and class names use dots."""

    name: str
    flags: int
    requires: Dict[str, frozenset]
    exports: Dict[str, Tuple[str, ...]]
    uses: Tuple[str, ...]
    provides: Dict[str, Tuple[str, ...]]

    @property
    def is_open(self):
        return bool(self.flags & ACC_OPEN)


class ClassFile(NamedTuple):
    major_version: int
    this_class: str
    super_class: Optional[str]
    module: Optional[ModuleAttribute]


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def _unpack(self, fmt, size):
        if self.pos + size > len(self.data):
            raise ClassFileFormatError(f"Truncated class file at offset {self.pos}")
        value, = struct.unpack_from(fmt, self.data, self.pos)
        self.pos += size
        return value

    def u1(self):
        return self._unpack(">B", 1)

    def u2(self):
        return self._unpack(">H", 2)

    def u4(self):
        return self._unpack(">I", 4)

    def skip(self, size):
        if self.pos + size > len(self.data):
            raise ClassFileFormatError(f"Truncated class file at offset {self.pos}")
        self.pos += size

    def raw(self, size):
        start = self.pos
        self.skip(size)
        return self.data[start:self.pos]


def _read_constant_pool(reader: _Reader) -> List[Optional[Tuple[int, object]]]:
    count = reader.u2()
    pool: List[Optional[Tuple[int, object]]] = [None] * count
    index = 1
    while index < count:
        tag = reader.u1()
        if tag == CONSTANT_Utf8:
            length = reader.u2()
            # Modified UTF-8 decodes as UTF-8 for everything but NUL and supplementary characters
            pool[index] = (tag, reader.raw(length).decode("utf-8", errors="replace"))
        elif tag in (CONSTANT_Class, CONSTANT_Module, CONSTANT_Package, CONSTANT_String, CONSTANT_MethodType):
            pool[index] = (tag, reader.u2())
        elif tag in _CONSTANT_SIZES:
            reader.skip(_CONSTANT_SIZES[tag])
            pool[index] = (tag, None)
        else:
            raise ClassFileFormatError(f"Unknown constant pool tag {tag} at index {index}")
        # 8-byte constants take up two entries
        index += 2 if tag in (CONSTANT_Long, CONSTANT_Double) else 1
    return pool


def _utf8(pool, index) -> str:
    entry = pool[index] if 0 < index < len(pool) else None
    if entry is None or entry[0] != CONSTANT_Utf8:
        raise ClassFileFormatError(f"Constant pool entry {index} is not a Utf8 entry")
    return entry[1]


def _named(pool, index, tag) -> str:
    entry = pool[index] if 0 < index < len(pool) else None
    if entry is None or entry[0] != tag:
        raise ClassFileFormatError(f"Constant pool entry {index} does not have tag {tag}")
    return _utf8(pool, entry[1])


def _class_name(pool, index) -> str:
    return _named(pool, index, CONSTANT_Class).replace("/", ".")


def _skip_members(reader: _Reader) -> None:
    for _ in range(reader.u2()):
        reader.skip(6)
        for _ in range(reader.u2()):
            reader.skip(2)
            reader.skip(reader.u4())


def _read_module_attribute(reader: _Reader, pool) -> ModuleAttribute:
    name = _named(pool, reader.u2(), CONSTANT_Module)
    flags = reader.u2()
    reader.u2()  # module_version_index

    requires = {}
    for _ in range(reader.u2()):
        required = _named(pool, reader.u2(), CONSTANT_Module)
        requires_flags = reader.u2()
        reader.u2()  # requires_version_index
        modifiers = set()
        if requires_flags & ACC_TRANSITIVE:
            modifiers.add("transitive")
        if requires_flags & ACC_STATIC_PHASE:
            modifiers.add("static")
        requires[required] = frozenset(modifiers)

    exports = {}
    for _ in range(reader.u2()):
        package = _named(pool, reader.u2(), CONSTANT_Package).replace("/", ".")
        reader.u2()  # exports_flags
        exports[package] = tuple(_named(pool, reader.u2(), CONSTANT_Module) for _ in range(reader.u2()))

    for _ in range(reader.u2()):  # opens
        reader.skip(4)
        reader.skip(2 * reader.u2())

    uses = tuple(_class_name(pool, reader.u2()) for _ in range(reader.u2()))

    provides = {}
    for _ in range(reader.u2()):
        service = _class_name(pool, reader.u2())
        provides[service] = tuple(_class_name(pool, reader.u2()) for _ in range(reader.u2()))

    return ModuleAttribute(name, flags, requires, exports, uses, provides)


def parse_class_file(data: bytes) -> ClassFile:
    """
    Parses the class file contents `data`.

    :raises ClassFileFormatError: if `data` is not a well formed class file
    """
    reader = _Reader(data)
    if reader.u4() != CLASS_MAGIC:
        raise ClassFileFormatError("Bad class file magic")
    reader.u2()  # minor_version
    major_version = reader.u2()
    pool = _read_constant_pool(reader)
    reader.u2()  # access_flags
    this_index = reader.u2()
    super_index = reader.u2()
    reader.skip(2 * reader.u2())  # interfaces
    _skip_members(reader)  # fields
    _skip_members(reader)  # methods

    module = None
    for _ in range(reader.u2()):
        attribute_name = _utf8(pool, reader.u2())
        length = reader.u4()
        if attribute_name == "Module":
            end = reader.pos + length
            module = _read_module_attribute(reader, pool)
            reader.pos = end
        else:
            reader.skip(length)

    # module-info has no meaningful this_class/super_class
    this_class = _class_name(pool, this_index) if this_index else ""
    super_class = _class_name(pool, super_index) if super_index else None
    return ClassFile(major_version, this_class, super_class, module)


class ClassPathLookup:
    """
    Finds class files by class name in an ordered list of directories and jar files.
    """

    def __init__(self, entries: Iterable[str]):
        self.entries = [e for e in entries if e]
        self._zips: Dict[str, Optional[zipfile.ZipFile]] = {}

    def _zip(self, path) -> Optional[zipfile.ZipFile]:
        if path not in self._zips:
            try:
                self._zips[path] = zipfile.ZipFile(path)
            except (OSError, zipfile.BadZipFile) as e:
                logvv(f"Ignoring unreadable class path entry {path}: {e}")
                self._zips[path] = None
        return self._zips[path]

    def find(self, class_name: str) -> Optional[bytes]:
        relative = class_name.replace(".", "/") + ".class"
        for entry in self.entries:
            if isdir(entry):
                candidate = join(entry, *relative.split("/"))
                if isfile(candidate):
                    with open(candidate, "rb") as fp:
                        return fp.read()
            elif isfile(entry):
                zf = self._zip(entry)
                if zf is not None:
                    try:
                        return zf.read(relative)
                    except KeyError:
                        continue
        return None

    def close(self):
        for zf in self._zips.values():
            if zf is not None:
                zf.close()
        self._zips = {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


def extends_class(class_name: str, ancestor: str, class_path: Iterable[str]) -> bool:
    """
    Determines if `class_name` is a subclass of `ancestor` by walking the superclass chain through
    the class files found on `class_path`. The walk stops at the first class that cannot be found.

    A class name of the form ``module/pkg.Main`` is accepted, the module part is ignored.
    """
    current = class_name.split("/", 1)[-1]
    seen = set()
    with ClassPathLookup(class_path) as lookup:
        while current and current not in seen:
            seen.add(current)
            data = lookup.find(current)
            if data is None:
                logvv(f"Class {current} not found while looking for superclass {ancestor}")
                return False
            try:
                super_class = parse_class_file(data).super_class
            except ClassFileFormatError as e:
                logv(f"Cannot read class {current}: {e}")
                return False
            if super_class == ancestor:
                return True
            current = super_class
    return False
