"""
Builders for the class files and jars used as test inputs.
"""

import struct
import zipfile

ACC_TRANSITIVE = 0x0020
ACC_STATIC_PHASE = 0x0040


class _ConstantPool:
    def __init__(self):
        self.entries = []
        self.index = {}

    def _add(self, key, data):
        if key not in self.index:
            self.entries.append(data)
            self.index[key] = len(self.entries)
        return self.index[key]

    def utf8(self, s):
        b = s.encode("utf-8")
        return self._add(("utf8", s), struct.pack(">BH", 1, len(b)) + b)

    def class_(self, name):
        n = self.utf8(name.replace(".", "/"))
        return self._add(("class", name), struct.pack(">BH", 7, n))

    def module(self, name):
        n = self.utf8(name)
        return self._add(("module", name), struct.pack(">BH", 19, n))

    def package(self, name):
        n = self.utf8(name.replace(".", "/"))
        return self._add(("package", name), struct.pack(">BH", 20, n))

    def long(self, value):
        # takes two slots
        self.entries.append(struct.pack(">Bq", 5, value))
        self.entries.append(None)
        return len(self.entries) - 1

    def tobytes(self):
        return struct.pack(">H", len(self.entries) + 1) + b"".join(e for e in self.entries if e is not None)


_HEADER = struct.pack(">IHH", 0xCAFEBABE, 0, 55)


def class_file(name, super_name="java.lang.Object", with_long=False):
    pool = _ConstantPool()
    if with_long:
        pool.long(42)
    this_index = pool.class_(name)
    super_index = pool.class_(super_name) if super_name else 0
    body = struct.pack(">HHH", 0x21, this_index, super_index)
    # interfaces, fields, methods, attributes
    body += struct.pack(">HHHH", 0, 0, 0, 0)
    return _HEADER + pool.tobytes() + body


def module_info(name, requires=None, exports=(), flags=0):
    """
    :param requires: dict from module name to requires flags
    """
    requires = requires or {}
    pool = _ConstantPool()
    this_index = pool.class_("module-info")
    attribute_name = pool.utf8("Module")
    attribute = struct.pack(">HHH", pool.module(name), flags, 0)
    attribute += struct.pack(">H", len(requires))
    for required, required_flags in requires.items():
        attribute += struct.pack(">HHH", pool.module(required), required_flags, 0)
    attribute += struct.pack(">H", len(exports))
    for package in exports:
        attribute += struct.pack(">HHH", pool.package(package), 0, 0)
    # opens, uses, provides
    attribute += struct.pack(">HHH", 0, 0, 0)

    body = struct.pack(">HHH", 0x8000, this_index, 0)
    body += struct.pack(">HHH", 0, 0, 0)
    body += struct.pack(">H", 1) + struct.pack(">HI", attribute_name, len(attribute)) + attribute
    return _HEADER + pool.tobytes() + body


def make_jar(path, entries=None, manifest=None):
    """
    Writes the jar `path`. `entries` maps entry names to bytes or str contents and `manifest`
    is a dict of main attributes.
    """
    with zipfile.ZipFile(str(path), "w") as zf:
        if manifest is not None:
            lines = ["Manifest-Version: 1.0"] + [f"{k}: {v}" for k, v in manifest.items()]
            zf.writestr("META-INF/MANIFEST.MF", "\r\n".join(lines) + "\r\n")
        for name, contents in (entries or {}).items():
            zf.writestr(name, contents)
    return str(path)
