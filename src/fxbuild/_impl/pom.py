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

__all__ = ["MavenPOM", "interpolate"]

import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Mapping, Optional, Union

from defusedxml.ElementTree import parse as etreeParse

_PROPERTY_REFERENCE = re.compile(r"\$\{([^}]+)\}")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def interpolate(text: Optional[str], properties: Mapping[str, str]) -> Optional[str]:
    """
    Replaces ``${name}`` references in `text` by the value in `properties`. Unknown references are kept.
    """
    if text is None:
        return None

    def _lookup(m):
        value = properties.get(m.group(1))
        return m.group(0) if value is None else value

    # Values may refer to other properties
    for _ in range(10):
        replaced = _PROPERTY_REFERENCE.sub(_lookup, text)
        if replaced == text:
            break
        text = replaced
    return text


class MavenPOM:
    """
    A read-only convenience wrapper around ElementTree Elements for use with Maven's pom.xml files.
    Files with and without the POM namespace are supported.
    """

    DefaultNamespace = "http://maven.apache.org/POM/4.0.0"

    def __init__(self, path: str):
        self._path = path
        self._pom: ET.ElementTree = etreeParse(path)
        self._element: ET.Element = self._pom.getroot()
        self._namespace = self._element.tag[1:].split("}", 1)[0] if self._element.tag.startswith("{") else None

    @property
    def path(self) -> str:
        return self._path

    @property
    def tag(self) -> str:
        return _local_name(self._element.tag)

    @property
    def text(self) -> Optional[str]:
        return self._element.text.strip() if self._element.text is not None else None

    def _find(self, path: str):
        if self._namespace:
            return self._element.find(path, namespaces={"": self._namespace})
        return self._element.find(path)

    def get_text(self, path: str, default: str = "") -> str:
        """
        Return the text content of the child element named 'path', or the default if that element does not exist.
        """
        try:
            return self[path].text or default
        except KeyError:
            return default

    def get(self, path: str, default: None | MavenPOM = None) -> None | MavenPOM:
        try:
            return self[path]
        except KeyError:
            return default

    def getall(self, path: str) -> List[MavenPOM]:
        """
        Get all child elements matching 'path'.
        """
        if self._namespace:
            found = self._element.findall(path, namespaces={"": self._namespace})
        else:
            found = self._element.findall(path)
        return [self._wrap(e) for e in found]

    def children(self) -> List[MavenPOM]:
        return [self._wrap(e) for e in self._element]

    def _wrap(self, e: ET.Element) -> MavenPOM:
        result = self.__class__.__new__(self.__class__)
        result._path = self._path  # pylint: disable=protected-access
        result._pom = self._pom  # pylint: disable=protected-access
        result._element = e  # pylint: disable=protected-access
        result._namespace = self._namespace  # pylint: disable=protected-access
        return result

    def __getitem__(self, path: str) -> MavenPOM:
        if (e := self._find(path)) is not None:
            return self._wrap(e)
        raise KeyError(path)

    def properties(self) -> Dict[str, str]:
        """
        Gets the ``<properties>`` of the project together with the implicit ``project.*`` properties.
        """
        props = {}
        section = self.get("properties")
        if section is not None:
            for child in section.children():
                props[child.tag] = child.text or ""
        for name in ("groupId", "artifactId", "version"):
            value = self.get_text(name) or self.get_text("parent/" + name)
            if value:
                props["project." + name] = value
        return props

    def plugin_configuration(self, artifact_id: str) -> Dict[str, Union[str, List[str]]]:
        """
        Gets the ``<configuration>`` of the build plugin `artifact_id`. Elements with child
        elements become lists of the children's text.
        """
        for plugin in self.getall("build/plugins/plugin"):
            if plugin.get_text("artifactId") != artifact_id:
                continue
            configuration = plugin.get("configuration")
            if configuration is None:
                return {}
            result = {}
            for child in configuration.children():
                items = child.children()
                if items:
                    result[child.tag] = [item.text or "" for item in items]
                else:
                    result[child.tag] = child.text or ""
            return result
        return {}

    def dependencies(self) -> List[Dict[str, str]]:
        return [
            {child.tag: child.text or "" for child in dependency.children()}
            for dependency in self.getall("dependencies/dependency")
        ]

    def __enter__(self) -> MavenPOM:
        return self

    def __exit__(self, *_) -> None:
        pass
