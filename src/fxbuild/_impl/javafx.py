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

__all__ = ["JAVAFX_GROUP_ID", "JAVAFX_PREFIX", "JavaFXModule", "get_platform_classifier", "is_javafx_module_name"]

from enum import Enum
from typing import List, Optional, Tuple

from .support.system import get_os

JAVAFX_PREFIX = "javafx."
JAVAFX_ARTIFACT_PREFIX = "javafx-"
JAVAFX_GROUP_ID = "org.openjfx"

_PLATFORM_CLASSIFIERS = {"darwin": "mac", "linux": "linux", "windows": "win"}


class JavaFXModule(Enum):
    # (name, names of the modules it depends on)
    BASE = ("base", ())
    GRAPHICS = ("graphics", ("BASE",))
    CONTROLS = ("controls", ("BASE", "GRAPHICS"))
    FXML = ("fxml", ("BASE", "GRAPHICS"))
    MEDIA = ("media", ("BASE", "GRAPHICS"))
    SWING = ("swing", ("BASE", "GRAPHICS"))
    WEB = ("web", ("BASE", "CONTROLS", "GRAPHICS", "MEDIA"))

    @property
    def module_name(self) -> str:
        return JAVAFX_PREFIX + self.value[0]

    @property
    def artifact_name(self) -> str:
        return JAVAFX_ARTIFACT_PREFIX + self.value[0]

    @property
    def dependent_modules(self) -> List[JavaFXModule]:
        return [JavaFXModule[name] for name in self.value[1]]

    @staticmethod
    def from_artifact_name(artifact_name: str) -> Optional[JavaFXModule]:
        for module in JavaFXModule:
            if module.artifact_name == artifact_name:
                return module
        return None

    def platform_artifacts(self, platform: str) -> List[Tuple[str, str]]:
        """
        Gets the ``(artifactId, classifier)`` pairs needed at runtime for this module on `platform`,
        this module first.
        """
        return [(m.artifact_name, platform) for m in [self] + self.dependent_modules]


def is_javafx_module_name(name: Optional[str]) -> bool:
    return name is not None and name.startswith(JAVAFX_PREFIX)


def get_platform_classifier(platform: Optional[str] = None) -> str:
    """
    Gets the classifier of the platform specific JavaFX artifacts, `platform` if given.

    :raises ValueError: on an operating system without JavaFX artifacts
    """
    if platform:
        return platform
    os_name = get_os()
    classifier = _PLATFORM_CLASSIFIERS.get(os_name)
    if classifier is None:
        raise ValueError(f"Error, os.name {os_name} not supported")
    return classifier
