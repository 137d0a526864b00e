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
The fxbuild package.

Exports the public API of the build goals.

DO NOT WRITE IMPLEMENTATION CODE HERE.
"""

from ._impl.classification import ClassificationResult, RuntimePathMode, classify
from ._impl.commands import CompatMode, JLinkOptions, build_jlink_command, build_launch_command, create_main_class_string
from ._impl.config import GoalConfig, load_config
from ._impl.dependencies import Artifact, DependencyResolver, MavenDependencyResolver, StaticDependencyResolver
from ._impl.exceptions import ConfigurationError, GoalExecutionException
from ._impl.executables import ExecutableResolver
from ._impl.fxbuild import main
from ._impl.goals import CompileGoal, JLinkGoal, PackageGoal, RunGoal
from ._impl.javamodules import JarModuleAnalyzer, JavaModuleDescriptor, ModuleAnalyzer
from ._impl.support.arguments import tokenize
from ._impl.support.processes import CommandSpec, run
