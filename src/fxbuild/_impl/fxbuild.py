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
The fxbuild command line: ``fxbuild [global options] <command> [command options]``.
"""

from __future__ import annotations

__all__ = ["ArgParser", "command", "main", "get_opts", "parse_defines"]

import os, signal, sys
from argparse import REMAINDER, ArgumentParser, HelpFormatter, Namespace
from typing import Dict, List, Optional, Sequence

from .config import load_config
from .dependencies import default_resolver
from .exceptions import ConfigurationError, GoalExecutionException
from .fx_commands import FxCommand, FxCommands
from .goals import CompileGoal, JLinkGoal, PackageGoal, RunGoal
from .support.logging import abort, logv
from .support.options import _opts, _opts_parsed_deferrables

_fx_commands = FxCommands("fxbuild")


def command(command_name, usage_msg="", doc_function=None, auto_add=True):
    """
    Decorator for making a function an fxbuild command.

    The annotated function should have a single parameter typed List[String].

    :param command_name: the command name. Will be used in the shell command.
    :param usage_msg: message to display usage.
    :param doc_function: function to render the documentation for this feature.
    :param auto_add: automatically add it to the commands.
    :return: the decorator factory for the function.
    """

    def fx_command_decorator_factory(command_func):
        fx_command = FxCommand(_fx_commands, command_func, command_name, usage_msg, doc_function)
        if auto_add:
            _fx_commands.add_commands([fx_command])
        return fx_command

    return fx_command_decorator_factory


def get_opts() -> Namespace:
    """Gets the parsed global options."""
    return _opts


def _format_commands():
    msg = "\navailable commands:\n"
    msg += _fx_commands.list_commands(sorted(_fx_commands.commands().keys()))
    return msg + "\n"


def _formatter(prog):
    return HelpFormatter(prog, max_help_position=32, width=120)


class ArgParser(ArgumentParser):
    # Override parent to append the list of available commands
    def format_help(self):
        return (
            ArgumentParser.format_help(self)
            + """
environment variables:
  JAVA_HOME             JDK used to find java, javac and jlink when no other location is configured.
  FXBUILD_<NAME>        Default value of the goal parameter <name>, e.g. FXBUILD_MAIN_CLASS.
  FXBUILD_MVN           Maven executable used to resolve the dependencies of a pom.xml. Defaults to `mvn`.
  FXBUILD_MAVEN_REPOSITORY
                        Local Maven repository. Defaults to `~/.m2/repository`.
"""
            + _format_commands()
        )

    def __init__(self, parents=None):
        self.parsed = False
        if not parents:
            parents = []
        ArgumentParser.__init__(self, prog="fxbuild", parents=parents, add_help=len(parents) != 0, formatter_class=_formatter)

        if len(parents) != 0:
            # Arguments are inherited from the parents
            return

        self.add_argument("-v", action="store_true", dest="verbose", help="enable verbose output")
        self.add_argument("-V", action="store_true", dest="very_verbose", help="enable very verbose output")
        self.add_argument("--no-warning", action="store_false", dest="warn", help="disable warning messages")
        self.add_argument("--quiet", action="store_true", help="disable log messages")
        self.add_argument("-p", "--project-dir", help="set the project directory", metavar="<path>", default=".")
        self.add_argument("--java-home", help="JDK providing java, javac and jlink", metavar="<path>")
        self.add_argument("--toolchain-home", help="JDK toolchain taking precedence over --java-home", metavar="<path>")
        self.add_argument(
            "--classpath",
            action="append",
            help=f'dependencies separated by "{os.pathsep}" instead of resolving them with Maven',
            metavar="<path>",
            default=[],
        )
        self.add_argument("--classpath-file", help="file listing the dependencies", metavar="<path>")
        self.add_argument("-D", action="append", dest="defines", help="set a property, e.g. -Djavafx.mainClass=app.Main", metavar="<name>=<value>", default=[])

    def _parse_cmd_line(self, opts: Namespace, args: Sequence[str]) -> List[str]:
        parser = ArgParser(parents=[self])
        parser.add_argument("commandAndArgs", nargs=REMAINDER, metavar="command args...")
        parser.parse_args(args, namespace=opts)
        self.parsed = True

        for deferrable in _opts_parsed_deferrables:
            deferrable()
        del _opts_parsed_deferrables[:]

        return opts.__dict__.pop("commandAndArgs")


_argParser = ArgParser()


def parse_defines(defines: Optional[Sequence[str]]) -> Dict[str, str]:
    """Turns ``name=value`` strings into a dict. A name without value is set to ``true``."""
    result = {}
    for define in defines or []:
        name, sep, value = define.partition("=")
        result[name] = value if sep else "true"
    return result


def _resolve_command(name: str) -> FxCommand:
    hits = _fx_commands.find(name)
    if len(hits) == 1:
        return _fx_commands.commands()[hits[0]]
    if len(hits) == 0:
        abort(f"fxbuild: unknown command '{name}'\n{_format_commands()}use \"fxbuild help\" for more options")
    abort(f"fxbuild: command '{name}' is ambiguous\n    {' '.join(hits)}")


### ~~~~~~~~~~~~~ Goal options


def _flag(parser, name, dest, help_msg):
    parser.add_argument(name, action="store_const", const=True, dest=dest, help=help_msg)


def _goal_parser(name: str, description: str) -> ArgumentParser:
    parser = ArgumentParser(prog="fxbuild " + name, description=description, formatter_class=_formatter)
    _flag(parser, "--skip", "skip", "do nothing")
    parser.add_argument("--main-class", help="main class, optionally prefixed with its module (<module>/<class>)", metavar="<class>")
    parser.add_argument("--working-directory", help="working directory of the launched process", metavar="<path>")
    parser.add_argument("--output-file", help="file receiving the output of the launched process", metavar="<path>")
    parser.add_argument("--runtime-path-mode", help="AUTO, CLASSPATH or MODULEPATH", metavar="<mode>")
    _flag(parser, "--include-path-exceptions", "include_path_exceptions_in_classpath", "put dependencies without readable module metadata on the class path")
    parser.add_argument("--timeout", type=float, help="kill the launched process after this many seconds", metavar="<secs>")
    return parser


def _add_launch_options(parser: ArgumentParser) -> None:
    parser.add_argument("--executable", help="java launcher", metavar="<path>")
    parser.add_argument("--option", action="append", dest="options", help="VM option, may be repeated", metavar="<option>")
    parser.add_argument("--args", dest="commandline_args", help="program arguments", metavar="<args>")


def _run_goal(goal_class, parser: ArgumentParser, args: List[str]) -> int:
    parsed = parser.parse_args(args)
    overrides = {k: v for k, v in vars(parsed).items() if v is not None}
    overrides["java_home"] = _opts.java_home
    overrides["toolchain_home"] = _opts.toolchain_home
    try:
        config = load_config(_opts.project_dir, overrides, parse_defines(_opts.defines))
        resolver = default_resolver(config, _opts.classpath, _opts.classpath_file)
        return goal_class(config, resolver).execute()
    except ConfigurationError as e:
        abort(e.message)
    except GoalExecutionException as e:
        message = e.message
        if e.cause is not None and str(e.cause) not in message:
            message += f"\nCaused by: {e.cause}"
        abort(message)


### ~~~~~~~~~~~~~ Commands


@command("compile", "[options]")
def compile_(args):
    """compile the project sources with javac"""
    parser = _goal_parser("compile", compile_.__doc__)
    parser.add_argument("--javac", dest="javac_executable", help="javac executable", metavar="<path>")
    parser.add_argument("--release", help="value of javac --release", metavar="<version>")
    parser.add_argument("--source", help="value of javac -source", metavar="<version>")
    parser.add_argument("--target", help="value of javac -target", metavar="<version>")
    parser.add_argument("--compiler-arg", action="append", dest="compiler_args", help="extra javac argument, may be repeated", metavar="<arg>")
    parser.add_argument("--exclude", action="append", dest="excludes", help="glob pattern of sources to skip, may be repeated", metavar="<pattern>")
    return _run_goal(CompileGoal, parser, args)


@command("run", "[options] [--args <args>]")
def run(args):
    """run the JavaFX application"""
    parser = _goal_parser("run", run.__doc__)
    _add_launch_options(parser)
    _flag(parser, "--async", "async_", "do not wait for the application to exit")
    parser.add_argument(
        "--no-destroy-on-shutdown",
        action="store_const",
        const=False,
        dest="async_destroy_on_shutdown",
        help="let an --async application outlive fxbuild",
    )
    return _run_goal(RunGoal, parser, args)


@command("jlink", "[options]")
def jlink(args):
    """create a custom runtime image of the application"""
    parser = _goal_parser("jlink", jlink.__doc__)
    parser.add_argument("--jlink", dest="jlink_executable", help="jlink executable", metavar="<path>")
    parser.add_argument("--option", action="append", dest="options", help="VM option baked into the launcher, may be repeated", metavar="<option>")
    parser.add_argument("--args", dest="commandline_args", help="program arguments baked into the launcher", metavar="<args>")
    parser.add_argument("--launcher", help="name of the launcher script to create", metavar="<name>")
    parser.add_argument("--image-name", dest="jlink_image_name", help="directory of the image below the build directory", metavar="<name>")
    parser.add_argument("--zip-name", dest="jlink_zip_name", help="also archive the image as <name>.zip", metavar="<name>")
    parser.add_argument("--jmods-path", help="directory of JavaFX jmods", metavar="<path>")
    parser.add_argument("--compress", type=int, help="compression level (0, 1 or 2)", metavar="<level>")
    _flag(parser, "--strip-debug", "strip_debug", "strip debug information")
    _flag(parser, "--strip-java-debug-attributes", "strip_java_debug_attributes", "strip Java debug attributes (jlink 13+)")
    _flag(parser, "--no-header-files", "no_header_files", "exclude header files")
    _flag(parser, "--no-man-pages", "no_man_pages", "exclude man pages")
    _flag(parser, "--bind-services", "bind_services", "link service provider modules")
    _flag(parser, "--ignore-signing-information", "ignore_signing_information", "link signed modular jars")
    _flag(parser, "--jlink-verbose", "jlink_verbose", "make jlink verbose")
    return _run_goal(JLinkGoal, parser, args)


@command("package", "[options]")
def package(args):
    """copy the application and its dependencies next to a launch script"""
    parser = _goal_parser("package", package.__doc__)
    _add_launch_options(parser)
    parser.add_argument("--package-directory", help="output directory, relative to the project directory", metavar="<path>")
    parser.add_argument("--jar-directory", help="directory of the copied dependencies inside the package", metavar="<name>")
    _flag(parser, "--absolute", "absolute", "refer to the dependencies by absolute path in the script")
    return _run_goal(PackageGoal, parser, args)


@command("help", "[command]")
def help_(args):
    """show detailed help for fxbuild or a given command

With no arguments, print a list of commands and short help for each command.

Given a command name, print help for that command."""
    if len(args) == 0:
        _argParser.print_help()
        return 0

    print(_resolve_command(args[0]).get_doc())
    return 0


def _log_command(fx_command: FxCommand, args) -> None:
    logv(f"Executing fxbuild {fx_command.command} {' '.join(args)}")


_fx_commands.add_command_callback(_log_command)


def main(args: Optional[Sequence[str]] = None) -> None:
    if args is None:
        args = sys.argv[1:]
    # make sure logv, logvv and warn work as early as possible
    _opts.__dict__["verbose"] = "-v" in args or "-V" in args
    _opts.__dict__["very_verbose"] = "-V" in args
    _opts.__dict__["warn"] = "--no-warning" not in args
    _opts.__dict__["quiet"] = "--quiet" in args

    commandAndArgs = _argParser._parse_cmd_line(_opts, args)
    if len(commandAndArgs) == 0:
        _argParser.print_help()
        return

    c = _resolve_command(commandAndArgs[0])

    def term_handler(signum, frame):
        abort(1, killsig=signal.SIGTERM)

    signal.signal(signal.SIGTERM, term_handler)

    try:
        retcode = c(commandAndArgs[1:])
        if retcode is not None and retcode != 0:
            abort(retcode)
    except KeyboardInterrupt:
        # no need to show the stack trace when the user presses CTRL-C
        abort(1, killsig=signal.SIGINT)
