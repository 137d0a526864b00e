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
Running external tools (``java``, ``javac``, ``jlink``) as child processes.

A child is either awaited (synchronous mode, the exit code is returned) or left running in the
background (asynchronous mode, 0 is returned right away and a watcher thread reports the outcome).
Output is copied line by line to caller provided sinks, or sent to a single output file.
"""

from __future__ import annotations

__all__ = [
    "ERROR_TIMEOUT",
    "CommandSpec",
    "ExecutionResult",
    "OutputCapture",
    "ShutdownHookProcessDestroyer",
    "StreamPump",
    "capture",
    "get_process_destroyer",
    "list_to_cmd_line",
    "run",
    "terminate_subprocesses",
    "waitOn",
]

import atexit, os, shlex, signal, subprocess, threading, time
from dataclasses import dataclass
from typing import IO, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from .fileutil import ensure_dir_exists
from .logging import log, log_error, logv, logvv
from .system import is_windows

Pid = int
Signal = int
Args = Sequence[str]
ReturnCode = int

RedirectStream = Union[None, Callable[[str], None], IO[str]]
"""
A sink for child output: nothing (inherit the parent's stream), a callable receiving one
decoded line at a time, or a text stream.
"""

# Synchronous children, terminated by abort()
_currentSubprocesses: List[Tuple[subprocess.Popen, Args]] = []

ERROR_TIMEOUT = 0x700000000  # not 32 bits


@dataclass(frozen=True)
class CommandSpec:
    """A fully resolved command line ready to be spawned."""

    executable: str
    args: Tuple[str, ...] = ()
    working_directory: Optional[str] = None
    env: Optional[Mapping[str, str]] = None

    @property
    def argv(self) -> List[str]:
        return [self.executable] + list(self.args)

    @property
    def command_line(self) -> str:
        return list_to_cmd_line(self.argv)

    def __str__(self):
        return self.command_line


@dataclass(frozen=True)
class ExecutionResult:
    exit_code: int
    output: Optional[str] = None


class OutputCapture:
    def __init__(self):
        self.data = ""

    def __call__(self, data):
        self.data += data

    def __repr__(self):
        return self.data


def list_to_cmd_line(args: Sequence[str]) -> str:
    return _list2cmdline(args) if is_windows() else " ".join(shlex.quote(arg) for arg in args)


def _list2cmdline(seq: Sequence[str]) -> str:
    """
    From subprocess.list2cmdline(seq), adding '=' to `needquote`.
    Quoting arguments that contain '=' simplifies argument parsing in cmd files, where '=' is parsed as ' '.
    """
    result = []
    for arg in seq:
        bs_buf = []

        if result:
            result.append(" ")

        needquote = (" " in arg) or ("\t" in arg) or ("=" in arg) or not arg
        if needquote:
            result.append('"')

        for c in arg:
            if c == "\\":
                bs_buf.append(c)
            elif c == '"':
                result.append("\\" * len(bs_buf) * 2)
                bs_buf = []
                result.append('\\"')
            else:
                if bs_buf:
                    result.extend(bs_buf)
                    bs_buf = []
                result.append(c)

        if bs_buf:
            result.extend(bs_buf)

        if needquote:
            result.extend(bs_buf)
            result.append('"')

    return "".join(result)


def _get_new_progress_group_args() -> Tuple[bool, int]:
    """
    Gets a tuple containing the `start_new_session` and `creationflags` parameters to subprocess.Popen
    required to create a subprocess that can be killed via os.killpg without killing the
    process group of the parent process.
    """
    start_new_session = False
    creationflags = 0
    if is_windows():
        creationflags = subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        start_new_session = True
    return start_new_session, creationflags


def _is_process_alive(p: subprocess.Popen) -> bool:
    return p.poll() is None


def _kill_process(pid: Pid, sig: Signal) -> bool:
    """
    Sends the signal `sig` to the process identified by `pid`. If `pid` is a process group
    leader, then signal is sent to the process group id.
    """
    try:
        logvv(f"[{os.getpid()} sending {sig} to {pid}]")
        pgid = os.getpgid(pid)
        if pgid == pid:
            os.killpg(pgid, sig)
        else:
            os.kill(pid, sig)
        return True
    except OSError as e:
        log("Error killing subprocess " + str(pid) + ": " + str(e))
        return False


def _terminate(p: subprocess.Popen, args: Args, killsig: Signal = signal.SIGTERM) -> None:
    if _is_process_alive(p):
        if is_windows():
            p.terminate()
        else:
            _kill_process(p.pid, killsig)
        time.sleep(0.1)
    if _is_process_alive(p):
        try:
            if is_windows():
                p.terminate()
            else:
                _kill_process(p.pid, signal.SIGKILL)
        except OSError as e:
            if _is_process_alive(p):
                log_error(f"error while killing subprocess {p.pid} \"{' '.join(args)}\": {e}")


def terminate_subprocesses(killsig: Signal = signal.SIGTERM) -> None:
    for p, args in list(_currentSubprocesses):
        _terminate(p, args, killsig)


def _addSubprocess(p: subprocess.Popen, args: Args) -> Tuple[subprocess.Popen, Args]:
    entry = (p, args)
    logvv(f"[{os.getpid()}: started subprocess {p.pid}: {args}]")
    _currentSubprocesses.append(entry)
    return entry


def _removeSubprocess(entry: Optional[Tuple[subprocess.Popen, Args]]) -> None:
    if entry and entry in _currentSubprocesses:
        _currentSubprocesses.remove(entry)


def _waitWithTimeout(process: subprocess.Popen, cmd_line: str, timeout: Optional[float]) -> ReturnCode:
    try:
        return process.wait(timeout)
    except subprocess.TimeoutExpired:
        log_error(f"Process timed out after {timeout} seconds: {cmd_line}")
        process.kill()
        process.wait()
        return ERROR_TIMEOUT


def waitOn(p: subprocess.Popen) -> ReturnCode:
    if is_windows():
        # on windows use a poll loop, otherwise signal does not get handled
        retcode = None
        while retcode is None:
            retcode = p.poll()
            time.sleep(0.05)
    else:
        retcode = p.wait()
    return retcode


class ShutdownHookProcessDestroyer:
    """
    Terminates registered children when the interpreter exits.

    The ``atexit`` hook is installed the first time a child is added.
    """

    def __init__(self):
        self._processes: List[Tuple[subprocess.Popen, Args]] = []
        self._lock = threading.Lock()
        self._hook_installed = False

    def add(self, p: subprocess.Popen, args: Args) -> None:
        with self._lock:
            if not self._hook_installed:
                atexit.register(self.destroy_all)
                self._hook_installed = True
            self._processes.append((p, args))

    def remove(self, p: subprocess.Popen) -> None:
        with self._lock:
            self._processes = [(q, a) for q, a in self._processes if q is not p]

    def destroy_all(self) -> None:
        with self._lock:
            entries = list(self._processes)
            self._processes = []
        for p, args in entries:
            if _is_process_alive(p):
                logv(f"Destroying process {p.pid}: {' '.join(args)}")
                _terminate(p, args)

    def __len__(self):
        return len(self._processes)


_process_destroyer: Optional[ShutdownHookProcessDestroyer] = None
_process_destroyer_lock = threading.Lock()


def get_process_destroyer() -> ShutdownHookProcessDestroyer:
    global _process_destroyer
    with _process_destroyer_lock:
        if _process_destroyer is None:
            _process_destroyer = ShutdownHookProcessDestroyer()
        return _process_destroyer


def _redirect(stream: IO[bytes], sink: RedirectStream) -> None:
    for line in iter(stream.readline, b""):
        text = line.decode(errors="replace")
        if callable(sink):
            sink(text)
        else:
            sink.write(text)
            sink.flush()
    stream.close()


class StreamPump:
    """
    Routes the output of one child process either to two sinks (``out`` and ``err``) or to a
    single buffered output file receiving both streams. The two forms are mutually exclusive.
    """

    def __init__(self, out: RedirectStream = None, err: RedirectStream = None, output_file: Optional[str] = None):
        if output_file is not None and (out is not None or err is not None):
            raise ValueError("An output file cannot be combined with output streams")
        self.out = out
        self.err = err
        self.output_file = output_file
        self._file = None
        self._threads: List[threading.Thread] = []

    def start(self) -> None:
        if self.output_file is not None:
            parent = os.path.dirname(os.path.abspath(self.output_file))
            ensure_dir_exists(parent)
            self._file = open(self.output_file, "wb")

    @property
    def stdout(self):
        if self._file is not None:
            return self._file
        return None if self.out is None else subprocess.PIPE

    @property
    def stderr(self):
        if self._file is not None:
            return subprocess.STDOUT
        return None if self.err is None else subprocess.PIPE

    def attach(self, p: subprocess.Popen) -> None:
        for stream, sink in ((p.stdout, self.out), (p.stderr, self.err)):
            if stream is not None and sink is not None:
                # Not a daemon, otherwise output can be dropped
                t = threading.Thread(target=_redirect, args=(stream, sink))
                t.start()
                self._threads.append(t)

    def stop(self) -> None:
        while any(t.is_alive() for t in self._threads):
            # Need to use timeout otherwise all signals (including CTRL-C) are blocked
            for t in self._threads:
                t.join(10)
        self._threads = []
        if self._file is not None:
            self._file.flush()
            self._file.close()
            self._file = None


def _popen(command_spec: CommandSpec, pump: StreamPump, new_session: bool) -> subprocess.Popen:
    if new_session or is_windows():
        start_new_session, creationflags = _get_new_progress_group_args()
    else:
        start_new_session, creationflags = (False, 0)
    argv = command_spec.argv
    env = dict(command_spec.env) if command_spec.env is not None else None
    return subprocess.Popen(
        command_spec.command_line if is_windows() else argv,
        cwd=command_spec.working_directory,
        env=env,
        stdout=pump.stdout,
        stderr=pump.stderr,
        start_new_session=start_new_session,
        creationflags=creationflags,
    )


def _log_command(command_spec: CommandSpec) -> None:
    s = ""
    if command_spec.working_directory is not None:
        s += "# Directory: " + os.path.abspath(command_spec.working_directory) + os.linesep
    s += command_spec.command_line
    logv(s)


def _watch(
    p: subprocess.Popen,
    command_spec: CommandSpec,
    pump: StreamPump,
    destroyer: Optional[ShutdownHookProcessDestroyer],
) -> None:
    cmd_line = command_spec.command_line
    try:
        retcode = p.wait()
        if retcode:
            log_error(f"Async process failed for: {cmd_line}{os.linesep}Exit value: {retcode}")
        else:
            logv(f"Async process complete, exit value = {retcode}")
    finally:
        if destroyer is not None:
            destroyer.remove(p)
        pump.stop()


def run(
    command_spec: CommandSpec,
    async_: bool = False,
    destroy_on_shutdown: bool = True,
    out: RedirectStream = None,
    err: RedirectStream = None,
    output_file: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ReturnCode:
    """
    Runs `command_spec` in a subprocess.

    In synchronous mode, waits for the process and returns its exit status. If `timeout` expires,
    the process is killed and `ERROR_TIMEOUT` is returned.

    In asynchronous mode, the process is started before 0 is returned. It is awaited on a daemon
    watcher thread which logs its outcome. With `destroy_on_shutdown` the process is terminated
    when the interpreter exits, otherwise it may outlive this process.

    In both modes an OSError raised while spawning the process propagates to the caller.

    :param out: callable or text stream receiving stdout, None to inherit it
    :param err: see `out`
    :param output_file: path of a file receiving both stdout and stderr, exclusive with `out` and `err`
    """
    pump = StreamPump(out=out, err=err, output_file=output_file)
    _log_command(command_spec)

    if async_:
        destroyer = get_process_destroyer() if destroy_on_shutdown else None
        pump.start()
        try:
            p = _popen(command_spec, pump, new_session=True)
        except OSError:
            pump.stop()
            raise
        if destroyer is not None:
            destroyer.add(p, command_spec.argv)
        pump.attach(p)
        watcher = threading.Thread(
            target=_watch,
            args=(p, command_spec, pump, destroyer),
            name=f"fxbuild-async-{os.path.basename(command_spec.executable)}",
            daemon=True,
        )
        watcher.start()
        return 0

    sub = None
    pump.start()
    try:
        p = _popen(command_spec, pump, new_session=timeout is not None)
        sub = _addSubprocess(p, command_spec.argv)
        pump.attach(p)
        if timeout is None or timeout == 0:
            while True:
                try:
                    retcode = waitOn(p)
                    break
                except KeyboardInterrupt:
                    if is_windows():
                        p.terminate()
                    else:
                        # Propagate SIGINT to subprocess. If the subprocess does not
                        # handle the signal, it will terminate and this loop exits.
                        _kill_process(p.pid, signal.SIGINT)
        else:
            retcode = _waitWithTimeout(p, command_spec.command_line, timeout)
    finally:
        _removeSubprocess(sub)
        pump.stop()

    logvv(f"[exit code: {retcode}]")
    return retcode


def capture(command_spec: CommandSpec, timeout: Optional[float] = None) -> ExecutionResult:
    """
    Runs `command_spec` synchronously and returns its exit status with the combined stdout and stderr.
    """
    output = OutputCapture()
    retcode = run(command_spec, out=output, err=output, timeout=timeout)
    return ExecutionResult(retcode, output.data)
