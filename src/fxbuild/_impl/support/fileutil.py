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

__all__ = [
    "SafeFileCreation",
    "copyfile",
    "copytree",
    "ensure_dir_exists",
    "make_executable",
    "rmtree",
    "zip_directory",
]

import errno, os, shutil, stat, sys, tempfile, zipfile
from os.path import basename, dirname, exists, isdir, islink, join, relpath

from .system import is_windows


def ensure_dir_exists(path, mode=None):
    """
    Ensures all directories on 'path' exists, creating them first if necessary with os.makedirs().
    """
    if not isdir(path):
        try:
            if mode:
                os.makedirs(path, mode=mode)
            else:
                os.makedirs(path)
        except OSError as e:
            if e.errno == errno.EEXIST and isdir(path):
                # be happy if another thread already created the path
                pass
            else:
                raise e
    return path


def copytree(src, dst, symlinks=False):
    """Copies the directory tree `src` to `dst`. Symbolic links are followed unless `symlinks` is true."""
    shutil.copytree(src, dst, symlinks=symlinks, dirs_exist_ok=True)


def copyfile(src, dst):
    shutil.copy2(src, dst)


def rmtree(path, ignore_errors=False):
    if ignore_errors:

        def on_error(*args):
            pass

    elif is_windows():

        def on_error(func, _path, exc_info):
            os.chmod(_path, stat.S_IWRITE)
            if isdir(_path):
                os.rmdir(_path)
            else:
                os.unlink(_path)

    else:

        def on_error(*args):
            raise  # pylint: disable=misplaced-bare-raise

    if isdir(path) and not islink(path):
        shutil.rmtree(path, onerror=on_error)
    else:
        try:
            os.remove(path)
        except OSError:
            on_error(os.remove, path, sys.exc_info())


def make_executable(path):
    """Adds the owner, group and others execute permissions to `path`."""
    mode = os.stat(path).st_mode
    os.chmod(path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def zip_directory(directory, zip_path):
    """
    Creates the archive `zip_path` containing `directory`. Entries are stored relative to the
    parent of `directory` so the archive unpacks into a single folder.
    """
    ensure_dir_exists(dirname(zip_path) or ".")
    root = dirname(directory.rstrip(os.sep)) or "."
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for dirpath, dirnames, filenames in os.walk(directory):
            dirnames.sort()
            arc_dir = relpath(dirpath, root)
            if not filenames and not dirnames:
                zf.write(dirpath, arc_dir + "/")
            for name in sorted(filenames):
                path = join(dirpath, name)
                zf.write(path, join(arc_dir, name))
    return zip_path


# Capture the current umask since there's no way to query it without mutating it.
_current_umask = os.umask(0)
os.umask(_current_umask)


class SafeFileCreation(object):
    """
    Context manager for creating a file through a temporary sibling that replaces the target
    only if the body completes without raising.

    :Example:

    with SafeFileCreation(dst) as sfc:
        with open(sfc.tmpPath, 'w') as fp:
            fp.write(content)
    """

    def __init__(self, path):
        self.path = path

    def __enter__(self):
        path_dir = dirname(self.path) or "."
        ensure_dir_exists(path_dir)
        # Temporary file must be on the same file system as self.path for os.replace to be atomic.
        fd, tmp = tempfile.mkstemp(suffix=basename(self.path), dir=path_dir)
        self.tmpFd = fd
        self.tmpPath = tmp
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        os.close(self.tmpFd)
        if exists(self.tmpPath):
            if exc_value:
                os.remove(self.tmpPath)
            else:
                # The temporary file is created with restrictive permissions
                os.chmod(self.tmpPath, 0o666 & ~_current_umask)
                os.replace(self.tmpPath, self.path)
