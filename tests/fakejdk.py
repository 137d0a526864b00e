"""
A fake JDK made of shell scripts, for tests spawning java, javac and jlink.
"""

import stat
from os.path import exists


def _script(path, body):
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


class FakeJDK:
    """A JDK whose tools record their arguments, one per line, in ``<tool>.args`` next to the JDK."""

    def __init__(self, root, version="17.0.2", jlink_version="17.0.2", exit_code=0):
        self.home = root / "jdk"
        self.bin = self.home / "bin"
        self.bin.mkdir(parents=True)
        self.records = root
        _script(
            self.bin / "java",
            f"if [ \"$1\" = \"-version\" ]; then echo 'openjdk version \"{version}\" 2022-01-18' >&2; exit 0; fi\n"
            f"printf '%s\\n' \"$@\" > '{root / 'java.args'}'\n"
            "echo hello from java\n"
            f"exit {exit_code}\n",
        )
        _script(
            self.bin / "javac",
            f"printf '%s\\n' \"$@\" > '{root / 'javac.args'}'\n"
            "prev=''\n"
            "for a in \"$@\"; do\n"
            "  if [ \"$prev\" = \"-d\" ]; then mkdir -p \"$a/app\"; echo compiled > \"$a/app/Main.class\"; fi\n"
            "  prev=\"$a\"\n"
            "done\n"
            f"exit {exit_code}\n",
        )
        _script(
            self.bin / "jlink",
            f"if [ \"$1\" = \"--version\" ]; then echo '{jlink_version}'; exit 0; fi\n"
            f"printf '%s\\n' \"$@\" > '{root / 'jlink.args'}'\n"
            "prev=''\n"
            "out=''\n"
            "launcher=''\n"
            "for a in \"$@\"; do\n"
            "  if [ \"$prev\" = \"--output\" ]; then out=\"$a\"; fi\n"
            "  if [ \"$prev\" = \"--launcher\" ]; then launcher=\"${a%%=*}\"; fi\n"
            "  prev=\"$a\"\n"
            "done\n"
            "mkdir -p \"$out/bin\"\n"
            "if [ -n \"$launcher\" ]; then\n"
            "  printf '%s\\n' '#!/bin/sh' 'JLINK_VM_OPTIONS=' 'exec java $JLINK_VM_OPTIONS -m app/app.Main $@' > \"$out/bin/$launcher\"\n"
            "fi\n"
            f"exit {exit_code}\n",
        )

    def args(self, tool):
        path = self.records / (tool + ".args")
        if not exists(path):
            return None
        return path.read_text().splitlines()

