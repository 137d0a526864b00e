import os

import pytest

from jartools import ACC_TRANSITIVE, make_jar, module_info

from fxbuild._impl.classification import (
    AUTOMODULES_MESSAGE,
    PATH_EXCEPTIONS_HINT,
    RuntimePathMode,
    classify,
)
from fxbuild._impl.commands import build_launch_command
from fxbuild._impl.exceptions import ConfigurationError
from fxbuild._impl.javamodules import AnalyzeResult, JavaModuleDescriptor, ModuleAnalyzer, ModuleNameSource


class FakeAnalyzer(ModuleAnalyzer):
    def __init__(self, result):
        self.result = result
        self.calls = []

    def analyze(self, files, main_descriptor_file=None, jdk_home=None):
        self.calls.append((list(files), main_descriptor_file, jdk_home))
        return self.result


@pytest.fixture
def project(tmp_path):
    """A compiled non-modular project depending on javafx-base and commons-io."""
    out = tmp_path / "classes"
    (out / "app").mkdir(parents=True)
    (out / "app" / "Main.class").write_bytes(b"")
    repo = tmp_path / "repo"
    repo.mkdir()
    fx = make_jar(repo / "javafx-base-17-linux.jar", {"module-info.class": module_info("javafx.base", exports=["javafx.beans"])})
    cio = make_jar(repo / "commons-io-2.11.0.jar", {"org/apache/commons/io/IOUtils.class": b""})
    return str(out), fx, cio


def test_non_modular_project(project):
    out, fx, cio = project
    result = classify([fx, cio], out)
    assert result.module_path == (fx,)
    assert result.class_path == (out, cio)
    assert result.main_descriptor is None
    assert result.module_name_sources == {fx: ModuleNameSource.MODULEDESCRIPTOR, cio: ModuleNameSource.FILENAME}
    command = build_launch_command(result, "app.Main")
    assert command == [
        "--module-path",
        fx,
        "--add-modules",
        "javafx.base",
        "-classpath",
        os.pathsep.join([out, cio]),
        "app.Main",
    ]


def test_resolved_dependencies(project):
    out, fx, cio = project
    dependencies = {d.path: d for d in classify([fx, cio], out).resolved_dependencies}
    assert dependencies[fx].module_name == "javafx.base"
    assert dependencies[cio].module_name == "commons.io"
    assert dependencies[cio].module_name_source is ModuleNameSource.FILENAME
    assert dependencies[out].module_name is None


def _modular_project(tmp_path, requires, exports=()):
    out = tmp_path / "classes"
    out.mkdir()
    (out / "module-info.class").write_bytes(module_info("hellofx", requires=requires, exports=exports))
    repo = tmp_path / "repo"
    repo.mkdir()
    base = make_jar(repo / "javafx-base-17-linux.jar", {"module-info.class": module_info("javafx.base")})
    controls = make_jar(
        repo / "javafx-controls-17-linux.jar",
        {"module-info.class": module_info("javafx.controls", requires={"javafx.base": ACC_TRANSITIVE})},
    )
    cio = make_jar(repo / "commons-io-2.11.0.jar", {"org/apache/commons/io/IOUtils.class": b""})
    return str(out), [cio, base, controls]


def test_modular_project(tmp_path, capsys):
    out, dependencies = _modular_project(tmp_path, {"javafx.controls": 0})
    cio, base, controls = dependencies
    result = classify(dependencies, out, descriptor_file=os.path.join(out, "module-info.class"))
    assert result.main_descriptor.name == "hellofx"
    # transitive requires are followed, input order is kept
    assert result.module_path == (out, base, controls)
    assert result.class_path == (cio,)
    assert AUTOMODULES_MESSAGE not in capsys.readouterr().out

    assert build_launch_command(result, "org.openjfx.Main")[-2:] == ["--module", "hellofx/org.openjfx.Main"]


def test_automodules_in_application(tmp_path, capsys):
    out, dependencies = _modular_project(tmp_path, {"javafx.controls": 0, "commons.io": 0})
    result = classify(dependencies, out, descriptor_file=os.path.join(out, "module-info.class"))
    assert dependencies[0] in result.module_path
    captured = capsys.readouterr()
    assert AUTOMODULES_MESSAGE in captured.out
    assert AUTOMODULES_MESSAGE not in captured.err


def test_automodules_in_library(tmp_path, capsys):
    out, dependencies = _modular_project(tmp_path, {"commons.io": 0}, exports=["org.openjfx.lib"])
    classify(dependencies, out, descriptor_file=os.path.join(out, "module-info.class"))
    captured = capsys.readouterr()
    assert AUTOMODULES_MESSAGE in captured.err
    assert AUTOMODULES_MESSAGE not in captured.out


def test_modulepath_requires_descriptor(project):
    out, fx, cio = project
    with pytest.raises(ConfigurationError) as e:
        classify([fx, cio], out, mode=RuntimePathMode.MODULEPATH)
    assert "Module descriptor is required when running with runtimePathOption MODULEPATH" in str(e.value)


def test_modulepath_mode(tmp_path):
    out, dependencies = _modular_project(tmp_path, {"javafx.controls": 0})
    cio, base, controls = dependencies
    result = classify(dependencies, out, descriptor_file=os.path.join(out, "module-info.class"), mode="modulepath")
    assert result.module_path == (out, cio, base, controls)
    assert result.class_path == ()


def test_classpath_mode(tmp_path):
    out, dependencies = _modular_project(tmp_path, {"javafx.controls": 0})
    cio, base, controls = dependencies
    result = classify(dependencies, out, descriptor_file=os.path.join(out, "module-info.class"), mode=RuntimePathMode.CLASSPATH)
    assert result.module_path == ()
    assert result.class_path == (out, cio, base, controls)
    assert result.main_descriptor is None


def test_automodules_ignore_modulepath_mode(tmp_path, capsys):
    out, dependencies = _modular_project(tmp_path, {"javafx.controls": 0})
    result = classify(dependencies, out, descriptor_file=os.path.join(out, "module-info.class"), mode="modulepath")
    # commons-io is only moved over by the mode
    assert dependencies[0] in result.module_path
    captured = capsys.readouterr()
    assert AUTOMODULES_MESSAGE not in captured.out
    assert AUTOMODULES_MESSAGE not in captured.err


def test_automodules_in_classpath_mode(tmp_path, capsys):
    out, dependencies = _modular_project(tmp_path, {"javafx.controls": 0, "commons.io": 0})
    result = classify(dependencies, out, descriptor_file=os.path.join(out, "module-info.class"), mode=RuntimePathMode.CLASSPATH)
    assert result.module_path == ()
    assert AUTOMODULES_MESSAGE in capsys.readouterr().out


def test_classpath_mode_rejects_application(project):
    out, fx, cio = project
    with pytest.raises(ConfigurationError) as e:
        classify([fx, cio], out, mode=RuntimePathMode.CLASSPATH, main_class_extends_application=True)
    assert "Launcher class is required" in str(e.value)
    # other modes do not care
    classify([fx, cio], out, main_class_extends_application=True)


def test_invalid_mode(project):
    out, fx, cio = project
    with pytest.raises(ConfigurationError):
        classify([fx, cio], out, mode="SOMETIMES")


def test_path_exceptions(project, tmp_path, capsys):
    out, fx, cio = project
    broken = tmp_path / "repo" / "broken-1.0.jar"
    broken.write_bytes(b"not a zip file")
    broken = str(broken)

    result = classify([fx, broken, cio], out)
    assert broken not in result.module_path + result.class_path
    assert broken in result.path_exceptions
    err = capsys.readouterr().err
    assert "Can't extract module name from broken-1.0.jar" in err
    assert PATH_EXCEPTIONS_HINT in err

    result = classify([fx, broken, cio], out, include_path_exceptions=True)
    assert result.class_path == (out, broken, cio)
    err = capsys.readouterr().err
    assert "Can't extract module name from broken-1.0.jar" in err
    assert PATH_EXCEPTIONS_HINT not in err


def test_output_follows_input_order():
    fx = JavaModuleDescriptor("javafx.graphics")
    analyzer = FakeAnalyzer(
        AnalyzeResult(
            main_descriptor=None,
            path_elements={"c.jar": None, "b.jar": fx, "out": None, "a.jar": None},
            class_path=("c.jar", "b.jar", "out", "a.jar"),
        )
    )
    result = classify(["a.jar", "b.jar", "c.jar", "a.jar"], "out", analyzer=analyzer, jdk_home="/jdk")
    assert analyzer.calls == [(["out", "a.jar", "b.jar", "c.jar"], None, "/jdk")]
    assert result.inputs == ("out", "a.jar", "b.jar", "c.jar")
    assert result.module_path == ("b.jar",)
    assert result.class_path == ("out", "a.jar", "c.jar")
    assert result.entries == ("out", "a.jar", "b.jar", "c.jar")


def test_empty_javafx_jars_are_not_added():
    analyzer = FakeAnalyzer(
        AnalyzeResult(
            main_descriptor=None,
            path_elements={
                "out": None,
                "javafx-base-17.jar": JavaModuleDescriptor("javafx.baseEmpty"),
                "javafx-base-17-linux.jar": JavaModuleDescriptor("javafx.base"),
                "javafx-graphics-17-linux.jar": JavaModuleDescriptor("javafx.graphics"),
            },
        )
    )
    result = classify(["javafx-base-17.jar", "javafx-base-17-linux.jar", "javafx-graphics-17-linux.jar"], "out", analyzer=analyzer)
    assert result.javafx_module_names() == ["javafx.base", "javafx.graphics"]
    command = build_launch_command(result, "app.Main")
    assert command[command.index("--add-modules") + 1] == "javafx.base,javafx.graphics"
