from os.path import join

import pytest

from fxbuild._impl.classification import RuntimePathMode
from fxbuild._impl.config import GoalConfig, field_name, load_config
from fxbuild._impl.exceptions import ConfigurationError

POM = """<project xmlns="http://maven.apache.org/POM/4.0.0">
    <artifactId>hellofx</artifactId>
    <properties>
        <maven.compiler.release>17</maven.compiler.release>
        <javafx.launcher>from-property</javafx.launcher>
        <javafx.stripDebug>true</javafx.stripDebug>
        <app.main>org.openjfx.App</app.main>
    </properties>
    <build>
        <directory>${basedir}/out</directory>
        <plugins>
            <plugin>
                <artifactId>javafx-maven-plugin</artifactId>
                <configuration>
                    <mainClass>hellofx/${app.main}</mainClass>
                    <launcher>from-plugin</launcher>
                    <compress>2</compress>
                    <options>
                        <option>-Xmx1g</option>
                    </options>
                    <runtimePathOption>CLASSPATH</runtimePathOption>
                    <commandlineArgs>a b</commandlineArgs>
                    <unknownThing>ignored</unknownThing>
                </configuration>
            </plugin>
        </plugins>
    </build>
</project>
"""


@pytest.fixture
def project(tmp_path):
    (tmp_path / "pom.xml").write_text(POM)
    return str(tmp_path)


def test_field_name():
    assert field_name("mainClass") == "main_class"
    assert field_name("MAIN_CLASS") == "main_class"
    assert field_name("main_class") == "main_class"
    assert field_name("async") == "async_"
    assert field_name("workingdir") == "working_directory"
    assert field_name("runtimePathOption") == "runtime_path_mode"
    assert field_name("includePathExceptionsInClasspath") == "include_path_exceptions_in_classpath"
    assert field_name("noSuchParameter") is None


def test_defaults(tmp_path):
    config = GoalConfig(basedir=str(tmp_path))
    assert config.build_directory == join(str(tmp_path), "target")
    assert config.output_directory == join(str(tmp_path), "target", "classes")
    assert config.source_directory == join(str(tmp_path), "src", "main", "java")
    assert config.image_dir == join(str(tmp_path), "target", "image")
    assert config.package_output_dir == join(str(tmp_path), "package")
    assert config.runtime_path_mode is RuntimePathMode.AUTO
    assert config.executable == "java"
    assert config.release == "11"


def test_relative_paths(tmp_path):
    config = GoalConfig(basedir=str(tmp_path), working_directory="run", output_file="logs/out.txt", jmods_path="/jmods")
    assert config.working_directory == join(str(tmp_path), "run")
    assert config.output_file == join(str(tmp_path), "logs", "out.txt")
    assert config.jmods_path == "/jmods"


def test_empty_project(tmp_path):
    config = load_config(str(tmp_path), env={})
    assert config.main_class is None
    assert config.basedir == str(tmp_path)


def test_pom(project):
    config = load_config(project, env={})
    assert config.main_class == "hellofx/org.openjfx.App"
    assert config.launcher == "from-plugin"
    assert config.strip_debug is True
    assert config.compress == 2
    assert config.options == ["-Xmx1g"]
    assert config.runtime_path_mode is RuntimePathMode.CLASSPATH
    assert config.commandline_args == "a b"
    assert config.release == "17"
    assert config.build_directory == join(project, "out")
    assert config.output_directory == join(project, "out", "classes")
    assert config.image_dir == join(project, "out", "image")


def test_precedence(project):
    env = {"FXBUILD_LAUNCHER": "from-env", "FXBUILD_COMPRESS": "1", "FXBUILD_MAIN_CLASS": "env.Main", "PATH": "/bin"}
    config = load_config(project, env=env)
    assert (config.launcher, config.compress, config.main_class) == ("from-env", 1, "env.Main")

    defines = {"javafx.launcher": "from-define", "javafx.compress": "0", "other.launcher": "x"}
    config = load_config(project, defines=defines, env=env)
    assert (config.launcher, config.compress, config.main_class) == ("from-define", 0, "env.Main")

    overrides = {"launcher": "from-cli", "compress": None, "main_class": "cli.Main"}
    config = load_config(project, overrides=overrides, defines=defines, env=env)
    assert (config.launcher, config.compress, config.main_class) == ("from-cli", 0, "cli.Main")


def test_coercion(tmp_path):
    defines = {
        "javafx.skip": "yes",
        "javafx.async": "true",
        "javafx.excludes": "**/Skip.java, gen/**",
        "javafx.compilerArgs": "-Xlint:all '-Aname=a b'",
        "javafx.timeout": "2.5",
    }
    config = load_config(str(tmp_path), defines=defines, env={})
    assert config.skip is True
    assert config.async_ is True
    assert config.excludes == ["**/Skip.java", "gen/**"]
    assert config.compiler_args == ["-Xlint:all", "'-Aname=a b'"]
    assert config.timeout == 2.5


@pytest.mark.parametrize(
    "name, value",
    [
        ("javafx.skip", "maybe"),
        ("javafx.compress", "high"),
        ("javafx.runtimePathOption", "SOMETIMES"),
        ("javafx.timeout", "soon"),
    ],
)
def test_invalid_values(tmp_path, name, value):
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path), defines={name: value}, env={})


def test_list_for_scalar(tmp_path):
    (tmp_path / "pom.xml").write_text(
        "<project><build><plugins><plugin><artifactId>javafx-maven-plugin</artifactId>"
        "<configuration><launcher><a>x</a></launcher></configuration></plugin></plugins></build></project>"
    )
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path), env={})


def test_broken_pom(tmp_path):
    (tmp_path / "pom.xml").write_text("<project>")
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path), env={})
