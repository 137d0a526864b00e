import pytest

from fxbuild._impl.javafx import JavaFXModule, get_platform_classifier, is_javafx_module_name
from fxbuild._impl.pom import MavenPOM, interpolate

POM = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
    <modelVersion>4.0.0</modelVersion>
    <parent>
        <groupId>org.openjfx</groupId>
        <artifactId>parent</artifactId>
        <version>1.0</version>
    </parent>
    <artifactId>hellofx</artifactId>
    <properties>
        <javafx.version>17</javafx.version>
        <main.class>org.openjfx.App</main.class>
        <launcher.name>${project.artifactId}-launcher</launcher.name>
    </properties>
    <dependencies>
        <dependency>
            <groupId>org.openjfx</groupId>
            <artifactId>javafx-controls</artifactId>
            <version>${javafx.version}</version>
        </dependency>
    </dependencies>
    <build>
        <plugins>
            <plugin>
                <artifactId>maven-compiler-plugin</artifactId>
            </plugin>
            <plugin>
                <groupId>org.openjfx</groupId>
                <artifactId>javafx-maven-plugin</artifactId>
                <configuration>
                    <mainClass>${main.class}</mainClass>
                    <options>
                        <option>-Dfoo=bar</option>
                        <option>-Xmx1g</option>
                    </options>
                </configuration>
            </plugin>
        </plugins>
    </build>
</project>
"""


@pytest.fixture
def pom(tmp_path):
    path = tmp_path / "pom.xml"
    path.write_text(POM)
    return MavenPOM(str(path))


def test_interpolate():
    props = {"a": "1", "b": "${a}-2"}
    assert interpolate("${b}/${a}", props) == "1-2/1"
    assert interpolate("${unknown}", props) == "${unknown}"
    assert interpolate(None, props) is None
    # a cycle gives up instead of looping forever
    assert interpolate("${x}", {"x": "${x}"}) == "${x}"


def test_accessors(pom):
    assert pom.tag == "project"
    assert pom.get_text("artifactId") == "hellofx"
    assert pom.get_text("missing", "default") == "default"
    assert pom.get("missing") is None
    assert pom["parent/groupId"].text == "org.openjfx"
    assert [p.get_text("artifactId") for p in pom.getall("build/plugins/plugin")] == [
        "maven-compiler-plugin",
        "javafx-maven-plugin",
    ]
    with pytest.raises(KeyError):
        pom["build/missing"]


def test_properties(pom):
    props = pom.properties()
    assert props["javafx.version"] == "17"
    assert props["project.artifactId"] == "hellofx"
    assert props["project.groupId"] == "org.openjfx"
    assert props["project.version"] == "1.0"
    assert interpolate(props["launcher.name"], props) == "hellofx-launcher"


def test_plugin_configuration(pom):
    assert pom.plugin_configuration("javafx-maven-plugin") == {
        "mainClass": "${main.class}",
        "options": ["-Dfoo=bar", "-Xmx1g"],
    }
    assert pom.plugin_configuration("maven-compiler-plugin") == {}
    assert pom.plugin_configuration("other") == {}


def test_dependencies(pom):
    assert pom.dependencies() == [
        {"groupId": "org.openjfx", "artifactId": "javafx-controls", "version": "${javafx.version}"}
    ]


def test_without_namespace(tmp_path):
    path = tmp_path / "pom.xml"
    path.write_text("<project><artifactId>plain</artifactId></project>")
    assert MavenPOM(str(path)).get_text("artifactId") == "plain"


def test_javafx_modules():
    assert JavaFXModule.CONTROLS.module_name == "javafx.controls"
    assert JavaFXModule.from_artifact_name("javafx-web") is JavaFXModule.WEB
    assert JavaFXModule.from_artifact_name("javafx-unknown") is None
    assert JavaFXModule.FXML.platform_artifacts("linux") == [
        ("javafx-fxml", "linux"),
        ("javafx-base", "linux"),
        ("javafx-graphics", "linux"),
    ]
    assert is_javafx_module_name("javafx.base")
    assert not is_javafx_module_name("javafxports")
    assert not is_javafx_module_name(None)


def test_platform_classifier(monkeypatch):
    assert get_platform_classifier("mac-aarch64") == "mac-aarch64"
    monkeypatch.setattr("sys.platform", "linux")
    assert get_platform_classifier() == "linux"
    monkeypatch.setattr("sys.platform", "win32")
    assert get_platform_classifier() == "win"
    monkeypatch.setattr("sys.platform", "freebsd13")
    with pytest.raises(ValueError):
        get_platform_classifier()
