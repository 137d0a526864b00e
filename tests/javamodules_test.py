import pytest

from jartools import ACC_STATIC_PHASE, ACC_TRANSITIVE, class_file, make_jar, module_info

from fxbuild._impl.classfile import ClassFileFormatError, ClassPathLookup, extends_class, parse_class_file
from fxbuild._impl.javamodules import (
    JarModuleAnalyzer,
    JavaModuleDescriptor,
    ModuleNameSource,
    get_automatic_module_name,
    is_valid_module_name,
    parse_module_info_source,
    read_manifest,
    read_system_modules,
)


def test_parse_class_file():
    parsed = parse_class_file(class_file("app.Main", "javafx.application.Application", with_long=True))
    assert parsed.this_class == "app.Main"
    assert parsed.super_class == "javafx.application.Application"
    assert parsed.major_version == 55
    assert parsed.module is None


def test_parse_module_info():
    data = module_info(
        "hellofx",
        requires={"javafx.controls": ACC_TRANSITIVE, "java.sql": ACC_STATIC_PHASE, "javafx.fxml": 0},
        exports=["org.openjfx"],
    )
    module = parse_class_file(data).module
    assert module.name == "hellofx"
    assert module.requires == {
        "javafx.controls": frozenset({"transitive"}),
        "java.sql": frozenset({"static"}),
        "javafx.fxml": frozenset(),
    }
    assert module.exports == {"org.openjfx": ()}
    assert not module.is_open


def test_malformed_class_files():
    with pytest.raises(ClassFileFormatError):
        parse_class_file(b"\x00\x01\x02\x03")
    with pytest.raises(ClassFileFormatError):
        parse_class_file(class_file("app.Main")[:12])
    with pytest.raises(ClassFileFormatError):
        JavaModuleDescriptor.from_class_file(class_file("app.Main"))


def test_extends_class(tmp_path):
    classes = tmp_path / "classes"
    (classes / "app").mkdir(parents=True)
    (classes / "app" / "Main.class").write_bytes(class_file("app.Main", "app.Base"))
    (classes / "app" / "Launcher.class").write_bytes(class_file("app.Launcher"))
    fx = make_jar(
        tmp_path / "lib.jar",
        {
            "app/Base.class": class_file("app.Base", "javafx.application.Application"),
            "javafx/application/Application.class": class_file("javafx.application.Application"),
        },
    )
    class_path = [str(classes), fx]
    assert extends_class("app.Main", "javafx.application.Application", class_path)
    assert extends_class("hellofx/app.Main", "javafx.application.Application", class_path)
    assert not extends_class("app.Launcher", "javafx.application.Application", class_path)
    assert not extends_class("app.Missing", "javafx.application.Application", class_path)


def test_class_path_lookup(tmp_path):
    jar = make_jar(tmp_path / "a.jar", {"a/A.class": b"A"})
    broken = tmp_path / "broken.jar"
    broken.write_bytes(b"broken")
    with ClassPathLookup([str(broken), jar, ""]) as lookup:
        assert lookup.find("a.A") == b"A"
        assert lookup.find("a.B") is None


def test_automatic_module_name():
    assert get_automatic_module_name("/repo/commons-io-2.11.0.jar") == "commons.io"
    assert get_automatic_module_name("foo-bar-1.jar") == "foo.bar"
    assert get_automatic_module_name("foo--bar_baz.jar") == "foo.bar.baz"
    assert get_automatic_module_name("-lead.zip") == "lead"
    assert get_automatic_module_name("javafx-base-17-linux.jar") == "javafx.base.17.linux"


def test_valid_module_name():
    assert is_valid_module_name("javafx.base")
    assert not is_valid_module_name("1.foo")
    assert not is_valid_module_name("foo.class")
    assert not is_valid_module_name("")


def test_read_manifest():
    manifest = b"Manifest-Version: 1.0\r\nAutomatic-Module-Name: org.exam\r\n ple.lib\r\n\r\nName: other\r\nX: y\r\n"
    assert read_manifest(manifest) == {"Manifest-Version": "1.0", "Automatic-Module-Name": "org.example.lib"}


def test_parse_module_info_source():
    descriptor = parse_module_info_source(
        """
        // a comment mentioning module x {
        /* requires nothing; */
        open module hellofx {
            requires transitive javafx.controls;
            requires static java.sql;
            exports org.openjfx;
            exports org.openjfx.internal to javafx.fxml, javafx.graphics;
            uses org.openjfx.Service;
            provides org.openjfx.Service with org.openjfx.Impl, org.openjfx.Other;
        }
        """
    )
    assert descriptor.name == "hellofx"
    assert descriptor.is_open
    assert descriptor.requires == {"javafx.controls": frozenset({"transitive"}), "java.sql": frozenset({"static"})}
    assert descriptor.exports == {"org.openjfx": (), "org.openjfx.internal": ("javafx.fxml", "javafx.graphics")}
    assert descriptor.uses == frozenset({"org.openjfx.Service"})
    assert descriptor.provides == {"org.openjfx.Service": ("org.openjfx.Impl", "org.openjfx.Other")}
    assert "requires transitive javafx.controls;" in descriptor.as_module_info()

    with pytest.raises(ValueError):
        parse_module_info_source("class Foo {}")


def test_describe(tmp_path):
    analyzer = JarModuleAnalyzer()

    modular = make_jar(tmp_path / "modular.jar", {"module-info.class": module_info("org.modular")})
    descriptor, source = analyzer.describe(modular)
    assert (descriptor.name, source, descriptor.automatic) == ("org.modular", ModuleNameSource.MODULEDESCRIPTOR, False)

    versioned = make_jar(
        tmp_path / "versioned.jar",
        {"META-INF/versions/9/module-info.class": module_info("old"), "META-INF/versions/11/module-info.class": module_info("org.versioned")},
        manifest={"Multi-Release": "true"},
    )
    assert analyzer.describe(versioned)[0].name == "org.versioned"

    named = make_jar(tmp_path / "named-1.0.jar", {}, manifest={"Automatic-Module-Name": "org.named"})
    descriptor, source = analyzer.describe(named)
    assert (descriptor.name, source, descriptor.automatic) == ("org.named", ModuleNameSource.MANIFEST, True)

    plain = make_jar(tmp_path / "plain-lib-2.0.jar", {"a/A.class": b""})
    descriptor, source = analyzer.describe(plain)
    assert (descriptor.name, source) == ("plain.lib", ModuleNameSource.FILENAME)

    classes = tmp_path / "classes"
    classes.mkdir()
    assert analyzer.describe(str(classes)) == (None, ModuleNameSource.NONE)

    with pytest.raises(ValueError):
        analyzer.describe(make_jar(tmp_path / "1-invalid.jar", {}))
    with pytest.raises(OSError):
        analyzer.describe(str(tmp_path / "missing.jar"))


def test_analyze_ignores_static_requires_of_dependencies(tmp_path):
    main = tmp_path / "module-info.java"
    main.write_text("module app { requires lib.a; }")
    a = make_jar(tmp_path / "a.jar", {"module-info.class": module_info("lib.a", requires={"lib.b": ACC_STATIC_PHASE, "lib.c": 0})})
    b = make_jar(tmp_path / "b.jar", {"module-info.class": module_info("lib.b")})
    c = make_jar(tmp_path / "c.jar", {"module-info.class": module_info("lib.c")})
    result = JarModuleAnalyzer().analyze([a, b, c], str(main))
    assert result.main_descriptor.name == "app"
    assert result.module_path == (a, c)
    assert result.class_path == (b,)


def test_first_provider_wins(tmp_path):
    main = tmp_path / "module-info.java"
    main.write_text("module app { requires lib.a; }")
    first = make_jar(tmp_path / "first.jar", {"module-info.class": module_info("lib.a")})
    second = make_jar(tmp_path / "second.jar", {"module-info.class": module_info("lib.a")})
    result = JarModuleAnalyzer().analyze([first, second], str(main))
    assert result.module_path == (first,)
    assert result.class_path == (second,)


def test_read_system_modules(tmp_path):
    (tmp_path / "release").write_text('JAVA_VERSION="17"\nMODULES="java.base java.desktop jdk.jlink"\n')
    assert read_system_modules(str(tmp_path)) == frozenset({"java.base", "java.desktop", "jdk.jlink"})
    assert read_system_modules(str(tmp_path / "missing")) == frozenset()
    assert read_system_modules(None) == frozenset()
