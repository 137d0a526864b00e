import io

from fxbuild._impl.support.arguments import escape_argument, split_all, tokenize, write_to_file


def test_tokenize_complex_argument_string():
    option = (
        "param1 "
        "param2   \n   "
        "param3\n"
        'param4="/path/to/my file.log"   '
        "'var\"foo   var\"foo' "
        "'var\"foo'   "
        "'var\"foo' "
        "\"foo'var foo'var\" "
        "\"foo'var\" "
        "\"foo'var\""
    )
    assert tokenize(option) == [
        "param1",
        "param2",
        "param3",
        'param4="/path/to/my file.log"',
        "'var\"foo   var\"foo'",
        "'var\"foo'",
        "'var\"foo'",
        "\"foo'var foo'var\"",
        "\"foo'var\"",
        "\"foo'var\"",
    ]


def test_tokenize_empty():
    assert tokenize(None) == []
    assert tokenize("") == []
    assert tokenize("   \t\n ") == []


def test_tokenize_unterminated_quote():
    assert tokenize('-Da="b c') == ['-Da="b c']


def test_split_all_skips_none():
    assert split_all(["-Xmx1g -ea", None, "--add-opens a/b=ALL-UNNAMED"]) == [
        "-Xmx1g",
        "-ea",
        "--add-opens",
        "a/b=ALL-UNNAMED",
    ]
    assert split_all(None) == []


def test_no_escape():
    assert escape_argument("") == '""'
    for arg in ["abc", "-Dfoo=bar", "/path/to/file"]:
        assert escape_argument(arg) == arg


def test_escape():
    for arg, escaped_without_quotes in [
        (" ", " "),
        ("text with space", "text with space"),
        ("text 'with' quote", "text \\'with\\' quote"),
        ('text "with" quote', 'text \\"with\\" quote'),
        ("\t", "\\t"),
        ("\n", "\\n"),
    ]:
        assert escape_argument(arg) == f'"{escaped_without_quotes}"', arg


def test_write_to_file():
    out = io.StringIO()
    write_to_file(out, ["A.java", "dir with space/B.java"])
    assert out.getvalue().splitlines() == ["A.java", '"dir with space/B.java"']
