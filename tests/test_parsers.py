from __future__ import annotations

import pytest


def test_parse_ls_tree_basic():
    from octotree_mcp.core.parsers import parse_ls_tree_record

    raw = "\0".join(
        [
            "100644 blob 8a1218a1024a212bb3db30becd860315f9f3ac52       8\tREADME.md",
            "100755 blob 3b18e512dba79e4c8300dd08aeb37f8e728b8dad      12\tsrc/app.py",
            "160000 commit 4b825dc642cb6eb9a060e54bf8d69288fbee4904       -\tvendor/lib",
        ]
    )

    out = [e for e in map(parse_ls_tree_record, raw.split("\0")) if e is not None]

    assert isinstance(out, list)
    assert len(out) == 2

    assert out[0].path == "README.md"
    assert out[0].size == 8
    assert out[0].modified_at_ms is None

    assert out[1].path == "src/app.py"
    assert out[1].size == 12


def test_parse_ls_tree_keeps_spaces_in_paths():
    from octotree_mcp.core.parsers import parse_ls_tree_record

    entry = parse_ls_tree_record("100644 blob abc 3\tdir with space/my file.txt")
    assert entry is not None
    assert entry.path == "dir with space/my file.txt"


def test_parse_ls_tree_takes_path_verbatim():
    from octotree_mcp.core.parsers import parse_ls_tree_record

    entry = parse_ls_tree_record("100644 blob abc 3\twe\"ird\\name\twith tab\n")
    assert entry is not None
    assert entry.path == "we\"ird\\name\twith tab\n"


def test_parse_ls_tree_dash_size_is_zero():
    from octotree_mcp.core.parsers import parse_ls_tree_record

    entry = parse_ls_tree_record("100644 blob abc       -\tempty")
    assert entry is not None
    assert entry.size == 0


@pytest.mark.parametrize(
    "line",
    [
        "",
        "no tab here at all",
        "100644 blob abc\tshort-meta",
        "\tonly-path",
        "100644 blob abc 3\t",
    ],
)
def test_parse_ls_tree_ignores_malformed_lines(line):
    from octotree_mcp.core.parsers import parse_ls_tree_record

    assert parse_ls_tree_record(line) is None


def test_parse_ls_files_record():
    from octotree_mcp.core.parsers import parse_ls_files_record

    assert parse_ls_files_record("src/app.py") == "src/app.py"
    assert parse_ls_files_record("trailing newline\n") == "trailing newline\n"
    assert parse_ls_files_record("") is None


def test_parse_unix_seconds_ms():
    from octotree_mcp.core.parsers import parse_unix_seconds_ms

    assert parse_unix_seconds_ms("1704164645\n") == 1704164645000
    assert parse_unix_seconds_ms("") is None
    assert parse_unix_seconds_ms("tree abc\n\nfile") is None


def test_parse_count():
    from octotree_mcp.core.parsers import parse_count

    assert parse_count("3\n") == 3
    assert parse_count("") is None
