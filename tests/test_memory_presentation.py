from caiide_memory.memory.presentation import (
    detect_language,
    merge_tags,
    parse_tags,
    preview,
    stats_rows,
)
from caiide_memory.memory.types import MemoryStats


def test_preview_truncates_and_flattens():
    assert preview("short") == "short"
    assert preview("a\n  b") == "a b"
    assert preview("x" * 90, width=80) == "x" * 80 + "..."


def test_detect_language_by_extension():
    assert detect_language("src/main.py") == "python"
    assert detect_language("README.MD") == "markdown"
    assert detect_language("Makefile") == "plaintext"
    assert detect_language("") == "plaintext"


def test_parse_and_merge_tags():
    assert parse_tags(" a, ,b ,") == ["a", "b"]
    assert parse_tags(None) == []
    assert merge_tags(["team", "a"], ["a", "b", " "]) == ["team", "a", "b"]


def test_stats_rows_render_nested_components():
    rows = stats_rows(MemoryStats(total_documents=2, components={"index": {"size": 2}, "store": "sqlite"}))
    assert rows == [
        ("Total Documents", "2"),
        ("index", '{"size": 2}'),
        ("store", "sqlite"),
    ]
