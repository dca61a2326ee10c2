# test/test_ui.py
from rich.console import Console

from granular.ui import display_search, display_table_schema


def recording_console():
    return Console(record=True, width=140, color_system=None)


def test_display_table_schema(compiler):
    console = recording_console()
    display_table_schema(compiler.schema.table("main", "users"), console)
    text = console.export_text()
    assert "users" in text
    assert "email" in text
    assert "typed" in text


def test_display_search(compiler, fixed_now):
    compiled = compiler.compile(
        "User",
        {"name": "al", "post_title": "x", "sortBy": "name", "date": "2024-05-01"},
        now=fixed_now,
    )
    console = recording_console()
    display_search(compiled, console)
    text = console.export_text()
    assert "EXISTS posts" in text
    assert "name LIKE '%a%l%'" in text
    assert "Sort: name asc" in text
    assert "Visited: Post, User" in text


def test_display_empty_search(compiler):
    console = recording_console()
    display_search(compiler.compile("User", {}), console)
    assert "any" in console.export_text()
