"""Test Markdown <-> HTML conversion for the report editor"""
import sys
import os
import asyncio
sys.path.insert(0, os.path.dirname(__file__))

from praxisnotes import converter
from praxisnotes.converter import html_to_markdown, markdown_to_html


def test_markdown_round_trip():
    source = "**bold** and *italic* text\n\n- item one\n- item two"
    rich = asyncio.run(markdown_to_html(source))
    assert "<strong>bold</strong>" in rich
    assert "<em>italic</em>" in rich

    back = asyncio.run(html_to_markdown(rich))
    assert back == "**bold** and *italic* text\n\n- item one\n- item two\n"


def test_headings_and_ordered_lists():
    rich = "<h2>Summary</h2><ol><li>First</li><li>Second</li></ol><p>Done.</p>"
    assert asyncio.run(html_to_markdown(rich)) == "## Summary\n\n1. First\n2. Second\n\nDone.\n"


def test_nested_list():
    rich = "<ul><li>Outer<ul><li>Inner</li></ul></li></ul>"
    assert asyncio.run(html_to_markdown(rich)) == "- Outer\n   - Inner\n"


def test_underline_strike_and_links():
    rich = '<p><u>under</u> <s>gone</s> <a href="https://example.org">site</a></p>'
    assert asyncio.run(html_to_markdown(rich)) == "<u>under</u> ~~gone~~ [site](https://example.org)\n"

    rich_again = asyncio.run(markdown_to_html("<u>under</u> ~~gone~~"))
    assert "<u>under</u>" in rich_again
    assert "<del>gone</del>" in rich_again or "<s>gone</s>" in rich_again


def test_empty_editor_values():
    for value in ("", "<p><br></p>", "<p></p>", None):
        assert asyncio.run(html_to_markdown(value)) == ""
    assert asyncio.run(markdown_to_html("")) == ""
    assert asyncio.run(markdown_to_html("   ")) == ""


def test_comments_dropped():
    rich = "<p>Kept<!-- editor marker --></p>"
    assert asyncio.run(html_to_markdown(rich)) == "Kept\n"


def test_markdown_failure_falls_back_to_escaped_text(monkeypatch):
    def broken(markdown):
        raise RuntimeError("renderer exploded")

    monkeypatch.setattr(converter, "_render_html", broken)
    result = asyncio.run(markdown_to_html("a < b\nnext line"))
    assert result == "a &lt; b<br>next line"


def test_html_failure_falls_back_to_stripped_tags(monkeypatch):
    def broken(rich_text):
        raise RuntimeError("walker exploded")

    monkeypatch.setattr(converter, "_render_markdown", broken)
    result = asyncio.run(html_to_markdown("<p>Fish &amp; chips</p>"))
    assert result == "Fish & chips"


def test_literal_markdown_characters_survive_editing():
    rich = "<p>Score 2*3*4 today</p><p>1. not a list</p><p>- not a bullet either</p>"
    markdown = asyncio.run(html_to_markdown(rich))
    assert markdown == "Score 2\\*3\\*4 today\n\n1\\. not a list\n\n\\- not a bullet either\n"

    rich_again = asyncio.run(markdown_to_html(markdown))
    assert "<em>" not in rich_again
    assert "<ol>" not in rich_again
    assert "<ul>" not in rich_again
    assert "2*3*4" in rich_again
    assert "1. not a list" in rich_again


def test_list_item_text_is_not_a_nested_list():
    rich = "<ul><li>1. first step</li><li>snake_case [draft]</li></ul>"
    markdown = asyncio.run(html_to_markdown(rich))
    assert markdown == "- 1\\. first step\n- snake\\_case \\[draft\\]\n"

    rich_again = asyncio.run(markdown_to_html(markdown))
    assert "<ol>" not in rich_again
    assert "snake_case [draft]" in rich_again
