"""
Markdown <-> HTML conversion for the report editor.

Supported subset: headings, bold, italic, underline, strikethrough,
ordered/unordered lists, links and paragraphs. Underline has no Markdown
syntax, so it is carried as an inline ``<u>`` tag which markdown2 passes
through unchanged. Literal text is backslash-escaped so that it stays
literal when the Markdown is rendered again.
"""
import html
import logging
import re
from typing import List

import markdown2
from bs4 import BeautifulSoup, Comment, NavigableString, Tag

logger = logging.getLogger(__name__)

MARKDOWN_EXTRAS = ["strike", "cuddled-lists"]

# What the rich-text editor sends when it is empty
EMPTY_EDITOR_VALUES = {"", "<p><br></p>", "<p></p>"}

_INLINE_WRAPPERS = {
    "strong": ("**", "**"),
    "b": ("**", "**"),
    "em": ("*", "*"),
    "i": ("*", "*"),
    "u": ("<u>", "</u>"),
    "s": ("~~", "~~"),
    "strike": ("~~", "~~"),
    "del": ("~~", "~~"),
}

_HEADINGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}

# Characters markdown2 would read as inline syntax; it honors a backslash before each
_INLINE_SYNTAX = re.compile(r"([\\`*_\[\]#])")
# List markers and quotes that only matter at the start of a line
_LINE_START_SYNTAX = re.compile(r"^([ \t]*)(\d+)\. |^([ \t]*)([-+>]) ", re.MULTILINE)


def _escape_text(text: str) -> str:
    return _INLINE_SYNTAX.sub(r"\\\1", text)


def _escape_line_starts(text: str) -> str:
    def escape(match):
        if match.group(2) is not None:
            return f"{match.group(1)}{match.group(2)}\\. "
        return f"{match.group(3)}\\{match.group(4)} "
    return _LINE_START_SYNTAX.sub(escape, text)


# --- HTML -> MARKDOWN WALKER ---
def _inline_node(child) -> str:
    if isinstance(child, Comment):
        return ""
    if isinstance(child, NavigableString):
        return _escape_text(re.sub(r"\s+", " ", str(child)))
    if not isinstance(child, Tag) or child.name in ("ul", "ol"):
        return ""
    if child.name == "br":
        return "  \n"
    if child.name == "code":
        text = child.get_text()
        return f"`{text}`" if text.strip() else ""

    inner = _inline(child)
    if child.name in _INLINE_WRAPPERS:
        if not inner.strip():
            return ""
        left, right = _INLINE_WRAPPERS[child.name]
        return f"{left}{inner.strip()}{right}"
    if child.name == "a":
        href = child.get("href", "")
        return f"[{inner.strip()}]({href})" if href else inner
    return inner


def _inline(node: Tag) -> str:
    return "".join(_inline_node(child) for child in node.children)


def _list_lines(node: Tag, depth: int) -> List[str]:
    lines = []
    ordered = node.name == "ol"
    start = int(node.get("start", 1)) if ordered else 1
    indent = "   " * depth
    items = [child for child in node.children if isinstance(child, Tag) and child.name == "li"]
    for number, item in enumerate(items, start):
        marker = f"{number}. " if ordered else "- "
        text = _escape_line_starts(_inline(item).strip())
        lines.append(f"{indent}{marker}{text}")
        for nested in item.find_all(["ul", "ol"], recursive=False):
            lines.extend(_list_lines(nested, depth + 1))
    return lines


def _blocks(node: Tag) -> List[str]:
    blocks = []
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            text = re.sub(r"\s+", " ", str(child)).strip()
            if text:
                blocks.append(_escape_line_starts(_escape_text(text)))
            continue
        if not isinstance(child, Tag):
            continue

        name = child.name
        if name in _HEADINGS:
            text = _inline(child).strip()
            if text:
                blocks.append(f"{'#' * _HEADINGS[name]} {text}")
        elif name == "p":
            text = _inline(child).strip()
            if text:
                blocks.append(_escape_line_starts(text))
        elif name in ("ul", "ol"):
            lines = _list_lines(child, 0)
            if lines:
                blocks.append("\n".join(lines))
        elif name == "blockquote":
            inner = "\n\n".join(_blocks(child))
            if inner:
                blocks.append("\n".join(f"> {line}" if line else ">" for line in inner.split("\n")))
        elif name == "pre":
            blocks.append(f"```\n{child.get_text().rstrip()}\n```")
        elif name == "hr":
            blocks.append("---")
        elif name in _INLINE_WRAPPERS or name in ("a", "span", "code"):
            # stray inline markup outside any paragraph
            text = _inline_node(child).strip()
            if text:
                blocks.append(_escape_line_starts(text))
        else:
            blocks.extend(_blocks(child))
    return blocks


# --- SYNC CORE ---
def _render_html(markdown: str) -> str:
    return markdown2.markdown(markdown, extras=MARKDOWN_EXTRAS)


def _render_markdown(rich_text: str) -> str:
    soup = BeautifulSoup(rich_text, "html.parser")
    return "\n\n".join(_blocks(soup)).strip() + "\n"


def _strip_tags(rich_text: str) -> str:
    return html.unescape(re.sub(r"<[^>]*>", "", rich_text))


# --- PUBLIC API ---
async def markdown_to_html(markdown: str) -> str:
    """Render Markdown for the rich-text editor. Never raises."""
    if not markdown or not markdown.strip():
        return ""
    try:
        return _render_html(markdown)
    except Exception as e:
        logger.warning(f"Markdown to HTML conversion failed, using plain text: {e}")
        return html.escape(markdown).replace("\n", "<br>")


async def html_to_markdown(rich_text: str) -> str:
    """Turn editor HTML back into Markdown. Never raises."""
    if not rich_text or rich_text.strip() in EMPTY_EDITOR_VALUES:
        return ""
    try:
        return _render_markdown(rich_text)
    except Exception as e:
        logger.warning(f"HTML to Markdown conversion failed, stripping tags: {e}")
        return _strip_tags(rich_text)
