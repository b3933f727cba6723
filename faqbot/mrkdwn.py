"""
Render normalized answer markup as Slack mrkdwn.
"""
import re

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

BLOCK_ELEMENTS = {"div", "table", "tbody", "thead", "tfoot", "ul", "ol", "blockquote", "pre", "hr"}
HEADINGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
WRAPPERS = {
    "b": "*",
    "strong": "*",
    "i": "_",
    "em": "_",
    "s": "~",
    "strike": "~",
    "del": "~",
    "code": "`",
    "kbd": "`",
}


def escape(text: str) -> str:
    """Escape the three characters Slack treats as control characters."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _wrap(inner: str, marker: str) -> str:
    stripped = inner.strip()
    if not stripped:
        return inner
    return f"{marker}{stripped}{marker}"


def _render_children(el: Tag) -> str:
    return "".join(_render(child) for child in el.children)


def _render(node) -> str:
    if isinstance(node, Comment):
        return ""
    if isinstance(node, NavigableString):
        return escape(str(node))
    if not isinstance(node, Tag):
        return ""

    name = node.name
    if name == "br":
        return "\n"
    if name == "img":
        src = node.get("src")
        return f"<{src}|image>" if src else ""
    if name == "a":
        inner = _render_children(node).strip()
        href = node.get("href")
        if not href:
            return inner
        return f"<{href}|{inner}>" if inner else f"<{href}>"
    if name in WRAPPERS:
        return _wrap(_render_children(node), WRAPPERS[name])
    if name in HEADINGS:
        return "\n" + _wrap(_render_children(node), "*") + "\n"
    if name == "li":
        parent = node.parent
        if parent is not None and parent.name == "ol":
            position = len(node.find_previous_siblings("li")) + 1
            bullet = f"{position}."
        else:
            bullet = "•"
        return f"{bullet} {_render_children(node).strip()}\n"
    if name == "tr":
        cells = [_render_children(cell).strip() for cell in node.find_all(["td", "th"], recursive=False)]
        return " | ".join(cells) + "\n"
    if name in BLOCK_ELEMENTS:
        return "\n" + _render_children(node) + "\n"
    return _render_children(node)


def to_mrkdwn(markup: str) -> str:
    soup = BeautifulSoup(markup or "", "html.parser")
    text = _render_children(soup).replace("\xa0", " ")
    lines = [line.rstrip() for line in text.split("\n")]
    text = "\n".join(lines)
    return re.sub(r"\n{3,}", "\n\n", text).strip()
