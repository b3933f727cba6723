"""
Answer lookup on the support portal and normalization of the answer markup.
"""
import html
import re
from typing import Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup, Comment

from faqbot.config import Settings
from faqbot.errors import ArticleNotFound, UpstreamUnavailable
from faqbot.logger import logger
from faqbot.models import AnswerRef, RefKind

ARTICLE_PATH = "/unifyportalfaqdetail"
CONTENT_ANCHOR = ".UnifyPortalJournalArticleDisplayDate"

VOID_ELEMENTS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
}
BLOCK_ELEMENTS = {
    "div", "table", "thead", "tbody", "tfoot", "tr", "td", "th", "ul", "ol", "li",
    "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre", "hr", "br",
}
REMOVED_ELEMENTS = ["script", "style", "caption"]
STRIPPED_ATTRIBUTES = ("summary", "type", "headers", "frame", "rules", "id", "target")
TAG_ALIASES = {
    "section": "div",
    "abbr": "span",
    "samp": "span",
    "strong": "b",
    "em": "i",
}
IMAGE_CLASSES = ["emoticon-icon", "pill"]
# Deliberately excludes the non-breaking space
WHITESPACE = re.compile(r"[ \t\r\n\f]+")


def _is_boundary(sibling) -> bool:
    """Whitespace next to the start or end of an element, or next to a block, is dropped."""
    return sibling is None or getattr(sibling, "name", None) in BLOCK_ELEMENTS


def _absolute(url: str, base_url: str) -> str:
    return urljoin(base_url.rstrip("/") + "/", url)


def normalize(fragment: str, base_url: str) -> str:
    """
    Rewrite answer markup into the subset the chat surface understands.

    The transform is deterministic and normalizing its own output returns it
    unchanged.
    """
    soup = BeautifulSoup(fragment, "html.parser")

    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    for el in soup.find_all(REMOVED_ELEMENTS):
        el.decompose()

    # Keep paragraph content, drop the paragraph itself
    for el in soup.find_all("p"):
        el.unwrap()

    for img in soup.find_all("img"):
        img["class"] = list(IMAGE_CLASSES)
        img.attrs.pop("width", None)
        img.attrs.pop("height", None)
        if img.get("src"):
            img["src"] = _absolute(img["src"], base_url)

    for el in soup.find_all(href=True):
        if el["href"].startswith("/"):
            el["href"] = _absolute(el["href"], base_url)

    for el in soup.find_all(True):
        for attr in STRIPPED_ATTRIBUTES:
            el.attrs.pop(attr, None)
        for attr in ("width", "height"):
            if el.get(attr) == "NaN%":
                del el[attr]
        if el.name in TAG_ALIASES:
            el.name = TAG_ALIASES[el.name]

    # Merge text split by removed comments and unwrapped paragraphs
    soup.smooth()
    for text in list(soup.find_all(string=True)):
        collapsed = WHITESPACE.sub(" ", str(text))
        if _is_boundary(text.previous_sibling):
            collapsed = collapsed.lstrip(" ")
        if _is_boundary(text.next_sibling):
            collapsed = collapsed.rstrip(" ")
        if not collapsed:
            text.extract()
        elif collapsed != text:
            text.replace_with(collapsed)

    # The chat backend rejects empty elements
    for el in soup.find_all(True):
        if el.name not in VOID_ELEMENTS and not el.contents:
            el.append("\xa0")

    return soup.decode(formatter="html")


class AnswerResolver:
    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def lookup(self, answer_ref: AnswerRef) -> str:
        """
        Return the answer markup for an answer reference.

        Raises:
            ArticleNotFound: the article page has no answer content
            UpstreamUnavailable: the support portal could not be reached
        """
        if answer_ref.kind == RefKind.TEXT:
            return html.unescape(answer_ref.value)
        if answer_ref.kind == RefKind.ARTICLE:
            return self._lookup_article(answer_ref.value)
        raise ValueError("Knowledge base entry ids have no answer page")

    def _lookup_article(self, article_id: str) -> str:
        url = f"{self.settings.support_base_url}{ARTICLE_PATH}"
        try:
            response = self.session.get(
                url, params={"articleId": article_id}, timeout=self.settings.support_timeout
            )
        except requests.RequestException as e:
            logger.error("Fetching article %s failed: %s", article_id, e)
            raise UpstreamUnavailable(f"Fetching article {article_id} failed") from e

        if response.status_code != 200:
            logger.error("Fetching article %s returned status %s", article_id, response.status_code)
            raise UpstreamUnavailable(
                f"Fetching article {article_id} returned status {response.status_code}"
            )

        soup = BeautifulSoup(response.text, "html.parser")
        anchor = soup.select_one(CONTENT_ANCHOR)
        content = anchor.find_next_sibling("div") if anchor else None
        if content is None:
            logger.error("No answer content on the page for article %s", article_id)
            raise ArticleNotFound(article_id)

        return normalize(content.decode_contents(), self.settings.support_base_url)
