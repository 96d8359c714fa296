# src/article_layout/dom/blocks.py
import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, PageElement, Tag

from ..model import ArticleBlock, ArticleDocument

logger = logging.getLogger(__name__)

ARTICLE_ROOT_ATTR = "data-article-root"
BLOCKED_AFTER_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6", "hr"}
TEXT_NODE_TAG = "#text"

_WHITESPACE = re.compile(r"\s+")


def count_words(text: Optional[str]) -> int:
    """Counts whitespace separated words, treating non-breaking spaces as regular spaces."""
    if not text:
        return 0
    cleaned = text.replace("\u00a0", " ").strip()
    if not cleaned:
        return 0
    return len([w for w in _WHITESPACE.split(cleaned) if w])


def load_article_root(markup: str) -> Optional[Tag]:
    """
    Wraps the fragment in a synthetic root element and parses it.
    Returns None when the parser could not recover the root.
    """
    soup = BeautifulSoup(f"<div {ARTICLE_ROOT_ATTR}>{markup}</div>", "html.parser")
    return soup.find("div", attrs={ARTICLE_ROOT_ATTR: True})


def load_top_level_nodes(markup: str) -> List[PageElement]:
    """
    Returns the top-level block nodes of an article fragment, in document order.

    Element children are always kept. Loose text is kept when it carries
    anything besides whitespace; comments and inter-block whitespace are dropped.
    """
    if not markup or not markup.strip():
        return []

    root = load_article_root(markup)
    if root is None:
        logger.debug("Article root could not be recovered from markup (%d chars).", len(markup))
        return []

    nodes: List[PageElement] = []
    for child in root.children:
        if isinstance(child, Tag):
            nodes.append(child)
        elif isinstance(child, NavigableString) and not isinstance(child, Comment):
            # Doctype, CData and friends are NavigableString subclasses as well
            if type(child) is NavigableString and child.strip():
                nodes.append(child)
    return nodes


def serialize_node(node: PageElement) -> str:
    if isinstance(node, Tag):
        return node.decode()
    return node.output_ready()


def node_text(node: PageElement) -> str:
    if isinstance(node, Tag):
        return node.get_text()
    return str(node)


def can_insert_after(node: PageElement) -> bool:
    """Ads may only follow element blocks that are not headings or dividers."""
    if not isinstance(node, Tag):
        return False
    return node.name.lower() not in BLOCKED_AFTER_TAGS


def is_image_block(node: PageElement) -> bool:
    """
    A block is image-only if it is an <img>, or a text-less container (not a table)
    wrapping exactly one <img>.
    """
    if not isinstance(node, Tag):
        return False
    tag_name = node.name.lower()
    if tag_name == "table":
        return False
    if node.get_text().strip():
        return False
    if tag_name == "img":
        return True
    return len(node.find_all("img")) == 1


def build_block(node: PageElement) -> ArticleBlock:
    return ArticleBlock(
        tag=node.name.lower() if isinstance(node, Tag) else TEXT_NODE_TAG,
        html=serialize_node(node),
        word_count=count_words(node_text(node)),
        allows_ad_after=can_insert_after(node),
    )


def parse_article(markup: str) -> ArticleDocument:
    """Parses an article fragment into an immutable list of ArticleBlocks."""
    return ArticleDocument(blocks=[build_block(node) for node in load_top_level_nodes(markup)])
