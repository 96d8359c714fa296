# tests/article_layout/test_blocks.py
from bs4 import BeautifulSoup

from article_layout.dom.blocks import (
    TEXT_NODE_TAG,
    is_image_block,
    load_top_level_nodes,
    parse_article,
)


def _tag(markup: str):
    return BeautifulSoup(markup, "html.parser").contents[0]


def test_parse_article_classifies_blocks():
    """Koppen en scheidingslijnen blokkeren advertenties, paragrafen niet."""
    doc = parse_article("<h2>Codes list</h2><p>one two three</p><hr/><img src=\"a.png\"/>")

    assert [b.tag for b in doc.blocks] == ["h2", "p", "hr", "img"]
    assert [b.allows_ad_after for b in doc.blocks] == [False, True, False, True]
    assert [b.word_count for b in doc.blocks] == [2, 3, 0, 0]
    assert is_image_block(load_top_level_nodes('<img src="a.png"/>')[0])
    assert doc.total_words == 5


def test_parse_article_keeps_inline_word_boundaries():
    """Inline tags zonder spatie ertussen vormen één woord, net als in de browser."""
    doc = parse_article("<p>foo<strong>bar</strong> baz</p>")
    assert doc.blocks[0].word_count == 2


def test_whitespace_between_blocks_is_dropped():
    doc = parse_article("<p>a</p>\n\n  <p>b</p>\n")
    assert [b.html for b in doc.blocks] == ["<p>a</p>", "<p>b</p>"]


def test_loose_text_is_kept_as_blocked_text_node():
    """Losse tekst op het hoogste niveau blijft behouden, maar er mag geen advertentie na."""
    doc = parse_article("intro &amp; more<p>body</p>")
    first = doc.blocks[0]
    assert first.tag == TEXT_NODE_TAG
    assert first.html == "intro &amp; more"
    assert first.allows_ad_after is False
    assert first.word_count == 3


def test_comments_are_not_blocks():
    assert load_top_level_nodes("<!-- draft --><p>x</p>")[0].name == "p"


def test_empty_markup_has_no_nodes():
    assert load_top_level_nodes("") == []
    assert parse_article("  ").is_empty


def test_is_image_block_variants():
    """Afbeelding-only: losse <img>, of een container zonder tekst met precies één <img>."""
    assert is_image_block(_tag('<img src="a.png"/>'))
    assert is_image_block(_tag('<p><img src="a.png"/></p>'))
    assert is_image_block(_tag('<figure><a href="/x"><img src="a.png"/></a></figure>'))
    assert not is_image_block(_tag('<p><img src="a.png"/><img src="b.png"/></p>'))
    assert not is_image_block(_tag('<p><img src="a.png"/> Caption</p>'))
    assert not is_image_block(_tag('<table><tr><td><img src="a.png"/></td></tr></table>'))
    assert not is_image_block(_tag('<p></p>'))
