"""Tests for app.services.selector."""

import copy

from bs4 import BeautifulSoup

from app.services.selector import (
    element_signature,
    find_collection_item,
    find_item_container,
    is_item_container,
    resolve,
    resolve_first,
    simple_selector,
)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


_CARDS = """
<div class="cards">
  <div class="card"><div class="card-body"><h3 class="title">One</h3><p>First card</p></div></div>
  <div class="card"><div class="card-body"><h3 class="title">Two</h3><p>Second card</p></div></div>
</div>
"""


# ---------------------------------------------------------------------------
# Fallback order
# ---------------------------------------------------------------------------

class TestResolve:
    def test_full_selector_within_scope(self):
        soup = _soup(_CARDS)
        second = soup.select("div.card")[1]
        assert resolve_first(soup, "h3.title", scope=second).get_text() == "Two"

    def test_last_segment_within_detached_clone(self):
        soup = _soup(_CARDS)
        clone = copy.copy(soup.select_one("div.card"))
        found = resolve(soup, ".cards h3.title", scope=clone)
        assert len(found) == 1
        assert found[0].get_text() == "One"

    def test_scope_itself_when_it_matches(self):
        soup = _soup('<ul><li class="tag">Python</li><li class="tag">Go</li></ul>')
        item = soup.select("li.tag")[1]
        assert resolve_first(soup, "li.tag", scope=item) is item

    def test_descendant_preferred_over_scope_itself(self):
        soup = _soup('<div class="box"><div class="box">inner</div></div>')
        outer = soup.select_one("div.box")
        assert resolve_first(soup, "div.box", scope=outer) is not outer

    def test_whole_document_without_scope(self):
        soup = _soup(_CARDS)
        assert [t.get_text() for t in resolve(soup, "h3.title")] == ["One", "Two"]

    def test_miss_is_empty(self):
        soup = _soup(_CARDS)
        assert resolve(soup, "h4.missing") == []
        assert resolve_first(soup, "h4.missing") is None
        assert resolve_first(soup, "h4.missing", scope=soup.select_one("div.card")) is None

    def test_invalid_selector_is_a_miss(self):
        soup = _soup(_CARDS)
        assert resolve(soup, "h3[") == []
        assert resolve(soup, "h3[", scope=soup.select_one("div.card")) == []

    def test_empty_selector_is_a_miss(self):
        soup = _soup(_CARDS)
        assert resolve(soup, "") == []


# ---------------------------------------------------------------------------
# Addressing helpers
# ---------------------------------------------------------------------------

class TestSignatureAndSelector:
    def test_signature_sorts_classes(self):
        tag = _soup('<div class="b a"></div>').div
        assert element_signature(tag) == "div.a.b"

    def test_signature_without_classes(self):
        assert element_signature(_soup("<p>x</p>").p) == "p"

    def test_simple_selector_skips_transient_classes(self):
        tag = _soup('<div class="active card"></div>').div
        assert simple_selector(tag) == "div.card"

    def test_simple_selector_bare_tag(self):
        assert simple_selector(_soup("<span>x</span>").span) == "span"
        assert simple_selector(_soup('<div class="show"></div>').div) == "div"


# ---------------------------------------------------------------------------
# Container heuristic
# ---------------------------------------------------------------------------

class TestItemContainer:
    def _tag(self, cls: str):
        return _soup(f'<div class="{cls}"></div>').div

    def test_list_items(self):
        assert is_item_container(_soup("<ul><li>x</li></ul>").li)

    def test_item_words(self):
        for cls in ("card", "testimonial", "team-member", "blog_post", "list-item", "col-md-4"):
            assert is_item_container(self._tag(cls)), cls

    def test_non_item_words(self):
        for cls in ("card-title", "card-body", "testimonials", "hero", "row"):
            assert not is_item_container(self._tag(cls)), cls

    def test_finds_nearest_container(self):
        soup = _soup(_CARDS)
        title = soup.select_one("h3.title")
        container = find_item_container(title)
        assert container is not None
        assert container.get("class") == ["card"]

    def test_element_itself_can_be_container(self):
        soup = _soup("<ul><li>One</li></ul>")
        assert find_item_container(soup.li) is soup.li

    def test_none_when_no_container(self):
        soup = _soup('<div class="features"><h3>Fast</h3></div>')
        assert find_item_container(soup.h3) is None

    def test_custom_predicate(self):
        soup = _soup('<div class="grid"><article class="entry"><h3>A</h3></article></div>')
        container = find_item_container(soup.h3, lambda tag: tag.name == "article")
        assert container is soup.article


class TestCollectionItem:
    def test_item_named_by_first_segment(self):
        soup = _soup(_CARDS)
        title = soup.select_one("h3.title")
        assert find_collection_item(title, "div.card h3.title").get("class") == ["card"]

    def test_grid_column_wins_over_inner_card(self):
        soup = _soup(
            '<div class="row">'
            '<div class="col-md-4"><div class="card"><h3>One</h3></div></div>'
            '<div class="col-md-4"><div class="card"><h3>Two</h3></div></div>'
            "</div>"
        )
        item = find_collection_item(soup.h3, "div.col-md-4 h3")
        assert item.get("class") == ["col-md-4"]
        assert find_item_container(soup.h3).get("class") == ["card"]

    def test_single_segment_uses_predicate(self):
        soup = _soup(_CARDS)
        title = soup.select_one("h3.title")
        assert find_collection_item(title, "h3.title").get("class") == ["card"]

    def test_wrapper_without_twin_is_not_the_item(self):
        soup = _soup('<ul class="tags"><li class="tag">Python</li><li class="tag">Go</li></ul>')
        assert find_collection_item(soup.li, "ul.tags li.tag") is soup.li

    def test_none_when_nothing_repeats(self):
        soup = _soup('<div class="features"><h3>Fast</h3></div>')
        assert find_collection_item(soup.h3, "div.features h3") is None
