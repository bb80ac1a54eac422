import re

from bs4 import BeautifulSoup, Comment, Tag

from app.services.errors import InvalidDocumentError

# Matches `display:none` or `visibility:hidden` in inline style attributes
_HIDDEN_STYLE_RE = re.compile(
    r"(display\s*:\s*none|visibility\s*:\s*hidden)", re.IGNORECASE
)

# Tags whose entire subtree carries no editable content
_REMOVE_TAGS = {
    "script",
    "style",
    "noscript",
    "iframe",
    "link",
    "meta",
    "head",
    # Vector graphics are markup noise for schema inference
    "svg",
    "template",
}

# Attributes that structural analysis relies on; all others are dropped
_KEEP_ATTRS = {"id", "class", "href", "src", "alt"}


def parse_html(html: str) -> BeautifulSoup:
    """Parse *html* with lxml, rejecting input that yields no elements."""
    if not html or not html.strip():
        raise InvalidDocumentError("The HTML document is empty.")
    soup = BeautifulSoup(html, "lxml")
    if soup.find(True) is None:
        raise InvalidDocumentError("The HTML document contains no elements.")
    return soup


def clean_html(html: str) -> BeautifulSoup:
    """Return a stripped-down tree of *html* suitable for structural analysis.

    Scripts, styles, ``<head>`` and other non-content subtrees are removed
    together with comments and elements hidden by inline CSS.  Surviving
    elements keep only ``id``, ``class``, ``href``, ``src`` and ``alt``.
    """
    soup = parse_html(html)

    for tag in soup.find_all(_REMOVE_TAGS):
        # nested matches go with their removed ancestor
        if not tag.decomposed:
            tag.decompose()

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    for tag in soup.find_all(True):
        if not isinstance(tag, Tag) or tag.decomposed:
            continue
        inline_style = tag.get("style", "")
        if inline_style and _HIDDEN_STYLE_RE.search(inline_style):
            tag.decompose()
            continue
        junk = [attr for attr in tag.attrs if attr not in _KEEP_ATTRS]
        for attr in junk:
            del tag[attr]

    return soup
