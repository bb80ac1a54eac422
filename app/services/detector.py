"""Structural pattern detection: infer collections and singletons from plain HTML.

:func:`detect_candidates` walks a document and proposes schema members
without any external hints.  It only *proposes*: names are raw and may
collide, and :func:`app.services.schema.assemble_schema` turns the candidate
list into the canonical schema.

Collections
-----------
Every element with more than one child has its children grouped by
structural signature (``tag.sorted.classes``).  A group of two or more
siblings whose first member carries an image or some text is promoted, named
after its first meaningful class (``testimonial`` → ``testimonial_list``) and
given the fields discovered inside its first member.  Field selectors start
with the member itself (``div.card h3``) so that matches outside the
collection are never mistaken for items.

Singletons
----------
``header``, ``footer``, ``section`` elements with an ``id`` and any element
whose ``id`` mentions ``hero`` or ``about`` are unique regions, named after
their ``id`` or, without one, their tag and position (``footer_2``).  Their field
selectors are anchored to the region (``#hero h1``) because singletons are
resolved against the whole document.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Tuple, Union

import soupsieve as sv
from bs4 import BeautifulSoup, Tag

from app.models.schema import FieldType
from app.services.naming import sanitize, unique_name
from app.services.selector import class_tokens, element_signature, simple_selector

logger = logging.getLogger(__name__)

CandidateKind = Literal["collection", "singleton"]

# Children that never form content groups
_IGNORED_CHILD_TAGS = {"script", "style", "link", "meta"}

# Class tokens describing layout rather than content
_LAYOUT_CLASS_RE = re.compile(r"^col$|col-|row|grid|flex")

_SINGLETON_ANCHORS = 'header, footer, section[id], [id*="hero"], [id*="about"]'

_MAX_IMAGES = 4
_MAX_PARAGRAPHS = 4
_MIN_PARAGRAPH_CHARS = 10


@dataclass(frozen=True)
class FieldCandidate:
    name: str
    type: FieldType
    selector: str


@dataclass(frozen=True)
class Candidate:
    """A proposed schema member, before name sanitization and deduplication."""

    kind: CandidateKind
    base_name: str
    fields: Tuple[FieldCandidate, ...] = field(default_factory=tuple)
    signature: str = ""


# ---------------------------------------------------------------------------
# Field discovery
# ---------------------------------------------------------------------------

def discover_fields(root: Tag, prefix: str = "") -> List[FieldCandidate]:
    """Collect the content fields inside *root*, in fixed priority order.

    Images first (at most four), then every heading, then the first four
    paragraphs that hold more than ten characters of text, then call-to-action
    links and buttons.  Names are unique within *root* only.
    """
    used: set = set()
    fields: List[FieldCandidate] = []

    def add(base: str, field_type: FieldType, element: Tag) -> None:
        fields.append(
            FieldCandidate(
                name=unique_name(base, used),
                type=field_type,
                selector=prefix + simple_selector(element),
            )
        )

    for img in root.find_all("img", limit=_MAX_IMAGES):
        add("image", FieldType.IMAGE, img)

    for heading in root.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
        add("title", FieldType.TEXT, heading)

    for paragraph in root.find_all("p", limit=_MAX_PARAGRAPHS):
        if len(paragraph.get_text().strip()) > _MIN_PARAGRAPH_CHARS:
            add("description", FieldType.RICH_TEXT, paragraph)

    for cta in root.select("a.btn, button"):
        add("cta_text", FieldType.TEXT, cta)

    return fields


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------

def _group_children(element: Tag) -> Dict[str, List[Tag]]:
    groups: Dict[str, List[Tag]] = {}
    for child in element.find_all(True, recursive=False):
        if child.name in _IGNORED_CHILD_TAGS:
            continue
        groups.setdefault(element_signature(child), []).append(child)
    return groups


def _has_content(element: Tag) -> bool:
    return element.find("img") is not None or bool(element.get_text().strip())


def _collection_name(first: Tag, ordinal: int) -> str:
    for cls in class_tokens(first):
        if not _LAYOUT_CLASS_RE.search(cls):
            return f"{cls}_list"
    return f"collection_{ordinal}"


def _detect_collections(soup: BeautifulSoup) -> List[Candidate]:
    collections: List[Candidate] = []
    for element in soup.find_all(True):
        if len(element.find_all(True, recursive=False)) < 2:
            continue
        for signature, members in _group_children(element).items():
            if len(members) < 2:
                continue
            first = members[0]
            if not _has_content(first):
                logger.debug("Skipping layout-only group %s", signature)
                continue
            fields = discover_fields(first, prefix=simple_selector(first) + " ")
            if not fields:
                logger.debug("Skipping group %s: no fields discovered", signature)
                continue
            collections.append(
                Candidate(
                    kind="collection",
                    base_name=_collection_name(first, len(collections)),
                    fields=tuple(fields),
                    signature=signature,
                )
            )
    return collections


# ---------------------------------------------------------------------------
# Singletons
# ---------------------------------------------------------------------------

def _anchor_selector(element: Tag) -> str:
    element_id = element.get("id")
    if element_id:
        return f"#{sv.escape(str(element_id))}"
    return element.name


def _detect_singletons(soup: BeautifulSoup, claimed: set) -> List[Candidate]:
    singletons: List[Candidate] = []
    for ordinal, element in enumerate(soup.select(_SINGLETON_ANCHORS)):
        base_name = str(element.get("id") or f"{element.name}_{ordinal}")
        if sanitize(base_name) in claimed:
            logger.debug("Singleton %s already claimed by a collection", base_name)
            continue
        fields = discover_fields(element, prefix=_anchor_selector(element) + " ")
        if not fields:
            continue
        singletons.append(
            Candidate(
                kind="singleton",
                base_name=base_name,
                fields=tuple(fields),
                signature=element_signature(element),
            )
        )
    return singletons


def detect_candidates(document: Union[BeautifulSoup, str]) -> List[Candidate]:
    """Return collection candidates followed by singleton candidates, in document order."""
    soup = BeautifulSoup(document, "lxml") if isinstance(document, str) else document
    collections = _detect_collections(soup)
    claimed = {sanitize(c.base_name) for c in collections}
    singletons = _detect_singletons(soup, claimed)
    logger.info(
        "Detected %d collection(s) and %d singleton(s)", len(collections), len(singletons)
    )
    return collections + singletons
