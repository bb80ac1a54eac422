"""Selector resolution with fallbacks, plus the structural helpers built on it.

:func:`resolve` locates the element(s) a field selector addresses.  Field
selectors are authored against a whole document but are frequently applied
inside a cloned collection item, so resolution degrades in a fixed order:

1. the full selector, searched inside *scope*;
2. only the last whitespace-separated segment, searched inside *scope*;
3. *scope* itself, when it matches the selector;
4. the full selector against the whole document (only when no scope is given).

A miss at every stage returns an empty list.  Callers treat that as "field
absent", never as an error.
"""

import logging
import re
from typing import Callable, List, Optional

import soupsieve as sv
from bs4 import Tag

logger = logging.getLogger(__name__)

ContainerPredicate = Callable[[Tag], bool]

# Class tokens that are state toggles rather than identity (``active``, ``show``, …)
_TRANSIENT_CLASS_RE = re.compile(r"active|show|animate")

# Words that, as the final part of a class token, mark a repeated item wrapper
_ITEM_CONTAINER_WORDS = {"card", "item", "col", "testimonial", "member", "post"}
_TOKEN_SPLIT_RE = re.compile(r"[-_]")


def _select(node: Tag, selector: str) -> List[Tag]:
    if not selector or not selector.strip():
        return []
    try:
        return node.select(selector)
    except sv.SelectorSyntaxError as exc:
        logger.debug("Unusable selector %r: %s", selector, exc)
        return []


def _matches(node: Tag, selector: str) -> bool:
    if not selector or not selector.strip():
        return False
    try:
        return sv.match(selector, node)
    except sv.SelectorSyntaxError as exc:
        logger.debug("Unusable selector %r: %s", selector, exc)
        return False


def resolve(root: Tag, selector: str, scope: Optional[Tag] = None) -> List[Tag]:
    """Return the elements *selector* addresses, applying the fallback order above."""
    if scope is None:
        return _select(root, selector)

    found = _select(scope, selector)
    if found:
        return found

    parts = selector.split()
    if len(parts) > 1:
        found = _select(scope, parts[-1])
        if found:
            return found

    if _matches(scope, selector):
        return [scope]
    return []


def resolve_first(root: Tag, selector: str, scope: Optional[Tag] = None) -> Optional[Tag]:
    found = resolve(root, selector, scope)
    return found[0] if found else None


def class_tokens(tag: Tag) -> List[str]:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return [c for c in classes if c]


def element_signature(tag: Tag) -> str:
    """Return the structural signature ``tag.classA.classB`` (classes sorted)."""
    classes = sorted(class_tokens(tag))
    return f"{tag.name}.{'.'.join(classes)}" if classes else tag.name


def simple_selector(tag: Tag) -> str:
    """Return the field address for *tag*: tag plus its first stable class, or the bare tag."""
    for cls in class_tokens(tag):
        if not _TRANSIENT_CLASS_RE.search(cls):
            return f"{tag.name}.{sv.escape(cls)}"
    return tag.name


def is_item_container(tag: Tag) -> bool:
    """Default container heuristic: ``li`` or a card/item/col/… class token.

    A token qualifies when its last ``-``/``_`` separated part is one of the
    item words (``team-member``, ``blog_post``, ``card``) or when it is a grid
    column (``col-md-4``).  ``card-title`` or ``testimonials`` do not.
    """
    if tag.name == "li":
        return True
    for cls in class_tokens(tag):
        lowered = cls.lower()
        if lowered.startswith("col-"):
            return True
        if _TOKEN_SPLIT_RE.split(lowered)[-1] in _ITEM_CONTAINER_WORDS:
            return True
    return False


def find_item_container(
    element: Tag, predicate: ContainerPredicate = is_item_container
) -> Optional[Tag]:
    """Return the nearest of *element* and its ancestors accepted by *predicate*."""
    node: Optional[Tag] = element
    while isinstance(node, Tag) and node.name != "[document]":
        if node.name in ("html", "body"):
            return None
        if predicate(node):
            return node
        node = node.parent
    return None


def _has_twin(tag: Tag) -> bool:
    parent = tag.parent
    if parent is None:
        return False
    signature = element_signature(tag)
    return any(
        sibling is not tag and element_signature(sibling) == signature
        for sibling in parent.find_all(True, recursive=False)
    )


def find_collection_item(
    element: Tag,
    selector: str,
    predicate: ContainerPredicate = is_item_container,
) -> Optional[Tag]:
    """Return the collection item that *element*, matched by *selector*, belongs to.

    Collection selectors carry the item as their first segment
    (``div.card h3``): the item is the nearest ancestor matching that segment
    which has a sibling with the same structural signature.  When there is
    no such ancestor, *predicate* decides through :func:`find_item_container`.
    """
    parts = selector.split()
    if len(parts) > 1:
        for ancestor in element.parents:
            if not isinstance(ancestor, Tag) or ancestor.name in ("html", "body", "[document]"):
                break
            if _matches(ancestor, parts[0]) and _has_twin(ancestor):
                return ancestor
    return find_item_container(element, predicate)
