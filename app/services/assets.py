"""Asset path resolution for documents whose assets were stored flat.

Uploaded sites often lose their directory structure: ``css/style.css`` ends
up as ``style.css`` at the content root.  The resolver keeps a reference
untouched when it points at an existing file and otherwise falls back to the
same basename at the root.  It never invents a path that does not exist.
"""

import posixpath
from pathlib import Path
from typing import List, Optional, Union

from bs4 import BeautifulSoup

_REMOTE_PREFIXES = ("http:", "https:", "//", "/", "data:", "#", "mailto:", "tel:", "javascript:")

# (css selector, attribute) pairs for asset references rewritten in previews
_ASSET_ATTRS = (
    ("link[href]", "href"),
    ("script[src]", "src"),
    ("img[src]", "src"),
)


def is_local_path(path: str) -> bool:
    """Return True for a relative reference that should exist under the content root."""
    path = (path or "").strip()
    return bool(path) and not path.lower().startswith(_REMOTE_PREFIXES)


def _strip_query(path: str) -> str:
    return path.split("#", 1)[0].split("?", 1)[0]


def resolve_asset_path(
    path: str,
    asset_root: Optional[Union[Path, str]],
    base_dir: str = "",
) -> str:
    """Return the reference to use for *path* given the files under *asset_root*.

    Args:
        path:       Reference as written in the document (``img/logo.png``).
        asset_root: Content root directory, or ``None`` to disable resolution.
        base_dir:   Sub-directory of the root that the document lives in.
    """
    if asset_root is None or not is_local_path(path):
        return path

    root = Path(asset_root)
    clean = _strip_query(path.strip())
    if not clean:
        return path

    if (root / base_dir / clean).is_file():
        return path

    basename = posixpath.basename(clean.replace("\\", "/"))
    if basename and (root / basename).is_file():
        return basename
    return path


def rewrite_asset_links(
    soup: BeautifulSoup,
    asset_root: Optional[Union[Path, str]],
    base_dir: str = "",
) -> int:
    """Apply :func:`resolve_asset_path` to stylesheet, script and image references.

    Returns the number of attributes rewritten.
    """
    if asset_root is None:
        return 0
    rewritten = 0
    for selector, attr in _ASSET_ATTRS:
        for tag in soup.select(selector):
            original = str(tag.get(attr, ""))
            resolved = resolve_asset_path(original, asset_root, base_dir)
            if resolved != original:
                tag[attr] = resolved
                rewritten += 1
    return rewritten


def inject_base_href(soup: BeautifulSoup, href: str) -> None:
    """Point relative references at *href* by adding (or updating) ``<base>`` in ``<head>``."""
    head = soup.head
    if head is None:
        head = soup.new_tag("head")
        container = soup.html or soup
        container.insert(0, head)

    existing = head.find("base")
    if existing is not None:
        existing["href"] = href
        return
    head.insert(0, soup.new_tag("base", href=href))


def collect_local_assets(soup: BeautifulSoup) -> List[str]:
    """Return the local asset references in *soup*, without query or fragment, in order."""
    seen: set = set()
    assets: List[str] = []
    for selector, attr in _ASSET_ATTRS:
        for tag in soup.select(selector):
            ref = str(tag.get(attr, ""))
            if not is_local_path(ref):
                continue
            clean = _strip_query(ref.strip())
            if clean and clean not in seen:
                seen.add(clean)
                assets.append(clean)
    return assets
