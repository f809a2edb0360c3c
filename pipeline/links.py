"""
Link stages: add a missing `http://` to bare external domains and mark
navigation links that point at the current page or one of its sections.
"""

import logging
from pathlib import Path
from typing import Optional

from bs4.element import Tag

from models import BuildConfig, FileRecord
from pipeline import dom
from pipeline.base import BuildContext, FileTransform
from pipeline.paths import (
    DEV_HOST, href_segments, is_local_href, link_page_key,
    page_ancestors, page_key, to_posix,
)

logger = logging.getLogger(__name__)

LINK_ATTRS = {"a": "href", "link": "href", "script": "src"}


class LinkProtocolNormalizer(FileTransform):
    """
    Rewrites `href="www.example.com"` to `href="http://www.example.com"`.

    Without a protocol the preview browser resolves such values against the
    local origin (`https://localhost/www.example.com`); only values that
    resolve that way and whose last segment starts with a configured domain
    target (`www`, `cdn`) are rewritten.
    """

    stage = "link-protocol"

    def __init__(self, config: BuildConfig):
        super().__init__(config)
        self.targets = set(config.external_link_targets)

    def transform(self, record: FileRecord, context: Optional[BuildContext]) -> None:
        tree = dom.parse(record.text)
        changed = 0
        for element, attr in LINK_ATTRS.items():
            for el in tree.find_all(element):
                if self._normalize(el, attr, record):
                    changed += 1
        if changed:
            record.text = dom.serialize(tree)

    def normalized(self, value: str) -> Optional[str]:
        """Return the rewritten value, or None when `value` should be left alone."""
        if not value or not value.strip():
            return None
        segments = href_segments(value)
        if DEV_HOST not in segments:
            return None
        last = segments[-1]
        if last.split(".")[0] not in self.targets:
            return None
        return f"http://{last}"

    def _normalize(self, el: Tag, attr: str, record: FileRecord) -> bool:
        value = el.get(attr)
        if not isinstance(value, str):
            return False
        new_value = self.normalized(value)
        if new_value is None:
            return False
        el[attr] = new_value
        logger.info(f"✓ {record.path} - Added 'http://' to [{attr}=\"{value}\"]: {new_value}")
        return True


class ActiveLinkAnnotator(FileTransform):
    """Marks `<a href>` elements for the current page (active) or one of its ancestors (parent-active)."""

    stage = "active-links"

    def __init__(self, config: BuildConfig):
        super().__init__(config)
        self.dist_root = Path(config.dist_path)

    def transform(self, record: FileRecord, context: Optional[BuildContext]) -> None:
        page_path = to_posix(record.path, self.dist_root)
        current = page_key(page_path)
        ancestors = page_ancestors(page_path)

        tree = dom.parse(record.text)
        marked = 0
        for link in tree.find_all("a", href=True):
            state = self.link_state(link["href"], current, ancestors)
            if state:
                self._mark(link, state)
                marked += 1
        if marked:
            record.text = dom.serialize(tree)

    def link_state(self, href: str, current: str, ancestors) -> Optional[str]:
        """Return `active`, `parent-active` or None. Exact match wins over ancestor match."""
        if not is_local_href(href):
            return None
        key = link_page_key(href)
        if key == current:
            return "active"
        if key in ancestors:
            return "parent-active"
        return None

    def _mark(self, link: Tag, state: str) -> None:
        name = self.config.active_name if state == "active" else self.config.parent_active_name
        if self.config.active_link_type == "attribute":
            link[f"data-{name}"] = ""
        else:
            dom.add_class(link, name)
