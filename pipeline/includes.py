"""
Replace include-marker elements (`<div data-include="/includes/footer">`) with
the fragment they reference.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from bs4.element import Tag

from models import BuildConfig, FileRecord
from pipeline import dom
from pipeline.base import BuildContext, FileTransform
from pipeline.errors import IncludeResolutionError
from pipeline.paths import flat_page_path, include_target, to_posix

logger = logging.getLogger(__name__)

# Fragment elements that never receive the marker's extra attributes
NON_CONTENT_TAGS = {"description", "link", "meta", "script", "style", "template", "title"}


class IncludeCache:
    """Build-scoped map of resolved include path -> fragment text. Each path is read at most once."""

    def __init__(self):
        self._entries: Dict[Path, str] = {}
        self.read_count = 0

    def __contains__(self, path: Path) -> bool:
        return Path(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, path: Path, fallback: Optional[Path] = None) -> str:
        """
        Return the fragment text for `path`, reading it from disk on first use.

        `fallback` is read instead when `path` does not exist; the entry is
        still stored under `path`.
        """
        path = Path(path)
        if path in self._entries:
            return self._entries[path]

        source = path
        if not path.is_file() and fallback is not None and Path(fallback).is_file():
            source = Path(fallback)

        try:
            text = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise IncludeResolutionError(f"Could not read include target: {e}", stage="include", path=path) from e

        self.read_count += 1
        self._entries[path] = text
        return text

    def clear(self) -> None:
        self._entries.clear()


class IncludeResolver(FileTransform):
    """Splices fragment content in place of include markers. Markers inside fragments are not resolved."""

    stage = "include"

    def __init__(self, config: BuildConfig, cache: IncludeCache):
        super().__init__(config)
        self.cache = cache
        self.dist_root = Path(config.dist_path)
        self.marker_attrs = tuple(config.include_attrs)

    def transform(self, record: FileRecord, context: Optional[BuildContext]) -> None:
        tree = dom.parse(record.text)
        markers = [el for el in dom.query(tree, dom.get_selector(self.marker_attrs))
                   if dom.first_attr(el, self.marker_attrs)]
        if not markers:
            return

        for marker in markers:
            try:
                self._replace(marker, record)
            except IncludeResolutionError as e:
                if self.config.fail_on_missing_include:
                    raise
                logger.error(f"✗ {record.path} - {e}; leaving include marker in place")
                self._record_warning(context, str(e))

        record.text = dom.serialize(tree)

    def resolve(self, value: str) -> Path:
        return include_target(self.dist_root, value, self.config.convert_page_to_directory)

    def _replace(self, marker: Tag, record: FileRecord) -> None:
        value = dom.first_attr(marker, self.marker_attrs)
        target = self.resolve(value)
        fallback = flat_page_path(target) if self.config.convert_page_to_directory else None
        content = self.cache.get(target, fallback=fallback)

        inserted = dom.insert_html_after(marker, content)
        self._copy_attributes(marker, inserted)
        marker.decompose()
        logger.info(f"✓ {record.path} - Replaced include: /{to_posix(target, self.dist_root)}")

    def _copy_attributes(self, marker: Tag, inserted: List) -> None:
        """Copy the marker's non-marker attributes onto the first content element of the fragment."""
        target = next((node for node in inserted
                       if isinstance(node, Tag) and node.name not in NON_CONTENT_TAGS), None)
        if target is None:
            return
        for name, value in marker.attrs.items():
            if name not in self.marker_attrs:
                target[name] = value
