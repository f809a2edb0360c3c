"""
Replace `<link inline>` / `<script inline>` references with inline
`<style>` / `<script>` elements holding the referenced file's text.
"""

import logging
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from models import BuildConfig, FileRecord
from pipeline import dom
from pipeline.base import BuildContext, FileTransform
from pipeline.errors import InlineResolutionError
from pipeline.paths import strip_dev_origin

logger = logging.getLogger(__name__)

# element -> (attribute holding the path, replacement element, attributes carried over)
INLINE_TARGETS = {
    "link": ("href", "style", ("media", "nonce")),
    "script": ("src", "script", ("type", "nonce")),
}


class InlineResolver(FileTransform):
    """Embeds local stylesheets and scripts marked for inlining. Disabled in development builds."""

    stage = "inline"

    def __init__(self, config: BuildConfig):
        super().__init__(config)
        self.dist_root = Path(config.dist_path)
        self.marker_attrs = tuple(config.inline_attrs)

    @property
    def enabled(self) -> bool:
        return not self.config.development

    def transform(self, record: FileRecord, context: Optional[BuildContext]) -> None:
        tree = dom.parse(record.text)
        replaced = 0
        for element in INLINE_TARGETS:
            for el in dom.query(tree, dom.get_selector(self.marker_attrs, element)):
                try:
                    if self._replace(tree, el, record):
                        replaced += 1
                except InlineResolutionError as e:
                    logger.error(f"✗ {record.path} - {e}; skipping this element")
                    self._record_warning(context, str(e))

        if replaced:
            record.text = dom.serialize(tree)

    def _replace(self, tree: BeautifulSoup, el: Tag, record: FileRecord) -> bool:
        path_attr, replacement, carried = INLINE_TARGETS[el.name]
        value = strip_dev_origin(el.get(path_attr) or "")
        # External or page-relative references are left alone
        if not value.startswith("/") or value.startswith("//"):
            return False

        source = self.dist_root / value.lstrip("/")
        try:
            text = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InlineResolutionError(f"Could not read {value}: {e}", stage=self.stage, path=record.path) from e

        new_tag = tree.new_tag(replacement)
        for attr in carried:
            if el.has_attr(attr):
                new_tag[attr] = el[attr]
        new_tag.string = text
        el.replace_with(new_tag)
        logger.info(f"✓ {record.path} - Inlined {el.name}: {value}")
        return True
