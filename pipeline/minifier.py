"""
Per-type minification of final file text.
"""

import logging
from typing import Callable, Dict, Optional

import csscompressor
import htmlmin
import rjsmin

from models import FileRecord
from pipeline.base import BuildContext, FileTransform

logger = logging.getLogger(__name__)


def minify_html(text: str) -> str:
    return htmlmin.minify(text, remove_comments=True)


def minify_css(text: str) -> str:
    return csscompressor.compress(text)


def minify_js(text: str) -> str:
    return rjsmin.jsmin(text)


MINIFIERS: Dict[str, Callable[[str], str]] = {
    "html": minify_html,
    "css": minify_css,
    "js": minify_js,
}


def minify_text(text: str, file_type: str) -> str:
    """Minify `text` for `file_type`; unknown types are returned unchanged."""
    minifier = MINIFIERS.get(file_type)
    if minifier is None:
        return text
    return minifier(text)


class SourceMinifier(FileTransform):
    """Minifies HTML, CSS and JS records. Disabled in development builds."""

    stage = "minify"
    allow_types = frozenset(MINIFIERS)

    @property
    def enabled(self) -> bool:
        return not self.config.development

    def transform(self, record: FileRecord, context: Optional[BuildContext]) -> None:
        before = len(record.text)
        record.text = minify_text(record.text, record.extension)
        logger.debug(f"{record.path} - Minified {before} -> {len(record.text)} chars")
