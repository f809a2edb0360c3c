"""
Plain-text stages: `${key}` site-data substitution and the development-only
`/src` path rewrite for `@import url()` references.
"""

import logging
import re
from typing import Any, Dict, Optional

from models import BuildConfig, FileRecord
from pipeline.base import BuildContext, FileTransform

logger = logging.getLogger(__name__)

TEMPLATE_VAR_RE = re.compile(r"\$\{\s*([A-Za-z_][\w.-]*)\s*\}")


class TemplateStringRenderer(FileTransform):
    """Replaces `${key}` with values from the site data. Unknown keys are left as written."""

    stage = "template"

    def transform(self, record: FileRecord, context: Optional[BuildContext]) -> None:
        data = context.site_data if context is not None else self.config.site_data
        record.text = render_template_vars(record.text, data, record)


def render_template_vars(text: str, data: Dict[str, Any], record: Optional[FileRecord] = None) -> str:
    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key in data:
            return str(data[key])
        logger.debug(f"{record.path if record else ''} - No site data for ${{{key}}}, leaving as is")
        return match.group(0)

    return TEMPLATE_VAR_RE.sub(replace, text)


class SrcPathRewriter(FileTransform):
    """
    Drops the leading `/<src>` from `url(/src/...)`-style references in development.

    Inlining is skipped in development, so `@import` paths written against
    the source tree must point into dist instead.
    """

    stage = "src-path"
    allow_types = frozenset({"css", "html"})

    def __init__(self, config: BuildConfig):
        super().__init__(config)
        src_name = re.escape(config.src_path.name)
        self.pattern = re.compile(rf"(\(\s*['\"]?)/{src_name}(?=/)")

    @property
    def enabled(self) -> bool:
        return self.config.development

    def transform(self, record: FileRecord, context: Optional[BuildContext]) -> None:
        text, count = self.pattern.subn(r"\1", record.text)
        if count:
            record.text = text
            logger.info(f"✓ {record.path} - Removed {count} /{self.config.src_path.name} path(s)")
