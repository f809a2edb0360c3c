"""
Convert `page.html` into `page/index.html` so URLs can omit the extension.
"""

import logging
from pathlib import Path
from typing import List

from models import BuildConfig
from pipeline.errors import WriteError
from pipeline.paths import compile_patterns, matches_any, to_posix

logger = logging.getLogger(__name__)


class PathMaterializer:
    """Moves flat HTML pages into directory form. Runs after all content stages."""

    stage = "materialize"

    def __init__(self, config: BuildConfig):
        self.dist_root = Path(config.dist_path)
        self.exclude = compile_patterns(config.convert_page_exclude)

    def should_convert(self, path: Path) -> bool:
        if path.suffix.lower() != ".html" or path.name.lower() == "index.html":
            return False
        return not matches_any(to_posix(path, self.dist_root), self.exclude)

    def materialize(self, paths: List[Path]) -> List[Path]:
        """
        Move every eligible page and return `paths` with the moved entries updated.

        Args:
            paths: Output paths from the file loop (non-HTML paths pass through)

        Returns:
            The same list order with `x/page.html` replaced by `x/page/index.html`
        """
        result = []
        for path in paths:
            path = Path(path)
            if not self.should_convert(path):
                result.append(path)
                continue
            result.append(self.convert(path))
        return result

    def convert(self, path: Path) -> Path:
        target = path.with_suffix("") / "index.html"
        if target.exists():
            logger.warning(f"{target} already exists, leaving {path} in place")
            return path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            path.replace(target)
        except OSError as e:
            raise WriteError(f"Could not move page to {target}: {e}", stage=self.stage, path=path) from e
        logger.info(f"✓ /{to_posix(path, self.dist_root)} -> /{to_posix(target, self.dist_root)}")
        return target
