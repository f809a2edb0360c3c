"""
Enumerate the staged dist files the build loop should transform.
"""

import logging
import os
from pathlib import Path, PurePosixPath
from typing import List

from models import BuildConfig
from pipeline.errors import ScanError
from pipeline.paths import compile_patterns, matches_any, to_posix

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"css", "html", "js"}

# Third-party code is likely minified already and outside the site author's control
DEFAULT_EXCLUDE_PATTERNS = (r"(^|/)assets/scripts/vendor(/|$)",)

INCLUDES_DIR = "includes"


class SourceScanner:
    """Walks the dist tree and applies the include/exclude path rules."""

    def __init__(self, config: BuildConfig):
        self.root = Path(config.dist_path)
        self.force_allow = compile_patterns(config.include_paths)
        self.deny = compile_patterns(DEFAULT_EXCLUDE_PATTERNS + tuple(config.exclude_paths))

    def is_allowed(self, relative: str) -> bool:
        """
        Decide whether a dist-relative POSIX path is processed.

        Force-allowed paths always win; otherwise deny patterns win over the
        extension allow-list.
        """
        if matches_any(relative, self.force_allow):
            return True
        if matches_any(relative, self.deny):
            return False
        return PurePosixPath(relative).suffix.lstrip(".").lower() in ALLOWED_EXTENSIONS

    def scan(self) -> List[Path]:
        """Return the files to process, fragments under `includes/` first."""
        if not self.root.is_dir():
            raise ScanError("Output directory does not exist", stage="scan", path=self.root)

        files = []
        try:
            for dirpath, dirnames, filenames in os.walk(self.root, onerror=self._raise):
                dirnames.sort()
                for filename in sorted(filenames):
                    path = Path(dirpath) / filename
                    if self.is_allowed(to_posix(path, self.root)):
                        files.append(path)
        except OSError as e:
            raise ScanError(f"Could not read directory: {e}", stage="scan", path=self.root) from e

        files.sort(key=lambda p: 0 if INCLUDES_DIR in p.relative_to(self.root).parts[:-1] else 1)
        logger.info(f"Found {len(files)} files to process in {self.root}")
        return files

    @staticmethod
    def _raise(error: OSError) -> None:
        raise error
