"""
Stage the source tree into a fresh dist directory before the file loop.
"""

import logging
import shutil
from pathlib import Path

from models import BuildConfig
from pipeline.errors import ScanError, WriteError

logger = logging.getLogger(__name__)


class DistStager:
    """Recreates the dist directory and copies the source tree into it."""

    def __init__(self, config: BuildConfig):
        self.src_path = Path(config.src_path)
        self.dist_path = Path(config.dist_path)

    def stage(self) -> Path:
        """Remove any previous dist tree and copy `src` into a new one."""
        if not self.src_path.is_dir():
            raise ScanError("Source directory does not exist", stage="stage", path=self.src_path)

        if self.src_path.resolve() == self.dist_path.resolve():
            raise WriteError("Source and dist directories must differ", stage="stage", path=self.dist_path)

        try:
            if self.dist_path.exists():
                shutil.rmtree(self.dist_path)
                logger.info(f"Removed previous {self.dist_path}")
            shutil.copytree(self.src_path, self.dist_path, copy_function=shutil.copy2)
        except OSError as e:
            logger.error(f"✗ Failed to stage {self.src_path} into {self.dist_path}: {e}")
            raise WriteError(f"Could not stage source tree: {e}", stage="stage", path=self.dist_path) from e

        logger.info(f"✓ Copied /{self.src_path} to /{self.dist_path}")
        return self.dist_path
