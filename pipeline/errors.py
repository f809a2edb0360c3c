"""
Build error taxonomy.
"""

from pathlib import Path
from typing import Optional, Union


class BuildError(Exception):
    """Base exception for build failures. Carries the stage and offending file."""

    def __init__(self, message: str, stage: str = "build", path: Optional[Union[str, Path]] = None):
        self.message = message
        self.stage = stage
        self.path = str(path) if path is not None else None
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.path:
            return f"[{self.stage}] {self.path}: {self.message}"
        return f"[{self.stage}] {self.message}"


class ScanError(BuildError):
    """Raised when the source or output root cannot be read. Fatal."""
    pass


class IncludeResolutionError(BuildError):
    """Raised when an include target cannot be read. Recoverable unless fail-fast is configured."""
    pass


class InlineResolutionError(BuildError):
    """Raised when an inlined local asset cannot be read. Recoverable."""
    pass


class BundleMaterializationError(BuildError):
    """Raised when a bundle member cannot be read while writing the bundle. Fatal."""
    pass


class WriteError(BuildError):
    """Raised when a destination cannot be written. Fatal."""
    pass


class PluginError(BuildError):
    """Raised when a custom transform cannot be loaded. Fatal."""
    pass
