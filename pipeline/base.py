"""
Transform interface shared by built-in stages and custom user transforms.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Protocol, TYPE_CHECKING

from models import BuildConfig, FileRecord

if TYPE_CHECKING:
    from pipeline.bundler import BundleRegistry
    from pipeline.includes import IncludeCache


@dataclass
class BuildContext:
    """Build-scoped services handed to custom transforms."""
    config: BuildConfig
    include_cache: "IncludeCache"
    bundle_registry: "BundleRegistry"
    site_data: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        """Record a non-fatal problem for the build summary."""
        self.warnings.append(message)


class Transform(Protocol):
    """A transform takes a record and the build context and returns a record (or mutates in place and returns None)."""

    def __call__(self, record: Optional[FileRecord], context: BuildContext) -> Optional[FileRecord]:
        ...


class FileTransform:
    """Base for built-in stages: gates on file type and delegates to `transform()`."""

    stage = "transform"
    allow_types: FrozenSet[str] = frozenset({"html"})

    def __init__(self, config: BuildConfig):
        self.config = config

    @property
    def enabled(self) -> bool:
        return True

    def accepts(self, record: FileRecord) -> bool:
        return self.enabled and record.extension in self.allow_types

    def __call__(self, record: FileRecord, context: Optional[BuildContext] = None) -> FileRecord:
        if self.accepts(record):
            self.transform(record, context)
        return record

    def transform(self, record: FileRecord, context: Optional[BuildContext]) -> None:
        raise NotImplementedError

    def _record_warning(self, context: Optional[BuildContext], message: str) -> None:
        if context is not None:
            context.warn(message)
