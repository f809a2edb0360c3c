"""
Build driver: stages the source tree into dist and runs the transform chain
over every scanned file, then writes bundles and converts pages to directories.
"""

import logging
from pathlib import Path
from typing import List, Optional

from models import BuildConfig, BuildResult, FileRecord
from pipeline.base import BuildContext, Transform
from pipeline.bundler import AssetBundler, BundleRegistry
from pipeline.errors import BuildError, ScanError, WriteError
from pipeline.includes import IncludeCache, IncludeResolver
from pipeline.inline import InlineResolver
from pipeline.links import ActiveLinkAnnotator, LinkProtocolNormalizer
from pipeline.materializer import PathMaterializer
from pipeline.minifier import SourceMinifier
from pipeline.plugins import load_transforms
from pipeline.scanner import SourceScanner
from pipeline.staging import DistStager
from pipeline.templating import SrcPathRewriter, TemplateStringRenderer

logger = logging.getLogger(__name__)


class BuildDriver:
    """Builds the dist directory from the source directory."""

    def __init__(self, config: BuildConfig):
        self.config = config
        self.include_cache = IncludeCache()
        self.bundle_registry = BundleRegistry()
        self.context = BuildContext(
            config=config,
            include_cache=self.include_cache,
            bundle_registry=self.bundle_registry,
            site_data=dict(config.site_data),
        )

        self.stager = DistStager(config)
        self.scanner = SourceScanner(config)
        self.bundler = AssetBundler(config, self.bundle_registry)
        self.materializer = PathMaterializer(config)

        self.before_transforms = load_transforms(config.plugins.before)
        self.file_transforms = load_transforms(config.plugins.default)
        self.after_transforms = load_transforms(config.plugins.after)

        self.built_files: List[Path] = []

    def chain(self) -> List[Transform]:
        """The per-file transform chain, in execution order."""
        return [
            TemplateStringRenderer(self.config),
            *self.file_transforms,
            IncludeResolver(self.config, self.include_cache),
            InlineResolver(self.config),
            SrcPathRewriter(self.config),
            LinkProtocolNormalizer(self.config),
            ActiveLinkAnnotator(self.config),
            self.bundler,
            SourceMinifier(self.config),
        ]

    def build(self) -> BuildResult:
        """Run a full build. Fatal errors propagate as BuildError subclasses."""
        mode = "development" if self.config.development else "production"
        logger.info(f"Building /{self.config.src_path} -> /{self.config.dist_path} ({mode})")

        self.include_cache.clear()
        self.bundle_registry.clear()
        self.context.warnings.clear()

        self.stager.stage()
        self._run_hooks(self.before_transforms)

        files = self.scanner.scan()
        chain = self.chain()
        processed = []
        for index, path in enumerate(files, start=1):
            self.process_file(path, chain)
            processed.append(path)
            logger.debug(f"[{index}/{len(files)}] {path}")
        logger.info(f"✓ Files modified ({len(processed)})")

        bundles = self.bundler.build()

        if self.config.convert_page_to_directory:
            processed = self.materializer.materialize(processed)

        self._run_hooks(self.after_transforms)

        self.built_files = processed
        return BuildResult(files=processed, bundles=bundles, warnings=list(self.context.warnings))

    def process_file(self, path: Path, chain: Optional[List[Transform]] = None) -> FileRecord:
        """Read one file, run it through the chain and write it back once."""
        record = self.open_record(path)
        for transform in chain if chain is not None else self.chain():
            try:
                result = transform(record, self.context)
            except BuildError:
                raise
            except Exception as e:
                stage = getattr(transform, "stage", type(transform).__name__)
                logger.error(f"✗ {path} - {stage} failed: {e}")
                raise BuildError(str(e), stage=stage, path=path) from e
            if result is not None:
                record = result
        self.write_record(record)
        return record

    def open_record(self, path: Path) -> FileRecord:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ScanError(f"Could not read file: {e}", stage="read", path=path) from e
        return FileRecord.from_path(path, text)

    def write_record(self, record: FileRecord) -> None:
        try:
            record.path.write_text(record.text, encoding="utf-8")
        except OSError as e:
            logger.error(f"✗ Failed to write {record.path}: {e}")
            raise WriteError(f"Could not write file: {e}", stage="write", path=record.path) from e

    def _run_hooks(self, transforms: List[Transform]) -> None:
        for transform in transforms:
            transform(None, self.context)

    def get_built_files(self) -> List[Path]:
        """Get list of files processed by the last build (after directory conversion)."""
        return list(self.built_files)
