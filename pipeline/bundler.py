"""
Bundle `<link bundle="group">` / `<script bundle="group">` assets.

Phase A (`collect`, per HTML file): register each marked asset under its
group, drop the individual elements and put one bundle reference where the
last member of the group sat, so anything below it still loads after the bundle.

Phase B (`build`, once after the file loop): concatenate every group's
members in first-registration order and write `bundle-<group>.<type>`.
"""

import logging
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from models import BuildConfig, BundleEntry, FileRecord
from pipeline import dom
from pipeline.base import BuildContext, FileTransform
from pipeline.errors import BundleMaterializationError, WriteError
from pipeline.minifier import minify_text
from pipeline.paths import strip_dev_origin

logger = logging.getLogger(__name__)

# asset type -> (element, attribute holding the path)
BUNDLE_TARGETS = {
    "css": ("link", "href"),
    "js": ("script", "src"),
}


def group_key(raw: str) -> str:
    """`Main Vendor` -> `main-vendor`."""
    return raw.strip().replace(" ", "-").lower()


class BundleRegistry:
    """Build-scoped `(type, group) -> [BundleEntry]`, deduplicated by path, in first-seen order."""

    def __init__(self):
        self._groups: "OrderedDict[Tuple[str, str], List[BundleEntry]]" = OrderedDict()

    def add(self, asset_type: str, group: str, path: str, minify: bool = True) -> bool:
        """Register `path` in the group. Returns False when it was already there."""
        entries = self._groups.setdefault((asset_type, group), [])
        if any(entry.path == path for entry in entries):
            return False
        entries.append(BundleEntry(path=path, minify=minify))
        return True

    def entries(self, asset_type: str, group: str) -> List[BundleEntry]:
        return list(self._groups.get((asset_type, group), []))

    def groups(self) -> Iterator[Tuple[str, str, List[BundleEntry]]]:
        for (asset_type, group), entries in self._groups.items():
            yield asset_type, group, list(entries)

    def __len__(self) -> int:
        return len(self._groups)

    def clear(self) -> None:
        self._groups.clear()


class AssetBundler(FileTransform):
    """Collects bundle members from pages and materializes the bundle files."""

    stage = "bundle"

    def __init__(self, config: BuildConfig, registry: BundleRegistry):
        super().__init__(config)
        self.registry = registry
        self.marker_attrs = tuple(config.bundle_attrs)
        self.no_minify_attrs = tuple(config.no_minify_attrs)

    @property
    def enabled(self) -> bool:
        return not self.config.development or self.config.bundle_in_development

    # Phase A
    # -----------------------------

    def transform(self, record: FileRecord, context: Optional[BuildContext]) -> None:
        self.collect(record)

    def collect(self, record: FileRecord) -> None:
        tree = dom.parse(record.text)
        changed = False
        for asset_type, (element, path_attr) in BUNDLE_TARGETS.items():
            targets = [el for el in dom.query(tree, dom.get_selector(self.marker_attrs, element))
                       if dom.first_attr(el, self.marker_attrs)]
            if targets:
                self._group_and_insert(tree, targets, asset_type, element, path_attr, record)
                changed = True
        if changed:
            record.text = dom.serialize(tree)

    def _group_and_insert(self, tree: BeautifulSoup, targets: List[Tag], asset_type: str,
                          element: str, path_attr: str, record: FileRecord) -> None:
        # Position of each element within its group on this page
        positions: List[Tuple[Tag, str, int]] = []
        counts: Dict[str, int] = {}
        for el in targets:
            group = group_key(dom.first_attr(el, self.marker_attrs))
            path = strip_dev_origin(el.get(path_attr) or "")
            minify = not dom.has_any_attr(el, self.no_minify_attrs)
            if path:
                if self.registry.add(asset_type, group, path, minify):
                    logger.debug(f"{record.path} - Added {path} to bundle '{group}' ({asset_type})")
            else:
                logger.warning(f"{record.path} - <{element} {path_attr}> missing on bundle '{group}' member, skipping")
            positions.append((el, group, counts.get(group, 0)))
            counts[group] = counts.get(group, 0) + 1

        for el, group, index in positions:
            if index == counts[group] - 1:
                el.insert_before(self._bundle_tag(tree, group, asset_type, element))
                logger.info(f"✓ {record.path} - Inserted bundle: {self.config.bundle_url(group, asset_type)}")
            el.decompose()

    def _bundle_tag(self, tree: BeautifulSoup, group: str, asset_type: str, element: str) -> Tag:
        url = self.config.bundle_url(group, asset_type)
        if element == "script":
            return tree.new_tag("script", src=url)
        return tree.new_tag("link", rel="stylesheet", href=url)

    # Phase B
    # -----------------------------

    def build(self) -> List[Path]:
        """Write one file per registered group. Must run after every page was collected."""
        written = []
        if not len(self.registry):
            return written

        bundle_dir = self.config.bundle_dir
        try:
            bundle_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(f"Could not create bundle directory: {e}", stage=self.stage, path=bundle_dir) from e

        for asset_type, group, entries in self.registry.groups():
            written.append(self.build_bundle(asset_type, group, entries))
        return written

    def build_bundle(self, asset_type: str, group: str, entries: List[BundleEntry]) -> Path:
        target = self.config.bundle_dir / f"bundle-{group}.{asset_type}"
        # Concatenation order is execution/cascade order
        parts = [self._read_member(entry, asset_type, target) for entry in entries]
        try:
            target.write_text("".join(parts), encoding="utf-8")
        except OSError as e:
            raise WriteError(f"Could not write bundle: {e}", stage=self.stage, path=target) from e
        logger.info(f"✓ Built {target} ({len(entries)} files)")
        return target

    def _read_member(self, entry: BundleEntry, asset_type: str, target: Path) -> str:
        source = Path(self.config.src_path) / entry.path.lstrip("/")
        try:
            text = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"✗ Could not read bundle member {entry.path}: {e}")
            raise BundleMaterializationError(
                f"Could not read bundle member {entry.path} ({source}): {e}",
                stage=self.stage, path=target,
            ) from e
        return minify_text(text, asset_type) if entry.minify else text
