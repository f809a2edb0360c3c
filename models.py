"""
Pydantic models for the static-site build pipeline.
"""

from pathlib import Path
from typing import Dict, Any, List, Tuple, Literal
from pydantic import BaseModel, ConfigDict, Field


class FileRecord(BaseModel):
    """One file being transformed. `text` is the only field transforms overwrite."""
    path: Path
    name: str
    extension: str
    text: str = ""

    @classmethod
    def from_path(cls, path: Path, text: str = "") -> "FileRecord":
        """Build a record from a path, splitting out name and lowercase extension."""
        path = Path(path)
        return cls(
            path=path,
            name=path.stem,
            extension=path.suffix.lstrip(".").lower(),
            text=text,
        )


class BundleEntry(BaseModel):
    """Model for a single registered bundle member."""
    path: str
    minify: bool = True


class BuildResult(BaseModel):
    """Outcome of a full build."""
    files: List[Path] = Field(default_factory=list)
    bundles: List[Path] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class PluginHooks(BaseModel):
    """Dotted import paths (`package.module:attr`) of custom transforms per build position."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    before: Tuple[str, ...] = ()
    default: Tuple[str, ...] = ()
    after: Tuple[str, ...] = ()


class BuildConfig(BaseModel):
    """Immutable build configuration passed into every pipeline component."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Directories
    src_path: Path = Path("src")
    dist_path: Path = Path("dist")

    # Scanner rules (regexes matched against dist-relative POSIX paths)
    include_paths: Tuple[str, ...] = ()
    exclude_paths: Tuple[str, ...] = ()

    # `about.html` -> `about/index.html`
    convert_page_to_directory: bool = True
    convert_page_exclude: Tuple[str, ...] = ()

    # Marker attributes
    include_attrs: Tuple[str, ...] = ("include", "data-include")
    inline_attrs: Tuple[str, ...] = ("inline", "data-inline")
    bundle_attrs: Tuple[str, ...] = ("bundle", "data-bundle")
    no_minify_attrs: Tuple[str, ...] = ("no-minify", "data-no-minify")

    # Bundles are written to <dist>/<bundle_dist_path>/bundle-<group>.<type>
    bundle_dist_path: str = "assets/bundle"
    bundle_in_development: bool = False

    # Active link markers
    active_link_type: Literal["class", "attribute"] = "class"
    active_name: str = "active"
    parent_active_name: str = "parent-active"

    # Bare-domain link targets, matched against the name part of the last path segment
    external_link_targets: Tuple[str, ...] = ("www", "cdn")

    development: bool = False
    fail_on_missing_include: bool = False

    site_data: Dict[str, Any] = Field(default_factory=dict)
    plugins: PluginHooks = Field(default_factory=PluginHooks)

    @property
    def bundle_dir(self) -> Path:
        return self.dist_path / self.bundle_dist_path.strip("/")

    def bundle_url(self, group: str, asset_type: str) -> str:
        """Root-relative URL the pages use to reference a bundle artifact."""
        return f"/{self.bundle_dist_path.strip('/')}/bundle-{group}.{asset_type}"
