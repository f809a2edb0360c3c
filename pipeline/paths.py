"""
Path helpers shared by the pipeline transforms.
"""

import re
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Union
from urllib.parse import urljoin, urlparse

# Origin that pages are resolved against during local preview
DEV_ORIGIN = "https://localhost/"
DEV_HOST = "localhost"


def to_posix(path: Union[str, Path], root: Optional[Path] = None) -> str:
    """Return `path` as a POSIX string, relative to `root` when given."""
    path = Path(path)
    if root is not None:
        try:
            path = path.relative_to(root)
        except ValueError:
            pass
    return path.as_posix()


def compile_patterns(patterns: Iterable[str]) -> List[re.Pattern]:
    """Compile user patterns, raising ValueError with the offending pattern."""
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ValueError(f"Invalid path pattern '{pattern}': {e}") from e
    return compiled


def matches_any(value: str, patterns: Iterable[re.Pattern]) -> bool:
    return any(p.search(value) for p in patterns)


def strip_dev_origin(value: str) -> str:
    """Drop anything up to and including `localhost` (e.g. `https://localhost/css/a.css` -> `/css/a.css`)."""
    if DEV_HOST not in value:
        return value
    return value.split(DEV_HOST)[-1]


def resolve_href(value: str) -> str:
    """Resolve an attribute value the way the preview browser would."""
    return urljoin(DEV_ORIGIN, value.strip())


def href_segments(value: str) -> List[str]:
    """Split a resolved href on `/`, dropping empty segments. Unparseable hrefs have none."""
    try:
        resolved = resolve_href(value)
    except ValueError:
        return []
    return [s for s in resolved.split("/") if s]


def is_local_href(value: str) -> bool:
    """True for relative, root-relative and dev-origin hrefs that point at a page."""
    value = value.strip()
    if not value or value.startswith("#"):
        return False
    try:
        parsed = urlparse(resolve_href(value))
        return parsed.scheme in ("http", "https") and parsed.hostname == DEV_HOST
    except ValueError:
        # e.g. "http://[oops" (invalid IPv6 host)
        return False


def page_key(path: Union[str, PurePosixPath]) -> str:
    """
    Reduce a page path to the name used for active-link comparison.

    `docs/guide/intro.html` -> `intro`, `docs/guide/index.html` -> `guide`,
    `index.html` (site root) -> `/`.
    """
    parts = [p for p in str(path).split("/") if p]
    if not parts:
        return "/"
    name = parts[-1].split(".")[0]
    if name == "index":
        return parts[-2] if len(parts) > 1 else "/"
    return name


def link_page_key(href: str) -> str:
    """Page key of an href, ignoring origin, query string and fragment."""
    return page_key(urlparse(resolve_href(href)).path)


def page_ancestors(path: Union[str, PurePosixPath]) -> List[str]:
    """
    Directory names above a page, excluding the directory that represents the page itself.

    `docs/guide/intro.html` -> `['docs', 'guide']`,
    `docs/guide/intro/index.html` -> `['docs', 'guide']`.
    """
    parts = [p for p in str(path).split("/") if p]
    if not parts:
        return []
    directories = parts[:-1]
    if parts[-1].split(".")[0] == "index" and directories:
        directories = directories[:-1]
    return directories


def include_target(dist_root: Path, value: str, convert_page_to_directory: bool) -> Path:
    """
    Resolve an include marker value to the fragment path in the dist tree.

    With directory conversion enabled, `/footer` and `/footer.html` both become
    `/footer/index.html`; disabled, `/footer` becomes `/footer.html`.
    """
    target = dist_root / value.strip().lstrip("/")
    suffix = target.suffix.lower()
    if convert_page_to_directory:
        if not suffix:
            return target / "index.html"
        if suffix == ".html":
            return target.with_suffix("") / "index.html"
        return target
    if not suffix:
        return target.with_name(f"{target.name}.html")
    return target


def flat_page_path(target: Path) -> Optional[Path]:
    """`x/footer/index.html` -> `x/footer.html`; None when `target` is not in directory form."""
    if target.name != "index.html":
        return None
    return target.parent.with_name(f"{target.parent.name}.html")
