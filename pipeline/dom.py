"""
HTML parse/query/serialize helpers built on BeautifulSoup.

The `html.parser` backend keeps the markup it is given: full documents keep
their doctype/<html> wrapper and fragments (includes) are serialized without
a synthetic <html><head><body> around them.

Serialization uses the `minimal` formatter: named entities other than
`&amp;`, `&lt;` and `&gt;` come back as the characters they stand for
(`&nbsp;` becomes U+00A0, `&copy;` becomes ©), and whitespace-only text
between tags that spans lines is reduced to a single newline. The rendered
page is unchanged.
"""

from typing import Iterable, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

PARSER = "html.parser"


def parse(text: str) -> BeautifulSoup:
    """Parse a full document or a fragment into a traversable tree."""
    return BeautifulSoup(text, PARSER)


def serialize(tree: BeautifulSoup) -> str:
    return tree.decode(formatter="minimal")


def get_selector(attrs: Iterable[str], element: str = "") -> str:
    """`('include', 'data-include'), 'div'` -> `div[include],div[data-include]`."""
    return ",".join(f"{element}[{attr}]" for attr in attrs)


def query(tree: BeautifulSoup, selector: str) -> List[Tag]:
    """CSS-select elements in document order."""
    if not selector:
        return []
    return tree.select(selector)


def first_attr(el: Tag, attrs: Iterable[str]) -> Optional[str]:
    """Return the first non-empty value among `attrs` on `el`."""
    for attr in attrs:
        value = el.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        if value:
            return value
    return None


def has_any_attr(el: Tag, attrs: Iterable[str]) -> bool:
    return any(el.has_attr(attr) for attr in attrs)


def insert_html_after(el: Tag, html: str) -> List:
    """Insert parsed `html` right after `el`, returning the inserted top-level nodes."""
    nodes = list(parse(html).contents)
    anchor = el
    for node in nodes:
        anchor.insert_after(node)
        anchor = node
    return nodes


def add_class(el: Tag, name: str) -> None:
    classes = el.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    if name not in classes:
        el["class"] = list(classes) + [name]
