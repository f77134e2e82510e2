"""Recover commit, stage and job name from a GitLab pipeline page.

The job table carries no unique ids, so everything is inferred from relative
position: a stage header row precedes the rows of its jobs, and the job name
cell precedes the duration cell. Traversal only needs the small capability set
described by :class:`Node`, so tests can build trees by hand.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping, Sequence
from html.parser import HTMLParser
from typing import Protocol
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)

# Matches:  .../commit/<sha>
_COMMIT_RE = re.compile(r"/commit/([a-zA-Z0-9]+)/?")
# Matches:  /<namespace/project>/-/pipelines/<id>
_PIPELINE_PATH_RE = re.compile(r"^/(.+?)/-/")
# Matches:  /<namespace>/<project>/pipelines/<id>  (pre-"/-/" routes)
_LEGACY_PATH_RE = re.compile(r"^/([^/]*/[^/]*)/")


class Node(Protocol):
    """The parts of a DOM node the extractors rely on."""

    @property
    def parent(self) -> Node | None: ...

    @property
    def previous_sibling(self) -> Node | None: ...

    @property
    def tag_name(self) -> str | None: ...

    @property
    def attributes(self) -> Mapping[str, str]: ...

    @property
    def text(self) -> str: ...

    @property
    def children(self) -> Sequence[Node]: ...


class Element:
    """A minimal DOM node. Text nodes have ``tag_name`` set to ``None``."""

    def __init__(
        self,
        tag_name: str | None,
        attributes: Mapping[str, str] | None = None,
        data: str = "",
    ) -> None:
        self.tag_name = tag_name.lower() if tag_name else None
        self.attributes: dict[str, str] = dict(attributes or {})
        self.data = data
        self.parent: Element | None = None
        self.children: list[Element] = []

    def __repr__(self) -> str:
        if self.tag_name is None:
            return f"<text {self.data!r}>"
        return f"<{self.tag_name} {self.attributes!r}>"

    def append(self, child: Element) -> Element:
        child.parent = self
        self.children.append(child)
        return child

    @property
    def previous_sibling(self) -> Element | None:
        if self.parent is None:
            return None
        siblings = self.parent.children
        for i, sibling in enumerate(siblings):
            if sibling is self:
                return siblings[i - 1] if i > 0 else None
        return None

    @property
    def text(self) -> str:
        if self.tag_name is None:
            return self.data
        return "".join(child.text for child in self.children)


def text_node(data: str) -> Element:
    return Element(None, data=data)


# ════════════════════════════════════════════════════════════════════
# HTML parsing
# ════════════════════════════════════════════════════════════════════

_VOID_TAGS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "wbr"}
)
# Opening one of these closes an unterminated sibling of the listed kinds.
_IMPLIED_END = {
    "td": frozenset({"td", "th"}),
    "th": frozenset({"td", "th"}),
    "tr": frozenset({"tr", "td", "th"}),
    "li": frozenset({"li"}),
    "p": frozenset({"p"}),
}


class _TreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = Element("#document")
        self._stack: list[Element] = [self.root]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        closes = _IMPLIED_END.get(tag)
        while closes and len(self._stack) > 1 and self._stack[-1].tag_name in closes:
            self._stack.pop()
        el = self._stack[-1].append(Element(tag, {k: v or "" for k, v in attrs}))
        if tag not in _VOID_TAGS:
            self._stack.append(el)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._stack[-1].append(Element(tag, {k: v or "" for k, v in attrs}))

    def handle_endtag(self, tag: str) -> None:
        for i in range(len(self._stack) - 1, 0, -1):
            if self._stack[i].tag_name == tag:
                del self._stack[i:]
                return

    def handle_data(self, data: str) -> None:
        self._stack[-1].append(text_node(data))


def parse_html(markup: str) -> Element:
    """Parse ``markup`` into an :class:`Element` tree rooted at a ``#document`` node."""
    builder = _TreeBuilder()
    builder.feed(markup)
    builder.close()
    return builder.root


# ════════════════════════════════════════════════════════════════════
# Traversal helpers
# ════════════════════════════════════════════════════════════════════


def iter_descendants(node: Node) -> Iterator[Node]:
    """Yield every element below ``node`` in document order (text nodes skipped)."""
    for child in node.children:
        if child.tag_name is not None:
            yield child
            yield from iter_descendants(child)


def has_class(node: Node, name: str) -> bool:
    return name in node.attributes.get("class", "").split()


def closest(node: Node, tag_name: str) -> Node | None:
    """The nearest ancestor of ``node`` (excluding itself) with ``tag_name``."""
    current = node.parent
    while current is not None and current.tag_name != tag_name:
        current = current.parent
    return current


def previous_element(node: Node, tag_name: str) -> Node | None:
    """The nearest preceding sibling with ``tag_name``, skipping anything else."""
    sibling = node.previous_sibling
    while sibling is not None and sibling.tag_name != tag_name:
        sibling = sibling.previous_sibling
    return sibling


def _stage_marker(row: Node) -> Node | None:
    for node in iter_descendants(row):
        if node.tag_name == "a" and "name" in node.attributes:
            return node
    return None


# ════════════════════════════════════════════════════════════════════
# Extractors
# ════════════════════════════════════════════════════════════════════


def find_current_commit(document: Node) -> str | None:
    """Get the commit SHA of the pipeline shown on the page, or ``None``."""
    containers = [n for n in iter_descendants(document) if has_class(n, "branch-info")]
    link = None
    for container in containers or [document]:
        link = next(
            (
                n
                for n in iter_descendants(container)
                if n.tag_name == "a" and "/commit" in n.attributes.get("href", "")
            ),
            None,
        )
        if link is not None:
            break
    if link is None:
        logger.debug("No link containing '/commit' on the page")
        return None
    href = link.attributes["href"]
    m = _COMMIT_RE.search(href)
    if not m:
        logger.debug("Can't parse a commit sha out of link %s", href)
        return None
    return m.group(1)


def find_stage(anchor: Node) -> str | None:
    """Name of the CI stage whose header row precedes the anchor's row."""
    row = closest(anchor, "tr")
    if row is None:
        return None
    sibling = previous_element(row, "tr")
    while sibling is not None:
        marker = _stage_marker(sibling)
        if marker is not None:
            return marker.attributes["name"]
        sibling = previous_element(sibling, "tr")
    return None


def find_job_name(anchor: Node) -> str | None:
    """Text of the cell immediately before the anchor's (duration) cell."""
    cell = closest(anchor, "td")
    if cell is None:
        return None
    name_cell = previous_element(cell, "td")
    if name_cell is None:
        return None
    return " ".join(name_cell.text.split()) or None


def find_duration_anchors(document: Node) -> list[Node]:
    """Every job duration element of the pipeline table, in page order."""
    anchors: list[Node] = []
    for table in iter_descendants(document):
        if table.tag_name != "table" or not (
            has_class(table, "ci-table") and has_class(table, "pipeline")
        ):
            continue
        anchors.extend(
            n
            for n in iter_descendants(table)
            if n.tag_name == "p" and has_class(n, "duration") and closest(n, "td") is not None
        )
    return anchors


def project_from_path(path_or_url: str) -> str | None:
    """Extract ``namespace/project`` from a pipeline page path or URL."""
    path = urlparse(path_or_url).path if "://" in path_or_url else path_or_url
    m = _PIPELINE_PATH_RE.match(path) or _LEGACY_PATH_RE.match(path)
    if m:
        return unquote(m.group(1))
    return None
