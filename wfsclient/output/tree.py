"""A small element tree to construct the outgoing XML documents.

The request builders construct a tree of :class:`XmlElement` nodes, which is rendered
to text as final step. Before rendering, vendor-specific fragments can be spliced into
the tree (see :func:`apply_xml_overrides`). This makes it possible to add XML that the
typed request options don't support, without having to rebuild the whole document.

Element and attribute names are kept in their prefixed form (e.g. ``wfs:Query``),
as the namespace declarations are added to the root element by the request builders.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .utils import value_to_attr_string, value_to_xml_string

logger = logging.getLogger(__name__)

__all__ = (
    "XmlElement",
    "Text",
    "RawXml",
    "Fragment",
    "XmlOverride",
    "SplicePosition",
    "apply_xml_overrides",
    "render",
)


@dataclass
class Text:
    """Text content, escaped when rendered."""

    value: object

    def render(self) -> str:
        return value_to_xml_string(self.value)


@dataclass
class RawXml:
    """A literal XML fragment, rendered as-is."""

    xml: str

    def render(self) -> str:
        return self.xml


@dataclass
class XmlElement:
    """An element in the outgoing XML document.

    Attributes with a ``None`` or empty string value are not rendered,
    which allows passing optional request parameters directly.
    """

    tag: str
    attrib: dict[str, object] = field(default_factory=dict)
    children: list[Node] = field(default_factory=list)

    def append(self, child: Node | None):
        """Add a child node, ``None`` values are ignored."""
        if child is not None:
            self.children.append(child)

    def extend(self, children):
        for child in children:
            self.append(child)

    def iter(self) -> Iterator[XmlElement]:
        """Walk over all elements in document order, including this element."""
        yield self
        for child in self.children:
            if isinstance(child, (XmlElement, Fragment)):
                yield from child.iter()

    def find(self, tag: str) -> XmlElement | None:
        """Find the first element with the given (prefixed) tag name."""
        return next((element for element in self.iter() if element.tag == tag), None)

    def render(self) -> str:
        attrs = "".join(
            f' {name}="{value_to_attr_string(value)}"'
            for name, value in self.attrib.items()
            if value is not None and value != ""
        )
        if not self.children:
            return f"<{self.tag}{attrs}/>"

        content = "".join(child.render() for child in self.children)
        return f"<{self.tag}{attrs}>{content}</{self.tag}>"

    def __str__(self):
        return self.render()


@dataclass
class Fragment:
    """A sequence of nodes without a wrapping element."""

    children: list[Node] = field(default_factory=list)

    def iter(self) -> Iterator[XmlElement]:
        for child in self.children:
            if isinstance(child, (XmlElement, Fragment)):
                yield from child.iter()

    def render(self) -> str:
        return "".join(child.render() for child in self.children)


Node = Union[XmlElement, Text, RawXml, Fragment]


class SplicePosition(Enum):
    """Where an :class:`XmlOverride` places its XML relative to the target element."""

    before = "before"
    after = "after"
    replace = "replace"


@dataclass
class XmlOverride:
    """Instruction to splice a literal XML fragment into a request document.

    The first element with the ``target`` tag name (e.g. ``wfs:Query``) is located.
    The XML is placed before or after that element, or replaces it completely.
    When the target can't be found, the override is ignored.
    """

    target: str
    xml: str
    position: SplicePosition | str = SplicePosition.after

    def __post_init__(self):
        self.position = SplicePosition(self.position)


def _find_parent(container: XmlElement | Fragment, tag: str):
    """Find the first element with the tag in document order, return its parent list and index."""
    for index, child in enumerate(container.children):
        if isinstance(child, XmlElement) and child.tag == tag:
            return container.children, index
        if isinstance(child, (XmlElement, Fragment)):
            found = _find_parent(child, tag)
            if found is not None:
                return found
    return None


def apply_xml_overrides(root: Node, overrides: list[XmlOverride] | None) -> Node:
    """Splice the literal XML fragments into the document tree.

    The overrides are applied in their given ordering,
    so a later override can target an element that an earlier override added
    only when that element is part of the tree (literal XML is never searched).
    """
    if not overrides:
        return root

    document = Fragment([root])
    for override in overrides:
        found = _find_parent(document, override.target)
        if found is None:
            logger.debug("XML override target <%s> not found, skipped.", override.target)
            continue

        siblings, index = found
        fragment = RawXml(override.xml)
        if override.position is SplicePosition.before:
            siblings.insert(index, fragment)
        elif override.position is SplicePosition.replace:
            siblings[index] = fragment
        else:
            siblings.insert(index + 1, fragment)

    if len(document.children) == 1:
        return document.children[0]
    return document


def render(node: Node, overrides: list[XmlOverride] | None = None) -> str:
    """Render the tree as XML text, after applying the overrides."""
    return apply_xml_overrides(node, overrides).render()
