"""The filter expressions that can be sent to the server.

These classes describe a predicate independent of the WFS version.
The :mod:`wfsclient.output.fes` module compiles them into either
the OGC Filter 1.1 dialect (WFS 1.1) or the FES 2.0 dialect (WFS 2.0).

Inheritance structure:

* :class:`Filter`

 * :class:`And`, :class:`Or` and :class:`Not` to combine other filters.
 * :class:`Comparison` for :class:`ComparisonOp` tags like ``<fes:PropertyIsEqualTo>``.
 * :class:`Like` for ``<fes:PropertyIsLike>``.
 * :class:`Between` for ``<fes:PropertyIsBetween>``.
 * :class:`IsNull` for ``<fes:PropertyIsNull>``.
 * :class:`ResourceId` for ``<fes:ResourceId>`` / ``<ogc:FeatureId>``.
 * :class:`Spatial` for :class:`SpatialOp` tags like ``<fes:BBOX>``.
 * :class:`ExtensionFilter` for operators this package doesn't know about.

Filters can also be written as dictionaries (e.g. ``{"op": "eq", "property": "name", "value": 1}``),
which :func:`filter_from_dict` converts into these classes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

logger = logging.getLogger(__name__)

__all__ = (
    "ComparisonOp",
    "SpatialOp",
    "Filter",
    "And",
    "Or",
    "Not",
    "Comparison",
    "Like",
    "Between",
    "IsNull",
    "ResourceId",
    "Spatial",
    "ExtensionFilter",
    "filter_from_dict",
    "to_filter",
)


class ComparisonOp(Enum):
    """The binary comparison operators, mapped to their XML tag name."""

    eq = "PropertyIsEqualTo"
    neq = "PropertyIsNotEqualTo"
    lt = "PropertyIsLessThan"
    lte = "PropertyIsLessThanOrEqualTo"
    gt = "PropertyIsGreaterThan"
    gte = "PropertyIsGreaterThanOrEqualTo"

    @property
    def tag_name(self) -> str:
        return self.value

    def __repr__(self):
        # Make repr(filter) easier to copy-paste
        return f"{self.__class__.__name__}.{self.name}"


class SpatialOp(Enum):
    """The spatial operators, mapped to their XML tag name."""

    bbox = "BBOX"
    intersects = "Intersects"
    within = "Within"
    contains = "Contains"
    disjoint = "Disjoint"
    touches = "Touches"
    overlaps = "Overlaps"
    crosses = "Crosses"

    @property
    def tag_name(self) -> str:
        return self.value

    def __repr__(self):
        return f"{self.__class__.__name__}.{self.name}"


class Filter:
    """Base class for all filter expressions."""

    #: The operator name in the dictionary notation.
    op: ClassVar[str] = ""

    def iter_property_names(self) -> Iterator[str]:
        """Tell which property names are referenced by this filter."""
        property_name = getattr(self, "property", None)
        if property_name:
            yield property_name


@dataclass
class And(Filter):
    """All filters must match."""

    op: ClassVar[str] = "and"
    filters: list[Filter] = field(default_factory=list)

    def iter_property_names(self) -> Iterator[str]:
        for child in self.filters:
            yield from child.iter_property_names()


@dataclass
class Or(And):
    """One of the filters must match."""

    op: ClassVar[str] = "or"


@dataclass
class Not(Filter):
    """Inverts the outcome of the filter."""

    op: ClassVar[str] = "not"
    filter: Filter | None = None

    def iter_property_names(self) -> Iterator[str]:
        if self.filter is not None:
            yield from self.filter.iter_property_names()


@dataclass
class Comparison(Filter):
    """Compare a property against a literal value."""

    operator: ComparisonOp
    property: str
    value: Any
    match_case: bool | None = None

    def __post_init__(self):
        if isinstance(self.operator, str):
            self.operator = ComparisonOp[self.operator]


@dataclass
class Like(Filter):
    """Match a property against a wildcard pattern.

    The markers are always sent to the server, as the server can't assume their values.
    """

    op: ClassVar[str] = "like"
    property: str
    value: str
    wild_card: str = "*"
    single_char: str = "."
    escape_char: str = "!"
    match_case: bool | None = None


@dataclass
class Between(Filter):
    op: ClassVar[str] = "between"
    property: str
    lower: Any
    upper: Any


@dataclass
class IsNull(Filter):
    op: ClassVar[str] = "isNull"
    property: str


@dataclass
class ResourceId(Filter):
    """Select features by their identifier (e.g. ``roads.1``)."""

    op: ClassVar[str] = "id"
    ids: list[str] = field(default_factory=list)


@dataclass
class Spatial(Filter):
    """Compare a geometry property against a GeoJSON geometry."""

    operator: SpatialOp
    property: str
    geometry: dict
    srs_name: str | None = None

    def __post_init__(self):
        if isinstance(self.operator, str):
            self.operator = SpatialOp[self.operator]


@dataclass
class ExtensionFilter(Filter):
    """An operator that is unknown to this package.

    The compiler renders these as empty content, so callers can pass
    through their own operators without breaking the request.
    """

    name: str
    data: dict = field(default_factory=dict)

    def iter_property_names(self) -> Iterator[str]:
        property_name = self.data.get("property")
        if isinstance(property_name, str) and property_name:
            yield property_name


def _children(data: dict) -> list[Filter]:
    return [to_filter(child) for child in data.get("filters") or ()]


def filter_from_dict(data: dict) -> Filter:
    """Convert the dictionary notation of a filter into the filter classes.

    Unknown operators become an :class:`ExtensionFilter`, they don't raise an error.
    """
    op = data.get("op")
    if op == "and":
        return And(_children(data))
    elif op == "or":
        return Or(_children(data))
    elif op == "not":
        children = _children(data)
        if not children and data.get("filter") is not None:
            children = [to_filter(data["filter"])]
        return Not(children[0] if children else None)
    elif op in ComparisonOp.__members__:
        return Comparison(
            ComparisonOp[op], data["property"], data.get("value"), data.get("matchCase")
        )
    elif op == "like":
        return Like(
            data["property"],
            data.get("value", ""),
            wild_card=data.get("wildCard") or "*",
            single_char=data.get("singleChar") or ".",
            escape_char=data.get("escapeChar") or "!",
            match_case=data.get("matchCase"),
        )
    elif op == "between":
        return Between(data["property"], data.get("lower"), data.get("upper"))
    elif op == "isNull":
        return IsNull(data["property"])
    elif op == "id":
        return ResourceId(list(data.get("ids") or ()))
    elif op in SpatialOp.__members__:
        return Spatial(
            SpatialOp[op], data["property"], data.get("geometry") or {}, data.get("srsName")
        )
    else:
        logger.debug("Unknown filter operator %r, passed as extension.", op)
        return ExtensionFilter(str(op), data)


def to_filter(value: Filter | dict) -> Filter:
    """Accept both the filter classes and their dictionary notation."""
    if isinstance(value, Filter):
        return value
    elif isinstance(value, dict):
        return filter_from_dict(value)
    else:
        raise TypeError(f"Expected a Filter or dict, not {value.__class__.__name__}")
