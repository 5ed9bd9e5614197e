"""Typed request model.

Every predicate the builder accepts becomes one frozen clause object tagged
with a `kind`. Clauses are collected in `BoolContainer` buckets inside a
`RequestDocument`; turning that document into the engine's wire dictionary
is the compilers' job (see `compilers/`), so the same document can be
rendered for several engine generations.
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..constants import BOOL_MODES

__all__ = (
    "Clause",
    "TermClause",
    "RangeClause",
    "TermsClause",
    "ExistsClause",
    "MatchClause",
    "RawClause",
    "BoolClause",
    "BoolContainer",
    "FieldSort",
    "ScriptSort",
    "TermsAggregation",
    "RequestDocument",
)


# -------------------
# Predicate fragments
# -------------------


class Clause(BaseModel):
    """Base class of all predicate fragments."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: ClassVar[str] = ""


class TermClause(Clause):
    """Exact match on a single value."""

    kind: ClassVar[str] = "term"

    field: str
    value: Any = None
    boost: Optional[Any] = None


class RangeClause(Clause):
    """Range check; `bounds` maps engine keywords (gt, gte, lt, lte) to values."""

    kind: ClassVar[str] = "range"

    field: str
    bounds: Dict[str, Any]
    boost: Optional[Any] = None


class TermsClause(Clause):
    """Exact match against any of several values."""

    kind: ClassVar[str] = "terms"

    field: str
    values: List[Any]


class ExistsClause(Clause):
    """Field presence check. `present=False` matches documents without the field."""

    kind: ClassVar[str] = "exists"

    field: str
    present: bool = True


class MatchClause(Clause):
    """Analyzed full-text match."""

    kind: ClassVar[str] = "match"

    field: str
    query: Any = None
    minimum_should_match: Optional[Any] = None
    fuzziness: Optional[Any] = None
    operator: Optional[str] = None


class RawClause(Clause):
    """Pass-through for an engine-native operator (match_phrase, prefix, ...)."""

    kind: ClassVar[str] = "raw"

    operator: str
    field: Union[str, List[str]]
    value: Any = None
    boost: Optional[Any] = None
    params: Optional[Dict[str, Any]] = None

    @property
    def multi_field(self) -> bool:
        return isinstance(self.field, list)

    @property
    def expanded(self) -> bool:
        """True when the value has to be emitted as an object (value/boost/params)."""
        return self.boost is not None or bool(self.params)


class BoolClause(Clause):
    """A nested boolean group used as a single fragment."""

    kind: ClassVar[str] = "bool"

    buckets: Dict[str, List[Clause]]


# -------------------
# Containers
# -------------------


class BoolContainer(BaseModel):
    """Ordered mode -> fragments mapping.

    Buckets come into existence on the first append to them and are only ever
    appended to, so fragment order is the call order.
    """

    buckets: Dict[str, List[Clause]] = Field(default_factory=dict)

    def append(self, mode: str, clause: Clause) -> None:
        if mode not in BOOL_MODES:
            raise ValueError(f"Unknown boolean mode: {mode}")
        self.buckets.setdefault(mode, []).append(clause)

    def has(self, mode: str) -> bool:
        return bool(self.buckets.get(mode))

    def get(self, mode: str) -> List[Clause]:
        return list(self.buckets.get(mode, []))

    def is_empty(self) -> bool:
        return not any(self.buckets.values())

    def __len__(self) -> int:
        return sum(len(clauses) for clauses in self.buckets.values())


# -------------------
# Sorting / aggregations
# -------------------


class FieldSort(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    direction: str


class ScriptSort(BaseModel):
    model_config = ConfigDict(frozen=True)

    script: Dict[str, Any]


SortClause = Union[FieldSort, ScriptSort]


class TermsAggregation(BaseModel):
    """Bucketed terms aggregation. `size == 0` means every bucket."""

    model_config = ConfigDict(frozen=True)

    field: str
    size: int = 0


# -------------------
# Request document
# -------------------


class RequestDocument(BaseModel):
    """Everything a builder has accumulated for one search request."""

    body: Dict[str, Any] = Field(default_factory=dict)
    filter: BoolContainer = Field(default_factory=BoolContainer)
    query: BoolContainer = Field(default_factory=BoolContainer)
    sort: List[SortClause] = Field(default_factory=list)
    aggregations: Dict[str, TermsAggregation] = Field(default_factory=dict)
    offset: Optional[int] = None
    limit: Optional[int] = None
    source_fields: Optional[List[str]] = None
    explain: Optional[bool] = None
    track_scores: Optional[bool] = None
