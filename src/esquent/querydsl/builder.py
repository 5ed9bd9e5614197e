"""Fluent search request builder.

`QueryBuilder` lets callers describe a search with relational vocabulary
(`where`, `where_in`, `where_between`, `order_by`, `limit`, ...) and compiles
it into the nested request body the search engine expects.

Typical usage:

    params = (
        QueryBuilder()
        .where("status", "published")
        .where("views", ">=", 100)
        .or_where_in("category", ["news", "sport"])
        .match_query("title", "election results")
        .order_by("created_at", "desc")
        .limit(20)
        .build()
    )

Every mutating call returns the builder. Arguments are validated before
anything is recorded, so a call that raises `IllegalArgumentError` leaves
the builder exactly as it was.

Predicates land in one of two containers: the *filter* container narrows
the candidate set without scoring (`where*`), the *scored* container ranks
it (`match_query`, `fuzzy_query`). Inside each container fragments are
grouped by boolean mode: `must` (AND), `must_not` (NOT), `should` (OR).
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from copy import deepcopy
from typing import Any, Dict, List, Optional, Sequence

from esquent.constants import BOOL_MODES, EQUALITY_OPERATORS, OPERATOR_MAP, RAW_OPERATORS, BoolMode, SortDirection
from esquent.exceptions import IllegalArgumentError
from esquent.logger import get_logger
from esquent.profile import EngineProfile
from esquent.settings import settings as api_settings

from ..types import FieldNames, SearchParams
from ..utils import flatten_fields
from .clauses import (
    BoolClause,
    Clause,
    ExistsClause,
    FieldSort,
    MatchClause,
    RangeClause,
    RawClause,
    RequestDocument,
    ScriptSort,
    TermClause,
    TermsAggregation,
    TermsClause,
)
from .compilers import BaseCompiler, get_compiler
from .merge import consolidate

__all__ = ("QueryBuilder",)

logger = get_logger(__name__)

_MISSING = object()

_DESC_TOKENS = ("desc", "descending")


class QueryBuilder:
    """Accumulates search directives and compiles them into request params.

    Args:
        body: Optional pre-built request body to start from. Builder output
            is merged on top of it when compiling.
        profile: Engine generation to compile for; defaults to
            `EngineProfile.from_settings()`.

    The builder is plain mutable state with no locking; use one instance per
    logical query.
    """

    def __init__(self, body: Optional[Mapping[str, Any]] = None, *, profile: Optional[EngineProfile] = None):
        if body is not None and not isinstance(body, Mapping):
            raise IllegalArgumentError("Seed body must be a mapping.", body_type=type(body).__name__)
        self.profile = profile or EngineProfile.from_settings()
        self.document = RequestDocument(body=deepcopy(dict(body or {})))

    @property
    def compiler(self) -> BaseCompiler:
        return get_compiler(self.profile)

    # -------------------
    # Comparison predicates
    # -------------------

    def where(
        self,
        field: str,
        operator: Any,
        value: Any = _MISSING,
        boost: Optional[Any] = None,
        mode: str = BoolMode.MUST,
    ) -> "QueryBuilder":
        """Add a comparison: `where("age", ">=", 18)` or `where("status", "active")`.

        With two arguments the second one is the value and the operator is
        `=`. Equality operators (`=`, `<>`, `!=`) compile to a `term`
        fragment, relational ones (`<`, `>`, `<=`, `>=`) to a `range`.

        Raises:
            IllegalArgumentError: a field that is not a non-empty string, an
                unknown operator or mode, or a relational operator with a
                `None` value.
        """
        if value is _MISSING:
            operator, value = "=", operator
        self._check_mode(mode)
        self._check_field(field)
        keyword = self._check_operator(field, operator, value)
        if keyword == "term":
            clause: Clause = TermClause(field=field, value=value, boost=boost)
        else:
            clause = RangeClause(field=field, bounds={keyword: value}, boost=boost)
        return self._add_filter(clause, mode)

    def or_where(self, field: str, operator: Any, value: Any = _MISSING, boost: Optional[Any] = None) -> "QueryBuilder":
        return self.where(field, operator, value, boost, mode=BoolMode.SHOULD)

    # -------------------
    # Set membership
    # -------------------

    def where_in(self, field: str, values: Iterable[Any], mode: str = BoolMode.MUST) -> "QueryBuilder":
        self._check_mode(mode)
        self._check_field(field)
        clause = TermsClause(field=field, values=self._check_values(field, values))
        return self._add_filter(clause, mode)

    def or_where_in(self, field: str, values: Iterable[Any]) -> "QueryBuilder":
        return self.where_in(field, values, mode=BoolMode.SHOULD)

    def where_not_in(self, field: str, values: Iterable[Any], mode: str = BoolMode.MUST_NOT) -> "QueryBuilder":
        return self.where_in(field, values, mode=mode)

    def or_where_not_in(self, field: str, values: Iterable[Any]) -> "QueryBuilder":
        self._check_field(field)
        clause = TermsClause(field=field, values=self._check_values(field, values))
        return self._add_filter(self._negated(clause), BoolMode.SHOULD)

    # -------------------
    # Null checks
    # -------------------

    def where_null(self, field: str, mode: str = BoolMode.MUST, negate: bool = False) -> "QueryBuilder":
        """Match documents where `field` is absent (or present with `negate=True`)."""
        self._check_mode(mode)
        self._check_field(field)
        return self._add_filter(ExistsClause(field=field, present=bool(negate)), mode)

    def or_where_null(self, field: str) -> "QueryBuilder":
        return self.where_null(field, mode=BoolMode.SHOULD)

    def where_not_null(self, field: str, mode: str = BoolMode.MUST) -> "QueryBuilder":
        return self.where_null(field, mode=mode, negate=True)

    def or_where_not_null(self, field: str) -> "QueryBuilder":
        return self.where_null(field, mode=BoolMode.SHOULD, negate=True)

    # -------------------
    # Ranges
    # -------------------

    def where_between(
        self, field: str, values: Sequence[Any], boost: Optional[Any] = None, mode: str = BoolMode.MUST
    ) -> "QueryBuilder":
        """Range check between two values given in any order.

        Bounds are exclusive (`gt`/`lt`), except in `must_not` mode where
        they are inclusive (`gte`/`lte`) so that "not between" also rejects
        the end points.
        """
        self._check_mode(mode)
        self._check_field(field)
        clause = self._between(field, values, boost, inclusive=mode == BoolMode.MUST_NOT)
        return self._add_filter(clause, mode)

    def or_where_between(self, field: str, values: Sequence[Any], boost: Optional[Any] = None) -> "QueryBuilder":
        return self.where_between(field, values, boost, mode=BoolMode.SHOULD)

    def where_not_between(
        self, field: str, values: Sequence[Any], boost: Optional[Any] = None, mode: str = BoolMode.MUST_NOT
    ) -> "QueryBuilder":
        return self.where_between(field, values, boost, mode=mode)

    def or_where_not_between(self, field: str, values: Sequence[Any], boost: Optional[Any] = None) -> "QueryBuilder":
        self._check_field(field)
        clause = self._between(field, values, boost, inclusive=True)
        return self._add_filter(self._negated(clause), BoolMode.SHOULD)

    # -------------------
    # Text matching
    # -------------------

    def fuzzy_query(
        self,
        field: str,
        value: Any,
        fuzziness: Any = "AUTO",
        operator: str = "and",
        mode: str = BoolMode.MUST,
    ) -> "QueryBuilder":
        """Scored match tolerating typos, `operator` joins the analyzed terms."""
        self._check_mode(mode)
        self._check_field(field)
        clause = MatchClause(field=field, query=value, fuzziness=fuzziness, operator=operator)
        return self._add_query(clause, mode)

    def or_fuzzy_query(self, field: str, value: Any, fuzziness: Any = "AUTO", operator: str = "and") -> "QueryBuilder":
        return self.fuzzy_query(field, value, fuzziness, operator, mode=BoolMode.SHOULD)

    def match_query(
        self, field: str, value: Any, minimum_should_match: Optional[Any] = "100%", mode: str = BoolMode.MUST
    ) -> "QueryBuilder":
        """Scored match. A falsy `minimum_should_match` leaves the threshold out."""
        self._check_mode(mode)
        self._check_field(field)
        clause = MatchClause(field=field, query=value, minimum_should_match=minimum_should_match or None)
        return self._add_query(clause, mode)

    def or_match_query(self, field: str, value: Any, minimum_should_match: Optional[Any] = "100%") -> "QueryBuilder":
        return self.match_query(field, value, minimum_should_match, mode=BoolMode.SHOULD)

    def where_match(
        self, field: str, value: Any, minimum_should_match: Optional[Any] = "100%", mode: str = BoolMode.MUST
    ) -> "QueryBuilder":
        """Full-text match used as a filter (no effect on scoring)."""
        self._check_mode(mode)
        self._check_field(field)
        clause = MatchClause(field=field, query=value, minimum_should_match=minimum_should_match or None)
        return self._add_filter(clause, mode)

    def or_where_match(self, field: str, value: Any, minimum_should_match: Optional[Any] = "100%") -> "QueryBuilder":
        return self.where_match(field, value, minimum_should_match, mode=BoolMode.SHOULD)

    # -------------------
    # Engine-native operators
    # -------------------

    def where_raw(
        self,
        field: FieldNames,
        operator: str,
        value: Any,
        boost: Optional[Any] = None,
        params: Optional[Mapping[str, Any]] = None,
        mode: str = BoolMode.MUST,
    ) -> "QueryBuilder":
        """Add a fragment for one of the engine's own operators.

        `operator` must be one of `RAW_OPERATORS`. `value` may be given as
        `(value, boost)` or `(value, boost, params)`; `params` is merged
        recursively into the emitted object. A list of fields produces the
        multi-field form `{operator: {"query": value, "fields": [...]}}`.

        Raises:
            IllegalArgumentError: operator not allowed, malformed value tuple,
                non-mapping params or an empty field list.
        """
        self._check_mode(mode)
        if operator not in RAW_OPERATORS:
            self._reject(
                "Illegal elasticsearch operator and value combination.",
                field=field,
                operator=operator,
                allowed=RAW_OPERATORS,
            )

        if isinstance(value, (list, tuple)) and len(value) > 1:
            if len(value) > 3:
                self._reject("Raw value takes at most (value, boost, params).", field=field, value=value)
            value, boost, *rest = value
            if rest:
                params = rest[0]
        if params is not None and not isinstance(params, Mapping):
            self._reject("Raw params must be a mapping.", field=field, params=params)

        if isinstance(field, (list, tuple)):
            if not field:
                self._reject("Field list must not be empty.", operator=operator)
            field = [self._check_field(f) for f in field]
        else:
            self._check_field(field)

        clause = RawClause(
            operator=operator,
            field=field,
            value=deepcopy(value),
            boost=boost,
            params=deepcopy(dict(params)) if params else None,
        )
        return self._add_filter(clause, mode)

    def or_where_raw(
        self,
        field: FieldNames,
        operator: str,
        value: Any,
        boost: Optional[Any] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> "QueryBuilder":
        return self.where_raw(field, operator, value, boost, params, mode=BoolMode.SHOULD)

    # -------------------
    # Sorting
    # -------------------

    def order_by(self, field: str, direction: str = SortDirection.ASC) -> "QueryBuilder":
        """Sort by `field`. Only "desc"/"descending" (any case) sort descending."""
        self._check_field(field)
        normalized = str(direction).strip().lower()
        direction = SortDirection.DESC if normalized in _DESC_TOKENS else SortDirection.ASC
        self.document.sort.append(FieldSort(field=field, direction=direction))
        return self

    def order_by_script(self, script: Mapping[str, Any]) -> "QueryBuilder":
        """Sort by a script, e.g. `{"type": "number", "script": {...}, "order": "asc"}`."""
        if not isinstance(script, Mapping):
            self._reject("Script sort must be a mapping.", script=script)
        self.document.sort.append(ScriptSort(script=deepcopy(dict(script))))
        return self

    def latest(self, field: str = "created_at") -> "QueryBuilder":
        return self.order_by(field, SortDirection.DESC)

    def oldest(self, field: str = "created_at") -> "QueryBuilder":
        return self.order_by(field, SortDirection.ASC)

    # -------------------
    # Pagination / projection
    # -------------------

    def offset(self, value: int) -> "QueryBuilder":
        self.document.offset = self._check_count("offset", value)
        return self

    def skip(self, value: int) -> "QueryBuilder":
        return self.offset(value)

    def limit(self, value: int) -> "QueryBuilder":
        self.document.limit = self._check_count("limit", value)
        return self

    def take(self, value: int) -> "QueryBuilder":
        return self.limit(value)

    def select(self, *fields: Any) -> "QueryBuilder":
        """Restrict returned `_source` fields; `select()` with nothing is a no-op."""
        names = flatten_fields(fields)
        if names:
            self.document.source_fields = names
        return self

    # -------------------
    # Aggregations / flags
    # -------------------

    def aggregation(self, field: str, size: int = 0) -> "QueryBuilder":
        """Terms aggregation named after `field`. `size=0` asks for every bucket."""
        self._check_field(field)
        size = self._check_count("size", size)
        self.document.aggregations[field] = TermsAggregation(field=field, size=size)
        return self

    def explanation(self, explain: bool = True) -> "QueryBuilder":
        self.document.explain = bool(explain)
        return self

    def track_scores(self, track: bool = True) -> "QueryBuilder":
        self.document.track_scores = bool(track)
        return self

    # -------------------
    # Compilation
    # -------------------

    def build(self) -> SearchParams:
        """Compile to `{"body": {...}, "from": ..., "size": ...}`.

        Pure projection of the current state; calling it repeatedly without
        further mutation returns equal structures.
        """
        return self.compiler.compile(self.document)

    def build_merge_query(self, consolidate_filters: Optional[bool] = None) -> SearchParams:
        """Compile, optionally rewriting the filter into the two-level normal form.

        When `consolidate_filters` is None the `QUERY_CONSOLIDATE_FILTERS`
        setting decides. Disabled (the default), this is exactly `build()`.
        """
        if consolidate_filters is None:
            consolidate_filters = api_settings.QUERY_CONSOLIDATE_FILTERS
        if not consolidate_filters:
            return self.build()
        document = self.document.model_copy(update={"filter": consolidate(self.document.filter)})
        return self.compiler.compile(document)

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.build(), **kwargs)

    def __str__(self) -> str:
        return self.to_json()

    def __repr__(self) -> str:
        return f"<QueryBuilder: {self.build()}>"

    # -------------------
    # Internals
    # -------------------

    def _add_filter(self, clause: Clause, mode: str) -> "QueryBuilder":
        self.document.filter.append(mode, clause)
        return self

    def _add_query(self, clause: Clause, mode: str) -> "QueryBuilder":
        self.document.query.append(mode, clause)
        return self

    @staticmethod
    def _negated(clause: Clause) -> BoolClause:
        return BoolClause(buckets={BoolMode.MUST_NOT: [clause]})

    def _reject(self, message: str, **details: Any) -> None:
        logger.debug("Rejected builder call: %s", message, **details)
        raise IllegalArgumentError(message, **details)

    def _check_field(self, field: Any) -> str:
        if not isinstance(field, str) or not field:
            self._reject("Field name must be a non-empty string.", field=field)
        return field

    def _check_mode(self, mode: str) -> None:
        if mode not in BOOL_MODES:
            self._reject("Illegal boolean mode.", mode=mode, allowed=BOOL_MODES)

    def _check_operator(self, field: str, operator: Any, value: Any) -> str:
        op = operator.strip().lower() if isinstance(operator, str) else None
        if op not in OPERATOR_MAP:
            self._reject("Illegal operator.", field=field, operator=operator)
        if value is None and op not in EQUALITY_OPERATORS:
            self._reject("Illegal operator and value combination.", field=field, operator=operator, value=value)
        return OPERATOR_MAP[op]

    def _check_values(self, field: str, values: Any) -> List[Any]:
        if isinstance(values, (str, bytes)) or isinstance(values, Mapping) or not isinstance(values, Iterable):
            self._reject("Values must be a list of values.", field=field, values=values)
        items = list(values)
        if not items:
            self._reject("Values must not be empty.", field=field)
        return deepcopy(items)

    def _between(self, field: str, values: Any, boost: Optional[Any], inclusive: bool) -> RangeClause:
        if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            self._reject("Illegal operator and value combination.", field=field, values=values)
        items = list(values)
        if len(items) != 2:
            self._reject("Illegal operator and value combination.", field=field, values=items)
        try:
            low, high = min(items), max(items)
        except TypeError:
            self._reject("Range values are not comparable.", field=field, values=items)
        bounds: Dict[str, Any] = {"gte": low, "lte": high} if inclusive else {"gt": low, "lt": high}
        return RangeClause(field=field, bounds=bounds, boost=boost)

    def _check_count(self, name: str, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            self._reject(f"{name} must be a non-negative integer.", **{name: value})
        return value
