"""Base compiler interface.

A compiler projects a `RequestDocument` into the dictionary the engine
accepts. The fragment shapes shared by every engine generation live here;
subclasses implement the parts that changed between generations.
"""

from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any, Dict, List, Optional

from ...types import Fragment, SearchParams
from ...utils import merge_recursive
from ..clauses import (
    BoolClause,
    BoolContainer,
    Clause,
    ExistsClause,
    FieldSort,
    MatchClause,
    RangeClause,
    RawClause,
    RequestDocument,
    SortClause,
    TermClause,
    TermsAggregation,
    TermsClause,
)

__all__ = ("BaseCompiler",)

FILTER_CONTEXT = "filter"
QUERY_CONTEXT = "query"


class BaseCompiler(ABC):
    """Abstract base class for request compilers.

    Subclasses implement `compile_query` (how the filter and scored containers
    are combined) and `_compile_exists` (how a missing field is expressed).
    """

    dialect: str = ""
    source_include_key: str = "includes"

    # -------------------
    # Request level
    # -------------------

    def compile(self, document: RequestDocument) -> SearchParams:
        """Return `{"body": ..., "from": ..., "size": ...}` for `document`.

        A fresh structure is built on every call; the document is not touched.
        """
        section: Dict[str, Any] = {}

        query = self.compile_query(document.filter, document.query)
        if query is not None:
            section["query"] = query
        if document.sort:
            section["sort"] = [self.compile_sort(entry) for entry in document.sort]
        if document.aggregations:
            section["aggs"] = {
                name: self.compile_aggregation(agg) for name, agg in document.aggregations.items()
            }
        if document.source_fields is not None:
            section["_source"] = {self.source_include_key: list(document.source_fields)}
        if document.explain is not None:
            section["explain"] = document.explain
        if document.track_scores is not None:
            section["track_scores"] = document.track_scores

        params: SearchParams = {"body": merge_recursive(document.body, section)}
        if document.offset is not None:
            params["from"] = document.offset
        if document.limit is not None:
            params["size"] = document.limit
        return params

    @abstractmethod
    def compile_query(self, filter: BoolContainer, query: BoolContainer) -> Optional[Fragment]:
        """Combine the filter and scored containers into the body's `query` value."""
        raise NotImplementedError

    # -------------------
    # Containers
    # -------------------

    def compile_buckets(self, container: BoolContainer, context: str) -> Dict[str, List[Fragment]]:
        return self._compile_bucket_map(container.buckets, context)

    def _compile_bucket_map(self, buckets: Dict[str, List[Clause]], context: str) -> Dict[str, List[Fragment]]:
        return {
            mode: [self.compile_clause(clause, context) for clause in clauses]
            for mode, clauses in buckets.items()
            if clauses
        }

    def compile_container(self, container: BoolContainer, context: str) -> Fragment:
        return {"bool": self.compile_buckets(container, context)}

    # -------------------
    # Fragments
    # -------------------

    def compile_clause(self, clause: Clause, context: str = FILTER_CONTEXT) -> Fragment:
        handler = getattr(self, f"_compile_{clause.kind}", None)
        if handler is None:
            raise TypeError(f"No compiler for clause type {type(clause).__name__}")
        return handler(clause, context)

    def _compile_term(self, clause: TermClause, context: str) -> Fragment:
        if clause.boost is None:
            return {"term": {clause.field: clause.value}}
        return {"term": {clause.field: {"value": clause.value, "boost": clause.boost}}}

    def _compile_range(self, clause: RangeClause, context: str) -> Fragment:
        leaf: Dict[str, Any] = {}
        if clause.boost is not None:
            leaf["boost"] = clause.boost
        leaf.update(clause.bounds)
        return {"range": {clause.field: leaf}}

    def _compile_terms(self, clause: TermsClause, context: str) -> Fragment:
        return {"terms": {clause.field: list(clause.values)}}

    @abstractmethod
    def _compile_exists(self, clause: ExistsClause, context: str) -> Fragment:
        raise NotImplementedError

    def _compile_match(self, clause: MatchClause, context: str) -> Fragment:
        leaf: Dict[str, Any] = {"query": clause.query}
        if clause.minimum_should_match:
            leaf["minimum_should_match"] = clause.minimum_should_match
        if clause.fuzziness is not None:
            leaf["fuzziness"] = clause.fuzziness
        if clause.operator is not None:
            leaf["operator"] = clause.operator
        return {"match": {clause.field: leaf}}

    def _compile_raw(self, clause: RawClause, context: str) -> Fragment:
        if clause.expanded:
            if clause.multi_field:
                leaf: Dict[str, Any] = {"query": clause.value, "fields": list(clause.field)}
            else:
                leaf = {"value": clause.value}
            if clause.boost is not None:
                leaf["boost"] = clause.boost
            leaf = merge_recursive(clause.params or {}, leaf)
            if clause.multi_field:
                return {clause.operator: leaf}
            return {clause.operator: {clause.field: leaf}}

        if clause.multi_field:
            return {clause.operator: {"query": clause.value, "fields": list(clause.field)}}
        return {clause.operator: {clause.field: deepcopy(clause.value)}}

    def _compile_bool(self, clause: BoolClause, context: str) -> Fragment:
        return {"bool": self._compile_bucket_map(clause.buckets, context)}

    # -------------------
    # Sort / aggregations
    # -------------------

    def compile_sort(self, entry: SortClause) -> Fragment:
        if isinstance(entry, FieldSort):
            return {entry.field: entry.direction}
        return {"_script": deepcopy(entry.script)}

    def compile_aggregation(self, agg: TermsAggregation) -> Fragment:
        return {"terms": {"field": agg.field, "size": self._bucket_size(agg.size)}}

    def _bucket_size(self, size: int) -> int:
        return size
