"""Compiler for engine 1.x / 2.x.

Both containers live under the `filtered` query:

    {"filtered": {"filter": {"bool": {...}}, "query": {"bool": {...}}}}

Queries used in filter context have to be wrapped in a `query` filter, and
missing fields are matched with the `missing` filter.
"""

from typing import Any, Dict, Optional

from esquent.constants import Dialect

from ...types import Fragment
from ..clauses import BoolContainer, ExistsClause, MatchClause
from .base import FILTER_CONTEXT, QUERY_CONTEXT, BaseCompiler

__all__ = (
    "FilteredQueryCompiler",
    "filtered_compiler",
)


class FilteredQueryCompiler(BaseCompiler):
    dialect = Dialect.FILTERED
    source_include_key = "include"

    def compile_query(self, filter: BoolContainer, query: BoolContainer) -> Optional[Fragment]:
        filtered: Dict[str, Any] = {}
        if not filter.is_empty():
            filtered["filter"] = self.compile_container(filter, FILTER_CONTEXT)
        if not query.is_empty():
            filtered["query"] = self.compile_container(query, QUERY_CONTEXT)
        if not filtered:
            return None
        return {"filtered": filtered}

    def _compile_exists(self, clause: ExistsClause, context: str) -> Fragment:
        operator = "exists" if clause.present else "missing"
        return {operator: {"field": clause.field}}

    def _compile_match(self, clause: MatchClause, context: str) -> Fragment:
        fragment = super()._compile_match(clause, context)
        if context == FILTER_CONTEXT:
            return {"query": fragment}
        return fragment


filtered_compiler = FilteredQueryCompiler()
