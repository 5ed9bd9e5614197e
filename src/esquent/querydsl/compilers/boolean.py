"""Compiler for engine 5.x and later.

The filter container becomes the `filter` clause of a top-level `bool`
query (non-scoring), and the scored container's buckets sit beside it:

    {"bool": {"must": [...scored], "filter": {"bool": {"must": [...]}}}}

When the scored buckets hold `should` but no `must`, the node also carries
`minimum_should_match: 1` so at least one scored clause still has to match,
as it does inside the `query` of a legacy `filtered` request.

5.x removed the `missing` filter, so a "field is null" check is a negated
`exists`. A terms aggregation of size 0 is rejected since 5.x, so "all
buckets" is sent as `AGGREGATION_ALL_BUCKETS_SIZE`.
"""

from typing import Any, Dict, Optional

from esquent.constants import BoolMode, Dialect
from esquent.settings import settings as api_settings

from ...types import Fragment
from ..clauses import BoolContainer, ExistsClause
from .base import FILTER_CONTEXT, QUERY_CONTEXT, BaseCompiler

__all__ = (
    "BoolQueryCompiler",
    "bool_compiler",
)


class BoolQueryCompiler(BaseCompiler):
    dialect = Dialect.BOOL
    source_include_key = "includes"

    def compile_query(self, filter: BoolContainer, query: BoolContainer) -> Optional[Fragment]:
        if filter.is_empty() and query.is_empty():
            return None
        node: Dict[str, Any] = {}
        if not query.is_empty():
            node.update(self.compile_buckets(query, QUERY_CONTEXT))
        if not filter.is_empty():
            node["filter"] = self.compile_container(filter, FILTER_CONTEXT)
            # A sibling filter makes should clauses optional unless pinned.
            if BoolMode.SHOULD in node and BoolMode.MUST not in node:
                node["minimum_should_match"] = 1
        return {"bool": node}

    def _compile_exists(self, clause: ExistsClause, context: str) -> Fragment:
        exists = {"exists": {"field": clause.field}}
        if clause.present:
            return exists
        return {"bool": {BoolMode.MUST_NOT: [exists]}}

    def _bucket_size(self, size: int) -> int:
        if size == 0:
            return api_settings.AGGREGATION_ALL_BUCKETS_SIZE
        return size


bool_compiler = BoolQueryCompiler()
