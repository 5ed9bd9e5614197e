"""Boolean-merge consolidation of the filter container.

Some engine versions only evaluate the filter correctly when it is given in a
two-level normal form instead of the flat must / must_not / should form the
builder accumulates. `consolidate` performs that rewrite:

    must + must_not + should -> must: [bool(should: must + should), bool(must_not: must_not)]
    must + should            -> must: [bool(should: must + should)]
    must_not + should        -> should: [bool(must_not: must_not), bool(should: should)]
    anything else            -> unchanged

Whether the rewrite is still wanted is unresolved, so it only runs when the
caller opts in (`QueryBuilder.build_merge_query(consolidate_filters=True)` or
`QUERY_CONSOLIDATE_FILTERS=true`).
"""

from esquent.constants import BoolMode

from .clauses import BoolClause, BoolContainer

__all__ = ("consolidate",)


def consolidate(container: BoolContainer) -> BoolContainer:
    """Return the two-clause normal form of `container` (a new object).

    The input container is never modified; when no rule applies it is
    returned as-is.
    """
    must = container.get(BoolMode.MUST)
    must_not = container.get(BoolMode.MUST_NOT)
    should = container.get(BoolMode.SHOULD)

    if must and must_not and should:
        return BoolContainer(
            buckets={
                BoolMode.MUST: [
                    BoolClause(buckets={BoolMode.SHOULD: must + should}),
                    BoolClause(buckets={BoolMode.MUST_NOT: must_not}),
                ]
            }
        )
    if must and should:
        return BoolContainer(buckets={BoolMode.MUST: [BoolClause(buckets={BoolMode.SHOULD: must + should})]})
    if must_not and should:
        return BoolContainer(
            buckets={
                BoolMode.SHOULD: [
                    BoolClause(buckets={BoolMode.MUST_NOT: must_not}),
                    BoolClause(buckets={BoolMode.SHOULD: should}),
                ]
            }
        )
    return container
