"""Query DSL module.

Exports `QueryBuilder`, the fluent request builder. The typed request model
lives in `clauses`; engine-specific rendering is handled by the `compilers`
subpackage.
"""

from .builder import QueryBuilder
from .merge import consolidate

__all__ = ("QueryBuilder", "consolidate")
