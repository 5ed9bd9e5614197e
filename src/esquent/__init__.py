"""
esquent: mirror model records into a search index and query them with a
fluent, relational-style builder.

Exposes the `QueryBuilder`, the `Searchable` model mixin, the engine
client wrapper and the result containers.
"""

from .client import SearchClient, get_search_client, set_search_client
from .exceptions import EsquentError, IllegalArgumentError
from .profile import EngineProfile
from .querydsl import QueryBuilder
from .results import Paginator, ResultCollection
from .searchable import Searchable

__version__ = "0.1.0"

__all__ = [
    "QueryBuilder",
    "Searchable",
    "SearchClient",
    "get_search_client",
    "set_search_client",
    "EngineProfile",
    "ResultCollection",
    "Paginator",
    "EsquentError",
    "IllegalArgumentError",
]
