"""Type aliases for esquent package.

Reusable type definitions for the query builder, the client wrapper and
the model glue.
"""

from typing import Any, Dict, List, Sequence, Union

# One compiled predicate, e.g. {"term": {"status": "active"}}
Fragment = Dict[str, Any]

# Parameters of one search call: {"body": {...}, "from": 0, "size": 10}
SearchParams = Dict[str, Any]

# Raw engine response for search/get/index calls
Response = Dict[str, Any]

# A single field name or several (multi-field raw operators)
FieldNames = Union[str, Sequence[str]]

DocId = Union[str, int]
Hits = List[Dict[str, Any]]
