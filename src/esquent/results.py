"""Search result containers.

`ResultCollection` holds hydrated models together with the metadata of the
response they came from. `Paginator` wraps one page of results for
length-aware pagination.
"""

import math
from typing import Any, Dict, Generic, Iterator, List, Mapping, Optional, Sequence, TypeVar

from .exceptions import IllegalArgumentError
from .types import Hits, Response
from .utils import normalize_total

__all__ = ("ResultCollection", "Paginator")

T = TypeVar("T")


class ResultCollection(Generic[T]):
    """Sequence of models hydrated from a search response.

    Args:
        items: Hydrated models, in hit order
        meta: The raw engine response (took, timed_out, _shards, hits, aggregations)
    """

    def __init__(self, items: Sequence[T] = (), meta: Optional[Response] = None) -> None:
        self.items: List[T] = list(items)
        self.meta: Response = dict(meta or {})

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> T:
        return self.items[index]

    def __bool__(self) -> bool:
        return bool(self.items)

    def __repr__(self) -> str:
        return f"<ResultCollection: {len(self.items)} of {self.total_hits()}>"

    def total_hits(self) -> int:
        """Total number of matches, not just the ones on this page."""
        return normalize_total(self.meta.get("hits", {}).get("total"))

    def max_score(self) -> Optional[float]:
        return self.meta.get("hits", {}).get("max_score")

    def took(self) -> Optional[int]:
        return self.meta.get("took")

    def timed_out(self) -> bool:
        return bool(self.meta.get("timed_out", False))

    def shards(self) -> Dict[str, Any]:
        return dict(self.meta.get("_shards") or {})

    def aggregations(self) -> Dict[str, Any]:
        return dict(self.meta.get("aggregations") or {})

    def hits(self) -> Hits:
        return list(self.meta.get("hits", {}).get("hits") or [])


class Paginator(Generic[T]):
    """One page of search results with the total needed to page through them.

    Args:
        items: Models on this page
        hits: Raw hits for this page
        total: Total number of matches (int, or the engine's `{"value": n}` form)
        per_page: Page size, must be positive
        current_page: 1-based page number
        extra: Additional data, e.g. `{"path": ..., "aggregations": {...}}`
    """

    def __init__(
        self,
        items: Sequence[T],
        hits: Hits,
        total: Any,
        per_page: int,
        current_page: int = 1,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        if per_page is None or per_page <= 0:
            raise IllegalArgumentError("per_page must be a positive integer.", per_page=per_page)
        self.items: List[T] = list(items)
        self.hits: Hits = list(hits)
        self.total = normalize_total(total)
        self.per_page = per_page
        self.current_page = max(int(current_page or 1), 1)
        self.extra: Dict[str, Any] = dict(extra or {})

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def last_page(self) -> int:
        return max(int(math.ceil(self.total / self.per_page)), 1)

    @property
    def has_more_pages(self) -> bool:
        return self.current_page < self.last_page

    @property
    def first_item(self) -> Optional[int]:
        if not self.items:
            return None
        return (self.current_page - 1) * self.per_page + 1

    @property
    def last_item(self) -> Optional[int]:
        if not self.items:
            return None
        return self.first_item + len(self.items) - 1

    @property
    def aggregations(self) -> Dict[str, Any]:
        return dict(self.extra.get("aggregations") or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "per_page": self.per_page,
            "current_page": self.current_page,
            "last_page": self.last_page,
            "from": self.first_item,
            "to": self.last_item,
            "hits": self.hits,
            "data": list(self.items),
            **self.extra,
        }
