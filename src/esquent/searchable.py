"""Model glue: keep model records mirrored in a search index and search them.

`Searchable` is a mixin for any model class. It needs two things from the
ORM side: a key attribute (`__search_key__`, "id" by default) and the record's
attribute map (`to_dict()` when the model has one, public attributes
otherwise). Results come back as model instances built from the stored
`_source`, flagged with `is_document` and carrying the hit score.

    class Post(Searchable, Base):
        __index_name__ = "posts"

    Post(id=1, title="Hello").add_to_index()
    hits = Post.complex_search(QueryBuilder().where("title", "hello").limit(10))

Save/delete signal handlers of the ORM should call `on_saved` / `on_deleted`.
"""

from copy import deepcopy
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .client import SearchClient, get_search_client
from .constants import Dialect
from .exceptions import DocumentNotFoundError, MissingFieldError, VersionConflictError
from .logger import Logger
from .querydsl.builder import QueryBuilder
from .results import Paginator, ResultCollection
from .settings import settings as api_settings
from .types import DocId, Fragment, Response, SearchParams
from .utils import coerce_key, merge_recursive, serialize_document, unique

__all__ = ("Searchable",)

_DOCUMENT_STATE = ("is_document", "document_score", "document_version")

SearchInput = Union[QueryBuilder, SearchParams, None]


class Searchable:
    """Search index synchronisation and search entry points for a model class.

    Class attributes:
        __index_name__: Index holding this model's documents (default: class name, lower-cased, plus "s")
        __search_key__: Attribute mirrored as the document `_id`
        __auto_index__: Whether `on_saved` writes to the index; None means `settings.AUTO_INDEX`
        __timestamps_in_index__: Whether `__timestamp_fields__` are sent with the document
    """

    __index_name__: ClassVar[Optional[str]] = None
    __search_key__: ClassVar[str] = "id"
    __auto_index__: ClassVar[Optional[bool]] = None
    __timestamps_in_index__: ClassVar[bool] = True
    __timestamp_fields__: ClassVar[Tuple[str, ...]] = ("created_at", "updated_at")

    # Set on instances hydrated from search hits
    is_document: bool = False
    document_score: Optional[float] = None
    document_version: Optional[int] = None

    # ------------------------------------------------------------------
    # Configuration hooks
    # ------------------------------------------------------------------

    @classmethod
    def search_client(cls) -> SearchClient:
        return get_search_client()

    @classmethod
    def get_index_name(cls) -> str:
        return cls.__index_name__ or f"{cls.__name__.lower()}s"

    @classmethod
    def new_search_query(cls, body: Optional[Mapping[str, Any]] = None) -> QueryBuilder:
        """A builder compiling for the same engine generation as the client."""
        return QueryBuilder(body, profile=cls.search_client().profile)

    @classmethod
    def search_scope(cls) -> Union[QueryBuilder, SearchParams, None]:
        """Constraints applied to every `complex_search`/`paginate` call.

        Override to return a `QueryBuilder` or params dict, e.g. to hide
        unpublished records.
        """
        return None

    @classmethod
    def uses_auto_index(cls) -> bool:
        if cls.__auto_index__ is None:
            return api_settings.AUTO_INDEX
        return bool(cls.__auto_index__)

    @classmethod
    def uses_timestamps_in_index(cls) -> bool:
        return bool(cls.__timestamps_in_index__)

    @classmethod
    def _logger(cls) -> Logger:
        return Logger(cls.__name__)

    # ------------------------------------------------------------------
    # Document data
    # ------------------------------------------------------------------

    def get_search_key(self) -> Optional[DocId]:
        return getattr(self, self.__search_key__, None)

    def to_search_document(self) -> Dict[str, Any]:
        """Attribute map sent to the index; dates are rendered as strings.

        Timestamp fields are left out when `uses_timestamps_in_index()` is False.
        """
        to_dict = getattr(self, "to_dict", None)
        if callable(to_dict):
            data = dict(to_dict())
        else:
            data = {k: v for k, v in vars(self).items() if not k.startswith("_") and k not in _DOCUMENT_STATE}
        if not self.uses_timestamps_in_index():
            for field in self.__timestamp_fields__:
                data.pop(field, None)
        return serialize_document(data)

    def _require_key(self, operation: str) -> DocId:
        key = self.get_search_key()
        if key is None:
            raise MissingFieldError("Document key not set", field=self.__search_key__, operation=operation)
        return key

    # ------------------------------------------------------------------
    # Index synchronisation
    # ------------------------------------------------------------------

    def add_to_index(self, version: Optional[int] = None) -> Response:
        """Write the full document. The document id always mirrors the model key."""
        key = self._require_key("add_to_index")
        return self.search_client().index(self.get_index_name(), key, self.to_search_document(), version=version)

    def remove_from_index(self) -> Union[Response, bool]:
        """Delete the document; False when it was not indexed."""
        key = self._require_key("remove_from_index")
        try:
            return self.search_client().delete(self.get_index_name(), key)
        except DocumentNotFoundError:
            return False

    def update_index(self) -> Union[Response, bool]:
        """Partial update of the indexed document; False when it was not indexed."""
        key = self._require_key("update_index")
        try:
            return self.search_client().update(self.get_index_name(), key, self.to_search_document())
        except DocumentNotFoundError:
            return False

    def index_with_version(self, version: int) -> Union[Response, bool]:
        """Index with external versioning; False on a missing document or a stale version."""
        try:
            return self.add_to_index(version)
        except (DocumentNotFoundError, VersionConflictError):
            return False

    def auto_index(self, saved: Any = True) -> Any:
        """Mirror the record if auto indexing is on: update, or index when absent.

        Returns `saved` unchanged so it can wrap the ORM's own return value.
        """
        if self.uses_auto_index():
            if not self.update_index():
                self.add_to_index()
        return saved

    def on_saved(self) -> None:
        self.auto_index()

    def on_deleted(self) -> None:
        if self.uses_auto_index():
            self.remove_from_index()

    def get_indexed_document(self) -> Response:
        key = self._require_key("get_indexed_document")
        return self.search_client().get(self.get_index_name(), key)

    @classmethod
    def add_all_to_index(cls, records: Iterable["Searchable"]) -> Tuple[int, List[Any]]:
        """Index every record in one bulk request; returns `(succeeded, errors)`."""
        index = cls.get_index_name()
        actions = [
            {
                "_op_type": "index",
                "_index": index,
                "_id": str(record._require_key("add_all_to_index")),
                "_source": record.to_search_document(),
            }
            for record in records
        ]
        return cls.search_client().bulk(actions)

    @classmethod
    def reindex(cls, records: Iterable["Searchable"]) -> Tuple[int, List[Any]]:
        """Delete the records' documents, then index them again in bulk.

        Deleting a document that was never indexed is not an error.
        """
        records = list(records)
        index = cls.get_index_name()
        deletes = [
            {"_op_type": "delete", "_index": index, "_id": str(record._require_key("reindex"))}
            for record in records
        ]
        cls.search_client().bulk(deletes, raise_on_error=False)
        return cls.add_all_to_index(records)

    # ------------------------------------------------------------------
    # Searching
    # ------------------------------------------------------------------

    @classmethod
    def search_result(
        cls,
        query: Optional[Fragment] = None,
        aggregations: Optional[Fragment] = None,
        source_fields: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        sort: Optional[List[Fragment]] = None,
    ) -> Response:
        """Search with pre-built body sections; returns the raw response."""
        client = cls.search_client()
        body: Dict[str, Any] = {}
        if source_fields:
            body["_source"] = {client.profile.source_include_key: list(source_fields)}
        if query:
            body["query"] = query
        if aggregations:
            body["aggs"] = aggregations
        if sort:
            body["sort"] = sort

        params: SearchParams = {"body": body}
        if isinstance(limit, int):
            params["size"] = limit
        if isinstance(offset, int):
            params["from"] = offset
        return client.search(cls.get_index_name(), params)

    @classmethod
    def search_by_query(
        cls,
        query: Optional[Fragment] = None,
        aggregations: Optional[Fragment] = None,
        source_fields: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        sort: Optional[List[Fragment]] = None,
    ) -> ResultCollection:
        response = cls.search_result(query, aggregations, source_fields, limit, offset, sort)
        return cls.hydrate_result(response)

    @classmethod
    def search(cls, term: str = "") -> ResultCollection:
        """Simple search for `term` across all fields."""
        if not term:
            query: Fragment = {"match_all": {}}
        elif cls.search_client().profile.dialect == Dialect.FILTERED:
            query = {"match": {"_all": term}}
        else:
            query = {"multi_match": {"query": term}}
        return cls.search_by_query(query=query)

    @classmethod
    def complex_search_result(
        cls, params: SearchInput = None, columns: Optional[Sequence[str]] = None, use_global_scope: bool = True
    ) -> Response:
        """Run a builder or params dict, merged with `search_scope()`; returns the raw response."""
        params = cls._prepare_params(params, columns, use_global_scope)
        return cls.search_client().search(cls.get_index_name(), params)

    @classmethod
    def complex_search(
        cls, params: SearchInput = None, columns: Optional[Sequence[str]] = None, use_global_scope: bool = True
    ) -> ResultCollection:
        return cls.hydrate_result(cls.complex_search_result(params, columns, use_global_scope))

    @classmethod
    def paginate(
        cls,
        params: SearchInput = None,
        page: int = 1,
        per_page: Optional[int] = None,
        columns: Optional[Sequence[str]] = None,
        use_global_scope: bool = True,
    ) -> Paginator:
        """Fetch one page. `per_page` falls back to the params' size, then SEARCH_DEFAULT_LIMIT."""
        params = cls._as_params(params)
        per_page = per_page or params.get("size") or api_settings.SEARCH_DEFAULT_LIMIT
        page = max(int(page or 1), 1)
        params["size"] = per_page
        params["from"] = (page - 1) * per_page

        response = cls.complex_search_result(params, columns, use_global_scope)
        results = cls.hydrate_result(response)
        return Paginator(
            results.items,
            results.hits(),
            results.total_hits(),
            per_page,
            page,
            extra={"aggregations": results.aggregations()},
        )

    @classmethod
    def _as_params(cls, params: SearchInput) -> SearchParams:
        if isinstance(params, QueryBuilder):
            return params.build_merge_query()
        result = deepcopy(dict(params or {}))
        result.setdefault("body", {})
        return result

    @classmethod
    def _prepare_params(
        cls, params: SearchInput, columns: Optional[Sequence[str]], use_global_scope: bool
    ) -> SearchParams:
        params = cls._as_params(params)
        if use_global_scope:
            scope = cls.search_scope()
            if scope is not None:
                # scope fragments go first; explicit from/size/flags of the call win
                params = merge_recursive(cls._as_params(scope), params)

        if columns:
            key = cls.search_client().profile.source_include_key
            source = params["body"].get("_source")
            if isinstance(source, dict) and key in source:
                source[key] = unique(list(source[key]) + list(columns))
            else:
                params["body"]["_source"] = {key: list(columns)}
        return params

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    @classmethod
    def from_search_attributes(cls, attributes: Dict[str, Any]) -> "Searchable":
        """Build a model from document attributes. Override for ORMs without keyword constructors."""
        return cls(**attributes)

    @classmethod
    def from_hit(cls, hit: Mapping[str, Any]) -> "Searchable":
        """Model instance from one search hit: `_source`, `_id` as key, plus any `fields`."""
        attributes = dict(hit.get("_source") or {})
        if "_id" in hit:
            attributes[cls.__search_key__] = coerce_key(hit["_id"])
        for key, value in (hit.get("fields") or {}).items():
            attributes[key] = value

        instance = cls.from_search_attributes(attributes)
        instance.document_score = hit.get("_score")
        instance.is_document = True
        if "_version" in hit:
            instance.document_version = hit["_version"]
        return instance

    @classmethod
    def hydrate_result(cls, response: Response) -> ResultCollection:
        hits = (response.get("hits") or {}).get("hits") or []
        items = [cls.from_hit(hit) for hit in hits]
        cls._logger().debug("Hydrated %d %s documents", len(items), cls.__name__)
        return ResultCollection(items, meta=response)
