"""Search engine client wrapper.

`SearchClient` is the only place esquent talks to the engine. It wraps an
`elasticsearch.Elasticsearch` instance (built lazily from settings unless one
is injected), accepts `QueryBuilder` objects or pre-built params for searches,
and translates engine exceptions into the esquent hierarchy.

No retries happen here; transient failures surface as `SearchError` and
callers decide what to do with them.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from elasticsearch import ApiError, ConflictError, Elasticsearch, NotFoundError, TransportError
from elasticsearch.helpers import BulkIndexError, bulk

from .exceptions import DocumentNotFoundError, MissingConfigError, SearchError, VersionConflictError
from .logger import Logger
from .profile import EngineProfile
from .querydsl.builder import QueryBuilder
from .settings import settings as api_settings
from .types import DocId, Response, SearchParams

__all__ = ("SearchClient", "get_search_client", "set_search_client")


def _to_dict(response: Any) -> Response:
    """Engine responses are `ObjectApiResponse` objects; callers get plain dicts."""
    body = getattr(response, "body", response)
    if isinstance(body, Mapping):
        return dict(body)
    return {"result": body}


class SearchClient:
    """Thin wrapper over the engine's HTTP client.

    Attributes:
        profile: Engine generation; decides how builders passed to `search`
            are compiled.
    """

    def __init__(self, client: Optional[Elasticsearch] = None, profile: Optional[EngineProfile] = None) -> None:
        self._client = client
        self.profile = profile or EngineProfile.from_settings()
        self.logger = Logger(self.__class__.__name__)

    @property
    def client(self) -> Elasticsearch:
        """Lazily initialize and return the engine client.

        Raises:
            MissingConfigError: If ELASTICSEARCH_HOSTS is empty
        """
        if self._client is None:
            hosts = [h.strip() for h in (api_settings.ELASTICSEARCH_HOSTS or "").split(",") if h.strip()]
            if not hosts:
                raise MissingConfigError(
                    "ELASTICSEARCH_HOSTS is not set. Please configure it in your .env file.",
                    config_key="ELASTICSEARCH_HOSTS",
                    env_file=".env",
                )
            kwargs: Dict[str, Any] = {"request_timeout": api_settings.ELASTICSEARCH_REQUEST_TIMEOUT}
            if api_settings.ELASTICSEARCH_API_KEY:
                kwargs["api_key"] = api_settings.ELASTICSEARCH_API_KEY
            elif api_settings.ELASTICSEARCH_USERNAME:
                kwargs["basic_auth"] = (api_settings.ELASTICSEARCH_USERNAME, api_settings.ELASTICSEARCH_PASSWORD or "")
            self._client = Elasticsearch(hosts, **kwargs)
            self.logger.message("Elasticsearch client initialized", hosts=hosts)
        return self._client

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(
        self,
        index: str,
        params: Union[QueryBuilder, SearchParams, None] = None,
    ) -> Response:
        """Run a search.

        Args:
            index: Index name
            params: A `QueryBuilder` (compiled with `build_merge_query`) or a
                params dict shaped like its output: `{"body", "from", "size"}`

        Returns:
            Raw engine response as a dict
        """
        if isinstance(params, QueryBuilder):
            params = params.build_merge_query()
        params = dict(params or {})

        kwargs: Dict[str, Any] = {"index": index, "body": params.get("body") or {}}
        if params.get("from") is not None:
            kwargs["from_"] = params["from"]
        if params.get("size") is not None:
            kwargs["size"] = params["size"]

        self.logger.message("Search", index=index, from_=kwargs.get("from_"), size=kwargs.get("size"))
        response = self._call("search", **kwargs)
        self.logger.debug("Search done", index=index, took=response.get("took"))
        return response

    # ------------------------------------------------------------------
    # Document operations
    # ------------------------------------------------------------------

    def index(
        self,
        index: str,
        id: DocId,
        document: Mapping[str, Any],
        version: Optional[int] = None,
    ) -> Response:
        """Create or replace a document. A `version` enables external versioning."""
        kwargs: Dict[str, Any] = {"index": index, "id": str(id), "document": dict(document)}
        if version is not None:
            kwargs["version"] = version
            kwargs["version_type"] = "external"
        self.logger.message("Index", index=index, id=id, version=version)
        return self._call("index", document_id=id, **kwargs)

    def update(self, index: str, id: DocId, document: Mapping[str, Any]) -> Response:
        """Partial update of an existing document."""
        kwargs: Dict[str, Any] = {"index": index, "id": str(id), "doc": dict(document)}
        self.logger.message("Update", index=index, id=id)
        return self._call("update", document_id=id, **kwargs)

    def delete(self, index: str, id: DocId) -> Response:
        kwargs: Dict[str, Any] = {"index": index, "id": str(id)}
        self.logger.message("Delete", index=index, id=id)
        return self._call("delete", document_id=id, **kwargs)

    def get(self, index: str, id: DocId) -> Response:
        kwargs: Dict[str, Any] = {"index": index, "id": str(id)}
        return self._call("get", document_id=id, **kwargs)

    def bulk(self, actions: Iterable[Mapping[str, Any]], raise_on_error: bool = True) -> Tuple[int, List[Any]]:
        """Send many index/delete actions through `elasticsearch.helpers.bulk`.

        Actions use the helper format: `{"_op_type", "_index", "_id", "_source"}`.

        Returns:
            `(succeeded, errors)`; `errors` is only populated when
            `raise_on_error` is False

        Raises:
            SearchError: an item failed (with `raise_on_error`) or the
                request itself failed
        """
        actions = list(actions)
        self.logger.message("Bulk", actions=len(actions))
        try:
            succeeded, errors = bulk(self.client, actions, raise_on_error=raise_on_error)
        except BulkIndexError as e:
            self.logger.error("Bulk request had failed items", failed=len(e.errors))
            raise SearchError("Bulk request had failed items", failed=len(e.errors), errors=e.errors) from e
        except (ApiError, TransportError) as e:
            self.logger.error("Search engine call failed", operation="bulk", error=e, exc_info=True)
            raise SearchError(f"Search engine bulk failed: {e}", operation="bulk") from e
        return succeeded, list(errors)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _call(self, operation: str, document_id: Optional[DocId] = None, **kwargs: Any) -> Response:
        index = kwargs.get("index")
        try:
            response = getattr(self.client, operation)(**kwargs)
        except NotFoundError as e:
            if document_id is None:
                self.logger.error("Index not found", index=index, operation=operation, exc_info=True)
                raise SearchError("Index not found", index=index, operation=operation) from e
            raise DocumentNotFoundError(
                "Document not found", index=index, document_id=document_id, operation=operation
            ) from e
        except ConflictError as e:
            raise VersionConflictError(
                "Version conflict",
                index=index,
                document_id=document_id,
                operation=operation,
                version=kwargs.get("version"),
            ) from e
        except (ApiError, TransportError) as e:
            self.logger.error("Search engine call failed", index=index, operation=operation, error=e, exc_info=True)
            raise SearchError(f"Search engine {operation} failed: {e}", index=index, operation=operation) from e
        return _to_dict(response)


_default_client: Optional[SearchClient] = None


def get_search_client() -> SearchClient:
    """Return the process-wide default client, created on first use."""
    global _default_client
    if _default_client is None:
        _default_client = SearchClient()
    return _default_client


def set_search_client(client: Optional[SearchClient]) -> None:
    """Replace (or with None, reset) the process-wide default client."""
    global _default_client
    _default_client = client
