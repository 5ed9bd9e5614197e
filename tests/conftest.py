"""Pytest configuration and fixtures for esquent tests."""

from copy import deepcopy
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock, patch

import pytest
from dotenv import load_dotenv
from elasticsearch import ConflictError, NotFoundError
from elasticsearch.helpers import BulkIndexError

from esquent.client import SearchClient, set_search_client
from esquent.profile import EngineProfile
from esquent.querydsl.builder import QueryBuilder
from esquent.searchable import Searchable

# Load environment variables
load_dotenv()


def api_error(cls, status: int, message: str = "error"):
    """Build an elasticsearch ApiError subclass without a live transport."""
    return cls(message, meta=MagicMock(status=status), body={"error": message})


@pytest.fixture
def make_api_error():
    return api_error


@pytest.fixture(scope="session")
def modern_profile():
    return EngineProfile(version="8.11.0")


@pytest.fixture(scope="session")
def legacy_profile():
    return EngineProfile(version="1.7.5")


@pytest.fixture
def builder(modern_profile):
    """Empty builder compiling for a current engine."""
    return QueryBuilder(profile=modern_profile)


@pytest.fixture
def legacy_builder(legacy_profile):
    """Empty builder compiling for a 1.x engine (filtered query dialect)."""
    return QueryBuilder(profile=legacy_profile)


# In-memory stand-in for elasticsearch.Elasticsearch
class InMemoryElasticsearch:
    """Stores documents per index and answers the calls SearchClient makes.

    - index/update/delete/get behave like the engine, including 404s
    - index with an external version rejects versions that are not newer
    - search ignores the query and returns every stored document as a hit
    """

    def __init__(self) -> None:
        self.indices: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.versions: Dict[str, Dict[str, int]] = {}
        self.searches: List[Dict[str, Any]] = []

    def index(self, index: str, id: str, document: Dict[str, Any], version: Optional[int] = None, **kwargs):
        current = self.versions.setdefault(index, {}).get(id, 0)
        if version is not None and version <= current:
            raise api_error(ConflictError, 409, "version_conflict_engine_exception")
        new_version = version if version is not None else current + 1
        self.indices.setdefault(index, {})[id] = deepcopy(document)
        self.versions[index][id] = new_version
        return {"_index": index, "_id": id, "_version": new_version, "result": "created"}

    def update(self, index: str, id: str, doc: Dict[str, Any], **kwargs):
        stored = self.indices.get(index, {})
        if id not in stored:
            raise api_error(NotFoundError, 404, "document_missing_exception")
        stored[id].update(deepcopy(doc))
        self.versions[index][id] += 1
        return {"_index": index, "_id": id, "_version": self.versions[index][id], "result": "updated"}

    def delete(self, index: str, id: str, **kwargs):
        stored = self.indices.get(index, {})
        if id not in stored:
            raise api_error(NotFoundError, 404, "not_found")
        del stored[id]
        return {"_index": index, "_id": id, "result": "deleted"}

    def get(self, index: str, id: str, **kwargs):
        stored = self.indices.get(index, {})
        if id not in stored:
            raise api_error(NotFoundError, 404, "not_found")
        return {"_index": index, "_id": id, "_version": self.versions[index][id], "found": True, "_source": stored[id]}

    def search(self, index: str, body: Dict[str, Any], **kwargs):
        self.searches.append({"index": index, "body": deepcopy(body), **kwargs})
        docs = list(self.indices.get(index, {}).items())
        start = kwargs.get("from_", 0) or 0
        size = kwargs.get("size", 10)
        page = docs[start : start + size]
        hits = [{"_index": index, "_id": doc_id, "_score": 1.0, "_source": deepcopy(src)} for doc_id, src in page]
        return {
            "took": 3,
            "timed_out": False,
            "_shards": {"total": 1, "successful": 1, "skipped": 0, "failed": 0},
            "hits": {"total": {"value": len(docs), "relation": "eq"}, "max_score": 1.0 if hits else None, "hits": hits},
        }


@pytest.fixture
def fake_es():
    return InMemoryElasticsearch()


@pytest.fixture
def search_client(fake_es, modern_profile):
    client = SearchClient(client=fake_es, profile=modern_profile)
    set_search_client(client)
    yield client
    set_search_client(None)


def replay_bulk(client, actions, raise_on_error=True, **kwargs):
    """Apply bulk actions one at a time, returning what `helpers.bulk` returns."""
    succeeded, errors = 0, []
    for action in actions:
        op = action.get("_op_type", "index")
        try:
            if op == "delete":
                client.delete(index=action["_index"], id=action["_id"])
            else:
                client.index(index=action["_index"], id=action["_id"], document=action["_source"])
        except NotFoundError:
            errors.append({op: {"_index": action["_index"], "_id": action["_id"], "status": 404}})
            continue
        succeeded += 1
    if errors and raise_on_error:
        raise BulkIndexError(f"{len(errors)} document(s) failed to index.", errors)
    return succeeded, errors


@pytest.fixture
def bulk_helper():
    """Route `SearchClient.bulk` through `replay_bulk`."""
    with patch("esquent.client.bulk", side_effect=replay_bulk) as helper:
        yield helper


class Post(Searchable):
    """Minimal model standing in for an ORM record."""

    __index_name__ = "posts"

    def __init__(self, id=None, title=None, status="draft", published_at=None, **extra):
        self.id = id
        self.title = title
        self.status = status
        self.published_at = published_at
        for key, value in extra.items():
            setattr(self, key, value)


@pytest.fixture
def post_model():
    return Post
