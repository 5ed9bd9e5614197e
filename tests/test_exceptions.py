"""Tests for the esquent exception hierarchy."""

import pytest

from esquent.exceptions import (
    ConfigurationError,
    DocumentNotFoundError,
    EsquentError,
    IllegalArgumentError,
    InvalidConfigError,
    MissingConfigError,
    MissingFieldError,
    SearchError,
    ValidationError,
    VersionConflictError,
)


class TestEsquentError:
    def test_message_only(self):
        err = EsquentError("Something failed")
        assert str(err) == "Something failed"
        assert err.details == {}

    def test_message_with_details(self):
        err = EsquentError("Illegal operator.", field="age", operator="~")
        assert str(err) == "Illegal operator. (field='age', operator='~')"
        assert err.details == {"field": "age", "operator": "~"}

    def test_details_only(self):
        assert str(EsquentError(index="posts")) == "index='posts'"

    def test_repr(self):
        err = EsquentError("x", a=1)
        assert repr(err) == "EsquentError('x', details={'a': 1})"


@pytest.mark.parametrize(
    "cls,parents",
    [
        (IllegalArgumentError, (EsquentError, ValueError)),
        (MissingFieldError, (ValidationError, EsquentError)),
        (MissingConfigError, (ConfigurationError, EsquentError)),
        (InvalidConfigError, (ConfigurationError, EsquentError)),
        (DocumentNotFoundError, (SearchError, EsquentError)),
        (VersionConflictError, (SearchError, EsquentError)),
    ],
)
def test_hierarchy(cls, parents):
    for parent in parents:
        assert issubclass(cls, parent)


def test_catch_by_base():
    with pytest.raises(SearchError):
        raise DocumentNotFoundError("Document not found", index="posts", document_id="1")
