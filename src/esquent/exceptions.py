"""Custom exceptions for esquent.

Query building only ever raises `IllegalArgumentError`, synchronously, at the
call that broke a precondition. The remaining classes belong to the search
client and model glue, where engine failures are translated into this
hierarchy.
"""

from typing import Any, Dict


# Base exception
class EsquentError(Exception):
    """Base class of every error esquent raises.

    `details` holds the context of the failure (field, operator, index,
    document id, ...) so callers can inspect it without parsing the message.
    """

    def __init__(self, message: str = "", **details: Any) -> None:
        self.message = message
        self.details: Dict[str, Any] = details
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} ({context})" if self.message else context

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, details={self.details!r})"


# Query building
class IllegalArgumentError(EsquentError, ValueError):
    """Raised when a builder call gets an operator/value/shape it cannot translate.

    Example:
        >>> raise IllegalArgumentError("Illegal operator and value combination.", field="age", operator="<")
    """


# Model data
class ValidationError(EsquentError):
    """Raised when model data cannot be turned into a search document."""


class MissingFieldError(ValidationError):
    """Raised when a record lacks a field the index needs, usually its key.

    Example:
        >>> raise MissingFieldError("Document key not set", field="id", operation="add_to_index")
    """


# Configuration
class ConfigurationError(EsquentError):
    """Raised when configuration is invalid or missing."""


class MissingConfigError(ConfigurationError):
    """Raised when a setting the client needs (hosts, credentials) is empty.

    Example:
        >>> raise MissingConfigError("Configuration not set", config_key="ELASTICSEARCH_HOSTS")
    """


class InvalidConfigError(ConfigurationError):
    """Raised when a setting has a value esquent cannot use.

    Example:
        >>> raise InvalidConfigError("Invalid engine version", config_key="ELASTICSEARCH_VERSION", value="x")
    """


# Engine exceptions
class SearchError(EsquentError):
    """Raised when a call to the search engine fails.

    Example:
        >>> raise SearchError("Search request failed", index="posts", status=400)
    """


class DocumentNotFoundError(SearchError):
    """Raised when the engine reports a missing document (HTTP 404).

    Example:
        >>> raise DocumentNotFoundError("Document not found", index="posts", document_id="42")
    """


class VersionConflictError(SearchError):
    """Raised when the engine rejects a write because of a version conflict (HTTP 409).

    Example:
        >>> raise VersionConflictError("Version conflict", index="posts", document_id="42", version=3)
    """
