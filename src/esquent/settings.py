"""Settings for esquent."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class EsquentSettings(BaseSettings):
    """esquent configuration settings."""

    # Elasticsearch connection
    ELASTICSEARCH_HOSTS: Optional[str] = "http://localhost:9200"  # comma separated
    ELASTICSEARCH_API_KEY: Optional[str] = None
    ELASTICSEARCH_USERNAME: Optional[str] = None
    ELASTICSEARCH_PASSWORD: Optional[str] = None
    ELASTICSEARCH_REQUEST_TIMEOUT: float = 10.0

    # Server version, drives the request dialect (see profile.EngineProfile)
    ELASTICSEARCH_VERSION: str = "8.0.0"

    # Query building
    QUERY_CONSOLIDATE_FILTERS: bool = False
    AGGREGATION_ALL_BUCKETS_SIZE: int = 10000

    # Search / sync behaviour
    SEARCH_DEFAULT_LIMIT: int = 10
    AUTO_INDEX: bool = True
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = EsquentSettings()
