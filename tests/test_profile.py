"""Tests for EngineProfile."""

import pytest

from esquent.constants import Dialect
from esquent.exceptions import InvalidConfigError
from esquent.profile import EngineProfile
from esquent.settings import settings


@pytest.mark.parametrize(
    "version,major,dialect,source_key",
    [
        ("1.7.5", 1, Dialect.FILTERED, "include"),
        ("2.4.6", 2, Dialect.FILTERED, "include"),
        ("5.6.16", 5, Dialect.BOOL, "includes"),
        ("6.8.23", 6, Dialect.BOOL, "includes"),
        ("7.17.0", 7, Dialect.BOOL, "includes"),
        ("8.11.0", 8, Dialect.BOOL, "includes"),
    ],
)
def test_capabilities(version, major, dialect, source_key):
    profile = EngineProfile(version=version)
    assert profile.major == major
    assert profile.dialect == dialect
    assert profile.source_include_key == source_key


def test_default_is_modern():
    assert EngineProfile().dialect == Dialect.BOOL


def test_major_only_version():
    assert EngineProfile(version=" 7 ").major == 7


@pytest.mark.parametrize("version", ["", "latest", "v8.0.0"])
def test_invalid_version(version):
    with pytest.raises(InvalidConfigError) as exc:
        EngineProfile(version=version)
    assert exc.value.details["config_key"] == "ELASTICSEARCH_VERSION"


def test_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "ELASTICSEARCH_VERSION", "2.4.0")
    assert EngineProfile.from_settings().dialect == Dialect.FILTERED


def test_frozen():
    profile = EngineProfile(version="8.0.0")
    with pytest.raises(Exception):
        profile.version = "1.0.0"
