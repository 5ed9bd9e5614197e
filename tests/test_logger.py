"""Tests for the logger module."""

import logging
from unittest.mock import patch

import pytest

import esquent.logger as logger_module
from esquent.logger import _LEVELS, Logger, get_logger, render_context, setup_global_logging
from esquent.settings import settings


@pytest.fixture
def unconfigured():
    previous = logger_module._configured
    logger_module._configured = False
    yield
    logger_module._configured = previous


class TestSetupGlobalLogging:
    @pytest.mark.parametrize(
        "level,expected",
        [
            ("INFO", logging.INFO),
            ("DEBUG", logging.DEBUG),
            ("warning", logging.WARNING),
            ("CRITICAL", logging.CRITICAL),
            ("INVALID", logging.INFO),
        ],
    )
    def test_level(self, unconfigured, level, expected):
        with patch("logging.basicConfig") as mock_basicconfig:
            setup_global_logging(level=level)
            mock_basicconfig.assert_called_once()
            assert mock_basicconfig.call_args.kwargs["level"] == expected

    def test_idempotent(self, unconfigured):
        logger_module._configured = True
        with patch("logging.basicConfig") as mock_basicconfig:
            setup_global_logging()
            mock_basicconfig.assert_not_called()


class TestLogger:
    def test_get_logger_name(self):
        assert get_logger("esquent.test").name == "esquent.test"

    def test_get_logger_default_name(self):
        assert get_logger().name == "esquent.logger"

    def test_levels_table(self):
        assert _LEVELS["ERROR"] == logging.ERROR

    def test_standard_methods(self, caplog):
        log = Logger("esquent.methods")
        with caplog.at_level(logging.DEBUG, logger="esquent.methods"):
            log.debug("d")
            log.info("i")
            log.warning("w")
            log.error("e")
            log.critical("c")
        assert [r.levelno for r in caplog.records] == [
            logging.DEBUG,
            logging.INFO,
            logging.WARNING,
            logging.ERROR,
            logging.CRITICAL,
        ]

    @pytest.mark.parametrize(
        "configured,expected",
        [("DEBUG", logging.DEBUG), ("INFO", logging.INFO), ("", logging.INFO), ("WARNING", logging.WARNING)],
    )
    def test_message_follows_log_level(self, monkeypatch, caplog, configured, expected):
        monkeypatch.setattr(settings, "LOG_LEVEL", configured)
        log = Logger("esquent.message")
        with caplog.at_level(logging.DEBUG, logger="esquent.message"):
            log.message("Search index=%s", "posts")
        assert caplog.records[-1].levelno == expected
        assert caplog.records[-1].getMessage() == "Search index=posts"

    def test_rejected_builder_call_is_logged(self, caplog, builder):
        with caplog.at_level(logging.DEBUG, logger="esquent.querydsl.builder"):
            with pytest.raises(ValueError):
                builder.where("age", "<", None)
        assert any("Rejected builder call" in r.getMessage() for r in caplog.records)


class TestContext:
    def test_render_context(self):
        assert render_context("Search", {"index": "posts", "from_": 0, "size": 10}) == "Search index=posts from=0 size=10"
        assert render_context("Search", {}) == "Search"

    def test_context_kwargs_rendered(self, caplog):
        log = Logger("esquent.context")
        with caplog.at_level(logging.INFO, logger="esquent.context"):
            log.info("Index", index="posts", id=3)
        assert caplog.records[-1].getMessage() == "Index index=posts id=3"

    def test_logging_kwargs_passed_through(self, caplog):
        log = Logger("esquent.context")
        with caplog.at_level(logging.ERROR, logger="esquent.context"):
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                log.error("Search engine call failed", operation="search", exc_info=True)
        record = caplog.records[-1]
        assert record.getMessage() == "Search engine call failed operation=search"
        assert record.exc_info[0] is RuntimeError

    def test_percent_in_context_left_literal(self, caplog):
        log = Logger("esquent.context")
        with caplog.at_level(logging.INFO, logger="esquent.context"):
            log.info("Match on %s", "title", minimum_should_match="50%", query="100%s")
        assert caplog.records[-1].getMessage() == "Match on title minimum_should_match=50% query=100%s"

    def test_percent_in_context_without_args(self, caplog):
        log = Logger("esquent.context")
        with caplog.at_level(logging.INFO, logger="esquent.context"):
            log.info("Match", minimum_should_match="75%")
        assert caplog.records[-1].getMessage() == "Match minimum_should_match=75%"

    def test_mapping_args(self, caplog):
        log = Logger("esquent.context")
        with caplog.at_level(logging.INFO, logger="esquent.context"):
            log.info("Search %(index)s", {"index": "posts"}, size=10)
        assert caplog.records[-1].getMessage() == "Search posts size=10"

    def test_rejected_raw_field_with_percent(self, caplog, builder):
        with caplog.at_level(logging.DEBUG, logger="esquent.querydsl.builder"):
            with pytest.raises(ValueError):
                builder.where_raw("a%", "bogus", "x")
        message = caplog.records[-1].getMessage()
        assert "field=a%" in message
        assert "Illegal elasticsearch operator" in message

    def test_disabled_level_skips_rendering(self, caplog):
        log = Logger("esquent.quiet")
        with caplog.at_level(logging.WARNING, logger="esquent.quiet"):
            log.debug("ignored", index="posts")
        assert caplog.records == []
