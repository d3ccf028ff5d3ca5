"""
Scope and Configuration Tests
"""

import logging

import pytest
from sqlalchemy import select

from conftest import Gadget, Widget
from paranoid.config import configure_logging, get_settings, normalize_timezone
from paranoid.exceptions import ConfigurationError
from paranoid.scopes import QueryScope, deleted_scope, filter_deleted, live_scope, only_deleted


# ============================================================================
# QueryScope Tests
# ============================================================================


class TestQueryScope:
    """Test explicit scope values"""

    def test_live_and_deleted_predicates(self):
        assert str(live_scope(Widget)) == "widgets.deleted_at IS NULL"
        assert str(deleted_scope(Widget)) == "widgets.deleted_at IS NOT NULL"

    def test_merge_keeps_order_and_does_not_mutate(self):
        """Test merging ANDs criteria and leaves both scopes untouched"""
        base = live_scope(Widget)
        extra = QueryScope.of(Widget.title == "test")

        merged = base.merge(extra)

        assert len(merged.criteria) == 2
        assert len(base.criteria) == 1
        assert len(extra.criteria) == 1
        assert str(merged) == "widgets.deleted_at IS NULL AND widgets.title = 'test'"

    def test_merge_with_nothing_returns_self(self):
        base = live_scope(Widget)

        assert base.merge(None) is base
        assert base.merge(QueryScope()) is base

    def test_empty_scope(self):
        empty = QueryScope()
        stmt = select(Widget)

        assert not empty
        assert empty.apply(stmt) is stmt

    def test_where_appends(self):
        scope = QueryScope().where(Widget.title == "a", Widget.id > 3)

        assert len(scope.criteria) == 2

    def test_statement_helpers(self):
        """Test the select helpers filter on deleted_at"""
        assert "WHERE widgets.deleted_at IS NULL" in str(filter_deleted(select(Widget), Widget))
        assert "WHERE widgets.deleted_at IS NOT NULL" in str(only_deleted(select(Widget), Widget))

    def test_model_without_deleted_at(self):
        with pytest.raises(ConfigurationError):
            live_scope(Gadget)


# ============================================================================
# Configuration Tests
# ============================================================================


class TestSettings:
    """Test environment-driven settings"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PARANOID_DEFAULT_TIMEZONE", raising=False)
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("SQL_ECHO", raising=False)

        settings = get_settings()

        assert settings.default_timezone == "local"
        assert settings.database_url == "sqlite:///./paranoid.db"
        assert settings.sql_echo is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PARANOID_DEFAULT_TIMEZONE", " UTC ")
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        monkeypatch.setenv("SQL_ECHO", "true")

        settings = get_settings()

        assert settings.default_timezone == "utc"
        assert settings.database_url == "sqlite://"
        assert settings.sql_echo is True

    def test_invalid_timezone(self, monkeypatch):
        monkeypatch.setenv("PARANOID_DEFAULT_TIMEZONE", "mars")

        with pytest.raises(ConfigurationError):
            get_settings()

    def test_normalize_timezone(self):
        assert normalize_timezone("Local") == "local"
        with pytest.raises(ConfigurationError):
            normalize_timezone(None)

    def test_model_falls_back_to_settings(self, monkeypatch):
        """Test models without their own timezone use PARANOID_DEFAULT_TIMEZONE"""
        monkeypatch.setattr(Widget, "default_timezone", None)
        monkeypatch.setenv("PARANOID_DEFAULT_TIMEZONE", "utc")

        assert Widget.timezone_mode() == "utc"

    def test_model_override_wins(self, monkeypatch):
        monkeypatch.setenv("PARANOID_DEFAULT_TIMEZONE", "utc")

        assert Widget.timezone_mode() == "local"

    def test_configure_logging(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        monkeypatch.setenv("LOG_LEVEL", "debug")

        configure_logging()

        assert calls[0]["level"] == "DEBUG"
