"""Tests for the resolved configuration models."""

from __future__ import annotations

import copy

from openx_config.config.substitution import substitute
from openx_config.config.models import VenueConfig


def _resolved(full_document, db_env):
    return VenueConfig.model_validate(substitute(full_document, db_env).tree)


class TestVenueConfig:
    def test_primary_currency(self, full_document, db_env):
        config = _resolved(full_document, db_env)
        assert config.primary_currency.symbol == "USDT"

    def test_primary_currency_skips_disabled(self, full_document, db_env):
        currencies = full_document["instrument"]["settlement_currencies"]
        disabled = copy.deepcopy(currencies[0])
        disabled.update(symbol="DAI", enabled=False)
        currencies.insert(0, disabled)
        assert _resolved(full_document, db_env).primary_currency.symbol == "USDT"

    def test_enabled_assets(self, full_document, db_env):
        full_document["instrument"]["supported_assets"][1]["enabled"] = False
        config = _resolved(full_document, db_env)
        assert [a.symbol for a in config.enabled_assets] == ["BTC"]

    def test_expiry_times_are_strings(self, full_document, db_env):
        config = _resolved(full_document, db_env)
        assert config.expiry_schedule.daily.expiry_time_utc == "08:00"
        assert config.expiry_schedule.quarterly.months == [3, 6, 9, 12]


class TestPostgresUrl:
    def test_url_parts(self, full_document, db_env):
        url = _resolved(full_document, db_env).storage.postgres.sqlalchemy_url()
        assert url.drivername == "postgresql+psycopg"
        assert url.host == "db.internal"
        assert url.port == 5432
        assert url.database == "instruments"
        assert url.username == "openx"
        assert url.query["sslmode"] == "require"

    def test_password_hidden_when_rendered(self, full_document, db_env):
        url = _resolved(full_document, db_env).storage.postgres.sqlalchemy_url()
        rendered = url.render_as_string(hide_password=True)
        assert "s3cret" not in rendered
        assert "db.internal" in rendered


class TestStorageDomains:
    def test_service_blocks_resolved(self, full_document, db_env):
        db_env["OMS_DB_HOST"] = "oms.internal"
        db_env["RISK_DB_NAME"] = "risk"
        domains = _resolved(full_document, db_env).storage_domains
        assert list(domains) == ["instrument", "oms", "risk_engine"]
        assert domains["instrument"].postgres.host == "db.internal"
        assert domains["oms"].postgres.host == "oms.internal"
        assert domains["risk_engine"].postgres.database == "risk"

    def test_falls_back_to_shared_storage(self, full_document, db_env):
        del full_document["oms"]["storage"]
        del full_document["risk_engine"]["storage"]
        config = _resolved(full_document, db_env)
        assert config.oms.storage is None
        assert config.storage_domains["oms"] is config.storage
        assert config.storage_domains["risk_engine"] is config.storage
