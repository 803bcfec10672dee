"""Tests for the command surface."""

from __future__ import annotations

import json

import pytest

from openx_config.cli import EXIT_INVALID, EXIT_LOAD_FAILURE, EXIT_OK, main
from openx_config.config.loader import load_document
from openx_config.config.template import STARTER_VARIABLES, generate_default_document


@pytest.fixture
def db_vars(monkeypatch, db_env):
    for name, value in db_env.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv("OPENX_LOG_LEVEL", raising=False)
    monkeypatch.delenv("OPENX_LOG_FORMAT", raising=False)
    return db_env


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "master_config.yaml"
    assert main(["init", "--output", str(path)]) == EXIT_OK
    return path


class TestInit:
    def test_writes_default_document(self, tmp_path, capsys):
        path = tmp_path / "master_config.yaml"
        assert main(["init", "--output", str(path)]) == EXIT_OK
        assert load_document(path) == generate_default_document()
        assert "Wrote default configuration" in capsys.readouterr().out

    def test_lists_required_variables(self, tmp_path, capsys):
        assert main(["init", "--output", str(tmp_path / "master_config.yaml")]) == EXIT_OK
        out = capsys.readouterr().out
        for name in STARTER_VARIABLES:
            assert name in out
        assert "OMS_DB_HOST" in out
        assert "RISK_DB_PASSWORD" in out

    def test_placeholders_not_substituted(self, config_path, db_vars):
        tree = load_document(config_path)
        assert tree["storage"]["postgres"]["host"] == "${INSTRUMENT_DB_HOST}"
        assert tree["oms"]["storage"]["postgres"]["host"] == "${OMS_DB_HOST}"
        assert tree["risk_engine"]["storage"]["postgres"]["password"] == "${RISK_DB_PASSWORD}"

    def test_refuses_to_overwrite(self, config_path, capsys):
        capsys.readouterr()
        config_path.write_text("keep: me\n")
        assert main(["init", "--output", str(config_path)]) == EXIT_LOAD_FAILURE
        assert "--force" in capsys.readouterr().err
        assert config_path.read_text() == "keep: me\n"

    def test_force_overwrites(self, config_path):
        config_path.write_text("keep: me\n")
        assert main(["init", "--output", str(config_path), "--force"]) == EXIT_OK
        assert "exchange" in load_document(config_path)

    def test_write_to_stdout(self, capsys):
        assert main(["init", "--output", "-"]) == EXIT_OK
        out = capsys.readouterr().out
        assert out.startswith("exchange:")

    def test_unwritable_destination(self, tmp_path, capsys):
        target = tmp_path / "missing" / "master_config.yaml"
        assert main(["init", "--output", str(target)]) == EXIT_LOAD_FAILURE
        assert "Failed to write" in capsys.readouterr().err


class TestValidate:
    def test_clean(self, config_path, db_vars, capsys):
        capsys.readouterr()
        assert main(["validate", "--config", str(config_path)]) == EXIT_OK
        out = capsys.readouterr().out
        assert "Configuration is valid: 0 error(s), 0 warning(s)" in out
        assert "Resolved configuration:" in out
        assert db_vars["INSTRUMENT_DB_PASSWORD"] not in out

    def test_warnings_still_exit_zero(self, write_config, minimal_document, db_vars, capsys):
        path = write_config(minimal_document)
        assert main(["validate", "--config", str(path)]) == EXIT_OK
        assert "[DEFAULT_APPLIED]" in capsys.readouterr().out

    def test_validation_errors(self, config_path, db_vars, monkeypatch, capsys):
        monkeypatch.delenv("INSTRUMENT_DB_HOST")
        capsys.readouterr()
        assert main(["validate", "--config", str(config_path)]) == EXIT_INVALID
        out = capsys.readouterr().out
        assert "storage.postgres.host" in out
        assert "[UNRESOLVED_VAR]" in out
        assert "Resolved configuration:" not in out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["validate", "--config", str(tmp_path / "absent.yaml")]) == EXIT_LOAD_FAILURE
        assert "Failed to load configuration" in capsys.readouterr().err

    def test_unparseable_file(self, write_config, capsys):
        path = write_config("exchange: [unclosed\n")
        assert main(["validate", "--config", str(path)]) == EXIT_LOAD_FAILURE

    def test_non_utf8_file(self, tmp_path, capsys):
        path = tmp_path / "master_config.yaml"
        path.write_bytes(b"exchange:\n  name: \xff\xfe bad\n")
        assert main(["validate", "--config", str(path)]) == EXIT_LOAD_FAILURE
        assert "not valid UTF-8" in capsys.readouterr().err

    def test_recursive_alias_file(self, write_config, capsys):
        path = write_config("a: &x [*x]\n")
        assert main(["validate", "--config", str(path)]) == EXIT_LOAD_FAILURE
        assert "recursive alias" in capsys.readouterr().err

    def test_nan_fee_rate(self, config_path, db_vars, capsys):
        text = config_path.read_text()
        assert "maker_fee_rate: 0.0002" in text
        config_path.write_text(text.replace("maker_fee_rate: 0.0002", "maker_fee_rate: .nan"))
        capsys.readouterr()
        assert main(["validate", "--config", str(config_path)]) == EXIT_INVALID
        assert "fees.maker_fee_rate must be a finite number" in capsys.readouterr().out

    def test_unset_oms_password(self, config_path, db_vars, monkeypatch, capsys):
        monkeypatch.delenv("OMS_DB_PASSWORD")
        capsys.readouterr()
        assert main(["validate", "--config", str(config_path)]) == EXIT_INVALID
        out = capsys.readouterr().out
        assert "oms.storage.postgres.password" in out
        assert "OMS_DB_PASSWORD" in out

    def test_json_format(self, config_path, db_vars, capsys):
        capsys.readouterr()
        assert main(["validate", "--config", str(config_path), "--format", "json"]) == EXIT_OK
        payload = json.loads(capsys.readouterr().out)
        assert payload["valid"] is True
        assert payload["errors"] == []
        assert payload["config"]["exchange"]["name"] == "My Exchange"


class TestStart:
    def test_valid_config_reaches_runtime_stub(self, config_path, db_vars, capsys):
        capsys.readouterr()
        assert main(["start", "--config", str(config_path)]) == EXIT_OK
        captured = capsys.readouterr()
        assert "Configuration is valid" in captured.out
        assert "runtime_not_implemented" in captured.err
        assert db_vars["INSTRUMENT_DB_PASSWORD"] not in captured.err

    def test_logs_each_storage_target(self, config_path, db_vars, capsys):
        capsys.readouterr()
        assert main(["start", "--config", str(config_path)]) == EXIT_OK
        err = capsys.readouterr().err
        assert err.count("storage_target") == 3
        assert "risk_engine" in err
        assert db_vars["OMS_DB_PASSWORD"] not in err

    def test_invalid_config_does_not_start(self, config_path, db_vars, monkeypatch, capsys):
        monkeypatch.delenv("INSTRUMENT_DB_PASSWORD")
        capsys.readouterr()
        assert main(["start", "--config", str(config_path)]) == EXIT_INVALID
        captured = capsys.readouterr()
        assert "runtime_not_implemented" not in captured.err
        assert "INSTRUMENT_DB_PASSWORD" in captured.out


class TestArguments:
    def test_command_required(self):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 2

    def test_unknown_format_rejected(self):
        with pytest.raises(SystemExit):
            main(["validate", "--format", "xml"])
