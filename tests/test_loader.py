"""Tests for the YAML document loader."""

from __future__ import annotations

import io

import pytest

from openx_config.config.loader import dump_document, load_document
from openx_config.errors import ConfigError, LoadError


class TestLoadDocument:
    def test_load_from_path(self, write_config):
        path = write_config("exchange:\n  name: Test\n  mode: virtual\n")
        tree = load_document(path)
        assert tree == {"exchange": {"name": "Test", "mode": "virtual"}}

    def test_load_from_stream(self):
        tree = load_document(io.StringIO("assets: [BTC, ETH]\nenabled: true\n"))
        assert tree == {"assets": ["BTC", "ETH"], "enabled": True}

    def test_key_order_preserved(self):
        tree = load_document(io.StringIO("zeta: 1\nalpha: 2\nmid: 3\n"))
        assert list(tree) == ["zeta", "alpha", "mid"]

    def test_empty_document_is_empty_mapping(self, write_config):
        assert load_document(write_config("")) == {}

    def test_scalar_types(self):
        tree = load_document(io.StringIO("i: 5\nf: 0.5\nb: false\nn: null\ns: text\n"))
        assert tree == {"i": 5, "f": 0.5, "b": False, "n": None, "s": "text"}

    def test_clock_times_stay_strings(self):
        tree = load_document(io.StringIO("a: 08:00\nb: 10:30\nc: 23:59\n"))
        assert tree == {"a": "08:00", "b": "10:30", "c": "23:59"}

    def test_dates_stay_strings(self):
        tree = load_document(io.StringIO("listed: 2024-03-29\n"))
        assert tree == {"listed": "2024-03-29"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadError) as excinfo:
            load_document(tmp_path / "nope.yaml")
        assert str(tmp_path / "nope.yaml") in str(excinfo.value)
        assert isinstance(excinfo.value, ConfigError)

    def test_invalid_yaml(self, write_config):
        path = write_config("exchange: [unclosed\n")
        with pytest.raises(LoadError, match="invalid YAML"):
            load_document(path)

    def test_root_must_be_mapping(self, write_config):
        with pytest.raises(LoadError, match="top-level value must be a mapping"):
            load_document(write_config("- one\n- two\n"))

    def test_duplicate_keys_rejected(self):
        with pytest.raises(LoadError, match="duplicate key 'name'"):
            load_document(io.StringIO("exchange:\n  name: A\n  name: B\n"))

    def test_non_string_keys_rejected(self):
        with pytest.raises(LoadError, match="not a string"):
            load_document(io.StringIO("1: one\n"))

    def test_binary_values_rejected(self):
        with pytest.raises(LoadError, match="unsupported value"):
            load_document(io.StringIO("blob: !!binary aGVsbG8=\n"))

    def test_invalid_utf8_rejected(self, tmp_path):
        path = tmp_path / "latin1.yaml"
        path.write_bytes(b"exchange:\n  name: \xff\xfe bad\n")
        with pytest.raises(LoadError, match="not valid UTF-8") as excinfo:
            load_document(path)
        assert excinfo.value.source == str(path)

    def test_recursive_alias_rejected(self):
        with pytest.raises(LoadError, match=r"recursive alias at a\[0\]"):
            load_document(io.StringIO("a: &x [*x]\n"))

    def test_recursive_mapping_alias_rejected(self):
        with pytest.raises(LoadError, match="recursive alias at a.b"):
            load_document(io.StringIO("a: &x {b: *x}\n"))

    def test_shared_alias_accepted(self):
        tree = load_document(io.StringIO("a: &x [1, 2]\nb: *x\n"))
        assert tree == {"a": [1, 2], "b": [1, 2]}

    def test_error_names_source(self, write_config):
        path = write_config("exchange: [unclosed\n")
        with pytest.raises(LoadError) as excinfo:
            load_document(path)
        assert excinfo.value.source == str(path)
        assert str(excinfo.value).startswith(f"Failed to load configuration from {path}")


class TestDumpDocument:
    def test_round_trip_keeps_order(self, tmp_path, full_document):
        path = tmp_path / "out.yaml"
        dump_document(full_document, path)
        assert load_document(path) == full_document
        assert list(load_document(path)) == list(full_document)

    def test_dump_to_stream(self):
        out = io.StringIO()
        dump_document({"b": 1, "a": {"time": "08:00"}}, out)
        assert out.getvalue().splitlines()[0] == "b: 1"
        assert load_document(io.StringIO(out.getvalue())) == {"b": 1, "a": {"time": "08:00"}}

    def test_unwritable_destination_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            dump_document({"a": 1}, tmp_path / "missing" / "out.yaml")
