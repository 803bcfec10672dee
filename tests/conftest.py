"""Shared test fixtures."""

from __future__ import annotations

import copy
import io
import logging

import pytest
import structlog
import yaml

from openx_config.config.pipeline import run_pipeline
from openx_config.config.template import (
    STARTER_DOCUMENT,
    STARTER_VARIABLES,
    generate_default_document,
)

_DB_VALUES = {"HOST": "db.internal", "NAME": "instruments", "USER": "openx", "PASSWORD": "s3cret"}

DB_ENV = {name: _DB_VALUES[name.rsplit("_", 1)[1]] for name in STARTER_VARIABLES}


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def db_env():
    """Environment snapshot that resolves every starter placeholder."""
    return dict(DB_ENV)


@pytest.fixture
def minimal_document():
    """Starter document: only fields without a schema default."""
    return copy.deepcopy(STARTER_DOCUMENT)


@pytest.fixture
def full_document():
    """Starter document with every default written out."""
    return generate_default_document()


@pytest.fixture
def write_config(tmp_path):
    """Write a tree (or raw YAML text) to a file and return its path."""

    def _write(content, name="master_config.yaml"):
        path = tmp_path / name
        if isinstance(content, str):
            path.write_text(content)
        else:
            path.write_text(yaml.safe_dump(content, sort_keys=False))
        return path

    return _write


@pytest.fixture
def run_tree(db_env):
    """Run the whole pipeline on an in-memory tree."""

    def _run(tree, env=None):
        stream = io.StringIO(yaml.safe_dump(tree, sort_keys=False))
        return run_pipeline(stream, db_env if env is None else env)

    return _run
