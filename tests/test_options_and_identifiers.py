"""Options validation and table identifier allow-listing happen before any file is touched."""

from __future__ import annotations

import pytest

from endb import Database
from endb.core.errors import EndbError, ValidationError
from endb.core.types import DatabaseOptions
from endb.store.schema import MAX_IDENTIFIER_LEN, TableStatements, quote_identifier


@pytest.mark.parametrize("name", ["endb", "_private", "Table_2", "a" * MAX_IDENTIFIER_LEN])
def test_valid_identifiers(name):
    assert quote_identifier(name) == f'"{name}"'


@pytest.mark.parametrize(
    "name",
    ["", "2fast", "has-dash", "x; DROP TABLE y", 'q"uote', "sp ace", "a" * (MAX_IDENTIFIER_LEN + 1), "sqlite_master"],
)
def test_invalid_identifiers(name):
    with pytest.raises(ValidationError):
        quote_identifier(name)


def test_bad_name_rejected_before_file_created(tmp_path):
    with pytest.raises(ValidationError):
        Database("bad-name", data_dir=tmp_path / "d")
    assert not (tmp_path / "d").exists()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": 123},
        {"memory": "yes"},
        {"timeout_ms": "fast"},
        {"timeout_ms": -1},
        {"timeout_ms": True},
        {"file_must_exist": 1},
        {"data_dir": 5},
    ],
)
def test_options_validation(kwargs):
    with pytest.raises(ValidationError):
        DatabaseOptions(**kwargs)


def test_option_defaults(tmp_path):
    opts = DatabaseOptions()
    assert opts.name == "endb"
    assert opts.memory is False
    assert opts.timeout_ms == 5000
    assert opts.timeout_s == 5.0
    assert opts.resolved_path().name == "endb.sqlite"
    assert DatabaseOptions(memory=True).resolved_path() is None
    assert DatabaseOptions(path=tmp_path / "x.db").resolved_path() == (tmp_path / "x.db").resolve()


def test_statements_quote_table():
    sql = TableStatements("kv")
    assert sql.table == '"kv"'
    assert '"kv"' in sql.create and "NOT NULL" in sql.create


def test_errors_share_base_and_kind():
    err = ValidationError("Key is not specified")
    assert isinstance(err, EndbError)
    assert isinstance(err, ValueError)
    assert err.name == "ValidationError"
    assert str(err) == "Key is not specified"
