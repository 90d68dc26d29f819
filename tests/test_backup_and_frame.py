"""backup() snapshots and to_frame() tabular reads of raw entries."""

from __future__ import annotations

import pandas as pd
import pytest

from endb import Database
from endb.core.errors import ValidationError


@pytest.fixture
def db(tmp_path):
    d = Database("store", data_dir=tmp_path)
    yield d
    d.close()


def test_backup_named_copy_is_readable(db, tmp_path):
    db.set("a", {"x": 1})
    db.add("n", 3)
    target = db.backup("snap")
    assert target == (tmp_path / "snap.sqlite").resolve()
    assert target.exists()
    with Database("store", path=target) as copy:
        assert copy.get("a") == {"x": 1}
        assert copy.get("n") == 3


def test_backup_default_name_is_timestamped(db, tmp_path):
    db.set("a", 1)
    target = db.backup()
    assert target.name.startswith("backup-")
    assert target.suffix == ".sqlite"
    assert target.parent == tmp_path.resolve()


def test_backup_absolute_name(db, tmp_path):
    db.set("a", 1)
    target = db.backup(str(tmp_path / "elsewhere" / "copy"))
    assert target == tmp_path / "elsewhere" / "copy.sqlite"
    assert target.exists()


def test_backup_of_memory_store(tmp_path):
    with Database("mem", memory=True, data_dir=tmp_path) as d:
        d.set("k", "v")
        target = d.backup("mem_copy")
    with Database("mem", path=target) as copy:
        assert copy.get("k") == "v"


@pytest.mark.parametrize("bad", [123, "", ["x"]])
def test_backup_rejects_bad_name(db, bad):
    with pytest.raises(ValidationError):
        db.backup(bad)


def test_to_frame_raw_entries(db):
    db.set("b", "two")
    db.set("a", [1])
    df = db.to_frame()
    assert isinstance(df, pd.DataFrame)
    assert list(df.columns) == ["key", "value"]
    assert df["key"].tolist() == ["b", "a"]
    assert df["value"].tolist() == ["s:two", "j:[1]"]


def test_to_frame_limit_and_empty(db):
    assert db.to_frame().empty
    for i in range(5):
        db.set(f"k{i}", i)
    assert len(db.to_frame(limit=2)) == 2
