import pickle

import pytest

from recognizers.bandpeak import FingerprintIndex, IndexPersistenceError, KeyPoint
from recognizers.bandpeak.db import load_index, save_index


def test_save_then_load_round_trip(index, tmp_path):
    index.add_recording("A", [1, 2, None, 1])
    index.add_recording("B", [2])
    path = tmp_path / "db" / "fingerprints.db"
    save_index(path, index)

    loaded = load_index(path)
    assert loaded == index
    assert loaded.lookup(1) == (KeyPoint("A", 0), KeyPoint("A", 3))
    assert loaded.songs == ["A", "B"]


def test_missing_file_gives_empty_index(tmp_path):
    loaded = load_index(tmp_path / "missing.db")
    assert isinstance(loaded, FingerprintIndex)
    assert len(loaded) == 0


def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "fingerprints.db"
    path.write_bytes(b"not a pickle")
    with pytest.raises(IndexPersistenceError):
        load_index(path)


@pytest.mark.parametrize("payload", [
    b"\x80\x09",  # unsupported pickle protocol
    b"\x80\x04\x95\x05\x00\x00\x00\x00\x00\x00\x00(t.",  # truncated frame
    b"",
])
def test_unreadable_pickle_raises_persistence_error(tmp_path, payload):
    path = tmp_path / "fingerprints.db"
    path.write_bytes(payload)
    with pytest.raises(IndexPersistenceError):
        load_index(path)


def test_foreign_pickle_raises(tmp_path):
    path = tmp_path / "fingerprints.db"
    path.write_bytes(pickle.dumps({1: [("A", 0)]}))
    with pytest.raises(IndexPersistenceError):
        load_index(path)


def test_save_failure_raises(index, tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(IndexPersistenceError):
        save_index(blocker / "fingerprints.db", index)


def test_failed_save_keeps_previous_file(index, tmp_path, monkeypatch):
    path = tmp_path / "fingerprints.db"
    index.add_recording("A", [1])
    save_index(path, index)
    before = path.read_bytes()

    def broken_dump(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(pickle, "dump", broken_dump)
    index.add_recording("B", [2])
    with pytest.raises(IndexPersistenceError):
        save_index(path, index)
    assert path.read_bytes() == before
    assert [p.name for p in tmp_path.iterdir()] == ["fingerprints.db"]
