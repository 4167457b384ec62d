import threading
import time

import pytest

from recognizers.bandpeak import FingerprintIndex, InvalidSongIdError, KeyPoint


def test_insert_and_lookup(index):
    index.insert(7, KeyPoint("A", 0))
    index.insert(7, KeyPoint("B", 3))
    assert index.lookup(7) == (KeyPoint("A", 0), KeyPoint("B", 3))


def test_lookup_unseen_hash_is_empty(index):
    assert index.lookup(12345) == ()
    assert len(index) == 0
    assert 12345 not in index


def test_lookup_result_cannot_mutate_index(index):
    index.insert(1, KeyPoint("A", 0))
    found = index.lookup(1)
    with pytest.raises(AttributeError):
        found.append(KeyPoint("B", 1))
    assert index.lookup(1) == (KeyPoint("A", 0),)


def test_duplicates_are_kept(index):
    index.insert(5, KeyPoint("A", 2))
    index.insert(5, KeyPoint("A", 2))
    assert index.lookup(5) == (KeyPoint("A", 2), KeyPoint("A", 2))


def test_add_recording_assigns_chunk_offsets(index):
    added = index.add_recording("A", [10, None, 30, 10])
    assert added == 3
    assert index.lookup(10) == (KeyPoint("A", 0), KeyPoint("A", 3))
    assert index.lookup(30) == (KeyPoint("A", 2),)
    assert index.chunk_count("A") == 4
    assert index.songs == ["A"]


def test_ingesting_twice_duplicates_every_observation(index):
    hashes = [1, 2, 3, 2]
    index.add_recording("A", hashes)
    once = {h: len(index.lookup(h)) for h in set(hashes)}
    index.add_recording("A", hashes)
    assert {h: len(index.lookup(h)) for h in set(hashes)} == {h: 2 * n for h, n in once.items()}
    assert index.num_observations == 8
    assert index.songs == ["A"]


@pytest.mark.parametrize("song_id", ["", "   ", "\t\n", None])
def test_blank_song_id_rejected_before_mutation(index, song_id):
    index.add_recording("A", [1])
    with pytest.raises(InvalidSongIdError):
        index.add_recording(song_id, [1, 2, 3])
    with pytest.raises(InvalidSongIdError):
        index.insert(2, KeyPoint(song_id, 0))
    assert index.lookup(1) == (KeyPoint("A", 0),)
    assert index.lookup(2) == ()
    assert index.num_observations == 1


def test_invalid_song_id_is_a_value_error(index):
    with pytest.raises(ValueError):
        index.add_recording("", [1])


def test_negative_offsets_rejected(index):
    with pytest.raises(ValueError):
        index.insert(1, KeyPoint("A", -1))
    with pytest.raises(ValueError):
        index.add_recording("A", [1, 2], start=-3)
    assert len(index) == 0
    assert index.songs == []


def test_add_recording_with_start_offset(index):
    index.add_recording("A", [4, 5], start=10)
    assert index.lookup(5) == (KeyPoint("A", 11),)
    assert index.chunk_count("A") == 12


def test_stats(index):
    index.add_recording("A", [1, 2, 3])
    index.add_recording("B", [3, 4])
    stats = index.stats()
    assert stats["num_songs"] == 2
    assert stats["unique_hashes"] == 4
    assert stats["total_observations"] == 5


def test_state_round_trip(index):
    index.add_recording("A", [1, 2, None, 2])
    index.add_recording("B", [9])
    restored = FingerprintIndex.from_state(index.to_state())
    assert restored == index
    assert restored.lookup(2) == (KeyPoint("A", 1), KeyPoint("A", 3))
    assert restored.chunk_count("A") == 4


def test_concurrent_readers_do_not_block_each_other(index):
    index.add_recording("A", [1])
    looked_up = threading.Event()

    def reader():
        assert index.lookup(1) == (KeyPoint("A", 0),)
        looked_up.set()

    with index.reader():
        t = threading.Thread(target=reader)
        t.start()
        assert looked_up.wait(timeout=5)
    t.join(timeout=5)


def test_recording_becomes_visible_all_at_once(index):
    with index.reader() as view:
        writer = threading.Thread(target=index.add_recording, args=("A", [1, 2, 3]))
        writer.start()
        time.sleep(0.1)
        # writer is waiting for the read lock to be released
        assert writer.is_alive()
        assert view.lookup(1) == () and view.lookup(3) == ()
    writer.join(timeout=5)
    assert not writer.is_alive()
    with index.reader() as view:
        assert [len(view.lookup(h)) for h in (1, 2, 3)] == [1, 1, 1]


def test_waiting_writer_goes_before_new_readers(index):
    seen = []
    with index.reader():
        writer = threading.Thread(target=index.add_recording, args=("A", [1]))
        writer.start()
        time.sleep(0.1)
        reader = threading.Thread(target=lambda: seen.append(index.lookup(1)))
        reader.start()
        time.sleep(0.1)
        # the new reader queues behind the waiting writer
        assert seen == []
    writer.join(timeout=5)
    reader.join(timeout=5)
    assert seen == [(KeyPoint("A", 0),)]
