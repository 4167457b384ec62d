from collections import Counter

import pytest

from recognizers.bandpeak import FingerprintIndex, KeyPoint, match_hashes
from recognizers.bandpeak.matching import (
    best_match, best_offset, entropy_confidence, song_scores, vote,
)


def test_vote_counts_absolute_offsets(index):
    index.add_recording("A", [None, None, 1, 2, 3])
    votes = vote([1, 2, 3], index)
    assert votes == {"A": Counter({2: 3})}


def test_vote_offset_is_absolute_in_both_directions(index):
    index.insert(1, KeyPoint("A", 0))
    index.insert(2, KeyPoint("A", 10))
    # query chunk 4 matches stored offset 0, chunk 6 matches stored offset 10
    votes = vote([None, None, None, None, 1, None, 2], index)
    assert votes["A"] == Counter({4: 2})


def test_missing_hashes_contribute_nothing(index):
    index.add_recording("A", [1, 2])
    assert vote([99, 98, None], index) == {}


def test_self_match_wins_at_offset_zero(index):
    hashes = [11, 12, 13, 14, 15, 16]
    index.add_recording("A", hashes)
    index.add_recording("B", [16, 15, 14])
    match = match_hashes(hashes, index)
    assert match.song_id == "A"
    assert match.offset == 0
    assert match.score == len(hashes)
    assert match.candidates == 2


def test_sub_clip_wins_at_its_start_offset(index):
    hashes = list(range(100, 140))
    index.add_recording("A", hashes)
    index.add_recording("B", list(range(200, 240)))
    k, m = 17, 8
    match = match_hashes(hashes[k:k + m], index)
    assert (match.song_id, match.offset, match.score) == ("A", k, m)


def test_no_votes_is_no_match(index):
    index.add_recording("A", [1, 2, 3])
    assert match_hashes([7, 8, 9], index) is None
    assert match_hashes([], index) is None
    assert match_hashes([None, None], FingerprintIndex()) is None


def test_tie_goes_to_smallest_song_id(index):
    index.add_recording("b", [1, 2, 3])
    index.add_recording("a", [1, 2, 3])
    index.add_recording("c", [1, 2, 3])
    match = match_hashes([1, 2, 3], index)
    assert match.song_id == "a"
    assert match.score == 3


def test_matching_is_deterministic(index):
    index.add_recording("x", [5, 6, 7, 5])
    index.add_recording("y", [7, 5, 6, 7])
    results = {match_hashes([5, 6, 7], index) for _ in range(5)}
    assert len(results) == 1


def test_best_offset_prefers_smallest_on_tie():
    assert best_offset(Counter({5: 3, 2: 3, 9: 1})) == (2, 3)


def test_song_scores_use_best_single_offset():
    votes = {"A": Counter({0: 2, 4: 5}), "B": Counter({1: 1, 2: 1, 3: 1})}
    assert song_scores(votes) == {"A": 5, "B": 1}


def test_scattered_votes_lose_to_consistent_ones():
    # B has more votes overall, but spread over many offsets
    votes = {"A": Counter({3: 4}), "B": Counter({o: 1 for o in range(10)})}
    match = best_match(votes)
    assert match.song_id == "A"
    assert match.offset == 3


def test_min_score_threshold():
    votes = {"A": Counter({3: 2})}
    assert best_match(votes, min_score=3) is None
    assert best_match(votes, min_score=2).song_id == "A"


def test_entropy_confidence():
    assert entropy_confidence([]) == 0.0
    assert entropy_confidence([7]) == 1.0
    assert entropy_confidence([4, 4, 4]) == pytest.approx(0.0, abs=1e-9)
    assert entropy_confidence([100, 1]) > entropy_confidence([10, 9])


def test_entropy_confidence_uses_top_k_scores():
    assert entropy_confidence([10, 1, 1, 1, 1], top_k=1) == 1.0
