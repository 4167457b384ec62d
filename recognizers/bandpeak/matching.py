"""
Time-offset-consistency voting.

If a query is a faithful sub-clip of an indexed song, every matching chunk has the
same distance between its stored offset and its position in the query. For each
song we count votes per distance and trust the most popular one; unrelated hash
collisions scatter over many distances and rarely pile up.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from .index import FingerprintIndex

logger = logging.getLogger(__name__)

# song_id -> {offset -> votes}
VoteTable = Dict[str, Counter]

TOP_SONGS_ENTROPY = 10


@dataclass(frozen=True)
class Match:
    song_id: str
    score: int  # votes at the winning offset
    offset: int  # chunks between query start and song start
    confidence: float  # [0, 1]
    candidates: int  # songs that received at least one vote


def vote(hashes: Sequence[Optional[int]], index: FingerprintIndex) -> VoteTable:
    """
    Build the vote table for a query.

    hashes[c] is the hash of query chunk c; None entries are skipped but keep
    their position. The whole pass runs under one read lock.
    """
    votes: VoteTable = {}
    num_db_hits = 0
    num_matches = 0

    with index.reader() as view:
        for c, h in enumerate(hashes):
            if h is None:
                continue
            points = view.lookup(h)
            if points:
                num_db_hits += 1
            for song_id, t_anchor_match in points:
                offset = abs(t_anchor_match - c)
                votes.setdefault(song_id, Counter())[offset] += 1
                num_matches += 1

    logger.debug(f"  Query hashes: {len(hashes)}, database hits: {num_db_hits}, "
                 f"matches: {num_matches}, candidate songs: {len(votes)}")
    return votes


def best_offset(offset_counts: Counter) -> Tuple[int, int]:
    """(offset, votes) with the most votes; ties go to the smallest offset."""
    offset, count = min(offset_counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return offset, count


def song_scores(votes: VoteTable) -> Dict[str, int]:
    """Best single-offset vote count for each song."""
    return {song_id: max(counts.values()) for song_id, counts in votes.items() if counts}


def entropy_confidence(scores: Sequence[float], top_k: int = TOP_SONGS_ENTROPY) -> float:
    """
    1 - normalized entropy of the top-k song scores.

    One dominant song gives a value near 1; evenly spread votes give 0.
    """
    if len(scores) == 0:
        return 0.0
    top_scores = np.sort(np.asarray(scores, dtype=np.float64))[::-1][:top_k]
    sum_s = float(np.sum(top_scores))
    if sum_s <= 0:
        return 0.0
    if len(top_scores) == 1:
        return 1.0
    p = top_scores / sum_s
    eps = 1e-12
    H = -float(np.sum(p * np.log(p + eps)))
    H_norm = H / np.log(len(p))
    return max(0.0, min(1.0, 1.0 - H_norm))


def best_match(votes: VoteTable, min_score: int = 1,
               top_songs_entropy: int = TOP_SONGS_ENTROPY) -> Optional[Match]:
    """
    Song with the highest best-offset count, or None when nothing scored.

    Equal scores go to the lexicographically smallest song id.
    """
    scores = song_scores(votes)
    if not scores:
        return None

    best_song_id = min(scores, key=lambda s: (-scores[s], s))
    offset, score = best_offset(votes[best_song_id])
    if score < min_score:
        logger.debug(f"Best candidate '{best_song_id}' scored {score} < {min_score}")
        return None

    return Match(
        song_id=best_song_id,
        score=score,
        offset=offset,
        confidence=entropy_confidence(list(scores.values()), top_songs_entropy),
        candidates=len(scores),
    )


def match_hashes(hashes: Sequence[Optional[int]], index: FingerprintIndex,
                 min_score: int = 1,
                 top_songs_entropy: int = TOP_SONGS_ENTROPY) -> Optional[Match]:
    """Vote, then pick the best song. Stateless between calls."""
    return best_match(vote(hashes, index), min_score=min_score,
                      top_songs_entropy=top_songs_entropy)
