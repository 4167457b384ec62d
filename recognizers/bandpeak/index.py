"""
Inverted fingerprint index: hash -> [(song_id, chunk offset), ...]

Ingestion holds the write lock for a whole recording, so a concurrent query
either sees every observation of that recording or none of them. Queries share
the read lock and never block each other.
"""

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from .errors import InvalidSongIdError

logger = logging.getLogger(__name__)


class KeyPoint(NamedTuple):
    """Recording `song_id` produced a given hash at chunk `offset`."""
    song_id: str
    offset: int


class RWLock:
    """
    Writer-preferring reader/writer lock.

    Once a writer is waiting, new readers queue behind it, so a steady stream of
    queries cannot starve ingestion.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class IndexView:
    """Lock-free lookups, valid only inside FingerprintIndex.reader()."""

    def __init__(self, table: Dict[int, List[KeyPoint]]):
        self._table = table

    def lookup(self, h: int) -> Tuple[KeyPoint, ...]:
        return tuple(self._table.get(h, ()))


def _check_song_id(song_id: str) -> str:
    if not isinstance(song_id, str) or not song_id.strip():
        raise InvalidSongIdError(f"song id must be a non-blank string, got {song_id!r}")
    return song_id


class FingerprintIndex:
    """
    Append-only mapping from fingerprint hash to the observations that
    produced it, plus the number of indexed chunks per song.
    """

    def __init__(self):
        self._table: Dict[int, List[KeyPoint]] = defaultdict(list)
        self._songs: Dict[str, int] = {}
        self._lock = RWLock()

    # ---------- writes ---------- #

    def insert(self, h: int, point: KeyPoint) -> None:
        """Append one observation under `h`. Duplicates are kept."""
        _check_song_id(point.song_id)
        if point.offset < 0:
            raise ValueError(f"chunk offset must be non-negative, got {point.offset}")
        with self._lock.write_locked():
            self._table[int(h)].append(point)
            self._songs[point.song_id] = max(self._songs.get(point.song_id, 0), point.offset + 1)

    def add_recording(self, song_id: str, hashes: Iterable[Optional[int]], start: int = 0) -> int:
        """
        Insert a whole recording: hashes[c] is stored as KeyPoint(song_id, start + c).

        None entries (skipped chunks) keep their position but add nothing.
        Everything becomes visible to readers at once. Returns the number of
        observations added.
        """
        _check_song_id(song_id)
        if start < 0:
            raise ValueError(f"start offset must be non-negative, got {start}")
        hashes = list(hashes)
        staged = [(int(h), KeyPoint(song_id, start + c))
                  for c, h in enumerate(hashes) if h is not None]
        n_chunks = start + len(hashes)

        with self._lock.write_locked():
            for h, point in staged:
                self._table[h].append(point)
            self._songs[song_id] = max(self._songs.get(song_id, 0), n_chunks)

        logger.info(f"Indexed '{song_id}': {len(staged)} observations over {n_chunks - start} chunks")
        return len(staged)

    # ---------- reads ---------- #

    @contextmanager
    def reader(self) -> Iterator[IndexView]:
        """Hold the shared lock for a consistent series of lookups."""
        with self._lock.read_locked():
            yield IndexView(self._table)

    def lookup(self, h: int) -> Tuple[KeyPoint, ...]:
        """Observations stored under `h`, or () when the hash was never seen."""
        with self.reader() as view:
            return view.lookup(h)

    def __contains__(self, h: int) -> bool:
        with self._lock.read_locked():
            return h in self._table

    def __len__(self) -> int:
        """Number of distinct hashes."""
        with self._lock.read_locked():
            return len(self._table)

    @property
    def num_observations(self) -> int:
        with self._lock.read_locked():
            return sum(len(v) for v in self._table.values())

    @property
    def songs(self) -> List[str]:
        with self._lock.read_locked():
            return sorted(self._songs)

    def chunk_count(self, song_id: str) -> int:
        with self._lock.read_locked():
            return self._songs.get(song_id, 0)

    def stats(self) -> Dict[str, float]:
        with self._lock.read_locked():
            total = sum(len(v) for v in self._table.values())
            unique = len(self._table)
            return {
                "num_songs": len(self._songs),
                "unique_hashes": unique,
                "total_observations": total,
                "avg_observations_per_song": total / max(1, len(self._songs)),
                "avg_collisions": total / max(1, unique),
            }

    # ---------- persistence state ---------- #

    def to_state(self) -> Dict[str, Any]:
        """Plain-dict snapshot for pickling."""
        with self._lock.read_locked():
            return {
                "hash_table": {h: [tuple(p) for p in points] for h, points in self._table.items()},
                "songs": dict(self._songs),
            }

    @classmethod
    def from_state(cls, state: Dict[str, Any]) -> "FingerprintIndex":
        index = cls()
        for h, points in state["hash_table"].items():
            index._table[int(h)] = [KeyPoint(str(s), int(t)) for s, t in points]
        index._songs = {str(k): int(v) for k, v in state["songs"].items()}
        return index

    def __eq__(self, other):
        if not isinstance(other, FingerprintIndex):
            return NotImplemented
        return self.to_state() == other.to_state()

    def __repr__(self):
        return f"FingerprintIndex(songs={len(self._songs)}, hashes={len(self._table)})"
