import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
from tqdm import tqdm

from recognizers.base import BaseSongRecognizer
from . import audio
from .audio import SpectrogramSource, cut_audio, extract_spectrogram, inject_noise, load_audio
from .config import DB_PATH, DEFAULT_PARAMS, AudioParams
from .db import load_index, save_index
from .hashing import Hasher, hash_chunks, make_hasher
from .index import FingerprintIndex
from .matching import TOP_SONGS_ENTROPY, Match, best_match, vote
from .peaks import extract_all

logger = logging.getLogger(__name__)

INDEX_FILE = "fingerprints.db"


class Timer:
    """Context manager for timing code blocks; timings are logged at DEBUG."""

    def __init__(self):
        self.timings: Dict[str, float] = {}

    @contextmanager
    def measure(self, label: str):
        start = time.perf_counter()
        yield
        elapsed = time.perf_counter() - start
        self.timings[label] = elapsed
        logger.debug(f"{label}: {elapsed:.4f}s")

    @property
    def total(self) -> float:
        return sum(self.timings.values())


class BandPeakRecognizer(BaseSongRecognizer):
    """
    Band-peak fingerprinting and recognition.

    Every chunk of the spectrogram is reduced to its strongest bin per band,
    the peaks are hashed, and queries are matched by offset-consistency voting.
    The spectrogram source and the hasher can be injected for tests.
    """

    def __init__(self, params: AudioParams = DEFAULT_PARAMS,
                 index: Optional[FingerprintIndex] = None,
                 db_path: Union[str, Path] = DB_PATH,
                 hasher: Optional[Hasher] = None,
                 spectrogram_source: SpectrogramSource = audio.compute,
                 min_score: int = 1,
                 top_songs_entropy: int = TOP_SONGS_ENTROPY):
        self.params = params
        self.index = index if index is not None else FingerprintIndex()
        self.db_path = Path(db_path)
        self.hasher = hasher or make_hasher(params)
        self.spectrogram_source = spectrogram_source
        self.min_score = min_score
        self.top_songs_entropy = top_songs_entropy

    @property
    def name(self) -> str:
        return "BandPeak"

    @property
    def num_indexed_songs(self) -> int:
        return len(self.index.songs)

    # ---------- persistence ---------- #

    def _index_path(self, path: Optional[Path]) -> Path:
        if path is None:
            return self.db_path
        path = Path(path)
        return path / INDEX_FILE if path.is_dir() or not path.suffix else path

    def load(self, path: Optional[Path] = None) -> None:
        """Load the index from disk (a directory or a file path)."""
        self.index = load_index(self._index_path(path))

    def save(self, path: Optional[Path] = None) -> None:
        save_index(self._index_path(path), self.index)

    # ---------- core action ---------- #

    def fingerprint(self, spectrum: np.ndarray) -> List[Optional[int]]:
        """One hash per chunk; None for chunks skipped as silent."""
        return hash_chunks(extract_all(spectrum, self.params), self.params, self.hasher)

    def process(self, spectrum: np.ndarray, song_id: Optional[str] = None,
                is_matching: bool = False) -> Union[int, Optional[Match]]:
        """
        Add a spectrum to the index under `song_id`, or match it.

        Returns the number of observations added when ingesting, or the best
        Match (None for no match) when matching.
        """
        hashes = self.fingerprint(spectrum)
        if not is_matching:
            return self.index.add_recording(song_id, hashes)
        return best_match(vote(hashes, self.index), min_score=self.min_score,
                          top_songs_entropy=self.top_songs_entropy)

    def index_spectrum(self, spectrum: np.ndarray, song_id: str) -> int:
        return self.process(spectrum, song_id, is_matching=False)

    def match_spectrum(self, spectrum: np.ndarray) -> Optional[Match]:
        return self.process(spectrum, is_matching=True)

    # ---------- raw PCM ---------- #

    def index_bytes(self, raw: bytes, song_id: str) -> int:
        return self.index_spectrum(self.spectrogram_source(raw, self.params), song_id)

    def recognize_bytes(self, raw: bytes) -> Optional[Match]:
        return self.match_spectrum(self.spectrogram_source(raw, self.params))

    # ---------- files ---------- #

    def index_song(self, audio_path: Path, song_id: Optional[str] = None) -> int:
        """Add a single song to the index. The id defaults to the file stem."""
        audio_path = Path(audio_path)
        signal, sr = load_audio(audio_path)
        spectrum = extract_spectrogram(signal, sr, self.params)
        return self.index_spectrum(spectrum, song_id if song_id is not None else audio_path.stem)

    def index_folder(self, folder: Path, pattern: str = "*.wav") -> int:
        """Index all songs in a folder, skipping ids that are already indexed."""
        audio_paths = sorted(Path(folder).glob(pattern))
        indexed = set(self.index.songs)
        count = 0
        for audio_path in tqdm(audio_paths, desc="Indexing songs", unit='song'):
            if audio_path.stem in indexed:
                logger.debug(f"Skipping '{audio_path.stem}': already indexed")
                continue
            try:
                self.index_song(audio_path)
            except (RuntimeError, OSError, ValueError) as e:
                # soundfile raises RuntimeError subclasses for undecodable files
                logger.error(f"Error indexing {audio_path.name}: {e}")
                continue
            indexed.add(audio_path.stem)
            count += 1
        return count

    def recognize(
        self,
        query_path: Path,
        clip_length_sec: Optional[float] = None,
        snr_db: Optional[float] = None,
    ) -> Tuple[Optional[str], float, Dict[str, Any]]:
        """
        Recognize a song from an audio file.

        Returns:
            Tuple of (song_id, confidence, metadata); song_id is None when no
            indexed song received a vote.
        """
        timer = Timer()

        with timer.measure("Load audio"):
            signal, sample_rate = load_audio(query_path)

        if clip_length_sec is not None:
            with timer.measure("Cut audio"):
                signal = cut_audio(signal, sample_rate, clip_length_sec)

        if snr_db is not None:
            with timer.measure("Inject noise"):
                signal = inject_noise(signal, snr_db)

        with timer.measure("Extract spectrogram"):
            spectrum = extract_spectrogram(signal, sample_rate, self.params)

        with timer.measure("Build hashes"):
            hashes = self.fingerprint(spectrum)

        with timer.measure("Hash matching and voting"):
            votes = vote(hashes, self.index)

        with timer.measure("Scoring"):
            match = best_match(votes, min_score=self.min_score,
                               top_songs_entropy=self.top_songs_entropy)

        logger.debug(f"Total recognition time: {timer.total:.4f}s")

        if match is None:
            logger.info(f"No match for {Path(query_path).name}")
        else:
            logger.info(f"Match for {Path(query_path).name}: '{match.song_id}' "
                        f"(score {match.score}, offset {match.offset}, confidence {match.confidence:.2%})")

        metadata = {
            "num_query_hashes": sum(h is not None for h in hashes),
            "num_chunks": len(hashes),
            "num_candidate_songs": len(votes),
            "best_song_score": match.score if match else 0,
            "best_song_offset": match.offset if match else None,
            "best_song_offset_distribution": dict(votes[match.song_id]) if match else {},
            "timings": timer.timings,
            "total_time": timer.total,
        }
        return (match.song_id if match else None), (match.confidence if match else 0.0), metadata
