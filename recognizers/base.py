"""
Recognizer contract shared by the scripts and the HTTP app.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple, Any, Dict


class BaseSongRecognizer(ABC):
    """
    What the command surface needs from a recognizer: ingest files, match a
    query file, and persist the fingerprint index between runs.
    """

    @abstractmethod
    def index_song(self, audio_path: Path, song_id: Optional[str] = None) -> int:
        """
        Fingerprint one audio file and store it under `song_id`.

        Leaving `song_id` out stores the file under its stem; a blank id is
        rejected. Returns the number of hash observations stored.
        """
        pass

    @abstractmethod
    def index_folder(self, folder: Path, pattern: str = "*.wav") -> int:
        """Ingest every file in `folder` matching `pattern`; returns how many were added."""
        pass

    @abstractmethod
    def recognize(
        self,
        query_path: Path,
        clip_length_sec: Optional[float] = None,
        snr_db: Optional[float] = None
    ) -> Tuple[Optional[str], float, Dict[str, Any]]:
        """
        Identify the recording a query file was taken from.

        `clip_length_sec` and `snr_db` degrade the query first (a random
        excerpt, white noise at that SNR) so the benchmark can measure
        robustness.

        Returns (song_id or None, confidence in [0, 1], metadata with scores,
        offsets and timings).
        """
        pass

    @abstractmethod
    def save(self, path: Path) -> None:
        """Write the fingerprint index (file or directory)."""
        pass

    @abstractmethod
    def load(self, path: Path) -> None:
        """Replace the in-memory index with the one stored at `path`."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Short label used in logs and benchmark reports."""
        pass

    @property
    @abstractmethod
    def num_indexed_songs(self) -> int:
        pass
