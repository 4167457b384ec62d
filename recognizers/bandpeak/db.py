import logging
import os
import pickle
import tempfile
from pathlib import Path
from typing import Union

from .errors import IndexPersistenceError
from .index import FingerprintIndex

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def load_index(path: Union[str, Path]) -> FingerprintIndex:
    """
    Load a FingerprintIndex saved by save_index.

    A missing file gives an empty index; a file that exists but cannot be read
    raises IndexPersistenceError.
    """
    path = Path(path)
    if not path.exists():
        logger.info(f"No index at {path}, starting empty")
        return FingerprintIndex()

    try:
        with open(path, "rb") as f:
            state = pickle.load(f)
    except (OSError, pickle.UnpicklingError, EOFError, AttributeError, ImportError,
            ValueError, IndexError, TypeError) as e:
        raise IndexPersistenceError(f"cannot read index {path}: {e}") from e

    if not isinstance(state, dict) or state.get("version") != FORMAT_VERSION:
        raise IndexPersistenceError(f"{path} is not a version {FORMAT_VERSION} fingerprint index")

    try:
        index = FingerprintIndex.from_state(state)
    except (KeyError, TypeError, ValueError) as e:
        raise IndexPersistenceError(f"corrupt index {path}: {e}") from e

    logger.info(f"Loaded index from {path}: {len(index.songs)} songs, {len(index)} hashes")
    return index


def save_index(path: Union[str, Path], index: FingerprintIndex) -> None:
    """Write the index atomically: a failed save never truncates the previous file."""
    path = Path(path)
    state = index.to_state()
    state["version"] = FORMAT_VERSION

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                pickle.dump(state, f, protocol=pickle.HIGHEST_PROTOCOL)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
    except OSError as e:
        raise IndexPersistenceError(f"cannot save index to {path}: {e}") from e

    logger.info(f"Saved index to {path} ({path.stat().st_size / (1024 * 1024):.2f} MB)")
