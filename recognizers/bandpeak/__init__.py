"""
Band-peak song recognition.

1. Split the audio into fixed-length chunks and take each chunk's magnitude spectrum
2. Keep the strongest frequency bin in each configured band
3. Hash the band peaks (fuzz-quantized) into one integer per chunk
4. Index (hash -> song, chunk) or vote on consistent time offsets to match
"""

from .config import AudioParams, DEFAULT_PARAMS, BANDS, FUZ_FACTOR, load_config
from .errors import BandprintError, ConfigurationError, IndexPersistenceError, InvalidSongIdError
from .index import FingerprintIndex, KeyPoint
from .matching import Match, match_hashes
from .recognizer import BandPeakRecognizer

__all__ = [
    'BandPeakRecognizer', 'AudioParams', 'DEFAULT_PARAMS', 'BANDS', 'FUZ_FACTOR', 'load_config',
    'FingerprintIndex', 'KeyPoint', 'Match', 'match_hashes',
    'BandprintError', 'ConfigurationError', 'IndexPersistenceError', 'InvalidSongIdError',
]
