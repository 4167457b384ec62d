# ---------- CONFIG ---------- #

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Tuple, Union

import yaml

from .errors import ConfigurationError

DB_PATH = "fingerprints/bandpeak/fingerprints.db"

# Capture format: 8-bit signed mono PCM at 44.1 kHz, big-endian
SAMPLE_RATE = 44100
SAMPLE_SIZE_BITS = 8
CHANNELS = 1
SIGNED = True
BIG_ENDIAN = True
BUFFER_SIZE = 1024  # bytes per capture read

# One chunk = one analysis window, no overlap
# bin k is k * SAMPLE_RATE / CHUNK_SIZE Hz (~10.8 Hz per bin)
CHUNK_SIZE = 4096

# Frequency bins considered: [LOWER_LIMIT, UPPER_LIMIT)
LOWER_LIMIT = 40
UPPER_LIMIT = 300

# Band boundaries (bin indices); a bin belongs to the first boundary >= bin
# [40, 80], (80, 120], (120, 180], (180, 300)
BANDS = (80, 120, 180, 300)

FUZ_FACTOR = 2  # absorb small variations in frequency: 43 → 42, 121 → 120, etc.
BITS_PER_BAND = 10  # each quantized peak is packed into 10 bits (bins < 1024)

SUPPORTED_SAMPLE_SIZES = (8, 16, 32)
HASH_BITS = 64


@dataclass(frozen=True)
class AudioParams:
    """
    Process-wide audio and fingerprinting parameters.

    Instances are validated on construction; an invalid combination raises
    ConfigurationError instead of producing degenerate fingerprints later.
    """
    sample_rate: int = SAMPLE_RATE
    sample_size_bits: int = SAMPLE_SIZE_BITS
    channels: int = CHANNELS
    signed: bool = SIGNED
    big_endian: bool = BIG_ENDIAN
    buffer_size: int = BUFFER_SIZE
    chunk_size: int = CHUNK_SIZE
    lower_limit: int = LOWER_LIMIT
    upper_limit: int = UPPER_LIMIT
    bands: Tuple[int, ...] = BANDS
    fuzz_factor: int = FUZ_FACTOR
    bits_per_band: int = BITS_PER_BAND
    log_magnitude: bool = True
    skip_silent_chunks: bool = True

    def __post_init__(self):
        # YAML hands us lists
        object.__setattr__(self, "bands", tuple(int(b) for b in self.bands))
        self.validate()

    @property
    def num_bands(self) -> int:
        return len(self.bands)

    @property
    def sample_width(self) -> int:
        """Bytes per sample."""
        return self.sample_size_bits // 8

    @property
    def frame_width(self) -> int:
        """Bytes per frame (one sample for every channel)."""
        return self.sample_width * self.channels

    def validate(self) -> None:
        for name in ("sample_rate", "channels", "buffer_size", "chunk_size"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        if self.sample_size_bits not in SUPPORTED_SAMPLE_SIZES:
            raise ConfigurationError(
                f"sample_size_bits must be one of {SUPPORTED_SAMPLE_SIZES}, got {self.sample_size_bits}"
            )
        if self.lower_limit < 0:
            raise ConfigurationError(f"lower_limit must be >= 0, got {self.lower_limit}")
        if self.upper_limit <= self.lower_limit:
            raise ConfigurationError(
                f"upper_limit ({self.upper_limit}) must be greater than lower_limit ({self.lower_limit})"
            )
        if not self.bands:
            raise ConfigurationError("at least one band boundary is required")
        if any(lo >= hi for lo, hi in zip(self.bands, self.bands[1:])):
            raise ConfigurationError(f"band boundaries must be strictly increasing: {self.bands}")
        if self.bands[-1] < self.upper_limit - 1:
            raise ConfigurationError(
                f"last band boundary ({self.bands[-1]}) leaves bins up to {self.upper_limit - 1} without a band"
            )
        if self.fuzz_factor < 1:
            raise ConfigurationError(f"fuzz_factor must be >= 1, got {self.fuzz_factor}")
        if self.bits_per_band < 1:
            raise ConfigurationError(f"bits_per_band must be >= 1, got {self.bits_per_band}")
        if self.upper_limit > 2 ** self.bits_per_band:
            raise ConfigurationError(
                f"bins up to {self.upper_limit - 1} do not fit in {self.bits_per_band} bits per band"
            )
        if self.num_bands * self.bits_per_band > HASH_BITS:
            raise ConfigurationError(
                f"{self.num_bands} bands x {self.bits_per_band} bits do not fit in a {HASH_BITS}-bit hash"
            )


DEFAULT_PARAMS = AudioParams()


def load_config(path: Union[str, Path]) -> AudioParams:
    """
    Load AudioParams from a YAML file. Missing keys keep their defaults.
    """
    try:
        with open(path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"cannot read config {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"config {path} must be a mapping, got {type(raw).__name__}")

    known = {f.name for f in fields(AudioParams)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"unknown config keys in {path}: {', '.join(unknown)}")

    try:
        return replace(DEFAULT_PARAMS, **raw)
    except ConfigurationError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid config {path}: {e}") from e
