from typing import Callable, Iterable, List, Optional, Sequence

from .config import AudioParams, BITS_PER_BAND, FUZ_FACTOR
from .peaks import is_silent

# (band peaks, fuzz factor) -> fingerprint hash
Hasher = Callable[[Sequence[int], int], int]


def _quantize(x: int, fuzz: int = FUZ_FACTOR) -> int:
    """Round down to nearest multiple of fuzz."""
    return x - (x % fuzz)


def hash_peaks(points: Sequence[int], fuzz: int = FUZ_FACTOR,
               bits_per_band: int = BITS_PER_BAND) -> int:
    """
    Pack the fuzz-quantized band peaks into one integer.

    Layout (MSB → LSB), for four bands and 10 bits per band:
        [10 bits p3][10 bits p2][10 bits p1][10 bits p0]

    AudioParams only admits bin ranges that fit in bits_per_band bits. The
    clamp keeps hand-built out-of-range peaks from spilling into the next band.
    """
    limit = (1 << bits_per_band) - 1
    h = 0
    for p in reversed(points):
        q = max(0, min(_quantize(int(p), fuzz), limit))
        h = (h << bits_per_band) | q
    return h


def make_hasher(params: AudioParams) -> Hasher:
    """Default hasher bound to the configured bits per band."""
    bits = params.bits_per_band

    def hasher(points: Sequence[int], fuzz: int) -> int:
        return hash_peaks(points, fuzz, bits)

    return hasher


def hash_chunks(peaks_per_chunk: Iterable[Sequence[int]], params: AudioParams,
                hasher: Optional[Hasher] = None) -> List[Optional[int]]:
    """
    One hash per chunk, in chunk order.

    When params.skip_silent_chunks is set, chunks with no peak in any band give
    None so callers keep chunk positions but neither index nor vote on them.
    """
    hasher = hasher or make_hasher(params)
    hashes: List[Optional[int]] = []
    for points in peaks_per_chunk:
        points = [int(p) for p in points]
        if params.skip_silent_chunks and is_silent(points):
            hashes.append(None)
        else:
            hashes.append(int(hasher(points, params.fuzz_factor)))
    return hashes
