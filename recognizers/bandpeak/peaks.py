from bisect import bisect_left
from typing import List, Sequence, Tuple

import numpy as np

from .config import AudioParams

BandSlice = Tuple[int, int]


def band_index(freq: int, bands: Sequence[int]) -> int:
    """Index of the first band boundary >= freq."""
    i = bisect_left(bands, freq)
    if i == len(bands):
        raise ValueError(f"frequency bin {freq} lies above the last band boundary {bands[-1]}")
    return i


def band_slices(params: AudioParams, n_bins: int) -> List[BandSlice]:
    """
    Contiguous [start, stop) bin range of every band, clipped to
    [lower_limit, upper_limit) and to the bins the spectrum actually has.

    Band i holds the bins b with bands[i-1] < b <= bands[i], so an empty band
    comes back as start == stop.
    """
    top = min(params.upper_limit, n_bins)
    slices = []
    prev = None
    for boundary in params.bands:
        start = params.lower_limit if prev is None else max(params.lower_limit, prev + 1)
        stop = min(boundary + 1, top)
        slices.append((start, max(start, stop)))
        prev = boundary
    return slices


def extract_all(spectrum: np.ndarray, params: AudioParams) -> np.ndarray:
    """
    Strongest bin per band for every chunk.

    spectrum: (n_chunks, n_bins) magnitudes
    returns:  (n_chunks, n_bands) int array of bin indices; a band whose
              magnitudes never exceed 0 reports bin 0
    """
    spectrum = np.atleast_2d(np.asarray(spectrum, dtype=np.float64))
    n_chunks, n_bins = spectrum.shape
    peaks = np.zeros((n_chunks, params.num_bands), dtype=np.int64)
    if n_chunks == 0:
        return peaks

    rows = np.arange(n_chunks)
    for b, (start, stop) in enumerate(band_slices(params, n_bins)):
        if stop <= start:
            continue
        band = spectrum[:, start:stop]
        # argmax keeps the first (lowest) bin on ties
        local_idx = np.argmax(band, axis=1)
        amp = band[rows, local_idx]
        peaks[:, b] = np.where(amp > 0, start + local_idx, 0)
    return peaks


def extract_peaks(chunk: Sequence[float], params: AudioParams) -> List[int]:
    """Representative frequency bin of each band for a single chunk."""
    return [int(f) for f in extract_all(np.asarray(chunk)[np.newaxis, :], params)[0]]


def is_silent(peaks: Sequence[int]) -> bool:
    """True when no band had any energy above the zero baseline."""
    return not any(peaks)
