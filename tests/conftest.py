import numpy as np
import pytest

from recognizers.bandpeak import AudioParams, BandPeakRecognizer, FingerprintIndex

N_BINS = 65


@pytest.fixture
def params():
    # 65-bin spectra, four 15-bin bands
    return AudioParams(
        sample_rate=8000,
        sample_size_bits=16,
        signed=True,
        big_endian=False,
        chunk_size=128,
        lower_limit=1,
        upper_limit=60,
        bands=(15, 30, 45, 60),
        fuzz_factor=1,
    )


@pytest.fixture
def file_params():
    # 8 kHz audio, 256-sample chunks -> 129 bins
    return AudioParams(
        sample_rate=8000,
        sample_size_bits=16,
        signed=True,
        big_endian=False,
        chunk_size=256,
        lower_limit=5,
        upper_limit=120,
        bands=(30, 60, 90, 120),
        fuzz_factor=2,
    )


def random_spectrum(n_chunks, seed, n_bins=N_BINS):
    """Strictly positive random magnitudes: every band has a peak in every chunk."""
    rng = np.random.RandomState(seed)
    return rng.random_sample((n_chunks, n_bins)) + 0.01


def noise_signal(seconds, sample_rate, seed):
    rng = np.random.RandomState(seed)
    return rng.uniform(-0.5, 0.5, int(seconds * sample_rate))


@pytest.fixture
def index():
    return FingerprintIndex()


@pytest.fixture
def recognizer(params, index, tmp_path):
    return BandPeakRecognizer(params, index=index, db_path=tmp_path / "fingerprints.db")
