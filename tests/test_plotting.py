from collections import Counter

from recognizers.bandpeak.peaks import extract_all
from recognizers.bandpeak.plotting import plot_band_peaks, plot_offset_votes

from conftest import random_spectrum


def test_plot_band_peaks_writes_png(params, tmp_path):
    spectrum = random_spectrum(20, seed=30)
    out = tmp_path / "peaks.png"
    plot_band_peaks(spectrum, extract_all(spectrum, params), params, out)
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_plot_offset_votes_writes_png(tmp_path):
    out = tmp_path / "votes.png"
    plot_offset_votes(Counter({0: 1, 4: 9, 7: 2}), "A", out, highlight=4)
    assert out.exists() and out.stat().st_size > 0
