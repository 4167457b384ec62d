from pathlib import Path
from typing import Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from .config import AudioParams


def plot_band_peaks(spectrum: np.ndarray, peaks: np.ndarray, params: AudioParams,
                    output_path: Path):
    """Spectrogram (bins within the limits) with the per-band peaks overlaid."""
    lo, hi = params.lower_limit, min(params.upper_limit, spectrum.shape[1])
    plt.figure(figsize=(10, 4))
    plt.imshow(spectrum[:, lo:hi].T, origin="lower", aspect="auto",
               extent=(0, spectrum.shape[0], lo, hi), cmap="magma")
    plt.colorbar(label="magnitude")
    for boundary in params.bands:
        plt.axhline(boundary, color="white", linewidth=0.5, alpha=0.4)
    # Overlay peaks (white dots); band peaks at the zero sentinel are left out
    t, b = np.nonzero(peaks)
    plt.scatter(t + 0.5, peaks[t, b], s=8, c="white", marker="o", alpha=0.8)
    plt.xlabel("chunk")
    plt.ylabel("frequency bin")
    plt.title("Band peaks")
    plt.savefig(output_path)
    plt.close()


def plot_offset_votes(offset_counts: dict, song_id: str, output_path: Path,
                      highlight: Optional[int] = None):
    """Bar chart of votes per offset for one song; the winning offset in red."""
    offsets: Sequence[int] = sorted(offset_counts)
    counts = [offset_counts[o] for o in offsets]
    colors = ["red" if o == highlight else "blue" for o in offsets]
    plt.figure(figsize=(12, 4))
    plt.bar(offsets, counts, color=colors)
    plt.xlabel("offset (chunks)")
    plt.ylabel("votes")
    plt.title(f"Offset votes for '{song_id}'")
    plt.grid(True, alpha=0.3)
    plt.savefig(output_path)
    plt.close()
