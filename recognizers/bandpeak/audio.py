from pathlib import Path
from typing import Callable, Optional, Tuple, Union

import librosa
import numpy as np
import soundfile as sf

from .config import AudioParams

# (raw PCM bytes, params) -> (n_chunks, n_bins) magnitudes
SpectrogramSource = Callable[[bytes, AudioParams], np.ndarray]


def load_audio(path: Union[str, Path]) -> Tuple[np.ndarray, int]:
    signal, sr = sf.read(str(path))
    return np.asarray(signal), sr


def cut_audio(signal: np.ndarray, sample_rate: int, clip_length_sec: float,
              seed: Optional[int] = 42) -> np.ndarray:
    """Random clip of clip_length_sec seconds (the whole signal if it is shorter)."""
    total_samples = len(signal)
    clip_samples = int(clip_length_sec * sample_rate)
    if clip_samples >= total_samples:
        return signal
    start = np.random.RandomState(seed).randint(0, total_samples - clip_samples)
    return signal[start:start + clip_samples]


def inject_noise(signal: np.ndarray, snr_db: float, seed: Optional[int] = None) -> np.ndarray:
    """
    Add white Gaussian noise to `signal` to get the desired SNR in dB.
    """
    signal = signal.astype(float)

    signal_power = np.mean(signal ** 2)
    if signal_power == 0:
        # silent signal, nothing to scale against
        return signal

    noise_power = signal_power / (10 ** (snr_db / 10))
    noise = np.random.RandomState(seed).normal(0.0, np.sqrt(noise_power), size=signal.shape)
    return signal + noise


def pcm_dtype(params: AudioParams) -> np.dtype:
    """numpy dtype of one sample in the configured capture format."""
    order = ">" if params.big_endian else "<"
    kind = "i" if params.signed else "u"
    return np.dtype(f"{order}{kind}{params.sample_width}")


def decode_pcm(raw: bytes, params: AudioParams) -> np.ndarray:
    """
    Raw interleaved PCM -> mono float signal in [-1, 1).

    A trailing partial frame is ignored.
    """
    usable = len(raw) - (len(raw) % params.frame_width)
    samples = np.frombuffer(raw[:usable], dtype=pcm_dtype(params)).astype(np.float64)

    half_range = float(2 ** (params.sample_size_bits - 1))
    if not params.signed:
        samples -= half_range
    samples /= half_range

    if params.channels > 1:
        samples = librosa.to_mono(samples.reshape(-1, params.channels).T)
    return samples


def encode_pcm(signal: np.ndarray, params: AudioParams) -> bytes:
    """Mono float signal -> raw PCM bytes in the configured format."""
    half_range = 2 ** (params.sample_size_bits - 1)
    scaled = np.clip(np.round(np.asarray(signal, dtype=np.float64) * half_range),
                     -half_range, half_range - 1)
    if not params.signed:
        scaled += half_range
    if params.channels > 1:
        scaled = np.repeat(scaled, params.channels)
    return scaled.astype(pcm_dtype(params)).tobytes()


def chunk_magnitudes(signal: np.ndarray, params: AudioParams) -> np.ndarray:
    """
    Magnitude spectrum of consecutive, non-overlapping chunk_size windows.

    Returns (n_chunks, chunk_size // 2 + 1); a trailing partial chunk is dropped.
    """
    n_fft = params.chunk_size
    n_bins = n_fft // 2 + 1
    signal = np.asarray(signal, dtype=np.float64)
    if len(signal) < n_fft:
        return np.zeros((0, n_bins))

    # rectangular window and no padding: one FFT per chunk
    stft = librosa.stft(signal, n_fft=n_fft, hop_length=n_fft,
                        window="boxcar", center=False)
    spectrogram = np.abs(stft)
    if params.log_magnitude:
        spectrogram = np.log1p(spectrogram)
    return spectrogram.T


def compute(raw: bytes, params: AudioParams) -> np.ndarray:
    """Raw PCM bytes in the configured format -> per-chunk magnitude spectra."""
    return chunk_magnitudes(decode_pcm(raw, params), params)


def extract_spectrogram(signal: np.ndarray, sample_rate: int, params: AudioParams) -> np.ndarray:
    """Float signal as read from a file -> per-chunk magnitude spectra."""
    if signal.ndim > 1:
        # signal is (num_samples, num_channels); transpose to (channels, samples)
        signal = librosa.to_mono(np.asarray(signal, dtype=np.float64).T)

    if sample_rate != params.sample_rate:
        signal = librosa.resample(np.asarray(signal, dtype=np.float64),
                                  orig_sr=sample_rate, target_sr=params.sample_rate)
    return chunk_magnitudes(signal, params)
