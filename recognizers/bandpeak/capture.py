"""
Microphone capture.

Recording runs until the caller sets a threading.Event; the full clip is then
handed back as raw PCM bytes in the configured format. Analysis only starts once
the clip is complete.
"""

import logging
import sys
import threading
from typing import Any, Callable, Optional

import numpy as np

from .audio import pcm_dtype
from .config import AudioParams

logger = logging.getLogger(__name__)

StreamFactory = Callable[..., Any]


def _stream_dtype(params: AudioParams) -> str:
    if params.sample_size_bits == 8:
        return "int8" if params.signed else "uint8"
    if not params.signed:
        raise ValueError(f"unsigned {params.sample_size_bits}-bit capture is not supported by the input device")
    return f"int{params.sample_size_bits}"


def _to_configured_order(block: bytes, params: AudioParams) -> bytes:
    """Device blocks come in native byte order; convert when the config differs."""
    native_big = sys.byteorder == "big"
    if params.sample_width == 1 or native_big == params.big_endian:
        return block
    native = pcm_dtype(params).newbyteorder("=")
    return np.frombuffer(block, dtype=native).byteswap().tobytes()


def record_until(stop: threading.Event, params: AudioParams,
                 stream_factory: Optional[StreamFactory] = None) -> bytes:
    """
    Read buffer_size-byte blocks from the default input device until `stop` is set.
    """
    if stream_factory is None:
        import sounddevice as sd
        stream_factory = sd.RawInputStream

    frames_per_read = max(1, params.buffer_size // params.frame_width)
    chunks = []

    with stream_factory(samplerate=params.sample_rate, channels=params.channels,
                        dtype=_stream_dtype(params), blocksize=frames_per_read) as stream:
        while not stop.is_set():
            data, overflowed = stream.read(frames_per_read)
            if overflowed:
                logger.warning("Input overflow: some audio was dropped")
            if len(data) > 0:
                chunks.append(_to_configured_order(bytes(data), params))

    raw = b"".join(chunks)
    logger.info(f"Captured {len(raw) / (params.frame_width * params.sample_rate):.2f}s of audio")
    return raw


class CaptureSession:
    """
    Background recording. `stop()` signals completion and returns the clip.
    """

    def __init__(self, params: AudioParams, stream_factory: Optional[StreamFactory] = None):
        self.params = params
        self._stream_factory = stream_factory
        self._stop = threading.Event()
        self._raw: Optional[bytes] = None
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, name="capture", daemon=True)

    def _run(self):
        try:
            self._raw = record_until(self._stop, self.params, self._stream_factory)
        except BaseException as e:
            self._error = e

    def start(self) -> "CaptureSession":
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = None) -> bytes:
        self._stop.set()
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise TimeoutError("capture thread did not finish in time")
        if self._error is not None:
            raise self._error
        return self._raw or b""


def record_in_background(params: AudioParams,
                         stream_factory: Optional[StreamFactory] = None) -> CaptureSession:
    return CaptureSession(params, stream_factory).start()
