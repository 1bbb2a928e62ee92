"""Audio decoding and fixed-size frame delivery

Stands in for the live capture callback when audio comes from a file or an
upload: decodes to mono float samples and cuts them into the fixed-size
frames the streaming extractor expects.
"""

import logging
import mimetypes
import os
import tempfile
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

import librosa
import numpy as np

from prosody_engine.models.frames import AudioFrame
from prosody_engine.config.config_loader import config


logger = logging.getLogger(__name__)


class AudioDecodeError(Exception):
    """Exception raised when audio cannot be decoded"""
    pass


def load_audio(path: Union[str, Path], sample_rate: Optional[int] = None) -> Tuple[np.ndarray, int]:
    """Decode an audio file to mono float32 samples.

    Args:
        path: Audio file path
        sample_rate: Target rate in Hz, or None to keep the native rate

    Returns:
        (samples, sample_rate)

    Raises:
        FileNotFoundError: If the file does not exist
        AudioDecodeError: If decoding fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Audio file not found: {path}")
    try:
        samples, sr = librosa.load(str(path), sr=sample_rate, mono=True)
    except Exception as e:
        raise AudioDecodeError(f"Failed to decode {path}: {e}")
    logger.info(f"Loaded {path.name}: {len(samples) / sr:.2f}s at {sr} Hz")
    return samples.astype(np.float32), int(sr)


# Container suffixes the decoder backends sniff by file extension
_SUFFIXES = {
    "audio/webm": ".webm",
    "video/webm": ".webm",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/wave": ".wav",
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/mp4": ".m4a",
    "audio/m4a": ".m4a",
    "audio/x-m4a": ".m4a",
    "audio/ogg": ".ogg",
    "audio/flac": ".flac",
}


def suffix_for_content_type(content_type: Optional[str]) -> str:
    """File suffix for a MIME type, ignoring parameters such as ``;codecs=opus``."""
    if not content_type:
        return ""
    mime = content_type.split(";", 1)[0].strip().lower()
    return _SUFFIXES.get(mime) or mimetypes.guess_extension(mime) or ""


def decode_audio(data: bytes, sample_rate: int, content_type: Optional[str] = None) -> np.ndarray:
    """Decode in-memory audio bytes to mono float32 samples at ``sample_rate``.

    The bytes are written to a temporary file named after ``content_type`` and
    decoded by path, so compressed containers such as webm and mp4 go through
    the audioread/ffmpeg backend instead of the in-memory soundfile reader.

    Raises:
        AudioDecodeError: If the bytes are empty or cannot be decoded
    """
    if not data:
        raise AudioDecodeError("No audio data provided")

    fd, tmp_path = tempfile.mkstemp(suffix=suffix_for_content_type(content_type))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        samples, _ = librosa.load(tmp_path, sr=sample_rate, mono=True)
    except Exception as e:
        raise AudioDecodeError(f"Failed to decode audio bytes ({content_type or 'unknown type'}): {e}")
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
    return samples.astype(np.float32)


def iter_audio_frames(
    samples: np.ndarray,
    sample_rate: int,
    buffer_size: Optional[int] = None
) -> Iterator[AudioFrame]:
    """Yield consecutive fixed-size frames; the last one is zero-padded.

    Frames are stamped with the time of their first sample.
    """
    if buffer_size is None:
        buffer_size = config.get('audio.buffer_size', 2048)
    samples = np.asarray(samples, dtype=np.float32)

    for offset in range(0, samples.size, buffer_size):
        chunk = samples[offset:offset + buffer_size]
        if chunk.size < buffer_size:
            chunk = np.pad(chunk, (0, buffer_size - chunk.size))
        yield AudioFrame(
            samples=chunk,
            sample_rate=sample_rate,
            timestamp=offset / sample_rate
        )
