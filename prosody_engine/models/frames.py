"""Data models for audio frames and pitch samples"""

from dataclasses import dataclass
from typing import Optional
import numpy as np


@dataclass
class AudioFrame:
    """Represents a single fixed-size audio frame from the capture callback
    
    Attributes:
        samples: Mono samples normalized to [-1, 1]
        sample_rate: Sample rate in Hz (e.g., 16000)
        timestamp: Seconds since capture start of the first sample, if known
    """
    samples: np.ndarray  # normalized PCM samples
    sample_rate: int     # e.g., 16000 Hz
    timestamp: Optional[float] = None
    
    def __post_init__(self):
        """Validate audio frame data"""
        assert self.sample_rate > 0, "Sample rate must be positive"
        assert isinstance(self.samples, np.ndarray), "Samples must be numpy array"
        assert self.samples.ndim == 1, "Samples must be a 1D array"
        if self.timestamp is not None:
            assert self.timestamp >= 0, "Timestamp must be non-negative"
    
    @property
    def duration(self) -> float:
        """Frame duration in seconds"""
        return len(self.samples) / self.sample_rate


@dataclass(frozen=True)
class PitchSample:
    """One point of the pitch contour
    
    Attributes:
        t: Seconds since recording start
        f0: Fundamental frequency in Hz, None for unvoiced frames
    """
    t: float
    f0: Optional[float]
