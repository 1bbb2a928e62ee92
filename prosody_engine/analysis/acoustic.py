"""Per-frame acoustic measurements

Cheap estimators meant to run inside the audio-capture callback: a
time-domain autocorrelation pitch detector and an RMS energy meter. Both are
pure functions of one frame and complete well under the frame period for
buffer sizes of 1024-4096 samples.
"""

import logging
import math
from typing import Optional

import numpy as np

from prosody_engine.models.features import PitchEstimate
from prosody_engine.config.config_loader import config


logger = logging.getLogger(__name__)

# Fraction of the strongest correlation a lag must reach to be taken as the
# fundamental period (guards against picking a multiple of the period)
PEAK_FRACTION = 0.9


def compute_rms(samples: np.ndarray) -> float:
    """Root-mean-square amplitude of a frame (0.0 for an empty frame)."""
    x = np.asarray(samples, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x * x)))


def lag_correlations(samples: np.ndarray, max_lag: Optional[int] = None) -> np.ndarray:
    """Energy-normalized self-similarity for lags in [0, min(N/2, max_lag + 1)).

    ``corr(L) = 1 - sum((x[i] - x[i + L])^2) / sum(x[i]^2 + x[i + L]^2)`` for
    ``i`` in ``[0, N/2)``. The value is 1 for a lag equal to the period, near 0
    for uncorrelated noise at any level, and 0 for an all-zero window.
    """
    x = np.asarray(samples, dtype=np.float64)
    half = x.size // 2
    n_lags = half if max_lag is None else max(0, min(half, max_lag + 1))
    corr = np.zeros(n_lags, dtype=np.float64)
    if half == 0:
        return corr
    head = x[:half]
    head_energy = float(np.dot(head, head))
    for lag in range(n_lags):
        tail = x[lag:lag + half]
        denom = head_energy + float(np.dot(tail, tail))
        if denom > 0:
            diff = head - tail
            corr[lag] = 1.0 - float(np.dot(diff, diff)) / denom
    return corr


class PitchDetector:
    """Autocorrelation fundamental-frequency estimator.

    The frame's mean is removed first; frames whose remaining RMS is at or
    below ``min_rms`` are unvoiced. Only lags inside the speech F0 range
    ``[min_frequency, max_frequency]`` are searched. The earliest lag reaching
    ``PEAK_FRACTION`` of the strongest correlation in that range is walked up
    to its local maximum; that lag is the period estimate. A frame is voiced
    when the chosen correlation exceeds ``confidence_threshold``.

    Attributes:
        confidence_threshold: Minimum correlation for a voiced estimate
        min_frequency: Lowest F0 searched (Hz)
        max_frequency: Highest F0 searched (Hz)
        min_rms: Frames this quiet or quieter are never voiced
    """

    def __init__(
        self,
        confidence_threshold: Optional[float] = None,
        min_frequency: Optional[float] = None,
        max_frequency: Optional[float] = None,
        min_rms: Optional[float] = None
    ):
        if confidence_threshold is None:
            confidence_threshold = config.get('pitch.confidence_threshold', 0.35)
        self.confidence_threshold = float(confidence_threshold)
        self.min_frequency = float(min_frequency if min_frequency is not None
                                   else config.get('pitch.min_frequency', 50.0))
        self.max_frequency = float(max_frequency if max_frequency is not None
                                   else config.get('pitch.max_frequency', 500.0))
        self.min_rms = float(min_rms if min_rms is not None else config.get('pitch.min_rms', 0.0005))
        logger.debug(f"PitchDetector initialized with confidence_threshold={self.confidence_threshold}, "
                     f"range={self.min_frequency}-{self.max_frequency} Hz, min_rms={self.min_rms}")

    def lag_range(self, n_samples: int, sample_rate: int):
        """Inclusive (min_lag, max_lag) searched for a frame of ``n_samples``."""
        min_lag = max(1, int(sample_rate // self.max_frequency))
        max_lag = min(n_samples // 2 - 1, int(math.ceil(sample_rate / self.min_frequency)))
        return min_lag, max_lag

    def detect(self, samples: np.ndarray, sample_rate: int) -> PitchEstimate:
        """Estimate F0 for one frame.

        Args:
            samples: Frame samples in [-1, 1]
            sample_rate: Sample rate in Hz

        Returns:
            PitchEstimate with frequency None when no periodicity is found
        """
        x = np.asarray(samples, dtype=np.float64)
        if x.size == 0:
            return PitchEstimate(frequency=None, clarity=0.0)
        x = x - x.mean()
        if compute_rms(x) <= self.min_rms:
            return PitchEstimate(frequency=None, clarity=0.0)

        min_lag, max_lag = self.lag_range(x.size, sample_rate)
        if max_lag <= min_lag:
            return PitchEstimate(frequency=None, clarity=0.0)

        corr = lag_correlations(x, max_lag)
        window = corr[min_lag:max_lag + 1]
        strongest = float(window.max())
        if strongest <= self.confidence_threshold:
            return PitchEstimate(frequency=None, clarity=_clip01(strongest))

        best_lag = min_lag + int(np.argmax(window >= PEAK_FRACTION * strongest))
        while best_lag < max_lag and corr[best_lag + 1] > corr[best_lag]:
            best_lag += 1
        best = float(corr[best_lag])

        if best > self.confidence_threshold:
            return PitchEstimate(frequency=sample_rate / best_lag, clarity=_clip01(best))
        return PitchEstimate(frequency=None, clarity=_clip01(best))


_default_detector: Optional[PitchDetector] = None


def detect_pitch(samples: np.ndarray, sample_rate: int) -> PitchEstimate:
    """Estimate F0 with the default-configured detector."""
    global _default_detector
    if _default_detector is None:
        _default_detector = PitchDetector()
    return _default_detector.detect(samples, sample_rate)


def _clip01(value: float) -> float:
    return min(1.0, max(0.0, value))
