"""Streaming Prosody Feature Extraction

This module accumulates per-frame pitch and energy samples for the duration of
one recording session and, when the session stops, aggregates them into a
ProsodySummary: F0 statistics, pause structure, energy-peak speech rate,
monotony and a short list of practice tips.

The per-frame path (``on_frame``) only runs the pitch detector and the RMS
meter and appends to in-memory buffers. All aggregation happens once, in
``stop``.
"""

import logging
import math
import time
from typing import List, Optional, Sequence

import numpy as np

from prosody_engine.analysis.acoustic import PitchDetector, compute_rms
from prosody_engine.models.enums import ExtractorState
from prosody_engine.models.features import ProsodySummary
from prosody_engine.models.frames import AudioFrame, PitchSample
from prosody_engine.config.config_loader import config


logger = logging.getLogger(__name__)

# Pitch standard deviation (Hz) at which speech is considered fully varied
MONOTONY_STDEV_HZ = 60.0

MIN_TIPS = 3
MAX_TIPS = 4

TIP_RECORD_LONGER = "Try a longer sample (≥10s) for more accurate feedback."
TIP_SPEAK_LOUDER = "Speak closer to the mic or increase your volume."
TIP_VARY_PITCH = "Add pitch variation - emphasize key words and use rising/falling intonation."
TIP_SHORTEN_PAUSES = "Try shortening long pauses to keep flow (aim ~180-400 ms)."
TIP_SPEED_UP = "Increase speaking rate slightly to sound more natural."
TIP_SLOW_DOWN = "Slow down a bit to improve clarity."
GENERIC_TIPS = (
    "Practice emphasizing keywords and vary pitch to reduce monotony.",
    "Record yourself reading a short passage and compare it with a native speaker.",
    "Mark the stressed syllables in a sentence before you say it aloud.",
)


def _quantile(sorted_values: np.ndarray, fraction: float) -> float:
    """Value at ``floor(n * fraction)`` of an ascending array."""
    idx = min(sorted_values.size - 1, max(0, int(math.floor(sorted_values.size * fraction))))
    return float(sorted_values[idx])


def detect_pauses(
    energies: Sequence[float],
    ms_per_frame: float,
    min_pause_ms: float = 200.0,
    percentile: float = 0.2,
    energy_floor: float = 0.0005
) -> List[float]:
    """Find pauses in a per-frame energy sequence.

    The silence threshold is the energy at the ``percentile`` quantile,
    floored at ``energy_floor``. Every contiguous run of frames at or below
    the threshold (strictly below when the threshold reaches the loudest frame)
    lasting at least ``min_pause_ms`` is one pause; a run still
    open at the end of the sequence is judged by the same rule.

    Args:
        energies: Per-frame RMS values in time order
        ms_per_frame: Duration of one frame in milliseconds
        min_pause_ms: Minimum run length counted as a pause
        percentile: Quantile of the sorted energies used as threshold
        energy_floor: Absolute minimum threshold

    Returns:
        Pause durations in milliseconds, in time order
    """
    values = np.asarray(energies, dtype=np.float64)
    if values.size == 0 or ms_per_frame <= 0:
        return []

    threshold = max(_quantile(np.sort(values), percentile), energy_floor)
    if threshold >= values.max():
        # No contrast: only frames strictly below the loudest level are quiet
        low = values < threshold
    else:
        low = values <= threshold

    pauses = []
    run_start = None
    for i, is_low in enumerate(low):
        if is_low and run_start is None:
            run_start = i
        elif not is_low and run_start is not None:
            ms = (i - run_start) * ms_per_frame
            if ms >= min_pause_ms:
                pauses.append(ms)
            run_start = None
    if run_start is not None:
        ms = (values.size - run_start) * ms_per_frame
        if ms >= min_pause_ms:
            pauses.append(ms)

    return pauses


def count_syllable_peaks(
    energies: Sequence[float],
    frames_per_second: float,
    threshold_multiplier: float = 1.2,
    percentile: float = 0.75,
    min_spacing_ms: float = 80.0
) -> int:
    """Count energy-envelope peaks as a proxy for syllable nuclei.

    A frame is a peak when it exceeds both neighbours, exceeds
    ``max(mean * threshold_multiplier, percentile quantile)`` and lies at least
    ``min_spacing_ms`` after the previously accepted peak.
    """
    values = np.asarray(energies, dtype=np.float64)
    if values.size < 3:
        return 0

    threshold = max(float(values.mean()) * threshold_multiplier,
                    _quantile(np.sort(values), percentile))
    min_distance = max(1, int(math.floor(min_spacing_ms / 1000.0 * frames_per_second)))

    peaks = 0
    last_peak = None
    for i in range(1, values.size - 1):
        e = values[i]
        if e > values[i - 1] and e > values[i + 1] and e > threshold:
            if last_peak is None or i - last_peak >= min_distance:
                peaks += 1
                last_peak = i
    return peaks


def monotony_from_stdev(f0_stdev: Optional[float]) -> Optional[float]:
    """Map pitch spread to monotony: 1 at 0 Hz, 0 at 60 Hz or more, linear between."""
    if f0_stdev is None:
        return None
    return min(1.0, max(0.0, 1.0 - f0_stdev / MONOTONY_STDEV_HZ))


def build_tips(
    duration_s: float,
    energy_mean: Optional[float],
    f0_stdev: Optional[float],
    avg_pause_ms: Optional[float],
    speech_rate: Optional[float]
) -> List[str]:
    """Deterministic practice tips, padded to three and capped at four."""
    tips = []
    if duration_s < 8:
        tips.append(TIP_RECORD_LONGER)
    if energy_mean is not None and energy_mean < 0.01:
        tips.append(TIP_SPEAK_LOUDER)
    if f0_stdev is not None and f0_stdev < 20:
        tips.append(TIP_VARY_PITCH)
    if avg_pause_ms is not None and avg_pause_ms > 500:
        tips.append(TIP_SHORTEN_PAUSES)
    if speech_rate is not None and speech_rate < 120:
        tips.append(TIP_SPEED_UP)
    if speech_rate is not None and speech_rate > 260:
        tips.append(TIP_SLOW_DOWN)

    for generic in GENERIC_TIPS:
        if len(tips) >= MIN_TIPS:
            break
        tips.append(generic)

    return tips[:MAX_TIPS]


class StreamingFeatureExtractor:
    """Accumulates pitch/energy per frame and summarizes one recording.

    Lifecycle: ``IDLE -> RECORDING -> FINALIZED``. ``start()`` (from IDLE or
    FINALIZED) clears all buffers and begins a session; ``on_frame()`` is
    invoked by the capture callback once per fixed-size frame; ``stop()``
    aggregates, releases the buffers and returns the summary. An instance
    serves one session at a time and is not reentrant.

    Attributes:
        pitch_detector: Per-frame F0 estimator
        store_contour: Whether the summary carries the full pitch contour
        min_pause_ms: Minimum low-energy run counted as a pause
        dynamic_pause_percentile: Energy quantile used as silence threshold
        pause_energy_floor: Absolute floor of the silence threshold
        peak_threshold_multiplier: Peak threshold as a multiple of mean energy
        peak_percentile: Energy quantile that peaks must also exceed
        min_peak_spacing_ms: Minimum spacing between syllable peaks
        started_at: Monotonic clock reading when the session started
    """

    def __init__(
        self,
        pitch_detector: Optional[PitchDetector] = None,
        store_contour: Optional[bool] = None,
        min_pause_ms: Optional[float] = None,
        dynamic_pause_percentile: Optional[float] = None,
        pause_energy_floor: Optional[float] = None,
        peak_threshold_multiplier: Optional[float] = None,
        peak_percentile: Optional[float] = None,
        min_peak_spacing_ms: Optional[float] = None
    ):
        """Initialize the extractor; unspecified parameters come from config."""
        self.pitch_detector = pitch_detector or PitchDetector()
        self.store_contour = _pick(store_contour, 'prosody.store_contour', True)
        self.min_pause_ms = _pick(min_pause_ms, 'prosody.min_pause_ms', 200)
        self.dynamic_pause_percentile = _pick(
            dynamic_pause_percentile, 'prosody.dynamic_pause_percentile', 0.2)
        self.pause_energy_floor = _pick(pause_energy_floor, 'prosody.pause_energy_floor', 0.0005)
        self.peak_threshold_multiplier = _pick(
            peak_threshold_multiplier, 'prosody.peak_threshold_multiplier', 1.2)
        self.peak_percentile = _pick(peak_percentile, 'prosody.peak_percentile', 0.75)
        self.min_peak_spacing_ms = _pick(min_peak_spacing_ms, 'prosody.min_peak_spacing_ms', 80)

        # Session state
        self._state = ExtractorState.IDLE
        self._contour: List[PitchSample] = []
        self._energies: List[float] = []
        self._elapsed_s = 0.0
        self.started_at: Optional[float] = None

    @property
    def state(self) -> ExtractorState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is ExtractorState.RECORDING

    @property
    def frame_count(self) -> int:
        return len(self._energies)

    def start(self) -> None:
        """Begin a new recording session, discarding any previous buffers."""
        if self._state is ExtractorState.RECORDING:
            logger.warning("start() called while already recording; ignoring")
            return

        self._contour = []
        self._energies = []
        self._elapsed_s = 0.0
        self.started_at = time.monotonic()
        self._state = ExtractorState.RECORDING
        logger.info("Prosody recording started")

    def on_frame(self, frame: AudioFrame) -> Optional[PitchSample]:
        """Consume one captured frame.

        Appends one pitch sample and one energy sample. The sample time is the
        end of the frame: ``frame.timestamp + frame.duration`` when the capture
        layer stamps frames, else the cumulative duration of frames seen so far.

        Args:
            frame: Fixed-size audio frame

        Returns:
            The appended PitchSample, or None when not recording
        """
        if self._state is not ExtractorState.RECORDING:
            return None

        if frame.timestamp is not None:
            t = frame.timestamp + frame.duration
        else:
            t = self._elapsed_s + frame.duration
        self._elapsed_s = t

        estimate = self.pitch_detector.detect(frame.samples, frame.sample_rate)
        sample = PitchSample(t=t, f0=estimate.frequency)
        self._contour.append(sample)
        self._energies.append(compute_rms(frame.samples))
        return sample

    def stop(self) -> Optional[ProsodySummary]:
        """End the session and aggregate the buffered samples.

        Returns:
            ProsodySummary, or None when no session was recording
        """
        if self._state is not ExtractorState.RECORDING:
            logger.debug("stop() called without an active recording")
            return None

        contour, energies = self._contour, self._energies
        self._contour = []
        self._energies = []
        self._state = ExtractorState.FINALIZED

        summary = self.summarize(contour, energies)
        wall_s = time.monotonic() - self.started_at if self.started_at is not None else 0.0
        logger.info(f"Prosody recording stopped: {len(energies)} frames, "
                    f"duration={summary.duration_s:.2f}s (wall {wall_s:.2f}s), "
                    f"pauses={summary.pause_count}")
        return summary

    def summarize(self, contour: Sequence[PitchSample], energies: Sequence[float]) -> ProsodySummary:
        """Aggregate a pitch contour and energy sequence into a summary.

        Duration is the contour timeline (last sample time), not a raw sample
        count, so padded buffers are not over-counted.
        """
        duration = contour[-1].t if contour else 0.0
        n_frames = len(energies)

        voiced = np.array([s.f0 for s in contour
                           if s.f0 is not None and math.isfinite(s.f0)], dtype=np.float64)
        f0_mean = float(voiced.mean()) if voiced.size else None
        f0_stdev = float(voiced.std()) if voiced.size else None

        energy_mean = float(np.mean(energies)) if n_frames else None

        ms_per_frame = duration / n_frames * 1000.0 if duration > 0 and n_frames else 0.0
        pauses = detect_pauses(
            energies,
            ms_per_frame,
            min_pause_ms=self.min_pause_ms,
            percentile=self.dynamic_pause_percentile,
            energy_floor=self.pause_energy_floor
        )
        avg_pause_ms = float(np.mean(pauses)) if pauses else None

        frames_per_second = n_frames / duration if duration > 0 and n_frames else 100.0
        peaks = count_syllable_peaks(
            energies,
            frames_per_second,
            threshold_multiplier=self.peak_threshold_multiplier,
            percentile=self.peak_percentile,
            min_spacing_ms=self.min_peak_spacing_ms
        )
        speech_rate = peaks / duration * 60.0 if duration > 0 else None

        tips = build_tips(duration, energy_mean, f0_stdev, avg_pause_ms, speech_rate)

        return ProsodySummary(
            duration_s=duration,
            f0_mean=f0_mean,
            f0_stdev=f0_stdev,
            energy_mean=energy_mean,
            pause_count=len(pauses),
            avg_pause_ms=avg_pause_ms,
            speech_rate_syllables_per_min=speech_rate,
            monotony=monotony_from_stdev(f0_stdev),
            tips=tuple(tips),
            contour=tuple(contour) if self.store_contour else None
        )


def _pick(value, key, default):
    return value if value is not None else config.get(key, default)
