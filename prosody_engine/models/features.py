"""Data models for extracted prosodic features"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from prosody_engine.models.frames import PitchSample


def _round_or_none(value: Optional[float], digits: int) -> Optional[float]:
    return round(value, digits) if value is not None else None


@dataclass(frozen=True)
class PitchEstimate:
    """Per-frame pitch detector output
    
    Attributes:
        frequency: Estimated F0 in Hz, or None if no periodicity was found
        clarity: Normalized correlation of the chosen lag [0, 1]
    """
    frequency: Optional[float]
    clarity: float


@dataclass(frozen=True)
class ProsodySummary:
    """Aggregate prosodic features of one finished recording
    
    Created once when a recording session stops and never mutated afterwards.
    Statistics that are undefined for the recording (no voiced frames, no
    pauses, zero duration) are None rather than NaN.
    
    Attributes:
        duration_s: Length of the pitch-contour timeline in seconds
        f0_mean: Mean F0 over voiced frames (Hz)
        f0_stdev: Population standard deviation of voiced F0 (Hz)
        energy_mean: Mean per-frame RMS energy
        pause_count: Number of low-energy runs lasting at least min_pause_ms
        avg_pause_ms: Mean pause length in milliseconds
        speech_rate_syllables_per_min: Energy-peak syllable rate
        monotony: 0 = highly varied pitch, 1 = flat pitch
        tips: Three or four short practice tips
        contour: Full pitch contour, if it was stored
    """
    duration_s: float
    f0_mean: Optional[float]
    f0_stdev: Optional[float]
    energy_mean: Optional[float]
    pause_count: int
    avg_pause_ms: Optional[float]
    speech_rate_syllables_per_min: Optional[float]
    monotony: Optional[float]
    tips: Tuple[str, ...] = ()
    contour: Optional[Tuple[PitchSample, ...]] = None
    
    def __post_init__(self):
        """Validate summary data"""
        assert self.duration_s >= 0, "Duration must be non-negative"
        assert self.pause_count >= 0, "Pause count must be non-negative"
        if self.monotony is not None:
            assert 0.0 <= self.monotony <= 1.0, "Monotony must be in [0, 1]"
        assert len(self.tips) <= 4, "At most four tips"
    
    def to_dict(self) -> Dict[str, Any]:
        """Render the summary with display rounding"""
        data: Dict[str, Any] = {
            "dur_s": round(self.duration_s, 1),
            "f0_mean": _round_or_none(self.f0_mean, 1),
            "f0_stdev": _round_or_none(self.f0_stdev, 1),
            "energy_mean": _round_or_none(self.energy_mean, 5),
            "pause_count": self.pause_count,
            "avg_pause_ms": round(self.avg_pause_ms) if self.avg_pause_ms is not None else None,
            "speech_rate_spm": (round(self.speech_rate_syllables_per_min)
                                if self.speech_rate_syllables_per_min is not None else None),
            "monotony_0to1": _round_or_none(self.monotony, 2),
            "tips": list(self.tips),
        }
        if self.contour is not None:
            data["f0_contour"] = [
                {"t": round(s.t, 2), "f0": _round_or_none(s.f0, 1)} for s in self.contour
            ]
        return data
