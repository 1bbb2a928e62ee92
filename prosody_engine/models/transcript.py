"""Data models for transcripts supplied by the speech recognition collaborator"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class Word:
    """A recognized word with optional timing

    Attributes:
        text: Word as recognized (may carry punctuation)
        start_s: Start time in seconds, if known
        end_s: End time in seconds, if known
        confidence: Recognition confidence [0, 1], if known
    """
    text: str
    start_s: Optional[float] = None
    end_s: Optional[float] = None
    confidence: Optional[float] = None


@dataclass(frozen=True)
class Segment:
    """A recognized segment (phrase) with optional confidence"""
    text: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class Transcript:
    """Read-only transcript of one recording

    Attributes:
        text: Full transcript text
        duration_s: Audio duration in seconds (0 when unknown)
        words: Ordered per-word timings; empty when the recognizer gave none
        segments: Ordered segments; empty when the recognizer gave none
    """
    text: str
    duration_s: float = 0.0
    words: List[Word] = field(default_factory=list)
    segments: List[Segment] = field(default_factory=list)

    def __post_init__(self):
        """Validate transcript data"""
        assert self.duration_s >= 0, "Duration must be non-negative"

    @property
    def has_word_timings(self) -> bool:
        return any(w.start_s is not None for w in self.words)

    @property
    def segment_confidences(self) -> List[Optional[float]]:
        return [s.confidence for s in self.segments]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Transcript":
        """Build a transcript from a verbose recognizer response.

        Every timing and confidence field is optional. Segment confidence is
        taken from ``confidence`` when present, else derived from
        ``no_speech_prob``; word confidence from ``confidence`` or
        ``probability``.
        """
        words = []
        for item in data.get("words") or []:
            words.append(Word(
                text=str(item.get("word", item.get("text", ""))).strip(),
                start_s=_optional_float(item.get("start")),
                end_s=_optional_float(item.get("end")),
                confidence=_optional_float(item.get("confidence", item.get("probability"))),
            ))

        segments = []
        for item in data.get("segments") or []:
            confidence = _optional_float(item.get("confidence"))
            if confidence is None and item.get("no_speech_prob") is not None:
                confidence = 1.0 - float(item["no_speech_prob"])
            segments.append(Segment(text=str(item.get("text", "")), confidence=confidence))

        duration = _optional_float(data.get("duration")) or 0.0
        return cls(
            text=str(data.get("text") or ""),
            duration_s=max(0.0, duration),
            words=words,
            segments=segments,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "duration": self.duration_s,
            "words": [
                {"word": w.text, "start": w.start_s, "end": w.end_s, "confidence": w.confidence}
                for w in self.words
            ],
            "segments": [{"text": s.text, "confidence": s.confidence} for s in self.segments],
        }


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
