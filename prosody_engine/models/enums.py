"""Enumerations for recording state and feedback severity"""

from enum import Enum


class ExtractorState(Enum):
    """Lifecycle of a streaming feature extractor"""
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZED = "finalized"


class Severity(Enum):
    """Severity band of a word-level pronunciation issue"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_score(cls, score: float) -> "Severity":
        """Band a 0-100 word score: <60 high, <75 medium, else low"""
        if score < 60:
            return cls.HIGH
        if score < 75:
            return cls.MEDIUM
        return cls.LOW
