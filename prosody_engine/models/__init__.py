"""Data models and interfaces"""

from prosody_engine.models.frames import AudioFrame, PitchSample
from prosody_engine.models.features import PitchEstimate, ProsodySummary
from prosody_engine.models.transcript import Word, Segment, Transcript
from prosody_engine.models.results import (
    ProsodyScoreBreakdown,
    IssueDetail,
    WordIssue,
    SpecificIssue,
    FeedbackReport,
    ParaphrasedFeedback,
    AnalysisResult,
)
from prosody_engine.models.interfaces import TranscriberInterface, FeedbackParaphraser
from prosody_engine.models.enums import ExtractorState, Severity

__all__ = [
    # Frames
    "AudioFrame",
    "PitchSample",
    # Features
    "PitchEstimate",
    "ProsodySummary",
    # Transcript
    "Word",
    "Segment",
    "Transcript",
    # Results
    "ProsodyScoreBreakdown",
    "IssueDetail",
    "WordIssue",
    "SpecificIssue",
    "FeedbackReport",
    "ParaphrasedFeedback",
    "AnalysisResult",
    # Enums
    "ExtractorState",
    "Severity",
    # Interfaces
    "TranscriberInterface",
    "FeedbackParaphraser",
]
