"""Data models for scoring and feedback results"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from prosody_engine.models.features import ProsodySummary
from prosody_engine.models.transcript import Transcript


def _pct_round(value: Optional[float]) -> Optional[float]:
    return round(value, 2) if value is not None else None


@dataclass(frozen=True)
class ProsodyScoreBreakdown:
    """Heuristic prosody scores for one transcript

    Attributes:
        pronunciation: Pronunciation sub-score [0, 1]
        rhythm: Rhythm sub-score [0, 1], None when speaking rate is undefined
        intonation: Intonation sub-score [0, 1]
        fluency: Fluency sub-score [0, 1]
        overall: Weighted sum of the defined sub-scores [0, 1]
        speaking_rate: Words per minute, None when duration is zero
        word_count: Number of whitespace-separated words
        duration_s: Duration used for the speaking rate
        summary: Acoustic summary of the same recording, if supplied
    """
    pronunciation: float
    rhythm: Optional[float]
    intonation: float
    fluency: float
    overall: float
    speaking_rate: Optional[float] = None
    word_count: int = 0
    duration_s: float = 0.0
    summary: Optional[ProsodySummary] = None

    def __post_init__(self):
        """Validate score ranges"""
        for name in ("pronunciation", "intonation", "fluency", "overall"):
            value = getattr(self, name)
            assert 0.0 <= value <= 1.0, f"{name} must be in [0, 1]"
        if self.rhythm is not None:
            assert 0.0 <= self.rhythm <= 1.0, "rhythm must be in [0, 1]"

    def sub_scores(self) -> Dict[str, Optional[float]]:
        """Sub-scores keyed by metric name, in reporting order"""
        return {
            "pronunciation": self.pronunciation,
            "rhythm": self.rhythm,
            "intonation": self.intonation,
            "fluency": self.fluency,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "overall_score": _pct_round(self.overall),
            "pronunciation_score": _pct_round(self.pronunciation),
            "rhythm_score": _pct_round(self.rhythm),
            "intonation_score": _pct_round(self.intonation),
            "fluency_score": _pct_round(self.fluency),
            "speaking_rate": round(self.speaking_rate, 1) if self.speaking_rate is not None else None,
            "word_count": self.word_count,
            "duration": round(self.duration_s, 1),
        }
        if self.summary is not None:
            data["prosody_summary"] = self.summary.to_dict()
        return data


@dataclass(frozen=True)
class IssueDetail:
    """One pronunciation-risk pattern matched on a word"""
    type: str
    suggestion: str


@dataclass(frozen=True)
class WordIssue:
    """A word flagged by word-level analysis

    Attributes:
        word: Word as it appears in the transcript
        score: Heuristic word score [0, 100]
        issues: Matched risk patterns
        start: Start time in seconds (timed mode only)
        end: End time in seconds (timed mode only)
    """
    word: str
    score: int
    issues: List[IssueDetail] = field(default_factory=list)
    start: Optional[float] = None
    end: Optional[float] = None

    def __post_init__(self):
        assert 0 <= self.score <= 100, "Word score must be in [0, 100]"


@dataclass(frozen=True)
class SpecificIssue:
    """Report-level form of a WordIssue with a severity band"""
    word: str
    score: int
    severity: str  # "high" | "medium" | "low"
    feedback: str
    suggestion: str
    issues: List[IssueDetail] = field(default_factory=list)
    start: Optional[float] = None
    end: Optional[float] = None
    type: str = "pronunciation"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "word": self.word,
            "score": self.score,
            "severity": self.severity,
            "feedback": self.feedback,
            "suggestion": self.suggestion,
            "start": self.start,
            "end": self.end,
            "issues": [{"type": i.type, "suggestion": i.suggestion} for i in self.issues],
        }


PLACEHOLDER_STRENGTHS = (
    "You completed a speaking exercise - keep practicing regularly",
)
PLACEHOLDER_IMPROVEMENTS = (
    "We could not analyze this recording. Try again in a quiet place, speaking clearly for at least 10 seconds",
)


@dataclass(frozen=True)
class FeedbackReport:
    """Structured feedback for one scoring call"""
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    specific_issues: List[SpecificIssue] = field(default_factory=list)

    @classmethod
    def placeholder(cls) -> "FeedbackReport":
        """Default report used when no transcript is available at all"""
        return cls(
            strengths=list(PLACEHOLDER_STRENGTHS),
            improvements=list(PLACEHOLDER_IMPROVEMENTS),
            specific_issues=[],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strengths": list(self.strengths),
            "improvements": list(self.improvements),
            "specific_issues": [issue.to_dict() for issue in self.specific_issues],
        }


@dataclass(frozen=True)
class ParaphrasedFeedback:
    """Free-text strengths/improvements returned by the paraphraser"""
    strengths: Optional[List[str]] = None
    improvements: Optional[List[str]] = None


@dataclass
class AnalysisResult:
    """Everything produced for one analyzed recording

    Attributes:
        transcript: Transcript used for scoring, None if recognition failed
        breakdown: Heuristic scores, None if recognition failed
        report: Feedback report (placeholder when recognition failed)
        summary: Acoustic prosody summary, if audio features were extracted
        paraphrased: Whether strengths/improvements came from the paraphraser
    """
    transcript: Optional[Transcript]
    breakdown: Optional[ProsodyScoreBreakdown]
    report: FeedbackReport
    summary: Optional[ProsodySummary] = None
    paraphrased: bool = False

    def to_dict(self) -> Dict[str, Any]:
        analysis: Dict[str, Any] = self.breakdown.to_dict() if self.breakdown else {}
        analysis["detailed_feedback"] = self.report.to_dict()
        return {
            "success": self.transcript is not None,
            "transcription": self.transcript.text if self.transcript else None,
            "duration": self.transcript.duration_s if self.transcript else None,
            "prosody_analysis": analysis,
            "prosody_summary": self.summary.to_dict() if self.summary else None,
            "paraphrased": self.paraphrased,
        }
