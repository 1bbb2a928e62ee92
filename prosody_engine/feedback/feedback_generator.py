"""Feedback Generator

Turns a ProsodyScoreBreakdown, the text heuristics of the transcript and the
word-level issues into a structured FeedbackReport. Messages are chosen from
fixed score bands; the only values interpolated into them are the measured
scores, the speaking rate and words quoted from the transcript.
"""

import logging
import math
from typing import List, Optional, Sequence

from prosody_engine.analysis.linguistic import TextAnalysis, analyze_text
from prosody_engine.models.enums import Severity
from prosody_engine.models.results import FeedbackReport, ProsodyScoreBreakdown, SpecificIssue, WordIssue
from prosody_engine.models.transcript import Transcript


logger = logging.getLogger(__name__)

PRIORITY_THRESHOLD = 0.70


def _pct(value: float) -> int:
    return int(math.floor(value * 100 + 0.5))


def _times(count: int) -> str:
    return "time" if count == 1 else "times"


class FeedbackGenerator:
    """Builds rule-based feedback reports. Stateless."""

    def generate(
        self,
        breakdown: ProsodyScoreBreakdown,
        transcript: Transcript,
        word_issues: Sequence[WordIssue]
    ) -> FeedbackReport:
        """Build the report for one scoring call.

        Args:
            breakdown: Sub-scores and speaking rate
            transcript: Transcript the scores were computed from
            word_issues: Worst-first output of WordLevelAnalyzer

        Returns:
            FeedbackReport with strengths, improvements and specific issues
        """
        analysis = analyze_text(transcript.text or "")
        strengths: List[str] = []
        improvements: List[str] = []

        self._pronunciation(breakdown.pronunciation, analysis, strengths, improvements)
        if breakdown.rhythm is not None:
            self._rhythm(breakdown.rhythm, breakdown.speaking_rate, strengths, improvements)
        self._intonation(breakdown.intonation, strengths, improvements)
        self._fluency(breakdown.fluency, analysis, strengths, improvements)

        improvements.extend(analysis.structure.tips)

        priority = self._priority(breakdown)
        if priority:
            improvements.insert(0, priority)

        specific_issues = [self._specific_issue(issue) for issue in word_issues]

        logger.debug(f"Generated feedback: {len(strengths)} strengths, "
                     f"{len(improvements)} improvements, {len(specific_issues)} specific issues")

        return FeedbackReport(
            strengths=strengths,
            improvements=improvements,
            specific_issues=specific_issues
        )

    def _pronunciation(self, score: float, analysis: TextAnalysis, strengths: List[str], improvements: List[str]):
        pct = _pct(score)
        top = analysis.difficult_sounds[0] if analysis.difficult_sounds else None
        if score >= 0.85:
            strengths.append(f"Excellent pronunciation clarity ({pct}%)")
        elif score >= 0.70:
            strengths.append(f"Good pronunciation overall ({pct}%)")
        elif score >= 0.60:
            if top:
                examples = ", ".join(top.words)
                improvements.append(f'Pronunciation at {pct}% - Focus on {top.sound} in words like "{examples}". {top.tip}')
            else:
                improvements.append(f"Pronunciation at {pct}% - Focus on consonant sounds at word endings")
        elif top:
            improvements.append(f"Pronunciation needs work ({pct}%) - Start with {top.sound}: {top.tip}")
        else:
            improvements.append(f"Pronunciation needs work ({pct}%) - Practice each word slowly and clearly")

    def _rhythm(self, score: float, rate: Optional[float], strengths: List[str], improvements: List[str]):
        pct = _pct(score)
        wpm = int(math.floor(rate + 0.5)) if rate is not None else None
        if score >= 0.80:
            strengths.append(f"Natural speaking rhythm ({pct}%) at {wpm} words/min")
        elif rate is not None and rate < 100:
            improvements.append(f"Rhythm at {pct}% - Speaking rate is {wpm} wpm (try 120-140 wpm)")
        elif rate is not None and rate > 180:
            improvements.append(f"Rhythm at {pct}% - Speaking too fast at {wpm} wpm (aim for 120-160 wpm)")
        else:
            improvements.append(f"Rhythm at {pct}% - Work on consistent pacing between words")

    def _intonation(self, score: float, strengths: List[str], improvements: List[str]):
        pct = _pct(score)
        if score >= 0.80:
            strengths.append(f"Good intonation patterns ({pct}%)")
        elif score >= 0.65:
            improvements.append(f"Intonation at {pct}% - Add more tone variation to emphasize key words")
        else:
            improvements.append(f"Intonation needs improvement ({pct}%) - Practice making your voice go up and down more")

    def _fluency(self, score: float, analysis: TextAnalysis, strengths: List[str], improvements: List[str]):
        pct = _pct(score)
        fillers = analysis.fillers
        if score >= 0.80:
            strengths.append(f"Fluent speech with good flow ({pct}%)")
        elif score >= 0.65:
            if fillers:
                top = fillers[0]
                improvements.append(f'Fluency at {pct}% - You said "{top.quoted}" {top.count} {_times(top.count)}. {top.tip}')
            else:
                improvements.append(f"Fluency at {pct}% - Work on smoother transitions between ideas")
        elif fillers:
            listed = ", ".join(f'"{f.quoted}" ({f.count}x)' for f in fillers)
            improvements.append(f"Fluency needs work ({pct}%) - Reduce filler words: {listed}")
        else:
            improvements.append(f"Fluency needs work ({pct}%) - Practice smoother transitions and reduce hesitations")

    def _priority(self, breakdown: ProsodyScoreBreakdown) -> Optional[str]:
        defined = [(name, value) for name, value in breakdown.sub_scores().items() if value is not None]
        name, value = min(defined, key=lambda item: item[1])
        if value < PRIORITY_THRESHOLD:
            return f"Priority: Improve {name} (currently {_pct(value)}%)"
        return None

    def _specific_issue(self, issue: WordIssue) -> SpecificIssue:
        return SpecificIssue(
            word=issue.word,
            score=issue.score,
            severity=Severity.from_score(issue.score).value,
            feedback=f"Pronunciation score: {issue.score}%",
            suggestion="; ".join(detail.suggestion for detail in issue.issues),
            issues=list(issue.issues),
            start=issue.start,
            end=issue.end
        )
