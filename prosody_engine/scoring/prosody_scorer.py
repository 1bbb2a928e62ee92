"""Heuristic Prosody Scorer

Combines a transcript (text, duration, optional segment confidences) and,
optionally, the acoustic ProsodySummary of the same recording into four
sub-scores and a weighted overall score.

Every sub-score function is pure and total: empty text, zero duration and
missing confidences resolve to documented fallbacks and never raise.

    pronunciation  mean segment confidence clamped to [0.5, 1.0]; without
                   segments 0.80, or 0.75 when the text has words of 8+ letters
    rhythm         triangular around 140 wpm inside [100, 180] (1.0 at 140,
                   0.7 at the edges); rate/100 below, 180/rate above, floored
                   at 0.5; None when the speaking rate is undefined
    intonation     0.7 base, +0.1 for '?', +0.1 for '!', +0.05 for '.',
                   +0.05 when sentence-length variance exceeds 5
    fluency        0.8 base, minus filler and repetition penalties, +0.1 at
                   120-160 wpm, clamped to [0.4, 1.0]
    overall        0.30 p + 0.25 r + 0.25 i + 0.20 f
"""

import logging
import re
from typing import Optional, Sequence

from prosody_engine.analysis.linguistic import (
    count_fillers,
    count_repetitions,
    sentence_length_variance,
    split_words,
)
from prosody_engine.models.features import ProsodySummary
from prosody_engine.models.results import ProsodyScoreBreakdown
from prosody_engine.models.transcript import Transcript


logger = logging.getLogger(__name__)

# Overall-score weights; a fixed contract, not configuration
PRONUNCIATION_WEIGHT = 0.30
RHYTHM_WEIGHT = 0.25
INTONATION_WEIGHT = 0.25
FLUENCY_WEIGHT = 0.20
SCORE_WEIGHTS = {
    "pronunciation": PRONUNCIATION_WEIGHT,
    "rhythm": RHYTHM_WEIGHT,
    "intonation": INTONATION_WEIGHT,
    "fluency": FLUENCY_WEIGHT,
}

IDEAL_RATE_MIN = 100.0
IDEAL_RATE_MAX = 180.0
OPTIMAL_RATE = 140.0
FLUENT_RATE_MIN = 120.0
FLUENT_RATE_MAX = 160.0

DEFAULT_SEGMENT_CONFIDENCE = 0.8
FILLER_RATIO_ALLOWANCE = 0.1

_LONG_WORD = re.compile(r"\b\w{8,}\b")


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def speaking_rate(word_count: int, duration_s: float) -> Optional[float]:
    """Words per minute; None when the duration is not positive."""
    if duration_s <= 0:
        return None
    return word_count / duration_s * 60.0


def pronunciation_score(segment_confidences: Sequence[Optional[float]], text: str) -> float:
    if not segment_confidences:
        return 0.75 if _LONG_WORD.search(text) else 0.80
    values = [c if c is not None else DEFAULT_SEGMENT_CONFIDENCE for c in segment_confidences]
    return _clamp(sum(values) / len(values), 0.5, 1.0)


def rhythm_score(rate: Optional[float]) -> Optional[float]:
    if rate is None:
        return None
    if rate < IDEAL_RATE_MIN:
        return max(0.5, rate / IDEAL_RATE_MIN)
    if rate > IDEAL_RATE_MAX:
        return max(0.5, IDEAL_RATE_MAX / rate)
    max_distance = max(OPTIMAL_RATE - IDEAL_RATE_MIN, IDEAL_RATE_MAX - OPTIMAL_RATE)
    return 1.0 - 0.3 * abs(rate - OPTIMAL_RATE) / max_distance


def intonation_score(text: str) -> float:
    score = 0.7
    if "?" in text:
        score += 0.1
    if "!" in text:
        score += 0.1
    if "." in text:
        score += 0.05

    variance = sentence_length_variance(text)
    if variance is not None and variance > 5:
        score += 0.05

    return _clamp(score, 0.5, 1.0)


def fluency_score(text: str, rate: Optional[float]) -> float:
    score = 0.8
    words = split_words(text)

    if words:
        filler_ratio = count_fillers(text) / len(words)
        if filler_ratio > FILLER_RATIO_ALLOWANCE:
            score -= 2 * (filler_ratio - FILLER_RATIO_ALLOWANCE)

        repetition_ratio = count_repetitions(words) / len(words)
        score -= 0.5 * repetition_ratio

    if rate is not None and FLUENT_RATE_MIN <= rate <= FLUENT_RATE_MAX:
        score += 0.1

    return _clamp(score, 0.4, 1.0)


def weighted_overall(
    pronunciation: float,
    rhythm: Optional[float],
    intonation: float,
    fluency: float
) -> float:
    """Weighted sum of the sub-scores.

    When rhythm is undefined the remaining weights are renormalized so the
    result stays on the same [0, 1] scale.
    """
    if rhythm is not None:
        return (PRONUNCIATION_WEIGHT * pronunciation + RHYTHM_WEIGHT * rhythm
                + INTONATION_WEIGHT * intonation + FLUENCY_WEIGHT * fluency)
    remaining = PRONUNCIATION_WEIGHT + INTONATION_WEIGHT + FLUENCY_WEIGHT
    return (PRONUNCIATION_WEIGHT * pronunciation + INTONATION_WEIGHT * intonation
            + FLUENCY_WEIGHT * fluency) / remaining


class HeuristicProsodyScorer:
    """Scores a transcript into pronunciation/rhythm/intonation/fluency.

    Holds no mutable state; one instance may serve concurrent requests.
    """

    def score(self, transcript: Transcript, summary: Optional[ProsodySummary] = None) -> ProsodyScoreBreakdown:
        """Score one transcript.

        Args:
            transcript: Recognizer output for the recording
            summary: Acoustic summary of the same recording; its duration is
                     used when the transcript carries none, and it is attached
                     to the breakdown

        Returns:
            ProsodyScoreBreakdown
        """
        text = transcript.text or ""
        duration = transcript.duration_s
        if duration <= 0 and summary is not None and summary.duration_s > 0:
            duration = summary.duration_s

        word_count = len(split_words(text))
        rate = speaking_rate(word_count, duration)

        pronunciation = pronunciation_score(transcript.segment_confidences, text)
        rhythm = rhythm_score(rate)
        intonation = intonation_score(text)
        fluency = fluency_score(text, rate)
        overall = _clamp(weighted_overall(pronunciation, rhythm, intonation, fluency), 0.0, 1.0)

        logger.debug(f"Scored transcript: words={word_count}, rate={rate}, "
                     f"p={pronunciation:.3f}, r={rhythm}, i={intonation:.3f}, "
                     f"f={fluency:.3f}, overall={overall:.3f}")

        return ProsodyScoreBreakdown(
            pronunciation=pronunciation,
            rhythm=rhythm,
            intonation=intonation,
            fluency=fluency,
            overall=overall,
            speaking_rate=rate,
            word_count=word_count,
            duration_s=duration,
            summary=summary
        )
