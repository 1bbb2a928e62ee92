"""Word-level pronunciation risk analysis

Scores individual words against a table of spelling patterns that are hard
for learners (TH, final R, -ED endings, ...) and keeps the worst offenders.

Two modes:
    timed     per-word recognizer output is available; each matched pattern
              subtracts a penalty from a base of 85 (floor 50); top 10 kept
    fallback  only the transcript text is available; matched patterns carry
              fixed scores that are averaged; top 5 kept, backfilled with
              long words when fewer than three words were flagged
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from prosody_engine.analysis.linguistic import split_words
from prosody_engine.models.results import IssueDetail, WordIssue
from prosody_engine.models.transcript import Transcript, Word
from prosody_engine.config.config_loader import config


logger = logging.getLogger(__name__)

BASE_WORD_SCORE = 85
MIN_WORD_SCORE = 50
RETAIN_BELOW_SCORE = 80
VERY_LONG_WORD = 10
VERY_LONG_WORD_PENALTY = 5
MIN_FALLBACK_ENTRIES = 3


@dataclass(frozen=True)
class RiskPattern:
    """A spelling pattern associated with a pronunciation risk

    Attributes:
        label: Issue type shown to the learner
        pattern: Regex tested against the cleaned, lowercased word
        suggestion: How to practise it
        weight: Penalty (timed mode) or fixed score (fallback mode)
    """
    label: str
    pattern: re.Pattern
    suggestion: str
    weight: int

    def matches(self, word: str) -> bool:
        return self.pattern.search(word) is not None


def _p(label: str, regex: str, suggestion: str, weight: int) -> RiskPattern:
    return RiskPattern(label, re.compile(regex), suggestion, weight)


TIMED_PATTERNS = (
    _p("TH sound", r"th", "Place tongue between teeth", 15),
    _p("Final R", r"r$", "Curl tongue slightly for R sound", 10),
    _p("Past tense -ED", r"ed$", "Pronounce as /d/, /t/, or /ɪd/ depending on the word", 8),
    _p("Plural/Final S", r"s$", "Clear /s/ or /z/ sound at word end", 8),
    _p("V sound", r"v", "Touch upper teeth to lower lip, vibrate", 12),
    _p("W sound", r"w", 'Round lips like saying "oo"', 10),
    _p("Long word", r"\w{8,}", "Break into syllables and practice slowly", 5),
    _p("-TION ending", r"tion$", 'Pronounce as "shun" not "tee-on"', 10),
    _p("OUGH pattern", r"ough", "Multiple pronunciations - check dictionary", 15),
    _p("Initial vowel", r"^[aeiou]", "Clear vowel sound at start", 5),
)

FALLBACK_PATTERNS = (
    _p("TH sound", r"th", "Place tongue between teeth", 70),
    _p("Final R", r"r$", "Curl tongue slightly", 72),
    _p("Past tense -ED", r"ed$", "Pronounce as /d/, /t/, or /ɪd/", 75),
    _p("-TION ending", r"tion$", 'Say "shun" not "tee-on"', 73),
    _p("Long word", r"\w{8,}", "Break into syllables", 74),
    _p("Vowel cluster", r"[aeiou]{2,}", "Practice vowel combinations", 76),
    _p("Initial vowel", r"^[aeiou]", "Clear vowel sound at start", 78),
)

MULTI_SYLLABLE_ISSUE = IssueDetail(
    type="Multi-syllable word",
    suggestion="Practice saying this word slowly, syllable by syllable",
)
PRACTICE_WORD_ISSUE = IssueDetail(
    type="Practice word",
    suggestion="Focus on clear pronunciation of each sound",
)

_NON_LETTER = re.compile(r"[^a-z]")
_EDGE_PUNCTUATION = re.compile(r"^[^\w']+|[^\w']+$")


def clean_word(word: str) -> str:
    """Lowercase letters only; used for pattern tests and length checks."""
    return _NON_LETTER.sub("", word.lower())


def display_word(word: str) -> str:
    """The word as written, without surrounding whitespace or punctuation."""
    return _EDGE_PUNCTUATION.sub("", word.strip())


def _half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _rank(issues: List[WordIssue], limit: int) -> List[WordIssue]:
    return sorted(issues, key=lambda issue: issue.score)[:limit]


class WordLevelAnalyzer:
    """Ranks the transcript's words by pronunciation risk.

    Attributes:
        max_issues: Cap on returned words in timed mode
        max_fallback_issues: Cap on returned words in fallback mode
    """

    def __init__(self, max_issues: Optional[int] = None, max_fallback_issues: Optional[int] = None):
        self.max_issues = max_issues if max_issues is not None else config.get('word_analysis.max_issues', 10)
        self.max_fallback_issues = (max_fallback_issues if max_fallback_issues is not None
                                    else config.get('word_analysis.max_fallback_issues', 5))

    def analyze(self, transcript: Transcript) -> List[WordIssue]:
        """Worst-first word issues, from word timings when available."""
        if transcript.words:
            issues = self.analyze_timed(transcript.words)
            mode = "timed"
        else:
            issues = self.analyze_fallback(transcript.text)
            mode = "fallback"
        logger.debug(f"Word-level analysis ({mode}) flagged {len(issues)} words")
        return issues

    def analyze_timed(self, words: Sequence[Word]) -> List[WordIssue]:
        flagged: List[WordIssue] = []
        seen = set()
        for word in words:
            clean = clean_word(word.text)
            if len(clean) < 3 or clean in seen:
                continue

            matched = [p for p in TIMED_PATTERNS if p.matches(clean)]
            penalty = sum(p.weight for p in matched)
            if len(clean) > VERY_LONG_WORD:
                penalty += VERY_LONG_WORD_PENALTY
            score = max(MIN_WORD_SCORE, BASE_WORD_SCORE - penalty)

            if matched or score < RETAIN_BELOW_SCORE:
                seen.add(clean)
                flagged.append(WordIssue(
                    word=display_word(word.text),
                    score=score,
                    issues=[IssueDetail(type=p.label, suggestion=p.suggestion) for p in matched],
                    start=word.start_s,
                    end=word.end_s
                ))

        return _rank(flagged, self.max_issues)

    def analyze_fallback(self, text: str) -> List[WordIssue]:
        tokens = [(display_word(w), clean_word(w)) for w in split_words(text) if len(w) > 2]
        tokens = [(word, clean) for word, clean in tokens if len(clean) > 2]

        flagged: List[WordIssue] = []
        seen = set()
        for word, clean in tokens:
            if clean in seen:
                continue
            matched = [p for p in FALLBACK_PATTERNS if p.matches(clean)]
            if matched:
                seen.add(clean)
                flagged.append(WordIssue(
                    word=word,
                    score=_half_up(sum(p.weight for p in matched) / len(matched)),
                    issues=[IssueDetail(type=p.label, suggestion=p.suggestion) for p in matched]
                ))
        flagged = _rank(flagged, self.max_fallback_issues)

        if len(flagged) < MIN_FALLBACK_ENTRIES:
            longer = []
            for word, clean in tokens:
                if len(clean) >= 6 and clean not in seen and all(clean != c for _, c in longer):
                    longer.append((word, clean))
            # Longest first; ties keep transcript order
            longer.sort(key=lambda item: len(item[1]), reverse=True)
            for word, clean in longer[:self.max_fallback_issues - len(flagged)]:
                seen.add(clean)
                flagged.append(WordIssue(word=word, score=75, issues=[MULTI_SYLLABLE_ISSUE]))

        if len(flagged) < MIN_FALLBACK_ENTRIES:
            for word, clean in tokens:
                if len(flagged) >= MIN_FALLBACK_ENTRIES:
                    break
                if len(clean) >= 4 and clean not in seen:
                    seen.add(clean)
                    flagged.append(WordIssue(word=word, score=80, issues=[PRACTICE_WORD_ISSUE]))

        return _rank(flagged, self.max_fallback_issues)
