"""Text heuristics over transcripts

Stateless analyzers used by the scorer and the feedback generator: word and
sentence splitting, filler-word detection, repetition counting, a
difficult-sound pattern matcher and a sentence-structure analyzer.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np


# Fillers counted by the fluency score
FILLER_WORDS = ("um", "uh", "er", "ah", "like", "you know", "so", "well")

# Fillers reported back to the speaker, with a tip each
FILLER_TIPS = (
    ("um", 'Pause silently instead of saying "um"'),
    ("uh", 'Take a breath instead of "uh"'),
    ("like", 'Remove "like" - it weakens your message'),
    ("you know", "Trust that your listener understands"),
    ("actually", "Often unnecessary - just state your point"),
    ("basically", "Get straight to the point"),
)

# (sound, pattern, tip)
DIFFICULT_SOUNDS = (
    ("TH", re.compile(r"\bth\w+", re.IGNORECASE), "Put your tongue between your teeth"),
    ("Past tense -ED", re.compile(r"\w+ed\b", re.IGNORECASE),
     "Pronounce as /t/, /d/, or /ɪd/ depending on the word"),
    ("Plural -S", re.compile(r"\w+s\b", re.IGNORECASE), "Clear /s/ or /z/ sound at the end"),
    ("W sound", re.compile(r"\bw\w+", re.IGNORECASE), 'Round your lips like saying "oo"'),
)

MAX_EXAMPLE_WORDS = 3

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_EDGE_PUNCTUATION = re.compile(r"^[^\w']+|[^\w']+$")


@dataclass(frozen=True)
class FillerMatch:
    """A filler word found in the transcript

    Attributes:
        word: Canonical filler (lowercase)
        count: Number of whole-word occurrences
        tip: Suggestion for avoiding it
        quoted: First occurrence exactly as written in the transcript
    """
    word: str
    count: int
    tip: str
    quoted: str


@dataclass(frozen=True)
class DifficultSound:
    """A difficult sound pattern found in the transcript"""
    sound: str
    words: List[str]
    tip: str


@dataclass(frozen=True)
class SentenceStructure:
    """Sentence-level shape of the transcript"""
    sentence_count: int
    label: str
    tips: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class TextAnalysis:
    """Combined text heuristics for feedback generation"""
    fillers: List[FillerMatch]
    difficult_sounds: List[DifficultSound]
    structure: SentenceStructure


def split_words(text: str) -> List[str]:
    """Whitespace tokens of the stripped text (empty text has no words)."""
    return text.split()


def normalize_word(word: str) -> str:
    """Lowercase a token and strip surrounding punctuation."""
    return _EDGE_PUNCTUATION.sub("", word.lower())


def split_sentences(text: str) -> List[str]:
    """Non-blank sentences split on runs of '.', '!' and '?'."""
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def _whole_word(phrase: str) -> re.Pattern:
    return re.compile(r"\b" + re.escape(phrase) + r"\b", re.IGNORECASE)


def count_fillers(text: str, fillers=FILLER_WORDS) -> int:
    """Total whole-word occurrences of the filler list."""
    lowered = text.lower()
    return sum(len(_whole_word(f).findall(lowered)) for f in fillers)


def count_repetitions(words: List[str]) -> int:
    """Immediate repeats ("really, really") compared without case or punctuation."""
    normalized = [normalize_word(w) for w in words]
    return sum(
        1 for prev, cur in zip(normalized, normalized[1:])
        if cur and cur == prev
    )


def sentence_length_variance(text: str) -> Optional[float]:
    """Population variance of sentence word counts; None for fewer than two sentences."""
    sentences = split_sentences(text)
    if len(sentences) < 2:
        return None
    lengths = np.array([len(split_words(s)) for s in sentences], dtype=np.float64)
    return float(lengths.var())


def detect_fillers(text: str) -> List[FillerMatch]:
    """Fillers from the feedback table present in the text, in table order."""
    found = []
    for word, tip in FILLER_TIPS:
        pattern = _whole_word(word)
        matches = pattern.findall(text)
        if matches:
            found.append(FillerMatch(word=word, count=len(matches), tip=tip, quoted=matches[0]))
    return found


def find_difficult_sounds(text: str) -> List[DifficultSound]:
    """Difficult sound patterns with up to three unique example words each."""
    found = []
    for sound, pattern, tip in DIFFICULT_SOUNDS:
        examples: List[str] = []
        for match in pattern.findall(text):
            word = match.lower()
            if word not in examples:
                examples.append(word)
            if len(examples) >= MAX_EXAMPLE_WORDS:
                break
        if examples:
            found.append(DifficultSound(sound=sound, words=examples, tip=tip))
    return found


def analyze_sentence_structure(text: str) -> SentenceStructure:
    sentences = split_sentences(text)
    tips = []
    if len(sentences) == 1:
        label = "single sentence"
        tips.append("Try breaking longer thoughts into shorter sentences for clarity")
    elif len(sentences) > 3:
        label = "multiple sentences"
        tips.append("Good use of multiple sentences - keep varying your sentence length")
    elif sentences:
        label = "few sentences"
    else:
        label = "empty"

    if "?" in text:
        tips.append("Remember to raise your voice at the end of questions")

    return SentenceStructure(sentence_count=len(sentences), label=label, tips=tips)


def analyze_text(text: str) -> TextAnalysis:
    """Run every text heuristic over one transcript."""
    return TextAnalysis(
        fillers=detect_fillers(text),
        difficult_sounds=find_difficult_sounds(text),
        structure=analyze_sentence_structure(text),
    )
