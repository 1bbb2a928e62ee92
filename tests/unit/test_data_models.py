"""Unit tests for data models"""

import numpy as np
import pytest

from prosody_engine.models import (
    AnalysisResult,
    AudioFrame,
    ExtractorState,
    FeedbackReport,
    PitchSample,
    ProsodyScoreBreakdown,
    ProsodySummary,
    Severity,
    Transcript,
    WordIssue,
)


def _summary(**overrides):
    values = dict(
        duration_s=4.25, f0_mean=182.345, f0_stdev=21.06, energy_mean=0.0312345,
        pause_count=2, avg_pause_ms=312.6, speech_rate_syllables_per_min=201.4,
        monotony=0.649, tips=("a", "b", "c"),
        contour=(PitchSample(0.128, 180.04), PitchSample(0.256, None)),
    )
    values.update(overrides)
    return ProsodySummary(**values)


def test_audio_frame_duration():
    """Test that frame duration is sample count over sample rate"""
    frame = AudioFrame(samples=np.zeros(2048, dtype=np.float32), sample_rate=16000, timestamp=0.5)
    assert frame.duration == pytest.approx(0.128)


def test_audio_frame_validation():
    """Test that malformed frames are rejected"""
    with pytest.raises(AssertionError):
        AudioFrame(samples=np.zeros(10), sample_rate=0)
    with pytest.raises(AssertionError):
        AudioFrame(samples=np.zeros((2, 10)), sample_rate=16000)
    with pytest.raises(AssertionError):
        AudioFrame(samples=[0.0, 0.1], sample_rate=16000)


def test_summary_display_rounding():
    """Test the display rounding of summary fields"""
    data = _summary().to_dict()

    assert data["dur_s"] == 4.2
    assert data["f0_mean"] == 182.3
    assert data["energy_mean"] == 0.03123
    assert data["avg_pause_ms"] == 313
    assert data["speech_rate_spm"] == 201
    assert data["monotony_0to1"] == 0.65
    assert data["f0_contour"] == [{"t": 0.13, "f0": 180.0}, {"t": 0.26, "f0": None}]


def test_summary_undefined_statistics_render_as_none():
    """Test that undefined statistics serialize as None"""
    data = _summary(f0_mean=None, f0_stdev=None, monotony=None, avg_pause_ms=None,
                    speech_rate_syllables_per_min=None, contour=None).to_dict()

    assert data["f0_mean"] is None
    assert data["monotony_0to1"] is None
    assert data["avg_pause_ms"] is None
    assert "f0_contour" not in data


def test_summary_validation():
    """Test that summaries reject too many tips and out-of-range monotony"""
    with pytest.raises(AssertionError):
        _summary(tips=("a", "b", "c", "d", "e"))
    with pytest.raises(AssertionError):
        _summary(monotony=1.5)


def test_transcript_from_verbose_response():
    """Test parsing a verbose transcription response"""
    transcript = Transcript.from_dict({
        "text": "Hello world",
        "duration": "2.5",
        "words": [{"word": "Hello", "start": 0.0, "end": 0.4}, {"word": "world"}],
        "segments": [{"text": "Hello world", "no_speech_prob": 0.25}, {"text": "x", "confidence": 0.6}],
    })

    assert transcript.duration_s == 2.5
    assert transcript.words[1].start_s is None
    assert transcript.has_word_timings
    assert transcript.segment_confidences == [0.75, 0.6]


def test_transcript_from_plain_text():
    """Test parsing a text-only transcription response"""
    transcript = Transcript.from_dict({"text": "Hello"})
    assert transcript.duration_s == 0.0
    assert transcript.words == []
    assert not transcript.has_word_timings


def test_breakdown_validation():
    """Test that sub-scores outside [0, 1] are rejected"""
    with pytest.raises(AssertionError):
        ProsodyScoreBreakdown(pronunciation=1.2, rhythm=None, intonation=0.7, fluency=0.8, overall=0.8)


def test_breakdown_to_dict():
    """Test the serialized score breakdown"""
    data = ProsodyScoreBreakdown(
        pronunciation=0.8, rhythm=0.94, intonation=0.85, fluency=0.6909, overall=0.8257,
        speaking_rate=132.0, word_count=11, duration_s=5.0
    ).to_dict()

    assert data["overall_score"] == 0.83
    assert data["fluency_score"] == 0.69
    assert data["speaking_rate"] == 132.0
    assert "prosody_summary" not in data


def test_word_issue_score_range():
    """Test that word scores outside 0-100 are rejected"""
    with pytest.raises(AssertionError):
        WordIssue(word="x", score=120)


@pytest.mark.parametrize("score,band", [(50, Severity.HIGH), (59, Severity.HIGH), (60, Severity.MEDIUM),
                                        (74, Severity.MEDIUM), (75, Severity.LOW), (90, Severity.LOW)])
def test_severity_bands(score, band):
    """Test the score boundaries of each severity band"""
    assert Severity.from_score(score) is band


def test_extractor_states():
    """Test the extractor state values"""
    assert [s.value for s in ExtractorState] == ["idle", "recording", "finalized"]


def test_failed_analysis_to_dict():
    """Test the serialized form of a failed analysis"""
    data = AnalysisResult(None, None, FeedbackReport.placeholder()).to_dict()

    assert data["success"] is False
    assert data["transcription"] is None
    assert data["prosody_analysis"]["detailed_feedback"]["specific_issues"] == []
    assert data["paraphrased"] is False
