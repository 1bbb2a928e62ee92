"""Unit tests for the streaming prosody feature extractor"""

import numpy as np
import pytest

from prosody_engine.analysis.prosody import (
    GENERIC_TIPS,
    TIP_RECORD_LONGER,
    TIP_SHORTEN_PAUSES,
    TIP_SPEAK_LOUDER,
    TIP_VARY_PITCH,
    StreamingFeatureExtractor,
    build_tips,
    count_syllable_peaks,
    detect_pauses,
)
from prosody_engine.input.audio_source import iter_audio_frames
from prosody_engine.models.enums import ExtractorState
from prosody_engine.models.frames import AudioFrame


@pytest.fixture
def extractor():
    return StreamingFeatureExtractor(store_contour=True)


def feed(extractor, samples, sample_rate=16000, buffer_size=2048):
    for frame in iter_audio_frames(samples, sample_rate, buffer_size):
        extractor.on_frame(frame)


def test_initial_state(extractor):
    """Test that a new extractor is idle with configured defaults"""
    assert extractor.state is ExtractorState.IDLE
    assert not extractor.is_recording
    assert extractor.frame_count == 0
    assert extractor.min_pause_ms == 200
    assert extractor.dynamic_pause_percentile == 0.2


def test_stop_while_idle_returns_none(extractor):
    """Test that stopping without a session returns None"""
    assert extractor.stop() is None
    assert extractor.state is ExtractorState.IDLE


def test_frames_ignored_when_not_recording(extractor):
    """Test that frames outside a session are dropped"""
    frame = AudioFrame(samples=np.zeros(2048, dtype=np.float32), sample_rate=16000)
    assert extractor.on_frame(frame) is None
    assert extractor.frame_count == 0


def test_session_lifecycle(extractor, sine_200hz):
    """Test the IDLE, RECORDING, FINALIZED lifecycle"""
    extractor.start()
    assert extractor.state is ExtractorState.RECORDING

    feed(extractor, sine_200hz)
    assert extractor.frame_count == 8

    summary = extractor.stop()
    assert summary is not None
    assert extractor.state is ExtractorState.FINALIZED
    assert extractor.frame_count == 0
    assert extractor.stop() is None


def test_restart_after_finalize_clears_buffers(extractor, sine_200hz):
    """Test that a new session starts with empty buffers"""
    extractor.start()
    feed(extractor, sine_200hz)
    first = extractor.stop()

    extractor.start()
    feed(extractor, sine_200hz[:4096])
    second = extractor.stop()

    assert len(first.contour) == 8
    assert len(second.contour) == 2


def test_start_while_recording_keeps_session(extractor, sine_200hz):
    """Test that start() during a session keeps the buffered frames"""
    extractor.start()
    feed(extractor, sine_200hz[:4096])
    extractor.start()
    assert extractor.frame_count == 2


def test_summary_of_steady_tone(extractor, sine_200hz):
    """Test the summary statistics of a steady 200 Hz tone"""
    extractor.start()
    feed(extractor, sine_200hz)
    summary = extractor.stop()

    # 8 frames of 2048 samples, the last one zero-padded
    assert summary.duration_s == pytest.approx(8 * 2048 / 16000)
    assert summary.f0_mean == pytest.approx(200.0, rel=0.05)
    assert summary.f0_stdev < 20
    assert summary.monotony > 0.9
    assert summary.energy_mean > 0.01
    assert TIP_RECORD_LONGER in summary.tips
    assert TIP_VARY_PITCH in summary.tips
    assert 3 <= len(summary.tips) <= 4


def test_contour_times_follow_frame_ends(extractor, sine_200hz):
    """Test that contour times are frame end times in order"""
    extractor.start()
    feed(extractor, sine_200hz)
    summary = extractor.stop()

    times = [s.t for s in summary.contour]
    assert times[0] == pytest.approx(0.128)
    assert times == sorted(times)
    assert times[-1] == pytest.approx(summary.duration_s)


def test_unstamped_frames_use_cumulative_time(extractor):
    """Test that unstamped frames are timed by cumulative duration"""
    extractor.start()
    for _ in range(3):
        extractor.on_frame(AudioFrame(samples=np.zeros(1600, dtype=np.float32), sample_rate=16000))
    summary = extractor.stop()

    assert [s.t for s in summary.contour] == pytest.approx([0.1, 0.2, 0.3])


def test_contour_omitted_when_not_stored(sine_200hz):
    """Test that the contour is left out when storage is disabled"""
    extractor = StreamingFeatureExtractor(store_contour=False)
    extractor.start()
    feed(extractor, sine_200hz)
    summary = extractor.stop()

    assert summary.contour is None
    assert "f0_contour" not in summary.to_dict()


def test_silence_is_one_long_pause(extractor):
    """Test that a silent recording is unvoiced and one long pause"""
    extractor.start()
    feed(extractor, np.zeros(16000, dtype=np.float32))
    summary = extractor.stop()

    assert summary.f0_mean is None
    assert summary.f0_stdev is None
    assert summary.monotony is None
    assert summary.energy_mean == 0.0
    assert summary.pause_count == 1
    assert summary.avg_pause_ms == pytest.approx(1024.0)
    assert TIP_SPEAK_LOUDER in summary.tips
    assert TIP_SHORTEN_PAUSES in summary.tips


def test_empty_session_has_no_nan(extractor):
    """Test that an empty session yields None statistics instead of NaN"""
    extractor.start()
    summary = extractor.stop()

    assert summary.duration_s == 0.0
    assert summary.f0_mean is None
    assert summary.energy_mean is None
    assert summary.speech_rate_syllables_per_min is None
    assert summary.pause_count == 0
    assert summary.tips == (TIP_RECORD_LONGER,) + GENERIC_TIPS[:2]


def test_detect_pauses_finds_interior_run():
    """Test that a silent run between loud frames is a pause"""
    energies = [0.1] * 10 + [0.0] * 30 + [0.1] * 10
    assert detect_pauses(energies, ms_per_frame=10.0) == [300.0]


def test_detect_pauses_keeps_trailing_run():
    """Test that a silent run at the end is judged like any other"""
    energies = [0.1] * 10 + [0.0] * 25
    assert detect_pauses(energies, ms_per_frame=10.0) == [250.0]


def test_detect_pauses_ignores_short_runs():
    """Test that runs shorter than the minimum are not pauses"""
    energies = [0.1] * 10 + [0.0] * 5 + [0.1] * 10
    assert detect_pauses(energies, ms_per_frame=10.0) == []


def test_detect_pauses_empty():
    """Test that an empty energy sequence has no pauses"""
    assert detect_pauses([], ms_per_frame=10.0) == []


def test_syllable_peaks_respect_spacing():
    """Test that peaks closer than the minimum spacing are merged"""
    energies = [0.1] * 50
    for i in (5, 15, 25, 35, 45):
        energies[i] = 0.9

    assert count_syllable_peaks(energies, frames_per_second=100) == 5
    # 80 ms at 200 fps is 16 frames, so every other peak is too close
    assert count_syllable_peaks(energies, frames_per_second=200) == 3


def test_syllable_peaks_need_three_frames():
    """Test that fewer than three frames have no peaks"""
    assert count_syllable_peaks([0.1, 0.9], frames_per_second=100) == 0


def test_tips_capped_at_four():
    """Test that at most four tips are returned"""
    tips = build_tips(duration_s=5, energy_mean=0.001, f0_stdev=10,
                      avg_pause_ms=600, speech_rate=100)
    assert tips == [TIP_RECORD_LONGER, TIP_SPEAK_LOUDER, TIP_VARY_PITCH, TIP_SHORTEN_PAUSES]


def test_tips_padded_with_generic_advice():
    """Test that tips are padded to three with generic advice"""
    tips = build_tips(duration_s=12, energy_mean=0.05, f0_stdev=40,
                      avg_pause_ms=300, speech_rate=150)
    assert tips == list(GENERIC_TIPS)


def test_background_noise_frames_do_not_add_pitch(extractor, make_sine):
    """Test that quiet noise between tone frames leaves the pitch statistics unchanged"""
    tone = make_sine(150.0, 0.128)
    rng = np.random.default_rng(3)

    extractor.start()
    for _ in range(8):
        extractor.on_frame(AudioFrame(samples=tone, sample_rate=16000))
        noise = (rng.standard_normal(2048) * 0.003).astype(np.float32)
        extractor.on_frame(AudioFrame(samples=noise, sample_rate=16000))
    summary = extractor.stop()

    assert [s.f0 is not None for s in summary.contour] == [True, False] * 8
    assert summary.f0_mean == pytest.approx(150.0, rel=0.05)
    assert summary.f0_stdev == pytest.approx(0.0, abs=1e-6)
    assert summary.monotony > 0.9


def test_detect_pauses_finds_quiet_plateau_above_floor():
    """Test that a uniform low-level run above the energy floor is a pause"""
    energies = [0.1] * 20 + [0.002] * 15 + [0.1] * 20
    assert detect_pauses(energies, ms_per_frame=50.0) == [750.0]


def test_detect_pauses_short_quiet_plateau():
    """Test that a quiet run shorter than the percentile still counts below the loud level"""
    energies = [0.1] * 20 + [0.002] * 5 + [0.1] * 20
    assert detect_pauses(energies, ms_per_frame=50.0) == [250.0]


def test_detect_pauses_constant_energy_has_no_pause():
    """Test that a recording without energy contrast has no pauses"""
    assert detect_pauses([0.05] * 30, ms_per_frame=50.0) == []
