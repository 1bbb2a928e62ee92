"""Pytest configuration and fixtures"""

import numpy as np
import pytest
from hypothesis import settings, Verbosity

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=20, verbosity=Verbosity.normal)
settings.register_profile("debug", max_examples=10, verbosity=Verbosity.verbose)

# Use CI profile by default
settings.load_profile("ci")


def _sine(frequency, duration, sample_rate=16000, amplitude=0.5, phase=0.0):
    t = np.arange(int(sample_rate * duration)) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t + phase)).astype(np.float32)


@pytest.fixture
def make_sine():
    """Factory for float32 sine waves"""
    return _sine


@pytest.fixture
def sine_200hz():
    """One second of a 200 Hz tone at 16 kHz"""
    return _sine(200.0, 1.0)
