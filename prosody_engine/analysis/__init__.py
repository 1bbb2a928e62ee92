"""Analysis modules for acoustic and linguistic processing"""

from prosody_engine.analysis.acoustic import PitchDetector, compute_rms, detect_pitch
from prosody_engine.analysis.prosody import StreamingFeatureExtractor

__all__ = ['PitchDetector', 'compute_rms', 'detect_pitch', 'StreamingFeatureExtractor']
