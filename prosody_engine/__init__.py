"""Prosody feature extraction and heuristic speech scoring"""

__version__ = "0.1.0"
