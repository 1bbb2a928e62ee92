"""Heuristic scoring of transcripts"""

from prosody_engine.scoring.prosody_scorer import HeuristicProsodyScorer, SCORE_WEIGHTS, weighted_overall
from prosody_engine.scoring.word_level import WordLevelAnalyzer

__all__ = ['HeuristicProsodyScorer', 'SCORE_WEIGHTS', 'weighted_overall', 'WordLevelAnalyzer']
