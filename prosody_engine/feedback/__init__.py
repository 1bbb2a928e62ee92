"""Feedback generation and paraphrasing"""

from prosody_engine.feedback.feedback_generator import FeedbackGenerator
from prosody_engine.feedback.paraphraser import (
    OpenAIParaphraser,
    ParaphraseError,
    MalformedParaphraseError,
    merge_paraphrased,
)

__all__ = [
    'FeedbackGenerator',
    'OpenAIParaphraser',
    'ParaphraseError',
    'MalformedParaphraseError',
    'merge_paraphrased',
]
