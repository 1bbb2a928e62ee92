"""Base interfaces for external collaborators"""

from abc import ABC, abstractmethod

from prosody_engine.models.results import ParaphrasedFeedback, ProsodyScoreBreakdown
from prosody_engine.models.transcript import Transcript


class TranscriberInterface(ABC):
    """Interface for the speech recognition collaborator"""

    @abstractmethod
    async def transcribe(self, audio: bytes, content_type: str) -> Transcript:
        """Transcribe raw audio

        Args:
            audio: Encoded audio bytes
            content_type: MIME type of the audio (e.g., "audio/wav")

        Returns:
            Transcript with optional word timings and segment confidences

        Raises:
            TranscriptionError: If the recognizer fails or is unreachable
        """
        pass


class FeedbackParaphraser(ABC):
    """Interface for the free-text feedback collaborator"""

    @abstractmethod
    async def paraphrase(self, text: str, breakdown: ProsodyScoreBreakdown) -> ParaphrasedFeedback:
        """Phrase strengths/improvements for a scored transcript

        Args:
            text: Transcript text
            breakdown: Heuristic scores for that transcript

        Returns:
            Paraphrased strengths and improvements (either may be None)

        Raises:
            ParaphraseError: If the generator fails or returns malformed output
        """
        pass
