"""Speech recognition adapter

Produces a Transcript (text, duration, per-word timings, per-segment
confidence) from raw audio bytes using a local Whisper model. Decoding and
inference run in a worker thread so the caller's event loop is never blocked;
the caller bounds the call with its own timeout.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import numpy as np
import torch
import whisper

from prosody_engine.input.audio_source import AudioDecodeError, decode_audio
from prosody_engine.models.interfaces import TranscriberInterface
from prosody_engine.models.transcript import Transcript
from prosody_engine.config.config_loader import config


logger = logging.getLogger(__name__)

WHISPER_SAMPLE_RATE = 16000

# Keeps disfluencies in the transcript instead of tidying them away
VERBATIM_PROMPT = "Transcribe exactly as spoken, including any grammar mistakes, filler words, and hesitations."


class TranscriptionError(Exception):
    """Exception raised for errors during transcription"""
    pass


class WhisperTranscriber(TranscriberInterface):
    """Transcribes audio with Whisper, including word-level timestamps.

    Attributes:
        model_name: Whisper model size (e.g., "base")
        language: Forced transcription language
        model: Loaded Whisper model (loaded lazily)
        device: "cuda" when GPU use is enabled and available, else "cpu"
    """

    def __init__(self, model_name: Optional[str] = None, language: Optional[str] = None):
        self.model_name = model_name or config.get('transcription.whisper_model', 'base')
        self.language = language or config.get('transcription.language', 'en')
        self.model: Optional[whisper.Whisper] = None
        self.device = "cuda" if config.get('performance.use_gpu', False) and torch.cuda.is_available() else "cpu"

        logger.info(f"WhisperTranscriber initialized with model={self.model_name}, device: {self.device}")

    def _load_model(self):
        """Load the Whisper model.

        Raises:
            TranscriptionError: If the model cannot be loaded
        """
        try:
            logger.info(f"Loading Whisper model: {self.model_name}")
            self.model = whisper.load_model(self.model_name, device=self.device)
            logger.info("Whisper model loaded successfully")
        except Exception as e:
            logger.error(f"Failed to load Whisper model: {e}", exc_info=True)
            raise TranscriptionError(f"Failed to load Whisper model: {e}")

    def _build_transcript(self, result: Dict[str, Any], duration_s: float) -> Transcript:
        """Map a Whisper result onto the Transcript model.

        Segment confidence is ``1 - no_speech_prob``; word confidence is
        Whisper's word probability.
        """
        segments = result.get('segments', []) or []
        words = [word for segment in segments for word in segment.get('words', []) or []]
        return Transcript.from_dict({
            "text": (result.get('text') or "").strip(),
            "duration": duration_s,
            "words": words,
            "segments": [
                {"text": (s.get('text') or "").strip(), "no_speech_prob": s.get('no_speech_prob', 0.5)}
                for s in segments
            ],
        })

    def transcribe_samples(self, samples: np.ndarray) -> Transcript:
        """Transcribe 16 kHz mono samples synchronously.

        Raises:
            TranscriptionError: If inference fails
        """
        if self.model is None:
            self._load_model()

        try:
            result = self.model.transcribe(
                samples.astype(np.float32),
                fp16=(self.device == "cuda"),
                language=self.language,
                word_timestamps=True,
                initial_prompt=VERBATIM_PROMPT
            )
        except Exception as e:
            logger.error(f"Transcription failed: {e}")
            raise TranscriptionError(f"Failed to transcribe speech: {e}")

        transcript = self._build_transcript(result, samples.size / WHISPER_SAMPLE_RATE)
        logger.debug(f"Transcription: '{transcript.text}' ({len(transcript.words)} words, "
                     f"{transcript.duration_s:.2f}s)")
        return transcript

    def _transcribe_bytes(self, audio: bytes, content_type: str) -> Transcript:
        try:
            samples = decode_audio(audio, WHISPER_SAMPLE_RATE, content_type)
        except AudioDecodeError as e:
            raise TranscriptionError(f"Unsupported or corrupt audio ({content_type}): {e}")
        return self.transcribe_samples(samples)

    async def transcribe(self, audio: bytes, content_type: str) -> Transcript:
        logger.info(f"Transcribing {len(audio)} bytes ({content_type})")
        return await asyncio.to_thread(self._transcribe_bytes, audio, content_type)
