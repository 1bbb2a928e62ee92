"""Main Application Entry Point

This module wires the prosody pipeline together:

    audio -> StreamingFeatureExtractor -> ProsodySummary
    audio -> transcriber -> Transcript -> HeuristicProsodyScorer
          -> WordLevelAnalyzer -> FeedbackGenerator -> (paraphraser) -> report

Collaborator calls (speech recognition, paraphraser) are the only suspension
points and are bounded here with timeouts from config. A failed transcription
yields the placeholder report; a failed or malformed paraphrase keeps the
rule-based report.
"""

import argparse
import asyncio
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional

import numpy as np

from prosody_engine.analysis.prosody import StreamingFeatureExtractor
from prosody_engine.feedback.feedback_generator import FeedbackGenerator
from prosody_engine.feedback.paraphraser import (
    MalformedParaphraseError,
    OpenAIParaphraser,
    ParaphraseError,
    merge_paraphrased,
)
from prosody_engine.input.audio_source import AudioDecodeError, iter_audio_frames, load_audio
from prosody_engine.input.transcriber import TranscriptionError, WhisperTranscriber
from prosody_engine.models.features import ProsodySummary
from prosody_engine.models.interfaces import FeedbackParaphraser, TranscriberInterface
from prosody_engine.models.results import AnalysisResult, FeedbackReport
from prosody_engine.models.transcript import Transcript
from prosody_engine.scoring.prosody_scorer import HeuristicProsodyScorer
from prosody_engine.scoring.word_level import WordLevelAnalyzer
from prosody_engine.config.config_loader import config


logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure root logging from the ``logging`` config section."""
    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = config.get('logging.file')
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, str(config.get('logging.level', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


class ProsodyEngine:
    """Orchestrates feature extraction, scoring and feedback.

    The scoring components are stateless, so one engine may serve concurrent
    ``analyze`` calls; each call to ``extract_summary`` uses its own
    extractor.

    Attributes:
        transcriber: Speech recognition collaborator
        paraphraser: Optional free-text feedback collaborator
        scorer: Heuristic sub-score model
        word_analyzer: Word-level risk ranking
        feedback_generator: Rule-based report builder
        transcription_timeout: Seconds allowed for one transcription
        paraphrase_timeout: Seconds allowed for one paraphrase
    """

    def __init__(
        self,
        transcriber: Optional[TranscriberInterface] = None,
        paraphraser: Optional[FeedbackParaphraser] = None
    ):
        """Initialize the engine; collaborators default from config."""
        self.transcriber = transcriber or WhisperTranscriber()
        if paraphraser is None and config.get('paraphraser.enabled', False):
            paraphraser = OpenAIParaphraser()
        self.paraphraser = paraphraser

        self.scorer = HeuristicProsodyScorer()
        self.word_analyzer = WordLevelAnalyzer()
        self.feedback_generator = FeedbackGenerator()

        self.buffer_size = config.get('audio.buffer_size', 2048)
        self.transcription_timeout = config.get('transcription.timeout', 60.0)
        self.paraphrase_timeout = config.get('paraphraser.timeout', 15.0)

        logger.info(f"ProsodyEngine initialized (paraphraser: "
                    f"{type(self.paraphraser).__name__ if self.paraphraser else 'disabled'})")

    def extract_summary(
        self,
        samples: np.ndarray,
        sample_rate: int,
        store_contour: Optional[bool] = None
    ) -> Optional[ProsodySummary]:
        """Run a fresh streaming extractor over decoded samples."""
        extractor = StreamingFeatureExtractor(store_contour=store_contour)
        extractor.start()
        for frame in iter_audio_frames(samples, sample_rate, self.buffer_size):
            extractor.on_frame(frame)
        return extractor.stop()

    def score_transcript(self, transcript: Transcript, summary: Optional[ProsodySummary] = None) -> AnalysisResult:
        """Score a transcript and build the rule-based report (no I/O)."""
        breakdown = self.scorer.score(transcript, summary)
        word_issues = self.word_analyzer.analyze(transcript)
        report = self.feedback_generator.generate(breakdown, transcript, word_issues)
        return AnalysisResult(
            transcript=transcript,
            breakdown=breakdown,
            report=report,
            summary=summary
        )

    async def analyze(
        self,
        audio: bytes,
        content_type: str,
        summary: Optional[ProsodySummary] = None
    ) -> AnalysisResult:
        """Transcribe, score and (optionally) paraphrase one recording.

        Args:
            audio: Encoded audio bytes
            content_type: MIME type of the audio
            summary: Acoustic summary of the same recording, if extracted

        Returns:
            AnalysisResult; carries the placeholder report when transcription
            failed or timed out
        """
        try:
            transcript = await asyncio.wait_for(
                self.transcriber.transcribe(audio, content_type),
                timeout=self.transcription_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Transcription timed out after {self.transcription_timeout}s")
            return AnalysisResult(None, None, FeedbackReport.placeholder(), summary)
        except TranscriptionError as e:
            logger.warning(f"Transcription failed, returning placeholder feedback: {e}")
            return AnalysisResult(None, None, FeedbackReport.placeholder(), summary)

        result = self.score_transcript(transcript, summary)

        if self.paraphraser is not None and transcript.text.strip():
            await self._apply_paraphrase(result)

        logger.info(f"Analysis complete: overall={result.breakdown.overall:.2f}, "
                    f"specific_issues={len(result.report.specific_issues)}")
        return result

    async def _apply_paraphrase(self, result: AnalysisResult) -> None:
        """Replace strengths/improvements with paraphrased ones when available."""
        try:
            paraphrased = await asyncio.wait_for(
                self.paraphraser.paraphrase(result.transcript.text, result.breakdown),
                timeout=self.paraphrase_timeout
            )
        except MalformedParaphraseError as e:
            logger.warning(f"Discarding malformed paraphraser output: {e}")
            return
        except asyncio.TimeoutError:
            logger.warning(f"Paraphraser timed out after {self.paraphrase_timeout}s, keeping rule-based feedback")
            return
        except ParaphraseError as e:
            logger.warning(f"Paraphraser failed, keeping rule-based feedback: {e}")
            return
        except Exception as e:
            logger.error(f"Unexpected paraphraser error: {e}", exc_info=True)
            return

        result.report = merge_paraphrased(result.report, paraphrased)
        result.paraphrased = True

    async def analyze_file(
        self,
        path: str,
        transcribe: bool = True,
        store_contour: Optional[bool] = None
    ) -> AnalysisResult:
        """Extract the acoustic summary of a file and, optionally, score its transcript."""
        samples, sample_rate = load_audio(path)
        summary = self.extract_summary(samples, sample_rate, store_contour=store_contour)

        if not transcribe:
            return AnalysisResult(None, None, FeedbackReport(), summary)

        content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        audio = Path(path).read_bytes()
        return await self.analyze(audio, content_type, summary=summary)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prosody-engine",
        description="Score the prosody of a speech recording and print JSON feedback."
    )
    parser.add_argument("audio_path", help="Path to an audio file (wav, flac, ogg, mp3)")
    parser.add_argument("--no-transcribe", action="store_true",
                        help="Only extract acoustic features; skip speech recognition and scoring")
    parser.add_argument("--paraphrase", action="store_true",
                        help="Phrase strengths/improvements with the OpenAI paraphraser")
    parser.add_argument("--no-contour", action="store_true",
                        help="Omit the pitch contour from the output")
    return parser


async def main_async(argv=None) -> int:
    """Async main entry point."""
    args = build_parser().parse_args(argv)

    if not Path(args.audio_path).exists():
        logger.error(f"Audio file not found: {args.audio_path}")
        return 1

    engine = ProsodyEngine(paraphraser=OpenAIParaphraser() if args.paraphrase else None)
    try:
        result = await engine.analyze_file(
            args.audio_path,
            transcribe=not args.no_transcribe,
            store_contour=False if args.no_contour else None
        )
    except AudioDecodeError as e:
        logger.error(str(e))
        return 1

    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0


def main():
    """Main entry point."""
    setup_logging()
    try:
        sys.exit(asyncio.run(main_async()))
    except KeyboardInterrupt:
        logger.info("Application terminated by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
