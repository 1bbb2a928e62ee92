"""Free-text feedback paraphraser

Optional collaborator that asks a chat model to phrase strengths and
improvements for a scored transcript. Its output may replace the rule-based
strengths/improvements but never the word-level ``specific_issues``.
"""

import json
import logging
import os
import re
from typing import Any, List, Optional

from openai import AsyncOpenAI, OpenAIError

from prosody_engine.models.interfaces import FeedbackParaphraser
from prosody_engine.models.results import FeedbackReport, ParaphrasedFeedback, ProsodyScoreBreakdown
from prosody_engine.config.config_loader import config


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful English pronunciation coach who gives specific, actionable feedback."

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class ParaphraseError(Exception):
    """Exception raised when the paraphraser fails"""
    pass


class MalformedParaphraseError(ParaphraseError):
    """Exception raised when the paraphraser output violates the expected schema"""
    pass


def _pct(value: Optional[float]) -> str:
    return f"{round(value * 100)}%" if value is not None else "n/a"


def build_prompt(text: str, breakdown: ProsodyScoreBreakdown) -> str:
    """Coaching prompt quoting the transcript and the percentage scores."""
    return f"""You are an English pronunciation coach. A student just said: "{text}"

Their pronunciation scores are:
- Overall: {_pct(breakdown.overall)}
- Pronunciation: {_pct(breakdown.pronunciation)}
- Rhythm: {_pct(breakdown.rhythm)}
- Intonation: {_pct(breakdown.intonation)}
- Fluency: {_pct(breakdown.fluency)}

Provide SPECIFIC, ACTIONABLE feedback based on what they actually said. Focus on:
1. Specific words they should practice (quote the exact words from their speech)
2. Specific sounds or patterns they struggled with (with examples from their text)
3. Concrete tips they can apply immediately

Format your response as JSON:
{{
  "strengths": ["specific strength 1", "specific strength 2"],
  "improvements": ["specific improvement 1 with example from their speech", "specific improvement 2"]
}}

Keep feedback concise, specific, and encouraging. Reference their actual words."""


def _string_list(payload: dict, key: str) -> Optional[List[str]]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise MalformedParaphraseError(f"'{key}' must be a list of strings")
    return value


def parse_paraphrase_response(content: str) -> ParaphrasedFeedback:
    """Extract the first JSON object from a model reply and validate it.

    Raises:
        MalformedParaphraseError: If no JSON object is found or the object does
                                  not carry string-list strengths/improvements
    """
    match = _JSON_OBJECT.search(content or "")
    if not match:
        raise MalformedParaphraseError("No JSON object in paraphraser response")
    try:
        payload: Any = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise MalformedParaphraseError(f"Invalid JSON in paraphraser response: {e}")
    if not isinstance(payload, dict):
        raise MalformedParaphraseError("Paraphraser response is not a JSON object")

    strengths = _string_list(payload, "strengths")
    improvements = _string_list(payload, "improvements")
    if strengths is None and improvements is None:
        raise MalformedParaphraseError("Paraphraser response has neither strengths nor improvements")
    return ParaphrasedFeedback(strengths=strengths, improvements=improvements)


def merge_paraphrased(report: FeedbackReport, paraphrased: ParaphrasedFeedback) -> FeedbackReport:
    """New report with paraphrased strengths/improvements where provided.

    ``specific_issues`` is always carried over from the rule-based report.
    """
    return FeedbackReport(
        strengths=list(paraphrased.strengths) if paraphrased.strengths else list(report.strengths),
        improvements=list(paraphrased.improvements) if paraphrased.improvements else list(report.improvements),
        specific_issues=list(report.specific_issues)
    )


class OpenAIParaphraser(FeedbackParaphraser):
    """Paraphraser backed by the OpenAI chat-completions API.

    Attributes:
        model: Chat model name
        temperature: Sampling temperature
        max_tokens: Reply token cap
        client: Async OpenAI client (created on first use)
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.model = model or config.get('paraphraser.model', 'gpt-4o-mini')
        self.temperature = config.get('paraphraser.temperature', 0.7)
        self.max_tokens = config.get('paraphraser.max_tokens', 500)
        self.client = client

    def _get_client(self) -> AsyncOpenAI:
        if self.client is None:
            api_key = os.getenv('OPENAI_API_KEY')
            if not api_key:
                raise ParaphraseError("OPENAI_API_KEY is not configured")
            self.client = AsyncOpenAI(api_key=api_key)
        return self.client

    async def paraphrase(self, text: str, breakdown: ProsodyScoreBreakdown) -> ParaphrasedFeedback:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(text, breakdown)},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
        except OpenAIError as e:
            raise ParaphraseError(f"OpenAI request failed: {e}")

        content = response.choices[0].message.content if response.choices else ""
        feedback = parse_paraphrase_response(content or "")
        logger.debug(f"Paraphraser returned {len(feedback.strengths or [])} strengths, "
                     f"{len(feedback.improvements or [])} improvements")
        return feedback
