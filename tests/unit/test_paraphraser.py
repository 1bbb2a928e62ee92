"""Unit tests for the OpenAI feedback paraphraser"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError

from prosody_engine.feedback.paraphraser import (
    MalformedParaphraseError,
    OpenAIParaphraser,
    ParaphraseError,
    build_prompt,
    merge_paraphrased,
    parse_paraphrase_response,
)
from prosody_engine.models.results import (
    FeedbackReport,
    ParaphrasedFeedback,
    ProsodyScoreBreakdown,
    SpecificIssue,
)


@pytest.fixture
def breakdown():
    return ProsodyScoreBreakdown(
        pronunciation=0.8, rhythm=None, intonation=0.85, fluency=0.69, overall=0.78
    )


def _chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _mock_client(content=None, error=None):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=_chat_response(content), side_effect=error
    )
    return client


def test_prompt_quotes_text_and_scores(breakdown):
    """Test that the prompt quotes the transcript and lists the scores"""
    prompt = build_prompt("I like this city", breakdown)
    assert '"I like this city"' in prompt
    assert "- Overall: 78%" in prompt
    assert "- Rhythm: n/a" in prompt


def test_parse_json_embedded_in_prose():
    """Test that the JSON object is extracted from surrounding prose"""
    feedback = parse_paraphrase_response(
        'Sure! {"strengths": ["Clear vowels"], "improvements": ["Slow down on \\"thirty\\""]} Hope it helps.'
    )
    assert feedback.strengths == ["Clear vowels"]
    assert feedback.improvements == ['Slow down on "thirty"']


def test_parse_allows_missing_key():
    """Test that one of the two lists may be absent"""
    feedback = parse_paraphrase_response('{"improvements": ["Vary your pitch"]}')
    assert feedback.strengths is None
    assert feedback.improvements == ["Vary your pitch"]


@pytest.mark.parametrize("content", [
    "no json here",
    '{"strengths": "just a string"}',
    '{"strengths": [1, 2]}',
    '{"other": []}',
    '{"strengths": [}',
])
def test_parse_rejects_malformed_output(content):
    """Test that malformed replies raise MalformedParaphraseError"""
    with pytest.raises(MalformedParaphraseError):
        parse_paraphrase_response(content)


def test_merge_keeps_specific_issues():
    """Test that merging replaces the lists but keeps word issues"""
    issue = SpecificIssue(word="think", score=70, severity="medium",
                          feedback="Pronunciation score: 70%", suggestion="Place tongue between teeth")
    report = FeedbackReport(strengths=["a"], improvements=["b"], specific_issues=[issue])

    merged = merge_paraphrased(report, ParaphrasedFeedback(strengths=["new"], improvements=[]))

    assert merged.strengths == ["new"]
    assert merged.improvements == ["b"]
    assert merged.specific_issues == [issue]
    assert report.strengths == ["a"]


@pytest.mark.asyncio
async def test_paraphrase_calls_chat_completions(breakdown):
    """Test that paraphrasing calls the chat completions API"""
    client = _mock_client('{"strengths": ["Nice pace"], "improvements": ["Stress key words"]}')
    paraphraser = OpenAIParaphraser(client=client)

    feedback = await paraphraser.paraphrase("I like this city", breakdown)

    assert feedback.strengths == ["Nice pace"]
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["messages"][0]["role"] == "system"
    assert "I like this city" in kwargs["messages"][1]["content"]


@pytest.mark.asyncio
async def test_paraphrase_wraps_api_errors(breakdown):
    """Test that API errors are wrapped in ParaphraseError"""
    paraphraser = OpenAIParaphraser(client=_mock_client(error=OpenAIError("rate limited")))

    with pytest.raises(ParaphraseError):
        await paraphraser.paraphrase("hello", breakdown)


@pytest.mark.asyncio
async def test_paraphrase_rejects_malformed_reply(breakdown):
    """Test that a reply without JSON is rejected"""
    paraphraser = OpenAIParaphraser(client=_mock_client("I cannot help with that."))

    with pytest.raises(MalformedParaphraseError):
        await paraphraser.paraphrase("hello", breakdown)


@pytest.mark.asyncio
async def test_missing_api_key(monkeypatch, breakdown):
    """Test that a missing API key raises ParaphraseError"""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(ParaphraseError):
        await OpenAIParaphraser().paraphrase("hello", breakdown)
