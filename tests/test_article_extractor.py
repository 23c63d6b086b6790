import asyncio
from types import SimpleNamespace

import pytest

from article_analyzer.agents import article_extractor
from article_analyzer.agents.article_extractor import (
    EXTRACTION_PROMPT_TEMPLATE,
    ArticleExtractorAgent,
)
from article_analyzer.agents.base_agent import LLMConfig
from article_analyzer.errors import AnalysisFailed
from article_analyzer.models.schemas import ArticleExtraction


@pytest.fixture()
def agent():
    extractor = ArticleExtractorAgent()
    extractor.llm = LLMConfig(
        model="gpt-4.1-mini",
        api_key="sk-test",
        temperature=0.0,
        max_tokens=1024,
        timeout=5,
    )
    return extractor


def test_prompt_carries_extraction_rules():
    for rule in (
        "1. article_summary",
        "2. nationalities",
        "3. organizations",
        "4. people",
        "5. language",
    ):
        assert rule in EXTRACTION_PROMPT_TEMPLATE
    assert "return an empty array" in EXTRACTION_PROMPT_TEMPLATE
    assert "{article_text}" in EXTRACTION_PROMPT_TEMPLATE


def test_parse_structured_output_without_language(agent):
    output = SimpleNamespace(
        pydantic=ArticleExtraction(
            article_summary=["Summary"],
            nationalities=["French", "French"],
            organizations=[],
            people=["Marie Curie"],
        ),
        json_dict=None,
        raw="",
    )

    result = agent._parse_output(output)

    assert result.language == []
    assert result.nationalities == ["French"]
    assert result.people == ["Marie Curie"]


def test_parse_raw_json_wrapped_in_markdown(agent):
    raw = (
        "```json\n"
        '{"article_summary": ["Resumen"], "nationalities": [], "organizations": ["ONU"], '
        '"people": [], "language": ["Spanish"]}\n'
        "```"
    )
    result = agent._parse_output(SimpleNamespace(pydantic=None, json_dict=None, raw=raw))

    assert result.article_summary == ["Resumen"]
    assert result.organizations == ["ONU"]
    assert result.language == ["Spanish"]


def test_schema_violation_is_analysis_failure(agent):
    with pytest.raises(AnalysisFailed):
        agent._parse_output({"article_summary": "not a list", "nationalities": [], "organizations": [], "people": []})

    with pytest.raises(AnalysisFailed):
        agent._parse_output({"article_summary": ["ok"], "organizations": [], "people": []})


def test_non_json_output_is_analysis_failure(agent):
    with pytest.raises(AnalysisFailed):
        agent._parse_output(SimpleNamespace(pydantic=None, json_dict=None, raw="I cannot help with that."))


def test_missing_credentials_fail_at_call_time():
    extractor = ArticleExtractorAgent()
    extractor.llm = None

    with pytest.raises(AnalysisFailed):
        asyncio.run(extractor.execute("Some article"))


def test_provider_error_is_not_retried(agent, monkeypatch):
    attempts = []

    class FailingCrew:
        def __init__(self, agents, tasks):
            pass

        async def kickoff_async(self, inputs):
            attempts.append(inputs)
            raise ConnectionError("provider unavailable")

    monkeypatch.setattr(article_extractor, "Crew", FailingCrew)
    monkeypatch.setattr(ArticleExtractorAgent, "_build_agent", lambda self: None)
    monkeypatch.setattr(ArticleExtractorAgent, "_build_task", lambda self, crew_agent: None)

    with pytest.raises(AnalysisFailed):
        asyncio.run(agent.execute("Some article"))
    assert attempts == [{"article_text": "Some article"}]


def test_successful_crew_round_trip(agent, monkeypatch):
    class FakeCrew:
        def __init__(self, agents, tasks):
            pass

        async def kickoff_async(self, inputs):
            return SimpleNamespace(
                pydantic=None,
                json_dict={
                    "article_summary": ["Summary"],
                    "nationalities": ["Kenyan"],
                    "organizations": ["African Union"],
                    "people": ["William Ruto"],
                },
                raw="",
            )

    monkeypatch.setattr(article_extractor, "Crew", FakeCrew)
    monkeypatch.setattr(ArticleExtractorAgent, "_build_agent", lambda self: None)
    monkeypatch.setattr(ArticleExtractorAgent, "_build_task", lambda self, crew_agent: None)

    result = asyncio.run(agent.execute("Nairobi hosted the summit."))

    assert result.model_dump() == {
        "article_summary": ["Summary"],
        "nationalities": ["Kenyan"],
        "organizations": ["African Union"],
        "people": ["William Ruto"],
        "language": [],
    }


def test_timeout_is_analysis_failure(agent, monkeypatch):
    async def _slow(self, document_text):
        await asyncio.sleep(1)

    monkeypatch.setattr(ArticleExtractorAgent, "process", _slow)
    agent.timeout_seconds = 0.01

    with pytest.raises(AnalysisFailed, match="timeout"):
        asyncio.run(agent.execute("Some article"))
