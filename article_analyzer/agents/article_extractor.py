import json
import logging
import re
from typing import Any, Dict

from crewai import Agent as CrewAgent, Crew, Task
from crewai import LLM
from pydantic import ValidationError as SchemaValidationError

from .base_agent import BaseDocumentAgent
from ..errors import AnalysisFailed
from ..models.schemas import AnalysisResult, ArticleExtraction

logger = logging.getLogger(__name__)

EXTRACTION_SYSTEM_INSTRUCTION = "You are an expert information-extraction engine from text."

EXTRACTION_EXPECTED_OUTPUT = (
    "JSON object with keys: article_summary (list of strings, one summary per detected language), "
    "nationalities (list of strings), organizations (list of strings), people (list of strings), "
    "language (list of language names)."
)

EXTRACTION_PROMPT_TEMPLATE = (
    "# INSTRUCTIONS\n"
    "Return ONLY valid JSON that conforms exactly to the provided schema - no markdown, comments, or extra keys.\n"
    "Extraction rules:\n"
    "1. article_summary - concise, neutral and factual. If the article is in multiple languages, "
    "create summaries for each language.\n"
    "2. nationalities - deduplicated demonyms or country names in the article text. This can be in any language.\n"
    "3. organizations - formal names of groups, agencies, NGOs, companies, alliances, etc. "
    "This can be in any language.\n"
    "4. people - full personal names (skip titles alone).\n"
    "5. language - the languages of the article, e.g. \"English\", \"Spanish\", \"French\".\n\n"
    "If a list would otherwise be empty, return an empty array for that key.\n\n"
    "### ARTICLE\n{article_text}\n\n"
    "### TASK\n"
    "Detect the language of the article first. Then summarize the article and extract the required entities.\n"
    "Return the JSON object only"
)


class ArticleExtractorAgent(BaseDocumentAgent):

    @property
    def agent_name(self) -> str:
        return "article_extractor"

    async def process(self, document_text: str) -> AnalysisResult:
        if not document_text or not document_text.strip():
            raise AnalysisFailed("Article text is required for analysis.")

        if not self.llm:
            raise AnalysisFailed("Article extraction requires an LLM client. Configure provider credentials.")

        crew_agent = self._build_agent()
        task = self._build_task(crew_agent)
        crew = Crew(agents=[crew_agent], tasks=[task])

        try:
            raw_output = await crew.kickoff_async(inputs={"article_text": document_text})
        except Exception as exc:
            logger.exception("Crew execution failed for article extractor agent")
            raise AnalysisFailed(f"Failed to analyze article: {exc}") from exc

        return self._parse_output(raw_output)

    def _build_agent(self) -> CrewAgent:
        return CrewAgent(
            role="Information Extraction Engine",
            goal="Summarize articles and extract nationalities, organizations, people and languages",
            backstory=EXTRACTION_SYSTEM_INSTRUCTION,
            llm=LLM(
                model=self.llm.model,
                api_key=self.llm.api_key,
                temperature=self.llm.temperature,
                max_tokens=self.llm.max_tokens,
                timeout=self.llm.timeout,
            ),
            allow_delegation=False,
        )

    def _build_task(self, agent: CrewAgent) -> Task:
        return Task(
            description=EXTRACTION_PROMPT_TEMPLATE,
            expected_output=EXTRACTION_EXPECTED_OUTPUT,
            output_pydantic=ArticleExtraction,
            agent=agent,
        )

    def _parse_output(self, raw_output: Any) -> AnalysisResult:
        structured = getattr(raw_output, "pydantic", None)
        if isinstance(structured, ArticleExtraction):
            return AnalysisResult.from_extraction(structured)

        json_dict = getattr(raw_output, "json_dict", None)
        if isinstance(json_dict, dict):
            data = json_dict
        elif hasattr(raw_output, "raw"):
            data = self._decode_json(raw_output.raw)
        elif isinstance(raw_output, dict):
            data = raw_output
        else:
            data = self._decode_json(raw_output)

        try:
            extraction = ArticleExtraction.model_validate(data)
        except SchemaValidationError as exc:
            logger.warning("Article extraction output failed schema validation: %s", exc)
            raise AnalysisFailed("Language model output did not match the extraction schema.") from exc

        return AnalysisResult.from_extraction(extraction)

    def _decode_json(self, raw_output: Any) -> Dict[str, Any]:
        if raw_output is None:
            raise AnalysisFailed("Agent returned no output.")

        if isinstance(raw_output, str):
            candidate = raw_output.strip()
            try:
                return json.loads(candidate)
            except json.JSONDecodeError:
                match = re.search(r"\{.*\}", candidate, re.DOTALL)
                if match:
                    try:
                        return json.loads(match.group())
                    except json.JSONDecodeError as exc:
                        logger.debug("JSON extraction failed for article output: %s", candidate)
                        raise AnalysisFailed("Article extractor produced malformed JSON.") from exc
                raise AnalysisFailed("Article extractor produced non-JSON output.")

        raise AnalysisFailed("Agent response type is unsupported for JSON parsing.")
