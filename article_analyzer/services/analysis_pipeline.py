import asyncio
import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from ..agents.article_extractor import ArticleExtractorAgent
from ..errors import ValidationError
from ..models.schemas import AnalysisOptions, AnalysisResult
from ..utils.file_processor import extract_text, save_uploaded_file, validate_file

logger = logging.getLogger(__name__)


@dataclass
class UploadedDocument:
    filename: str
    content: bytes
    content_type: Optional[str] = None


@dataclass
class PipelineOutcome:
    result: AnalysisResult
    article_text: str
    uploaded_file: Optional[str] = None


class AnalysisPipeline:
    """Turns request input into article text and runs the extractor on it."""

    def __init__(self, extractor: ArticleExtractorAgent) -> None:
        self.extractor = extractor

    async def analyze(
        self,
        text: Optional[str] = None,
        upload: Optional[UploadedDocument] = None,
        options: Optional[AnalysisOptions] = None,
    ) -> PipelineOutcome:
        start_time = time.perf_counter()
        parts: List[str] = []
        uploaded_file: Optional[str] = None

        if text and text.strip():
            parts.append(text.strip())

        if upload is not None:
            validate_file(upload.filename, len(upload.content))
            logger.debug("Extracting text from %s", upload.filename)
            extracted = await asyncio.to_thread(extract_text, upload.filename, upload.content)
            uploaded_file = await self._store_upload(upload)
            parts.append(extracted)

        article_text = "\n\n".join(parts)
        if not article_text.strip():
            raise ValidationError("No article text provided")

        if options is not None and not (options.include_entities and options.include_summary):
            logger.info("Analysis options are advisory; producing summary and entities anyway")

        result = await self.extractor.execute(article_text)
        logger.info(
            "Analyzed %s characters in %s seconds",
            len(article_text),
            round(time.perf_counter() - start_time, 4),
        )
        return PipelineOutcome(result=result, article_text=article_text, uploaded_file=uploaded_file)

    async def _store_upload(self, upload: UploadedDocument) -> Optional[str]:
        try:
            return await save_uploaded_file(upload.content, upload.filename)
        except Exception:
            logger.exception("Failed to store upload %s; continuing without a file reference", upload.filename)
            return None
