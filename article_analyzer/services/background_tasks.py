import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import PersistenceError
from ..models.storage import ArticleLog
from .analysis_pipeline import PipelineOutcome

logger = logging.getLogger(__name__)


class ArticleLogSink(ABC):
    """Destination for analysis records. Implementations may raise PersistenceError."""

    @abstractmethod
    async def record(self, outcome: PipelineOutcome) -> None:
        ...


class DatabaseArticleLogSink(ArticleLogSink):

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    async def record(self, outcome: PipelineOutcome) -> None:
        await asyncio.to_thread(self._insert, outcome)

    def _insert(self, outcome: PipelineOutcome) -> None:
        result = outcome.result
        db = self.session_factory()
        try:
            db.add(
                ArticleLog(
                    summary=result.article_summary,
                    nationalities=result.nationalities,
                    organizations=result.organizations,
                    people=result.people,
                    language=result.language,
                    original_text=outcome.article_text,
                    uploaded_file=outcome.uploaded_file,
                )
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"Failed to write article log: {exc}") from exc
        finally:
            db.close()


class BackgroundTaskService:

    def __init__(self, sink: ArticleLogSink) -> None:
        self.sink = sink

    async def run_persist_task(self, outcome: PipelineOutcome) -> None:
        """Failures stop here; the caller already has its response."""
        try:
            await self.sink.record(outcome)
            logger.info("Stored article log (%s characters)", len(outcome.article_text))
        except Exception:
            logger.exception("Article log persistence failed")

    @staticmethod
    def schedule_persist(
        background_tasks: BackgroundTasks,
        service: "BackgroundTaskService",
        outcome: PipelineOutcome,
    ) -> None:
        """Convenience wrapper to schedule the persistence task."""
        background_tasks.add_task(service.run_persist_task, outcome)
