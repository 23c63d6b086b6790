import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..agents.article_extractor import ArticleExtractorAgent
from ..errors import AuthError
from ..models.database import SessionLocal, get_db
from ..models.storage import UserSession
from ..services.analysis_pipeline import AnalysisPipeline
from ..services.auth_service import resolve_session
from ..services.background_tasks import BackgroundTaskService, DatabaseArticleLogSink

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"

article_extractor_singleton = ArticleExtractorAgent()
pipeline_singleton = AnalysisPipeline(article_extractor_singleton)
background_service_singleton = BackgroundTaskService(DatabaseArticleLogSink(SessionLocal))


def get_pipeline() -> AnalysisPipeline:
    return pipeline_singleton


def get_background_service() -> BackgroundTaskService:
    return background_service_singleton


def bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip() or None
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


def client_ip(request: Request) -> Optional[str]:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


async def get_current_session(request: Request, db: Session = Depends(get_db)) -> UserSession:
    try:
        return resolve_session(db, bearer_token(request))
    except AuthError as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
