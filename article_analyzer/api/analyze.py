import logging
from typing import Optional, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from pydantic import ValidationError as SchemaValidationError
from starlette.datastructures import UploadFile

from ..errors import AnalysisFailed, ArticleAnalyzerError
from ..models.schemas import AnalysisOptions, AnalysisResult
from ..models.storage import UserSession
from ..services.analysis_pipeline import AnalysisPipeline, UploadedDocument
from ..services.background_tasks import BackgroundTaskService
from ..utils.file_processor import max_file_size_bytes
from .dependencies import get_background_service, get_current_session, get_pipeline

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Analysis"])

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

ANALYZE_SUCCESS_EXAMPLE = {
    "article_summary": ["Leaders met in Berlin to discuss energy policy."],
    "nationalities": ["German", "French"],
    "organizations": ["European Commission"],
    "people": ["Olaf Scholz"],
    "language": ["English"],
}


async def _read_form(
    request: Request,
) -> Tuple[Optional[str], Optional[UploadedDocument], Optional[AnalysisOptions]]:
    form = await request.form(max_part_size=max_file_size_bytes())

    text_field = form.get("text")
    text = text_field if isinstance(text_field, str) else None

    upload: Optional[UploadedDocument] = None
    file_field = form.get("file")
    if isinstance(file_field, UploadFile):
        content = await file_field.read()
        # Browsers send an empty, unnamed part when no file was chosen.
        if file_field.filename or content:
            upload = UploadedDocument(
                filename=file_field.filename or "",
                content=content,
                content_type=file_field.content_type,
            )

    options: Optional[AnalysisOptions] = None
    options_field = form.get("options")
    if isinstance(options_field, str) and options_field.strip():
        options = AnalysisOptions.model_validate_json(options_field)

    return text, upload, options


async def _read_json(request: Request) -> Optional[str]:
    try:
        body = await request.json()
    except ValueError:
        body = {}
    text = body.get("text") if isinstance(body, dict) else None
    return text if isinstance(text, str) else None


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    summary="Analyze Article",
    description="Summarize an article and extract nationalities, organizations, people and languages.",
    responses={
        200: {"content": {"application/json": {"example": ANALYZE_SUCCESS_EXAMPLE}}},
        400: {"content": {"application/json": {"example": {"detail": "No article text provided"}}}},
        401: {"content": {"application/json": {"example": {"detail": "Unauthorized"}}}},
        413: {"content": {"application/json": {"example": {"detail": "File too large. Maximum size is 10MB."}}}},
        500: {"content": {"application/json": {"example": {"detail": "Failed to analyze article"}}}},
    },
)
async def analyze_article(
    request: Request,
    background_tasks: BackgroundTasks,
    session: UserSession = Depends(get_current_session),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
    background_service: BackgroundTaskService = Depends(get_background_service),
) -> AnalysisResult:
    content_type = request.headers.get("content-type", "").lower()
    upload: Optional[UploadedDocument] = None
    options: Optional[AnalysisOptions] = None

    try:
        if content_type.startswith(FORM_CONTENT_TYPES):
            text, upload, options = await _read_form(request)
        else:
            text = await _read_json(request)
    except SchemaValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid analysis options") from exc
    except Exception as exc:
        logger.exception("Failed to parse analyze request body")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to parse body") from exc

    try:
        outcome = await pipeline.analyze(text=text, upload=upload, options=options)
    except AnalysisFailed as exc:
        logger.error("Analysis failed for session user %s: %s", session.user_id, exc)
        raise HTTPException(
            status_code=exc.status_code,
            detail="Failed to analyze article",
        ) from exc
    except ArticleAnalyzerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    BackgroundTaskService.schedule_persist(background_tasks, background_service, outcome)
    return outcome.result
