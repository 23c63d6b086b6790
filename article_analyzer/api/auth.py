import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import ArticleAnalyzerError
from ..models.database import get_db
from ..models.schemas import AuthResponse, Credentials, SessionOut, UserOut
from ..services.auth_service import IssuedSession, authenticate, create_user, issue_session
from .dependencies import ACCESS_TOKEN_COOKIE, client_ip

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

INVALID_CREDENTIALS_EXAMPLE = {"detail": "Invalid email or password"}


async def _read_credentials(request: Request) -> Credentials:
    try:
        body = await request.json()
    except ValueError:
        body = {}
    try:
        return Credentials.model_validate(body)
    except SchemaValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid email or password",
        ) from exc


def _session_response(response: Response, message: str, issued: IssuedSession) -> AuthResponse:
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=issued.access_token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        path="/",
    )
    return AuthResponse(
        message=message,
        user=UserOut(id=issued.user.id, email=issued.user.email, created_at=issued.user.created_at),
        session=SessionOut(access_token=issued.access_token, expires_at=issued.session.expires_at),
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Account",
    responses={
        400: {"content": {"application/json": {"example": INVALID_CREDENTIALS_EXAMPLE}}},
        409: {"content": {"application/json": {"example": {"detail": "User with this email already exists"}}}},
    },
)
async def signup(request: Request, response: Response, db: Session = Depends(get_db)) -> AuthResponse:
    credentials = await _read_credentials(request)
    try:
        user = await asyncio.to_thread(create_user, db, credentials.email, credentials.password)
        issued = issue_session(db, user, request.headers.get("user-agent"), client_ip(request))
    except ArticleAnalyzerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    return _session_response(response, "User created successfully", issued)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log In",
    responses={
        400: {"content": {"application/json": {"example": INVALID_CREDENTIALS_EXAMPLE}}},
        401: {"content": {"application/json": {"example": INVALID_CREDENTIALS_EXAMPLE}}},
    },
)
async def login(request: Request, response: Response, db: Session = Depends(get_db)) -> AuthResponse:
    credentials = await _read_credentials(request)
    try:
        user = await asyncio.to_thread(authenticate, db, credentials.email, credentials.password)
    except ArticleAnalyzerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    issued = issue_session(db, user, request.headers.get("user-agent"), client_ip(request))
    return _session_response(response, "Login successful", issued)
