import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import admin, analyze, auth
from .config import settings
from .errors import ArticleAnalyzerError
from .models.database import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level)
    logger.info("Starting Article Analyzer v%s", app.version)
    init_db()
    yield
    logger.info("Shutting down Article Analyzer")


app = FastAPI(
    title="Article Analyzer",
    description="Summarizes articles and extracts nationalities, organizations, people and languages.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["POST", "OPTIONS", "GET", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(auth.router)
app.include_router(analyze.router)
app.include_router(admin.router)


@app.exception_handler(ArticleAnalyzerError)
async def analyzer_error_handler(request: Request, exc: ArticleAnalyzerError) -> JSONResponse:
    logger.warning("%s for %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception for %s %s", request.method, request.url)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred."},
    )


@app.get("/", tags=["Health"])
def read_root() -> Dict[str, Any]:
    return {"message": "OK", "version": app.version}


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    return {"status": "ok", "version": app.version}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "article_analyzer.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
