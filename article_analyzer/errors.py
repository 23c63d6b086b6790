from fastapi import status


class ArticleAnalyzerError(Exception):
    """Base class for errors raised by the analysis pipeline and auth gate."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ArticleAnalyzerError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnsupportedFormat(ArticleAnalyzerError):
    status_code = status.HTTP_400_BAD_REQUEST


class FileTooLarge(ArticleAnalyzerError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


class AuthError(ArticleAnalyzerError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ConflictError(ArticleAnalyzerError):
    status_code = status.HTTP_409_CONFLICT


class AnalysisFailed(ArticleAnalyzerError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PersistenceError(ArticleAnalyzerError):
    """Raised by the article log sink; only ever logged."""
