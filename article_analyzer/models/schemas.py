from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


def _dedupe(values: List[str]) -> List[str]:
    seen = set()
    result: List[str] = []
    for value in values:
        cleaned = value.strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        result.append(cleaned)
    return result


class AnalysisOptions(BaseModel):
    """Advisory flags sent by clients; both sections are always produced."""

    include_entities: bool = Field(True, alias="includeEntities", description="Request entity extraction")
    include_summary: bool = Field(True, alias="includeSummary", description="Request a summary")

    model_config = {"populate_by_name": True}


class ArticleExtraction(BaseModel):
    """Schema the language model must satisfy."""

    article_summary: List[str] = Field(
        ..., description="Summaries of the article; one per detected language"
    )
    nationalities: List[str] = Field(..., description="Nationalities or countries")
    organizations: List[str] = Field(..., description="Organizations")
    people: List[str] = Field(..., description="People")
    language: Optional[List[str]] = Field(None, description="Languages detected")


class AnalysisResult(BaseModel):
    article_summary: List[str] = Field(default_factory=list, description="Summaries, one per detected language")
    nationalities: List[str] = Field(default_factory=list, description="Deduplicated demonyms or country names")
    organizations: List[str] = Field(default_factory=list, description="Formal organization names")
    people: List[str] = Field(default_factory=list, description="Full person names")
    language: List[str] = Field(default_factory=list, description="Detected languages")

    @field_validator("article_summary", "language", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v

    @field_validator("nationalities", "organizations", "people", mode="before")
    @classmethod
    def dedupe_entities(cls, v):
        if v is None:
            return []
        if isinstance(v, list) and all(isinstance(item, str) for item in v):
            return _dedupe(v)
        return v

    @classmethod
    def from_extraction(cls, extraction: ArticleExtraction) -> "AnalysisResult":
        return cls(**extraction.model_dump())

    model_config = {
        "json_schema_extra": {
            "example": {
                "article_summary": ["The summit in Paris ended with a joint statement."],
                "nationalities": ["French", "German"],
                "organizations": ["European Union"],
                "people": ["Emmanuel Macron"],
                "language": ["English"],
            }
        }
    }


class PRDAnalysisResponse(BaseModel):
    article_summary: str = Field("", description="All summaries joined into one string")
    nationalities: List[str] = Field(default_factory=list, description="Nationalities derived from countries")
    organizations: List[str] = Field(default_factory=list, description="Organization names")
    people: List[str] = Field(default_factory=list, description="Person names")
    languages: List[str] = Field(default_factory=list, description="Detected languages")


class Credentials(BaseModel):
    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., min_length=8, description="Account password (at least 8 characters)")

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class UserOut(BaseModel):
    id: str
    email: str
    created_at: datetime


class SessionOut(BaseModel):
    access_token: str
    expires_at: datetime


class AuthResponse(BaseModel):
    message: str = Field(..., description="Outcome of the auth request")
    user: UserOut
    session: SessionOut

    model_config = {
        "json_schema_extra": {
            "example": {
                "message": "Login successful",
                "user": {
                    "id": "6a1f0c9e-2d55-4b7b-9c53-0f6f4a1d2e11",
                    "email": "reader@example.com",
                    "created_at": "2025-11-22T10:00:00Z",
                },
                "session": {
                    "access_token": "3f9c...",
                    "expires_at": "2025-12-22T10:00:00Z",
                },
            }
        }
    }


class ColumnMigrationResponse(BaseModel):
    message: str
    success: bool
    column_exists: bool = False
    column_details: Optional[Dict[str, Any]] = None


class TableDescriptionResponse(BaseModel):
    tables: Dict[str, List[Dict[str, Any]]]
