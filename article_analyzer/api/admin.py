import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.database import get_db
from ..models.schemas import ColumnMigrationResponse, TableDescriptionResponse
from ..services.schema_migrations import add_column_if_missing, describe_tables
from .dependencies import get_current_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"], dependencies=[Depends(get_current_session)])


@router.get("/describe-tables", response_model=TableDescriptionResponse, summary="Describe Tables")
def describe_all_tables(db: Session = Depends(get_db)) -> TableDescriptionResponse:
    try:
        return TableDescriptionResponse(tables=describe_tables(db.get_bind()))
    except SQLAlchemyError as exc:
        logger.exception("Failed to describe tables")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to describe tables",
        ) from exc


def _migrate(db: Session, column: str) -> ColumnMigrationResponse:
    try:
        return add_column_if_missing(db.get_bind(), column)
    except (SQLAlchemyError, RuntimeError) as exc:
        logger.exception("Migration error for column %s", column)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to add {column} column",
        ) from exc


@router.get("/add-original-text-column", response_model=ColumnMigrationResponse, summary="Add original_text Column")
def add_original_text_column(db: Session = Depends(get_db)) -> ColumnMigrationResponse:
    return _migrate(db, "original_text")


@router.get("/add-uploaded-file-column", response_model=ColumnMigrationResponse, summary="Add uploaded_file Column")
def add_uploaded_file_column(db: Session = Depends(get_db)) -> ColumnMigrationResponse:
    return _migrate(db, "uploaded_file")
