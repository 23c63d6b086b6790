import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from ..models.schemas import ColumnMigrationResponse

logger = logging.getLogger(__name__)

ARTICLE_LOGS_TABLE = "article_logs"


def _column_details(column: Dict[str, Any]) -> Dict[str, Any]:
    default = column.get("default")
    return {
        "column_name": column["name"],
        "data_type": str(column["type"]),
        "is_nullable": bool(column.get("nullable", True)),
        "column_default": str(default) if default is not None else None,
    }


def describe_tables(engine: Engine) -> Dict[str, List[Dict[str, Any]]]:
    inspector = inspect(engine)
    return {
        table: [_column_details(column) for column in inspector.get_columns(table)]
        for table in sorted(inspector.get_table_names())
    }


def _find_column(engine: Engine, table: str, column: str) -> Optional[Dict[str, Any]]:
    for details in inspect(engine).get_columns(table):
        if details["name"] == column:
            return _column_details(details)
    return None


def add_column_if_missing(engine: Engine, column: str, ddl_type: str = "TEXT") -> ColumnMigrationResponse:
    """Idempotently add an optional column to article_logs."""
    if _find_column(engine, ARTICLE_LOGS_TABLE, column) is not None:
        return ColumnMigrationResponse(message="Column already exists", success=True, column_exists=True)

    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {ARTICLE_LOGS_TABLE} ADD COLUMN {column} {ddl_type}"))
    logger.info("Added column %s to %s", column, ARTICLE_LOGS_TABLE)

    details = _find_column(engine, ARTICLE_LOGS_TABLE, column)
    if details is None:
        raise RuntimeError("Column was not created successfully")

    return ColumnMigrationResponse(
        message=f"Successfully added {column} column to {ARTICLE_LOGS_TABLE} table",
        success=True,
        column_details=details,
    )
