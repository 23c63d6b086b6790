import io
import logging
from pathlib import Path
from typing import Optional

import aiofiles
from docx import Document

from ..config import settings
from ..errors import FileTooLarge, UnsupportedFormat, ValidationError
from .helpers import generate_file_id

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".docx")


def get_extension(filename: Optional[str]) -> str:
    return Path(filename or "").suffix.lower()


def max_file_size_bytes() -> int:
    return settings.max_file_size_mb * 1024 * 1024


def validate_file(filename: Optional[str], size_bytes: int) -> str:
    """
    Validate an upload before any text is extracted from it.
    Returns the lower-cased extension.
    """
    if not filename:
        raise ValidationError("Uploaded file must have a filename.")

    if size_bytes > max_file_size_bytes():
        raise FileTooLarge(f"File too large. Maximum size is {settings.max_file_size_mb}MB.")

    file_ext = get_extension(filename)
    if file_ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormat("Unsupported file type. Only .txt and .docx are accepted.")

    if size_bytes == 0:
        raise ValidationError("Uploaded file is empty.")

    return file_ext


def extract_text_from_txt(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        logger.warning("TXT upload is not valid UTF-8: %s", exc)
        raise ValidationError("Text file must be UTF-8 encoded.") from exc


def extract_text_from_docx(content: bytes) -> str:
    """
    Extract paragraph text from a DOCX document.
    Formatting is dropped; tables, headers and footnotes are not read.
    """
    try:
        document = Document(io.BytesIO(content))
    except Exception as exc:
        logger.warning("python-docx could not open upload: %s", exc)
        raise ValidationError(
            "Failed to extract text from DOCX file. The file may be corrupted."
        ) from exc

    return "\n".join(paragraph.text for paragraph in document.paragraphs if paragraph.text)


def extract_text(filename: str, content: bytes) -> str:
    file_ext = get_extension(filename)
    if file_ext == ".txt":
        return extract_text_from_txt(content)
    if file_ext == ".docx":
        return extract_text_from_docx(content)
    raise UnsupportedFormat("Unsupported file type. Only .txt and .docx are accepted.")


async def save_uploaded_file(content: bytes, filename: str) -> str:
    """
    Store the original upload in the content store under a fresh identifier.
    Returns the stored file reference.
    """
    upload_dir = Path(settings.storage_path) / "uploads"
    upload_dir.mkdir(parents=True, exist_ok=True)

    file_ext = get_extension(filename) or ".txt"
    file_path = upload_dir / f"{generate_file_id()}{file_ext}"

    async with aiofiles.open(file_path, "wb") as f:
        await f.write(content)
    logger.info("Stored upload %s as %s", filename, file_path)
    return str(file_path)
