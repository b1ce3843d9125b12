"""
File Upload Utility - Store files attached to form responses.

Files land in the uploads directory (inside the public directory by
default), so the static stage serves them back at /uploads/<name>.

Supported formats: images, PDF, Word, plain text, CSV
"""

import uuid
from pathlib import Path

from fastapi import UploadFile

from triddle.core.errors import AppError, BadRequestError

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".pdf", ".docx", ".txt", ".csv"}
CHUNK_SIZE = 64 * 1024


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if "." not in filename:
        return ""
    return "." + filename.rsplit(".", 1)[1].lower()


def save_upload(file: UploadFile, upload_dir: Path, max_size_mb: int) -> dict:
    """
    Validate and store an uploaded file under a random name.

    Returns:
        dict with filename (original), url, size, content_type

    Raises:
        BadRequestError on missing name / unsupported type
        AppError (413) when the file exceeds max_size_mb
    """
    if not file.filename:
        raise BadRequestError("No filename provided")

    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        allowed = ", ".join(sorted(ALLOWED_EXTENSIONS))
        raise BadRequestError(f"Unsupported file type '{ext}'. Allowed: {allowed}")

    # created on first upload
    upload_dir.mkdir(parents=True, exist_ok=True)
    stored_name = f"{uuid.uuid4().hex}{ext}"
    target = upload_dir / stored_name
    max_bytes = max_size_mb * 1024 * 1024

    size = 0
    with target.open("wb") as out:
        while True:
            chunk = file.file.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > max_bytes:
                out.close()
                target.unlink(missing_ok=True)
                raise AppError(f"File too large. Maximum size: {max_size_mb}MB", status_code=413)
            out.write(chunk)

    if size == 0:
        target.unlink(missing_ok=True)
        raise BadRequestError("Uploaded file is empty")

    return {
        "filename": file.filename,
        "url": f"/uploads/{stored_name}",
        "size": size,
        "content_type": file.content_type,
    }
