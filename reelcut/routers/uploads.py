"""
Uploads Router
Stores source videos in the object store so jobs can reference them.
"""

import os
import uuid
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status

from ..config import get_settings
from ..services.object_store import get_object_store
from ..utils.exceptions import ValidationError
from ..utils.logger import get_logger

router = APIRouter(prefix="/api/uploads", tags=["uploads"])
logger = get_logger()

CHUNK_SIZE = 1024 * 1024


def _safe_filename(filename: Optional[str]) -> str:
    if not filename:
        return "uploaded_video.mp4"
    return Path(filename).name.replace("..", "_").replace("\\", "_").replace("/", "_")


def _remove_file(path: Optional[str]):
    if not path:
        return
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as exc:
        logger.warning(f"Failed to remove file {path}: {exc}")


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_video(owner: str = Form(...), file: UploadFile = File(...)):
    """Upload a source video; returns the ``source`` to submit a job with."""
    if not owner.strip() or "/" in owner:
        raise ValidationError("owner is required", field="owner")
    if file.content_type and not file.content_type.startswith("video/"):
        raise ValidationError("Uploaded file must be a video", field="file")

    settings = get_settings()
    temp_dir = Path(settings.temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)

    max_upload_bytes = settings.max_upload_size_mb * 1024 * 1024
    source = f"uploads/{uuid.uuid4().hex}_{_safe_filename(file.filename)}"
    temp_path = temp_dir / Path(source).name
    bytes_written = 0

    try:
        with open(temp_path, "wb") as output_file:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                bytes_written += len(chunk)
                if bytes_written > max_upload_bytes:
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=f"File exceeds max upload size ({settings.max_upload_size_mb}MB)",
                    )
                output_file.write(chunk)

        if bytes_written == 0:
            raise ValidationError("Uploaded file is empty", field="file")

        with open(temp_path, "rb") as stored:
            key = await get_object_store().upload(owner.strip(), source, stored, file.content_type)
    finally:
        await file.close()
        _remove_file(str(temp_path))

    logger.info(f"Video uploaded: {key} ({bytes_written / 1024 / 1024:.1f} MB)")
    return {"source": source, "key": key, "size_bytes": bytes_written}
