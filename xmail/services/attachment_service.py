"""
Disk storage for mail attachments, audio uploads and profile pictures.

Files are written under UPLOAD_DIR as "<epoch-ms>_<random hex>_<original name>" and
referenced from Mail rows by their public path "/uploads/<name>".
"""

import os
import re
import shutil
import time
import uuid
from typing import Optional

from fastapi import UploadFile

from xmail import config
from xmail.logging_config import get_logger

logger = get_logger(__name__)

PUBLIC_PREFIX = "/uploads"


def upload_root() -> str:
    """Return the upload directory, creating it if needed."""
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    return config.UPLOAD_DIR


def sanitize_filename(filename: str) -> str:
    """Strip directories and anything outside [A-Za-z0-9._-] from a client filename."""
    name = os.path.basename((filename or "").replace("\\", "/"))
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("._")
    return name or "file"


def save_upload(upload: UploadFile) -> str:
    """
    Persist an uploaded file.

    Returns:
        The stored file name (not the public path).
    """
    stored_name = f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}_{sanitize_filename(upload.filename)}"
    destination = os.path.join(upload_root(), stored_name)

    with open(destination, "wb") as out:
        shutil.copyfileobj(upload.file, out)

    logger.info("Stored upload %s", stored_name)
    return stored_name


def save_attachments(uploads) -> list[str]:
    """Store every upload and return their public paths."""
    return [f"{PUBLIC_PREFIX}/{save_upload(f)}" for f in uploads or [] if f and f.filename]


def save_profile_pic(upload: UploadFile) -> str:
    """Store a profile picture under a random name and return its public path."""
    directory = os.path.join(upload_root(), config.PROFILE_PIC_SUBDIR)
    os.makedirs(directory, exist_ok=True)

    ext = os.path.splitext(sanitize_filename(upload.filename))[1]
    stored_name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:10]}{ext}"

    with open(os.path.join(directory, stored_name), "wb") as out:
        shutil.copyfileobj(upload.file, out)

    return f"{PUBLIC_PREFIX}/{config.PROFILE_PIC_SUBDIR}/{stored_name}"


def resolve_public_path(public_path: str) -> Optional[str]:
    """Map "/uploads/..." to a file inside UPLOAD_DIR, refusing anything outside it."""
    if not public_path or not public_path.startswith(PUBLIC_PREFIX + "/"):
        return None

    root = os.path.realpath(upload_root())
    relative = public_path[len(PUBLIC_PREFIX) + 1:]
    candidate = os.path.realpath(os.path.join(root, relative))

    if os.path.commonpath([root, candidate]) != root:
        return None
    return candidate


def find_upload(filename: str) -> Optional[str]:
    """Return the on-disk path of a stored attachment, or None."""
    path = resolve_public_path(f"{PUBLIC_PREFIX}/{filename}")
    if path and os.path.isfile(path):
        return path
    return None


def delete_public_file(public_path: str) -> bool:
    """Remove a stored file by its public path. Missing files are ignored."""
    path = resolve_public_path(public_path)
    if path and os.path.isfile(path):
        os.remove(path)
        return True
    return False


class UploadRejected(Exception):
    """An upload that fails validation. Carries the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def save_audio(upload: UploadFile) -> str:
    """
    Validate and store a voice recording.

    Only audio/* uploads up to MAX_AUDIO_BYTES are accepted. The size the
    client declared is checked before anything is written; the stored
    size is checked again afterwards.

    Returns:
        The public path of the stored file. The caller deletes it when done.

    Raises:
        UploadRejected: Missing file (400), not audio (400), too large (413)
    """
    if upload is None or not upload.filename:
        raise UploadRejected("No audio file uploaded")

    if not (upload.content_type or "").startswith("audio/"):
        raise UploadRejected("Only audio files are allowed")

    if upload.size is not None and upload.size > config.MAX_AUDIO_BYTES:
        raise UploadRejected("Audio file too large", status_code=413)

    public_path = f"{PUBLIC_PREFIX}/{save_upload(upload)}"
    if os.path.getsize(resolve_public_path(public_path)) > config.MAX_AUDIO_BYTES:
        delete_public_file(public_path)
        raise UploadRejected("Audio file too large", status_code=413)

    return public_path
