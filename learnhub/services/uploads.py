"""Upload handling for submissions: extension/size checks and on-disk storage."""
import logging
import os
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from learnhub.core.config import Settings
from learnhub.core.errors import ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass
class StoredUpload:
    filename: str  # original name from the client
    stored_filename: str
    filepath: str  # absolute


def submissions_dir(settings: Settings) -> Path:
    path = Path(settings.submissions_dir).resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def check_extension(filename: str, settings: Settings) -> None:
    ext = Path(filename).suffix.lower().lstrip(".")
    if ext not in {e.lower() for e in settings.allowed_extensions}:
        allowed = ", ".join(e.upper() for e in settings.allowed_extensions)
        raise ValidationError(f"Invalid file type. Allowed: {allowed}")


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_CHARS.sub("_", Path(filename).name) or "upload"


def _open_unique(directory: Path, user_id: int, safe_name: str) -> tuple[BinaryIO, Path]:
    stored = f"{user_id}_{int(time.time() * 1000)}_{safe_name}"
    try:
        return open(directory / stored, "xb"), directory / stored
    except FileExistsError:
        stored = f"{user_id}_{int(time.time() * 1000)}_{secrets.token_hex(4)}_{safe_name}"
        return open(directory / stored, "xb"), directory / stored


def save_upload(settings: Settings, user_id: int, filename: str, source: BinaryIO) -> StoredUpload:
    """Validate and copy an uploaded stream to the submissions directory."""
    if not filename:
        raise ValidationError("No file uploaded.")
    check_extension(filename, settings)

    directory = submissions_dir(settings)
    out, path = _open_unique(directory, user_id, sanitize_filename(filename))
    written = 0
    with out:
        while True:
            chunk = source.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > settings.max_upload_bytes:
                break
            out.write(chunk)

    if written > settings.max_upload_bytes:
        remove_file(str(path))
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        raise ValidationError(f"File size exceeds {limit_mb}MB limit.")

    logger.info("Saved upload %s (%d bytes) for user id=%s", path.name, written, user_id)
    return StoredUpload(filename=filename, stored_filename=path.name, filepath=str(path))


def remove_file(filepath: str | None) -> bool:
    """Delete a stored file if it is there. Returns True if something was removed."""
    if not filepath:
        return False
    try:
        os.remove(filepath)
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Could not remove %s: %s", filepath, e)
        return False
    logger.info("Removed stored file %s", filepath)
    return True
