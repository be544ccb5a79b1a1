from __future__ import annotations

import time
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile

from ..config import get_settings
from ..core.constants import UPLOADS_URL_PREFIX
from .errors import ValidationError


def uploads_root() -> Path:
    return Path(get_settings().upload_dir)


def ensure_upload_directory(subdir: Path | str | None = None) -> Path:
    base = uploads_root()
    if subdir:
        base = base / Path(subdir)
    base.mkdir(parents=True, exist_ok=True)
    return base


def _extension(filename: str | None) -> str:
    if not filename:
        return ""
    return Path(filename).suffix.lstrip(".").lower()


def save_upload(
    upload: UploadFile,
    subdir: str,
    *,
    allowed_extensions: frozenset[str],
    max_bytes: int,
    invalid_message: str,
) -> str:
    """Store an uploaded image and return its public ``/uploads/...`` path."""
    extension = _extension(upload.filename)
    if extension not in allowed_extensions:
        raise ValidationError(invalid_message, errors={"file": f"Allowed extensions: {', '.join(sorted(allowed_extensions))}"})
    data = upload.file.read()
    if not data:
        raise ValidationError(invalid_message, errors={"file": "File is empty"})
    if len(data) > max_bytes:
        raise ValidationError(invalid_message, errors={"file": f"File exceeds {max_bytes // (1024 * 1024)}MB"})
    directory = ensure_upload_directory(subdir)
    filename = f"{int(time.time() * 1000)}_{uuid4().hex[:8]}.{extension}"
    (directory / filename).write_bytes(data)
    return f"{UPLOADS_URL_PREFIX}/{subdir}/{filename}"


def remove_upload(public_path: str | None) -> None:
    if not public_path or not public_path.startswith(UPLOADS_URL_PREFIX + "/"):
        return
    relative = public_path[len(UPLOADS_URL_PREFIX) + 1:]
    path = uploads_root() / Path(relative)
    path.unlink(missing_ok=True)


def absolute_url(base_url: str, path: str | None) -> str | None:
    """Rewrite a stored relative path into an absolute URL for ``base_url``."""
    if not path:
        return None
    if path.startswith(("http://", "https://", "data:")):
        return path
    return base_url.rstrip("/") + "/" + path.lstrip("/")
