# Overview: Local-disk store for payment receipt files; returns the URL the API exposes.

"""
Receipt store.

Opaque "store bytes, return URL" collaborator. Files land in
RECEIPT_UPLOAD_DIR under a random name (the client filename only
contributes its extension) and are served back by routes/uploads.py at
RECEIPT_BASE_URL/<name>.
"""

from __future__ import annotations

import os
import uuid

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..errors import ValidationError


def _upload_dir() -> str:
    return current_app.config["RECEIPT_UPLOAD_DIR"]


def _extension(filename: str) -> str:
    safe = secure_filename(filename or "")
    if "." not in safe:
        return ""
    return safe.rsplit(".", 1)[-1].lower()


def store_receipt(file: FileStorage | None) -> str:
    """
    Persist an uploaded receipt and return its public URL.

    Raises:
        ValidationError: no file, empty file, or extension not allowed
    """
    if file is None or not file.filename:
        raise ValidationError("Receipt image is required")

    ext = _extension(file.filename)
    allowed = current_app.config["RECEIPT_ALLOWED_EXTENSIONS"]
    if ext not in allowed:
        raise ValidationError(
            f"Unsupported receipt file type. Allowed: {', '.join(sorted(allowed))}"
        )

    data = file.read()
    if not data:
        raise ValidationError("Receipt file is empty")

    name = f"{uuid.uuid4().hex}.{ext}"
    directory = _upload_dir()
    os.makedirs(directory, exist_ok=True)
    with open(os.path.join(directory, name), "wb") as fh:
        fh.write(data)

    base_url = current_app.config["RECEIPT_BASE_URL"].rstrip("/")
    return f"{base_url}/{name}"


def resolve_receipt_path(name: str) -> str | None:
    """Absolute path of a stored receipt, or None if the name is unsafe or missing."""
    safe = secure_filename(name or "")
    if not safe or safe != name:
        return None
    path = os.path.join(_upload_dir(), safe)
    if not os.path.isfile(path):
        return None
    return path


def discard_receipt(url: str | None) -> None:
    """Remove a stored receipt by URL. Missing files are ignored."""
    if not url:
        return
    path = resolve_receipt_path(url.rsplit("/", 1)[-1])
    if path is None:
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
