# Overview: File storage adapter for order attachments; callers only ever see the returned URL.

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from typing import Iterable

from flask import current_app
from werkzeug.utils import secure_filename

from ..time_utils import epoch_millis
from ..validation import DependencyFailure


STORAGE_EXTENSION_KEY = "printdesk.storage"


@dataclass(frozen=True)
class Upload:
    """One uploaded file, already read into memory."""
    data: bytes
    filename: str


class FileStorage:
    """Storage adapter interface: store bytes, get back an opaque URL."""

    def store(self, data: bytes, original_name: str) -> str:
        raise NotImplementedError


class LocalFileStorage(FileStorage):
    """
    Writes uploads under a local directory.

    Stored names are `<epoch-ms>-<random><ext>`; the original name only
    contributes its extension.
    """

    def __init__(self, folder: str, url_prefix: str = "/uploads", max_bytes: int | None = None):
        self.folder = folder
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    def _stored_name(self, original_name: str) -> str:
        _, ext = os.path.splitext(secure_filename(original_name or ""))
        return f"{epoch_millis()}-{secrets.randbelow(10**9)}{ext.lower()}"

    def store(self, data: bytes, original_name: str) -> str:
        if self.max_bytes is not None and len(data) > self.max_bytes:
            raise DependencyFailure(f"File '{original_name}' exceeds the {self.max_bytes} byte upload limit")

        name = self._stored_name(original_name)
        try:
            os.makedirs(self.folder, exist_ok=True)
            with open(os.path.join(self.folder, name), "wb") as fh:
                fh.write(data)
        except OSError as exc:
            raise DependencyFailure(f"Could not store file '{original_name}'") from exc

        return f"{self.url_prefix}/{name}"


def get_storage() -> FileStorage:
    """The app's storage adapter; a LocalFileStorage built from config unless one was installed."""
    storage = current_app.extensions.get(STORAGE_EXTENSION_KEY)
    if storage is None:
        storage = LocalFileStorage(
            folder=current_app.config["UPLOAD_FOLDER"],
            url_prefix=current_app.config.get("UPLOAD_URL_PREFIX", "/uploads"),
            max_bytes=current_app.config.get("MAX_UPLOAD_BYTES"),
        )
        current_app.extensions[STORAGE_EXTENSION_KEY] = storage
    return storage


def store_uploads(uploads: Iterable[Upload] | None, storage: FileStorage | None = None) -> list[str]:
    """
    Store every non-empty upload and return their URLs in order.

    Any failure raises DependencyFailure; the caller must not persist an
    order in that case.
    """
    if not uploads:
        return []
    storage = storage or get_storage()

    urls: list[str] = []
    for upload in uploads:
        if not upload.data:
            continue
        try:
            urls.append(storage.store(upload.data, upload.filename))
        except DependencyFailure:
            raise
        except Exception as exc:
            raise DependencyFailure(f"Upload of '{upload.filename}' failed") from exc
    return urls
