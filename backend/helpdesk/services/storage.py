from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from flask import current_app

IMAGE_BUCKETS = ('tickets', 'comments')
IMAGE_CONTENT_TYPES = {
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
    'image/webp': 'webp',
}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
_DATA_URL_RE = re.compile(r'^data:(?P<ctype>[\w.+-]+/[\w.+-]+)?;base64,(?P<data>.*)$', re.DOTALL)


class StorageError(RuntimeError):
    pass


@dataclass(frozen=True)
class LocalStorage:
    root: Path

    def _path(self, key: str) -> Path:
        safe_key = key.lstrip('/').replace('\\', '/')
        if any(part in ('', '.', '..') for part in safe_key.split('/')):
            raise StorageError(f'Invalid storage key: {key}')
        return self.root / safe_key

    def put_bytes(self, key: str, data: bytes) -> None:
        p = self._path(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)

    def open(self, key: str) -> BinaryIO:
        return self._path(key).open('rb')

    def exists(self, key: str) -> bool:
        try:
            return self._path(key).is_file()
        except StorageError:
            return False


def storage_from_config() -> LocalStorage:
    return LocalStorage(Path(current_app.config['STORAGE_ROOT']))


def decode_base64_payload(raw: str) -> tuple[bytes, str | None]:
    """Decode plain base64 or a ``data:<type>;base64,`` URL; returns (bytes, content type or None)."""
    content_type = None
    m = _DATA_URL_RE.match(raw.strip())
    if m:
        content_type = m.group('ctype')
        raw = m.group('data')
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise StorageError('File content is not valid base64') from exc
    if not data:
        raise StorageError('File content is empty')
    if len(data) > MAX_UPLOAD_BYTES:
        raise StorageError('File exceeds the 10MB upload limit')
    return data, content_type


def public_url(key: str) -> str:
    base = (current_app.config.get('PUBLIC_BASE_URL') or '').rstrip('/')
    return f"{base}/storage/files/{key}"


def save_upload(bucket: str, path: str, payload: str, content_type: str) -> tuple[str, str]:
    """Store a base64 upload under ``bucket/path``; returns (key, public url).

    Image buckets only accept image content types.
    """
    data, detected = decode_base64_payload(payload)
    content_type = detected or content_type
    if bucket in IMAGE_BUCKETS and content_type not in IMAGE_CONTENT_TYPES:
        raise StorageError(f'Only images are allowed in the {bucket} bucket')
    key = f"{bucket}/{path.lstrip('/')}"
    storage_from_config().put_bytes(key, data)
    current_app.logger.info('stored upload %s (%d bytes, %s)', key, len(data), content_type)
    return key, public_url(key)
