"""Disk storage for uploaded course files.

Only the public locator is kept in the database; the bytes are written under
``UPLOAD_DIR/<section>/`` and served from ``/uploads``.
"""

import logging
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from coursehub.core import config
from coursehub.core.errors import FileRejected

logger = logging.getLogger(__name__)

SECTION_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,64}$')
STEM_PATTERN = re.compile(r'[^A-Za-z0-9_.-]+')


@dataclass(frozen=True)
class StoredFile:
    filename: str
    locator: str
    size: int
    path: Path


def validate_section(section: str) -> str:
    if not SECTION_PATTERN.fullmatch(section or ''):
        raise FileRejected('Section must contain only letters, digits, "-" or "_".')
    return section


def build_stored_name(original_name: str) -> str:
    path = Path(original_name)
    stem = STEM_PATTERN.sub('-', path.stem).strip('-.') or 'file'
    unique_suffix = f'{int(time.time() * 1000)}-{secrets.randbelow(10**9)}'
    return f'{stem}-{unique_suffix}{path.suffix.lower()}'


def check_upload_policy(original_name: str, size: int) -> None:
    extension = Path(original_name or '').suffix.lower()
    if extension not in config.ALLOWED_UPLOAD_EXTENSIONS:
        allowed = ', '.join(config.ALLOWED_UPLOAD_EXTENSIONS)
        raise FileRejected(f'Only the following file types are allowed: {allowed}')
    if size == 0:
        raise FileRejected('File is required.')
    if size > config.MAX_UPLOAD_BYTES:
        raise FileRejected(f'File exceeds the {config.MAX_UPLOAD_BYTES} byte upload limit.')


def store_upload(section: str, original_name: str, payload: bytes) -> StoredFile:
    validate_section(section)
    check_upload_policy(original_name, len(payload))

    target_dir = Path(config.UPLOAD_DIR) / section
    target_dir.mkdir(parents=True, exist_ok=True)

    stored_name = build_stored_name(original_name)
    (target_dir / stored_name).write_bytes(payload)
    logger.info('Stored upload %s (%d bytes) in section %s', stored_name, len(payload), section)

    return StoredFile(
        filename=stored_name,
        locator=f'{config.PUBLIC_BASE_URL}/uploads/{section}/{stored_name}',
        size=len(payload),
        path=target_dir / stored_name,
    )


def discard_upload(stored: StoredFile) -> None:
    """Remove bytes written by ``store_upload`` whose metadata was never saved."""
    stored.path.unlink(missing_ok=True)
    logger.info('Discarded upload %s', stored.filename)
