"""Uploaded files: profile pictures and homework attachments."""

from __future__ import annotations

import os
import time
from typing import Optional

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from app_logging import get_logger
from demo import PLACEHOLDER_IMAGE_URL
from errors import StoreUnavailable

TEACHER_PROFILE_FOLDER = 'teacher_profile_pics'
STUDENT_PROFILE_FOLDER = 'student_profile_pics'
HOMEWORK_FOLDER = 'homework'

_logger = get_logger('school.uploads')


class BlobStore:
    """Stores uploads under ``root`` and hands back the URL they are served from."""

    def __init__(self, root: str, url_prefix: str = '/uploads') -> None:
        self.root = root
        self.url_prefix = url_prefix.rstrip('/')

    def upload(self, file: FileStorage, folder: str, demo: bool = False) -> str:
        if demo:
            return PLACEHOLDER_IMAGE_URL

        filename = secure_filename(file.filename or '') or 'upload'
        stored_name = f"{int(time.time() * 1000)}_{filename}"
        directory = os.path.join(self.root, folder)
        try:
            os.makedirs(directory, exist_ok=True)
            file.save(os.path.join(directory, stored_name))
        except OSError as exc:
            _logger.exception('upload failed', extra={'folder': folder})
            raise StoreUnavailable('Could not upload the file. Please try again.') from exc
        _logger.info('file uploaded', extra={'folder': folder, 'stored_name': stored_name})
        return f"{self.url_prefix}/{folder}/{stored_name}"


def blob_store() -> BlobStore:
    config = current_app.config
    return BlobStore(config['UPLOAD_FOLDER'], config.get('UPLOAD_URL_PREFIX', '/uploads'))


def upload_if_present(file: Optional[FileStorage], folder: str, demo: bool = False) -> Optional[str]:
    """URL of the stored upload, or ``None`` when no file was sent."""
    if file is None or not file.filename:
        return None
    return blob_store().upload(file, folder, demo=demo)
