"""Application configuration module.

Settings are read from environment variables so the same code runs locally,
in CI and in production. A local ``.env`` file is loaded first when present.
``DATABASE_URL`` values starting with ``postgres://`` are rewritten to
``postgresql://`` because SQLAlchemy no longer accepts the short scheme.
Without a database URL the service falls back to a local SQLite file.
"""

import os
from dotenv import load_dotenv


def _env_flag(name: str, default: str = '0') -> bool:
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration read by Flask and its extensions."""

    load_dotenv()

    # Signs the session cookie that carries the signed-in teacher.
    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-this-secret-in-prod')

    _db_url = os.environ.get('DATABASE_URL', '')
    if _db_url.startswith('postgres://'):
        _db_url = _db_url.replace('postgres://', 'postgresql://', 1)
    SQLALCHEMY_DATABASE_URI = _db_url or 'sqlite:///school.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Create missing tables when the application starts.
    AUTO_CREATE_TABLES = _env_flag('AUTO_CREATE_TABLES', '1')

    # Serve canned data to every visitor instead of touching the database.
    DEMO_MODE = _env_flag('DEMO_MODE')

    # Header carrying a teacher id persisted by the client between visits.
    TEACHER_ID_HEADER = os.environ.get('TEACHER_ID_HEADER', 'X-Teacher-Id')

    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', os.path.join(os.getcwd(), 'uploads'))
    UPLOAD_URL_PREFIX = '/uploads'
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_UPLOAD_BYTES', 10 * 1024 * 1024))

    HOMEWORK_LIST_LIMIT = int(os.environ.get('HOMEWORK_LIST_LIMIT', 50))
