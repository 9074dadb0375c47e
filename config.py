# Application configuration - values read from environment variables
import os

# Allow multiple origins for both development and production
DEFAULT_ORIGINS = 'http://localhost:3000,http://localhost:3001'


def _origins(raw: str):
    if raw.strip() == '*':
        return '*'
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


class Config:
    PORT = int(os.environ.get('PORT', 3001))
    ENV = os.environ.get('FLASK_ENV', 'development')
    DEBUG = ENV != 'production'

    CORS_ORIGINS = _origins(os.environ.get('FRONTEND_URL', DEFAULT_ORIGINS))

    # Built front-end assets served at the root path
    STATIC_FOLDER = os.environ.get('STATIC_FOLDER', 'build')

    # Set max upload size
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_UPLOAD_MB', 50)) * 1024 * 1024

    DEFAULT_QUALITY = int(os.environ.get('DEFAULT_QUALITY', 90))
    BATCH_POLICY = os.environ.get('BATCH_POLICY', 'fail_fast')
    PROGRESS_MODE = os.environ.get('PROGRESS_MODE', 'cosmetic')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
