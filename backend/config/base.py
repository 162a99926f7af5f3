"""Base configuration shared by every environment."""
import os
from datetime import timedelta


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]

    # Rate Limiting (auth and lecturer endpoints only, scans are never limited)
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'
    RATELIMIT_ENABLED = True

    # Token rotation RPC
    ROTATION_SERVICE_KEY = os.environ.get('ROTATION_SERVICE_KEY')

    # QR rendering
    QR_BOX_SIZE = 10
    QR_BORDER = 4

    # Student scan history
    RECENT_ATTENDANCE_LIMIT = 5

    # File Upload
    MAX_CONTENT_LENGTH = 2 * 1024 * 1024  # 2MB
    ALLOWED_EXTENSIONS = {'csv'}

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
