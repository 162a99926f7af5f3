"""Development configuration."""
import os

from .base import Config


class DevelopmentConfig(Config):
    """Development configuration class."""

    DEBUG = True
    TESTING = False
    SQLALCHEMY_DATABASE_URI = os.getenv('DEV_DATABASE_URL') or \
        'sqlite:///qr_attendance_dev.db'
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO') == '1'

    # Rotation RPC is open to a fixed key locally
    ROTATION_SERVICE_KEY = os.getenv('ROTATION_SERVICE_KEY', 'dev-rotation-key')

    LOG_LEVEL = 'DEBUG'
