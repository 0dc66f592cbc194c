"""Settings shared by every environment."""
import os
from datetime import timedelta

class BaseConfig:
    """Base configuration class."""

    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # JWT Configuration
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt-secret-key-change-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL', 'memory://')
    RATELIMIT_DEFAULT = "200 per day;50 per hour"
    ATTENDANCE_MARK_RATE_LIMIT = "30 per minute"

    # Attendance
    ATTENDANCE_BUFFER_MINUTES = 15
    ATTENDANCE_LATE_THRESHOLD_MINUTES = 10

    # Reporting
    HISTORY_DEFAULT_LIMIT = 10
    HISTORY_MAX_LIMIT = 100

    # QR images
    QR_BOX_SIZE = 10
    QR_BORDER = 2

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
