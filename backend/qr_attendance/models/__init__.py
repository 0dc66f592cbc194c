"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .course import Course, Enrollment
from .lecture import Lecture
from .attendance import AttendanceRecord, AttendanceStatus, VerificationMethod

__all__ = [
    'BaseModel', 'User', 'UserRole',
    'Course', 'Enrollment', 'Lecture',
    'AttendanceRecord', 'AttendanceStatus', 'VerificationMethod'
]
