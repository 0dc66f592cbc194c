"""Attendance error taxonomy.

Every error carries a stable machine-readable ``reason`` and the HTTP status
the API layer answers with. Only ``StoreError`` is worth retrying.
"""


class AttendanceError(Exception):
    """Base class for attendance marking failures."""

    reason = 'attendance_error'
    status_code = 400
    default_message = 'Attendance could not be marked'

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> dict:
        return {
            'error': True,
            'message': self.message,
            'reason': self.reason,
            'status_code': self.status_code
        }


class InvalidPayload(AttendanceError):
    reason = 'invalid_payload'
    status_code = 400
    default_message = 'Invalid QR code format'


class MissingField(AttendanceError):
    reason = 'missing_field'
    status_code = 400
    default_message = 'QR code data and student ID are required'


class LectureNotFound(AttendanceError):
    reason = 'lecture_not_found'
    status_code = 404
    default_message = 'Lecture not found'


class LectureNotActive(AttendanceError):
    reason = 'lecture_not_active'
    status_code = 400
    default_message = 'Lecture is not currently active for attendance'


class NotEnrolled(AttendanceError):
    reason = 'not_enrolled'
    status_code = 403
    default_message = 'Student is not enrolled in this course'


class StoreError(AttendanceError):
    """Transient datastore failure; the message never carries driver details."""

    reason = 'store_error'
    status_code = 500
    default_message = 'Failed to mark attendance'
