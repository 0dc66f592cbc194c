"""Attendance model."""
from datetime import datetime
from enum import Enum
from qr_attendance import db
from qr_attendance.models.base import BaseModel

class AttendanceStatus(Enum):
    """Attendance status enumeration."""
    PRESENT = 'present'
    LATE = 'late'
    ABSENT = 'absent'
    EXCUSED = 'excused'

class VerificationMethod(Enum):
    """How an attendance record was produced."""
    QR_SCAN = 'qr_scan'
    MANUAL = 'manual'

class AttendanceRecord(BaseModel):
    """Attendance record model, one per lecture and student."""

    __tablename__ = 'attendance'
    __table_args__ = (
        db.UniqueConstraint('lecture_id', 'student_id', name='uq_attendance_lecture_student'),
    )

    lecture_id = db.Column(db.String(36), db.ForeignKey('lectures.id'), nullable=False, index=True)
    student_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    marked_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    location = db.Column(db.Text, nullable=True)
    device_info = db.Column(db.Text, nullable=True)

    verification_method = db.Column(
        db.Enum(VerificationMethod), nullable=False, default=VerificationMethod.QR_SCAN
    )
    notes = db.Column(db.Text, nullable=True)

    def __repr__(self):
        return f'<AttendanceRecord {self.student_id}-{self.lecture_id}>'
