"""Attendance marking service.

Decides whether a scanned QR code earns a student an attendance record for a
lecture and writes that record:

1. Parse the QR payload (JSON object carrying ``lectureId``)
2. Load the lecture; scanning is accepted from ``start - buffer`` up to
   ``end + buffer``
3. Require an enrollment in the lecture's course
4. Status is ``late`` once ``start + late threshold`` has passed, otherwise
   ``present``
5. One atomic upsert per call; a repeated scan overwrites the earlier one
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from qr_attendance.models.attendance import AttendanceStatus, VerificationMethod
from qr_attendance.services.errors import (
    InvalidPayload, LectureNotActive, LectureNotFound, MissingField, NotEnrolled
)
from qr_attendance.services.stores import AttendanceInfo, LectureInfo

logger = logging.getLogger(__name__)

DEFAULT_BUFFER = timedelta(minutes=15)
DEFAULT_LATE_THRESHOLD = timedelta(minutes=10)


@dataclass(frozen=True)
class MarkResult:
    """Outcome of a successful mark."""
    attendance: AttendanceInfo
    lecture: LectureInfo
    updated: bool

    @property
    def message(self) -> str:
        status = self.attendance.status.value
        if self.updated:
            return f'Attendance updated to {status}'
        return f'Attendance marked as {status}'


def parse_qr_payload(qr_payload: str) -> str:
    """Return the lecture id carried by a QR payload."""
    try:
        data = json.loads(qr_payload)
    except (TypeError, ValueError):
        raise InvalidPayload()

    if not isinstance(data, dict):
        raise InvalidPayload()

    lecture_id = data.get('lectureId')
    if isinstance(lecture_id, bool) or not isinstance(lecture_id, (str, int)):
        raise InvalidPayload('QR code does not reference a lecture')

    lecture_id = str(lecture_id).strip()
    if not lecture_id:
        raise InvalidPayload('QR code does not reference a lecture')
    return lecture_id


class AttendanceMarker:
    """Validates scans and records attendance through the stores."""

    def __init__(
        self,
        lectures,
        enrollments,
        attendance,
        buffer: timedelta = DEFAULT_BUFFER,
        late_threshold: timedelta = DEFAULT_LATE_THRESHOLD,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.lectures = lectures
        self.enrollments = enrollments
        self.attendance = attendance
        self.buffer = buffer
        self.late_threshold = late_threshold
        self.clock = clock

    def is_active(self, lecture: LectureInfo, now: datetime) -> bool:
        """Check whether ``now`` falls inside the padded attendance window."""
        return lecture.start_time - self.buffer <= now <= lecture.end_time + self.buffer

    def status_for(self, lecture: LectureInfo, now: datetime) -> AttendanceStatus:
        # Threshold never extends past the end of a short lecture
        threshold = min(self.late_threshold, lecture.end_time - lecture.start_time)
        if now > lecture.start_time + threshold:
            return AttendanceStatus.LATE
        return AttendanceStatus.PRESENT

    def check_payload(self, qr_payload: str) -> Tuple[LectureInfo, bool]:
        """Resolve a QR payload to its lecture and window state without recording anything."""
        if not qr_payload:
            raise MissingField('QR code data is required')

        lecture = self.lectures.get_by_id(parse_qr_payload(qr_payload))
        if lecture is None:
            raise LectureNotFound()
        return lecture, self.is_active(lecture, self.clock())

    def mark_attendance(
        self,
        qr_payload: str,
        student_id: str,
        location: Optional[str] = None,
        device_info: Optional[str] = None
    ) -> MarkResult:
        """Mark a student's attendance from a scanned QR payload."""
        if not qr_payload or not student_id:
            raise MissingField()

        lecture_id = parse_qr_payload(qr_payload)
        student_id = str(student_id).strip()
        if not student_id:
            raise MissingField()

        lecture = self.lectures.get_by_id(lecture_id)
        if lecture is None:
            raise LectureNotFound()

        now = self.clock()
        if not self.is_active(lecture, now):
            logger.info('Rejected scan for inactive lecture %s by %s', lecture.id, student_id)
            raise LectureNotActive()

        if not self.enrollments.exists(student_id, lecture.course_id):
            logger.info('Rejected scan for lecture %s by unenrolled %s', lecture.id, student_id)
            raise NotEnrolled()

        existing = self.attendance.find_by_lecture_and_student(lecture.id, student_id)
        status = self.status_for(lecture, now)

        record = self.attendance.upsert(AttendanceInfo(
            lecture_id=lecture.id,
            student_id=student_id,
            status=status,
            marked_at=now,
            location=location or None,
            device_info=device_info or None,
            verification_method=VerificationMethod.QR_SCAN
        ))

        logger.info(
            'Attendance %s for lecture %s student %s: %s',
            'updated' if existing else 'marked', lecture.id, student_id, status.value
        )
        return MarkResult(attendance=record, lecture=lecture, updated=existing is not None)

    def record_manual(
        self,
        lecture_id: str,
        student_id: str,
        status: AttendanceStatus,
        notes: Optional[str] = None
    ) -> MarkResult:
        """Set a student's status by hand, bypassing the time window."""
        if not lecture_id or not student_id:
            raise MissingField('Lecture ID and student ID are required')

        lecture = self.lectures.get_by_id(lecture_id)
        if lecture is None:
            raise LectureNotFound()

        if not self.enrollments.exists(student_id, lecture.course_id):
            raise NotEnrolled()

        existing = self.attendance.find_by_lecture_and_student(lecture.id, student_id)
        record = self.attendance.upsert(AttendanceInfo(
            lecture_id=lecture.id,
            student_id=student_id,
            status=status,
            marked_at=self.clock(),
            verification_method=VerificationMethod.MANUAL,
            notes=notes or None
        ))

        logger.info('Manual attendance for lecture %s student %s: %s', lecture.id, student_id, status.value)
        return MarkResult(attendance=record, lecture=lecture, updated=existing is not None)
