"""Data-access collaborators for attendance marking.

The stores wrap the shared SQLAlchemy session and hand typed, immutable
values to the services, so nothing above this module touches ORM rows.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from qr_attendance.models.attendance import AttendanceRecord, AttendanceStatus, VerificationMethod
from qr_attendance.models.base import generate_id
from qr_attendance.models.course import Enrollment
from qr_attendance.models.lecture import Lecture
from qr_attendance.services.errors import StoreError

logger = logging.getLogger(__name__)

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE
UPSERT_DIALECTS = {
    'sqlite': sqlite.insert,
    'postgresql': postgresql.insert,
}

OVERWRITTEN_COLUMNS = (
    'status', 'marked_at', 'location', 'device_info',
    'verification_method', 'notes', 'updated_at'
)


@dataclass(frozen=True)
class LectureInfo:
    """Lecture as seen by the attendance services."""
    id: str
    title: str
    course_id: str
    course_name: Optional[str]
    start_time: datetime
    end_time: datetime

    @classmethod
    def from_model(cls, lecture: Lecture) -> 'LectureInfo':
        return cls(
            id=lecture.id,
            title=lecture.title,
            course_id=lecture.course_id,
            course_name=lecture.course.name if lecture.course else None,
            start_time=lecture.start_time,
            end_time=lecture.end_time
        )

    def summary(self) -> dict:
        """Denormalized lecture block returned to clients."""
        return {
            'id': self.id,
            'title': self.title,
            'courseName': self.course_name,
            'startTime': self.start_time.isoformat(),
            'endTime': self.end_time.isoformat()
        }


@dataclass(frozen=True)
class AttendanceInfo:
    """Attendance record value; ``id`` is None until persisted."""
    lecture_id: str
    student_id: str
    status: AttendanceStatus
    marked_at: datetime
    location: Optional[str] = None
    device_info: Optional[str] = None
    verification_method: VerificationMethod = VerificationMethod.QR_SCAN
    notes: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_model(cls, record: AttendanceRecord) -> 'AttendanceInfo':
        return cls(
            id=record.id,
            lecture_id=record.lecture_id,
            student_id=record.student_id,
            status=record.status,
            marked_at=record.marked_at,
            location=record.location,
            device_info=record.device_info,
            verification_method=record.verification_method,
            notes=record.notes
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data['status'] = self.status.value
        data['verification_method'] = self.verification_method.value
        data['marked_at'] = self.marked_at.isoformat()
        return data


@contextmanager
def store_operation(session, action: str):
    """Roll back and convert driver failures into ``StoreError``."""
    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error('Datastore failure while %s: %s', action, exc)
        raise StoreError() from exc


class LectureStore:
    """Read access to lectures."""

    def __init__(self, session):
        self.session = session

    def get_by_id(self, lecture_id: str) -> Optional[LectureInfo]:
        with store_operation(self.session, 'loading lecture'):
            lecture = self.session.get(Lecture, lecture_id)
            if lecture is None:
                return None
            return LectureInfo.from_model(lecture)


class EnrollmentStore:
    """Student/course membership."""

    def __init__(self, session):
        self.session = session

    def exists(self, student_id: str, course_id: str) -> bool:
        with store_operation(self.session, 'checking enrollment'):
            found = self.session.execute(
                select(Enrollment.id)
                .filter_by(student_id=student_id, course_id=course_id)
                .limit(1)
            ).scalar_one_or_none()
        return found is not None

    def enroll(self, course_id: str, student_ids: Iterable[str]) -> Tuple[List[str], List[str]]:
        """Enroll students, returning (newly_enrolled, already_enrolled)."""
        student_ids = list(dict.fromkeys(student_ids))

        with store_operation(self.session, 'enrolling students'):
            already = set(self.session.execute(
                select(Enrollment.student_id)
                .where(Enrollment.course_id == course_id)
                .where(Enrollment.student_id.in_(student_ids))
            ).scalars())

            new_ids = [sid for sid in student_ids if sid not in already]
            for student_id in new_ids:
                self.session.add(Enrollment(student_id=student_id, course_id=course_id))
            self.session.commit()

        return new_ids, [sid for sid in student_ids if sid in already]


class AttendanceStore:
    """Attendance rows keyed by (lecture_id, student_id)."""

    def __init__(self, session):
        self.session = session

    def find_by_lecture_and_student(self, lecture_id: str, student_id: str) -> Optional[AttendanceInfo]:
        with store_operation(self.session, 'looking up attendance'):
            record = self.session.execute(
                select(AttendanceRecord).filter_by(lecture_id=lecture_id, student_id=student_id)
            ).scalar_one_or_none()
            if record is None:
                return None
            return AttendanceInfo.from_model(record)

    def upsert(self, record: AttendanceInfo) -> AttendanceInfo:
        """Insert the record, or overwrite the existing one for the same pair."""
        now = datetime.utcnow()
        values = {
            'id': generate_id(),
            'lecture_id': record.lecture_id,
            'student_id': record.student_id,
            'status': record.status,
            'marked_at': record.marked_at,
            'location': record.location,
            'device_info': record.device_info,
            'verification_method': record.verification_method,
            'notes': record.notes,
            'created_at': now,
            'updated_at': now
        }
        overwrite = {key: values[key] for key in OVERWRITTEN_COLUMNS}

        with store_operation(self.session, 'writing attendance'):
            dialect = self.session.get_bind().dialect.name
            dialect_insert = UPSERT_DIALECTS.get(dialect)

            if dialect_insert is not None:
                stmt = dialect_insert(AttendanceRecord.__table__).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=['lecture_id', 'student_id'],
                    set_=overwrite
                )
                self.session.execute(stmt)
            else:
                self._insert_or_update(values, overwrite)

            self.session.commit()

        stored = self.find_by_lecture_and_student(record.lecture_id, record.student_id)
        if stored is None:
            raise StoreError()
        return stored

    def _insert_or_update(self, values: dict, overwrite: dict) -> None:
        table = AttendanceRecord.__table__
        try:
            with self.session.begin_nested():
                self.session.execute(insert(table).values(**values))
        except IntegrityError:
            # A concurrent scan won the insert; ours becomes the update
            self.session.execute(
                update(table)
                .where(table.c.lecture_id == values['lecture_id'])
                .where(table.c.student_id == values['student_id'])
                .values(**overwrite)
            )
