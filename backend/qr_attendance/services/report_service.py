"""Attendance reporting for students and lectures."""
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from sqlalchemy import and_, select
from qr_attendance import db
from qr_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from qr_attendance.models.course import Course, Enrollment
from qr_attendance.models.lecture import Lecture
from qr_attendance.models.user import User

TIME_RANGES = {
    'week': timedelta(days=7),
    'month': timedelta(days=30),
    'semester': timedelta(days=120)
}

class ReportService:
    """Read-only attendance summaries for students and lectures."""

    @staticmethod
    def get_history(student_id: str, limit: int = 10) -> List[Dict]:
        """Most recent attendance records of a student, newest first."""
        rows = db.session.execute(
            select(AttendanceRecord, Lecture, Course)
            .join(Lecture, AttendanceRecord.lecture_id == Lecture.id)
            .join(Course, Lecture.course_id == Course.id)
            .where(AttendanceRecord.student_id == student_id)
            .order_by(AttendanceRecord.marked_at.desc())
            .limit(limit)
        ).all()

        return [
            {
                'id': record.id,
                'lecture_id': lecture.id,
                'lecture': lecture.title,
                'course': course.name,
                'room': lecture.room,
                'status': record.status.value,
                'verification_method': record.verification_method.value,
                'marked_at': record.marked_at.isoformat()
            }
            for record, lecture, course in rows
        ]

    @staticmethod
    def get_stats(student_id: str, time_range: str = 'month', now: Optional[datetime] = None) -> Dict:
        """
        Attendance statistics over lectures of the student's courses.

        Lectures with no record count as missed; ``absent`` is never stored
        for them.
        """
        if time_range not in TIME_RANGES:
            raise ValueError(f"Unknown time range: {time_range}")

        now = now or datetime.utcnow()
        since = now - TIME_RANGES[time_range]

        lecture_ids = db.session.execute(
            select(Lecture.id)
            .join(Enrollment, Enrollment.course_id == Lecture.course_id)
            .where(Enrollment.student_id == student_id)
            .where(Lecture.start_time >= since)
            .where(Lecture.start_time <= now)
        ).scalars().all()

        statuses = []
        if lecture_ids:
            statuses = db.session.execute(
                select(AttendanceRecord.status)
                .where(AttendanceRecord.student_id == student_id)
                .where(AttendanceRecord.lecture_id.in_(lecture_ids))
            ).scalars().all()

        total = len(lecture_ids)
        present = statuses.count(AttendanceStatus.PRESENT)
        late = statuses.count(AttendanceStatus.LATE)
        excused = statuses.count(AttendanceStatus.EXCUSED)
        attended = present + late
        rate = (attended / total * 100) if total > 0 else 0

        return {
            'time_range': time_range,
            'total_lectures': total,
            'attended': attended,
            'present': present,
            'late': late,
            'excused': excused,
            'missed': total - attended - excused,
            'attendance_rate': round(rate, 1)
        }

    @staticmethod
    def get_lecture_roster(lecture: Lecture) -> Dict:
        """
        Every student enrolled in the lecture's course with their status.

        Students without a record are reported as ``absent``.
        """
        rows = db.session.execute(
            select(User, AttendanceRecord)
            .join(Enrollment, Enrollment.student_id == User.id)
            .outerjoin(AttendanceRecord, and_(
                AttendanceRecord.student_id == User.id,
                AttendanceRecord.lecture_id == lecture.id
            ))
            .where(Enrollment.course_id == lecture.course_id)
            .order_by(User.name, User.email)
        ).all()

        students = []
        for user, record in rows:
            students.append({
                'student_id': user.id,
                'name': user.name,
                'email': user.email,
                'status': record.status.value if record else AttendanceStatus.ABSENT.value,
                'marked_at': record.marked_at.isoformat() if record else None,
                'location': record.location if record else None,
                'device_info': record.device_info if record else None,
                'verification_method': record.verification_method.value if record else None
            })

        statuses = [student['status'] for student in students]
        total = len(students)
        present = statuses.count(AttendanceStatus.PRESENT.value)
        late = statuses.count(AttendanceStatus.LATE.value)
        rate = ((present + late) / total * 100) if total > 0 else 0

        return {
            'lecture': {
                'id': lecture.id,
                'title': lecture.title,
                'course_name': lecture.course.name,
                'start_time': lecture.start_time.isoformat(),
                'end_time': lecture.end_time.isoformat()
            },
            'students': students,
            'statistics': {
                'total': total,
                'present': present,
                'late': late,
                'excused': statuses.count(AttendanceStatus.EXCUSED.value),
                'absent': statuses.count(AttendanceStatus.ABSENT.value),
                'attendance_rate': round(rate, 1)
            }
        }
