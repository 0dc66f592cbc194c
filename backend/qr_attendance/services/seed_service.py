"""Database seeding service for demo data."""
from datetime import datetime, timedelta
from typing import List
from qr_attendance import db
from qr_attendance.models.course import Course, Enrollment
from qr_attendance.models.lecture import Lecture
from qr_attendance.models.user import User, UserRole

DEMO_PASSWORD = 'password123'

class SeedService:
    """Service to seed database with demo data."""

    @staticmethod
    def seed_all() -> List[str]:
        """Seed users, a course with enrolled students and today's lectures."""
        teacher = SeedService._get_or_create_user('teacher@university.edu', 'Demo Teacher', UserRole.TEACHER)
        SeedService._get_or_create_user('admin@university.edu', 'System Administrator', UserRole.ADMIN)
        students = [
            SeedService._get_or_create_user(f'student{i}@university.edu', f'Student {i}', UserRole.STUDENT)
            for i in range(1, 6)
        ]

        course = db.session.execute(
            db.select(Course).filter_by(code='CS101')
        ).scalar_one_or_none()
        if course is None:
            course = Course(name='Introduction to Programming', code='CS101', teacher_id=teacher.id)
            db.session.add(course)
            db.session.flush()

        for student in students:
            exists = db.session.execute(
                db.select(Enrollment.id).filter_by(student_id=student.id, course_id=course.id)
            ).first()
            if not exists:
                db.session.add(Enrollment(student_id=student.id, course_id=course.id))

        now = datetime.utcnow().replace(second=0, microsecond=0)
        lectures = [
            Lecture(title='Variables and Types', course_id=course.id, room='A101',
                    start_time=now - timedelta(minutes=5), end_time=now + timedelta(minutes=55)),
            Lecture(title='Control Flow', course_id=course.id, room='A101',
                    start_time=now + timedelta(days=1), end_time=now + timedelta(days=1, hours=1))
        ]
        db.session.add_all(lectures)
        db.session.commit()

        return [
            f'Teacher: teacher@university.edu / {DEMO_PASSWORD}',
            f'Admin: admin@university.edu / {DEMO_PASSWORD}',
            f'Students: student1..5@university.edu / {DEMO_PASSWORD}',
            f'Course {course.code}: {len(students)} students, lecture in progress: {lectures[0].id}'
        ]

    @staticmethod
    def _get_or_create_user(email: str, name: str, role: UserRole) -> User:
        user = db.session.execute(db.select(User).filter_by(email=email)).scalar_one_or_none()
        if user is None:
            user = User(email=email, name=name, role=role)
            user.set_password(DEMO_PASSWORD)
            db.session.add(user)
            db.session.flush()
        return user
