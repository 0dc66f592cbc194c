"""Shared fixtures for the test suite."""
from datetime import datetime, timedelta
import pytest
from flask_jwt_extended import create_access_token
from qr_attendance import create_app, db
from qr_attendance.models.course import Course, Enrollment
from qr_attendance.models.lecture import Lecture
from qr_attendance.models.user import User, UserRole

PASSWORD = 'password123'

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

def make_user(email, role, name='Test User'):
    user = User(email=email, name=name, role=role)
    user.set_password(PASSWORD)
    return user.save()

def auth_headers(user):
    """Bearer header for a user."""
    token = create_access_token(identity=user.id)
    return {'Authorization': f'Bearer {token}'}

@pytest.fixture
def teacher(app):
    return make_user('teacher@example.com', UserRole.TEACHER, 'Test Teacher')

@pytest.fixture
def other_teacher(app):
    return make_user('other.teacher@example.com', UserRole.TEACHER, 'Other Teacher')

@pytest.fixture
def student(app):
    return make_user('student@example.com', UserRole.STUDENT, 'Test Student')

@pytest.fixture
def course(teacher):
    return Course(name='Databases', code='CS220', teacher_id=teacher.id).save()

@pytest.fixture
def enrolled_student(course, student):
    Enrollment(student_id=student.id, course_id=course.id).save()
    return student

@pytest.fixture
def make_lecture(course):
    """Create lectures relative to the current UTC time."""
    def _make(start_offset_minutes=0, duration_minutes=60, title='Normalization'):
        start = datetime.utcnow() + timedelta(minutes=start_offset_minutes)
        return Lecture(
            title=title,
            course_id=course.id,
            room='B12',
            start_time=start,
            end_time=start + timedelta(minutes=duration_minutes)
        ).save()
    return _make
