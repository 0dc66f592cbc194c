"""Course and enrollment models."""
from datetime import datetime
from qr_attendance import db
from qr_attendance.models.base import BaseModel

class Course(BaseModel):
    """Course taught by a teacher."""

    __tablename__ = 'courses'

    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    teacher_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)

    lectures = db.relationship('Lecture', backref='course', lazy='dynamic')
    enrollments = db.relationship('Enrollment', backref='course', lazy='dynamic')

    def __repr__(self):
        return f'<Course {self.code}>'

class Enrollment(BaseModel):
    """A student's membership in a course."""

    __tablename__ = 'course_enrollments'
    __table_args__ = (
        db.UniqueConstraint('student_id', 'course_id', name='uq_enrollment_student_course'),
    )

    student_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    course_id = db.Column(db.String(36), db.ForeignKey('courses.id'), nullable=False, index=True)
    enrolled_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<Enrollment {self.student_id}-{self.course_id}>'
