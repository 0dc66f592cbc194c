"""Lecture model."""
from qr_attendance import db
from qr_attendance.models.base import BaseModel

class Lecture(BaseModel):
    """Scheduled class session of a course."""

    __tablename__ = 'lectures'
    __table_args__ = (
        db.CheckConstraint('start_time < end_time', name='ck_lecture_start_before_end'),
    )

    title = db.Column(db.String(255), nullable=False)
    course_id = db.Column(db.String(36), db.ForeignKey('courses.id'), nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    room = db.Column(db.String(50), nullable=True)

    # Only field that may change once attendance is being recorded
    qr_code_data = db.Column(db.Text, nullable=True)

    attendance_records = db.relationship('AttendanceRecord', backref='lecture', lazy='dynamic')

    def is_in_progress(self, now) -> bool:
        return self.start_time <= now <= self.end_time

    def to_dict(self):
        """Convert to dictionary."""
        data = super().to_dict(exclude=['qr_code_data'])
        data['course_name'] = self.course.name if self.course else None
        return data

    def __repr__(self):
        return f'<Lecture {self.title}>'
