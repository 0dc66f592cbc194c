"""Courses API endpoints."""
from flask import Blueprint, request, g
from sqlalchemy.exc import IntegrityError
from qr_attendance import db
from qr_attendance.models.course import Course
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.stores import EnrollmentStore
from qr_attendance.utils.decorators import teacher_required
from qr_attendance.utils.helpers import success_response, error_response
from qr_attendance.utils.validators import Validator

courses_bp = Blueprint('courses', __name__)

@courses_bp.route('/', methods=['POST'])
@teacher_required
def create_course():
    """Create a course taught by the current teacher."""
    data = request.get_json(silent=True)

    if not isinstance(data, dict):
        return error_response("Request body must be JSON", 400)

    validation = Validator.validate_required_fields(data, ['name', 'code'])
    if not validation['is_valid']:
        return error_response(', '.join(validation['errors']), 400)

    validation = Validator.validate_string_fields(data, ['name', 'code'])
    if not validation['is_valid']:
        return error_response(', '.join(validation['errors']), 400)

    name = data['name'].strip()
    code = data['code'].strip().upper()
    if not name or not code:
        return error_response("name and code must not be blank", 400)

    course = Course(
        name=name,
        code=code,
        teacher_id=g.current_user.id
    )

    try:
        course.save()
    except IntegrityError:
        db.session.rollback()
        return error_response("Course code already exists", 409)

    return success_response(
        data=course.to_dict(),
        message="Course created successfully"
    ), 201

@courses_bp.route('/<course_id>/enroll', methods=['POST'])
@teacher_required
def enroll_students(course_id):
    """Enroll students into a course; already enrolled students are skipped."""
    data = request.get_json(silent=True) or {}
    student_ids = data.get('studentIds')

    if not isinstance(student_ids, list) or not student_ids:
        return error_response("Student IDs array is required", 400)

    if not all(isinstance(student_id, str) for student_id in student_ids):
        return error_response("Student IDs must be strings", 400)

    course = db.session.get(Course, course_id)
    if course is None:
        return error_response("Course not found", 404)

    if not g.current_user.can_manage_course(course):
        return error_response("You can only enroll students in your own courses", 403)

    found = set(db.session.execute(
        db.select(User.id)
        .where(User.id.in_(student_ids))
        .where(User.role == UserRole.STUDENT)
    ).scalars())
    missing = [sid for sid in student_ids if sid not in found]
    if missing:
        return error_response(f"Students not found: {', '.join(map(str, missing))}", 404)

    new_ids, already_ids = EnrollmentStore(db.session).enroll(course.id, student_ids)

    if not new_ids:
        message = 'All students are already enrolled in this course'
    else:
        message = f'Enrolled {len(new_ids)} students'

    return success_response(
        data={
            'courseId': course.id,
            'enrolled': new_ids,
            'alreadyEnrolled': already_ids
        },
        message=message
    )
