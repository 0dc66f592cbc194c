"""Lectures API endpoints."""
from datetime import datetime
from flask import Blueprint, request, current_app, g
from qr_attendance import db, limiter
from qr_attendance.models.course import Course
from qr_attendance.models.lecture import Lecture
from qr_attendance.services.errors import MissingField
from qr_attendance.services.qr_service import QRService
from qr_attendance.services.report_service import ReportService
from qr_attendance.utils.decorators import teacher_required
from qr_attendance.utils.helpers import success_response, error_response
from qr_attendance.utils.validators import Validator, ValidationError

lectures_bp = Blueprint('lectures', __name__)

@lectures_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Lectures service is running')

@lectures_bp.route('/', methods=['POST'])
@teacher_required
def create_lecture():
    """Schedule a lecture for one of the teacher's courses."""
    data = request.get_json(silent=True)

    if not isinstance(data, dict):
        return error_response("Request body must be JSON", 400)

    required_fields = ['title', 'course_id', 'start_time', 'end_time']
    validation = Validator.validate_required_fields(data, required_fields)

    if not validation['is_valid']:
        return error_response(', '.join(validation['errors']), 400)

    validation = Validator.validate_string_fields(data, ['title', 'course_id', 'room'])
    if not validation['is_valid']:
        return error_response(', '.join(validation['errors']), 400)

    title = data['title'].strip()
    if not title:
        return error_response("title is required", 400)

    try:
        start_time = Validator.parse_datetime(data['start_time'])
        end_time = Validator.parse_datetime(data['end_time'])
    except ValidationError as e:
        return error_response(str(e), 400)

    if start_time >= end_time:
        return error_response("End time must be after start time", 400)

    course = db.session.get(Course, data['course_id'])
    if course is None:
        return error_response("Course not found", 404)

    if not g.current_user.can_manage_course(course):
        return error_response("You can only schedule lectures for your own courses", 403)

    lecture = Lecture(
        title=title,
        course_id=course.id,
        room=(data.get('room') or '').strip().upper() or None,
        start_time=start_time,
        end_time=end_time
    )
    lecture.save()

    current_app.logger.info('Lecture %s scheduled for course %s', lecture.id, course.code)
    return success_response(
        data=lecture.to_dict(),
        message="Lecture created successfully"
    ), 201

@lectures_bp.route('/<lecture_id>/qr', methods=['GET'])
@teacher_required
def get_lecture_qr(lecture_id):
    """Return the lecture's QR payload and image, creating the payload if needed."""
    lecture = db.session.get(Lecture, lecture_id)
    if lecture is None:
        return error_response("Lecture not found", 404)

    if not g.current_user.can_manage_course(lecture.course):
        return error_response("You can only access QR codes for your own courses", 403)

    regenerate = request.args.get('regenerate', 'false').lower() == 'true'
    if regenerate or not lecture.qr_code_data:
        lecture.qr_code_data = QRService.build_payload(lecture)
        lecture.save()

    config = current_app.config
    qr_image = QRService.render_png(
        lecture.qr_code_data,
        box_size=config['QR_BOX_SIZE'],
        border=config['QR_BORDER']
    )

    return success_response(data={
        'lectureId': lecture.id,
        'title': lecture.title,
        'courseName': lecture.course.name,
        'startTime': lecture.start_time.isoformat(),
        'endTime': lecture.end_time.isoformat(),
        'qrCodeData': lecture.qr_code_data,
        'qrCodeImage': qr_image,
        'isActive': lecture.is_in_progress(datetime.utcnow())
    })

@lectures_bp.route('/<lecture_id>/students', methods=['GET'])
@teacher_required
def get_lecture_students(lecture_id):
    """List the students enrolled for a lecture with their attendance."""
    lecture = db.session.get(Lecture, lecture_id)
    if lecture is None:
        return error_response("Lecture not found", 404)

    if not g.current_user.can_manage_course(lecture.course):
        return error_response("You can only view attendance for your own courses", 403)

    return success_response(data=ReportService.get_lecture_roster(lecture))

@lectures_bp.route('/validate-qr', methods=['POST'])
@limiter.limit(lambda: current_app.config['ATTENDANCE_MARK_RATE_LIMIT'])
def validate_qr():
    """Check a scanned QR code without recording attendance."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise MissingField('Request body must be JSON')

    qr_payload = data.get('qrCodeData')
    lecture, active = current_app.extensions['attendance_marker'].check_payload(qr_payload)

    return success_response(
        data={'lecture': lecture.summary(), 'isActive': active},
        message='QR code is valid'
    )
