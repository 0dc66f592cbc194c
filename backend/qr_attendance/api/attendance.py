"""Attendance API endpoints."""
import json
from flask import Blueprint, request, current_app, g
from qr_attendance import db, limiter
from qr_attendance.models.attendance import AttendanceStatus
from qr_attendance.models.lecture import Lecture
from qr_attendance.services.errors import MissingField
from qr_attendance.services.report_service import ReportService, TIME_RANGES
from qr_attendance.utils.decorators import login_required, teacher_required
from qr_attendance.utils.helpers import success_response, error_response
from qr_attendance.utils.validators import Validator

attendance_bp = Blueprint('attendance', __name__)

def _marker():
    return current_app.extensions['attendance_marker']

def _as_text(value):
    """Client metadata may arrive as an object; store it as text."""
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value, separators=(',', ':'))

def _target_student_id():
    """
    Resolve whose records a reporting request is about.
    Returns (student_id, error_response_or_None).
    """
    user = g.current_user
    requested = request.args.get('studentId')

    if user.is_student():
        if requested and requested != user.id:
            return None, error_response("Students can only view their own attendance", 403)
        return user.id, None

    if not requested:
        return None, error_response("Missing studentId", 400)
    return requested, None

@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')

@attendance_bp.route('/mark', methods=['POST'])
@limiter.limit(lambda: current_app.config['ATTENDANCE_MARK_RATE_LIMIT'])
def mark_attendance():
    """Mark attendance from a scanned lecture QR code."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise MissingField('Request body must be JSON')

    result = _marker().mark_attendance(
        qr_payload=data.get('qrCodeData'),
        student_id=data.get('studentId'),
        location=_as_text(data.get('location')),
        device_info=_as_text(data.get('deviceInfo'))
    )

    return success_response(
        message=result.message,
        success=True,
        attendance=result.attendance.to_dict(),
        lecture=result.lecture.summary()
    )

@attendance_bp.route('/manual', methods=['POST'])
@teacher_required
def mark_manual_attendance():
    """Set a student's attendance by hand (course teacher or admin)."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response("Request body must be JSON", 400)

    lecture_id = data.get('lectureId')
    student_id = data.get('studentId')
    status_value = data.get('status')

    if not lecture_id or not student_id or not status_value:
        return error_response("lectureId, studentId and status are required", 400)

    validation = Validator.validate_string_fields(data, ['lectureId', 'studentId', 'status', 'notes'])
    if not validation['is_valid']:
        return error_response(', '.join(validation['errors']), 400)

    try:
        status = AttendanceStatus(status_value)
    except ValueError:
        return error_response("Invalid status", 400)

    lecture = db.session.get(Lecture, lecture_id)
    if lecture is None:
        return error_response("Lecture not found", 404)

    if not g.current_user.can_manage_course(lecture.course):
        return error_response("You can only manage attendance for your own courses", 403)

    result = _marker().record_manual(
        lecture_id=lecture.id,
        student_id=student_id,
        status=status,
        notes=data.get('notes')
    )

    return success_response(
        data=result.attendance.to_dict(),
        message=result.message
    )

@attendance_bp.route('/history', methods=['GET'])
@login_required
def get_history():
    """Get a student's recent attendance records."""
    student_id, error = _target_student_id()
    if error:
        return error

    config = current_app.config
    limit = request.args.get('limit', config['HISTORY_DEFAULT_LIMIT'], type=int)
    limit = max(1, min(limit, config['HISTORY_MAX_LIMIT']))

    records = ReportService.get_history(student_id, limit=limit)
    return success_response(data=records, message=f"Found {len(records)} records")

@attendance_bp.route('/stats', methods=['GET'])
@login_required
def get_stats():
    """Get a student's attendance statistics."""
    student_id, error = _target_student_id()
    if error:
        return error

    time_range = request.args.get('timeRange', 'month')
    if time_range not in TIME_RANGES:
        return error_response(
            f"timeRange must be one of: {', '.join(TIME_RANGES)}", 400
        )

    return success_response(data=ReportService.get_stats(student_id, time_range))
