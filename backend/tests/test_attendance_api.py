"""Test attendance endpoints."""
import json
from datetime import datetime, timedelta
from qr_attendance import db
from qr_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from qr_attendance.models.lecture import Lecture
from qr_attendance.models.user import UserRole
from conftest import auth_headers, make_user

def qr_for(lecture):
    return json.dumps({'lectureId': lecture.id, 'title': lecture.title})

def mark(client, lecture_or_qr, student_id, **extra):
    qr = lecture_or_qr if isinstance(lecture_or_qr, str) else qr_for(lecture_or_qr)
    return client.post('/api/attendance/mark', json={
        'qrCodeData': qr,
        'studentId': student_id,
        **extra
    })

def test_health_check(client):
    response = client.get('/api/attendance/health')
    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['message'] == 'Attendance service is running'

def test_mark_present(client, make_lecture, enrolled_student):
    """Scanning shortly after start marks the student present."""
    lecture = make_lecture(start_offset_minutes=-2)

    response = mark(client, lecture, enrolled_student.id,
                    location='Room B12', deviceInfo={'model': 'Pixel 8'})

    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['success'] is True
    assert data['message'] == 'Attendance marked as present'
    assert data['attendance']['status'] == 'present'
    assert data['attendance']['student_id'] == enrolled_student.id
    assert data['attendance']['location'] == 'Room B12'
    assert json.loads(data['attendance']['device_info']) == {'model': 'Pixel 8'}
    assert data['lecture']['id'] == lecture.id
    assert data['lecture']['courseName'] == 'Databases'

def test_mark_late(client, make_lecture, enrolled_student):
    lecture = make_lecture(start_offset_minutes=-30)

    response = mark(client, lecture, enrolled_student.id)

    assert response.status_code == 200
    assert json.loads(response.data)['attendance']['status'] == 'late'

def test_second_scan_updates_record(client, app, make_lecture, enrolled_student):
    lecture = make_lecture(start_offset_minutes=-5)
    marker = app.extensions['attendance_marker']
    start = lecture.start_time

    marker.clock = lambda: start + timedelta(minutes=1)
    first = mark(client, lecture, enrolled_student.id)

    marker.clock = lambda: start + timedelta(minutes=25)
    second = mark(client, lecture, enrolled_student.id)

    assert json.loads(first.data)['message'] == 'Attendance marked as present'
    second_data = json.loads(second.data)
    assert second_data['message'] == 'Attendance updated to late'
    assert second_data['attendance']['id'] == json.loads(first.data)['attendance']['id']

    count = db.session.execute(
        db.select(db.func.count(AttendanceRecord.id)).filter_by(lecture_id=lecture.id)
    ).scalar()
    assert count == 1

def test_lecture_not_active(client, make_lecture, enrolled_student):
    lecture = make_lecture(start_offset_minutes=60)

    response = mark(client, lecture, enrolled_student.id)

    assert response.status_code == 400
    data = json.loads(response.data)
    assert data['error'] is True
    assert data['reason'] == 'lecture_not_active'

def test_not_enrolled(client, make_lecture, student):
    lecture = make_lecture(start_offset_minutes=-2)

    response = mark(client, lecture, student.id)

    assert response.status_code == 403
    assert json.loads(response.data)['reason'] == 'not_enrolled'

def test_lecture_not_found(client, enrolled_student):
    response = mark(client, json.dumps({'lectureId': 'no-such-lecture'}), enrolled_student.id)

    assert response.status_code == 404
    assert json.loads(response.data)['reason'] == 'lecture_not_found'

def test_invalid_payload(client, enrolled_student):
    response = mark(client, 'https://example.com/not-a-lecture', enrolled_student.id)

    assert response.status_code == 400
    assert json.loads(response.data)['reason'] == 'invalid_payload'

def test_missing_fields(client):
    response = client.post('/api/attendance/mark', json={'qrCodeData': '{"lectureId": "x"}'})
    assert response.status_code == 400
    assert json.loads(response.data)['reason'] == 'missing_field'

    response = client.post('/api/attendance/mark', data='plain text')
    assert response.status_code == 400
    assert json.loads(response.data)['reason'] == 'missing_field'

def test_manual_attendance(client, teacher, make_lecture, enrolled_student):
    lecture = make_lecture(start_offset_minutes=-180)

    response = client.post('/api/attendance/manual',
        headers=auth_headers(teacher),
        json={
            'lectureId': lecture.id,
            'studentId': enrolled_student.id,
            'status': 'excused',
            'notes': 'Medical certificate'
        })

    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['data']['status'] == 'excused'
    assert data['data']['verification_method'] == 'manual'
    assert data['data']['notes'] == 'Medical certificate'

def test_manual_attendance_validation(client, teacher, make_lecture, enrolled_student):
    lecture = make_lecture(start_offset_minutes=-180)
    headers = auth_headers(teacher)

    response = client.post('/api/attendance/manual', headers=headers, json={
        'lectureId': lecture.id, 'studentId': enrolled_student.id, 'status': 'sleeping'
    })
    assert response.status_code == 400

    response = client.post('/api/attendance/manual', headers=headers, json={
        'lectureId': lecture.id, 'studentId': enrolled_student.id
    })
    assert response.status_code == 400

    response = client.post('/api/attendance/manual', headers=headers, json={
        'lectureId': 'missing', 'studentId': enrolled_student.id, 'status': 'present'
    })
    assert response.status_code == 404

def test_manual_attendance_permissions(client, other_teacher, enrolled_student, make_lecture):
    lecture = make_lecture(start_offset_minutes=-180)
    body = {'lectureId': lecture.id, 'studentId': enrolled_student.id, 'status': 'present'}

    response = client.post('/api/attendance/manual', json=body)
    assert response.status_code == 401

    response = client.post('/api/attendance/manual', headers=auth_headers(enrolled_student), json=body)
    assert response.status_code == 403

    response = client.post('/api/attendance/manual', headers=auth_headers(other_teacher), json=body)
    assert response.status_code == 403

def test_history_for_student(client, make_lecture, enrolled_student):
    older = make_lecture(start_offset_minutes=-5, title='Keys')
    newer = make_lecture(start_offset_minutes=-1, title='Indexes')
    mark(client, older, enrolled_student.id)
    mark(client, newer, enrolled_student.id)

    response = client.get('/api/attendance/history?limit=1',
        headers=auth_headers(enrolled_student))

    assert response.status_code == 200
    records = json.loads(response.data)['data']
    assert len(records) == 1
    assert records[0]['lecture'] == 'Indexes'
    assert records[0]['course'] == 'Databases'
    assert records[0]['status'] == 'present'

def test_history_access_rules(client, teacher, enrolled_student):
    other = make_user('other@example.com', UserRole.STUDENT)

    response = client.get(f'/api/attendance/history?studentId={other.id}',
        headers=auth_headers(enrolled_student))
    assert response.status_code == 403

    response = client.get('/api/attendance/history', headers=auth_headers(teacher))
    assert response.status_code == 400

    response = client.get(f'/api/attendance/history?studentId={enrolled_student.id}',
        headers=auth_headers(teacher))
    assert response.status_code == 200

def test_stats(client, course, enrolled_student):
    """Lectures without a record count as missed."""
    now = datetime.utcnow()
    lectures = []
    for days_ago in (1, 2, 3, 4):
        start = now - timedelta(days=days_ago)
        lectures.append(Lecture(
            title=f'Lecture {days_ago}', course_id=course.id,
            start_time=start, end_time=start + timedelta(hours=1)
        ).save())

    statuses = [AttendanceStatus.PRESENT, AttendanceStatus.LATE, AttendanceStatus.EXCUSED]
    for lecture, status in zip(lectures, statuses):
        AttendanceRecord(
            lecture_id=lecture.id, student_id=enrolled_student.id,
            status=status, marked_at=lecture.start_time
        ).save()

    response = client.get('/api/attendance/stats?timeRange=week',
        headers=auth_headers(enrolled_student))

    assert response.status_code == 200
    stats = json.loads(response.data)['data']
    assert stats['total_lectures'] == 4
    assert stats['attended'] == 2
    assert stats['late'] == 1
    assert stats['excused'] == 1
    assert stats['missed'] == 1
    assert stats['attendance_rate'] == 50.0

def test_stats_ignores_other_courses_and_bad_range(client, teacher, enrolled_student):
    from qr_attendance.models.course import Course

    other_course = Course(name='Networks', code='CS330', teacher_id=teacher.id).save()
    start = datetime.utcnow() - timedelta(days=1)
    Lecture(title='TCP', course_id=other_course.id,
            start_time=start, end_time=start + timedelta(hours=1)).save()

    response = client.get('/api/attendance/stats', headers=auth_headers(enrolled_student))
    stats = json.loads(response.data)['data']
    assert stats['total_lectures'] == 0
    assert stats['attendance_rate'] == 0

    response = client.get('/api/attendance/stats?timeRange=decade',
        headers=auth_headers(enrolled_student))
    assert response.status_code == 400

def test_store_error_is_generic(client, app, make_lecture, enrolled_student):
    """Datastore failures answer 500 without exposing driver details."""
    from unittest.mock import MagicMock
    from qr_attendance.services.errors import StoreError

    lecture = make_lecture(start_offset_minutes=-2)
    failing = MagicMock()
    failing.find_by_lecture_and_student.side_effect = StoreError()
    app.extensions['attendance_marker'].attendance = failing

    response = mark(client, lecture, enrolled_student.id)

    assert response.status_code == 500
    data = json.loads(response.data)
    assert data['reason'] == 'store_error'
    assert data['message'] == 'Failed to mark attendance'
    failing.upsert.assert_not_called()

def test_long_location_is_stored_whole(client, make_lecture, enrolled_student):
    lecture = make_lecture(start_offset_minutes=-2)
    location = {'lat': 52.52, 'lng': 13.405, 'label': 'Hall ' * 100}

    response = mark(client, lecture, enrolled_student.id, location=location)

    assert response.status_code == 200
    stored = json.loads(response.data)['attendance']['location']
    assert len(stored) > 255
    assert json.loads(stored) == location
    assert AttendanceRecord.__table__.c.location.type.length is None

def test_manual_attendance_rejects_non_string_fields(client, teacher, make_lecture, enrolled_student):
    lecture = make_lecture(start_offset_minutes=-180)
    body = {'lectureId': lecture.id, 'studentId': enrolled_student.id, 'status': 'present'}

    for field, value in [('lectureId', {'id': lecture.id}), ('studentId', 7), ('notes', ['late bus'])]:
        response = client.post('/api/attendance/manual', headers=auth_headers(teacher),
            json={**body, field: value})
        assert response.status_code == 400, field
