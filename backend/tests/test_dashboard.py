"""Test dashboard statistics and the API docs."""
from qr_attendance.models import Attendance, AttendanceStatus
from qr_attendance.utils.helpers import utcnow


def test_lecturer_stats(client, auth_headers, lecturer, session):
    response = client.get('/api/dashboard/stats', headers=auth_headers(lecturer))

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['role'] == 'lecturer'
    assert data['stats'] == {'total_classes': 1, 'total_sessions': 1}


def test_student_stats(client, auth_headers, student, live_session):
    Attendance(session_id=live_session.id, student_id=student.id,
               status=AttendanceStatus.COMPLETED, start_scan_time=utcnow(),
               end_scan_time=utcnow()).save()

    response = client.get('/api/dashboard/stats', headers=auth_headers(student))
    stats = response.get_json()['data']['stats']

    assert stats['total_classes'] == 1
    assert stats['completed_attendance'] == 1
    assert stats['present_count'] == 0
    assert stats['left_early_count'] == 0


def test_admin_stats(client, auth_headers, admin, student, live_session):
    response = client.get('/api/dashboard/stats', headers=auth_headers(admin))
    stats = response.get_json()['data']['stats']

    assert stats['total_students'] == 1
    assert stats['total_sessions'] == 1
    assert stats['completed_attendance'] == 0


def test_stats_require_login(client):
    assert client.get('/api/dashboard/stats').status_code == 401


def test_swagger_spec(client):
    response = client.get('/api/swagger.json')

    assert response.status_code == 200
    doc = response.get_json()
    assert doc['openapi'] == '3.0.0'
    assert '/api/scan/' in doc['paths']
    assert '/api/rotation/start-tokens' in doc['paths']
