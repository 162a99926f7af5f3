"""Shared fixtures for the attendance tests."""
from datetime import timedelta

import pytest

from qr_attendance import create_app, db
from qr_attendance.models import (
    User, Role, SchoolClass, Enrollment, ClassSession, SessionStatus
)
from qr_attendance.services.auth_service import AuthService
from qr_attendance.services.token_service import TokenService
from qr_attendance.utils.helpers import utcnow


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


@pytest.fixture
def make_user(app):
    """Factory for persisted users."""
    def _make_user(email, role=Role.STUDENT, name=None, password='password123'):
        user = User(email=email, name=name or email.split('@')[0].title(), role=role)
        user.set_password(password)
        user.save()
        return user
    return _make_user


@pytest.fixture
def lecturer(make_user):
    return make_user('lecturer@example.com', Role.LECTURER, name='Dr. Lecturer')


@pytest.fixture
def other_lecturer(make_user):
    return make_user('other.lecturer@example.com', Role.LECTURER, name='Dr. Other')


@pytest.fixture
def student(make_user):
    return make_user('student@example.com', Role.STUDENT, name='Student One')


@pytest.fixture
def admin(make_user):
    return make_user('admin@example.com', Role.ADMIN, name='Admin User')


@pytest.fixture
def school_class(lecturer):
    school_class = SchoolClass(lecturer_id=lecturer.id, name='Algorithms', unit_code='CS201')
    school_class.save()
    return school_class


@pytest.fixture
def enroll(app):
    """Enroll a student in a class."""
    def _enroll(school_class, student):
        enrollment = Enrollment(class_id=school_class.id, student_id=student.id)
        enrollment.save()
        return enrollment
    return _enroll


@pytest.fixture
def make_session(app):
    """Factory for sessions; the window is relative to now."""
    def _make_session(school_class, status=SessionStatus.SCHEDULED,
                      starts_in=timedelta(hours=1), duration=timedelta(hours=1),
                      end_token=None):
        start = utcnow() + starts_in
        session = ClassSession(
            class_id=school_class.id,
            lecturer_id=school_class.lecturer_id,
            start_time=start,
            end_time=start + duration,
            status=status,
            start_token=TokenService.generate(),
            end_token=end_token
        )
        session.save()
        return session
    return _make_session


@pytest.fixture
def session(make_session, school_class):
    """A scheduled session one hour in the future."""
    return make_session(school_class)


@pytest.fixture
def live_session(make_session, school_class, enroll, student):
    """An in-progress session the student is enrolled in."""
    enroll(school_class, student)
    return make_session(school_class, status=SessionStatus.IN_PROGRESS,
                        starts_in=timedelta(minutes=-5))


@pytest.fixture
def auth_headers(app):
    """Bearer headers for a user."""
    def _auth_headers(user):
        token = AuthService.issue_tokens(user, refresh=False)['access_token']
        return {'Authorization': f'Bearer {token}'}
    return _auth_headers
