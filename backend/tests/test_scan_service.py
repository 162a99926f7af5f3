"""Tests for scan verification and attendance recording."""
import json
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from qr_attendance import db
from qr_attendance.models import Attendance, AttendanceStatus, Enrollment, SessionStatus
from qr_attendance.services import attendance_service as messages
from qr_attendance.services.attendance_service import AttendanceRecorder
from qr_attendance.services.qr_service import QRPayload, ScanType, INVALID_QR_MESSAGE
from qr_attendance.services.rotation_service import RotationService
from qr_attendance.services.scan_service import (
    ScanVerifier, INVALID_SESSION, NOT_STARTED, NOT_ENROLLED, TRY_AGAIN
)
from qr_attendance.services.session_service import SessionService
from qr_attendance.utils.helpers import utcnow


def start_payload(session, token=None):
    return QRPayload(session.id, session.class_id, ScanType.START, token or session.start_token)


def end_payload(session, token=None):
    return QRPayload(session.id, session.class_id, ScanType.END, token or session.end_token)


def attendance_count(session_id):
    return Attendance.query.filter_by(session_id=session_id).count()


class TestStartScan:
    def test_marks_present(self, app, student, live_session):
        result = ScanVerifier.verify_and_record(student.id, start_payload(live_session))

        assert result.success
        assert result.message == messages.MARKED
        row = Attendance.find(live_session.id, student.id)
        assert row.status == AttendanceStatus.PRESENT
        assert row.start_scan_time is not None

    def test_second_start_scan_is_rejected(self, app, student, live_session):
        ScanVerifier.verify_and_record(student.id, start_payload(live_session))
        result = ScanVerifier.verify_and_record(student.id, start_payload(live_session))

        assert not result.success
        assert result.message == messages.ALREADY_MARKED
        assert attendance_count(live_session.id) == 1

    def test_scheduled_session_inside_window(self, app, student, school_class, enroll, make_session):
        enroll(school_class, student)
        session = make_session(school_class, starts_in=timedelta(minutes=-1))

        result = ScanVerifier.verify_and_record(student.id, start_payload(session))
        assert result.success

    def test_scheduled_session_before_window(self, app, student, school_class, enroll, session):
        enroll(school_class, student)

        result = ScanVerifier.verify_and_record(student.id, start_payload(session))
        assert result.message == NOT_STARTED
        assert attendance_count(session.id) == 0

    def test_scheduled_session_after_window(self, app, student, school_class, enroll, make_session):
        enroll(school_class, student)
        session = make_session(school_class, starts_in=timedelta(hours=-3))

        result = ScanVerifier.verify_and_record(student.id, start_payload(session))
        assert result.message == NOT_STARTED


class TestEndScan:
    @pytest.fixture
    def ending_session(self, app, lecturer, live_session):
        return SessionService.generate_end_token(live_session.id, lecturer.id)

    def test_completes_attendance(self, app, student, ending_session):
        ScanVerifier.verify_and_record(student.id, start_payload(ending_session))
        result = ScanVerifier.verify_and_record(student.id, end_payload(ending_session))

        assert result.success
        assert result.message == messages.COMPLETED
        row = Attendance.find(ending_session.id, student.id)
        assert row.status == AttendanceStatus.COMPLETED
        assert row.end_scan_time >= row.start_scan_time

    def test_requires_start_scan(self, app, student, ending_session):
        result = ScanVerifier.verify_and_record(student.id, end_payload(ending_session))

        assert result.message == messages.START_FIRST
        assert attendance_count(ending_session.id) == 0

    def test_second_end_scan_is_rejected(self, app, student, ending_session):
        ScanVerifier.verify_and_record(student.id, start_payload(ending_session))
        ScanVerifier.verify_and_record(student.id, end_payload(ending_session))
        result = ScanVerifier.verify_and_record(student.id, end_payload(ending_session))

        assert result.message == messages.ALREADY_COMPLETED

    def test_end_scan_without_end_token(self, app, student, live_session):
        ScanVerifier.verify_and_record(student.id, start_payload(live_session))
        result = ScanVerifier.verify_and_record(student.id, end_payload(live_session, token='guess'))

        assert result.message == INVALID_QR_MESSAGE

    def test_start_token_does_not_work_as_end_token(self, app, student, ending_session):
        ScanVerifier.verify_and_record(student.id, start_payload(ending_session))
        result = ScanVerifier.verify_and_record(
            student.id, end_payload(ending_session, token=ending_session.start_token)
        )
        assert result.message == INVALID_QR_MESSAGE

    def test_completed_attendance_survives_session_end(self, app, lecturer, student, ending_session):
        ScanVerifier.verify_and_record(student.id, start_payload(ending_session))
        ScanVerifier.verify_and_record(student.id, end_payload(ending_session))
        SessionService.end_session(ending_session.id, lecturer.id)

        assert Attendance.find(ending_session.id, student.id).status == AttendanceStatus.COMPLETED

    def test_left_early_student_cannot_complete(self, app, lecturer, student, ending_session):
        ScanVerifier.verify_and_record(student.id, start_payload(ending_session))
        SessionService.end_session(ending_session.id, lecturer.id)

        result = ScanVerifier.verify_and_record(student.id, end_payload(ending_session))
        assert result.message == messages.SESSION_ENDED
        assert Attendance.find(ending_session.id, student.id).status == AttendanceStatus.LEFT_EARLY

    def test_record_end_refuses_swept_row(self, app, student, live_session):
        """A row swept between read and update is not completed."""
        db.session.add(Attendance(session_id=live_session.id, student_id=student.id,
                                  status=AttendanceStatus.LEFT_EARLY, start_scan_time=utcnow()))
        db.session.commit()

        result = AttendanceRecorder.record_end(live_session.id, student.id)
        assert result.message == messages.SESSION_ENDED


class TestCheckOrder:
    def test_unknown_session(self, app, student):
        payload = QRPayload(9999, 1, ScanType.START, 'token')
        assert ScanVerifier.verify_and_record(student.id, payload).message == INVALID_SESSION

    def test_ended_session_reported_before_token(self, app, student, live_session):
        live_session.status = SessionStatus.ENDED
        live_session.save()

        result = ScanVerifier.verify_and_record(student.id, start_payload(live_session, token='wrong'))
        assert result.message == messages.SESSION_ENDED

    def test_window_reported_before_token(self, app, student, school_class, enroll, session):
        enroll(school_class, student)
        result = ScanVerifier.verify_and_record(student.id, start_payload(session, token='wrong'))
        assert result.message == NOT_STARTED

    def test_token_reported_before_enrollment(self, app, make_user, live_session):
        outsider = make_user('outsider@example.com')
        result = ScanVerifier.verify_and_record(outsider.id, start_payload(live_session, token='wrong'))
        assert result.message == INVALID_QR_MESSAGE

    def test_not_enrolled(self, app, make_user, live_session):
        outsider = make_user('outsider@example.com')
        result = ScanVerifier.verify_and_record(outsider.id, start_payload(live_session))

        assert result.message == NOT_ENROLLED
        assert attendance_count(live_session.id) == 0

    def test_rotated_token_rejects_old_code(self, app, student, live_session):
        old_token = live_session.start_token
        RotationService.rotate_start_tokens()
        db.session.refresh(live_session)

        stale = ScanVerifier.verify_and_record(student.id, start_payload(live_session, token=old_token))
        fresh = ScanVerifier.verify_and_record(student.id, start_payload(live_session))

        assert stale.message == INVALID_QR_MESSAGE
        assert fresh.success


class TestRawInput:
    @pytest.mark.parametrize('raw', ['hello', '{"sessionId": 1}', '', '{"type": "START"}'])
    def test_malformed_text_never_reaches_storage(self, app, student, monkeypatch, raw):
        def fail(*args, **kwargs):
            raise AssertionError('storage must not be touched')
        monkeypatch.setattr(ScanVerifier, 'verify_and_record', fail)

        result = ScanVerifier.verify_raw(student.id, raw)
        assert not result.success
        assert result.message == INVALID_QR_MESSAGE

    def test_decoded_text_is_verified(self, app, student, live_session):
        result = ScanVerifier.verify_raw(student.id, start_payload(live_session).to_json())
        assert result.success

    @pytest.mark.parametrize('session_id', [10 ** 20, 2 ** 31])
    def test_out_of_range_session_id(self, app, student, session_id):
        raw = json.dumps({'sessionId': session_id, 'classId': 1, 'type': 'START', 'token': 'x'})

        result = ScanVerifier.verify_raw(student.id, raw)
        assert not result.success
        assert result.message == INVALID_QR_MESSAGE

    def test_fractional_session_id_is_not_truncated(self, app, student, live_session):
        payload = start_payload(live_session).to_dict()
        payload['sessionId'] = live_session.id + 0.7

        result = ScanVerifier.verify_raw(student.id, json.dumps(payload))
        assert result.message == INVALID_QR_MESSAGE
        assert attendance_count(live_session.id) == 0


class TestFailureModes:
    def test_lost_insert_race_reports_already_marked(self, app, student, live_session, monkeypatch):
        ScanVerifier.verify_and_record(student.id, start_payload(live_session))

        # The second scan does not see the first row, as if both read concurrently
        monkeypatch.setattr(Attendance, 'find', classmethod(lambda cls, session_id, student_id: None))
        result = ScanVerifier.verify_and_record(student.id, start_payload(live_session))

        assert not result.success
        assert result.message == messages.ALREADY_MARKED
        assert attendance_count(live_session.id) == 1

    def test_storage_failure_asks_to_retry(self, app, student, live_session, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError('SELECT 1', {}, Exception('database is locked'))
        monkeypatch.setattr(Enrollment, 'exists', classmethod(broken))

        result = ScanVerifier.verify_and_record(student.id, start_payload(live_session))

        assert not result.success
        assert result.message == TRY_AGAIN

    def test_cancelled_scan_commits_nothing(self, app, student, live_session, monkeypatch):
        class Cancelled(BaseException):
            pass

        real_record_start = AttendanceRecorder.record_start

        def record_then_cancel(session_id, student_id, now=None):
            real_record_start(session_id, student_id, now)
            raise Cancelled()
        monkeypatch.setattr(AttendanceRecorder, 'record_start', staticmethod(record_then_cancel))

        with pytest.raises(Cancelled):
            ScanVerifier.verify_and_record(student.id, start_payload(live_session))

        assert attendance_count(live_session.id) == 0

    def test_session_ended_between_read_and_insert(self, app, lecturer, student, live_session, monkeypatch):
        real_exists = Enrollment.exists

        def end_then_check(class_id, student_id):
            # The lecturer ends the session (and runs the sweep) mid-scan
            SessionService.end_session(live_session.id, lecturer.id)
            return real_exists(class_id, student_id)
        monkeypatch.setattr(Enrollment, 'exists', staticmethod(end_then_check))

        result = ScanVerifier.verify_and_record(student.id, start_payload(live_session))

        assert not result.success
        assert result.message == messages.SESSION_ENDED
        assert attendance_count(live_session.id) == 0
