# backend/qr_attendance/services/scan_service.py
"""Scan verification: checks a decoded QR payload and records attendance.

Checks run in a fixed order so the student gets the most precise message:
session exists, not ended, window open, token matches, student enrolled.
Every failure is returned as a ScanResult; nothing is raised to the caller.
"""
from datetime import datetime
from typing import Any

from flask import current_app

from qr_attendance import db
from qr_attendance.models.class_session import ClassSession, SessionStatus
from qr_attendance.models.school_class import Enrollment
from qr_attendance.services.attendance_service import (
    AttendanceRecorder, ScanResult, ALREADY_MARKED, SESSION_ENDED
)
from qr_attendance.services.qr_service import QRPayload, QRService, ScanType, INVALID_QR_MESSAGE
from qr_attendance.utils.db import transaction
from qr_attendance.utils.errors import AttendanceError, ConflictError, InfrastructureError
from qr_attendance.utils.helpers import utcnow

INVALID_SESSION = 'Invalid session'
NOT_STARTED = 'This session has not started yet'
NOT_ENROLLED = 'You are not enrolled in this class'
TRY_AGAIN = 'An error occurred. Please try again.'


class ScanVerifier:
    """Validates scans against session, enrollment and attendance state."""

    @staticmethod
    def verify_raw(student_id: int, decoded: Any, now: datetime = None) -> ScanResult:
        """Parse decoded QR text and verify it.

        Malformed input is rejected before any storage access.
        """
        try:
            payload = QRService.parse_payload(decoded)
        except AttendanceError:
            return ScanResult(False, INVALID_QR_MESSAGE)
        return ScanVerifier.verify_and_record(student_id, payload, now=now)

    @staticmethod
    def verify_and_record(student_id: int, payload: QRPayload, now: datetime = None) -> ScanResult:
        """Verify a parsed payload and, if valid, move the attendance state."""
        try:
            with transaction():
                result = ScanVerifier._verify(student_id, payload, now or utcnow())
        except ConflictError:
            # Lost the insert race against a concurrent start scan
            return ScanResult(False, ALREADY_MARKED)
        except InfrastructureError as e:
            current_app.logger.error(
                'Scan by student %s for session %s failed: %s',
                student_id, payload.session_id, e.detail, exc_info=e
            )
            return ScanResult(False, TRY_AGAIN)
        except AttendanceError as e:
            return ScanResult(False, e.message)

        if result.success:
            current_app.logger.info(
                'Student %s %s scan accepted for session %s',
                student_id, payload.type.value, payload.session_id
            )
        return result

    @staticmethod
    def _verify(student_id: int, payload: QRPayload, now: datetime) -> ScanResult:
        # Shared row lock: end_session's status update waits for this scan to commit
        session = db.session.get(ClassSession, payload.session_id, with_for_update={'read': True})
        if session is None:
            return ScanResult(False, INVALID_SESSION)

        if session.status == SessionStatus.ENDED:
            return ScanResult(False, SESSION_ENDED)

        if not session.accepts_scans(now):
            return ScanResult(False, NOT_STARTED)

        # Single read of the current token; rotation replaces it atomically
        expected = session.start_token if payload.type == ScanType.START else session.end_token
        if not expected or payload.token != expected:
            return ScanResult(False, INVALID_QR_MESSAGE)

        if not Enrollment.exists(session.class_id, student_id):
            return ScanResult(False, NOT_ENROLLED)

        if payload.type == ScanType.START:
            return AttendanceRecorder.record_start(session.id, student_id, now)
        return AttendanceRecorder.record_end(session.id, student_id, now)
