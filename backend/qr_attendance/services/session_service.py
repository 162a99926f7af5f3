# backend/qr_attendance/services/session_service.py
"""Session lifecycle: scheduled -> in_progress -> ended.

Every transition is a conditional UPDATE on the expected prior status, so a
double-clicked "start" or two concurrent "end" calls apply exactly once and
the loser sees InvalidStateError.
"""
from typing import Any, Dict, List, Tuple

from flask import current_app

from qr_attendance import db
from qr_attendance.models.attendance import Attendance
from qr_attendance.models.class_session import ClassSession, SessionStatus, ACTIVE_STATUSES
from qr_attendance.models.school_class import SchoolClass
from qr_attendance.models.user import User, Capability
from qr_attendance.services.attendance_service import AttendanceRecorder
from qr_attendance.services.token_service import TokenService
from qr_attendance.utils.db import transaction
from qr_attendance.utils.errors import (
    AuthorizationError, InvalidStateError, NotFoundError, ValidationError
)
from qr_attendance.utils.helpers import utcnow, parse_datetime
from qr_attendance.utils.validators import Validator


class SessionService:
    """Owns session state transitions and token issuance."""

    @staticmethod
    def create_session(class_id: Any, lecturer_id: int, start_time: Any, end_time: Any) -> ClassSession:
        """Schedule a session for a class the lecturer owns."""
        if class_id in (None, '') or start_time in (None, '') or end_time in (None, ''):
            raise ValidationError('Class, start time and end time are required')

        class_id = Validator.parse_id(class_id, 'class id')
        start = parse_datetime(start_time)
        end = parse_datetime(end_time)
        Validator.require(Validator.validate_session_window(start, end))

        with transaction():
            school_class = db.session.get(SchoolClass, class_id)
            if school_class is None:
                raise NotFoundError('Class not found')
            if not school_class.is_owned_by(lecturer_id):
                raise AuthorizationError('You can only create sessions for your own classes')

            session = ClassSession(
                class_id=class_id,
                lecturer_id=lecturer_id,
                start_time=start,
                end_time=end,
                status=SessionStatus.SCHEDULED,
                start_token=TokenService.generate()
            )
            db.session.add(session)

        current_app.logger.info('Session %s scheduled for class %s', session.id, class_id)
        return session

    @staticmethod
    def start_session(session_id: int, acting_lecturer_id: int) -> ClassSession:
        """Open the attendance window."""
        with transaction():
            session = SessionService._owned_session(session_id, acting_lecturer_id)
            SessionService._transition(
                session,
                SessionStatus.SCHEDULED,
                {'status': SessionStatus.IN_PROGRESS, 'started_at': utcnow()},
                'Session has already been started'
            )

        current_app.logger.info('Session %s started', session_id)
        return session

    @staticmethod
    def generate_end_token(session_id: int, acting_lecturer_id: int) -> ClassSession:
        """Mint the end token, replacing any earlier one."""
        with transaction():
            session = SessionService._owned_session(session_id, acting_lecturer_id)
            SessionService._transition(
                session,
                SessionStatus.IN_PROGRESS,
                {'end_token': TokenService.generate()},
                'End QR can only be generated while the session is in progress'
            )

        current_app.logger.info('End token issued for session %s', session_id)
        return session

    @staticmethod
    def end_session(session_id: int, acting_lecturer_id: int) -> Tuple[ClassSession, int]:
        """Close the session and mark stragglers as left early.

        The transition and the sweep commit together. Returns the session and
        the number of attendance rows swept.
        """
        with transaction():
            session = SessionService._owned_session(session_id, acting_lecturer_id)
            SessionService._transition(
                session,
                SessionStatus.IN_PROGRESS,
                {'status': SessionStatus.ENDED, 'ended_at': utcnow()},
                'Only an in-progress session can be ended'
            )
            swept = AttendanceRecorder.sweep_left_early(session.id)

        current_app.logger.info('Session %s ended, %s marked left early', session_id, swept)
        return session, swept

    @staticmethod
    def _owned_session(session_id: int, acting_lecturer_id: int) -> ClassSession:
        session = db.session.get(ClassSession, session_id)
        if session is None:
            raise NotFoundError('Session not found')
        if not session.is_owned_by(acting_lecturer_id):
            raise AuthorizationError('You can only manage your own sessions')
        return session

    @staticmethod
    def _transition(session: ClassSession, expected: SessionStatus, values: Dict, message: str) -> None:
        """Apply values only if the session is still in the expected status."""
        values = dict(values, updated_at=utcnow())
        updated = ClassSession.query.filter_by(
            id=session.id,
            status=expected
        ).update(values, synchronize_session=False)

        if updated == 0:
            raise InvalidStateError(message)

        db.session.refresh(session)

    # =================== QUERIES ===================

    @staticmethod
    def get_session(session_id: int, actor: User) -> ClassSession:
        session = db.session.get(ClassSession, session_id)
        if session is None:
            raise NotFoundError('Session not found')
        if not (actor.can(Capability.VIEW_ALL) or session.is_owned_by(actor.id)):
            raise AuthorizationError('Access denied')
        return session

    @staticmethod
    def list_sessions(actor: User, active_only: bool = False) -> List[ClassSession]:
        """Sessions visible to the actor, newest start first."""
        query = ClassSession.query
        if not actor.can(Capability.VIEW_ALL):
            query = query.filter_by(lecturer_id=actor.id)
        if active_only:
            query = query.filter(ClassSession.status.in_(ACTIVE_STATUSES))
        return query.order_by(ClassSession.start_time.desc()).all()

    @staticmethod
    def list_attendees(session_id: int, actor: User) -> List[Dict]:
        session = SessionService.get_session(session_id, actor)
        rows = Attendance.query.filter_by(session_id=session.id).order_by(Attendance.start_scan_time).all()

        attendees = []
        for row in rows:
            data = AttendanceRecorder.serialize(row)
            data['student'] = {
                'id': row.student.id,
                'name': row.student.name,
                'email': row.student.email
            }
            attendees.append(data)
        return attendees

