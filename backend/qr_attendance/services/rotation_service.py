# backend/qr_attendance/services/rotation_service.py
"""Periodic token rotation for active sessions.

Each session is rotated in its own transaction with a status-conditioned
UPDATE, so a concurrent scan sees either the old or the new token and a
session that ended mid-sweep is left alone. A storage failure aborts the
sweep with InfrastructureError; sessions already rotated stay rotated.
"""
from typing import Dict, List

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from qr_attendance.models.class_session import ClassSession, SessionStatus, ACTIVE_STATUSES
from qr_attendance.services.token_service import TokenService
from qr_attendance.utils.db import transaction
from qr_attendance.utils.errors import InfrastructureError
from qr_attendance.utils.helpers import utcnow


class RotationService:
    """Replaces start and end tokens of every active session."""

    @staticmethod
    def rotate_start_tokens() -> int:
        """Re-mint start tokens of scheduled and in-progress sessions."""
        session_ids = RotationService._session_ids(
            ClassSession.status.in_(ACTIVE_STATUSES)
        )
        rotated = 0
        for session_id in session_ids:
            with transaction():
                rotated += ClassSession.query.filter(
                    ClassSession.id == session_id,
                    ClassSession.status.in_(ACTIVE_STATUSES)
                ).update({
                    'start_token': TokenService.generate(),
                    'updated_at': utcnow()
                }, synchronize_session=False)

        current_app.logger.info('Rotated %s start tokens', rotated)
        return rotated

    @staticmethod
    def rotate_end_tokens() -> int:
        """Re-mint end tokens of in-progress sessions that already issued one."""
        session_ids = RotationService._session_ids(
            ClassSession.status == SessionStatus.IN_PROGRESS,
            ClassSession.end_token.isnot(None)
        )
        rotated = 0
        for session_id in session_ids:
            with transaction():
                rotated += ClassSession.query.filter(
                    ClassSession.id == session_id,
                    ClassSession.status == SessionStatus.IN_PROGRESS,
                    ClassSession.end_token.isnot(None)
                ).update({
                    'end_token': TokenService.generate(),
                    'updated_at': utcnow()
                }, synchronize_session=False)

        current_app.logger.info('Rotated %s end tokens', rotated)
        return rotated

    @staticmethod
    def run_rotation() -> Dict[str, int]:
        """Run both sweeps, start tokens first."""
        return {
            'start': RotationService.rotate_start_tokens(),
            'end': RotationService.rotate_end_tokens()
        }

    @staticmethod
    def _session_ids(*criteria) -> List[int]:
        try:
            rows = ClassSession.query.with_entities(ClassSession.id).filter(*criteria).all()
        except SQLAlchemyError as e:
            raise InfrastructureError(detail=str(e)) from e
        return [row.id for row in rows]
