# backend/qr_attendance/services/stats_service.py
"""Dashboard counters per role."""
from typing import Dict

from sqlalchemy import func

from qr_attendance import db
from qr_attendance.models.attendance import Attendance, AttendanceStatus
from qr_attendance.models.class_session import ClassSession
from qr_attendance.models.school_class import SchoolClass, Enrollment
from qr_attendance.models.user import User, Role


class StatsService:
    """Aggregates shown on each role's dashboard."""

    @staticmethod
    def for_user(user: User) -> Dict[str, int]:
        if user.role == Role.ADMIN:
            stats = {
                'total_classes': SchoolClass.query.count(),
                'total_sessions': ClassSession.query.count(),
                'total_students': User.query.filter_by(role=Role.STUDENT).count(),
            }
            stats.update(StatsService._status_counts())
            return stats

        if user.role == Role.LECTURER:
            return {
                'total_classes': SchoolClass.query.filter_by(lecturer_id=user.id).count(),
                'total_sessions': ClassSession.query.filter_by(lecturer_id=user.id).count(),
            }

        stats = {'total_classes': Enrollment.query.filter_by(student_id=user.id).count()}
        stats.update(StatsService._status_counts(Attendance.student_id == user.id))
        return stats

    @staticmethod
    def _status_counts(*criteria) -> Dict[str, int]:
        rows = db.session.query(
            Attendance.status, func.count(Attendance.id)
        ).filter(*criteria).group_by(Attendance.status).all()
        counts = {status: count for status, count in rows}

        return {
            'completed_attendance': counts.get(AttendanceStatus.COMPLETED, 0),
            'present_count': counts.get(AttendanceStatus.PRESENT, 0),
            'left_early_count': counts.get(AttendanceStatus.LEFT_EARLY, 0),
        }
