# backend/qr_attendance/services/attendance_service.py
"""Per-student attendance state machine.

absent --start scan--> present --end scan--> completed
present --session ends without end scan--> left_early

A missing row means absent. ``completed`` and ``left_early`` are terminal.
The record/sweep helpers run inside the caller's transaction; they flush
but never commit.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from qr_attendance import db
from qr_attendance.models.attendance import Attendance, AttendanceStatus
from qr_attendance.models.class_session import ClassSession, ACTIVE_STATUSES
from qr_attendance.models.school_class import SchoolClass
from qr_attendance.utils.errors import InvalidStateError
from qr_attendance.utils.helpers import utcnow, isoformat

ALREADY_MARKED = 'You have already marked attendance for this session'
MARKED = 'Attendance marked successfully'
START_FIRST = 'You need to scan the start QR first'
ALREADY_COMPLETED = 'You have already completed attendance'
COMPLETED = 'Attendance completed'
SESSION_ENDED = 'This session has already ended'


@dataclass
class ScanResult:
    """Outcome reported to the scanning student."""
    success: bool
    message: str
    attendance: Optional[Attendance] = None

    def to_dict(self) -> Dict:
        data = {'success': self.success, 'message': self.message}
        if self.attendance is not None:
            data['attendance'] = AttendanceRecorder.serialize(self.attendance)
        return data


class AttendanceRecorder:
    """Moves a student's attendance row through its states."""

    @staticmethod
    def record_start(session_id: int, student_id: int, now: datetime = None) -> ScanResult:
        """Create the attendance row on a valid start scan."""
        if Attendance.find(session_id, student_id) is not None:
            return ScanResult(False, ALREADY_MARKED)

        attendance = Attendance(
            session_id=session_id,
            student_id=student_id,
            start_scan_time=now or utcnow(),
            status=AttendanceStatus.PRESENT
        )
        db.session.add(attendance)
        # Surface a lost insert race here rather than at commit
        db.session.flush()

        # The end-of-session sweep never revisits this row; refuse it once the session has ended
        if not AttendanceRecorder._session_open(session_id):
            raise InvalidStateError(SESSION_ENDED)

        return ScanResult(True, MARKED, attendance)

    @staticmethod
    def record_end(session_id: int, student_id: int, now: datetime = None) -> ScanResult:
        """Complete the attendance row on a valid end scan."""
        attendance = Attendance.find(session_id, student_id)
        if attendance is None:
            return ScanResult(False, START_FIRST)

        if attendance.status == AttendanceStatus.COMPLETED:
            return ScanResult(False, ALREADY_COMPLETED)

        updated = Attendance.query.filter_by(
            id=attendance.id,
            status=AttendanceStatus.PRESENT
        ).update({
            'end_scan_time': now or utcnow(),
            'status': AttendanceStatus.COMPLETED,
            'updated_at': utcnow()
        }, synchronize_session=False)

        db.session.refresh(attendance)
        if updated == 0:
            if attendance.status == AttendanceStatus.COMPLETED:
                return ScanResult(False, ALREADY_COMPLETED)
            return ScanResult(False, SESSION_ENDED)

        return ScanResult(True, COMPLETED, attendance)

    @staticmethod
    def _session_open(session_id: int) -> bool:
        return db.session.query(
            ClassSession.query.filter(
                ClassSession.id == session_id,
                ClassSession.status.in_(ACTIVE_STATUSES)
            ).exists()
        ).scalar()

    @staticmethod
    def sweep_left_early(session_id: int) -> int:
        """Mark every student still present in the session as left early.

        Returns the number of rows changed; a second run changes none.
        """
        return Attendance.query.filter(
            Attendance.session_id == session_id,
            Attendance.status == AttendanceStatus.PRESENT,
            Attendance.end_scan_time.is_(None)
        ).update({
            'status': AttendanceStatus.LEFT_EARLY,
            'updated_at': utcnow()
        }, synchronize_session=False)

    @staticmethod
    def recent_attendance(student_id: int, limit: int = 5) -> List[Dict]:
        """Latest attendance rows of a student with their class details."""
        rows = db.session.query(Attendance, ClassSession, SchoolClass).join(
            ClassSession, Attendance.session_id == ClassSession.id
        ).join(
            SchoolClass, ClassSession.class_id == SchoolClass.id
        ).filter(
            Attendance.student_id == student_id
        ).order_by(
            Attendance.created_at.desc(), Attendance.id.desc()
        ).limit(limit).all()

        results = []
        for attendance, session, school_class in rows:
            data = AttendanceRecorder.serialize(attendance)
            data['session'] = {
                'id': session.id,
                'start_time': isoformat(session.start_time),
                'class': {
                    'name': school_class.name,
                    'unit_code': school_class.unit_code
                }
            }
            results.append(data)
        return results

    @staticmethod
    def serialize(attendance: Attendance) -> Dict:
        return {
            'id': attendance.id,
            'session_id': attendance.session_id,
            'student_id': attendance.student_id,
            'status': attendance.status.value,
            'start_scan_time': isoformat(attendance.start_scan_time),
            'end_scan_time': isoformat(attendance.end_scan_time)
        }
