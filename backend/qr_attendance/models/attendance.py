"""Attendance model: one row per student per session."""
from enum import Enum
from qr_attendance import db
from qr_attendance.models.base import BaseModel


class AttendanceStatus(Enum):
    """Attendance states. A missing row means absent."""
    PRESENT = 'present'
    COMPLETED = 'completed'
    LEFT_EARLY = 'left_early'


class Attendance(BaseModel):
    """Attendance record model."""

    __tablename__ = 'attendance'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )

    session_id = db.Column(db.Integer, db.ForeignKey('sessions.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    start_scan_time = db.Column(db.DateTime, nullable=True)
    end_scan_time = db.Column(db.DateTime, nullable=True)

    student = db.relationship('User', foreign_keys=[student_id])

    @classmethod
    def find(cls, session_id: int, student_id: int) -> 'Attendance':
        return cls.query.filter_by(session_id=session_id, student_id=student_id).first()

    def __repr__(self):
        return f'<Attendance {self.session_id}-{self.student_id} {self.status.value}>'
