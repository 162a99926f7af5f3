"""Attendance session with start and end QR tokens."""
from enum import Enum
from qr_attendance import db
from qr_attendance.models.base import BaseModel


class SessionStatus(Enum):
    """Session lifecycle states, in the only order they may occur."""
    SCHEDULED = 'scheduled'
    IN_PROGRESS = 'in_progress'
    ENDED = 'ended'


ACTIVE_STATUSES = (SessionStatus.SCHEDULED, SessionStatus.IN_PROGRESS)


class ClassSession(BaseModel):
    """One scheduled occurrence of a class."""

    __tablename__ = 'sessions'

    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False, index=True)
    lecturer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.Enum(SessionStatus), nullable=False, default=SessionStatus.SCHEDULED, index=True)

    start_token = db.Column(db.String(64), nullable=True)
    end_token = db.Column(db.String(64), nullable=True)

    started_at = db.Column(db.DateTime, nullable=True)
    ended_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    attendance_records = db.relationship('Attendance', backref='session', lazy='dynamic')

    def is_owned_by(self, user_id: int) -> bool:
        return self.lecturer_id == user_id

    def within_window(self, now) -> bool:
        """Check whether now falls inside the scheduled window."""
        return self.start_time <= now <= self.end_time

    def accepts_scans(self, now) -> bool:
        """Started explicitly, or still scheduled but inside its window."""
        if self.status == SessionStatus.IN_PROGRESS:
            return True
        return self.status == SessionStatus.SCHEDULED and self.within_window(now)

    def to_dict(self, include_tokens: bool = False):
        """Convert to dictionary."""
        exclude = [] if include_tokens else ['start_token', 'end_token']
        data = super().to_dict(exclude=exclude)
        data['has_end_token'] = self.end_token is not None
        if self.school_class is not None:
            data['class'] = {
                'id': self.school_class.id,
                'name': self.school_class.name,
                'unit_code': self.school_class.unit_code
            }
        return data

    def __repr__(self):
        return f'<ClassSession {self.id} {self.status.value}>'
