"""Models package with all models."""
from .base import BaseModel
from .user import User, Role, Capability
from .school_class import SchoolClass, Enrollment
from .class_session import ClassSession, SessionStatus, ACTIVE_STATUSES
from .attendance import Attendance, AttendanceStatus

__all__ = [
    'BaseModel', 'User', 'Role', 'Capability',
    'SchoolClass', 'Enrollment',
    'ClassSession', 'SessionStatus', 'ACTIVE_STATUSES',
    'Attendance', 'AttendanceStatus'
]
