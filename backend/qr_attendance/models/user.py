"""User model for authentication and authorization."""
from enum import Enum
from werkzeug.security import generate_password_hash, check_password_hash
from qr_attendance import db
from qr_attendance.models.base import BaseModel


class Capability(Enum):
    """Things a signed-in user may do."""
    MANAGE_CLASSES = 'manage_classes'
    MANAGE_SESSIONS = 'manage_sessions'
    MANAGE_ENROLLMENTS = 'manage_enrollments'
    SCAN_ATTENDANCE = 'scan_attendance'
    VIEW_ALL = 'view_all'


class Role(Enum):
    """User roles, each bound to a fixed capability set."""
    ADMIN = 'admin'
    LECTURER = 'lecturer'
    STUDENT = 'student'

    @property
    def capabilities(self) -> frozenset:
        return ROLE_CAPABILITIES[self]


ROLE_CAPABILITIES = {
    Role.ADMIN: frozenset({
        Capability.VIEW_ALL,
        Capability.MANAGE_ENROLLMENTS,
    }),
    Role.LECTURER: frozenset({
        Capability.MANAGE_CLASSES,
        Capability.MANAGE_SESSIONS,
        Capability.MANAGE_ENROLLMENTS,
    }),
    Role.STUDENT: frozenset({
        Capability.SCAN_ATTENDANCE,
    }),
}


class User(BaseModel):
    """User model for all system users."""

    __tablename__ = 'users'

    # Basic Information
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(Role), nullable=False, default=Role.STUDENT)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)

    # Relationships
    classes = db.relationship('SchoolClass', backref='lecturer', lazy='dynamic')
    enrollments = db.relationship('Enrollment', backref='student', lazy='dynamic')

    def set_password(self, password: str) -> None:
        """Set user password with hashing."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Check if provided password matches user's password."""
        return check_password_hash(self.password_hash, password)

    def can(self, capability: Capability) -> bool:
        return capability in self.role.capabilities

    def is_student(self) -> bool:
        return self.role == Role.STUDENT

    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary excluding sensitive data."""
        exclude = (exclude or []) + ['password_hash']
        result = super().to_dict(exclude=exclude)
        result['capabilities'] = sorted(c.value for c in self.role.capabilities)
        return result

    def __repr__(self) -> str:
        return f'<User {self.email}>'
