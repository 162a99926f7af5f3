"""Class and enrollment models."""
from qr_attendance import db
from qr_attendance.models.base import BaseModel


class SchoolClass(BaseModel):
    """A lecturer-owned class that sessions are scheduled for."""

    __tablename__ = 'classes'

    lecturer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    unit_code = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Relationships
    sessions = db.relationship('ClassSession', backref='school_class', lazy='dynamic')
    enrollments = db.relationship('Enrollment', backref='school_class', lazy='dynamic')

    def is_owned_by(self, user_id: int) -> bool:
        return self.lecturer_id == user_id

    def __repr__(self):
        return f'<SchoolClass {self.unit_code}>'


class Enrollment(BaseModel):
    """Membership of a student in a class."""

    __tablename__ = 'class_students'
    __table_args__ = (
        db.UniqueConstraint('class_id', 'student_id', name='uq_class_student'),
    )

    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    @classmethod
    def exists(cls, class_id: int, student_id: int) -> bool:
        return db.session.query(
            cls.query.filter_by(class_id=class_id, student_id=student_id).exists()
        ).scalar()

    def __repr__(self):
        return f'<Enrollment {self.class_id}-{self.student_id}>'
