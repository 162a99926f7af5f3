# File: backend/qr_attendance/services/seed_service.py
"""Database seeding service for demo data."""
from datetime import timedelta
from typing import List, Tuple

from qr_attendance import db
from qr_attendance.models.user import User, Role
from qr_attendance.models.school_class import SchoolClass, Enrollment
from qr_attendance.models.class_session import ClassSession, SessionStatus
from qr_attendance.services.token_service import TokenService
from qr_attendance.utils.helpers import utcnow


class SeedService:
    """Service to seed database with demo data."""

    DEMO_PASSWORD = 'password123'

    @staticmethod
    def seed_all() -> List[Tuple[str, str]]:
        """Seed users, a class, its roster and one session. Returns login pairs."""
        admin = SeedService._user('admin@university.edu', 'System Administrator', Role.ADMIN)
        lecturer = SeedService._user('lecturer@university.edu', 'Dr. Jane Mwangi', Role.LECTURER)
        students = [
            SeedService._user(f'student{i}@university.edu', f'Student {i}', Role.STUDENT)
            for i in range(1, 6)
        ]
        db.session.flush()

        school_class = SchoolClass.query.filter_by(lecturer_id=lecturer.id, unit_code='CS101').first()
        if school_class is None:
            school_class = SchoolClass(
                lecturer_id=lecturer.id,
                name='Introduction to Programming',
                unit_code='CS101',
                description='Demo class'
            )
            db.session.add(school_class)
            db.session.flush()

        for student in students:
            if not Enrollment.exists(school_class.id, student.id):
                db.session.add(Enrollment(class_id=school_class.id, student_id=student.id))

        if school_class.sessions.count() == 0:
            now = utcnow()
            db.session.add(ClassSession(
                class_id=school_class.id,
                lecturer_id=lecturer.id,
                start_time=now + timedelta(minutes=10),
                end_time=now + timedelta(hours=1, minutes=10),
                status=SessionStatus.SCHEDULED,
                start_token=TokenService.generate()
            ))

        db.session.commit()
        return [(user.email, SeedService.DEMO_PASSWORD) for user in [admin, lecturer] + students]

    @staticmethod
    def _user(email: str, name: str, role: Role) -> User:
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(email=email, name=name, role=role)
            user.set_password(SeedService.DEMO_PASSWORD)
            db.session.add(user)
        return user
