# backend/qr_attendance/services/class_service.py
"""Class and enrollment management service."""
from typing import Dict, Iterable, List

import pandas as pd

from qr_attendance import db
from qr_attendance.models.school_class import SchoolClass, Enrollment
from qr_attendance.models.user import User, Role, Capability
from qr_attendance.utils.db import transaction
from qr_attendance.utils.errors import AuthorizationError, NotFoundError, ValidationError
from qr_attendance.utils.validators import Validator


class ClassService:
    """Service for managing classes and their student rosters."""

    @staticmethod
    def create_class(actor: User, name: str, unit_code: str, description: str = None) -> SchoolClass:
        """Create a class owned by the acting lecturer."""
        if not actor.can(Capability.MANAGE_CLASSES):
            raise AuthorizationError('Only lecturers can create classes')

        Validator.require(Validator.validate_required_fields(
            {'name': name, 'unit_code': unit_code}, ['name', 'unit_code']
        ))
        Validator.require(Validator.validate_unit_code(unit_code))

        with transaction():
            school_class = SchoolClass(
                lecturer_id=actor.id,
                name=str(name).strip(),
                unit_code=str(unit_code).strip().upper(),
                description=str(description or '').strip() or None
            )
            db.session.add(school_class)

        return school_class

    @staticmethod
    def list_classes(actor: User) -> List[SchoolClass]:
        """Classes visible to the actor, newest first."""
        query = SchoolClass.query
        if actor.can(Capability.VIEW_ALL):
            pass
        elif actor.is_student():
            query = query.join(Enrollment).filter(Enrollment.student_id == actor.id)
        else:
            query = query.filter_by(lecturer_id=actor.id)
        return query.order_by(SchoolClass.created_at.desc(), SchoolClass.id.desc()).all()

    @staticmethod
    def get_class(class_id: int, actor: User) -> SchoolClass:
        school_class = db.session.get(SchoolClass, class_id)
        if school_class is None:
            raise NotFoundError('Class not found')

        if actor.can(Capability.VIEW_ALL) or school_class.is_owned_by(actor.id):
            return school_class
        if actor.is_student() and Enrollment.exists(class_id, actor.id):
            return school_class
        raise AuthorizationError('Access denied')

    @staticmethod
    def _managed_class(class_id: int, actor: User) -> SchoolClass:
        if not actor.can(Capability.MANAGE_ENROLLMENTS):
            raise AuthorizationError('Enrollment management access required')

        school_class = db.session.get(SchoolClass, class_id)
        if school_class is None:
            raise NotFoundError('Class not found')
        if not (actor.is_admin() or school_class.is_owned_by(actor.id)):
            raise AuthorizationError('You can only manage enrollments of your own classes')
        return school_class

    @staticmethod
    def list_enrollments(class_id: int, actor: User) -> List[Dict]:
        school_class = ClassService._managed_class(class_id, actor)
        return [
            {
                'id': enrollment.id,
                'student_id': enrollment.student.id,
                'name': enrollment.student.name,
                'email': enrollment.student.email
            }
            for enrollment in school_class.enrollments.order_by(Enrollment.id)
        ]

    @staticmethod
    def enroll_students(actor: User, class_id: int, student_ids: Iterable) -> Dict[str, List]:
        """Enroll students by user id.

        Unknown or non-student ids are reported back; existing enrollments
        are skipped.
        """
        with transaction():
            school_class = ClassService._managed_class(class_id, actor)
            result = ClassService._enroll(school_class, student_ids)
        return result

    @staticmethod
    def import_enrollments(actor: User, class_id: int, df: pd.DataFrame) -> List[Dict]:
        """Enroll students listed in a DataFrame (``email`` or ``student_id`` column)."""
        if 'email' not in df.columns and 'student_id' not in df.columns:
            raise ValidationError("CSV must contain an 'email' or 'student_id' column")

        results = []
        with transaction():
            school_class = ClassService._managed_class(class_id, actor)

            for index, row in df.iterrows():
                student = ClassService._resolve_student(row)
                line = index + 2  # header is line 1

                if student is None:
                    results.append({'row': line, 'success': False, 'error': 'Student not found'})
                    continue

                outcome = ClassService._enroll(school_class, [student.id])
                if outcome['enrolled']:
                    results.append({'row': line, 'success': True, 'student_id': student.id})
                else:
                    results.append({
                        'row': line,
                        'success': False,
                        'student_id': student.id,
                        'error': 'Already enrolled'
                    })

        return results

    @staticmethod
    def _resolve_student(row) -> User:
        email = row.get('email')
        if isinstance(email, str) and email.strip():
            return User.query.filter_by(email=email.strip().lower(), role=Role.STUDENT).first()

        student_id = row.get('student_id')
        if student_id is None or pd.isna(student_id):
            return None
        try:
            student_id = int(student_id)
        except (TypeError, ValueError):
            return None
        return User.query.filter_by(id=student_id, role=Role.STUDENT).first()

    @staticmethod
    def _enroll(school_class: SchoolClass, student_ids: Iterable) -> Dict[str, List]:
        enrolled, skipped, invalid = [], [], []

        for raw_id in student_ids:
            try:
                student_id = Validator.parse_id(raw_id, 'student id')
            except ValidationError:
                invalid.append(raw_id)
                continue

            student = db.session.get(User, student_id)
            if student is None or not student.is_student():
                invalid.append(student_id)
            elif Enrollment.exists(school_class.id, student_id) or student_id in enrolled:
                skipped.append(student_id)
            else:
                db.session.add(Enrollment(class_id=school_class.id, student_id=student_id))
                enrolled.append(student_id)

        db.session.flush()
        return {'enrolled': enrolled, 'skipped': skipped, 'invalid': invalid}
