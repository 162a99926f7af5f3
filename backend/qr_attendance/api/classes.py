# backend/qr_attendance/api/classes.py
"""Classes and enrollment API endpoints."""
import pandas as pd
from flask import Blueprint, request

from qr_attendance import limiter
from qr_attendance.models.user import Capability
from qr_attendance.services.class_service import ClassService
from qr_attendance.utils.decorators import (
    login_required, capability_required, get_current_user
)
from qr_attendance.utils.helpers import allowed_file, success_response, error_response

classes_bp = Blueprint('classes', __name__)


@classes_bp.route('/', methods=['GET'])
@login_required
def get_classes():
    """List classes visible to the current user."""
    classes = ClassService.list_classes(get_current_user())
    return success_response(
        data=[c.to_dict() for c in classes],
        message=f"Found {len(classes)} classes"
    )


@classes_bp.route('/', methods=['POST'])
@capability_required(Capability.MANAGE_CLASSES, message="Only lecturers can create classes")
@limiter.limit("30 per hour")
def create_class():
    """Create a class owned by the current lecturer."""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return error_response("Request body must be JSON", 400)

    school_class = ClassService.create_class(
        get_current_user(),
        name=data.get('name'),
        unit_code=data.get('unit_code'),
        description=data.get('description')
    )
    return success_response(data=school_class.to_dict(), message="Class created successfully"), 201


@classes_bp.route('/<int:class_id>', methods=['GET'])
@login_required
def get_class(class_id):
    school_class = ClassService.get_class(class_id, get_current_user())
    return success_response(data=school_class.to_dict())


@classes_bp.route('/<int:class_id>/enrollments', methods=['GET'])
@capability_required(Capability.MANAGE_ENROLLMENTS)
def get_enrollments(class_id):
    enrollments = ClassService.list_enrollments(class_id, get_current_user())
    return success_response(data=enrollments, message=f"Found {len(enrollments)} students")


@classes_bp.route('/<int:class_id>/enrollments', methods=['POST'])
@capability_required(Capability.MANAGE_ENROLLMENTS)
def enroll_students(class_id):
    """Enroll students by id: {"student_ids": [...]}."""
    data = request.get_json(silent=True)
    student_ids = data.get('student_ids') if isinstance(data, dict) else None

    if not isinstance(student_ids, list) or len(student_ids) == 0:
        return error_response("Valid student IDs list is required", 400)

    result = ClassService.enroll_students(get_current_user(), class_id, student_ids)
    return success_response(
        data=result,
        message=f"Enrolled {len(result['enrolled'])} students"
    )


@classes_bp.route('/<int:class_id>/enrollments/import', methods=['POST'])
@capability_required(Capability.MANAGE_ENROLLMENTS)
def import_enrollments(class_id):
    """Enroll students from an uploaded CSV file."""
    if 'file' not in request.files:
        return error_response("No file uploaded", 400)

    upload = request.files['file']
    if not allowed_file(upload.filename):
        return error_response("Only CSV files are supported", 400)

    try:
        df = pd.read_csv(upload)
    except (ValueError, pd.errors.ParserError) as e:
        return error_response(f"Could not read CSV: {str(e)}", 400)

    results = ClassService.import_enrollments(get_current_user(), class_id, df)
    successful = len([r for r in results if r['success']])

    return success_response(
        data={
            'results': results,
            'summary': {
                'total': len(results),
                'successful': successful,
                'failed': len(results) - successful
            }
        },
        message=f"Enrolled {successful} students"
    )
