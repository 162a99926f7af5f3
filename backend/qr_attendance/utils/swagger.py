# backend/qr_attendance/utils/swagger.py
"""Swagger/OpenAPI configuration for the application."""
from flask_swagger_ui import get_swaggerui_blueprint

# Swagger UI configuration
SWAGGER_URL = '/api/docs'
API_URL = '/api/swagger.json'


def get_swagger_blueprint():
    """Create and return swagger UI blueprint."""
    return get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={
            'app_name': "QR Attendance API",
            'docExpansion': 'list',
            'validatorUrl': None,
        }
    )


def _envelope(data_schema: dict = None) -> dict:
    properties = {
        "error": {"type": "boolean"},
        "message": {"type": "string"}
    }
    if data_schema:
        properties["data"] = data_schema
    return {"type": "object", "properties": properties}


def _ref(name: str) -> dict:
    return {"$ref": f"#/components/schemas/{name}"}


def _op(summary: str, tag: str, response: dict = None, body: dict = None,
        secured: bool = True, errors: tuple = (400, 403, 404)) -> dict:
    operation = {
        "tags": [tag],
        "summary": summary,
        "responses": {
            "200": {
                "description": "Success",
                "content": {"application/json": {"schema": _envelope(response)}}
            }
        }
    }
    for code in errors:
        operation["responses"][str(code)] = {"$ref": f"#/components/responses/Error{code}"}
    if body:
        operation["requestBody"] = {
            "required": True,
            "content": {"application/json": {"schema": body}}
        }
    if secured:
        operation["security"] = [{"bearerAuth": []}]
    return operation


def generate_swagger_spec():
    """Build the OpenAPI document."""
    session_id = {"name": "session_id", "in": "path", "required": True, "schema": {"type": "integer"}}
    class_id = {"name": "class_id", "in": "path", "required": True, "schema": {"type": "integer"}}

    error_responses = {
        str(code): {
            "description": description,
            "content": {"application/json": {"schema": _envelope()}}
        }
        for code, description in (
            (400, "Validation error"),
            (401, "Authentication required"),
            (403, "Access denied"),
            (404, "Not found"),
            (409, "Invalid state or conflict"),
            (503, "Storage unavailable")
        )
    }

    return {
        "openapi": "3.0.0",
        "info": {
            "title": "QR Attendance API",
            "description": "Classroom attendance with rotating start/end QR codes",
            "version": "1.0.0"
        },
        "servers": [
            {"url": "http://127.0.0.1:5000", "description": "Development server"}
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
                "serviceKey": {"type": "apiKey", "in": "header", "name": "X-Service-Key"}
            },
            "responses": {f"Error{code}": body for code, body in error_responses.items()},
            "schemas": {
                "Class": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "lecturer_id": {"type": "integer"},
                        "name": {"type": "string"},
                        "unit_code": {"type": "string"},
                        "description": {"type": "string", "nullable": True}
                    }
                },
                "Session": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "class_id": {"type": "integer"},
                        "lecturer_id": {"type": "integer"},
                        "start_time": {"type": "string", "format": "date-time"},
                        "end_time": {"type": "string", "format": "date-time"},
                        "status": {"type": "string", "enum": ["scheduled", "in_progress", "ended"]},
                        "start_token": {"type": "string", "nullable": True},
                        "end_token": {"type": "string", "nullable": True}
                    }
                },
                "Attendance": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "session_id": {"type": "integer"},
                        "student_id": {"type": "integer"},
                        "status": {"type": "string", "enum": ["present", "completed", "left_early"]},
                        "start_scan_time": {"type": "string", "format": "date-time", "nullable": True},
                        "end_scan_time": {"type": "string", "format": "date-time", "nullable": True}
                    }
                },
                "QRPayload": {
                    "type": "object",
                    "required": ["sessionId", "classId", "type", "token"],
                    "properties": {
                        "sessionId": {"type": "integer"},
                        "classId": {"type": "integer"},
                        "type": {"type": "string", "enum": ["START", "END"]},
                        "token": {"type": "string"},
                        "timestamp": {"type": "integer"}
                    }
                }
            }
        },
        "paths": {
            "/api/auth/login": {
                "post": _op("Log in", "Auth", secured=False, errors=(400, 401), body={
                    "type": "object",
                    "properties": {"email": {"type": "string"}, "password": {"type": "string"}}
                })
            },
            "/api/classes/": {
                "get": _op("List classes", "Classes", {"type": "array", "items": _ref("Class")}),
                "post": _op("Create class", "Classes", _ref("Class"), body=_ref("Class"))
            },
            "/api/classes/{class_id}/enrollments": {
                "parameters": [class_id],
                "post": _op("Enroll students", "Classes", body={
                    "type": "object",
                    "properties": {"student_ids": {"type": "array", "items": {"type": "integer"}}}
                })
            },
            "/api/sessions/": {
                "get": _op("List sessions", "Sessions", {"type": "array", "items": _ref("Session")}),
                "post": _op("Create session", "Sessions", _ref("Session"), body={
                    "type": "object",
                    "properties": {
                        "class_id": {"type": "integer"},
                        "start_time": {"type": "string", "format": "date-time"},
                        "end_time": {"type": "string", "format": "date-time"}
                    }
                })
            },
            "/api/sessions/{session_id}/start": {
                "parameters": [session_id],
                "post": _op("Start session", "Sessions", _ref("Session"), errors=(403, 404, 409))
            },
            "/api/sessions/{session_id}/end-token": {
                "parameters": [session_id],
                "post": _op("Generate end QR token", "Sessions", _ref("Session"), errors=(403, 404, 409))
            },
            "/api/sessions/{session_id}/end": {
                "parameters": [session_id],
                "post": _op("End session and mark stragglers left early", "Sessions", errors=(403, 404, 409))
            },
            "/api/sessions/{session_id}/attendance": {
                "parameters": [session_id],
                "get": _op("List attendees", "Sessions", {"type": "array", "items": _ref("Attendance")})
            },
            "/api/scan/": {
                "post": _op("Verify a scanned QR code", "Scan", body={
                    "type": "object",
                    "properties": {"qr_data": {"type": "string"}}
                })
            },
            "/api/rotation/start-tokens": {
                "post": {
                    **_op("Rotate start tokens", "Rotation", secured=False, errors=(401, 503)),
                    "security": [{"serviceKey": []}]
                }
            },
            "/api/rotation/end-tokens": {
                "post": {
                    **_op("Rotate end tokens", "Rotation", secured=False, errors=(401, 503)),
                    "security": [{"serviceKey": []}]
                }
            },
            "/api/dashboard/stats": {
                "get": _op("Dashboard statistics", "Dashboard", errors=(401,))
            }
        }
    }
