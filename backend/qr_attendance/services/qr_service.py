# backend/qr_attendance/services/qr_service.py
"""QR payload building, parsing and rendering."""
import base64
import io
import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import qrcode
from flask import current_app

from qr_attendance.utils.errors import ValidationError
from qr_attendance.utils.helpers import utcnow
from qr_attendance.utils.validators import MAX_ID

INVALID_QR_MESSAGE = 'Invalid QR code'


class ScanType(Enum):
    """Which check-in a QR code is for."""
    START = 'START'
    END = 'END'


@dataclass
class QRPayload:
    """Content of a displayed QR code."""
    session_id: int
    class_id: int
    type: ScanType
    token: str
    timestamp: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sessionId': self.session_id,
            'classId': self.class_id,
            'type': self.type.value,
            'token': self.token,
            'timestamp': self.timestamp,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'))


class QRService:
    """Service for QR code operations."""

    REQUIRED_FIELDS = ('sessionId', 'classId', 'type', 'token')

    @staticmethod
    def build_payload(session, scan_type: ScanType) -> QRPayload:
        """Build the payload shown for a session's start or end code."""
        token = session.start_token if scan_type == ScanType.START else session.end_token
        return QRPayload(
            session_id=session.id,
            class_id=session.class_id,
            type=scan_type,
            token=token,
            timestamp=int(utcnow().timestamp() * 1000)
        )

    @staticmethod
    def parse_payload(data: Any) -> QRPayload:
        """Parse decoded QR text (or an already-decoded dict).

        Raises ValidationError for anything that is not a well-formed payload.
        """
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except (TypeError, ValueError):
                raise ValidationError(INVALID_QR_MESSAGE)

        if not isinstance(data, dict):
            raise ValidationError(INVALID_QR_MESSAGE)

        for field in QRService.REQUIRED_FIELDS:
            if data.get(field) in (None, ''):
                raise ValidationError(INVALID_QR_MESSAGE)

        try:
            session_id = QRService._parse_id(data['sessionId'])
            class_id = QRService._parse_id(data['classId'])
            scan_type = ScanType(str(data['type']).upper())
        except (TypeError, ValueError):
            raise ValidationError(INVALID_QR_MESSAGE)

        token = data['token']
        if not isinstance(token, str):
            raise ValidationError(INVALID_QR_MESSAGE)

        timestamp = data.get('timestamp')
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)) or not math.isfinite(timestamp):
            timestamp = None

        return QRPayload(
            session_id=session_id,
            class_id=class_id,
            type=scan_type,
            token=token,
            timestamp=int(timestamp) if timestamp is not None else None
        )

    @staticmethod
    def _parse_id(value: Any) -> int:
        """Accept a positive integer or a string of digits within column range."""
        if isinstance(value, bool):
            raise ValueError(value)
        if isinstance(value, int):
            parsed = value
        elif isinstance(value, str) and value.strip().isdigit():
            parsed = int(value.strip())
        else:
            raise ValueError(value)
        if not 0 < parsed <= MAX_ID:
            raise ValueError(value)
        return parsed

    @staticmethod
    def render_png(payload: QRPayload) -> str:
        """Render the payload as a PNG data URI."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=current_app.config.get('QR_BOX_SIZE', 10),
            border=current_app.config.get('QR_BORDER', 4),
        )
        qr.add_data(payload.to_json())
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"
