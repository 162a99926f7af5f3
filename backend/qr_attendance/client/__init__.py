"""Student-device scanner client."""
from qr_attendance.client.scanner import CameraHandle, ScanClient, ScanAborted

__all__ = ['CameraHandle', 'ScanClient', 'ScanAborted']
