# backend/qr_attendance/client/scanner.py
"""Camera scanning loop for the student device.

The camera is owned by a ``CameraHandle`` for exactly as long as a scan
runs. Frame capture and barcode decoding are injected, so any camera
library (or a fake in tests) can be plugged in:

    with CameraHandle(lambda: cv2.VideoCapture(0)) as camera:
        result = ScanClient(SERVER_URL, token).scan_once(camera, decode_qr)
"""
import logging
import threading
from typing import Any, Callable, Dict, Optional

import requests

logger = logging.getLogger(__name__)

Decoder = Callable[[Any], Optional[str]]


class ScanAborted(Exception):
    """The scan was stopped before a code was decoded."""


class CameraHandle:
    """Scoped ownership of a frame source.

    The source is opened on ``__enter__`` and released on ``__exit__``,
    whether the scan succeeded, failed or was stopped. The source must
    provide ``read()`` and ``release()``; ``read()`` may return either a
    frame or an OpenCV style ``(ok, frame)`` tuple.
    """

    def __init__(self, open_source: Callable[[], Any]):
        self._open_source = open_source
        self._source = None

    @property
    def is_open(self) -> bool:
        return self._source is not None

    def open(self) -> 'CameraHandle':
        if self._source is None:
            self._source = self._open_source()
            logger.debug('Camera acquired')
        return self

    def read(self) -> Any:
        if self._source is None:
            raise RuntimeError('Camera is not open')

        frame = self._source.read()
        if isinstance(frame, tuple):
            ok, frame = frame
            if not ok:
                return None
        return frame

    def release(self) -> None:
        source, self._source = self._source, None
        if source is not None:
            source.release()
            logger.debug('Camera released')

    def __enter__(self) -> 'CameraHandle':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class ScanClient:
    """Submits decoded QR text to the attendance server."""

    def __init__(self, base_url: str, access_token: str, timeout: float = 10,
                 session: requests.Session = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = session or requests.Session()
        self.http.headers.update({
            'Authorization': f'Bearer {access_token}',
            'Content-Type': 'application/json'
        })
        self.stop_event = threading.Event()

    def stop(self) -> None:
        """Abort a running ``scan_once`` from another thread."""
        self.stop_event.set()

    def scan_once(self, camera: CameraHandle, decoder: Decoder,
                  max_frames: int = None) -> Dict[str, Any]:
        """Read frames until one decodes, then submit it.

        Raises ScanAborted if stopped or out of frames first; nothing is
        submitted in that case.
        """
        self.stop_event.clear()
        frames = 0

        while not self.stop_event.is_set():
            if max_frames is not None and frames >= max_frames:
                break
            frames += 1

            frame = camera.read()
            if frame is None:
                continue

            text = decoder(frame)
            if not text:
                continue

            if self.stop_event.is_set():
                break
            return self.submit(text)

        logger.info('Scan aborted after %s frames', frames)
        raise ScanAborted()

    def submit(self, qr_text: str) -> Dict[str, Any]:
        """POST decoded text to the scan endpoint.

        Returns {"success": bool, "message": str}. Network failures are
        reported as a failed result rather than raised.
        """
        try:
            response = self.http.post(
                f'{self.base_url}/api/scan/',
                json={'qr_data': qr_text},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.warning('Scan submission failed: %s', e)
            return {'success': False, 'message': 'Could not reach the attendance server'}

        try:
            body = response.json()
        except ValueError:
            body = {}

        data = body.get('data') or {}
        return {
            'success': bool(data.get('success', response.ok and not body.get('error', True))),
            'message': body.get('message') or f'Server responded with {response.status_code}'
        }
