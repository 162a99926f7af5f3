"""Tests for the student-device scanner client."""
import pytest
import requests

from qr_attendance.client import CameraHandle, ScanClient, ScanAborted


class FakeCamera:
    def __init__(self, frames):
        self.frames = list(frames)
        self.released = False

    def read(self):
        if not self.frames:
            return False, None
        return True, self.frames.pop(0)

    def release(self):
        self.released = True


class FakeResponse:
    def __init__(self, body, status_code=200):
        self.body = body
        self.status_code = status_code
        self.ok = status_code < 400

    def json(self):
        return self.body


class FakeHTTP:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.posts = []
        self.response = response
        self.error = error

    def post(self, url, json, timeout):
        self.posts.append((url, json))
        if self.error:
            raise self.error
        return self.response


def decode_qr(frame):
    return frame if frame.startswith('{') else None


@pytest.fixture
def http():
    return FakeHTTP(FakeResponse({
        'error': False,
        'message': 'Attendance marked successfully',
        'data': {'success': True, 'message': 'Attendance marked successfully'}
    }))


@pytest.fixture
def scan_client(http):
    return ScanClient('http://attendance.local/', 'jwt-token', session=http)


def test_submits_first_decoded_frame(scan_client, http):
    camera = FakeCamera(['blur', 'blur', '{"sessionId": 1}', '{"sessionId": 2}'])

    with CameraHandle(lambda: camera) as handle:
        result = scan_client.scan_once(handle, decode_qr)

    assert result == {'success': True, 'message': 'Attendance marked successfully'}
    assert http.posts == [('http://attendance.local/api/scan/', {'qr_data': '{"sessionId": 1}'})]
    assert http.headers['Authorization'] == 'Bearer jwt-token'
    assert camera.released


def test_stop_aborts_without_submitting(scan_client, http):
    camera = FakeCamera(['blur'] * 100)

    def decoder(frame):
        scan_client.stop()
        return None

    with CameraHandle(lambda: camera) as handle:
        with pytest.raises(ScanAborted):
            scan_client.scan_once(handle, decoder)

    assert http.posts == []
    assert camera.released


def test_out_of_frames_aborts(scan_client, http):
    with CameraHandle(lambda: FakeCamera(['blur'] * 3)) as handle:
        with pytest.raises(ScanAborted):
            scan_client.scan_once(handle, decode_qr, max_frames=3)
    assert http.posts == []


def test_camera_released_on_decoder_error(scan_client):
    camera = FakeCamera(['frame'])

    def broken(frame):
        raise RuntimeError('decoder crashed')

    with pytest.raises(RuntimeError):
        with CameraHandle(lambda: camera) as handle:
            scan_client.scan_once(handle, broken)

    assert camera.released


def test_read_after_release_fails():
    handle = CameraHandle(lambda: FakeCamera([]))
    with handle:
        assert handle.is_open
    assert not handle.is_open
    with pytest.raises(RuntimeError):
        handle.read()


def test_server_rejection_is_reported(http, scan_client):
    http.response = FakeResponse({
        'error': True,
        'message': 'Invalid QR code',
        'data': {'success': False, 'message': 'Invalid QR code'}
    })
    assert scan_client.submit('{}') == {'success': False, 'message': 'Invalid QR code'}


def test_network_failure_is_reported(scan_client, http):
    http.error = requests.exceptions.ConnectionError('refused')

    result = scan_client.submit('{}')
    assert result['success'] is False
    assert result['message'] == 'Could not reach the attendance server'


def test_http_error_without_data(http, scan_client):
    http.response = FakeResponse({'error': True, 'message': 'Student access required'}, status_code=403)
    assert scan_client.submit('{}') == {'success': False, 'message': 'Student access required'}
