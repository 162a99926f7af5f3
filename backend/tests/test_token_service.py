"""Tests for opaque token generation."""
import re

from qr_attendance.services.token_service import TokenService


def test_tokens_are_url_safe_and_long_enough():
    token = TokenService.generate()
    assert len(token) >= 43
    assert re.fullmatch(r'[A-Za-z0-9_-]+', token)


def test_tokens_do_not_repeat():
    tokens = {TokenService.generate() for _ in range(500)}
    assert len(tokens) == 500
