# backend/qr_attendance/services/token_service.py
"""Opaque token generation for QR payloads."""
import secrets


class TokenService:
    """Mints unguessable tokens compared by equality only."""

    TOKEN_BYTES = 32

    @staticmethod
    def generate() -> str:
        """Generate a URL-safe random token (256 bits)."""
        return secrets.token_urlsafe(TokenService.TOKEN_BYTES)
