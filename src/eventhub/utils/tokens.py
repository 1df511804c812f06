"""Random codes and tokens for verification flows"""

import secrets


def generate_otp() -> str:
    """Six-digit numeric code, never starting with zero."""
    return str(100000 + secrets.randbelow(900000))


def generate_token() -> str:
    """URL-safe random token for verification and reset links."""
    return secrets.token_urlsafe(32)


def generate_password() -> str:
    """Temporary password handed to invited organizers."""
    return secrets.token_hex(8)
