"""JWT utilities for authentication using authlib"""

import time
from typing import Dict, Optional

from authlib.jose import JoseError, JsonWebToken
from authlib.jose.errors import InvalidTokenError

from eventhub.auth.models import AuthUser
from eventhub.config import config
from eventhub.logging_config import get_logger

logger = get_logger(__name__)


class JWTUtils:
    """Issues and verifies HS256 access tokens carrying {id, email, role}"""

    def __init__(self, secret: Optional[str] = None, expiry_hours: Optional[int] = None):
        self.jwt = JsonWebToken(["HS256"])
        self.secret = secret or config.get("jwt_secret")
        self.expiry_seconds = (expiry_hours or config.get("jwt_expiry_hours", 24)) * 3600

        if not self.secret:
            raise ValueError("JWT_SECRET must be configured")

    def create_access_token(self, user_id: int, email: str, role: str) -> str:
        """
        Create a signed access token for a user

        Args:
            user_id: Database id of the user
            email: User's email address
            role: User's role value

        Returns:
            Encoded JWT string
        """
        now = int(time.time())
        payload = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "iat": now,
            "exp": now + self.expiry_seconds,
        }
        token = self.jwt.encode({"alg": "HS256"}, payload, self.secret)
        return token.decode("utf-8")

    def verify_token(self, token: str) -> Dict:
        """
        Verify signature and expiry of a token

        Raises:
            InvalidTokenError: If token is malformed, forged or expired
        """
        try:
            claims = self.jwt.decode(
                token,
                self.secret,
                claims_options={"exp": {"essential": True}, "sub": {"essential": True}},
            )
            claims.validate()
            return dict(claims)
        except JoseError as e:
            logger.info(f"JWT validation failed: {e}")
            raise InvalidTokenError(f"Token validation failed: {str(e)}")
        except ValueError as e:
            raise InvalidTokenError(f"Malformed token: {str(e)}")

    def extract_user(self, token: str) -> AuthUser:
        """
        Extract the authenticated identity from a token

        Raises:
            InvalidTokenError: If token is invalid or carries unusable claims
        """
        claims = self.verify_token(token)
        try:
            return AuthUser(
                id=int(claims["sub"]), email=claims["email"], role=claims["role"]
            )
        except (KeyError, ValueError) as e:
            raise InvalidTokenError(f"Token claims are incomplete: {str(e)}")


# Global JWT utilities instance
jwt_utils = JWTUtils()
