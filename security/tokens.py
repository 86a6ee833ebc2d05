"""Signed session tokens backed by Flask-JWT-Extended."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from errors import AuthenticationError

INVALID_TOKEN_MESSAGE = "Token inválido ou expirado"


@dataclass(frozen=True)
class TokenPayload:
    """Identity embedded in a session token."""

    sub: int
    email: str
    papel_global: str
    iat: Optional[int] = None
    exp: Optional[int] = None


class TokenService:
    """Issue and verify self-contained session tokens.

    Both operations need an application context: the signing key and the
    default lifetime come from ``JWT_SECRET_KEY`` and
    ``JWT_ACCESS_TOKEN_EXPIRES``.
    """

    def __init__(
        self,
        *,
        expires_delta: Optional[timedelta] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.expires_delta = expires_delta
        self.logger = logger or logging.getLogger(__name__)

    def issue(self, subject_id: int, email: str, role: str) -> str:
        kwargs = {}
        if self.expires_delta is not None:
            kwargs["expires_delta"] = self.expires_delta
        return create_access_token(
            identity=str(subject_id),
            additional_claims={"email": email, "papelGlobal": role},
            **kwargs,
        )

    def verify(self, token: str) -> TokenPayload:
        """Return the embedded identity or raise ``AuthenticationError``."""

        if not token:
            raise AuthenticationError(INVALID_TOKEN_MESSAGE)
        try:
            claims = decode_token(token)
            return TokenPayload(
                sub=int(claims["sub"]),
                email=claims["email"],
                papel_global=claims["papelGlobal"],
                iat=claims.get("iat"),
                exp=claims.get("exp"),
            )
        except (PyJWTError, JWTExtendedException, KeyError, TypeError, ValueError) as exc:
            self.logger.info("Session token rejected: %s", exc.__class__.__name__)
            raise AuthenticationError(INVALID_TOKEN_MESSAGE) from exc
