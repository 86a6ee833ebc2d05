"""User model definition."""

from datetime import datetime
from typing import Optional

from security.passwords import hash_password, verify_password
from utils.clock import utcnow

from . import db


ROLE_USER = "USUARIO"
ROLE_CLUB_ADMIN = "ADMIN_CLUBE"
ROLE_MASTER = "MASTER"
ROLES = (ROLE_USER, ROLE_CLUB_ADMIN, ROLE_MASTER)

NAME_MAX_LENGTH = 100


class User(db.Model):
    """Represents one platform account, local or linked to Google."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(NAME_MAX_LENGTH), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    # Absent for accounts that only sign in with Google.
    password_hash = db.Column(db.String(255), nullable=True)
    role = db.Column(
        db.Enum(*ROLES, name="papel_global"),
        nullable=False,
        default=ROLE_USER,
        server_default=db.text(f"'{ROLE_USER}'"),
    )
    profile_photo_url = db.Column(db.String(512), nullable=True)
    email_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    verification_token = db.Column(db.String(128), unique=True, nullable=True)
    recovery_token = db.Column(db.String(128), unique=True, nullable=True)
    recovery_token_expires_at = db.Column(db.DateTime, nullable=True)
    google_id = db.Column(db.String(255), unique=True, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash.

        Accounts without a password never match.
        """

        if not self.password_hash:
            return False
        return verify_password(self.password_hash, password)

    def mark_email_verified(self) -> None:
        """Flag the email as verified and consume the pending verification token."""

        self.email_verified = True
        self.verification_token = None

    def start_password_recovery(self, token: str, expires_at: datetime) -> None:
        self.recovery_token = token
        self.recovery_token_expires_at = expires_at

    def clear_password_recovery(self) -> None:
        self.recovery_token = None
        self.recovery_token_expires_at = None

    def recovery_expired(self, now: Optional[datetime] = None) -> bool:
        """Return True when there is no expiry or it has already passed."""

        if self.recovery_token_expires_at is None:
            return True
        return self.recovery_token_expires_at < (now or utcnow())

    def to_summary(self) -> dict:
        """Serialize the fields returned alongside a session token."""

        return {
            "id": self.id,
            "nome": self.name,
            "email": self.email,
            "papelGlobal": self.role,
            "fotoPerfilUrl": self.profile_photo_url,
        }

    def to_dict(self) -> dict:
        """Serialize the public profile of the user."""

        data = self.to_summary()
        data.update(
            {
                "emailVerificado": self.email_verified,
                "criadoEm": self.created_at.isoformat() if self.created_at else None,
                "atualizadoEm": self.updated_at.isoformat() if self.updated_at else None,
            }
        )
        return data

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
