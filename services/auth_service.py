"""Account lifecycle: login, registration, Google linking, verification and recovery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError

from errors import AuthenticationError, ConflictError, EmailDeliveryError, ValidationError
from models import db
from models.user import NAME_MAX_LENGTH, ROLE_USER, User
from security.secure_tokens import generate_opaque_token, recovery_expiry
from security.tokens import TokenPayload, TokenService
from services.email_service import EmailService, redact_email
from utils.clock import utcnow

INVALID_CREDENTIALS = "Email ou senha inválidos"
RECOVERY_REQUESTED = "Se o email existir, um link de recuperação será enviado."


@dataclass
class AuthResult:
    """Session token plus the account summary returned to the client."""

    access_token: str
    user: User

    def to_dict(self) -> dict:
        return {"access_token": self.access_token, "usuario": self.user.to_summary()}


@dataclass(frozen=True)
class ExternalIdentity:
    """Profile asserted by the external identity provider (Google)."""

    provider_id: str
    email: str
    name: str
    photo_url: Optional[str] = None
    email_verified: bool = False


class AuthService:
    """Owns every account state transition.

    Each mutating operation is a single-row write committed immediately;
    uniqueness races surface from the database as ``IntegrityError`` and are
    reported as ``ConflictError``. Emails are best-effort: delivery failures
    are logged and never undo the account change.
    """

    def __init__(
        self,
        token_service: TokenService,
        email_service: EmailService,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.token_service = token_service
        self.email_service = email_service
        self.logger = logger or logging.getLogger(__name__)

    # Sessions

    def login(self, email: str, password: str) -> AuthResult:
        user = self._find_by_email(email)
        if user is None:
            self.logger.warning("Login attempt for unknown email %s", redact_email(email))
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not user.has_password:
            self.logger.warning("Password login attempt on Google account %s", redact_email(email))
            raise AuthenticationError("Esta conta usa login com Google")

        if not user.check_password(password):
            self.logger.warning("Login attempt with wrong password for %s", redact_email(email))
            raise AuthenticationError(INVALID_CREDENTIALS)

        self.logger.info("Successful login for user %s", user.id)
        return self._session_for(user)

    def register(self, name: str, email: str, password: str) -> AuthResult:
        if self._find_by_email(email) is not None:
            self.logger.warning("Registration attempt with existing email %s", redact_email(email))
            raise ConflictError("Email já cadastrado")

        user = User(
            name=name,
            email=email,
            role=ROLE_USER,
            email_verified=False,
            verification_token=generate_opaque_token(),
        )
        user.set_password(password)
        self._insert(user)

        self._dispatch(
            self.email_service.send_verification, user.email, user.name, user.verification_token
        )
        self.logger.info("Registered new user %s", user.id)
        return self._session_for(user)

    def login_with_external_provider(self, identity: ExternalIdentity) -> AuthResult:
        user = self._find_by_google_id(identity.provider_id)

        if user is None:
            user = self._find_by_email(identity.email)
            if user is not None:
                self._link_external_account(user, identity)

        if user is None:
            user = User(
                name=identity.name[:NAME_MAX_LENGTH],
                email=identity.email,
                google_id=identity.provider_id,
                profile_photo_url=identity.photo_url,
                email_verified=identity.email_verified,
                role=ROLE_USER,
                password_hash=None,
            )
            self._insert(user)
            self.logger.info("Created account %s from Google login", user.id)
        else:
            self.logger.info("Google login for user %s", user.id)

        return self._session_for(user)

    def verify_token(self, token: str) -> TokenPayload:
        return self.token_service.verify(token)

    # Email verification

    def verify_email(self, token: str) -> dict:
        user = User.query.filter_by(verification_token=token).first() if token else None
        if user is None:
            raise ValidationError("Token de verificação inválido")
        if user.email_verified:
            raise ValidationError("Email já verificado")

        user.mark_email_verified()
        db.session.commit()

        self._dispatch(self.email_service.send_welcome, user.email, user.name)
        self.logger.info("Email verified for user %s", user.id)
        return {"message": "Email verificado com sucesso!"}

    def resend_verification(self, email: str) -> dict:
        user = self._find_by_email(email)
        if user is None:
            raise ValidationError("Usuário não encontrado")
        if user.email_verified:
            raise ValidationError("Email já verificado")
        if not user.has_password:
            raise ValidationError(
                "Usuários que fazem login com Google não precisam verificar email"
            )

        user.verification_token = generate_opaque_token()
        db.session.commit()

        self._dispatch(
            self.email_service.send_verification, user.email, user.name, user.verification_token
        )
        self.logger.info("Verification email re-sent for user %s", user.id)
        return {"message": "Email de verificação reenviado com sucesso!"}

    # Password recovery

    def request_password_recovery(self, email: str) -> dict:
        user = self._find_by_email(email)
        if user is None:
            return {"message": RECOVERY_REQUESTED}

        if not user.has_password:
            raise ValidationError(
                "Usuários que fazem login com Google não podem recuperar senha"
            )

        user.start_password_recovery(generate_opaque_token(), recovery_expiry())
        db.session.commit()

        self._dispatch(
            self.email_service.send_password_recovery,
            user.email,
            user.name,
            user.recovery_token,
        )
        self.logger.info("Password recovery requested for user %s", user.id)
        return {"message": RECOVERY_REQUESTED}

    def reset_password(self, token: str, new_password: str) -> dict:
        user = User.query.filter_by(recovery_token=token).first() if token else None
        if user is None:
            raise ValidationError("Token de recuperação inválido")
        if user.recovery_expired(utcnow()):
            raise ValidationError("Token de recuperação expirado")

        user.set_password(new_password)
        user.clear_password_recovery()
        db.session.commit()

        self.logger.info("Password reset for user %s", user.id)
        return {"message": "Senha redefinida com sucesso!"}

    # Helpers

    def _find_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return User.query.filter_by(email=email).first()

    def _find_by_google_id(self, provider_id: str) -> Optional[User]:
        return User.query.filter_by(google_id=provider_id).first()

    def _link_external_account(self, user: User, identity: ExternalIdentity) -> None:
        user.google_id = identity.provider_id
        if identity.email_verified and not user.email_verified:
            user.mark_email_verified()
        if not user.profile_photo_url:
            user.profile_photo_url = identity.photo_url
        self._commit_unique(user.email, "Conta Google já vinculada a outro usuário")
        self.logger.info("Linked Google account to existing user %s", user.id)

    def _insert(self, user: User) -> None:
        db.session.add(user)
        self._commit_unique(user.email, "Email já cadastrado")

    def _commit_unique(self, email: str, conflict_message: str) -> None:
        """Commit, turning a unique constraint violation into ``ConflictError``."""

        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            self.logger.warning("Unique constraint violated for %s", redact_email(email))
            raise ConflictError(conflict_message) from exc

    def _session_for(self, user: User) -> AuthResult:
        token = self.token_service.issue(user.id, user.email, user.role)
        return AuthResult(access_token=token, user=user)

    def _dispatch(self, send: Callable[..., None], *args: str) -> None:
        try:
            send(*args)
        except EmailDeliveryError:
            self.logger.exception("Email dispatch failed for %s", redact_email(args[0]))
