"""Per-request authentication and role authorization.

Every endpoint's access rule lives in ``ROUTE_POLICIES``; ``authorize_request``
runs before each request, resolves the bearer token into a ``CurrentUser`` and
checks the endpoint's required roles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from flask import current_app, g, request

from errors import AuthenticationError, AuthorizationError
from models import db
from models.user import ROLE_CLUB_ADMIN, ROLE_MASTER, User


@dataclass(frozen=True)
class RoutePolicy:
    public: bool = False
    required_roles: frozenset = field(default_factory=frozenset)


@dataclass(frozen=True)
class CurrentUser:
    """Identity resolved for the current request."""

    id: int
    email: str
    name: str
    role: str
    profile_photo_url: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "CurrentUser":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            profile_photo_url=user.profile_photo_url,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nome": self.name,
            "email": self.email,
            "papelGlobal": self.role,
            "fotoPerfilUrl": self.profile_photo_url,
        }


PUBLIC = RoutePolicy(public=True)
AUTHENTICATED = RoutePolicy()

ROUTE_POLICIES: dict[str, RoutePolicy] = {
    "health_check": PUBLIC,
    "auth.login": PUBLIC,
    "auth.register": PUBLIC,
    "auth.profile": AUTHENTICATED,
    "auth.verify_email": PUBLIC,
    "auth.resend_verification": PUBLIC,
    "auth.request_password_recovery": PUBLIC,
    "auth.reset_password": PUBLIC,
    "auth.google_login": PUBLIC,
    "auth.google_callback": PUBLIC,
    "usuarios.get_user": AUTHENTICATED,
    "usuarios.update_profile": AUTHENTICATED,
    "usuarios.change_password": AUTHENTICATED,
    "usuarios.delete_user": RoutePolicy(required_roles=frozenset({ROLE_MASTER})),
    "provas_ia.generate_questions": RoutePolicy(
        required_roles=frozenset({ROLE_MASTER, ROLE_CLUB_ADMIN})
    ),
}


def policy_for(endpoint: str) -> RoutePolicy:
    """Return the endpoint's policy; unlisted endpoints require a session."""

    return ROUTE_POLICIES.get(endpoint, AUTHENTICATED)


def extract_bearer_token(header_value: Optional[str]) -> str:
    scheme, _, token = (header_value or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Token inválido ou expirado")
    return token.strip()


def check_roles(policy: RoutePolicy, current_user: Optional[CurrentUser]) -> None:
    """Raise ``AuthorizationError`` unless the identity satisfies the policy."""

    if not policy.required_roles:
        return
    if current_user is None:
        raise AuthorizationError(
            "Usuário não autenticado. A autenticação deve ocorrer antes da verificação de papéis."
        )
    if current_user.role not in policy.required_roles:
        required = ", ".join(sorted(policy.required_roles))
        raise AuthorizationError(
            "Você não tem permissão para acessar este recurso. "
            f"Papéis necessários: {required}"
        )


def authenticate(token: str) -> CurrentUser:
    """Verify a session token and load the account it names."""

    payload = current_app.extensions["token_service"].verify(token)
    user = db.session.get(User, payload.sub)
    if user is None:
        raise AuthenticationError("Usuário não encontrado")
    return CurrentUser.from_user(user)


def authorize_request() -> None:
    """``before_request`` hook applying the endpoint's policy."""

    endpoint = request.endpoint
    # Unknown URLs fall through to the 404 handler; preflights carry no token.
    if endpoint is None or request.method == "OPTIONS":
        return None

    policy = policy_for(endpoint)
    if policy.public:
        return None

    token = extract_bearer_token(request.headers.get("Authorization"))
    g.current_user = authenticate(token)
    check_roles(policy, g.current_user)
    return None


def get_current_user() -> CurrentUser:
    current_user = g.get("current_user")
    if current_user is None:
        raise AuthorizationError("Usuário não autenticado.")
    return current_user
