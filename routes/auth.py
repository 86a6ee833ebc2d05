"""Authentication blueprint: credentials, Google OAuth, verification and recovery."""

from __future__ import annotations
from http import HTTPStatus

from authlib.integrations.base_client.errors import OAuthError
from authlib.integrations.flask_client import OAuth
from flask import Blueprint, current_app, jsonify, request, url_for
from werkzeug.exceptions import ServiceUnavailable

from errors import AuthenticationError, ValidationError
from security.guards import get_current_user
from services import get_service
from services.auth_service import ExternalIdentity
from utils.request_validation import parse_json_request, require_email, require_string

GOOGLE_DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"

auth_bp = Blueprint("auth", __name__)
oauth = OAuth()


def setup_oauth(app) -> None:
    """Register the Google OpenID Connect client on the app."""

    oauth.init_app(app)
    oauth.register(
        name="google",
        client_id=app.config.get("GOOGLE_CLIENT_ID"),
        client_secret=app.config.get("GOOGLE_CLIENT_SECRET"),
        server_metadata_url=GOOGLE_DISCOVERY_URL,
        client_kwargs={"scope": "openid email profile"},
    )


def _google_enabled() -> bool:
    return bool(
        current_app.config.get("GOOGLE_CLIENT_ID")
        and current_app.config.get("GOOGLE_CLIENT_SECRET")
    )


def _fetch_google_identity() -> ExternalIdentity:
    """Exchange the authorization code and map the OpenID claims."""

    try:
        token = oauth.google.authorize_access_token()
    except OAuthError as exc:
        current_app.logger.warning("Google OAuth exchange failed: %s", exc.error)
        raise AuthenticationError("Falha na autenticação com Google") from exc

    claims = token.get("userinfo") or oauth.google.userinfo(token=token)
    if not claims.get("sub") or not claims.get("email"):
        raise AuthenticationError("Falha na autenticação com Google")

    return ExternalIdentity(
        provider_id=str(claims["sub"]),
        email=claims["email"],
        name=claims.get("name") or claims["email"],
        photo_url=claims.get("picture"),
        email_verified=bool(claims.get("email_verified")),
    )


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate with email and password and return a session token."""

    payload = parse_json_request(
        request, required_keys=("email", "senha"), allowed_keys=("email", "senha")
    )
    email = require_email(payload)
    password = require_string(payload, "senha", label="Senha")

    result = get_service("auth_service").login(email, password)
    return jsonify(result.to_dict()), HTTPStatus.OK


@auth_bp.route("/registro", methods=["POST"])
def register() -> tuple:
    """Create a local account and return a session token."""

    payload = parse_json_request(
        request,
        required_keys=("nome", "email", "senha"),
        allowed_keys=("nome", "email", "senha"),
    )
    name = require_string(payload, "nome", label="Nome", min_length=3, max_length=100)
    email = require_email(payload)
    password = require_string(payload, "senha", label="Senha", min_length=6)

    result = get_service("auth_service").register(name, email, password)
    return jsonify(result.to_dict()), HTTPStatus.CREATED


@auth_bp.route("/perfil", methods=["GET"])
def profile() -> tuple:
    """Return the identity resolved from the bearer token."""

    return jsonify(get_current_user().to_dict()), HTTPStatus.OK


@auth_bp.route("/verificar-email", methods=["GET"])
def verify_email() -> tuple:
    token = (request.args.get("token") or "").strip()
    if not token:
        raise ValidationError("Token de verificação inválido")
    return jsonify(get_service("auth_service").verify_email(token)), HTTPStatus.OK


@auth_bp.route("/reenviar-verificacao", methods=["POST"])
def resend_verification() -> tuple:
    payload = parse_json_request(request, required_keys=("email",), allowed_keys=("email",))
    email = require_email(payload)
    return jsonify(get_service("auth_service").resend_verification(email)), HTTPStatus.OK


@auth_bp.route("/solicitar-recuperacao-senha", methods=["POST"])
def request_password_recovery() -> tuple:
    payload = parse_json_request(request, required_keys=("email",), allowed_keys=("email",))
    email = require_email(payload)
    return (
        jsonify(get_service("auth_service").request_password_recovery(email)),
        HTTPStatus.OK,
    )


@auth_bp.route("/redefinir-senha", methods=["POST"])
def reset_password() -> tuple:
    payload = parse_json_request(
        request, required_keys=("token", "novaSenha"), allowed_keys=("token", "novaSenha")
    )
    token = require_string(payload, "token", label="Token")
    new_password = require_string(payload, "novaSenha", label="Nova senha", min_length=6)
    return (
        jsonify(get_service("auth_service").reset_password(token, new_password)),
        HTTPStatus.OK,
    )


@auth_bp.route("/google", methods=["GET"])
def google_login():
    """Redirect to Google's consent screen."""

    if not _google_enabled():
        raise ServiceUnavailable("Login com Google não configurado.")
    redirect_uri = current_app.config.get("GOOGLE_CALLBACK_URL") or url_for(
        "auth.google_callback", _external=True
    )
    return oauth.google.authorize_redirect(redirect_uri)


@auth_bp.route("/google/callback", methods=["GET"])
def google_callback() -> tuple:
    """Finish the Google flow, creating or linking the account."""

    identity = _fetch_google_identity()
    result = get_service("auth_service").login_with_external_provider(identity)
    return jsonify(result.to_dict()), HTTPStatus.OK
