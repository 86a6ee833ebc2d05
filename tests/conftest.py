"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.user import ROLE_USER, User  # noqa: E402


class AppTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length-0123456789"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    APP_URL = "https://app.example.com"
    MAIL_SUPPRESS_SEND = True
    CORS_ORIGINS = ["https://app.example.com"]
    GOOGLE_CLIENT_ID = None
    GOOGLE_CLIENT_SECRET = None


class FakeAIClient:
    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.requests: list[dict] = []

    def is_available(self) -> bool:
        return self.available

    def generate_questions(self, request: dict) -> list[dict]:
        self.requests.append(request)
        return [
            {"tipo": "DISSERTATIVA", "enunciado": f"Questão {i + 1}", "pontuacao": 1}
            for i in range(request["numeroQuestoes"])
        ]


@pytest.fixture()
def ai_client() -> FakeAIClient:
    return FakeAIClient()


@pytest.fixture()
def app(ai_client) -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(AppTestConfig, ai_client=ai_client)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def app_ctx(app: Flask):
    """Push an application context for service-level tests."""

    with app.app_context():
        yield app


@pytest.fixture()
def outbox(app: Flask) -> list:
    """Messages recorded by the email service."""

    return app.extensions["email_service"].outbox


@pytest.fixture()
def create_user(app: Flask) -> Callable[..., int]:
    """Persist a user and return its id."""

    def _create_user(
        email: str,
        password: str | None = "senha123",
        *,
        name: str = "Usuário Teste",
        role: str = ROLE_USER,
        verified: bool = False,
        google_id: str | None = None,
        photo: str | None = None,
    ) -> int:
        with app.app_context():
            user = User(
                name=name,
                email=email,
                role=role,
                email_verified=verified,
                google_id=google_id,
                profile_photo_url=photo,
            )
            if password is not None:
                user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id

    return _create_user


@pytest.fixture()
def auth_header(app: Flask) -> Callable[[int], dict]:
    """Build an Authorization header carrying a session token for a user id."""

    def _auth_header(user_id: int) -> dict:
        with app.app_context():
            user = db.session.get(User, user_id)
            token = app.extensions["token_service"].issue(user.id, user.email, user.role)
        return {"Authorization": f"Bearer {token}"}

    return _auth_header


def plain_body(message) -> str:
    """Return the text/plain part of a recorded email."""

    return message.get_body(preferencelist=("plain",)).get_content()
