"""Seed a MASTER account."""

import os

from app import create_app
from models import db
from models.user import ROLE_MASTER, User

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@desbravaprovas.com.br")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "AdminPass123")
ADMIN_NAME = "Administrador"


def main() -> None:
    app = create_app()
    with app.app_context():
        admin = User.query.filter_by(email=ADMIN_EMAIL).first()
        if admin is None:
            admin = User(name=ADMIN_NAME, email=ADMIN_EMAIL, role=ROLE_MASTER)
            db.session.add(admin)
            action = "created"
        else:
            admin.role = ROLE_MASTER
            action = "updated"
        admin.mark_email_verified()
        admin.set_password(ADMIN_PASSWORD)
        db.session.commit()
        print(f"Admin user {action}: {ADMIN_EMAIL}")


if __name__ == "__main__":
    main()
