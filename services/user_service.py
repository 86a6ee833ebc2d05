"""Profile management for existing accounts."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from errors import AuthenticationError, ConflictError, NotFoundError
from models import db
from models.user import User


class UserService:
    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def get_by_id(self, user_id: int) -> User:
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"Usuário com ID {user_id} não encontrado")
        return user

    def update_profile(
        self, user_id: int, *, name: Optional[str] = None, email: Optional[str] = None
    ) -> User:
        """Update name and/or email; a new email must be verified again."""

        user = self.get_by_id(user_id)

        if name is not None:
            user.name = name

        if email is not None and email != user.email:
            other = self._find_by_email(email)
            if other is not None and other.id != user.id:
                raise ConflictError("Este email já está em uso")
            user.email = email
            user.email_verified = False
            user.verification_token = None

        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ConflictError("Este email já está em uso") from exc

        self.logger.info("Profile updated for user %s", user.id)
        return user

    def _find_by_email(self, email: str) -> Optional[User]:
        return User.query.filter_by(email=email).first()

    def change_password(self, user_id: int, current_password: str, new_password: str) -> dict:
        user = self.get_by_id(user_id)

        if not user.has_password:
            raise AuthenticationError("Usuários que fazem login com Google não possuem senha")
        if not user.check_password(current_password):
            raise AuthenticationError("Senha atual incorreta")

        user.set_password(new_password)
        db.session.commit()

        self.logger.info("Password changed for user %s", user.id)
        return {"message": "Senha alterada com sucesso"}

    def delete(self, user_id: int) -> dict:
        user = self.get_by_id(user_id)
        db.session.delete(user)
        db.session.commit()

        self.logger.info("Deleted user %s", user_id)
        return {"message": "Usuário deletado com sucesso"}
