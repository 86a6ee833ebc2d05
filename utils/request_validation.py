"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

import re
from typing import Iterable

from flask import Request

from errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
# Matches the users.email column size.
EMAIL_MAX_LENGTH = 255


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allowed_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error.

    When ``allowed_keys`` is given, any other key in the body is rejected.
    """

    if not req.is_json:
        raise ValidationError("O conteúdo da requisição deve ser application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise ValidationError("Corpo JSON da requisição é obrigatório.")

    if not isinstance(data, dict):
        raise ValidationError("O corpo JSON deve ser um objeto.")

    if not data and not allow_empty:
        raise ValidationError("O corpo JSON não pode ser vazio.")

    if allowed_keys is not None:
        unknown = set(data) - set(allowed_keys)
        if unknown:
            raise ValidationError(
                "Campos não permitidos: {}.".format(", ".join(sorted(unknown)))
            )

    if required_keys:
        missing = [key for key in required_keys if data.get(key) in (None, "")]
        if missing:
            raise ValidationError(
                "Campos obrigatórios ausentes: {}.".format(", ".join(sorted(missing)))
            )

    return data


def require_string(
    payload: dict,
    key: str,
    *,
    label: str,
    min_length: int = 1,
    max_length: int | None = None,
    optional: bool = False,
) -> str | None:
    """Return a stripped string field, enforcing its length bounds."""

    value = payload.get(key)
    if value is None and optional:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{label} deve ser um texto.")

    value = value.strip()
    if len(value) < min_length:
        raise ValidationError(f"{label} deve ter pelo menos {min_length} caracteres.")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{label} deve ter no máximo {max_length} caracteres.")
    return value


def require_email(payload: dict, key: str = "email", *, optional: bool = False) -> str | None:
    value = payload.get(key)
    if value is None and optional:
        return None
    if not isinstance(value, str) or not EMAIL_PATTERN.match(value.strip()):
        raise ValidationError("Email inválido.")
    if len(value.strip()) > EMAIL_MAX_LENGTH:
        raise ValidationError(f"Email deve ter no máximo {EMAIL_MAX_LENGTH} caracteres.")
    return value.strip()


def require_int(
    payload: dict,
    key: str,
    *,
    label: str,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    value = payload.get(key)
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} deve ser um inteiro.")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{label} deve ser no mínimo {minimum}.")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{label} deve ser no máximo {maximum}.")
    return value
