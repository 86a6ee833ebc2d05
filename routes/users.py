"""User profile blueprint."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, jsonify, request

from errors import ValidationError
from security.guards import get_current_user
from services import get_service
from utils.request_validation import parse_json_request, require_email, require_string

users_bp = Blueprint("usuarios", __name__)


@users_bp.route("/<int:user_id>", methods=["GET"])
def get_user(user_id: int):
    """Return the public profile of a user."""

    user = get_service("user_service").get_by_id(user_id)
    return jsonify(user.to_dict()), HTTPStatus.OK


@users_bp.route("/perfil", methods=["PATCH"])
def update_profile():
    """Update the caller's name and/or email."""

    payload = parse_json_request(request, allowed_keys=("nome", "email"))
    name = require_string(
        payload, "nome", label="Nome", min_length=3, max_length=100, optional=True
    )
    email = require_email(payload, optional=True)
    if name is None and email is None:
        raise ValidationError("Informe nome ou email para atualizar.")

    user = get_service("user_service").update_profile(
        get_current_user().id, name=name, email=email
    )
    return jsonify(user.to_dict()), HTTPStatus.OK


@users_bp.route("/alterar-senha", methods=["POST"])
def change_password():
    payload = parse_json_request(
        request,
        required_keys=("senhaAtual", "novaSenha"),
        allowed_keys=("senhaAtual", "novaSenha"),
    )
    current_password = require_string(payload, "senhaAtual", label="Senha atual")
    new_password = require_string(payload, "novaSenha", label="Nova senha", min_length=6)

    result = get_service("user_service").change_password(
        get_current_user().id, current_password, new_password
    )
    return jsonify(result), HTTPStatus.OK


@users_bp.route("/<int:user_id>", methods=["DELETE"])
def delete_user(user_id: int):
    """Delete an account (MASTER only)."""

    return jsonify(get_service("user_service").delete(user_id)), HTTPStatus.OK
