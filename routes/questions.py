"""AI question generation blueprint."""

from __future__ import annotations

import re
from http import HTTPStatus

from flask import Blueprint, jsonify, request

from errors import ValidationError
from services import get_service
from services.question_generator import SPECIALTY_CATEGORIES
from services.wiki_validator import SLUG_PATTERN
from utils.request_validation import parse_json_request, require_int, require_string

questions_bp = Blueprint("provas_ia", __name__)

GENERATE_QUESTIONS_KEYS = ("especialidade", "categoria", "numeroQuestoes", "urlReferenciaMDA")


def _collapse_whitespace(value: object) -> object:
    if isinstance(value, str):
        return re.sub(r"\s+", " ", value).strip()
    return value


@questions_bp.route("/gerar-questoes", methods=["POST"])
def generate_questions():
    """Generate exam questions for a specialty with the configured AI provider."""

    payload = parse_json_request(
        request,
        required_keys=("especialidade", "categoria", "numeroQuestoes"),
        allowed_keys=GENERATE_QUESTIONS_KEYS,
    )
    payload["especialidade"] = _collapse_whitespace(payload.get("especialidade"))

    especialidade = require_string(
        payload, "especialidade", label="Nome da especialidade", min_length=3, max_length=100
    )
    categoria = payload.get("categoria")
    if not isinstance(categoria, str) or categoria not in SPECIALTY_CATEGORIES:
        raise ValidationError("Categoria de especialidade inválida.")
    numero_questoes = require_int(
        payload, "numeroQuestoes", label="Número de questões", minimum=1, maximum=20
    )
    slug = require_string(
        payload,
        "urlReferenciaMDA",
        label="Slug do MDA Wiki",
        min_length=5,
        max_length=200,
        optional=True,
    )
    if slug is not None and not SLUG_PATTERN.match(slug):
        raise ValidationError(
            "Slug do MDA Wiki deve conter apenas caracteres alfanuméricos, _, -, %, / "
            "e terminar com /"
        )

    result = get_service("question_generator").generate_questions(
        especialidade, categoria, numero_questoes, slug
    )
    return jsonify(result.to_dict()), HTTPStatus.OK
