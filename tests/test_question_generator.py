from __future__ import annotations

import pytest

from errors import ValidationError
from models.user import ROLE_CLUB_ADMIN, ROLE_MASTER
from services.question_generator import QuestionGeneratorService, format_category
from services.wiki_validator import SpecialtyInfo, UrlValidation

URL = "/provas/ia/gerar-questoes"


def _payload(**overrides):
    payload = {
        "especialidade": "Primeiros   Socorros",
        "categoria": "CIENCIA_E_SAUDE",
        "numeroQuestoes": 3,
    }
    payload.update(overrides)
    return payload


class StubWikiValidator:
    def __init__(self, valid=True, info=None):
        self.valid = valid
        self.info = info
        self.validated = []
        self.extracted = []

    def validate_url(self, slug):
        self.validated.append(slug)
        return UrlValidation(valid=self.valid, full_url="https://mda.wiki.br/" + slug, slug=slug)

    def extract_specialty_info(self, validation):
        self.extracted.append(validation)
        return self.info


@pytest.fixture()
def master_headers(create_user, auth_header):
    return auth_header(create_user("master@x.com", role=ROLE_MASTER))


def test_generates_questions_for_club_admin(client, create_user, auth_header, ai_client):
    headers = auth_header(create_user("admin@x.com", role=ROLE_CLUB_ADMIN))

    response = client.post(URL, json=_payload(), headers=headers)

    assert response.status_code == 200
    data = response.get_json()
    assert len(data["questoes"]) == 3
    assert data["urlValidada"] is True
    assert "especialidadeInfo" not in data
    assert ai_client.requests == [
        {
            "especialidade": "Primeiros Socorros",
            "categoria": "Ciência e Saúde",
            "numeroQuestoes": 3,
            "urlReferencia": None,
        }
    ]


def test_common_user_cannot_generate(client, create_user, auth_header, ai_client):
    headers = auth_header(create_user("user@x.com"))

    response = client.post(URL, json=_payload(), headers=headers)

    assert response.status_code == 403
    assert ai_client.requests == []


def test_unavailable_ai_is_reported(client, master_headers, ai_client):
    ai_client.available = False

    response = client.post(URL, json=_payload(), headers=master_headers)

    assert response.status_code == 400
    assert response.get_json()["detail"] == (
        "Serviço de IA não está disponível. Configure um provedor de IA."
    )


@pytest.mark.parametrize(
    "overrides",
    [
        {"categoria": "INEXISTENTE"},
        {"categoria": ["ADRA"]},
        {"categoria": {"nome": "ADRA"}},
        {"dificuldade": "ALTA"},
        {"numeroQuestoes": 0},
        {"numeroQuestoes": 21},
        {"numeroQuestoes": True},
        {"especialidade": "ab"},
        {"urlReferenciaMDA": "sem/barra.final"},
        {"urlReferenciaMDA": "//evil.com/"},
    ],
)
def test_payload_validation(client, master_headers, overrides, ai_client):
    response = client.post(URL, json=_payload(**overrides), headers=master_headers)

    assert response.status_code == 400
    assert ai_client.requests == []


def test_non_string_category_is_a_bad_request(client, master_headers):
    response = client.post(URL, json=_payload(categoria=["ADRA"]), headers=master_headers)

    assert response.status_code == 400
    assert response.get_json()["detail"] == "Categoria de especialidade inválida."


def test_invalid_reference_url_is_flagged_not_fatal(app_ctx, ai_client):
    wiki = StubWikiValidator(valid=False)
    service = QuestionGeneratorService(ai_client, wiki)

    result = service.generate_questions("Nós", "ADRA", 2, "Especialidade_de_Nos/")

    assert result.url_validada is False
    assert result.to_dict()["urlValidada"] is False
    assert len(result.questoes) == 2
    assert wiki.extracted == []


def test_valid_reference_url_adds_specialty_info(app_ctx, ai_client):
    wiki = StubWikiValidator(valid=True, info=SpecialtyInfo(nome="Nós", descricao="Amarras"))
    service = QuestionGeneratorService(ai_client, wiki)

    result = service.generate_questions("Nós", "ADRA", 1, "Especialidade_de_Nos/")

    assert result.to_dict()["especialidadeInfo"] == {"nome": "Nós", "descricao": "Amarras"}
    assert ai_client.requests[0]["urlReferencia"] == "Especialidade_de_Nos/"


def test_wiki_errors_propagate(ai_client):
    class TimeoutWiki(StubWikiValidator):
        def validate_url(self, slug):
            raise ValidationError("Timeout ao validar URL")

    service = QuestionGeneratorService(ai_client, TimeoutWiki())

    with pytest.raises(ValidationError):
        service.generate_questions("Nós", "ADRA", 1, "Especialidade_de_Nos/")
    assert ai_client.requests == []


def test_format_category():
    assert format_category("ESTUDOS_DA_NATUREZA") == "Estudos da Natureza"
    assert format_category("OUTRA") == "OUTRA"
