"""Tests for MDA Wiki slug validation and metadata extraction."""

from __future__ import annotations

import pytest
import requests

from errors import ValidationError
from services.wiki_validator import (
    UrlValidation,
    WikiValidator,
    extract_name_from_slug,
    is_internal_host,
)

SLUG = "Especialidade_de_Primeiros_Socorros/"


class FakeResponse:
    def __init__(self, status_code=200, headers=None, text=""):
        self.status_code = status_code
        self.headers = headers or {}
        self.text = text


class FakeSession:
    """Records requests and replays a canned response or exception."""

    def __init__(self, response=None, error=None, get_response=None):
        self.response = response or FakeResponse()
        self.get_response = get_response or self.response
        self.error = error
        self.calls = []

    def head(self, url, **kwargs):
        self.calls.append(("HEAD", url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        if self.error is not None:
            raise self.error
        return self.get_response


def test_valid_slug_is_checked_with_head_without_redirects():
    session = FakeSession(FakeResponse(200))
    validator = WikiValidator(session=session)

    result = validator.validate_url(SLUG)

    assert result == UrlValidation(
        valid=True, full_url="https://mda.wiki.br/" + SLUG, slug=SLUG
    )
    method, url, kwargs = session.calls[0]
    assert method == "HEAD"
    assert url == "https://mda.wiki.br/" + SLUG
    assert kwargs["allow_redirects"] is False
    assert kwargs["timeout"] == 5
    assert "DesbravadorProvas" in kwargs["headers"]["User-Agent"]


@pytest.mark.parametrize(
    "slug, message",
    [
        ("//evil.com/", "Formato de slug inválido"),
        ("../", "Formato de slug inválido"),
        ("sem-barra-final", "Formato de slug inválido"),
        ("http://evil.com/", "Formato de slug inválido"),
        ("//evil/", "URL deve ser do MDA Wiki"),
    ],
)
def test_unsafe_slugs_are_rejected_before_any_request(slug, message):
    session = FakeSession()
    validator = WikiValidator(session=session)

    with pytest.raises(ValidationError) as excinfo:
        validator.validate_url(slug)

    assert excinfo.value.description == message
    assert session.calls == []


@pytest.mark.parametrize(
    "base_url",
    [
        "http://127.0.0.1/",
        "http://localhost/",
        "http://10.0.0.5/",
        "http://192.168.1.10/",
        "http://172.16.0.1/",
        "http://169.254.169.254/",
        "http://[::1]/",
    ],
)
def test_internal_hosts_are_refused(base_url):
    session = FakeSession()
    validator = WikiValidator(base_url=base_url, session=session)

    with pytest.raises(ValidationError) as excinfo:
        validator.validate_url(SLUG)

    assert excinfo.value.description == "Acesso a recursos internos não permitido"
    assert session.calls == []


def test_off_site_redirect_is_an_error():
    session = FakeSession(FakeResponse(302, headers={"Location": "https://evil.com/x"}))
    validator = WikiValidator(session=session)

    with pytest.raises(ValidationError) as excinfo:
        validator.validate_url(SLUG)

    assert excinfo.value.description == "URL redireciona para fora do MDA Wiki"


def test_same_site_redirect_is_not_followed():
    session = FakeSession(FakeResponse(301, headers={"Location": "/Outra_Pagina/"}))
    validator = WikiValidator(session=session)

    result = validator.validate_url(SLUG)

    assert result.valid is False
    assert len(session.calls) == 1


@pytest.mark.parametrize("status", [404, 500, 403])
def test_non_success_status_is_invalid(status):
    validator = WikiValidator(session=FakeSession(FakeResponse(status)))

    assert validator.validate_url(SLUG).valid is False


def test_timeout_raises_validation_error():
    validator = WikiValidator(session=FakeSession(error=requests.Timeout("slow")))

    with pytest.raises(ValidationError) as excinfo:
        validator.validate_url(SLUG)

    assert excinfo.value.description == "Timeout ao validar URL"


def test_connection_error_is_reported_as_invalid():
    validator = WikiValidator(session=FakeSession(error=requests.ConnectionError("down")))

    assert validator.validate_url(SLUG).valid is False


def test_extract_specialty_info_reads_title_and_description():
    page = (
        "<html><head><title>Especialidade de Primeiros Socorros - MDA Wiki</title>"
        '<meta name="description" content="Requisitos &amp; respostas"></head></html>'
    )
    session = FakeSession(get_response=FakeResponse(200, text=page))
    validator = WikiValidator(session=session)
    validation = UrlValidation(valid=True, full_url="https://mda.wiki.br/" + SLUG, slug=SLUG)

    info = validator.extract_specialty_info(validation)

    assert info.nome == "Especialidade de Primeiros Socorros"
    assert info.descricao == "Requisitos & respostas"
    method, _, kwargs = session.calls[0]
    assert method == "GET"
    assert kwargs["allow_redirects"] is False


def test_extract_specialty_info_falls_back_to_slug_name():
    session = FakeSession(get_response=FakeResponse(200, text="<html></html>"))
    validator = WikiValidator(session=session)
    validation = UrlValidation(valid=True, full_url="https://mda.wiki.br/" + SLUG, slug=SLUG)

    info = validator.extract_specialty_info(validation)

    assert info.to_dict() == {"nome": "Primeiros Socorros"}


def test_extract_specialty_info_returns_none_on_failure():
    session = FakeSession(get_response=FakeResponse(500))
    validator = WikiValidator(session=session)
    validation = UrlValidation(valid=True, full_url="https://mda.wiki.br/" + SLUG, slug=SLUG)

    assert validator.extract_specialty_info(validation) is None


def test_extract_specialty_info_requires_valid_result():
    session = FakeSession()
    validator = WikiValidator(session=session)
    validation = UrlValidation(valid=False, full_url="https://mda.wiki.br/" + SLUG, slug=SLUG)

    with pytest.raises(ValueError):
        validator.extract_specialty_info(validation)
    assert session.calls == []


def test_extract_name_from_slug():
    assert extract_name_from_slug("Especialidade_de_Arte_Culin%C3%A1ria/") == "Arte Culinária"
    assert extract_name_from_slug("nós_e_cordas/") == "Nós e cordas"


@pytest.mark.parametrize(
    "host, internal",
    [
        ("mda.wiki.br", False),
        ("8.8.8.8", False),
        ("127.0.0.1", True),
        ("0.0.0.0", True),
        ("api.localhost", True),
        ("", True),
    ],
)
def test_is_internal_host(host, internal):
    assert is_internal_host(host) is internal
