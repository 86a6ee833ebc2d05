"""Validation of MDA Wiki reference slugs supplied by users.

The slug is resolved against a fixed base URL and checked with a HEAD request.
Everything that could turn the server into a proxy for other destinations is
rejected before any network call: slugs outside the allowed character set,
URLs that leave the base origin and internal hosts. Redirects are never
followed; a redirect that points outside the base is an error.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass
from html import unescape
from typing import Optional
from urllib.parse import unquote, urljoin, urlsplit

import requests

from errors import ValidationError

WIKI_BASE_URL = "https://mda.wiki.br/"
SLUG_PATTERN = re.compile(r"^[a-zA-Z0-9_\-%/]+/$")
USER_AGENT = "DesbravadorProvas/0.1.0 (Educational Tool)"
REQUEST_TIMEOUT = 5

INTERNAL_HOSTNAMES = {"localhost", "metadata.google.internal"}
TITLE_PATTERN = re.compile(r"<title>([^<]+)</title>", re.IGNORECASE)
DESCRIPTION_PATTERN = re.compile(
    r'<meta\s+name="description"\s+content="([^"]+)"', re.IGNORECASE
)


@dataclass(frozen=True)
class UrlValidation:
    """Outcome of ``validate_url``; a valid result is required for extraction."""

    valid: bool
    full_url: str
    slug: str


@dataclass(frozen=True)
class SpecialtyInfo:
    nome: str
    descricao: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"nome": self.nome}
        if self.descricao is not None:
            data["descricao"] = self.descricao
        return data


def is_internal_host(hostname: str) -> bool:
    """Return True for loopback, private, link-local or unspecified hosts."""

    host = (hostname or "").strip("[]").lower()
    if not host:
        return True
    if host in INTERNAL_HOSTNAMES or host.endswith(".localhost"):
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
        or address.is_reserved
    )


def extract_name_from_slug(slug: str) -> str:
    """Turn ``Especialidade_de_Primeiros_Socorros/`` into ``Primeiros Socorros``."""

    cleaned = unquote(slug)
    cleaned = re.sub(r"^Especialidade_de_", "", cleaned)
    cleaned = cleaned.replace("_", " ")
    cleaned = re.sub(r"/$", "", cleaned).strip()
    return cleaned[:1].upper() + cleaned[1:]


class WikiValidator:
    def __init__(
        self,
        *,
        base_url: str = WIKI_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.base_url = base_url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

        base = urlsplit(base_url)
        self._base_origin = (base.scheme, base.netloc)

    def get_full_url(self, slug: str) -> str:
        return self.base_url + slug

    def resolve(self, slug: str) -> str:
        """Resolve a slug to an absolute URL, rejecting anything unsafe."""

        if not isinstance(slug, str) or not SLUG_PATTERN.match(slug):
            raise ValidationError("Formato de slug inválido")

        full_url = urljoin(self.base_url, slug)
        parts = urlsplit(full_url)
        if (parts.scheme, parts.netloc) != self._base_origin or not full_url.startswith(
            self.base_url
        ):
            raise ValidationError("URL deve ser do MDA Wiki")

        if is_internal_host(parts.hostname or ""):
            raise ValidationError("Acesso a recursos internos não permitido")

        return full_url

    def validate_url(self, slug: str) -> UrlValidation:
        full_url = self.resolve(slug)
        hostname = urlsplit(full_url).hostname
        self.logger.info("Validating MDA Wiki URL on %s", hostname)

        try:
            response = self.session.head(
                full_url,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
                allow_redirects=False,
            )
        except requests.Timeout as exc:
            self.logger.error("Timeout validating MDA Wiki URL %s", full_url)
            raise ValidationError("Timeout ao validar URL") from exc
        except requests.RequestException as exc:
            self.logger.error("Error validating MDA Wiki URL %s: %s", full_url, exc)
            return UrlValidation(valid=False, full_url=full_url, slug=slug)

        status = response.status_code
        if 300 <= status < 400:
            location = response.headers.get("Location")
            if location and not urljoin(full_url, location).startswith(self.base_url):
                self.logger.warning("MDA Wiki URL redirects off-site: %s", full_url)
                raise ValidationError("URL redireciona para fora do MDA Wiki")

        if 200 <= status < 300:
            self.logger.info("MDA Wiki URL is valid: %s", full_url)
            return UrlValidation(valid=True, full_url=full_url, slug=slug)

        if status == 404:
            self.logger.warning("MDA Wiki URL not found: %s", full_url)
        else:
            self.logger.warning("Unexpected status %s for MDA Wiki URL %s", status, full_url)
        return UrlValidation(valid=False, full_url=full_url, slug=slug)

    def extract_specialty_info(self, validation: UrlValidation) -> Optional[SpecialtyInfo]:
        """Fetch a validated page and pull its title and description.

        Best effort: returns None when the page cannot be read.
        """

        if not validation.valid:
            raise ValueError("extract_specialty_info requires a successful validate_url result")

        try:
            response = self.session.get(
                validation.full_url,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            self.logger.error("Error fetching %s: %s", validation.full_url, exc)
            return None

        if not 200 <= response.status_code < 300:
            self.logger.warning(
                "Failed to fetch page (%s): %s", response.status_code, validation.full_url
            )
            return None

        html = response.text
        title_match = TITLE_PATTERN.search(html)
        if title_match:
            nome = unescape(title_match.group(1)).replace(" - MDA Wiki", "").strip()
        else:
            nome = extract_name_from_slug(validation.slug)

        description_match = DESCRIPTION_PATTERN.search(html)
        descricao = unescape(description_match.group(1)) if description_match else None

        self.logger.info("Extracted specialty info: %s", nome)
        return SpecialtyInfo(nome=nome, descricao=descricao)
