"""AI-assisted question generation for specialty exams."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from errors import ValidationError
from services.wiki_validator import SpecialtyInfo, WikiValidator

SPECIALTY_CATEGORIES = {
    "ADRA": "ADRA",
    "ARTES_E_HABILIDADES_MANUAIS": "Artes e Habilidades Manuais",
    "ATIVIDADES_AGRICOLAS": "Atividades Agrícolas",
    "ATIVIDADES_MISSIONARIAS_E_COMUNITARIAS": "Atividades Missionárias e Comunitárias",
    "ATIVIDADES_PROFISSIONAIS": "Atividades Profissionais",
    "ATIVIDADES_RECREATIVAS": "Atividades Recreativas",
    "CIENCIA_E_SAUDE": "Ciência e Saúde",
    "ESTUDOS_DA_NATUREZA": "Estudos da Natureza",
    "HABILIDADES_DOMESTICAS": "Habilidades Domésticas",
}


class AIClient(Protocol):
    def is_available(self) -> bool: ...

    def generate_questions(self, request: dict) -> list[dict[str, Any]]: ...


class DisabledAIClient:
    """Used when no AI provider has been configured."""

    def is_available(self) -> bool:
        return False

    def generate_questions(self, request: dict) -> list[dict[str, Any]]:
        raise RuntimeError("No AI provider configured")


@dataclass
class GenerationResult:
    questoes: list[dict[str, Any]]
    url_validada: bool = True
    especialidade_info: Optional[SpecialtyInfo] = None

    def to_dict(self) -> dict:
        data = {"questoes": self.questoes, "urlValidada": self.url_validada}
        if self.especialidade_info is not None:
            data["especialidadeInfo"] = self.especialidade_info.to_dict()
        return data


def format_category(category: str) -> str:
    return SPECIALTY_CATEGORIES.get(category, category)


class QuestionGeneratorService:
    def __init__(
        self,
        ai_client: AIClient,
        wiki_validator: WikiValidator,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.ai_client = ai_client
        self.wiki_validator = wiki_validator
        self.logger = logger or logging.getLogger(__name__)

    def generate_questions(
        self,
        especialidade: str,
        categoria: str,
        numero_questoes: int,
        url_referencia: Optional[str] = None,
    ) -> GenerationResult:
        self.logger.info("Generating %s questions for %s", numero_questoes, especialidade)

        if not self.ai_client.is_available():
            raise ValidationError(
                "Serviço de IA não está disponível. Configure um provedor de IA."
            )

        result = GenerationResult(questoes=[])
        if url_referencia:
            validation = self.wiki_validator.validate_url(url_referencia)
            if not validation.valid:
                self.logger.warning("Invalid MDA Wiki reference: %s", validation.full_url)
                result.url_validada = False
            else:
                result.especialidade_info = self.wiki_validator.extract_specialty_info(
                    validation
                )

        result.questoes = self.ai_client.generate_questions(
            {
                "especialidade": especialidade,
                "categoria": format_category(categoria),
                "numeroQuestoes": numero_questoes,
                "urlReferencia": url_referencia,
            }
        )
        self.logger.info("%s questions generated", len(result.questoes))
        return result
