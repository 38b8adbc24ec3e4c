"""
Cliente do Gemini para as sugestões de IA do assistente.

Todas as chamadas pedem resposta em JSON, validam o resultado com Pydantic
e levantam SuggestionError em qualquer falha (rede, JSON inválido, campo
obrigatório ausente). Não há retentativas: quem chama decide se repete.
"""
import json
import logging
from typing import Optional, TypeVar

import google.generativeai as genai
from pydantic import BaseModel, ValidationError

from pbi_wizard.config import GEMINI_API_KEY, GEMINI_MODEL
from pbi_wizard.exceptions import SuggestionError
from pbi_wizard.schemas.cleaning import CleaningSuggestion, ColumnIssue
from pbi_wizard.schemas.modeling import DaxGenerationResponse, RelationshipSuggestion
from pbi_wizard.schemas.profile import AIInsights, FileProfile

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


# Schemas de resposta no formato aceito pela API do Gemini

DAX_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "dax_formula": {
            "type": "STRING",
            "description": "A fórmula DAX gerada, em uma única linha de código DAX válido.",
        },
        "explanation": {
            "type": "STRING",
            "description": "Explicação clara do que a fórmula faz e em que contexto usá-la, voltada ao usuário de negócio.",
        },
        "optimization_tips": {
            "type": "STRING",
            "description": "1 ou 2 dicas curtas de otimização da fórmula ou de desempenho no Power BI.",
        },
        "common_pitfalls": {
            "type": "STRING",
            "description": "1 ou 2 erros comuns ao usar esta fórmula ou padrão semelhante.",
        },
    },
    "required": ["dax_formula", "explanation", "optimization_tips", "common_pitfalls"],
}

INSIGHTS_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "suggested_kpis": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "3 a 4 KPIs possíveis com base nos nomes e estatísticas das colunas.",
        },
        "data_quality_summary": {
            "type": "STRING",
            "description": "Parágrafo curto (2-3 frases) sobre problemas ou pontos fortes de qualidade dos dados.",
        },
    },
    "required": ["suggested_kpis", "data_quality_summary"],
}

CLEANING_SUGGESTIONS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "suggestions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "action": {
                        "type": "STRING",
                        "description": "Um de: REMOVE_ROWS, FILL_MEAN, FILL_MEDIAN, FILL_MODE, FILL_CUSTOM, CHANGE_TYPE.",
                    },
                    "description": {
                        "type": "STRING",
                        "description": "Descrição amigável da ação. Ex.: 'Remover 15 linhas com valores ausentes'.",
                    },
                    "parameters": {
                        "type": "OBJECT",
                        "properties": {
                            "value": {"type": "STRING"},
                            "targetType": {"type": "STRING", "description": "number ou string"},
                        },
                    },
                },
                "required": ["action", "description"],
            },
        },
    },
    "required": ["suggestions"],
}

RELATIONSHIP_SUGGESTIONS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "suggestions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "fromTable": {"type": "STRING"},
                    "fromColumn": {"type": "STRING"},
                    "toTable": {"type": "STRING"},
                    "toColumn": {"type": "STRING"},
                    "type": {
                        "type": "STRING",
                        "description": "One-to-Many, Many-to-One, One-to-One ou Many-to-Many.",
                    },
                    "confidence": {"type": "STRING", "description": "High, Medium ou Low."},
                    "reason": {"type": "STRING"},
                },
                "required": [
                    "fromTable", "fromColumn", "toTable", "toColumn",
                    "type", "confidence", "reason",
                ],
            },
        },
    },
    "required": ["suggestions"],
}


class _CleaningSuggestions(BaseModel):
    suggestions: list[CleaningSuggestion]


class _RelationshipSuggestions(BaseModel):
    suggestions: list[RelationshipSuggestion]


class SuggestionService:
    """Serviço de sugestões de IA (insights, limpeza, relacionamentos e DAX)."""

    def __init__(self, api_key: str = GEMINI_API_KEY, model_name: str = GEMINI_MODEL):
        self.api_key = api_key
        self.model_name = model_name

    async def _generate(
        self,
        system_instruction: str,
        prompt: str,
        response_schema: dict,
        temperature: float,
    ) -> str:
        """
        Envia o prompt ao Gemini e retorna o texto da resposta.

        Parâmetros:
            system_instruction: Instrução de sistema da chamada.
            prompt: Conteúdo enviado ao modelo.
            response_schema: Schema JSON esperado na resposta.
            temperature: Temperatura de geração.

        Retorna:
            Texto (JSON) retornado pelo modelo.
        """
        if not self.api_key:
            raise SuggestionError("GEMINI_API_KEY não configurada.")

        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=system_instruction,
            generation_config={
                "response_mime_type": "application/json",
                "response_schema": response_schema,
                "temperature": temperature,
            },
        )
        response = await model.generate_content_async(prompt)
        return response.text

    async def _request(
        self,
        operation: str,
        response_model: type[ResponseT],
        system_instruction: str,
        prompt: str,
        response_schema: dict,
        temperature: float,
    ) -> ResponseT:
        try:
            text = await self._generate(system_instruction, prompt, response_schema, temperature)
        except SuggestionError:
            raise
        except Exception as e:
            logger.error(f"Erro na chamada ao Gemini ({operation}): {e}")
            raise SuggestionError(f"Falha ao {operation}. Motivo: {e}") from e

        if not text or not text.strip():
            raise SuggestionError(f"Falha ao {operation}. Motivo: resposta vazia da IA.")

        try:
            return response_model.model_validate_json(text.strip())
        except ValidationError as e:
            logger.error(f"Resposta inválida do Gemini ({operation}): {e}")
            raise SuggestionError(
                f"Falha ao {operation}. Motivo: estrutura JSON inválida recebida da IA."
            ) from e

    async def get_insights(self, profile: FileProfile, file_name: str) -> AIInsights:
        """
        Gera KPIs sugeridos e um resumo de qualidade a partir do perfil.

        Parâmetros:
            profile: Perfil do arquivo (sem insights).
            file_name: Nome do arquivo.
        """
        system_instruction = (
            "Você é um analista de dados especialista ajudando um usuário do Power BI. "
            "Analise o resumo de perfil dos dados e forneça insights acionáveis no formato JSON especificado.\n"
            "- O usuário acabou de enviar um arquivo e precisa de um ponto de partida para a análise.\n"
            "- Com base nos nomes e estatísticas das colunas, sugira possíveis KPIs.\n"
            "- Resuma brevemente a qualidade dos dados, apontando problemas como colunas com muitos valores ausentes.\n"
            "- Use linguagem clara e acessível para um usuário de negócio."
        )
        profile_json = json.dumps(profile.to_dict(include_insights=False), indent=2, ensure_ascii=False)
        prompt = (
            f'Este é o perfil de dados do arquivo "{file_name}":\n{profile_json}\n\n'
            "Com base neste perfil, forneça KPIs sugeridos e um resumo da qualidade dos dados."
        )
        return await self._request(
            "gerar insights",
            AIInsights,
            system_instruction,
            prompt,
            INSIGHTS_RESPONSE_SCHEMA,
            temperature=0.5,
        )

    async def get_cleaning_suggestions(self, issue: ColumnIssue) -> list[CleaningSuggestion]:
        """
        Pede sugestões de limpeza para um problema de coluna.

        Retorna lista vazia, sem chamar a IA, para tipos de problema desconhecidos.
        """
        system_instruction = (
            "Você é um especialista em limpeza de dados para usuários do Power BI. "
            "Com base no problema identificado em uma coluna, forneça uma lista concisa de "
            "sugestões de limpeza no formato JSON especificado.\n"
            "- Para 'missing_values', sugira remover as linhas, preencher com medidas estatísticas "
            "(quando fizer sentido) e preencher com um valor personalizado.\n"
            "- Para 'mixed_type', sugira mudar o tipo para 'number' ou 'string'. Ao sugerir 'number', "
            "diga explicitamente na descrição que valores não numéricos ficarão vazios.\n"
            "- As descrições devem ser claras para um usuário não técnico."
        )

        if issue.issue_type == "missing_values":
            prompt = (
                f'A coluna "{issue.column_name}" do arquivo "{issue.file_name}" tem '
                f"{issue.details.missing_count} valores ausentes de {issue.details.total_rows} linhas. "
                "Forneça sugestões de limpeza."
            )
        elif issue.issue_type == "mixed_type":
            prompt = (
                f'A coluna "{issue.column_name}" do arquivo "{issue.file_name}" tem tipo misto '
                f"(números e texto). Ela contém {issue.details.non_numeric_count} valores de texto "
                "não numéricos. Forneça sugestões para padronizar o tipo."
            )
        else:
            return []

        result = await self._request(
            "gerar sugestões de limpeza",
            _CleaningSuggestions,
            system_instruction,
            prompt,
            CLEANING_SUGGESTIONS_SCHEMA,
            temperature=0.4,
        )
        return result.suggestions

    async def get_relationship_suggestions(
        self, profiles: dict[str, FileProfile]
    ) -> list[RelationshipSuggestion]:
        """
        Sugere relacionamentos entre as tabelas perfiladas.

        Parâmetros:
            profiles: Perfis indexados pelo nome do arquivo.

        Retorna:
            Lista de sugestões; vazia, sem chamar a IA, se houver menos de dois arquivos.
        """
        if len(profiles) < 2:
            return []

        system_instruction = (
            "Você é um especialista em modelagem de dados para Power BI. Analise os schemas de "
            "várias tabelas (em JSON) e sugira relacionamentos lógicos entre elas.\n"
            "- Identifique pares de colunas de tabelas diferentes que provavelmente representam um "
            "relacionamento (ex.: chave primária e chave estrangeira).\n"
            "- Padrões comuns incluem nomes parecidos como 'ProductID' e 'Product_ID', ou prefixo do "
            "nome da tabela como 'products.ID' e 'sales.ProductID'.\n"
            "- Determine o tipo mais provável (One-to-Many, Many-to-One etc.). A tabela com mais "
            "valores únicos na coluna chave provavelmente é o lado 'One'.\n"
            "- Informe um nível de confiança e uma breve justificativa para cada sugestão."
        )
        simplified = [
            {
                "tableName": file_name,
                "columns": [
                    {"name": c.name, "uniqueValues": c.unique_values, "dataType": c.data_type}
                    for c in profile.columns
                ],
                "rowCount": profile.row_count,
            }
            for file_name, profile in profiles.items()
        ]
        prompt = (
            f"Estes são os schemas de {len(profiles)} tabelas:\n"
            f"{json.dumps(simplified, indent=2, ensure_ascii=False)}\n\n"
            "Sugira os relacionamentos entre elas."
        )
        result = await self._request(
            "gerar sugestões de relacionamento",
            _RelationshipSuggestions,
            system_instruction,
            prompt,
            RELATIONSHIP_SUGGESTIONS_SCHEMA,
            temperature=0.3,
        )
        return result.suggestions

    async def get_dax_formula(self, prompt: str) -> DaxGenerationResponse:
        """Converte um pedido em linguagem natural em uma fórmula DAX."""
        system_instruction = (
            "Você é um desenvolvedor Power BI especialista e gerador de código DAX. Converta o "
            "pedido do usuário em linguagem natural em uma fórmula DAX válida e eficiente.\n"
            "- Suponha um modelo de dados com tabelas e colunas de nomes convencionais (ex.: tabela "
            "'Sales' com 'Revenue' e 'OrderDate', tabela 'Products' com 'ProductName').\n"
            "- Gere uma única fórmula DAX completa.\n"
            "- A explicação deve ser simples o bastante para um iniciante.\n"
            "- Forneça dicas de otimização e erros comuns associados à fórmula."
        )
        return await self._request(
            "gerar DAX",
            DaxGenerationResponse,
            system_instruction,
            f'Pedido do usuário: "{prompt}"',
            DAX_RESPONSE_SCHEMA,
            temperature=0.2,
        )


def deduplicate_suggestions(suggestions: list[CleaningSuggestion]) -> list[CleaningSuggestion]:
    """Remove sugestões repetidas (mesma ação e mesma descrição), mantendo a ordem."""
    seen = set()
    unique = []
    for suggestion in suggestions:
        key = (suggestion.action, suggestion.description)
        if key in seen:
            continue
        seen.add(key)
        unique.append(suggestion)
    return unique


# Instância global do serviço
_service: Optional[SuggestionService] = None


def get_suggestion_service() -> SuggestionService:
    """Retorna a instância global do serviço (dependência das rotas)."""
    global _service
    if _service is None:
        _service = SuggestionService()
    return _service
