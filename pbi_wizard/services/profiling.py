"""
Serviço de profiling das tabelas lidas.

Calcula, para cada coluna, o tipo inferido, a quantidade de valores
ausentes e a cardinalidade, e monta o perfil do arquivo.
"""
import math
import re
from typing import Any, Iterable

import pandas as pd

from pbi_wizard.schemas.profile import AIInsights, ColumnStatistics, FileProfile
from pbi_wizard.services.parsing import ParsedTable

# Inteiro ou decimal, opcionalmente negativo. Sem expoente, sem separador de
# milhar e sem "+" na frente. Aceita ".5"; não aceita "5.".
NUMERIC_PATTERN = r"-?[0-9]*\.?[0-9]+"
_NUMERIC_RE = re.compile(NUMERIC_PATTERN)


def is_numeric(value: Any) -> bool:
    """Indica se o texto (após trim) representa um número."""
    if not isinstance(value, str):
        return False
    return _NUMERIC_RE.fullmatch(value.strip()) is not None


def _normalize(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


class ProfilingService:
    """
    Serviço responsável pelo profiling das colunas de um arquivo.

    Trabalha sobre a tabela já convertida para texto pelo parser,
    de modo que a inferência de tipos tem um único domínio de entrada.
    """

    def profile_column(self, name: str, values: Iterable[Any]) -> ColumnStatistics:
        """
        Calcula as estatísticas de uma coluna.

        Parâmetros:
            name: Nome da coluna.
            values: Valores da coluna, alinhados com as linhas do arquivo.

        Retorna:
            ColumnStatistics com tipo, ausentes, únicos e, se a coluna
            for mista, a quantidade de valores não numéricos.
        """
        trimmed = pd.Series([_normalize(v) for v in values], dtype=object)
        missing_mask = trimmed == ""
        present = trimmed[~missing_mask]

        missing_values = int(missing_mask.sum())
        unique_values = int(present.nunique())

        if present.empty:
            return ColumnStatistics(
                name=name,
                data_type="unknown",
                missing_values=missing_values,
                unique_values=0,
            )

        numeric_count = int(present.map(is_numeric).sum())
        non_numeric_count = len(present) - numeric_count

        if non_numeric_count == 0:
            return ColumnStatistics(
                name=name,
                data_type="number",
                missing_values=missing_values,
                unique_values=unique_values,
            )
        if numeric_count == 0:
            return ColumnStatistics(
                name=name,
                data_type="string",
                missing_values=missing_values,
                unique_values=unique_values,
            )
        return ColumnStatistics(
            name=name,
            data_type="mixed",
            missing_values=missing_values,
            unique_values=unique_values,
            non_numeric_count=non_numeric_count,
        )

    def build_file_profile(self, table: ParsedTable) -> FileProfile:
        """
        Monta o perfil de um arquivo a partir da tabela lida.

        Parâmetros:
            table: Cabeçalho e linhas retornados pelo parser.

        Retorna:
            FileProfile com uma entrada por coluna, na ordem do cabeçalho.
        """
        columns = [
            self.profile_column(name, [row[index] for row in table.rows])
            for index, name in enumerate(table.header)
        ]
        return FileProfile(
            row_count=len(table.rows),
            column_count=len(table.header),
            columns=columns,
        )

    def attach_insights(self, profile: FileProfile, insights: AIInsights | None) -> FileProfile:
        """Retorna uma cópia do perfil com os insights da IA anexados."""
        return profile.model_copy(update={"ai_insights": insights}, deep=True)
