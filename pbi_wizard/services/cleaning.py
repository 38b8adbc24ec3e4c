"""
Simulação das ações de limpeza sobre o perfil estatístico.

As ações não tocam nos dados brutos: apenas ajustam as contagens do perfil
(ausentes, únicos, tipo e número de linhas) para mostrar ao usuário o
resultado esperado da limpeza.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Iterable

from pbi_wizard.schemas.cleaning import (
    FILL_ACTIONS,
    CleaningActionType,
    CleaningSelection,
)
from pbi_wizard.schemas.profile import FileProfile

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Arredonda .5 para cima (round() do Python arredonda para o par)."""
    return int(math.floor(value + 0.5))


class SelectionSet:
    """
    Conjunto de seleções pendentes, no máximo uma por (arquivo, coluna).

    Selecionar uma nova ação para o mesmo par substitui a anterior.
    """

    def __init__(self, selections: Iterable[CleaningSelection] = ()):
        self._by_key: dict[tuple[str, str], CleaningSelection] = {}
        for selection in selections:
            self.select(selection)

    def select(self, selection: CleaningSelection) -> None:
        self._by_key[selection.key] = selection

    def for_file(self, file: str) -> list[CleaningSelection]:
        return [s for s in self._by_key.values() if s.file == file]

    def files(self) -> list[str]:
        return list(dict.fromkeys(s.file for s in self._by_key.values()))

    def __iter__(self):
        return iter(list(self._by_key.values()))

    def __len__(self) -> int:
        return len(self._by_key)


@dataclass
class CleaningResult:
    """Resultado da simulação para um arquivo."""
    profile: FileProfile
    dropped: list[CleaningSelection] = field(default_factory=list)
    rows_removed: int = 0


class CleaningSimulator:
    """
    Aplica seleções de limpeza ao perfil de um ou mais arquivos.

    Cada chamada devolve perfis novos; o perfil de entrada nunca é alterado.
    As descrições do que foi simulado ficam em `transformations`.
    """

    def __init__(self):
        self.transformations: list[str] = []

    def apply_selections(
        self,
        profile: FileProfile,
        selections: Iterable[CleaningSelection],
    ) -> CleaningResult:
        """
        Simula as ações selecionadas sobre o perfil de um arquivo.

        Parâmetros:
            profile: Perfil atual do arquivo.
            selections: Seleções para colunas deste arquivo. Se houver mais
                de uma para a mesma coluna, vale a última.

        Retorna:
            CleaningResult com o novo perfil, as seleções descartadas
            (colunas inexistentes) e o número de linhas removidas.

        Observação:
            A redução de ausentes nas demais colunas após remover linhas é
            uma estimativa proporcional, não um recálculo sobre os dados.
        """
        selection_set = SelectionSet(selections)
        new_profile = profile.model_copy(deep=True)
        dropped = []

        rows_to_remove = 0
        removed_columns = set()

        for selection in selection_set:
            column = new_profile.column(selection.column)
            if column is None:
                self._drop(selection, "coluna inexistente")
                dropped.append(selection)
                continue

            action = selection.action
            original_missing = column.missing_values

            if action.action == CleaningActionType.REMOVE_ROWS:
                rows_to_remove = max(rows_to_remove, original_missing)
                removed_columns.add(column.name)
                column.missing_values = 0

            elif action.action in FILL_ACTIONS:
                column.missing_values = 0
                # O valor de preenchimento entra como um novo valor distinto
                column.unique_values += 1
                self.transformations.append(
                    f"Preenchidos {original_missing} valores ausentes em '{column.name}' ({action.action})"
                )

            elif action.action == CleaningActionType.CHANGE_TYPE:
                # Na conversão para número, os textos viram nulos
                if action.target_type == "number" and column.non_numeric_count:
                    column.missing_values += column.non_numeric_count
                if column.non_numeric_count is not None:
                    column.non_numeric_count = 0
                column.data_type = action.target_type
                self.transformations.append(
                    f"Tipo de '{column.name}' alterado para {action.target_type}"
                )

            elif action.action == CleaningActionType.TRIM_WHITESPACE:
                # Sem efeito nas estatísticas
                self.transformations.append(f"Espaços removidos em '{column.name}'")

        if rows_to_remove > 0:
            self._propagate_row_removal(new_profile, rows_to_remove, removed_columns)

        return CleaningResult(profile=new_profile, dropped=dropped, rows_removed=rows_to_remove)

    def apply_to_profiles(
        self,
        profiles: dict[str, FileProfile],
        selections: Iterable[CleaningSelection],
    ) -> tuple[dict[str, FileProfile], list[CleaningSelection]]:
        """
        Aplica as seleções a todos os arquivos da sessão de uma só vez.

        Parâmetros:
            profiles: Perfis atuais indexados pelo nome do arquivo.
            selections: Seleções de qualquer arquivo.

        Retorna:
            Tupla com (novo mapa de perfis, seleções descartadas).
            Arquivos sem seleções mantêm o mesmo perfil.
        """
        selection_set = SelectionSet(selections)
        new_profiles = dict(profiles)
        dropped = []

        for file_name in selection_set.files():
            file_selections = selection_set.for_file(file_name)
            if file_name not in profiles:
                for selection in file_selections:
                    self._drop(selection, "arquivo inexistente")
                dropped.extend(file_selections)
                continue

            result = self.apply_selections(profiles[file_name], file_selections)
            new_profiles[file_name] = result.profile
            dropped.extend(result.dropped)

        return new_profiles, dropped

    def _propagate_row_removal(
        self,
        profile: FileProfile,
        rows_to_remove: int,
        removed_columns: set[str],
    ) -> None:
        # Remoções em várias colunas são tratadas como o mesmo conjunto de
        # linhas: só a maior delas é subtraída do arquivo.
        original_rows = profile.row_count
        profile.row_count = max(0, original_rows - rows_to_remove)
        self.transformations.append(
            f"Removidas {rows_to_remove} linhas com valores ausentes"
        )

        for column in profile.columns:
            if column.name in removed_columns:
                continue
            if original_rows > 0:
                estimated = round_half_up(column.missing_values * rows_to_remove / original_rows)
            else:
                estimated = column.missing_values
            column.missing_values = max(0, column.missing_values - estimated)

    def _drop(self, selection: CleaningSelection, reason: str) -> None:
        logger.info(f"Seleção ignorada para '{selection.file}' / '{selection.column}': {reason}")
