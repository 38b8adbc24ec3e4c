"""
Schemas Pydantic para problemas de colunas e ações de limpeza.
"""
import enum
from typing import Annotated, Literal, Union
from pydantic import BaseModel, Field


class CleaningActionType(str, enum.Enum):
    """Tipos de ação de limpeza reconhecidos."""
    REMOVE_ROWS = "REMOVE_ROWS"
    FILL_MEAN = "FILL_MEAN"
    FILL_MEDIAN = "FILL_MEDIAN"
    FILL_MODE = "FILL_MODE"
    FILL_CUSTOM = "FILL_CUSTOM"
    CHANGE_TYPE = "CHANGE_TYPE"
    TRIM_WHITESPACE = "TRIM_WHITESPACE"


FILL_ACTIONS = {
    CleaningActionType.FILL_MEAN.value,
    CleaningActionType.FILL_MEDIAN.value,
    CleaningActionType.FILL_MODE.value,
    CleaningActionType.FILL_CUSTOM.value,
}


# Uma classe por tipo de ação, cada uma com apenas os parâmetros que usa.

class RemoveRows(BaseModel):
    action: Literal["REMOVE_ROWS"] = "REMOVE_ROWS"


class FillMean(BaseModel):
    action: Literal["FILL_MEAN"] = "FILL_MEAN"


class FillMedian(BaseModel):
    action: Literal["FILL_MEDIAN"] = "FILL_MEDIAN"


class FillMode(BaseModel):
    action: Literal["FILL_MODE"] = "FILL_MODE"


class FillCustom(BaseModel):
    action: Literal["FILL_CUSTOM"] = "FILL_CUSTOM"
    value: str


class ChangeType(BaseModel):
    action: Literal["CHANGE_TYPE"] = "CHANGE_TYPE"
    target_type: Literal["number", "string"] = Field(alias="targetType")

    class Config:
        populate_by_name = True


class TrimWhitespace(BaseModel):
    action: Literal["TRIM_WHITESPACE"] = "TRIM_WHITESPACE"


CleaningAction = Annotated[
    Union[RemoveRows, FillMean, FillMedian, FillMode, FillCustom, ChangeType, TrimWhitespace],
    Field(discriminator="action"),
]


class CleaningSelection(BaseModel):
    """Ação escolhida pelo usuário para uma coluna de um arquivo."""
    file: str
    column: str
    action: CleaningAction

    @property
    def key(self) -> tuple[str, str]:
        return (self.file, self.column)


class IssueDetails(BaseModel):
    """Contagens usadas para descrever o problema ao serviço de IA."""
    missing_count: int | None = Field(default=None, alias="missingCount")
    non_numeric_count: int | None = Field(default=None, alias="nonNumericCount")
    total_rows: int = Field(alias="totalRows")

    class Config:
        populate_by_name = True


class ColumnIssue(BaseModel):
    """Problema detectado em uma coluna (valores ausentes ou tipo misto)."""
    file_name: str = Field(alias="fileName")
    column_name: str = Field(alias="columnName")
    issue_type: Literal["missing_values", "mixed_type"] = Field(alias="issueType")
    details: IssueDetails

    class Config:
        populate_by_name = True


class SuggestionParameters(BaseModel):
    value: str | None = None
    target_type: Literal["number", "string"] | None = Field(default=None, alias="targetType")

    class Config:
        populate_by_name = True


class CleaningSuggestion(BaseModel):
    """Sugestão de limpeza retornada pela IA."""
    action: CleaningActionType
    description: str
    parameters: SuggestionParameters | None = None

    def to_action(self):
        """
        Converte a sugestão na ação tipada correspondente.

        Levanta ValueError quando faltam os parâmetros exigidos pela ação
        (targetType para CHANGE_TYPE, value para FILL_CUSTOM).
        """
        params = self.parameters or SuggestionParameters()

        if self.action == CleaningActionType.CHANGE_TYPE:
            if params.target_type is None:
                raise ValueError("CHANGE_TYPE exige targetType")
            return ChangeType(target_type=params.target_type)

        if self.action == CleaningActionType.FILL_CUSTOM:
            if params.value is None:
                raise ValueError("FILL_CUSTOM exige value")
            return FillCustom(value=params.value)

        simple = {
            CleaningActionType.REMOVE_ROWS: RemoveRows,
            CleaningActionType.FILL_MEAN: FillMean,
            CleaningActionType.FILL_MEDIAN: FillMedian,
            CleaningActionType.FILL_MODE: FillMode,
            CleaningActionType.TRIM_WHITESPACE: TrimWhitespace,
        }
        return simple[self.action]()
