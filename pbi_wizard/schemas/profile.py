"""
Schemas Pydantic do perfil estatístico dos arquivos.

Os campos são serializados em camelCase (dataType, missingValues...) para
manter o mesmo formato enviado ao serviço de IA e consumido pelo frontend.
"""
from typing import Literal
from pydantic import BaseModel, Field, model_validator

DataType = Literal["string", "number", "boolean", "mixed", "unknown"]


class ColumnStatistics(BaseModel):
    """Estatísticas de uma coluna de um arquivo."""
    name: str
    data_type: DataType = Field(alias="dataType")
    missing_values: int = Field(alias="missingValues", ge=0)
    unique_values: int = Field(alias="uniqueValues", ge=0)
    # Presente apenas quando data_type == "mixed"
    non_numeric_count: int | None = Field(default=None, alias="nonNumericCount", ge=0)

    class Config:
        populate_by_name = True


class AIInsights(BaseModel):
    """Insights gerados pela IA a partir do perfil."""
    suggested_kpis: list[str]
    data_quality_summary: str = Field(min_length=1)


class FileProfile(BaseModel):
    """Perfil completo de um arquivo: contagens, colunas e insights opcionais."""
    row_count: int = Field(alias="rowCount", ge=0)
    column_count: int = Field(alias="columnCount", ge=0)
    columns: list[ColumnStatistics]
    ai_insights: AIInsights | None = Field(default=None, alias="aiInsights")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def _check_column_count(self):
        if self.column_count != len(self.columns):
            raise ValueError(
                f"columnCount ({self.column_count}) difere do número de colunas ({len(self.columns)})"
            )
        return self

    def column(self, name: str) -> ColumnStatistics | None:
        """Retorna a coluna pelo nome ou None se não existir."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def to_dict(self, include_insights: bool = True) -> dict:
        """
        Serializa o perfil no formato camelCase.

        Campos ausentes (nonNumericCount fora de colunas mistas, aiInsights
        ainda não recebido) são omitidos.
        """
        exclude = None if include_insights else {"ai_insights"}
        return self.model_dump(by_alias=True, exclude_none=True, exclude=exclude)
