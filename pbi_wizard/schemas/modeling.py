"""
Schemas Pydantic para relacionamentos entre tabelas e geração de DAX.
"""
from typing import Literal
from pydantic import BaseModel, Field

RelationshipType = Literal["One-to-Many", "Many-to-One", "One-to-One", "Many-to-Many"]


class Relationship(BaseModel):
    """Relacionamento entre colunas de duas tabelas."""
    from_table: str = Field(alias="fromTable")
    from_column: str = Field(alias="fromColumn")
    to_table: str = Field(alias="toTable")
    to_column: str = Field(alias="toColumn")
    type: RelationshipType

    class Config:
        populate_by_name = True


class RelationshipSuggestion(Relationship):
    """Relacionamento sugerido pela IA, com confiança e justificativa."""
    confidence: Literal["High", "Medium", "Low"]
    reason: str


class DaxRequest(BaseModel):
    """Pedido em linguagem natural para gerar uma fórmula DAX."""
    prompt: str = Field(min_length=1)


class DaxGenerationResponse(BaseModel):
    """Fórmula DAX gerada com explicação e dicas."""
    dax_formula: str = Field(min_length=1)
    explanation: str = Field(min_length=1)
    optimization_tips: str = Field(min_length=1)
    common_pitfalls: str = Field(min_length=1)
