"""
Model para os relacionamentos aceitos entre tabelas.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from pbi_wizard.database import Base


class TableRelationship(Base):
    """Relacionamento entre colunas de dois arquivos da mesma sessão."""
    __tablename__ = "table_relationships"

    id = Column(Integer, primary_key=True, index=True)

    session_id = Column(Integer, ForeignKey("wizard_sessions.id"), nullable=False)
    session = relationship("WizardSession", back_populates="relationships")

    from_table = Column(String(255), nullable=False)
    from_column = Column(String(255), nullable=False)
    to_table = Column(String(255), nullable=False)
    to_column = Column(String(255), nullable=False)
    # "One-to-Many", "Many-to-One", "One-to-One" ou "Many-to-Many"
    type = Column(String(20), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
