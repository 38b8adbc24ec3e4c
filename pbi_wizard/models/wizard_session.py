"""
Model da sessão do assistente.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from pbi_wizard.database import Base


class WizardSession(Base):
    """
    Representa uma sessão de trabalho do assistente.

    A sessão é dona dos arquivos enviados, dos seus perfis e dos
    relacionamentos definidos. Excluir a sessão remove tudo isso.
    """
    __tablename__ = "wizard_sessions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    files = relationship(
        "DataFile",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="DataFile.id",
    )
    relationships = relationship(
        "TableRelationship",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="TableRelationship.id",
    )
