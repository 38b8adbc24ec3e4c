"""
Model para armazenar os arquivos enviados e seus perfis.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
import enum

from pbi_wizard.database import Base


class FileStatus(enum.Enum):
    """Status do pipeline de profiling de um arquivo."""
    PENDING = "pending"
    PROFILING = "profiling"
    INSIGHTS = "insights"
    COMPLETE = "complete"
    ERROR = "error"


class DataFile(Base):
    """
    Representa um arquivo enviado em uma sessão.

    O perfil é gravado como JSON e só é substituído por inteiro;
    profile_version é incrementado a cada substituição.
    """
    __tablename__ = "data_files"
    __table_args__ = (UniqueConstraint("session_id", "filename"),)

    id = Column(Integer, primary_key=True, index=True)

    session_id = Column(Integer, ForeignKey("wizard_sessions.id"), nullable=False)
    session = relationship("WizardSession", back_populates="files")

    filename = Column(String(255), nullable=False)
    filepath = Column(String(500), nullable=False)
    size_bytes = Column(Integer, nullable=False, default=0)

    status = Column(Enum(FileStatus), default=FileStatus.PENDING, nullable=False)
    error = Column(Text, nullable=True)

    # Perfil no formato camelCase (FileProfile.to_dict)
    profile = Column(JSON, nullable=True)
    profile_version = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
