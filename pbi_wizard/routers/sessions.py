"""
Rotas para gerenciamento das sessões do assistente.
"""
from pathlib import Path
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from pbi_wizard.database import get_db
from pbi_wizard.models.wizard_session import WizardSession

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


class SessionCreate(BaseModel):
    """Schema para criação de sessão."""
    name: str


def get_session_or_404(db: Session, session_id: int) -> WizardSession:
    """Busca a sessão ou levanta 404."""
    wizard_session = db.get(WizardSession, session_id)
    if not wizard_session:
        raise HTTPException(status_code=404, detail="Sessão não encontrada")
    return wizard_session


def file_to_dict(data_file) -> dict:
    """Serializa um arquivo da sessão."""
    return {
        "id": data_file.id,
        "filename": data_file.filename,
        "size_bytes": data_file.size_bytes,
        "status": data_file.status.value,
        "error": data_file.error,
        "profile": data_file.profile,
        "profile_version": data_file.profile_version,
        "created_at": data_file.created_at.isoformat() if data_file.created_at else None,
    }


def relationship_to_dict(rel) -> dict:
    """Serializa um relacionamento aceito."""
    return {
        "id": rel.id,
        "fromTable": rel.from_table,
        "fromColumn": rel.from_column,
        "toTable": rel.to_table,
        "toColumn": rel.to_column,
        "type": rel.type,
    }


@router.post("")
def create_session(payload: SessionCreate, db: Session = Depends(get_db)):
    """
    Cria uma nova sessão de trabalho.

    Retorna:
        ID e nome da sessão criada.
    """
    wizard_session = WizardSession(name=payload.name)
    db.add(wizard_session)
    db.commit()
    db.refresh(wizard_session)

    return {
        "id": wizard_session.id,
        "name": wizard_session.name,
        "created_at": wizard_session.created_at.isoformat()
    }


@router.get("")
def list_sessions(db: Session = Depends(get_db)):
    """
    Lista as sessões existentes, das mais recentes para as mais antigas.
    """
    sessions = db.query(WizardSession).order_by(WizardSession.created_at.desc()).all()
    return [
        {
            "id": s.id,
            "name": s.name,
            "num_files": len(s.files),
            "created_at": s.created_at.isoformat()
        }
        for s in sessions
    ]


@router.get("/{session_id}")
def get_session(session_id: int, db: Session = Depends(get_db)):
    """
    Obtém uma sessão com seus arquivos, perfis e relacionamentos.

    Parâmetros:
        session_id: ID da sessão.
    """
    wizard_session = get_session_or_404(db, session_id)

    return {
        "id": wizard_session.id,
        "name": wizard_session.name,
        "files": [file_to_dict(f) for f in wizard_session.files],
        "relationships": [relationship_to_dict(r) for r in wizard_session.relationships],
        "created_at": wizard_session.created_at.isoformat()
    }


@router.delete("/{session_id}")
def delete_session(session_id: int, db: Session = Depends(get_db)):
    """
    Exclui a sessão, seus arquivos enviados e relacionamentos (cascade).

    Parâmetros:
        session_id: ID da sessão a ser excluída.
    """
    wizard_session = get_session_or_404(db, session_id)

    for data_file in wizard_session.files:
        Path(data_file.filepath).unlink(missing_ok=True)

    db.delete(wizard_session)
    db.commit()

    return {"message": "Sessão excluída com sucesso"}
