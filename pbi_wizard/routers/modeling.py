"""
Rotas da etapa de modelagem: relacionamentos entre tabelas e geração de DAX.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from pbi_wizard.database import get_db
from pbi_wizard.exceptions import SuggestionError
from pbi_wizard.models.relationship import TableRelationship
from pbi_wizard.routers.sessions import get_session_or_404, relationship_to_dict
from pbi_wizard.schemas.modeling import DaxRequest, Relationship
from pbi_wizard.schemas.profile import FileProfile
from pbi_wizard.services.gemini import SuggestionService, get_suggestion_service

router = APIRouter(prefix="/api/sessions/{session_id}/relationships", tags=["modeling"])
dax_router = APIRouter(prefix="/api/dax", tags=["dax"])


@router.post("/suggestions")
async def suggest_relationships(
    session_id: int,
    db: Session = Depends(get_db),
    service: SuggestionService = Depends(get_suggestion_service)
):
    """
    Pede à IA sugestões de relacionamento entre os arquivos perfilados.

    Retorna lista vazia quando há menos de dois arquivos com perfil.
    """
    wizard_session = get_session_or_404(db, session_id)
    profiles = {
        f.filename: FileProfile.model_validate(f.profile)
        for f in wizard_session.files
        if f.profile
    }

    try:
        suggestions = await service.get_relationship_suggestions(profiles)
    except SuggestionError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return [s.model_dump(by_alias=True) for s in suggestions]


@router.get("")
def list_relationships(session_id: int, db: Session = Depends(get_db)):
    """
    Lista os relacionamentos aceitos na sessão.
    """
    wizard_session = get_session_or_404(db, session_id)
    return [relationship_to_dict(r) for r in wizard_session.relationships]


@router.post("")
def add_relationship(
    session_id: int,
    payload: Relationship,
    db: Session = Depends(get_db)
):
    """
    Aceita um relacionamento (sugerido pela IA ou definido pelo usuário).

    Relacionamentos idênticos não são duplicados: o existente é retornado.
    """
    get_session_or_404(db, session_id)

    existing = db.query(TableRelationship).filter(
        TableRelationship.session_id == session_id,
        TableRelationship.from_table == payload.from_table,
        TableRelationship.from_column == payload.from_column,
        TableRelationship.to_table == payload.to_table,
        TableRelationship.to_column == payload.to_column,
        TableRelationship.type == payload.type
    ).first()
    if existing:
        return relationship_to_dict(existing)

    rel = TableRelationship(
        session_id=session_id,
        from_table=payload.from_table,
        from_column=payload.from_column,
        to_table=payload.to_table,
        to_column=payload.to_column,
        type=payload.type
    )
    db.add(rel)
    db.commit()
    db.refresh(rel)

    return relationship_to_dict(rel)


@router.delete("/{relationship_id}")
def delete_relationship(session_id: int, relationship_id: int, db: Session = Depends(get_db)):
    """
    Remove um relacionamento aceito.
    """
    rel = db.get(TableRelationship, relationship_id)
    if not rel or rel.session_id != session_id:
        raise HTTPException(status_code=404, detail="Relacionamento não encontrado")

    db.delete(rel)
    db.commit()

    return {"message": "Relacionamento excluído com sucesso"}


@dax_router.post("/generate")
async def generate_dax(
    payload: DaxRequest,
    service: SuggestionService = Depends(get_suggestion_service)
):
    """
    Gera uma fórmula DAX a partir de um pedido em linguagem natural.

    Retorna:
        Fórmula, explicação, dicas de otimização e erros comuns.
    """
    try:
        result = await service.get_dax_formula(payload.prompt)
    except SuggestionError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return result.model_dump()
