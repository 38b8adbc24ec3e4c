"""
Rotas da etapa de limpeza: problemas, sugestões da IA e aplicação das ações.
"""
import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from pbi_wizard.database import get_db
from pbi_wizard.exceptions import SuggestionError
from pbi_wizard.models.data_file import DataFile
from pbi_wizard.routers.files import get_file_or_404
from pbi_wizard.routers.sessions import get_session_or_404
from pbi_wizard.schemas.cleaning import CleaningSelection
from pbi_wizard.schemas.profile import FileProfile
from pbi_wizard.services.cleaning import CleaningSimulator
from pbi_wizard.services.gemini import SuggestionService, deduplicate_suggestions, get_suggestion_service
from pbi_wizard.services.issues import detect_issues
from pbi_wizard.services.pipeline import replace_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions/{session_id}", tags=["cleaning"])


class ApplyCleaningRequest(BaseModel):
    """Seleções de limpeza a aplicar. Para a mesma coluna, vale a última."""
    selections: list[CleaningSelection]


def _load_profile(data_file: DataFile) -> FileProfile:
    if not data_file.profile:
        raise HTTPException(status_code=409, detail="Arquivo ainda não possui perfil")
    return FileProfile.model_validate(data_file.profile)


@router.get("/files/{file_id}/issues")
def get_issues(session_id: int, file_id: int, db: Session = Depends(get_db)):
    """
    Lista os problemas detectados nas colunas de um arquivo.
    """
    data_file = get_file_or_404(db, session_id, file_id)
    profile = _load_profile(data_file)

    issues = detect_issues(data_file.filename, profile)
    return [issue.model_dump(by_alias=True, exclude_none=True) for issue in issues]


@router.post("/files/{file_id}/suggestions")
async def get_cleaning_suggestions(
    session_id: int,
    file_id: int,
    db: Session = Depends(get_db),
    service: SuggestionService = Depends(get_suggestion_service)
):
    """
    Busca na IA sugestões de limpeza para todos os problemas do arquivo.

    Retorna:
        Dicionário {coluna: [sugestões]} sem sugestões repetidas.
        Sugestões sem os parâmetros exigidos pela ação são descartadas.
    """
    data_file = get_file_or_404(db, session_id, file_id)
    issues = detect_issues(data_file.filename, _load_profile(data_file))

    # Todas as chamadas terminam antes de reportar a primeira falha
    results = await asyncio.gather(
        *(service.get_cleaning_suggestions(issue) for issue in issues),
        return_exceptions=True
    )
    for result in results:
        if isinstance(result, SuggestionError):
            raise HTTPException(status_code=502, detail=str(result))
        if isinstance(result, BaseException):
            raise result

    grouped = {}
    for issue, suggestions in zip(issues, results):
        grouped.setdefault(issue.column_name, []).extend(suggestions)

    response = {}
    for column, suggestions in grouped.items():
        valid = []
        for suggestion in deduplicate_suggestions(suggestions):
            try:
                suggestion.to_action()
            except ValueError as e:
                logger.info(f"Sugestão descartada para '{column}': {e}")
                continue
            valid.append(suggestion.model_dump(by_alias=True, exclude_none=True))
        response[column] = valid

    return response


@router.post("/cleaning/apply")
def apply_cleaning(
    session_id: int,
    payload: ApplyCleaningRequest,
    db: Session = Depends(get_db)
):
    """
    Aplica as seleções de limpeza aos perfis da sessão.

    Todos os perfis novos são calculados antes de qualquer gravação;
    seleções para arquivos ou colunas inexistentes são ignoradas.

    Retorna:
        Perfis atualizados, seleções ignoradas e descrição das transformações.
    """
    wizard_session = get_session_or_404(db, session_id)
    files_by_name = {f.filename: f for f in wizard_session.files if f.profile}
    profiles = {name: FileProfile.model_validate(f.profile) for name, f in files_by_name.items()}

    simulator = CleaningSimulator()
    new_profiles, dropped = simulator.apply_to_profiles(profiles, payload.selections)

    for name, profile in new_profiles.items():
        if profile != profiles[name]:
            replace_profile(files_by_name[name], profile)
    db.commit()

    return {
        "profiles": {name: profile.to_dict() for name, profile in new_profiles.items()},
        "dropped": [s.model_dump(by_alias=True) for s in dropped],
        "transformations": simulator.transformations
    }
