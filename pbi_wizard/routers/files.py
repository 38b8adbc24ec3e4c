"""
Rotas para upload de arquivos e acompanhamento do profiling.
"""
import uuid
from pathlib import Path
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, UploadFile, File
from sqlalchemy.orm import Session

from pbi_wizard.database import get_db
from pbi_wizard.config import UPLOADS_DIR, ALLOWED_EXTENSIONS, MAX_FILE_SIZE_MB
from pbi_wizard.exceptions import InvalidStatusTransition
from pbi_wizard.models.data_file import DataFile, FileStatus
from pbi_wizard.models.relationship import TableRelationship
from pbi_wizard.routers.sessions import get_session_or_404, file_to_dict
from pbi_wizard.services.pipeline import ProfilingPipeline, get_profiling_pipeline, transition

router = APIRouter(prefix="/api/sessions/{session_id}/files", tags=["files"])


def get_file_or_404(db: Session, session_id: int, file_id: int) -> DataFile:
    """Busca o arquivo da sessão ou levanta 404."""
    data_file = db.get(DataFile, file_id)
    if not data_file or data_file.session_id != session_id:
        raise HTTPException(status_code=404, detail="Arquivo não encontrado")
    return data_file


@router.post("")
async def upload_files(
    session_id: int,
    background_tasks: BackgroundTasks,
    files: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
    pipeline: ProfilingPipeline = Depends(get_profiling_pipeline)
):
    """
    Faz upload de um ou mais arquivos (CSV, Excel ou JSON).

    Cada arquivo entra em pending e o profiling é executado em background.

    Parâmetros:
        session_id: ID da sessão.
        files: Arquivos CSV, XLSX, XLS ou JSON.

    Retorna:
        Lista dos arquivos criados.
    """
    get_session_or_404(db, session_id)

    existing = {
        name for (name,) in db.query(DataFile.filename).filter(DataFile.session_id == session_id)
    }
    contents = []
    for upload in files:
        # Valida extensão
        file_ext = Path(upload.filename).suffix.lower()
        if file_ext not in ALLOWED_EXTENSIONS:
            raise HTTPException(
                status_code=400,
                detail=f"Formato não suportado: {upload.filename}. Use: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
            )
        if upload.filename in existing:
            raise HTTPException(
                status_code=409,
                detail=f"Arquivo já enviado nesta sessão: {upload.filename}"
            )

        content = await upload.read()
        if len(content) > MAX_FILE_SIZE_MB * 1024 * 1024:
            raise HTTPException(
                status_code=400,
                detail=f"Arquivo maior que {MAX_FILE_SIZE_MB} MB: {upload.filename}"
            )
        existing.add(upload.filename)
        contents.append((upload.filename, file_ext, content))

    created = []
    for filename, file_ext, content in contents:
        filepath = UPLOADS_DIR / f"{session_id}_{uuid.uuid4().hex}{file_ext}"
        with open(filepath, "wb") as f:
            f.write(content)

        data_file = DataFile(
            session_id=session_id,
            filename=filename,
            filepath=str(filepath),
            size_bytes=len(content),
            status=FileStatus.PENDING
        )
        db.add(data_file)
        created.append(data_file)

    db.commit()
    for data_file in created:
        db.refresh(data_file)

    background_tasks.add_task(pipeline.run_many, [f.id for f in created])

    return [file_to_dict(f) for f in created]


@router.get("")
def list_files(session_id: int, db: Session = Depends(get_db)):
    """
    Lista os arquivos da sessão com status e perfil.
    """
    wizard_session = get_session_or_404(db, session_id)
    return [file_to_dict(f) for f in wizard_session.files]


@router.get("/{file_id}")
def get_file(session_id: int, file_id: int, db: Session = Depends(get_db)):
    """
    Obtém status, erro e perfil de um arquivo.
    """
    return file_to_dict(get_file_or_404(db, session_id, file_id))


@router.post("/{file_id}/retry")
def retry_file(
    session_id: int,
    file_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    pipeline: ProfilingPipeline = Depends(get_profiling_pipeline)
):
    """
    Reexecuta o pipeline de um arquivo com erro (ou já completo).

    Retorna 409 se o arquivo ainda está sendo processado.
    """
    data_file = get_file_or_404(db, session_id, file_id)

    try:
        transition(data_file, FileStatus.PENDING)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    db.commit()
    db.refresh(data_file)

    background_tasks.add_task(pipeline.run_many, [data_file.id])

    return file_to_dict(data_file)


@router.delete("/{file_id}")
def delete_file(session_id: int, file_id: int, db: Session = Depends(get_db)):
    """
    Remove um arquivo da sessão, seu perfil e os relacionamentos que o usam.
    """
    data_file = get_file_or_404(db, session_id, file_id)

    db.query(TableRelationship).filter(
        TableRelationship.session_id == session_id,
        (TableRelationship.from_table == data_file.filename)
        | (TableRelationship.to_table == data_file.filename)
    ).delete(synchronize_session=False)

    Path(data_file.filepath).unlink(missing_ok=True)

    db.delete(data_file)
    db.commit()

    return {"message": "Arquivo excluído com sucesso"}
