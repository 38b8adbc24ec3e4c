"""
Pipeline de profiling por arquivo.

Cada arquivo percorre a máquina de estados:

    pending -> profiling -> insights -> complete
                   |            |
                   +-> error <--+

Um erro (ou um arquivo completo) volta para pending apenas por ação do
usuário (retry). Iniciar o pipeline de um arquivo que não está em pending é
recusado, o que evita execuções duplicadas.
"""
import asyncio
import logging
from pathlib import Path

from sqlalchemy.orm import sessionmaker

from pbi_wizard.database import SessionLocal
from pbi_wizard.exceptions import InvalidStatusTransition, ParseError, SuggestionError
from pbi_wizard.models.data_file import DataFile, FileStatus
from pbi_wizard.schemas.profile import FileProfile
from pbi_wizard.services.gemini import SuggestionService, get_suggestion_service
from pbi_wizard.services.parsing import parse_file
from pbi_wizard.services.profiling import ProfilingService

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    FileStatus.PENDING: {FileStatus.PROFILING},
    FileStatus.PROFILING: {FileStatus.INSIGHTS, FileStatus.ERROR},
    FileStatus.INSIGHTS: {FileStatus.COMPLETE, FileStatus.ERROR},
    FileStatus.COMPLETE: {FileStatus.PENDING},
    FileStatus.ERROR: {FileStatus.PENDING},
}


def transition(data_file: DataFile, target: FileStatus) -> None:
    """
    Altera o status do arquivo, validando a transição.

    Levanta:
        InvalidStatusTransition: se a transição não é permitida.
    """
    current = data_file.status
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(current.value, target.value)
    logger.info(f"Arquivo {data_file.id} ({data_file.filename}): {current.value} -> {target.value}")
    data_file.status = target
    if target != FileStatus.ERROR:
        data_file.error = None


def replace_profile(data_file: DataFile, profile: FileProfile) -> None:
    """Substitui o perfil do arquivo por inteiro e incrementa a versão."""
    data_file.profile = profile.to_dict()
    data_file.profile_version = (data_file.profile_version or 0) + 1


class ProfilingPipeline:
    """
    Executa leitura, profiling e insights de IA para os arquivos enviados.

    Cada execução abre a própria sessão de banco, como as tarefas em
    background do FastAPI exigem.
    """

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        suggestion_service: SuggestionService | None = None,
    ):
        self.session_factory = session_factory
        self.suggestion_service = suggestion_service or get_suggestion_service()
        self.profiler = ProfilingService()

    async def run(self, file_id: int) -> FileStatus | None:
        """
        Executa o pipeline de um arquivo.

        Parâmetros:
            file_id: ID do arquivo (deve estar em pending).

        Retorna:
            Status final do arquivo, ou None se o arquivo não existe mais.
        """
        db = self.session_factory()
        try:
            data_file = db.get(DataFile, file_id)
            if data_file is None:
                return None

            transition(data_file, FileStatus.PROFILING)
            db.commit()

            try:
                profile = await asyncio.to_thread(
                    self._build_profile, data_file.filepath, data_file.filename
                )
            except (ParseError, OSError) as e:
                return self._fail(db, data_file, str(e))

            replace_profile(data_file, profile)
            transition(data_file, FileStatus.INSIGHTS)
            db.commit()
            requested_version = data_file.profile_version
            filename = data_file.filename

            try:
                insights = await self.suggestion_service.get_insights(profile, filename)
            except SuggestionError as e:
                data_file = self._reload(db, file_id)
                if data_file is None:
                    return None
                return self._fail(db, data_file, str(e))

            data_file = self._reload(db, file_id)
            if data_file is None:
                logger.info(f"Insights descartados: arquivo {file_id} foi removido")
                return None

            if data_file.profile_version != requested_version:
                # O perfil mudou (limpeza aplicada) enquanto a IA respondia
                logger.info(
                    f"Insights descartados para {filename}: versão {requested_version} "
                    f"!= {data_file.profile_version}"
                )
            else:
                current = FileProfile.model_validate(data_file.profile)
                replace_profile(data_file, self.profiler.attach_insights(current, insights))

            transition(data_file, FileStatus.COMPLETE)
            db.commit()
            return data_file.status

        except InvalidStatusTransition as e:
            logger.warning(f"Pipeline do arquivo {file_id} não iniciado: {e}")
            db.rollback()
            raise

        except Exception as e:
            logger.exception(f"Erro inesperado no pipeline do arquivo {file_id}")
            db.rollback()
            data_file = db.get(DataFile, file_id)
            if data_file is not None and data_file.status in (FileStatus.PROFILING, FileStatus.INSIGHTS):
                self._fail(db, data_file, str(e))
            raise

        finally:
            db.close()

    async def run_many(self, file_ids: list[int]) -> list:
        """
        Executa o pipeline de vários arquivos de forma concorrente.

        A falha de um arquivo não interrompe os demais.
        """
        results = await asyncio.gather(
            *(self.run(file_id) for file_id in file_ids),
            return_exceptions=True,
        )
        for file_id, result in zip(file_ids, results):
            if isinstance(result, Exception):
                logger.error(f"Pipeline do arquivo {file_id} falhou: {result}")
        return results

    def _build_profile(self, filepath: str, filename: str) -> FileProfile:
        # Executado fora do event loop: leitura e parsing são bloqueantes
        content = Path(filepath).read_bytes()
        table = parse_file(content, filename)
        return self.profiler.build_file_profile(table)

    def _reload(self, db, file_id: int) -> DataFile | None:
        db.expire_all()
        return db.get(DataFile, file_id)

    def _fail(self, db, data_file: DataFile, message: str) -> FileStatus:
        transition(data_file, FileStatus.ERROR)
        data_file.error = message
        db.commit()
        logger.warning(f"Arquivo {data_file.filename} com erro: {message}")
        return data_file.status


def get_profiling_pipeline() -> ProfilingPipeline:
    """Dependência das rotas que disparam o pipeline."""
    return ProfilingPipeline()
