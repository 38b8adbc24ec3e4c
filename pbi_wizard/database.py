"""
Configuração do banco de dados SQLite com SQLAlchemy.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from pbi_wizard.config import DATABASE_URL

engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    Gera uma sessão do banco de dados.
    Utilizado como dependência nas rotas FastAPI.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """
    Inicializa o banco de dados criando todas as tabelas.

    Parâmetros:
        bind: Engine alternativo (usado nos testes). Padrão: engine da aplicação.
    """
    from pbi_wizard.models import wizard_session, data_file, relationship  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
