"""
Aplicação principal do assistente de preparação de dados para Power BI.

Inicializa o servidor FastAPI com todas as rotas do assistente:
upload, profiling, limpeza, modelagem e geração de DAX.
"""
import logging

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from pbi_wizard.config import LOG_LEVEL
from pbi_wizard.database import init_db
from pbi_wizard.routers import (
    sessions_router,
    files_router,
    cleaning_router,
    modeling_router,
    dax_router
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = FastAPI(
    title="Power BI Wizard",
    description="Assistente para upload, profiling, limpeza e modelagem de dados com sugestões de IA",
    version="1.0.0"
)


# Inicializa banco de dados na startup
@app.on_event("startup")
def startup_event():
    """Inicializa o banco de dados ao iniciar a aplicação."""
    init_db()


# Registra routers da API
app.include_router(sessions_router)
app.include_router(files_router)
app.include_router(cleaning_router)
app.include_router(modeling_router)
app.include_router(dax_router)


@app.get("/")
def home():
    """Redireciona para a documentação da API."""
    return RedirectResponse(url="/docs", status_code=302)


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
