from pbi_wizard.routers.sessions import router as sessions_router
from pbi_wizard.routers.files import router as files_router
from pbi_wizard.routers.cleaning import router as cleaning_router
from pbi_wizard.routers.modeling import router as modeling_router
from pbi_wizard.routers.modeling import dax_router

__all__ = [
    "sessions_router",
    "files_router",
    "cleaning_router",
    "modeling_router",
    "dax_router"
]
