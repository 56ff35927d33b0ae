from fastapi import FastAPI

from lapak.app.api.errors import register_exception_handlers
from lapak.app.api.v1.router import router as v1_router
from lapak.app.core.config import APP_VERSION
from lapak.app.core.logging_setup import setup_logging

setup_logging()

app = FastAPI(title="Lapak Marketplace API", version=APP_VERSION)
register_exception_handlers(app)
app.include_router(v1_router, prefix="/v1")
