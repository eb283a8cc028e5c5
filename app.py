from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    load_dotenv("local.env")

    from endpoints.db_endpoints import router as tables_router

    app = FastAPI()

    @app.get("/")
    async def root_redirect():
        return RedirectResponse(url="/docs", status_code=307)

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    app.include_router(tables_router)

    return app


app = create_app()
