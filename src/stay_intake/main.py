from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from stay_intake.api.router import router as api_router
from stay_intake.bootstrap import bootstrap
from stay_intake.core.logging import RequestContextMiddleware, configure_logging


def create_app() -> FastAPI:
    configure_logging()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        bootstrap()
        yield

    app = FastAPI(title="Stay Intake", version="0.1.0", lifespan=lifespan)
    app.add_middleware(RequestContextMiddleware)
    app.include_router(api_router)
    return app


app = create_app()
