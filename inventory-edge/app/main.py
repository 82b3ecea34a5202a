import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.routes_access import router as access_router
from app.api.v1.routes_inventory import router as inventory_router
from app.core.config import settings
from app.domain.workspace import Workspace

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("app")


def create_app(workspace: Optional[Workspace] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ws = workspace or Workspace.from_settings(settings)
        app.state.workspace = ws
        state = await ws.start()
        logger.info("Access gate started in state %s", state.value)
        yield
        await ws.stop()

    app = FastAPI(
        title="Inventory Edge",
        description="Stock, asset assignment and scrap tracking against a remote store",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Refresh-Token"],
        expose_headers=["X-Access-Token", "X-Refresh-Token"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration = round((time.time() - start_time) * 1000, 2)
        logger.info(f"{request.method} {request.url.path} Status: {response.status_code} Time: {duration}ms")
        return response

    app.include_router(access_router)
    app.include_router(inventory_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
