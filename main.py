import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.endpoints import router
from app.core.config import settings
from app.core.tracing import instrument_app, instrument_httpx, setup_tracing, shutdown_tracing
from app.services.http_client import http_client_manager
from app.shared.constants import SERVICE_NAME
from app.shared.correlation import CorrelationMiddleware
from app.shared.errors import register_exception_handlers
from app.shared.logging_config import setup_logging

# Configure logging
setup_logging(service_name=SERVICE_NAME)
logger = logging.getLogger("ReMember.Main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_tracing(SERVICE_NAME)
    instrument_httpx()
    await http_client_manager.startup()
    logger.info("ReMember Me service started (environment=%s)", settings.ENVIRONMENT)
    yield
    await http_client_manager.shutdown()
    shutdown_tracing()
    logger.info("ReMember Me service stopped")


app = FastAPI(
    title="ReMember Me Service",
    description="Relationship management API: contacts, health, garden, calendar and AI helpers",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(CorrelationMiddleware)
register_exception_handlers(app)
instrument_app(app)

app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    return {"message": "ReMember Me Service Running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
