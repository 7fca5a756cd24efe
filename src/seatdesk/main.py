import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from seatdesk.api.routes import router
from seatdesk.config import settings
from seatdesk.domain.errors import ErrorCode, InventoryError
from seatdesk.domain.venue import load_venue
from seatdesk.infrastructure.database import create_engine, create_session_maker, create_tables
from seatdesk.infrastructure.store import InventoryStore
from seatdesk.services.inventory_service import seed_venue

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.CAPACITY_EXCEEDED: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = create_engine(settings.database_url)
    await create_tables(engine)
    logger.info("Database tables created")

    app.state.venue = load_venue(settings.venue_config_path)
    app.state.store = InventoryStore(create_session_maker(engine))

    if settings.seed_on_startup:
        await seed_venue(app.state.store, app.state.venue)

    yield

    app.state.store.close()
    await engine.dispose()
    logger.info("Inventory store closed")


app = FastAPI(
    title="Seatdesk",
    lifespan=lifespan,
)
app.include_router(router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": exc.errors()},
    )


@app.exception_handler(InventoryError)
async def inventory_exception_handler(request: Request, exc: InventoryError) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS[exc.code],
        content={"detail": exc.message, "code": exc.code.value},
    )


def run() -> None:
    import uvicorn

    uvicorn.run("seatdesk.main:app", host=settings.host, port=settings.port)
