from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from fairway.config import Environment, config, environment
from fairway.database import database
from fairway.routes import leagues, payments, transactions
from fairway.utils.alembic import alembic_run_migrations
from fairway.utils.errors import ErrorCode, FairwayError, error_code_to_status
from fairway.utils.logging import logger


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    if config.auto_run_migrations and environment is not Environment.CI:
        alembic_run_migrations()

    await database.connect()
    logger.info(f"Started fairway in {environment.value} environment")
    yield
    await database.disconnect()


app = FastAPI(
    title="Fairway API",
    docs_url="/docs" if environment is not Environment.PRODUCTION else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FairwayError)
async def fairway_error_handler(_: Request, exc: FairwayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first_error = errors[0] if len(errors) > 0 else {}
    field = ".".join(str(part) for part in first_error.get("loc", ()) if part != "body")
    error = FairwayError(
        ErrorCode.VALIDATION,
        f"{field}: {first_error.get('msg', 'Invalid request')}" if field else "Invalid request",
        {"field": field, "type": first_error.get("type")},
    )
    return JSONResponse(
        status_code=error_code_to_status[ErrorCode.VALIDATION],
        content=jsonable_encoder(error.to_dict()),
    )


@app.get("/ping", summary="Healthcheck ping")
async def ping() -> str:
    return "ping"


app.include_router(leagues.router, tags=["leagues"])
app.include_router(payments.router, tags=["payments"])
app.include_router(transactions.router, tags=["transactions"])
