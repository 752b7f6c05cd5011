"""FastAPI app initialization, exception handling"""

import asyncio
import contextlib
import logging
import traceback
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import ResponseValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ledger.config import Config, get_config
from ledger.errors.base import ApplicationError
from ledger.log import configure_logging
from ledger.routes.deposits import deposits_router
from ledger.routes.transactions import transactions_router
from ledger.routes.treasury import treasury_router
from ledger.tasks.price_sampler import schedule_price_sampler
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

config: Config = get_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    sampler = None
    if config.price_sampler_enabled:
        sampler = asyncio.create_task(schedule_price_sampler(config))
        logger.info(
            "Price sampler started, interval %ss", config.price_sampler_interval_seconds
        )
    yield
    if sampler is not None:
        sampler.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sampler


app = FastAPI(title=config.app_name, version=config.app_version, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ResponseValidationError)
async def response_validation_exception_handler(
    request: Request, exc: ResponseValidationError
):
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Response validation error encountered",
            "errors": exc.errors(),
        },
    )


@app.exception_handler(ApplicationError)
def application_exception_handler(request: Request, exc: ApplicationError):
    c = {
        "error_code": exc.error_code,
        "error": exc.error,
        "where": exc.where,
    }
    logger.error(c)
    # Only print full traceback when in debug logging
    if logger.isEnabledFor(logging.DEBUG):
        traceback.print_exception(exc)
    headers = {"Retry-After": "1"} if getattr(exc, "retryable", False) else None
    return JSONResponse(
        status_code=exc.http_code or 418,
        content=c,
        headers=headers,
    )


@app.exception_handler(SQLAlchemyError)
def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(exc)
    # Only print full traceback when in debug logging
    if logger.isEnabledFor(logging.DEBUG):
        traceback.print_exception(exc)
    return JSONResponse(
        status_code=418,
        content={"error_code": 1500, "error": exc._message()},
    )


app.include_router(treasury_router)
app.include_router(deposits_router)
app.include_router(transactions_router)


def main() -> None:
    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")


if __name__ == "__main__":
    main()
