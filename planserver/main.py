import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from dotenv import load_dotenv

if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from planserver.core.config import settings, validate_config
from planserver.core.database import create_all_tables, get_database_url
from planserver.core.logging import configure_logging
from planserver.core.middleware.request_id import RequestIdMiddleware
from planserver.core.validation import validate_env
from planserver.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from planserver.api import health, plans

configure_logging(settings.ENV)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("planserver")
    logger.info("Starting plan server...")
    if get_database_url():
        create_all_tables()
    try:
        yield
    finally:
        logging.getLogger("planserver").info("Stopping plan server...")


app = FastAPI(title="planserver", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(health.router)
app.include_router(plans.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("planserver.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
