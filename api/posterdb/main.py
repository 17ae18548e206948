"""FastAPI application exposing poster lookups and plugin status."""

import logging

from fastapi import FastAPI

from posterdb.api.router import api_router
from posterdb.core.config import get_settings
from posterdb.services.resolver import PosterResolver

LOG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
API_PREFIX = "/PosterDB"

settings = get_settings()


def configure_logging() -> None:
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, force=True)


app = FastAPI(title=settings.app_name)
app.include_router(api_router, prefix=API_PREFIX)


@app.on_event("startup")
async def _start_resolver() -> None:
    """Build the resolver once per process."""
    configure_logging()
    app.state.resolver = PosterResolver(settings)


@app.on_event("shutdown")
async def _stop_resolver() -> None:
    """Close the browser session and drop cached results."""
    resolver = getattr(app.state, "resolver", None)
    if resolver is not None:
        await resolver.aclose()
        app.state.resolver = None
