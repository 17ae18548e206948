from fastapi import Request

from posterdb.core.config import get_settings
from posterdb.services.resolver import PosterResolver


def get_resolver(request: Request) -> PosterResolver:
    """Return the application's resolver, creating it on first use."""
    resolver = getattr(request.app.state, "resolver", None)
    if resolver is None:
        resolver = PosterResolver(get_settings())
        request.app.state.resolver = resolver
    return resolver
