from __future__ import annotations

import enum

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from posterdb.api.deps import get_resolver
from posterdb.schema.posters import SearchResult, ServiceStatus
from posterdb.services.resolver import PosterResolver

router = APIRouter()


class ExternalIdKind(str, enum.Enum):
    TMDB = "tmdb"
    TVDB = "tvdb"
    IMDB = "imdb"


def _respond(result: SearchResult) -> SearchResult | JSONResponse:
    if not result.success:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=result.model_dump(mode="json"))
    return result


@router.get("/search/title", response_model=SearchResult)
async def search_by_title(
    query: str = Query(..., min_length=1),
    resolver: PosterResolver = Depends(get_resolver),
) -> SearchResult | JSONResponse:
    result = await resolver.search_by_title(query)
    return _respond(result)


@router.get("/search/{kind}/{identifier}", response_model=SearchResult)
async def search_by_external_id(
    kind: ExternalIdKind,
    identifier: str,
    resolver: PosterResolver = Depends(get_resolver),
) -> SearchResult | JSONResponse:
    result = await resolver.search_by_external_id(kind.value, identifier)
    return _respond(result)


@router.get("/status", response_model=ServiceStatus)
async def get_status(resolver: PosterResolver = Depends(get_resolver)) -> ServiceStatus:
    return await resolver.get_status()
