from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from cinestream.catalog import Catalog, CatalogEntry, get_catalog
from cinestream.core.stream_proxy import NotFoundError, build_item_stream_path

router = APIRouter(prefix="/api")


class CatalogListItem(BaseModel):
    id: str
    title: str
    year: Optional[int] = None
    streamEndpoint: str


@router.get("/movies", response_model=list[CatalogListItem])
async def list_movies(catalog: Catalog = Depends(get_catalog)):
    return [
        CatalogListItem(
            id=entry.id,
            title=entry.title,
            year=entry.year,
            streamEndpoint=build_item_stream_path(entry.id),
        )
        for entry in catalog.list()
    ]


@router.get("/movies/{item_id}", response_model=CatalogEntry, response_model_by_alias=True)
async def get_movie(item_id: str, catalog: Catalog = Depends(get_catalog)):
    entry = catalog.get(item_id)
    if entry is None:
        raise NotFoundError("Movie not found")
    return entry
