"""Catalog API routes: categories, channels, actors.

Upstream exposes none of these lists, so each route answers with an empty
collection. The client renders its filter UI from whatever comes back.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/api/categories")
async def list_categories():
    return JSONResponse([])


@router.get("/api/channels")
async def list_channels():
    return JSONResponse([])


@router.get("/api/actors")
async def list_actors():
    return JSONResponse([])
