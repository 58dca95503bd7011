"""Liveness probe."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from version import __version__

router = APIRouter()


@router.get("/health")
async def health():
    return JSONResponse({"status": "ok", "version": __version__})
