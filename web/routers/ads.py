"""Ad script routes: slot listing + per-slot loader script."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from web.deps import get_ad_registry

router = APIRouter()


@router.get("/api/ads")
async def list_ad_slots(request: Request):
    registry = get_ad_registry(request)
    return JSONResponse([slot.to_dict() for slot in registry.list_slots()])


@router.get("/api/ads/{slot_name}.js")
async def ad_loader(request: Request, slot_name: str):
    """Loader that sets atOptions and injects the slot's invoke script at most once per page."""
    script = get_ad_registry(request).render_loader(slot_name)
    if script is None:
        return PlainTextResponse("// unknown ad slot", status_code=404,
                                 media_type="application/javascript")
    return PlainTextResponse(script, media_type="application/javascript")
