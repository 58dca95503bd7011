"""Video API routes: paginated listing, positional id lookup, slug lookup."""

import logging
import math

from fastapi import APIRouter, Request, Query
from fastapi.responses import JSONResponse

from upstream.client import (
    UpstreamError, UpstreamStatusError,
    unwrap_list, unwrap_single, upstream_pagination,
)
from upstream.mapper import map_movie, map_movies
from web.deps import get_upstream, get_upstream_config
from web.helpers import (
    MAX_LIMIT, ID_LOOKUP_LIMIT, SORT_OPTIONS, MAX_SEARCH_LENGTH, MAX_COUNTRY_LENGTH,
    parse_positive_int, parse_video_id, pagination_stub, empty_listing,
    filter_by_search, sort_pairs,
)
from web.shared import limiter, api_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/videos")
@limiter.limit(api_rate_limit)
async def list_videos(
    request: Request,
    page: str = Query(""),
    limit: str = Query(""),
    country: str = Query(""),
    search: str = Query(""),
    sort: str = Query(""),
    category: str = Query(""),
):
    """One upstream page of videos, always returned as HTTP 200.

    search/sort/category are not understood by upstream and are never
    forwarded; search and sort apply to the fetched page only.
    """
    upstream = get_upstream(request)
    cfg = get_upstream_config(request)
    page_num = parse_positive_int(page, 1)
    limit_num = min(parse_positive_int(limit, cfg.default_limit), MAX_LIMIT)
    if len(country) > MAX_COUNTRY_LENGTH:
        logger.debug("Ignoring oversized country %r", country[:32])
        country = ""
    country = country or cfg.default_country
    search = search[:MAX_SEARCH_LENGTH]

    logger.info("Fetching videos: page=%d, limit=%d, country=%s", page_num, limit_num, country)
    if category:
        logger.debug("Ignoring unsupported category filter %r", category[:32])

    try:
        payload = await upstream.fetch_movies(page_num, limit_num, country)
        records = unwrap_list(payload)
        if records is None:
            logger.warning("Upstream returned no data or an unsuccessful envelope")
            return JSONResponse(empty_listing(page_num, limit_num))

        videos = map_movies(records, page_num, limit_num)
        pairs = list(zip(records, videos))
        if search:
            pairs = filter_by_search(pairs, search)
        if sort in SORT_OPTIONS:
            pairs = sort_pairs(pairs, sort)
        elif sort:
            logger.debug("Ignoring unknown sort %r", sort[:32])
        videos = [video for _record, video in pairs]

        pagination = upstream_pagination(payload) or pagination_stub(page_num, limit_num, total=len(records))
    except UpstreamError as e:
        return JSONResponse(empty_listing(page_num, limit_num, error=str(e)))
    except Exception as e:
        logger.exception("Listing failed for page=%d", page_num)
        return JSONResponse(empty_listing(page_num, limit_num, error=str(e) or type(e).__name__))

    logger.info("Returning %d videos (pagination=%s)", len(videos), pagination)
    return JSONResponse({"videos": videos, "pagination": pagination})


@router.get("/api/videos/slug/{slug}")
@limiter.limit(api_rate_limit)
async def get_video_by_slug(request: Request, slug: str):
    """Full record for the detail page, resolved through upstream's single-item endpoint."""
    slug = slug.strip()
    if not slug:
        return JSONResponse({"message": "Slug is required"}, status_code=400)

    upstream = get_upstream(request)
    try:
        payload = await upstream.fetch_movie(slug)
    except UpstreamStatusError as e:
        logger.error("Upstream returned status %s for slug: %s", e.status_code, slug)
        return JSONResponse({"message": f"Failed to fetch video: {e.reason}"}, status_code=e.status_code)
    except UpstreamError as e:
        return JSONResponse({"message": "Internal server error", "error": str(e)}, status_code=500)

    record = unwrap_single(payload)
    if record is None:
        return JSONResponse({"message": "Video not found"}, status_code=404)
    return JSONResponse(map_movie(record, 0, 1, 1))


@router.get("/api/videos/{video_id}")
@limiter.limit(api_rate_limit)
async def get_video(request: Request, video_id: str):
    """Resolve a positional id by re-fetching the page it was listed on.

    Only meaningful while upstream ordering is unchanged.
    """
    vid = parse_video_id(video_id)
    if vid is None:
        return JSONResponse({"message": "Invalid video ID"}, status_code=400)

    upstream = get_upstream(request)
    cfg = get_upstream_config(request)
    page = math.ceil(vid / ID_LOOKUP_LIMIT)
    index = (vid - 1) % ID_LOOKUP_LIMIT

    try:
        payload = await upstream.fetch_movies(page, ID_LOOKUP_LIMIT, cfg.default_country)
    except UpstreamStatusError:
        return JSONResponse({"message": "Video not found"}, status_code=404)
    except UpstreamError as e:
        return JSONResponse({"message": "Failed to fetch video", "error": str(e)}, status_code=500)

    records = unwrap_list(payload)
    if records and index < len(records):
        return JSONResponse(map_movie(records[index], index, page, ID_LOOKUP_LIMIT))
    return JSONResponse({"message": "Video not found"}, status_code=404)
