from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable
from urllib.parse import quote, urlencode

import httpx

logger = logging.getLogger(__name__)

MOVIES_LIST_ENDPOINT = "api/movies/all"
MOVIE_DETAIL_ENDPOINT = "api/movies/{slug}"


class UpstreamError(Exception):
    """The upstream API could not be reached or the request failed in transit."""


class UpstreamStatusError(UpstreamError):
    """The upstream API answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason or "Upstream error"
        super().__init__(f"Upstream returned {status_code}: {self.reason}")


class UpstreamPayloadError(UpstreamError):
    """The upstream body was not valid JSON."""


def build_upstream_url(base_url: str, endpoint: str, params: Optional[dict] = None) -> str:
    """Join base URL and endpoint, filling path placeholders from params.

    ``{name}`` and ``:name`` placeholders in the endpoint are substituted
    (URL-quoted); params not used in the path become the query string.
    """
    path = endpoint.lstrip("/")
    query = {}
    for key, value in (params or {}).items():
        brace, colon = "{" + key + "}", f":{key}"
        if brace in path or colon in path:
            encoded = quote(str(value), safe="")
            path = path.replace(brace, encoded).replace(colon, encoded)
        else:
            query[key] = str(value)
    url = f"{base_url.rstrip('/')}/{path}"
    if query:
        url += "?" + urlencode(query)
    return url


def _is_success(payload) -> bool:
    return isinstance(payload, dict) and bool(payload.get("success"))


def unwrap_list(payload) -> Optional[list]:
    """Records of a successful list envelope, or None for anything else."""
    if not _is_success(payload):
        return None
    data = payload.get("data")
    return data if isinstance(data, list) else None


def unwrap_single(payload) -> Optional[dict]:
    """Resolve the single-item envelope, which upstream sends in two shapes.

    ``data`` is either a one-element (or longer) list, of which the first
    record is taken, or a bare object identified by its ``_id``.
    """
    if not _is_success(payload):
        return None
    data = payload.get("data")
    if isinstance(data, list):
        if data and isinstance(data[0], dict):
            return data[0]
        return None
    if isinstance(data, dict) and data.get("_id"):
        return data
    return None


def upstream_pagination(payload) -> Optional[dict]:
    pagination = payload.get("pagination") if isinstance(payload, dict) else None
    return pagination if isinstance(pagination, dict) else None


# ---------------------------------------------------------------------------
# Client + Protocol for dependency injection / mocking
# ---------------------------------------------------------------------------

@runtime_checkable
class UpstreamClientProtocol(Protocol):
    """Protocol for the movies API client; use for type hints and test mocks."""

    async def fetch_movies(self, page: int, limit: int, country: str) -> dict: ...
    async def fetch_movie(self, slug: str) -> dict: ...


class UpstreamClient:
    """httpx-backed client for the third-party movies API.

    One request per call, no retries and no shared connection pool. A
    timeout of 0 (the default) waits for upstream indefinitely.
    """

    def __init__(self, base_url: str, user_agent: str = "", timeout: float = 0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout if timeout and timeout > 0 else None
        self._transport = transport

    @classmethod
    def from_config(cls, cfg) -> "UpstreamClient":
        return cls(cfg.base_url, user_agent=cfg.user_agent, timeout=cfg.timeout)

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        return headers

    async def _get_json(self, url: str):
        logger.info("Calling upstream: %s", url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, headers=self._headers(),
                                         follow_redirects=True, transport=self._transport) as client:
                resp = await client.get(url)
        except httpx.HTTPError as e:
            logger.error("Upstream request failed for %s: %s", url, e)
            raise UpstreamError(str(e) or type(e).__name__) from e

        if not resp.is_success:
            logger.error("Upstream returned status %s: %s", resp.status_code, resp.reason_phrase)
            raise UpstreamStatusError(resp.status_code, resp.reason_phrase)
        try:
            return resp.json()
        except ValueError as e:
            logger.error("Upstream returned invalid JSON for %s: %s", url, e)
            raise UpstreamPayloadError(f"Invalid JSON from upstream: {e}") from e

    async def fetch_movies(self, page: int, limit: int, country: str) -> dict:
        """Fetch one page of the movie listing. Returns the raw envelope."""
        url = build_upstream_url(self.base_url, MOVIES_LIST_ENDPOINT, {
            "page": page,
            "limit": limit,
            "country": country,
        })
        payload = await self._get_json(url)
        records = unwrap_list(payload)
        logger.info("Upstream listing: success=%s, records=%d",
                    _is_success(payload), len(records) if records is not None else 0)
        return payload

    async def fetch_movie(self, slug: str) -> dict:
        """Fetch a single movie by slug. Returns the raw envelope."""
        url = build_upstream_url(self.base_url, MOVIE_DETAIL_ENDPOINT, {"slug": slug})
        return await self._get_json(url)
