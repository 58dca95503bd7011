"""FastAPI dependency providers: read from app.state, set by web.app.create_app()."""

from fastapi import Request

from upstream.client import UpstreamClientProtocol
from web.ads import AdScriptRegistry


def get_upstream(request: Request) -> UpstreamClientProtocol:
    """Movies API client."""
    return request.app.state.upstream


def get_upstream_config(request: Request):
    """UpstreamConfig instance."""
    return request.app.state.upstream_config


def get_ad_registry(request: Request) -> AdScriptRegistry:
    """Ad slot registry."""
    return request.app.state.ad_registry
