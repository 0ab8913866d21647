"""Path-prefix reverse proxy in front of the auth, core and chat services."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import aiohttp
from fastapi import APIRouter, Request, Response, status

from huequitas.core.config import settings
from huequitas.core.errors import error_response

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "host",
        "content-length",
        "content-encoding",
    }
)

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


@dataclass(frozen=True)
class Upstream:
    prefix: str
    base_url: str


def default_upstreams() -> list[Upstream]:
    return [
        Upstream(prefix="/auth", base_url=settings.auth_service_url),
        Upstream(prefix="/api", base_url=settings.core_service_url),
        Upstream(prefix="/chat", base_url=settings.chat_service_url),
    ]


def strip_prefix(prefix: str, path: str) -> str:
    """``/api/restaurants`` -> ``/restaurants``; an empty remainder becomes ``/``."""
    rest = path[len(prefix):] if path.startswith(prefix) else path
    if not rest.startswith("/"):
        rest = "/" + rest
    return rest


def _forward_headers(request: Request) -> dict[str, str]:
    headers = {k: v for k, v in request.headers.items() if k.lower() not in HOP_BY_HOP_HEADERS}
    if request.client:
        prior = request.headers.get("x-forwarded-for")
        headers["x-forwarded-for"] = f"{prior}, {request.client.host}" if prior else request.client.host
    return headers


class _BodyTooLarge(Exception):
    pass


async def _read_body(request: Request) -> bytes:
    limit = settings.gateway_max_body_bytes
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise _BodyTooLarge()

    # Chunked uploads carry no length up front, so count as the bytes arrive
    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise _BodyTooLarge()
        chunks.append(chunk)
    return b"".join(chunks)


async def forward(session: aiohttp.ClientSession, upstream: Upstream, request: Request) -> Response:
    try:
        body = await _read_body(request)
    except _BodyTooLarge:
        logger.warning("Rejected oversized body for %s %s", request.method, request.url.path)
        return error_response(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Request body too large")

    target = upstream.base_url.rstrip("/") + strip_prefix(upstream.prefix, request.url.path)

    try:
        async with session.request(
            request.method,
            target,
            params=list(request.query_params.multi_items()),
            headers=_forward_headers(request),
            data=body or None,
            allow_redirects=False,
        ) as upstream_resp:
            content = await upstream_resp.read()
            headers = {k: v for k, v in upstream_resp.headers.items() if k.lower() not in HOP_BY_HOP_HEADERS}
            return Response(content=content, status_code=upstream_resp.status, headers=headers)
    except (aiohttp.ClientError, asyncio.TimeoutError):
        logger.exception("Upstream %s unreachable for %s %s", upstream.base_url, request.method, request.url.path)
        return error_response(status.HTTP_502_BAD_GATEWAY, "Service unavailable")


def _endpoint(upstream: Upstream):
    async def proxy(request: Request) -> Response:
        return await forward(request.app.state.http, upstream, request)

    return proxy


def build_router(upstreams: list[Upstream]) -> APIRouter:
    router = APIRouter(tags=["gateway"])
    for upstream in upstreams:
        handler = _endpoint(upstream)
        for path in (upstream.prefix, upstream.prefix + "/{path:path}"):
            router.add_api_route(path, handler, methods=PROXY_METHODS, include_in_schema=False)
        logger.info("Gateway route %s/* -> %s", upstream.prefix, upstream.base_url)
    return router
