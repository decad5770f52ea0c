from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from enrichrun.adapters.http_resilience import ResilientClient

if TYPE_CHECKING:
    from collections.abc import Callable

    from enrichrun.config.http_resilience import ResilienceConfig


def make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


def json_handler(
    routes: dict[tuple[str, str], httpx.Response],
    seen: list[httpx.Request] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Answer requests by ``(method, path)``; anything unrouted gets a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        response = routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        return response

    return handler
