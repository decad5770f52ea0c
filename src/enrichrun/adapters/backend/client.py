"""Shared HTTP plumbing for the admin backend adapters."""

from __future__ import annotations

import asyncio
from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError as PydanticValidationError

from enrichrun.adapters.http_resilience import ResilientClient
from enrichrun.domain.errors import (
    AuthExpired,
    BackendAPIError,
    RegistryConflict,
    TransientNetworkError,
    ValidationError,
)

from .schema import ConflictDetailPayload, ErrorResponse
from .translator import translate_conflict

if TYPE_CHECKING:
    from collections.abc import Callable

    from enrichrun.config.backend import BackendConfig
    from enrichrun.config.http_resilience import ResilienceConfig

    type ClientFactory = Callable[[ResilienceConfig], ResilientClient]

log = getLogger(__name__)

_TRANSIENT_STATUSES = frozenset({HTTPStatus.TOO_MANY_REQUESTS})


def default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _error_message(response: httpx.Response, payload: ErrorResponse | None) -> str:
    detail = payload.detail if payload is not None else None
    if isinstance(detail, str) and detail.strip():
        return detail.strip()
    return f"{response.request.method} {response.request.url.path} returned {response.status_code}"


def _parse_error(response: httpx.Response) -> ErrorResponse | None:
    try:
        return ErrorResponse.model_validate(response.json())
    except (ValueError, PydanticValidationError):
        return None


def raise_for_response(response: httpx.Response) -> None:
    """Translate an error response into the domain error taxonomy."""

    status = response.status_code
    if status < HTTPStatus.BAD_REQUEST:
        return

    payload = _parse_error(response)
    message = _error_message(response, payload)

    if status in {HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN}:
        raise AuthExpired(message, status_code=status)
    if status == HTTPStatus.CONFLICT and payload is not None:
        detail = payload.detail
        if isinstance(detail, ConflictDetailPayload):
            conflict = translate_conflict(detail)
            if conflict is not None:
                raise RegistryConflict(conflict)
    if status in {HTTPStatus.BAD_REQUEST, HTTPStatus.UNPROCESSABLE_ENTITY}:
        raise ValidationError(message)
    if status >= HTTPStatus.INTERNAL_SERVER_ERROR or status in _TRANSIENT_STATUSES:
        raise TransientNetworkError(message)
    raise BackendAPIError(message, status_code=status)


class BackendClient:
    """Synchronous facade over one backend API; each call runs its own event loop."""

    def __init__(
        self,
        config: BackendConfig,
        resilience: ResilienceConfig,
        *,
        client_factory: ClientFactory = default_client_factory,
    ) -> None:
        self._config = config
        self._resilience = resilience
        self._client_factory = client_factory

    def _call(
        self,
        method: str,
        path: str,
        *,
        json: object = None,
        params: dict[str, str | int] | None = None,
    ) -> object:
        return asyncio.run(self._request_async(method, path, json=json, params=params))

    async def _request_async(
        self,
        method: str,
        path: str,
        *,
        json: object,
        params: dict[str, str | int] | None,
    ) -> object:
        url = self._config.url(path)
        try:
            async with self._client_factory(self._resilience) as client:
                if json is None:
                    response = await client.request(method, url, params=params)
                else:
                    response = await client.request(method, url, json=json, params=params)
        except httpx.TransportError as exc:
            log.debug("%s %s failed: %s", method, url, exc)
            raise TransientNetworkError(f"{method} {path}: {exc}") from exc

        raise_for_response(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendAPIError(f"{method} {path} returned invalid JSON") from exc
