"""
Translation of low-level API client errors into unified BusinessException variants.
"""
from __future__ import annotations

from typing import Any, Optional

from domain.common.exceptions import (
    BusinessException,
    DirectoryUnavailableException,
    GatewayException,
    GatewayUnreachableException,
)
from infrastructure.external.api_clients.base import APIConnectionError, APIError


def upstream_message(data: Any) -> Optional[str]:
    """Upstream error bodies carry a human message under `message`."""
    if isinstance(data, dict):
        value = data.get("message")
        if isinstance(value, str) and value.strip():
            return value
    return None


def gateway_error_from(exc: APIError) -> BusinessException:
    # Timeouts and connection failures are indistinguishable to the caller
    if isinstance(exc, APIConnectionError):
        return GatewayUnreachableException(reason=exc.message)
    data = exc.response.data if exc.response is not None else None
    return GatewayException(exc.status_code, upstream_message(data))


def directory_error_from(resource: str, exc: APIError) -> DirectoryUnavailableException:
    return DirectoryUnavailableException(
        resource,
        status_code=exc.status_code,
        reason=exc.message,
    )
