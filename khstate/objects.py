"""State objects, the reader/writer interfaces and shared HTTP helpers."""

from __future__ import annotations

import hashlib
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

import requests

DEFAULT_TIMEOUT = 30.0


@dataclass
class StateObject:
    """Summary of one stored state file."""

    key: str
    size: int = 0
    checksum: str = ""  # sha256 hex
    workspace: str = ""
    module: str = ""
    url: str = ""


class BackendError(Exception):
    """Raised when a backend cannot list, read or write state."""


class StateReader(ABC):
    """Something state can be listed and read from."""

    @abstractmethod
    def list(self) -> list[StateObject]:
        """Return the state objects this reader can see."""

    @abstractmethod
    def get(self, key: str) -> tuple[bytes, StateObject]:
        """Return the content of one state object and its summary."""


class StateWriter(ABC):
    """Something state can be written to."""

    @abstractmethod
    def put(self, key: str, data: bytes, overwrite: bool) -> StateObject:
        """Store ``data`` under ``key`` and return a summary of what was written."""


def sha256_hex(data: bytes) -> str:
    """Return the hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def _status_line(response: Any) -> str:
    code = response.status_code
    try:
        phrase = HTTPStatus(code).phrase
    except ValueError:
        phrase = getattr(response, "reason", "") or ""
    return f"{code} {phrase}".strip()


def _is_success(response: Any) -> bool:
    return 200 <= response.status_code < 300


def _send(session: Any, method: str, url: str, *, timeout: float | None, **kwargs: Any) -> Any:
    """Perform a request and read its body, turning transport failures into BackendError."""
    try:
        response = session.request(method, url, timeout=timeout, **kwargs)
        _ = response.content
    except requests.RequestException as exc:
        raise BackendError(f"{method} {url}: {exc}") from exc
    return response


def _decode_json(response: Any, what: str) -> Any:
    try:
        return json.loads(response.content)
    except ValueError as exc:
        raise BackendError(f"{what}: invalid JSON response: {exc}") from exc


def _dig(payload: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(payload, dict):
            return None
        payload = payload.get(key)
    return payload