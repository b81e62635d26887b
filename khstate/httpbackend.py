"""Read and write state over plain HTTP GET/PUT."""

from __future__ import annotations

import requests

from khstate.objects import (
    DEFAULT_TIMEOUT,
    BackendError,
    StateObject,
    StateReader,
    StateWriter,
    _is_success,
    _send,
    _status_line,
    sha256_hex,
)


class HTTPReader(StateReader):
    """Reads a single state document from a URL."""

    def __init__(self, url, session=None):
        self.url = url
        self.session = session if session is not None else requests.Session()

    def list(self):
        _, obj = self.get(self.url)
        return [obj]

    def get(self, key):
        response = _send(self.session, "GET", self.url, timeout=DEFAULT_TIMEOUT)
        if not _is_success(response):
            raise BackendError(f"GET {self.url}: {_status_line(response)}")
        data = response.content
        obj = StateObject(
            key=self.url,
            size=len(data),
            checksum=sha256_hex(data),
            workspace="default",
            url=self.url,
        )
        return data, obj


class HTTPWriter(StateWriter):
    """Uploads state with HTTP PUT, to the given key's URL or the writer's own URL."""

    def __init__(self, url, headers=None, session=None):
        self.url = url
        self.headers = dict(headers or {})
        self.session = session if session is not None else requests.Session()

    def put(self, key, data, overwrite):
        target = key or self.url
        response = _send(
            self.session,
            "PUT",
            target,
            timeout=DEFAULT_TIMEOUT,
            data=data,
            headers=self.headers,
        )
        if not _is_success(response):
            raise BackendError(f"PUT {target}: {_status_line(response)}")
        # A server-echoed checksum means the server validated the upload.
        checksum = response.headers.get("X-Checksum-Sha256") or sha256_hex(data)
        return StateObject(key=target, size=len(data), checksum=checksum, url=target)