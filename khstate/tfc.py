"""Read and write workspace state through the Terraform Cloud API."""

from __future__ import annotations

import base64
import hashlib
import json
from dataclasses import dataclass
from urllib.parse import quote

import requests

from khstate.objects import (
    DEFAULT_TIMEOUT,
    BackendError,
    StateObject,
    StateReader,
    StateWriter,
    _decode_json,
    _dig,
    _is_success,
    _send,
    _status_line,
    sha256_hex,
)

DEFAULT_HOST = "https://app.terraform.io"
_API_CONTENT_TYPE = "application/vnd.api+json"
_PAGE_SIZE = 100


@dataclass
class TFCWorkspace:
    """A workspace in a Terraform Cloud organization."""

    id: str
    name: str


def _escape(segment):
    return quote(segment, safe="")


def _api_headers(token):
    return {"Authorization": f"Bearer {token}", "Content-Type": _API_CONTENT_TYPE}


def _workspace_id(session, host, token, org, name, timeout):
    url = f"{host}/api/v2/organizations/{_escape(org)}/workspaces/{_escape(name)}"
    response = _send(session, "GET", url, timeout=timeout, headers=_api_headers(token))
    if response.status_code != 200:
        raise BackendError(f"tfc workspace get: {_status_line(response)}")
    workspace_id = _dig(_decode_json(response, "tfc workspace get"), "data", "id")
    if not isinstance(workspace_id, str) or not workspace_id:
        raise BackendError("tfc: workspace id not found")
    return workspace_id


class TFCReader(StateReader):
    """Reads the current state version of a Terraform Cloud workspace."""

    def __init__(self, host="", org="", workspace="", token="", session=None):
        self.host = (host or DEFAULT_HOST).rstrip("/")
        self.org = org
        self.workspace = workspace
        self.token = token
        self.session = session if session is not None else requests.Session()

    def list(self):
        if not self.org or not self.workspace:
            raise BackendError("tfc: org and workspace are required")
        return [
            StateObject(
                key=self.workspace,
                workspace=self.workspace,
                url=f"{self.host}/{self.org}/workspaces/{self.workspace}",
            )
        ]

    def get(self, key):
        ws_id = _workspace_id(
            self.session, self.host, self.token, self.org, self.workspace, DEFAULT_TIMEOUT
        )
        download_url = self._current_state_download_url(ws_id)
        headers = {"Accept": "application/octet-stream"}
        # Some download URLs are protected, others pre-signed; auth is safe for both.
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = _send(
            self.session, "GET", download_url, timeout=DEFAULT_TIMEOUT, headers=headers
        )
        if not _is_success(response):
            raise BackendError(f"GET state: {_status_line(response)}")
        data = response.content
        obj = StateObject(key=key, size=len(data), workspace=self.workspace, url=download_url)
        return data, obj

    def list_all_workspaces(self):
        """Return every workspace in the organization, following pagination."""
        if not self.org:
            raise BackendError("tfc: org is required")
        workspaces = []
        page = 1
        while True:
            url = (
                f"{self.host}/api/v2/organizations/{_escape(self.org)}/workspaces"
                f"?page[number]={page}&page[size]={_PAGE_SIZE}"
            )
            response = _send(
                self.session, "GET", url, timeout=DEFAULT_TIMEOUT, headers=_api_headers(self.token)
            )
            if response.status_code != 200:
                raise BackendError(f"tfc list workspaces: {_status_line(response)}")
            payload = _decode_json(response, "tfc list workspaces")
            items = _dig(payload, "data") or []
            if not isinstance(items, list):
                raise BackendError("tfc list workspaces: unexpected response shape")
            for item in items:
                workspaces.append(
                    TFCWorkspace(
                        id=str(_dig(item, "id") or ""),
                        name=str(_dig(item, "attributes", "name") or ""),
                    )
                )
            total_pages = _dig(payload, "meta", "pagination", "total-pages")
            if not isinstance(total_pages, int) or page >= total_pages:
                break
            page += 1
        return workspaces

    def _current_state_download_url(self, ws_id):
        url = f"{self.host}/api/v2/workspaces/{_escape(ws_id)}/current-state-version"
        response = _send(
            self.session, "GET", url, timeout=DEFAULT_TIMEOUT, headers=_api_headers(self.token)
        )
        if response.status_code != 200:
            raise BackendError(f"tfc current-state-version: {_status_line(response)}")
        payload = _decode_json(response, "tfc current-state-version")
        download_url = _dig(payload, "data", "attributes", "hosted-state-download-url")
        if not isinstance(download_url, str) or not download_url:
            raise BackendError("tfc: no current state version")
        return download_url


def _state_metadata(data):
    """Best-effort extraction of serial, lineage and terraform_version."""
    try:
        state = json.loads(data)
    except ValueError:
        return {}
    if not isinstance(state, dict):
        return {}
    attrs = {}
    serial = state.get("serial")
    if isinstance(serial, int) and not isinstance(serial, bool) and serial > 0:
        attrs["serial"] = serial
    lineage = state.get("lineage")
    if isinstance(lineage, str) and lineage:
        attrs["lineage"] = lineage
    version = state.get("terraform_version")
    if isinstance(version, str) and version:
        attrs["terraform-version"] = version
    return attrs


class TFCWriter(StateWriter):
    """Uploads a new state version to a Terraform Cloud workspace."""

    def __init__(self, host="", org="", workspace="", token="", session=None):
        self.host = (host or DEFAULT_HOST).rstrip("/")
        self.org = org
        self.workspace = workspace
        self.token = token
        self.session = session if session is not None else requests.Session()

    def put(self, key, data, overwrite):
        if not self.org or not self.workspace:
            raise BackendError("tfc: org and workspace are required")
        ws_id = _workspace_id(self.session, self.host, self.token, self.org, self.workspace, None)

        attributes = {
            "state": base64.b64encode(data).decode("ascii"),
            # The API protocol requires an MD5 digest; it is not used for security.
            "md5": base64.b64encode(hashlib.md5(data).digest()).decode("ascii"),
            **_state_metadata(data),
        }
        body = {"data": {"type": "state-versions", "attributes": attributes}}

        url = f"{self.host}/api/v2/workspaces/{_escape(ws_id)}/state-versions"
        headers = {**_api_headers(self.token), "Accept": _API_CONTENT_TYPE}
        response = _send(
            self.session, "POST", url, timeout=None, data=json.dumps(body), headers=headers
        )
        if not _is_success(response):
            detail = response.content.decode("utf-8", errors="replace").strip()
            raise BackendError(f"tfc state upload: {_status_line(response)}: {detail}")

        return StateObject(
            key=self.workspace,
            size=len(data),
            checksum=sha256_hex(data),
            url=f"{self.host}/app/{self.org}/workspaces/{self.workspace}",
        )