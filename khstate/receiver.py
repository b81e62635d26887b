"""A small HTTP server that stores state files on disk with naive lock/unlock.

Endpoints:
  PUT  /states/{module}/{workspace}.tfstate  writes {data}/{module}/{workspace}.tfstate
  GET  /states/{module}/{workspace}.tfstate  reads the state file
  POST /states/{module}/{workspace}/lock     creates {data}/{module}/{workspace}.lock
  POST /states/{module}/{workspace}/unlock   removes the lock file
"""

from __future__ import annotations

import argparse
import hashlib
import json
import logging
import os
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import unquote, urlsplit

_PREFIX = "/states/"
_STATE_SUFFIX = ".tfstate"
_STATE_CONTENT_TYPE = "application/vnd.terraform.state+json;version=4"

log = logging.getLogger(__name__)


class _ReceiverServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address, handler, data_dir):
        super().__init__(address, handler)
        self.data_dir = data_dir


class StateReceiverHandler(BaseHTTPRequestHandler):
    """Serves the state, lock and unlock endpoints."""

    def do_GET(self):
        self._route("GET")

    def do_PUT(self):
        self._route("PUT")

    def do_POST(self):
        self._route("POST")

    @property
    def _data_dir(self):
        return getattr(self.server, "data_dir", "data")

    def _route(self, method):
        path = unquote(urlsplit(self.path).path)
        if not path.startswith(_PREFIX):
            self._error(404, "404 page not found")
            return
        parts = path[len(_PREFIX):].split("/")
        if len(parts) < 2:
            self._error(400, "bad path")
            return
        module = parts[0]
        tail = "/".join(parts[1:])

        if method == "POST" and tail.endswith("/lock"):
            self._lock(module, tail[: -len("/lock")])
            return
        if method == "POST" and tail.endswith("/unlock"):
            self._unlock(module, tail[: -len("/unlock")])
            return

        if not tail.endswith(_STATE_SUFFIX):
            self._error(400, "expected .tfstate path")
            return
        workspace = os.path.basename(tail)[: -len(_STATE_SUFFIX)]
        fs_path = os.path.join(self._data_dir, module, workspace + _STATE_SUFFIX)

        if method == "PUT":
            self._put_state(fs_path, path)
        elif method == "GET":
            self._get_state(fs_path)
        else:
            self._error(405, "method not allowed", {"Allow": "PUT, GET, POST"})

    def _lock_path(self, module, workspace):
        return os.path.join(self._data_dir, module, workspace.rstrip("/")) + ".lock"

    def _lock(self, module, workspace):
        lock_path = self._lock_path(module, workspace)
        try:
            os.makedirs(os.path.dirname(lock_path), mode=0o755, exist_ok=True)
            with open(lock_path, "wb") as handle:
                handle.write(b"locked")
        except OSError as exc:
            self._error(500, str(exc))
            return
        self._respond(200, b"")

    def _unlock(self, module, workspace):
        try:
            os.remove(self._lock_path(module, workspace))
        except OSError:
            pass
        self._respond(200, b"")

    def _put_state(self, fs_path, url_path):
        try:
            os.makedirs(os.path.dirname(fs_path), mode=0o755, exist_ok=True)
        except OSError as exc:
            self._error(500, str(exc))
            return
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length > 0 else b""
        checksum = hashlib.sha256(body).hexdigest()
        expected = self.headers.get("X-Checksum-Sha256", "")
        if expected and expected != checksum:
            self._error(409, f"checksum mismatch: expected {expected} got {checksum}")
            return
        try:
            fd = os.open(fs_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "wb") as handle:
                handle.write(body)
        except OSError as exc:
            self._error(500, str(exc))
            return
        summary = {
            "url": f"{self._scheme()}://{self.headers.get('Host', '')}{url_path}",
            "size": len(body),
            "checksum": checksum,
        }
        payload = (json.dumps(summary, sort_keys=True, separators=(",", ":")) + "\n").encode()
        self._respond(
            200,
            payload,
            {"Content-Type": "application/json", "X-Checksum-Sha256": checksum},
        )

    def _get_state(self, fs_path):
        try:
            with open(fs_path, "rb") as handle:
                data = handle.read()
        except FileNotFoundError:
            self._error(404, "404 page not found")
            return
        except OSError as exc:
            self._error(500, str(exc))
            return
        self._respond(200, data, {"Content-Type": _STATE_CONTENT_TYPE})

    def _scheme(self):
        return self.headers.get("X-Forwarded-Proto") or "http"

    def _respond(self, status, body, headers=None):
        self.send_response(status)
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def _error(self, status, message, headers=None):
        merged = {
            "Content-Type": "text/plain; charset=utf-8",
            "X-Content-Type-Options": "nosniff",
            **(headers or {}),
        }
        self._respond(status, (message + "\n").encode("utf-8"), merged)


def make_server(host="", port=8080, data_dir="data"):
    """Create (but do not start) a receiver that stores files under ``data_dir``."""
    return _ReceiverServer((host, port), StateReceiverHandler, data_dir)


def main(argv=None):
    """Run the receiver until interrupted."""
    parser = argparse.ArgumentParser(
        prog="kh-receiver", description="HTTP receiver for Terraform state files."
    )
    parser.add_argument("--host", default="", help="address to bind (default: all)")
    parser.add_argument("--port", type=int, default=8080, help="port to listen on")
    parser.add_argument("--data-dir", default="data", help="directory to store files in")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    server = make_server(args.host, args.port, args.data_dir)
    log.info("HTTP receiver listening on %s:%d", args.host, server.server_address[1])
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())