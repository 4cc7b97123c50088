"""Local HTTP server exposing the analysis actions as JSON.

Each request runs on its own thread. Actions share one AnalysisState,
so a slow query finishing after a newer one is reported back to its
caller but never replaces the newer state.
"""

from __future__ import annotations

import json
import logging
import threading
from functools import partial
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlparse

from .actions import AnalysisState, run_archive_action, run_repository_action
from .analysis import ProjectAnalyzer
from .github import GithubClient
from .session import Session

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 50 * 1024 * 1024


class App:
    """Collaborators shared by every request handler."""

    def __init__(
        self,
        session: Session,
        github: GithubClient,
        analyzer: ProjectAnalyzer | None,
    ):
        self.session = session
        self.github = github
        self.analyzer = analyzer
        self.state = AnalysisState()
        # guards session mutations; handlers run on separate threads
        self.lock = threading.Lock()

    def state_payload(self) -> dict[str, Any]:
        user = self.session.user
        return {
            **self.state.snapshot(),
            "user": user.to_dict() if user else None,
        }


class RepolensHandler(BaseHTTPRequestHandler):
    """HTTP handler for the JSON API."""

    def __init__(self, *args, app: App, **kwargs):
        self._app = app
        super().__init__(*args, **kwargs)

    def do_GET(self):
        path = urlparse(self.path).path
        if path == "/api/state":
            self._send_json(200, self._app.state_payload())
        else:
            self._send_json(404, {"error": f"Not found: {path}"})

    def do_POST(self):
        url = urlparse(self.path)
        length = int(self.headers.get("Content-Length") or 0)
        if length > MAX_UPLOAD_BYTES:
            self._send_json(413, {"error": "Request body too large"})
            return
        self._body = self.rfile.read(length) if length else b""

        if url.path == "/api/analyze":
            self._analyze()
        elif url.path == "/api/upload":
            self._upload(parse_qs(url.query).get("filename", [None])[0])
        elif url.path == "/api/login":
            self._login()
        elif url.path == "/api/logout":
            with self._app.lock:
                self._app.session.logout()
            self._send_json(200, {"user": None})
        elif url.path == "/api/upgrade":
            self._upgrade()
        else:
            self._send_json(404, {"error": f"Not found: {url.path}"})

    def _analyze(self):
        body = self._read_json()
        if body is None:
            return
        query = body.get("query")
        if not isinstance(query, str) or not query.strip():
            self._send_json(400, {"error": "Missing 'query'"})
            return
        result = run_repository_action(
            query, self._app.github, self._app.analyzer, self._app.state
        )
        self._send_result(result)

    def _upload(self, filename: str | None):
        data = self._body
        result = run_archive_action(
            data, filename or "", self._app.session, self._app.analyzer, self._app.state
        )
        self._send_result(result)

    def _login(self):
        body = self._read_json()
        if body is None:
            return
        try:
            with self._app.lock:
                user = self._app.session.login(str(body.get("email", "")))
        except ValueError as e:
            self._send_json(400, {"error": str(e)})
            return
        self._send_json(200, {"user": user.to_dict()})

    def _upgrade(self):
        with self._app.lock:
            user = self._app.session.upgrade() if self._app.session.is_authenticated else None
        if user is None:
            self._send_json(403, {"error": "Sign in before upgrading your account."})
            return
        self._send_json(200, {"user": user.to_dict()})

    def _send_result(self, result):
        self._send_json(200 if result.ok else 422, result.to_dict())

    def _read_json(self) -> dict[str, Any] | None:
        try:
            body = json.loads(self._body or b"{}")
        except json.JSONDecodeError:
            self._send_json(400, {"error": "Request body is not valid JSON"})
            return None
        if not isinstance(body, dict):
            self._send_json(400, {"error": "Request body must be a JSON object"})
            return None
        return body

    def _send_json(self, status: int, payload: dict[str, Any]):
        content = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(content)))
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()
        self.wfile.write(content)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(app: App, host: str = "127.0.0.1", port: int = 8420) -> ThreadingHTTPServer:
    handler = partial(RepolensHandler, app=app)
    ThreadingHTTPServer.allow_reuse_address = True
    return ThreadingHTTPServer((host, port), handler)


def start_server(app: App, host: str = "127.0.0.1", port: int = 8420) -> None:
    """Serve the JSON API until interrupted.

    Args:
        app: Shared session, clients and analysis state
        host: Interface to bind
        port: Port to serve on
    """
    server = make_server(app, host, port)
    logger.info("Serving on http://%s:%d", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
