import ssl
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Self
from urllib.parse import parse_qs, urlsplit


class _ValidationHandler(BaseHTTPRequestHandler):
    """HTTP request handler playing the processor's validation endpoint."""

    def do_POST(self):
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length)

        server_config = self.server.config  # type: ignore[attr-defined]
        parts = urlsplit(self.path)

        with server_config["lock"]:
            server_config["received"].append({
                "path": parts.path,
                "query": parse_qs(parts.query),
                "body": body,
                "headers": dict(self.headers),
            })

        # Simulate slow response
        if server_config["response_delay"] > 0:
            time.sleep(server_config["response_delay"])

        # Hang up without answering
        if server_config["drop_connection"]:
            self.close_connection = True
            return

        if parse_qs(parts.query).get("cmd") != ["_notify-validate"]:
            self._respond(400, b"missing cmd=_notify-validate")
            return

        if server_config["verify_raw"]:
            with server_config["lock"]:
                genuine = body in server_config["issued"]
            self._respond(200, b"VERIFIED" if genuine else b"INVALID")
            return

        self._respond(server_config["response_code"], server_config["response_body"])

    def _respond(self, code: int, body: bytes) -> None:
        self.send_response(code)
        self.send_header("Content-Type", "text/html; charset=UTF-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        """Suppress default request logging."""
        pass


class ProcessorSandboxServer:
    """Local stand-in for the processor's notification validation endpoint.

    By default every validation request is answered with ``VERIFIED``.
    With ``verify_raw=True`` only bodies registered through ``issue()``
    are VERIFIED and everything else is INVALID, which is how the real
    processor treats forged or altered notifications. Pass an
    ``ssl_context`` to serve over HTTPS.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 0,
        verify_raw: bool = False,
        ssl_context: ssl.SSLContext | None = None,
    ):
        self._ssl_context = ssl_context
        self._host = host
        self._port = port
        self._config = {
            "response_code": 200,
            "response_body": b"VERIFIED",
            "response_delay": 0,
            "drop_connection": False,
            "verify_raw": verify_raw,
            "issued": set(),
            "received": [],
            "lock": threading.Lock(),
        }
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def set_response_body(self, body: str | bytes) -> Self:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._config["response_body"] = body
        return self

    def set_response_code(self, code: int) -> Self:
        self._config["response_code"] = code
        return self

    def set_response_delay(self, seconds: float) -> Self:
        self._config["response_delay"] = seconds
        return self

    def drop_connections(self, enabled: bool = True) -> Self:
        self._config["drop_connection"] = enabled
        return self

    def issue(self, body: bytes) -> bytes:
        """Register a notification body as one the processor really sent."""
        with self._config["lock"]:
            self._config["issued"].add(body)
        return body

    def start(self) -> None:
        self._server = ThreadingHTTPServer((self._host, self._port), _ValidationHandler)
        self._server.config = self._config  # type: ignore[attr-defined]
        if self._ssl_context is not None:
            self._server.socket = self._ssl_context.wrap_socket(
                self._server.socket, server_side=True
            )
        # Get the actual port (useful when port=0)
        self._port = self._server.server_address[1]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    @property
    def url(self) -> str:
        scheme = "https" if self._ssl_context is not None else "http"
        return f"{scheme}://{self._host}:{self._port}/cgi-bin/webscr"

    @property
    def port(self) -> int:
        return self._port

    def get_received(self) -> list[dict]:
        with self._config["lock"]:
            return list(self._config["received"])

    def get_received_count(self) -> int:
        with self._config["lock"]:
            return len(self._config["received"])

    def clear(self) -> None:
        with self._config["lock"]:
            self._config["received"].clear()
            self._config["issued"].clear()
