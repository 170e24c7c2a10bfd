"""
Loopback listener for the browser sign-in redirect.

After the user grants access, Google redirects the browser to
http://127.0.0.1:<port>/oauth2callback?code=... (or ?error=...). The
listener answers with a small HTML page and posts a RedirectResult on a
queue; whoever started the browser flow waits on that queue. The sign-in
call and the redirect never share a call stack.
"""

import html
import queue
import threading
import urllib.parse
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer

from yt_account_sync.core.config import REDIRECT_HOST, REDIRECT_PATH
from yt_account_sync.core.logger import get_logger

logger = get_logger(__name__)


_PAGE_TEMPLATE = """<html>
<head><title>{title}</title></head>
<body style="font-family: Arial, sans-serif; text-align: center; margin-top: 50px;">
    <h1 style="color: {color};">{title}</h1>
    <p>{message}</p>
</body>
</html>
"""


@dataclass(frozen=True)
class RedirectResult:
    """
    Query parameters captured from the redirect.

    Exactly one of code and error is normally set. Both None means the
    redirect carried neither (treated as an error by the session).
    """
    code: str | None = None
    error: str | None = None


def parse_redirect(url: str) -> RedirectResult:
    """
    Extract code/error from a redirect URL or request path.

    An error parameter wins over a code parameter.
    """
    query = urllib.parse.parse_qs(urllib.parse.urlparse(url).query)

    error = query.get("error", [None])[0]
    if error:
        return RedirectResult(error=error)

    code = query.get("code", [None])[0]
    return RedirectResult(code=code or None)


class _RedirectHandler(BaseHTTPRequestHandler):
    """Handles the single GET Google sends to the loopback address."""

    server: "_RedirectServer"

    def do_GET(self) -> None:
        parsed = urllib.parse.urlparse(self.path)
        if parsed.path != REDIRECT_PATH:
            self.send_error(404)
            return

        result = parse_redirect(self.path)

        if result.code:
            self._send_page(
                200, "Sign-in complete", "#188038",
                "You can close this window and return to the terminal."
            )
        else:
            reason = result.error or "no authorization code received"
            self._send_page(
                400, "Sign-in failed", "#d93025",
                f"Error: {html.escape(reason)}. Run the login command again to retry."
            )

        self.server.results.put(result)

    def _send_page(self, status: int, title: str, color: str, message: str) -> None:
        body = _PAGE_TEMPLATE.format(title=title, color=color, message=message).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args) -> None:
        logger.debug(f"Redirect listener: {format % args}")


class _RedirectServer(HTTPServer):
    def __init__(self, address: tuple[str, int]) -> None:
        super().__init__(address, _RedirectHandler)
        self.results: "queue.Queue[RedirectResult]" = queue.Queue()


class RedirectListener:
    """
    Background HTTP server capturing one sign-in redirect.

    Usage:
        listener = RedirectListener(port=8765)
        listener.start()
        try:
            ...  # open the consent page
            result = listener.wait(timeout=None)
        finally:
            listener.stop()

    Attributes:
        host: Loopback address to bind.
        port: Port to bind; must match the registered redirect URI.
    """

    def __init__(self, port: int, host: str = REDIRECT_HOST) -> None:
        self.host = host
        self.port = port
        self._server: _RedirectServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def redirect_uri(self) -> str:
        return f"http://{self.host}:{self.port}{REDIRECT_PATH}"

    def start(self) -> None:
        """
        Bind the port and serve on a daemon thread.

        Raises:
            OSError: If the port is already in use.
        """
        if self._server is not None:
            return

        self._server = _RedirectServer((self.host, self.port))
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="redirect-listener",
            daemon=True
        )
        self._thread.start()
        logger.debug(f"Listening for sign-in redirect on {self.redirect_uri}")

    def wait(self, timeout: float | None = None) -> RedirectResult | None:
        """
        Block until a redirect arrives.

        Args:
            timeout: Seconds to wait, or None to wait until interrupted.

        Returns:
            The captured result, or None if the timeout elapsed first.
        """
        if self._server is None:
            raise RuntimeError("RedirectListener.start() must be called before wait()")

        try:
            return self._server.results.get(timeout=timeout)
        except queue.Empty:
            return None

    def stop(self) -> None:
        if self._server is None:
            return

        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)

        self._server = None
        self._thread = None
