from __future__ import annotations

import atexit
import base64
import binascii
import json
import selectors
import subprocess
import threading
from dataclasses import dataclass
from typing import Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


@dataclass(frozen=True)
class PlaywrightCaptureRequest:
    url: str
    timeout_seconds: int
    user_agent: str | None
    screenshot: bool = True
    full_page: bool = True


@dataclass(frozen=True)
class PlaywrightCaptureResponse:
    url_final: str
    status_code: int | None
    html: str | None
    screenshot: bytes | None
    metadata: dict


class PlaywrightMcpClient(Protocol):
    def capture(self, request: PlaywrightCaptureRequest) -> PlaywrightCaptureResponse:
        raise NotImplementedError


class PlaywrightMcpError(RuntimeError):
    pass


class PlaywrightMcpTimeout(PlaywrightMcpError):
    pass


def _request_payload(request: PlaywrightCaptureRequest) -> dict:
    return {
        "url": request.url,
        "timeout_seconds": request.timeout_seconds,
        "user_agent": request.user_agent,
        "screenshot": request.screenshot,
        "full_page": request.full_page,
        "wait_until": "networkidle",
    }


def _parse_response(data: dict, request: PlaywrightCaptureRequest) -> PlaywrightCaptureResponse:
    if data.get("error"):
        raise PlaywrightMcpError(f"mcp_capture_failed: {data['error']}")
    url_final = data.get("url_final") or data.get("final_url") or data.get("url") or request.url
    html = data.get("html") or data.get("content")
    status_code = data.get("status_code") or data.get("status")
    metadata = data.get("metadata") or {}
    raw_screenshot = data.get("screenshot_base64") or data.get("screenshot")
    screenshot = None
    if isinstance(raw_screenshot, str) and raw_screenshot:
        try:
            screenshot = base64.b64decode(raw_screenshot, validate=True)
        except binascii.Error as exc:
            raise PlaywrightMcpError("mcp_screenshot_invalid_base64") from exc
    return PlaywrightCaptureResponse(
        url_final=url_final,
        status_code=status_code,
        html=html,
        screenshot=screenshot,
        metadata=metadata,
    )


class HttpPlaywrightMcpClient:
    def __init__(self, endpoint: str) -> None:
        self.endpoint = endpoint

    def capture(self, request: PlaywrightCaptureRequest) -> PlaywrightCaptureResponse:
        body = json.dumps(_request_payload(request)).encode("utf-8")
        http_request = Request(
            self.endpoint,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urlopen(http_request, timeout=request.timeout_seconds) as response:
                raw = response.read()
        except TimeoutError as exc:
            raise PlaywrightMcpTimeout("mcp_request_timeout") from exc
        except HTTPError as exc:
            raise PlaywrightMcpError(f"mcp_request_failed: {exc}") from exc
        except URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise PlaywrightMcpTimeout("mcp_request_timeout") from exc
            raise PlaywrightMcpError(f"mcp_request_failed: {exc}") from exc

        try:
            data = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise PlaywrightMcpError("mcp_response_invalid_json") from exc
        return _parse_response(data, request)


class StdioPlaywrightMcpClient:
    def __init__(self, command: list[str], cwd: str | None, timeout_seconds: int) -> None:
        self._command = command
        self._cwd = cwd
        self._timeout_seconds = timeout_seconds
        self._process: subprocess.Popen[str] | None = None
        self._lock = threading.Lock()
        atexit.register(self.close)

    def close(self) -> None:
        if self._process and self._process.poll() is None:
            self._process.terminate()
        self._process = None

    def _ensure_process(self) -> subprocess.Popen[str]:
        if self._process and self._process.poll() is None:
            return self._process
        try:
            self._process = subprocess.Popen(
                self._command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                cwd=self._cwd,
                text=True,
                bufsize=1,
            )
        except OSError as exc:
            raise PlaywrightMcpError(f"mcp_stdio_spawn_failed: {exc}") from exc
        return self._process

    def _readline_with_timeout(self, process: subprocess.Popen[str], timeout: int) -> str:
        assert process.stdout is not None
        selector = selectors.DefaultSelector()
        selector.register(process.stdout, selectors.EVENT_READ)
        try:
            events = selector.select(timeout=timeout)
        finally:
            selector.close()
        if not events:
            # A late reply would be read as the answer to the next request.
            self.close()
            raise PlaywrightMcpTimeout("mcp_stdio_timeout")
        line = process.stdout.readline()
        if not line:
            raise PlaywrightMcpError("mcp_stdio_no_output")
        return line

    def capture(self, request: PlaywrightCaptureRequest) -> PlaywrightCaptureResponse:
        timeout = min(request.timeout_seconds, self._timeout_seconds)
        with self._lock:
            process = self._ensure_process()
            assert process.stdin is not None
            try:
                process.stdin.write(json.dumps(_request_payload(request)) + "\n")
                process.stdin.flush()
            except BrokenPipeError as exc:
                self.close()
                raise PlaywrightMcpError("mcp_stdio_broken_pipe") from exc

            line = self._readline_with_timeout(process, timeout)
            try:
                data = json.loads(line.strip())
            except json.JSONDecodeError as exc:
                raise PlaywrightMcpError("mcp_stdio_invalid_json") from exc
        return _parse_response(data, request)


class PlaywrightMcpRegistry:
    _stdio_client: StdioPlaywrightMcpClient | None = None
    _signature: tuple | None = None
    _lock = threading.Lock()

    @classmethod
    def get_stdio_client(
        cls,
        command: list[str],
        cwd: str | None,
        timeout_seconds: int,
    ) -> StdioPlaywrightMcpClient:
        signature = (tuple(command), cwd, timeout_seconds)
        with cls._lock:
            if cls._stdio_client is None or cls._signature != signature:
                if cls._stdio_client is not None:
                    cls._stdio_client.close()
                cls._stdio_client = StdioPlaywrightMcpClient(command, cwd, timeout_seconds)
                cls._signature = signature
            return cls._stdio_client
