"""
mpv host adapter over the JSON IPC socket.

Start mpv with ``--input-ipc-server=/tmp/mpv-socket`` and point
``mpv.ipc_socket`` at the same path. Provides what the scheduler needs from
the player:

    show_text(text, duration)         -- OSD message
    get_property / set_property       -- OSD style properties (native values)
    bind_key(key, action, callback)   -- key press -> callback

Key presses come back as ``script-message osd-ext-info <action>``, which
mpv broadcasts to IPC clients as ``client-message`` events. Callbacks run
on the reader thread and must not block.
"""

import json
import socket
import threading
from typing import Any, Callable, Dict, List, Optional

from osd_ext_info.logger import get_logger

CLIENT_NAME = "osd-ext-info"


class MpvIpcError(Exception):
    """mpv refused a command or the IPC connection is gone."""


class MpvIpcHost:
    """Persistent JSON IPC connection to a running mpv."""

    def __init__(self, socket_path: str = "/tmp/mpv-socket", timeout: float = 2.0,
                 config=None):
        self.socket_path = socket_path
        self.timeout = timeout
        self.logger = get_logger(__name__, config)

        self._sock: Optional[socket.socket] = None
        self._reader: Optional[threading.Thread] = None
        self._send_lock = threading.Lock()
        self._cond = threading.Condition()
        self._request_id = 0
        self._responses: Dict[int, dict] = {}
        self._closed = True

        self._bindings: Dict[str, Callable[[], None]] = {}
        self._shutdown_callbacks: List[Callable[[], None]] = []

    # ── Connection ───────────────────────────────────────────────────

    def connect(self):
        """Open the socket and start the reader thread."""
        if self._sock is not None:
            return
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(self.socket_path)
        except OSError as e:
            sock.close()
            raise MpvIpcError(f"Cannot connect to mpv at {self.socket_path}: {e}") from e

        self._sock = sock
        self._closed = False
        self._reader = threading.Thread(target=self._read_loop, daemon=True,
                                        name="mpv-ipc-reader")
        self._reader.start()
        self.logger.info(f"Connected to mpv IPC at {self.socket_path}")

    def close(self):
        sock, self._sock = self._sock, None
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()
        self._mark_closed()

    @property
    def connected(self) -> bool:
        return not self._closed

    def on_shutdown(self, callback: Callable[[], None]):
        """Register a callback for mpv quitting or the socket closing."""
        self._shutdown_callbacks.append(callback)

    # ── Commands ─────────────────────────────────────────────────────

    def command(self, *args) -> Any:
        """Send one command and wait for its reply; returns the ``data`` field."""
        if self._sock is None or self._closed:
            raise MpvIpcError("Not connected to mpv")

        with self._cond:
            self._request_id += 1
            request_id = self._request_id

        payload = json.dumps({"command": list(args), "request_id": request_id}) + "\n"
        try:
            with self._send_lock:
                self._sock.sendall(payload.encode("utf-8"))
        except OSError as e:
            self._mark_closed()
            raise MpvIpcError(f"Send failed: {e}") from e

        with self._cond:
            ok = self._cond.wait_for(
                lambda: request_id in self._responses or self._closed,
                timeout=self.timeout,
            )
            reply = self._responses.pop(request_id, None)

        if reply is None:
            reason = "connection closed" if ok else "timed out"
            raise MpvIpcError(f"mpv command {args[0]} {reason}")
        if reply.get("error") != "success":
            raise MpvIpcError(f"mpv command {args[0]} error: {reply.get('error')}")
        return reply.get("data")

    def get_property(self, name: str) -> Any:
        try:
            return self.command("get_property", name)
        except MpvIpcError as e:
            if "unavailable" in str(e):
                return None
            raise

    def set_property(self, name: str, value: Any):
        self.command("set_property", name, value)

    def show_text(self, text: str, duration: float):
        """Show ``text`` on the OSD for ``duration`` seconds."""
        self.command("show-text", text, int(duration * 1000))

    def bind_key(self, key: str, action: str, callback: Callable[[], None]):
        """Bind ``key`` so pressing it runs ``callback``.

        Overrides any input.conf binding of the same key, like a forced
        binding from a script.
        """
        self._bindings[action] = callback
        self.command("keybind", key, f"script-message {CLIENT_NAME} {action}")
        self.logger.debug(f"Key '{key}' bound to '{action}'")

    # ── Reader thread ────────────────────────────────────────────────

    def _read_loop(self):
        buf = b""
        sock = self._sock
        while sock is not None:
            try:
                chunk = sock.recv(4096)
            except OSError:
                break
            if not chunk:
                break
            buf += chunk
            while b"\n" in buf:
                line, buf = buf.split(b"\n", 1)
                if line.strip():
                    self._handle_line(line.decode("utf-8", errors="replace"))
        self.logger.info("mpv IPC connection closed")
        self._mark_closed()

    def _handle_line(self, line: str):
        """Route one JSON line: command reply or async event."""
        try:
            msg = json.loads(line)
        except json.JSONDecodeError:
            self.logger.debug(f"Ignoring non-JSON IPC line: {line[:80]}")
            return

        if "request_id" in msg and "event" not in msg:
            with self._cond:
                self._responses[msg["request_id"]] = msg
                self._cond.notify_all()
            return

        event = msg.get("event")
        if event == "client-message":
            args = msg.get("args") or []
            if len(args) >= 2 and args[0] == CLIENT_NAME:
                callback = self._bindings.get(args[1])
                if callback is None:
                    self.logger.warning(f"No binding for action '{args[1]}'")
                    return
                try:
                    callback()
                except Exception as e:
                    self.logger.error(f"Key callback '{args[1]}' failed: {e}")
        elif event == "shutdown":
            self.logger.info("mpv is shutting down")
            self._mark_closed()

    def _mark_closed(self):
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._cond.notify_all()
        for callback in self._shutdown_callbacks:
            try:
                callback()
            except Exception as e:
                self.logger.error(f"Shutdown callback failed: {e}")
