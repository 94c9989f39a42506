"""
Shell and curl helpers for modality handlers.

Handlers call these from worker threads, never from the render thread,
so a slow server only delays its own message.
"""

import logging
import shlex
import subprocess
from typing import Dict, List, Optional, Sequence, Union

logger = logging.getLogger("osd_ext_info.fetch")

CONNECT_TIMEOUT = 3
RUN_TIMEOUT = 30


class FetchError(Exception):
    """External command failed; ``output`` carries whatever it printed."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


def run_shell(command: Union[str, Sequence[str]], timeout: float = RUN_TIMEOUT) -> str:
    """Run ``command`` and return stdout and stderr combined.

    A string runs through the shell, a sequence runs directly. Raises
    FetchError on a missing binary, a timeout or a non-zero exit status.
    """
    shell = isinstance(command, str)
    display = command if shell else shlex.join(command)
    logger.info(f"exec [{display}]")
    try:
        result = subprocess.run(
            command, shell=shell,
            stdout=subprocess.PIPE, stderr=subprocess.STDOUT,
            text=True, timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise FetchError(f"timed out after {timeout}s", output=_text(e.output)) from e
    except OSError as e:
        raise FetchError(str(e)) from e

    output = result.stdout or ""
    if output:
        logger.debug(output)
    if result.returncode != 0:
        raise FetchError(output.strip() or f"exit status {result.returncode}", output=output)
    return output


def curl_command(url: str, data: Optional[Dict[str, str]] = None,
                 userpass: Optional[str] = None, request: Optional[str] = None,
                 connect_timeout: int = CONNECT_TIMEOUT) -> List[str]:
    """Build a quiet curl invocation (errors still go to stderr)."""
    cmd = ["curl", "-sS", "--connect-timeout", str(connect_timeout), "--url", url]
    if userpass:
        cmd += ["--user", userpass]
    if request:
        cmd += ["--request", request]
    for key, val in (data or {}).items():
        cmd += ["--data", f"{key}={val}"]
    return cmd


def curl(url: str, data: Optional[Dict[str, str]] = None,
         userpass: Optional[str] = None, request: Optional[str] = None) -> str:
    """Perform a curl request and return its output."""
    return run_shell(curl_command(url, data, userpass, request))


def _text(output) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output
