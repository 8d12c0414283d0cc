"""Interact with yabai using its socket."""

__all__ = [
    "check_version",
    "encode_message",
    "get_controls",
    "get_yabai_version",
    "init",
    "parse_version",
    "query_states",
    "yabai_message",
    "yabai_query",
]

import asyncio
import json
import re
import struct
import time
from collections.abc import Callable, Iterable
from functools import partial, wraps
from logging import Logger
from typing import Any, cast

from .constants import DEFAULT_SOCKET_PATH, DEFAULT_TIMEOUT, IPC_MAX_RETRIES, IPC_RETRY_DELAY_MULTIPLIER, MINIMUM_YABAI_VERSION, YABAI_FAILURE_BYTE
from .logging_setup import get_logger
from .models import DaemonError, DaemonUnreachable, JSONResponse, QueryDomain, VersionInfo, VersionMismatch
from .states import YabaiStates

_VERSION_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")


class _IpcState:
    """Module state, set by `init`."""

    log: Logger | None = None
    socket_path: str = DEFAULT_SOCKET_PATH
    timeout: float = DEFAULT_TIMEOUT
    retries: int = IPC_MAX_RETRIES


_state = _IpcState()


class _EmptyReply(Exception):
    """yabai closed the connection without answering a query."""


def init(socket_path: str | None = None, timeout: float = DEFAULT_TIMEOUT, retries: int = IPC_MAX_RETRIES) -> None:
    """Initialize logging and connection settings."""
    _state.log = get_logger("ipc")
    _state.socket_path = socket_path or DEFAULT_SOCKET_PATH
    _state.timeout = timeout
    _state.retries = max(0, retries)


def encode_message(args: Iterable[str]) -> bytes:
    """Encode a message the way `yabai -m` does.

    Every argument is NUL terminated, the message ends with an extra NUL and
    is prefixed with its length as a little-endian 32 bits integer.
    """
    body = b"".join(arg.encode("utf-8") + b"\0" for arg in args) + b"\0"
    return struct.pack("<I", len(body)) + body


async def _get_response(payload: bytes, logger: Logger) -> bytes:
    """Send `payload` to the yabai socket and read the reply until EOF."""
    try:
        reader, writer = await asyncio.open_unix_connection(_state.socket_path)
    except (FileNotFoundError, ConnectionRefusedError) as e:
        logger.critical("yabai socket not found at %s! is it running ?", _state.socket_path)
        msg = f"cannot connect to yabai at {_state.socket_path}, is it running?"
        raise DaemonUnreachable(msg) from e

    try:
        writer.write(payload)
        await writer.drain()
        return await asyncio.wait_for(reader.read(), timeout=_state.timeout)
    except TimeoutError as e:
        logger.critical("yabai did not answer within %ss", _state.timeout)
        msg = f"yabai did not answer within {_state.timeout}s"
        raise DaemonUnreachable(msg) from e
    finally:
        writer.close()
        await writer.wait_closed()


async def _send(args: list[str], logger: Logger) -> bytes:
    """Run one yabai message, raising `DaemonError` on a failure reply."""
    start = time.monotonic()
    data = await _get_response(encode_message(args), logger)
    logger.debug("%s %.3fs", args, time.monotonic() - start)
    if data and data[0] == YABAI_FAILURE_BYTE:
        raise DaemonError(data[1:].decode("utf-8", errors="replace").strip())
    return data


async def yabai_message(*args: str | int, logger: Logger | None = None, ignore: Iterable[str] = ()) -> str:
    """Run a yabai command (`yabai -m <args>`). Returns its output.

    Args:
        args: message arguments, eg. "space", "--focus", "s1"
        logger: logger to use
        ignore: failure messages which only mean "nothing to do"

    Raises:
        DaemonError: yabai failed to run the command
        DaemonUnreachable: yabai can't be reached
    """
    logger = cast(Logger, logger or _state.log)
    message = [str(arg) for arg in args]
    try:
        data = await _send(message, logger)
    except DaemonError as e:
        if any(expected in str(e) for expected in ignore):
            logger.debug("%s: %s (ignored)", message, e)
            return ""
        logger.debug("%s failed: %s", message, e)
        raise
    except (BlockingIOError, ConnectionResetError) as e:
        logger.error("%s: %s", message, e)
        msg = f"yabai connection problem: {e}"
        raise DaemonUnreachable(msg) from e
    return data.decode("utf-8", errors="replace")


def retry_on_glitch(func: Callable) -> Callable:
    """Retry read-only requests on transient transport problems.

    yabai sometimes returns nothing, or the socket reports EAGAIN, when
    messages are sent in rapid succession.
    """

    @wraps(func)
    async def wrapper(*args, logger: Logger, **kwargs) -> Any:  # noqa: ANN401
        exc: Exception | None = None
        for count in range(_state.retries + 1):
            try:
                return await func(*args, **kwargs, logger=logger)
            except (_EmptyReply, BlockingIOError, ConnectionResetError) as e:  # noqa: PERF203
                exc = e
                if count == _state.retries:
                    break
                logger.warning("%s got %r, retrying...", list(args), e)
                await asyncio.sleep(IPC_RETRY_DELAY_MULTIPLIER * (count + 1))
        logger.error("ipc query failed.")
        msg = f"yabai did not answer {' '.join(map(str, args))}"
        raise DaemonUnreachable(msg) from exc

    return wrapper


@retry_on_glitch
async def _query_raw(*args: str, logger: Logger) -> str:
    data = await _send(["query", *args], logger)
    if not data.strip():
        raise _EmptyReply
    return data.decode("utf-8", errors="replace")


async def yabai_query(domain: QueryDomain, *selector: str, logger: Logger | None = None) -> JSONResponse:
    """Run a yabai query and return the decoded JSON.

    Args:
        domain: what to query
        selector: optional selector, eg. "--space", "recent"
        logger: logger to use

    Raises:
        VersionMismatch: the reply is not JSON
    """
    logger = cast(Logger, logger or _state.log)
    raw = await _query_raw(str(domain), *selector, logger=logger)
    try:
        return cast(JSONResponse, json.loads(raw))
    except json.JSONDecodeError as e:
        logger.critical("Failed to deserialize JSON: %s", raw)
        msg = f"unexpected reply to query {domain}, is yabai {MINIMUM_YABAI_VERSION} or newer?"
        raise VersionMismatch(msg) from e


async def query_states(logger: Logger | None = None) -> YabaiStates:
    """Query windows, displays and spaces."""
    windows = await yabai_query(QueryDomain.WINDOWS, logger=logger)
    displays = await yabai_query(QueryDomain.DISPLAYS, logger=logger)
    spaces = await yabai_query(QueryDomain.SPACES, logger=logger)
    return YabaiStates(spaces=spaces, displays=displays, windows=windows)  # type: ignore[arg-type]


def parse_version(text: str) -> VersionInfo:
    """Parse `yabai --version` output, eg. "yabai-v7.1.1".

    Raises:
        VersionMismatch: no version number found
    """
    match = _VERSION_RE.search(text)
    if not match:
        msg = f"can't parse yabai version from {text.strip()!r}"
        raise VersionMismatch(msg)
    return VersionInfo(*(int(part or 0) for part in match.groups()))


async def get_yabai_version(yabai_path: str = "yabai", logger: Logger | None = None) -> VersionInfo:
    """Return the version of the installed yabai."""
    logger = cast(Logger, logger or _state.log)
    try:
        proc = await asyncio.create_subprocess_exec(
            yabai_path,
            "--version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        logger.critical("%s not found! is yabai installed ?", yabai_path)
        msg = f"{yabai_path} executable not found"
        raise DaemonUnreachable(msg) from e
    stdout, stderr = await proc.communicate()
    version = parse_version((stdout or stderr).decode("utf-8", errors="replace"))
    logger.debug("yabai version %s", version)
    return version


async def check_version(yabai_path: str = "yabai", logger: Logger | None = None) -> VersionInfo:
    """Ensure yabai speaks the message format this tool targets.

    Raises:
        VersionMismatch: yabai is too old
    """
    version = await get_yabai_version(yabai_path, logger=logger)
    if version < MINIMUM_YABAI_VERSION:
        msg = f"yabai {version} is not supported, please upgrade to {MINIMUM_YABAI_VERSION} or newer"
        raise VersionMismatch(msg)
    return version


def get_controls(logger: Logger) -> tuple[Callable, Callable, Callable]:
    """Return (yabai_message, yabai_query, query_states) configured for the given logger."""
    return (
        partial(yabai_message, logger=logger),
        partial(yabai_query, logger=logger),
        partial(query_states, logger=logger),
    )
