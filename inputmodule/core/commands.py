"""Typed command interface over an input module transport.

``send`` picks the call shape from the payload class: a ``Command`` is written
and the byte count returned, a ``Query`` is written and answered with exactly
one 32-byte reply frame decoded into its reply type.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import SupportsIndex, TypeVar, overload

from inputmodule.core.errors import (
    FrameDecodeError,
    InvalidModuleError,
    PayloadEncodeError,
    TransportError,
    TransportSendError,
)
from inputmodule.core.protocol import (
    REPLY_SIZE,
    Command,
    CommandCode,
    Payload,
    Query,
    Reply,
    encode_raw,
)
from inputmodule.transports.base import InputModule

R = TypeVar("R", bound=Reply)
LOGGER = logging.getLogger(__name__)


def _require_valid(module: InputModule) -> None:
    if not module.is_valid():
        raise InvalidModuleError(
            f"Input module at {module.device_path} is not valid; check is_valid() before sending"
        )


@overload
def send(module: InputModule, payload: Query[R], *, strict: bool = False) -> R: ...


@overload
def send(module: InputModule, payload: Command, *, strict: bool = False) -> int: ...


def send(module: InputModule, payload: Payload, *, strict: bool = False) -> Reply | int:
    """Send a payload and, for queries, read back its reply.

    Queries are best-effort by default: a failed write, a read timeout, or a
    short reply frame yields the zero-valued reply. A zero reply is therefore
    not proof of a firmware value. Pass ``strict=True`` to get the underlying
    error instead.
    """
    _require_valid(module)
    frame = payload.encode()
    written = module.write(frame)
    if not isinstance(payload, Query):
        return written

    reply_type = payload.REPLY
    if written != len(frame):
        if strict:
            raise TransportSendError(
                f"Wrote {written} of {len(frame)} bytes to {module.device_path}"
            )
        LOGGER.warning(
            "Write of %s to %s failed, returning zero reply",
            type(payload).__name__,
            module.device_path,
        )
        return reply_type.zero()

    try:
        data = module.read(REPLY_SIZE)
        return reply_type.decode(data)
    except (TransportError, FrameDecodeError) as exc:
        if strict:
            raise
        LOGGER.warning(
            "No usable reply to %s from %s (%s), returning zero reply",
            type(payload).__name__,
            module.device_path,
            exc,
        )
        return reply_type.zero()


def send_command(
    module: InputModule,
    code: CommandCode | int,
    data: bytes | bytearray | Sequence[int] = b"",
) -> int:
    """Send ``code`` with a free-form body; the frame is header plus ``data``."""
    _require_valid(module)
    try:
        body = bytes(data)
    except (TypeError, ValueError) as exc:
        raise PayloadEncodeError(f"Body for command 0x{int(code):02x} is not bytes: {exc}") from exc
    return module.write(encode_raw(code, body))


def send_raw(module: InputModule, code: CommandCode | int, *args: SupportsIndex | bool) -> int:
    """Pack each argument as one byte, in order, after the header."""
    _require_valid(module)
    try:
        body = bytes(int(arg) for arg in args)
    except (TypeError, ValueError) as exc:
        raise PayloadEncodeError(
            f"Arguments for command 0x{int(code):02x} must be bytes 0-255: {exc}"
        ) from exc
    return send_command(module, code, body)
