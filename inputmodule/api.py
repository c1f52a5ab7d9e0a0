"""Stable public API for building tooling on top of inputmodule.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from inputmodule.core.commands import send, send_command, send_raw
from inputmodule.core.errors import (
    DeviceDiscoveryError,
    DeviceSelectionError,
    FrameDecodeError,
    InputModuleError,
    InvalidModuleError,
    PayloadEncodeError,
    ProfileLoadError,
    ProfileValidationError,
    ProtocolError,
    TransportError,
    TransportSendError,
    TransportTimeoutError,
)
from inputmodule.core.manager import InputModuleManager
from inputmodule.core.model import DetectedPort, ModuleType, Profile
from inputmodule.core.protocol import (
    HEADER_SIZE,
    REPLY_SIZE,
    Animate,
    AnimateReply,
    Bootloader,
    Brightness,
    BrightnessReply,
    Command,
    CommandCode,
    DisplayOn,
    DrawBW,
    FlushCol,
    FlushFB,
    GameControl,
    GameControlKey,
    GameStatus,
    GameType,
    GetAnimate,
    GetBrightness,
    GetSleep,
    InvertScreen,
    Panic,
    Pattern,
    PatternType,
    Query,
    SetColor,
    SetPxColor,
    Sleep,
    SleepReply,
    StageCol,
    StartGame,
    Version,
    VersionReply,
    decode_header,
    decode_reply,
    encode,
    encode_raw,
)
from inputmodule.transports.base import InputModule
from inputmodule.transports.posix import SerialInputModule

__all__ = [
    "InputModuleError",
    "DeviceDiscoveryError",
    "DeviceSelectionError",
    "InvalidModuleError",
    "ProfileLoadError",
    "ProfileValidationError",
    "ProtocolError",
    "PayloadEncodeError",
    "FrameDecodeError",
    "TransportError",
    "TransportSendError",
    "TransportTimeoutError",
    "DetectedPort",
    "ModuleType",
    "Profile",
    "InputModule",
    "SerialInputModule",
    "InputModuleManager",
    "HEADER_SIZE",
    "REPLY_SIZE",
    "CommandCode",
    "PatternType",
    "GameType",
    "GameControlKey",
    "Command",
    "Query",
    "Brightness",
    "GetBrightness",
    "Pattern",
    "Bootloader",
    "Sleep",
    "GetSleep",
    "Animate",
    "GetAnimate",
    "Panic",
    "DrawBW",
    "StageCol",
    "FlushCol",
    "StartGame",
    "GameControl",
    "GameStatus",
    "SetColor",
    "DisplayOn",
    "InvertScreen",
    "SetPxColor",
    "FlushFB",
    "Version",
    "VersionReply",
    "SleepReply",
    "AnimateReply",
    "BrightnessReply",
    "encode",
    "encode_raw",
    "decode_header",
    "decode_reply",
    "send",
    "send_command",
    "send_raw",
]
