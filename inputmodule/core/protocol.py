"""Wire codec for the input module serial protocol.

Every device-bound frame is a 3-byte header (two magic bytes followed by the
command code) and a fixed, unpadded body. Replies always arrive as a 32-byte
frame of which only a command-specific prefix is meaningful.

Several "get" commands share their byte value with the matching "set" command
(``GET_SLEEP`` is ``SLEEP``). The firmware tells them apart by the presence of a
body, so payload shapes are keyed by class, never by command code alone.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, fields
from enum import IntEnum
from typing import Any, ClassVar, Generic, TypeVar

from construct import (  # type: ignore
    Bytes,
    Const,
    Construct,
    ConstructError,
    Flag,
    Int8ub,
    Struct as BinStruct,
)

from inputmodule.core.errors import FrameDecodeError, PayloadEncodeError
from inputmodule.core.model import ModuleType

MAGIC = b"\x32\xac"
HEADER_SIZE = 3
REPLY_SIZE = 32

MATRIX_WIDTH = 9
MATRIX_HEIGHT = 34
DRAW_BW_SIZE = 39
PX_COLOR_SIZE = 49

HEADER_STRUCT = BinStruct("magic" / Const(MAGIC), "command" / Int8ub)
EMPTY_BODY = BinStruct()


class CommandCode(IntEnum):
    BRIGHTNESS = 0x00
    GET_BRIGHTNESS = 0x00
    PATTERN = 0x01
    BOOTLOADER = 0x02
    SLEEP = 0x03
    GET_SLEEP = 0x03
    ANIMATE = 0x04
    GET_ANIMATE = 0x04
    PANIC = 0x05
    DRAW_BW = 0x06
    STAGE_COL = 0x07
    FLUSH_COL = 0x08
    SET_TEXT = 0x09  # deprecated by the firmware, no payload shape
    START_GAME = 0x10
    GAME_CONTROL = 0x11
    GAME_STATUS = 0x12
    SET_COLOR = 0x13
    DISPLAY_ON = 0x14
    INVERT_SCREEN = 0x15
    SET_PX_COLOR = 0x16
    FLUSH_FB = 0x17
    VERSION = 0x20


class PatternType(IntEnum):
    PERCENTAGE = 0x00
    GRADIENT = 0x01
    DOUBLE_GRADIENT = 0x02
    DISPLAY_LOTUS_HORIZONTAL = 0x03
    ZIG_ZAG = 0x04
    FULL_BRIGHTNESS = 0x05
    DISPLAY_PANIC = 0x06
    DISPLAY_LOTUS_VERTICAL = 0x07


class GameType(IntEnum):
    SNAKE = 0x00
    PONG = 0x01
    TETRIS = 0x02
    GAME_OF_LIFE = 0x03


class GameControlKey(IntEnum):
    UP = 0x00
    DOWN = 0x01
    LEFT = 0x02
    RIGHT = 0x03
    QUIT = 0x04
    LEFT2 = 0x05
    RIGHT2 = 0x06


_L = ModuleType.LED_MATRIX
_D = ModuleType.B1_DISPLAY
_M = ModuleType.C1_MINIMAL_MODULE

SUPPORTED_MODULES: dict[CommandCode, frozenset[ModuleType]] = {
    CommandCode.BRIGHTNESS: frozenset({_L, _M}),
    CommandCode.PATTERN: frozenset({_L}),
    CommandCode.BOOTLOADER: frozenset({_L, _D, _M}),
    CommandCode.SLEEP: frozenset({_L, _D, _M}),
    CommandCode.ANIMATE: frozenset({_L}),
    CommandCode.PANIC: frozenset({_L, _D, _M}),
    CommandCode.DRAW_BW: frozenset({_L}),
    CommandCode.STAGE_COL: frozenset({_L}),
    CommandCode.FLUSH_COL: frozenset({_L}),
    CommandCode.SET_TEXT: frozenset(),
    CommandCode.START_GAME: frozenset({_L}),
    CommandCode.GAME_CONTROL: frozenset({_L}),
    CommandCode.GAME_STATUS: frozenset({_L}),
    CommandCode.SET_COLOR: frozenset({_M}),
    CommandCode.DISPLAY_ON: frozenset({_D}),
    CommandCode.INVERT_SCREEN: frozenset({_D}),
    CommandCode.SET_PX_COLOR: frozenset({_D}),
    CommandCode.FLUSH_FB: frozenset({_D}),
    CommandCode.VERSION: frozenset({_L, _D, _M}),
}


# --- Replies ---

R = TypeVar("R", bound="Reply")


class Reply:
    """Typed view over the meaningful prefix of a 32-byte reply frame."""

    SCHEMA: ClassVar[Construct[Any]]

    @classmethod
    def size(cls) -> int:
        return int(cls.SCHEMA.sizeof())

    @classmethod
    def decode(cls: type[R], frame: bytes | bytearray | memoryview) -> R:
        size = cls.size()
        if len(frame) < size:
            raise FrameDecodeError(
                f"{cls.__name__} needs {size} bytes, reply frame has {len(frame)}"
            )
        try:
            container: Any = cls.SCHEMA.parse(bytes(frame[:size]))
        except ConstructError as exc:
            raise FrameDecodeError(f"Could not parse {cls.__name__}: {exc}") from exc
        return cls(**{k: v for k, v in container.items() if not k.startswith("_")})

    @classmethod
    def zero(cls: type[R]) -> R:
        """Reply used when the device did not answer."""
        return cls.decode(bytes(cls.size()))


@dataclass(frozen=True)
class VersionReply(Reply):
    major: int
    minor_patch: int
    pre_release: bool

    SCHEMA = BinStruct("major" / Int8ub, "minor_patch" / Int8ub, "pre_release" / Flag)

    @property
    def minor(self) -> int:
        return (self.minor_patch >> 4) & 0x0F

    @property
    def patch(self) -> int:
        return self.minor_patch & 0x0F

    @property
    def is_pre_release(self) -> bool:
        return bool(self.pre_release)

    def __str__(self) -> str:
        version = f"{self.major}.{self.minor}.{self.patch}"
        return f"{version}-pre" if self.is_pre_release else version


@dataclass(frozen=True)
class SleepReply(Reply):
    sleeping: bool

    SCHEMA = BinStruct("sleeping" / Flag)


@dataclass(frozen=True)
class AnimateReply(Reply):
    animating: bool

    SCHEMA = BinStruct("animating" / Flag)


@dataclass(frozen=True)
class BrightnessReply(Reply):
    brightness: int

    SCHEMA = BinStruct("brightness" / Int8ub)


# --- Payloads ---

PAYLOAD_TYPES: list[type[Payload]] = []


class Payload:
    """A device-bound command: fixed header plus a packed body.

    Concrete subclasses are frozen dataclasses whose field names match the
    names in ``BODY``. Defining ``COMMAND`` registers the class in
    ``PAYLOAD_TYPES``.
    """

    COMMAND: ClassVar[CommandCode]
    BODY: ClassVar[Construct[Any]] = EMPTY_BODY

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "COMMAND" in cls.__dict__:
            PAYLOAD_TYPES.append(cls)

    def code(self) -> CommandCode:
        return self.COMMAND

    @classmethod
    def body_size(cls) -> int:
        return int(cls.BODY.sizeof())

    @classmethod
    def supported_modules(cls) -> frozenset[ModuleType]:
        return SUPPORTED_MODULES[cls.COMMAND]

    def body_bytes(self) -> bytes:
        values = {f.name: getattr(self, f.name) for f in fields(self)}  # type: ignore[arg-type]
        try:
            return bytes(self.BODY.build(values))
        except ConstructError as exc:
            raise PayloadEncodeError(
                f"Could not pack {type(self).__name__} body: {exc}"
            ) from exc

    def encode(self) -> bytes:
        return encode_header(self.COMMAND) + self.body_bytes()


class Command(Payload):
    """Fire-and-forget payload; the firmware sends nothing back."""


class Query(Payload, Generic[R]):
    """Payload answered by a reply frame of type ``REPLY``."""

    REPLY: ClassVar[type[Reply]]


@dataclass(frozen=True)
class Brightness(Command):
    brightness: int

    COMMAND = CommandCode.BRIGHTNESS
    BODY = BinStruct("brightness" / Int8ub)


@dataclass(frozen=True)
class GetBrightness(Query[BrightnessReply]):
    COMMAND = CommandCode.GET_BRIGHTNESS
    REPLY = BrightnessReply


@dataclass(frozen=True)
class Pattern(Command):
    pattern: PatternType
    extra: int = 0

    COMMAND = CommandCode.PATTERN
    BODY = BinStruct("pattern" / Int8ub, "extra" / Int8ub)


@dataclass(frozen=True)
class Bootloader(Command):
    COMMAND = CommandCode.BOOTLOADER


@dataclass(frozen=True)
class Sleep(Command):
    sleeping: bool

    COMMAND = CommandCode.SLEEP
    BODY = BinStruct("sleeping" / Flag)


@dataclass(frozen=True)
class GetSleep(Query[SleepReply]):
    COMMAND = CommandCode.GET_SLEEP
    REPLY = SleepReply


@dataclass(frozen=True)
class Animate(Command):
    animate: bool

    COMMAND = CommandCode.ANIMATE
    BODY = BinStruct("animate" / Flag)


@dataclass(frozen=True)
class GetAnimate(Query[AnimateReply]):
    COMMAND = CommandCode.GET_ANIMATE
    REPLY = AnimateReply


@dataclass(frozen=True)
class Panic(Command):
    COMMAND = CommandCode.PANIC


@dataclass(frozen=True)
class DrawBW(Command):
    """1-bpp image for the 9x34 LED matrix, 39 bytes LSB-first."""

    bits: bytes = bytes(DRAW_BW_SIZE)

    COMMAND = CommandCode.DRAW_BW
    BODY = BinStruct("bits" / Bytes(DRAW_BW_SIZE))

    @classmethod
    def from_pixels(cls, pixels: Iterable[bool]) -> DrawBW:
        """Pack row-major pixels (34 rows of 9) into the 39-byte bitmap."""
        lit = list(pixels)
        if len(lit) != MATRIX_WIDTH * MATRIX_HEIGHT:
            raise PayloadEncodeError(
                f"DrawBW expects {MATRIX_WIDTH * MATRIX_HEIGHT} pixels, got {len(lit)}"
            )
        bits = bytearray(DRAW_BW_SIZE)
        for index, on in enumerate(lit):
            if on:
                bits[index // 8] |= 1 << (index % 8)
        return cls(bits=bytes(bits))


@dataclass(frozen=True)
class StageCol(Command):
    column: int
    pixels: bytes = bytes(MATRIX_HEIGHT)

    COMMAND = CommandCode.STAGE_COL
    BODY = BinStruct("column" / Int8ub, "pixels" / Bytes(MATRIX_HEIGHT))


@dataclass(frozen=True)
class FlushCol(Command):
    COMMAND = CommandCode.FLUSH_COL


@dataclass(frozen=True)
class StartGame(Command):
    game: GameType

    COMMAND = CommandCode.START_GAME
    BODY = BinStruct("game" / Int8ub)


@dataclass(frozen=True)
class GameControl(Command):
    key: GameControlKey

    COMMAND = CommandCode.GAME_CONTROL
    BODY = BinStruct("key" / Int8ub)


@dataclass(frozen=True)
class GameStatus(Command):
    COMMAND = CommandCode.GAME_STATUS


@dataclass(frozen=True)
class SetColor(Command):
    red: int
    green: int
    blue: int

    COMMAND = CommandCode.SET_COLOR
    BODY = BinStruct("red" / Int8ub, "green" / Int8ub, "blue" / Int8ub)


@dataclass(frozen=True)
class DisplayOn(Command):
    on: bool

    COMMAND = CommandCode.DISPLAY_ON
    BODY = BinStruct("on" / Flag)


@dataclass(frozen=True)
class InvertScreen(Command):
    invert: bool

    COMMAND = CommandCode.INVERT_SCREEN
    BODY = BinStruct("invert" / Flag)


@dataclass(frozen=True)
class SetPxColor(Command):
    column: int
    data: bytes = bytes(PX_COLOR_SIZE)

    COMMAND = CommandCode.SET_PX_COLOR
    BODY = BinStruct("column" / Int8ub, "data" / Bytes(PX_COLOR_SIZE))


@dataclass(frozen=True)
class FlushFB(Command):
    COMMAND = CommandCode.FLUSH_FB


@dataclass(frozen=True)
class Version(Query[VersionReply]):
    COMMAND = CommandCode.VERSION
    REPLY = VersionReply


# --- Frame helpers ---


def encode_header(code: CommandCode | int) -> bytes:
    try:
        return bytes(HEADER_STRUCT.build({"command": int(code)}))
    except ConstructError as exc:
        raise PayloadEncodeError(f"Invalid command code {code!r}: {exc}") from exc


def encode(payload: Payload) -> bytes:
    return payload.encode()


def encode_raw(code: CommandCode | int, data: bytes | bytearray = b"") -> bytes:
    """Header followed by ``data`` as-is, for commands without a payload class."""
    return encode_header(code) + bytes(data)


def decode_header(frame: bytes | bytearray | memoryview) -> CommandCode:
    if len(frame) < HEADER_SIZE:
        raise FrameDecodeError(f"Frame of {len(frame)} bytes is shorter than the header")
    try:
        header: Any = HEADER_STRUCT.parse(bytes(frame[:HEADER_SIZE]))
    except ConstructError as exc:
        raise FrameDecodeError(f"Bad frame header {bytes(frame[:HEADER_SIZE]).hex()}") from exc
    try:
        return CommandCode(header.command)
    except ValueError as exc:
        raise FrameDecodeError(f"Unknown command code 0x{header.command:02x}") from exc


def decode_reply(reply_type: type[R], frame: bytes | bytearray | memoryview) -> R:
    return reply_type.decode(frame)


def payload_types_for(code: CommandCode | int) -> tuple[type[Payload], ...]:
    """All payload shapes sent with ``code``; aliased codes yield several."""
    return tuple(t for t in PAYLOAD_TYPES if t.COMMAND == code)
