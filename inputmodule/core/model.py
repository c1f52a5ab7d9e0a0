"""Core data models used across the profile loader, discovery, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ModuleType(Enum):
    LED_MATRIX = "LEDMatrix"
    B1_DISPLAY = "B1Display"
    C1_MINIMAL_MODULE = "C1MinimalModule"


@dataclass(frozen=True)
class ModuleRule:
    module_type: ModuleType
    serial_prefix: str


@dataclass(frozen=True)
class TransportSettings:
    read_timeout_s: float | None = None


@dataclass(frozen=True)
class Profile:
    id: str
    name: str
    vendor_prefix: str
    modules: tuple[ModuleRule, ...]
    transport: TransportSettings = TransportSettings()


@dataclass(frozen=True)
class DetectedPort:
    device: str
    serial_number: str | None


@dataclass(frozen=True)
class ModuleMatch:
    port: DetectedPort
    module_type: ModuleType
    profile: Profile
