"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol

from inputmodule.core.model import ModuleType


class InputModule(Protocol):
    """One physical module reachable over its own serial endpoint."""

    @property
    def module_type(self) -> ModuleType: ...

    @property
    def device_path(self) -> str: ...

    def is_valid(self) -> bool:
        """True while the underlying handle is open and usable."""

    def write(self, data: bytes) -> int:
        """Write a frame; return the byte count written or -1 on failure."""

    def read(self, size: int) -> bytes:
        """Read one reply of ``size`` bytes."""

    def close(self) -> None:
        """Release the endpoint."""
