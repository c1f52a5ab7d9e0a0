"""Serial transport for input modules using pyserial.

pyserial's POSIX backend opens the node with ``O_RDWR | O_NOCTTY |
O_NONBLOCK`` so opening cannot hang on modem control lines, takes an exclusive
``flock`` when ``exclusive`` is set, and puts the line into raw mode (no
canonical input, echo, or signal characters). Blocking reads are serviced with
``select``; a ``timeout`` of ``None`` waits forever.
"""

from __future__ import annotations

import logging

import serial

from inputmodule.core.errors import TransportError, TransportTimeoutError
from inputmodule.core.model import ModuleType

BAUDRATE = 115200
LOGGER = logging.getLogger(__name__)


class SerialInputModule:
    """Owns one serial handle to one module.

    Construction never raises: if the endpoint cannot be opened or configured
    the instance is left invalid and ``is_valid()`` reports it.
    """

    def __init__(
        self,
        module_type: ModuleType,
        device_path: str,
        *,
        read_timeout_s: float | None = None,
    ) -> None:
        self._module_type = module_type
        self._device_path = device_path
        self._read_timeout_s = read_timeout_s
        self._handle: serial.Serial | None = None
        self._open()

    @property
    def module_type(self) -> ModuleType:
        return self._module_type

    @property
    def device_path(self) -> str:
        return self._device_path

    @property
    def read_timeout_s(self) -> float | None:
        return self._read_timeout_s

    def _open(self) -> None:
        handle = serial.Serial()
        handle.port = self._device_path
        handle.baudrate = BAUDRATE
        handle.bytesize = serial.EIGHTBITS
        handle.parity = serial.PARITY_NONE
        handle.stopbits = serial.STOPBITS_ONE
        handle.xonxoff = False
        handle.rtscts = False
        handle.dsrdtr = False
        handle.exclusive = True
        handle.timeout = self._read_timeout_s
        try:
            handle.open()
        except (serial.SerialException, OSError, ValueError) as exc:
            LOGGER.warning("Could not open %s: %s", self._device_path, exc)
            return

        try:
            handle.reset_input_buffer()
            handle.reset_output_buffer()
        except (serial.SerialException, OSError) as exc:
            LOGGER.warning("Could not flush %s: %s", self._device_path, exc)
            try:
                handle.close()
            except (serial.SerialException, OSError) as close_exc:
                LOGGER.debug("Close after failed flush of %s: %s", self._device_path, close_exc)
            return

        self._handle = handle
        LOGGER.debug("Opened %s for %s", self._device_path, self._module_type.value)

    def is_valid(self) -> bool:
        return self._handle is not None and bool(self._handle.is_open)

    def write(self, data: bytes) -> int:
        if self._handle is None:
            return -1
        try:
            written = self._handle.write(data)
        except (serial.SerialException, OSError) as exc:
            LOGGER.warning("Write to %s failed: %s", self._device_path, exc)
            return -1
        if written is None:
            return -1
        if written != len(data):
            LOGGER.warning("Short write to %s: %d of %d bytes", self._device_path, written, len(data))
        return written

    def read(self, size: int) -> bytes:
        if self._handle is None:
            return b""
        try:
            data = self._handle.read(size)
        except (serial.SerialException, OSError) as exc:
            raise TransportError(f"Read from {self._device_path} failed: {exc}") from exc
        if self._read_timeout_s is not None and len(data) < size:
            raise TransportTimeoutError(
                f"Read from {self._device_path} timed out after {self._read_timeout_s}s "
                f"({len(data)} of {size} bytes)"
            )
        return data

    def close(self) -> None:
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        try:
            # Drops the flock before the descriptor goes away.
            handle.exclusive = False
        except (serial.SerialException, OSError, ValueError) as exc:
            LOGGER.warning("Could not release exclusive access on %s: %s", self._device_path, exc)
        try:
            handle.close()
        except (serial.SerialException, OSError) as exc:
            LOGGER.warning("Could not close %s: %s", self._device_path, exc)

    def __enter__(self) -> SerialInputModule:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_valid() else "invalid"
        return f"SerialInputModule({self._module_type.value}, {self._device_path!r}, {state})"
